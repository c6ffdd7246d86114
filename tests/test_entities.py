"""Tests for the hospital record types."""

from datetime import datetime

import pytest

from hospital_records.entities import (
    Administrator,
    Doctor,
    HospitalStaff,
    Medicine,
    MedicineRequest,
    Notification,
    Patient,
    Pharmacist,
    Role,
    build_registry,
    create_staff,
)


class TestUsers:
    """Tests for patient and staff records."""

    def test_patient_defaults(self):
        patient = Patient(id="P001")
        assert patient.is_patient is True

    def test_staff_roles(self):
        assert Doctor().role is Role.DOCTOR
        assert Pharmacist().role is Role.PHARMACIST
        assert Administrator().role is Role.ADMINISTRATOR
        assert Doctor().is_patient is False

    def test_create_staff(self):
        staff = create_staff(Role.PHARMACIST, id="PH001", name="Pat")
        assert isinstance(staff, Pharmacist)
        assert isinstance(staff, HospitalStaff)
        assert staff.name == "Pat"


class TestRecordBehavior:
    """Tests for record helper methods."""

    def test_low_stock(self):
        assert Medicine(stock_quantity=10, low_stock_threshold=10).is_low_stock()
        assert not Medicine(stock_quantity=11, low_stock_threshold=10).is_low_stock()
        assert not Medicine().is_low_stock()

    def test_mark_read(self):
        note = Notification(id="NOTI001", read=False)
        note.mark_read()
        assert note.read is True

    def test_touch_truncates_to_minute(self):
        request = MedicineRequest(id="MEDREQ001")
        request.touch(datetime(2024, 10, 1, 9, 30, 45, 123))
        assert request.time_modified == datetime(2024, 10, 1, 9, 30)


class TestRegistry:
    """Tests for the hospital type registry."""

    @pytest.mark.parametrize(
        "type_name, prefix, file_name",
        [
            ("Patient", "P", "Patient_List.csv"),
            ("UnavailableDate", "UD", "UnavailableDate_List.csv"),
            ("Appointment", "APPT", "Appointment_List.csv"),
            ("Medicine", "MED", "Medicine_List.csv"),
            ("Prescription", "PRSC", "Prescription_List.csv"),
            ("PrescriptionItem", "PRSCI", "PrescriptionItem_List.csv"),
            ("Invoice", "INV", "Invoice_List.csv"),
            ("Notification", "NOTI", "Notification_List.csv"),
            ("MedicineRequest", "MEDREQ", "MedicineRequest_List.csv"),
        ],
    )
    def test_prefixes_and_files(self, type_name, prefix, file_name):
        type_def = build_registry().get_or_raise(type_name)
        assert type_def.prefix == prefix
        assert type_def.file_name == file_name
        assert type_def.is_storable

    def test_staff_variants(self):
        staff = build_registry().get_or_raise("HospitalStaff")
        assert staff.is_hierarchy
        assert staff.prefix is None
        assert {v.name: v.prefix for v in staff.variants} == {
            "DOCTOR": "D",
            "PHARMACIST": "PH",
            "ADMINISTRATOR": "A",
        }

    def test_abstract_bases(self):
        registry = build_registry()
        assert not registry.get_or_raise("User").is_storable
        assert not registry.get_or_raise("Request").is_storable
        assert registry.get_or_raise("Patient").base is registry.get_or_raise("User")

    def test_inherited_columns_come_first(self):
        registry = build_registry()
        assert registry.get_or_raise("Patient").catalog.columns == [
            "isPatient", "id", "password", "name", "gender", "dob",
            "bloodType", "contactNumber", "email",
        ]
        assert registry.get_or_raise("MedicineRequest").catalog.columns == [
            "id", "requestorId", "approverId", "status", "timeCreated", "timeModified",
            "medicineId", "quantity",
        ]

    def test_every_catalog_field_exists_on_record_class(self):
        registry = build_registry()
        for type_def in registry.storable_types():
            if type_def.is_hierarchy:
                classes = [v.record_class for v in type_def.variants]
            else:
                classes = [type_def.record_class]
            for cls in classes:
                record = cls()
                for entry in type_def.catalog:
                    assert hasattr(record, entry.name), f"{cls.__name__}.{entry.name}"
