"""Tests for the file-backed entity store."""

import logging
from datetime import date, datetime

import pytest

from hospital_records.entities import (
    Appointment,
    AppointmentStatus,
    Doctor,
    Medicine,
    Patient,
    Pharmacist,
    Role,
    Service,
    build_registry,
)
from hospital_records.errors import FormatError, StorageError
from hospital_records.store import EntityStore

MEDICINE_HEADER = "id,medicineName,stockQuantity,unitCost,dosage,lowStockThreshold"


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def medicine_file(tmp_path):
    path = tmp_path / "Medicine_List.csv"
    path.write_text(
        MEDICINE_HEADER + "\n"
        "MED001,Paracetamol,100,0.50,500.00,20\n"
        "MED002,Ibuprofen,5,1.25,200.00,10\n"
        "MED017,Amoxicillin,40,2.00,250.00,15\n"
    )
    return path


@pytest.fixture
def medicines(registry, medicine_file):
    return EntityStore(registry.get_or_raise("Medicine"), medicine_file)


def _empty_store(registry, tmp_path, type_name, file_name):
    path = tmp_path / file_name
    store = EntityStore(registry.get_or_raise(type_name), path, load=False)
    store.save()
    return store


class TestLoad:
    """Tests for loading a store from its backing file."""

    def test_load(self, medicines):
        assert len(medicines) == 3
        assert medicines.size == 3
        med = medicines.get("MED002")
        assert isinstance(med, Medicine)
        assert med.medicine_name == "Ibuprofen"
        assert med.is_low_stock()

    def test_load_is_idempotent(self, medicines):
        before = sorted(medicines.all_ids())
        medicines.load()
        medicines.load()
        assert sorted(medicines.all_ids()) == before

    def test_missing_file(self, registry, tmp_path):
        with pytest.raises(StorageError):
            EntityStore(registry.get_or_raise("Medicine"), tmp_path / "Medicine_List.csv")

    def test_invalid_utf8_file(self, registry, tmp_path):
        path = tmp_path / "Medicine_List.csv"
        path.write_bytes(b"id,medicineName\nMED001,Para\xffcetamol\n")
        with pytest.raises(StorageError):
            EntityStore(registry.get_or_raise("Medicine"), path)

    def test_staff_role_follows_identifier(self, registry, tmp_path):
        path = tmp_path / "Staff_List.csv"
        path.write_text(
            "isPatient,id,password,name,gender,dob,role\n"
            "false,D002,pw,Dana,F,1980-01-02,\n"
        )
        store = EntityStore(registry.get_or_raise("HospitalStaff"), path)
        assert [s.id for s in store.find_by_field("role", Role.DOCTOR)] == ["D002"]

    def test_staff_conflicting_role_aborts_load(self, registry, tmp_path):
        path = tmp_path / "Staff_List.csv"
        path.write_text(
            "isPatient,id,password,name,gender,dob,role\n"
            "false,D001,pw,Dana,F,1980-01-02,PHARMACIST\n"
        )
        with pytest.raises(FormatError):
            EntityStore(registry.get_or_raise("HospitalStaff"), path)

    def test_malformed_row_aborts_load(self, registry, tmp_path):
        path = tmp_path / "Medicine_List.csv"
        path.write_text(MEDICINE_HEADER + "\nMED001,Paracetamol,abc,0.50,500,20\n")
        with pytest.raises(FormatError) as exc_info:
            EntityStore(registry.get_or_raise("Medicine"), path)
        assert exc_info.value.value == "abc"
        assert exc_info.value.field_name == "stock_quantity"

    def test_failed_reload_keeps_contents(self, medicines, medicine_file):
        medicine_file.write_text(MEDICINE_HEADER + "\nMED009,Bad,x,1,1,1\n")
        with pytest.raises(FormatError):
            medicines.load()
        assert sorted(medicines.all_ids()) == ["MED001", "MED002", "MED017"]

    def test_no_load(self, registry, tmp_path):
        store = EntityStore(registry.get_or_raise("Medicine"), tmp_path / "x.csv", load=False)
        assert len(store) == 0


class TestMutations:
    """Tests for add, update and remove."""

    def test_add_persists(self, registry, medicines, medicine_file):
        medicines.add(Medicine(id="MED018", medicine_name="Cetirizine", stock_quantity=30))
        assert "MED018" in medicines

        reopened = EntityStore(registry.get_or_raise("Medicine"), medicine_file)
        assert reopened.get("MED018").medicine_name == "Cetirizine"
        assert reopened.get("MED018").stock_quantity == 30

    def test_add_replaces_same_id(self, medicines):
        medicines.add(Medicine(id="MED001", medicine_name="Panadol"))
        assert len(medicines) == 3
        assert medicines.get("MED001").medicine_name == "Panadol"

    def test_add_without_id(self, medicines):
        with pytest.raises(ValueError):
            medicines.add(Medicine(medicine_name="Nameless"))

    def test_update_existing(self, registry, medicines, medicine_file):
        med = medicines.get("MED001")
        med.stock_quantity = 99
        assert medicines.update(med)

        reopened = EntityStore(registry.get_or_raise("Medicine"), medicine_file)
        assert reopened.get("MED001").stock_quantity == 99

    def test_update_missing_leaves_store_unchanged(self, medicines, medicine_file):
        before = medicine_file.read_text()
        assert not medicines.update(Medicine(id="MED999", medicine_name="Ghost"))
        assert "MED999" not in medicines
        assert len(medicines) == 3
        assert medicine_file.read_text() == before

    def test_remove(self, registry, medicines, medicine_file):
        medicines.remove(medicines.get("MED002"))
        assert medicines.get("MED002") is None

        reopened = EntityStore(registry.get_or_raise("Medicine"), medicine_file)
        assert "MED002" not in reopened
        assert len(reopened) == 2

    def test_remove_missing_id(self, medicines):
        assert not medicines.remove_id("MED999")
        assert len(medicines) == 3

    def test_get_missing(self, medicines):
        assert medicines.get("MED999") is None

    def test_failed_save_is_logged(self, medicines, medicine_file, caplog):
        with caplog.at_level(logging.ERROR, logger="hospital_records.store"):
            medicines.add(Medicine(id="MED020", medicine_name="a,b"))
        assert "MED020" in medicines
        assert "Failed to save" in caplog.text
        assert "MED020" not in medicine_file.read_text()

    def test_non_finite_value_is_not_written(self, registry, medicines, medicine_file):
        before = medicine_file.read_text()
        medicines.add(Medicine(id="MED020", unit_cost=float("inf")))
        assert medicine_file.read_text() == before
        reopened = EntityStore(registry.get_or_raise("Medicine"), medicine_file)
        assert len(reopened) == 3

    def test_wrong_kind_is_not_written(self, medicines, medicine_file):
        before = medicine_file.read_text()
        assert medicines.update(Medicine(id="MED001", stock_quantity=2.5))
        assert not medicines.save()
        assert medicine_file.read_text() == before

    def test_save_to_unwritable_path(self, registry, tmp_path):
        store = EntityStore(
            registry.get_or_raise("Medicine"), tmp_path / "missing" / "Medicine_List.csv", load=False
        )
        assert not store.save()


class TestRoundTrip:
    """Tests for persistence round trips."""

    def test_appointment_round_trip(self, registry, tmp_path):
        store = _empty_store(registry, tmp_path, "Appointment", "Appointment_List.csv")
        appt = Appointment(
            id="APPT001",
            patient_id="P001",
            doctor_id="D001",
            appt_date_time=datetime(2024, 10, 1, 9, 30),
            service=Service.CONSULTATION,
            status=AppointmentStatus.CONFIRMED,
        )
        store.add(appt)

        reopened = EntityStore(registry.get_or_raise("Appointment"), store.file_path)
        assert reopened.get("APPT001") == appt

    def test_patient_round_trip(self, registry, tmp_path):
        store = _empty_store(registry, tmp_path, "Patient", "Patient_List.csv")
        store.add(Patient(id="P001", name="Ada", blood_type="O+", email="ada@example.com"))
        reopened = EntityStore(registry.get_or_raise("Patient"), store.file_path)
        patient = reopened.get("P001")
        assert patient.is_patient is True
        assert patient.blood_type == "O+"

    def test_datetime_in_date_field_reloads(self, registry, tmp_path):
        store = _empty_store(registry, tmp_path, "Patient", "Patient_List.csv")
        store.add(Patient(id="P001", dob=datetime(1990, 5, 1)))
        reopened = EntityStore(registry.get_or_raise("Patient"), store.file_path)
        assert reopened.get("P001").dob == date(1990, 5, 1)


class TestFindByField:
    """Tests for field-equality lookup."""

    def test_find_by_attribute_name(self, medicines):
        found = medicines.find_by_field("medicine_name", "Ibuprofen")
        assert [m.id for m in found] == ["MED002"]

    def test_find_by_column_name(self, medicines):
        found = medicines.find_by_field("stockQuantity", 40)
        assert [m.id for m in found] == ["MED017"]

    def test_find_no_match(self, medicines):
        assert medicines.find_by_field("medicine_name", "Aspirin") == []

    def test_find_unknown_field_logs_and_returns_empty(self, medicines, caplog):
        with caplog.at_level(logging.WARNING, logger="hospital_records.store"):
            assert medicines.find_by_field("colour", "red") == []
        assert "colour" in caplog.text

    def test_none_never_matches(self, registry, tmp_path):
        store = _empty_store(registry, tmp_path, "Medicine", "Medicine_List.csv")
        store.add(Medicine(id="MED001"))
        assert store.find_by_field("medicine_name", None) == []

    def test_inherited_field(self, registry, tmp_path):
        store = _empty_store(registry, tmp_path, "HospitalStaff", "Staff_List.csv")
        store.add(Doctor(id="D001", name="Dana"))
        store.add(Pharmacist(id="PH001", name="Pat"))
        assert [s.id for s in store.find_by_field("name", "Pat")] == ["PH001"]
        assert [s.id for s in store.find_by_field("role", Role.DOCTOR)] == ["D001"]


class TestNextId:
    """Tests for identifier allocation through the store."""

    def test_next_id_for_type(self, medicines):
        assert medicines.next_id_for_type() == "MED018"

    def test_next_id_empty_store(self, registry, tmp_path):
        store = _empty_store(registry, tmp_path, "Medicine", "Medicine_List.csv")
        assert store.next_id("MED") == "MED001"

    def test_staff_prefixes_are_isolated(self, registry, tmp_path):
        store = _empty_store(registry, tmp_path, "HospitalStaff", "Staff_List.csv")
        store.add(Doctor(id="D001"))
        store.add(Doctor(id="D002"))
        store.add(Pharmacist(id="PH005"))
        assert store.next_id_for_variant(Role.DOCTOR) == "D003"
        assert store.next_id_for_variant("pharmacist") == "PH006"
        assert store.next_id_for_variant(Role.ADMINISTRATOR) == "A001"

    def test_next_id_for_hierarchy_needs_variant(self, registry, tmp_path):
        store = _empty_store(registry, tmp_path, "HospitalStaff", "Staff_List.csv")
        with pytest.raises(ValueError):
            store.next_id_for_type()

    def test_unknown_variant(self, registry, tmp_path):
        store = _empty_store(registry, tmp_path, "HospitalStaff", "Staff_List.csv")
        with pytest.raises(ValueError):
            store.next_id_for_variant("NURSE")

    def test_next_id_is_monotonic(self, medicines):
        first = medicines.next_id_for_type()
        medicines.add(Medicine(id=first, medicine_name="New"))
        second = medicines.next_id_for_type()
        assert second != first
        assert second == "MED019"
