"""Hospital record types and their registration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from hospital_records.types import (
    FieldDefinition,
    FieldKind,
    Record,
    RecordRegistry,
    RecordTypeDefinition,
    VariantDefinition,
)


class Role(Enum):
    DOCTOR = "doctor"
    PHARMACIST = "pharmacist"
    ADMINISTRATOR = "administrator"


class Service(Enum):
    CONSULTATION = "consultation"
    XRAY = "xray"
    LABTEST = "labtest"


class AppointmentStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELED = "canceled"


class ItemStatus(Enum):
    PENDING = "pending"
    CANCELLED = "cancelled"
    DISPENSED = "dispensed"


class InvoiceStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    CANCELED = "canceled"


class RequestStatus(Enum):
    PENDING = "pending"
    REJECTED = "rejected"
    APPROVED = "approved"


# --- Users ---


@dataclass
class User(Record):
    is_patient: bool | None = None
    id: str | None = None
    password: str | None = None
    name: str | None = None
    gender: str | None = None
    dob: date | None = None


@dataclass
class Patient(User):
    blood_type: str | None = None
    contact_number: str | None = None
    email: str | None = None

    def __post_init__(self) -> None:
        if self.is_patient is None:
            self.is_patient = True


@dataclass
class HospitalStaff(User):
    role: Role | None = None

    # Set by each variant class
    ROLE = None

    def __post_init__(self) -> None:
        if self.is_patient is None:
            self.is_patient = False
        if self.role is None:
            self.role = self.ROLE


@dataclass
class Doctor(HospitalStaff):
    ROLE = Role.DOCTOR


@dataclass
class Pharmacist(HospitalStaff):
    ROLE = Role.PHARMACIST


@dataclass
class Administrator(HospitalStaff):
    ROLE = Role.ADMINISTRATOR


STAFF_CLASSES: dict[Role, type[HospitalStaff]] = {
    Role.DOCTOR: Doctor,
    Role.PHARMACIST: Pharmacist,
    Role.ADMINISTRATOR: Administrator,
}

STAFF_PREFIXES: dict[Role, str] = {
    Role.DOCTOR: "D",
    Role.PHARMACIST: "PH",
    Role.ADMINISTRATOR: "A",
}


def create_staff(role: Role, **fields: object) -> HospitalStaff:
    """Create a staff record of the class matching ``role``."""
    return STAFF_CLASSES[role](**fields)  # type: ignore[arg-type]


@dataclass
class UnavailableDate(Record):
    id: str | None = None
    staff_id: str | None = None
    date: datetime | None = None


# --- Appointments, medicine, billing ---


@dataclass
class Appointment(Record):
    id: str | None = None
    patient_id: str | None = None
    doctor_id: str | None = None
    appt_date_time: datetime | None = None
    service: Service | None = None
    status: AppointmentStatus | None = None
    diagnosis: str | None = None
    notes: str | None = None


@dataclass
class Medicine(Record):
    id: str | None = None
    medicine_name: str | None = None
    stock_quantity: int | None = None
    unit_cost: float | None = None
    dosage: float | None = None  # mg
    low_stock_threshold: int | None = None

    def is_low_stock(self) -> bool:
        """Return whether stock is at or below the low-stock threshold."""
        if self.stock_quantity is None or self.low_stock_threshold is None:
            return False
        return self.stock_quantity <= self.low_stock_threshold


@dataclass
class Prescription(Record):
    id: str | None = None
    appt_id: str | None = None
    is_active: bool | None = None


@dataclass
class PrescriptionItem(Record):
    id: str | None = None
    prescription_id: str | None = None
    medicine_id: str | None = None
    quantity: int | None = None
    status: ItemStatus | None = None
    notes: str | None = None


@dataclass
class Invoice(Record):
    id: str | None = None
    customer_id: str | None = None
    appt_id: str | None = None
    service_fee: float | None = None
    total_amount: float | None = None
    tax_rate: float | None = None
    balance: float | None = None
    current_paid: float | None = None
    total_payable: float | None = None
    issue_date: datetime | None = None
    status: InvoiceStatus | None = None


@dataclass
class Notification(Record):
    id: str | None = None
    user_id: str | None = None
    message: str | None = None
    datetime: datetime | None = None
    read: bool | None = None

    def mark_read(self) -> None:
        self.read = True


# --- Requests ---


@dataclass
class Request(Record):
    id: str | None = None
    requestor_id: str | None = None
    approver_id: str | None = None
    status: RequestStatus | None = None
    time_created: datetime | None = None
    time_modified: datetime | None = None

    def touch(self, when: datetime | None = None) -> None:
        """Stamp the modification time, to the minute."""
        when = when or datetime.now()
        self.time_modified = when.replace(second=0, microsecond=0)


@dataclass
class MedicineRequest(Request):
    medicine_id: str | None = None
    quantity: int | None = None


# --- Registration ---


def _field(name: str, kind: FieldKind, column: str = "", enum_type: type[Enum] | None = None) -> FieldDefinition:
    return FieldDefinition(name=name, kind=kind, column=column, enum_type=enum_type)


def _id() -> FieldDefinition:
    return _field("id", FieldKind.TEXT)


def build_registry() -> RecordRegistry:
    """Create a registry holding every hospital record type.

    Column names match the headers of the hospital's existing CSV files.
    """
    registry = RecordRegistry()
    T = FieldKind.TEXT

    user = registry.register(RecordTypeDefinition(
        name="User",
        abstract=True,
        fields=[
            _field("is_patient", FieldKind.BOOLEAN, "isPatient"),
            _id(),
            _field("password", T),
            _field("name", T),
            _field("gender", T),
            _field("dob", FieldKind.DATE),
        ],
    ))
    registry.register(RecordTypeDefinition(
        name="Patient",
        base=user,
        record_class=Patient,
        prefix="P",
        file_name="Patient_List.csv",
        fields=[
            _field("blood_type", T, "bloodType"),
            _field("contact_number", T, "contactNumber"),
            _field("email", T),
        ],
    ))
    registry.register(RecordTypeDefinition(
        name="HospitalStaff",
        base=user,
        record_class=HospitalStaff,
        file_name="Staff_List.csv",
        fields=[_field("role", FieldKind.ENUM, enum_type=Role)],
        discriminant="role",
        variants=[
            VariantDefinition(name=role.name, prefix=STAFF_PREFIXES[role], record_class=cls, value=role)
            for role, cls in STAFF_CLASSES.items()
        ],
    ))
    registry.register(RecordTypeDefinition(
        name="UnavailableDate",
        record_class=UnavailableDate,
        prefix="UD",
        file_name="UnavailableDate_List.csv",
        fields=[
            _id(),
            _field("staff_id", T, "staffId"),
            _field("date", FieldKind.TIMESTAMP),
        ],
    ))
    registry.register(RecordTypeDefinition(
        name="Appointment",
        record_class=Appointment,
        prefix="APPT",
        file_name="Appointment_List.csv",
        fields=[
            _id(),
            _field("patient_id", T, "patientId"),
            _field("doctor_id", T, "doctorId"),
            _field("appt_date_time", FieldKind.TIMESTAMP, "apptDateTime"),
            _field("service", FieldKind.ENUM, enum_type=Service),
            _field("status", FieldKind.ENUM, enum_type=AppointmentStatus),
            _field("diagnosis", T),
            _field("notes", T),
        ],
    ))
    registry.register(RecordTypeDefinition(
        name="Medicine",
        record_class=Medicine,
        prefix="MED",
        file_name="Medicine_List.csv",
        fields=[
            _id(),
            _field("medicine_name", T, "medicineName"),
            _field("stock_quantity", FieldKind.INTEGER, "stockQuantity"),
            _field("unit_cost", FieldKind.FLOAT, "unitCost"),
            _field("dosage", FieldKind.FLOAT),
            _field("low_stock_threshold", FieldKind.INTEGER, "lowStockThreshold"),
        ],
    ))
    registry.register(RecordTypeDefinition(
        name="Prescription",
        record_class=Prescription,
        prefix="PRSC",
        file_name="Prescription_List.csv",
        fields=[
            _id(),
            _field("appt_id", T, "apptId"),
            _field("is_active", FieldKind.BOOLEAN, "isActive"),
        ],
    ))
    registry.register(RecordTypeDefinition(
        name="PrescriptionItem",
        record_class=PrescriptionItem,
        prefix="PRSCI",
        file_name="PrescriptionItem_List.csv",
        fields=[
            _id(),
            _field("prescription_id", T, "prescriptionId"),
            _field("medicine_id", T, "medicineId"),
            _field("quantity", FieldKind.INTEGER),
            _field("status", FieldKind.ENUM, enum_type=ItemStatus),
            _field("notes", T),
        ],
    ))
    registry.register(RecordTypeDefinition(
        name="Invoice",
        record_class=Invoice,
        prefix="INV",
        file_name="Invoice_List.csv",
        fields=[
            _id(),
            _field("customer_id", T, "customerId"),
            _field("appt_id", T, "apptId"),
            _field("service_fee", FieldKind.FLOAT, "serviceFee"),
            _field("total_amount", FieldKind.FLOAT, "totalAmount"),
            _field("tax_rate", FieldKind.FLOAT, "taxRate"),
            _field("balance", FieldKind.FLOAT),
            _field("current_paid", FieldKind.FLOAT, "currentPaid"),
            _field("total_payable", FieldKind.FLOAT, "totalPayable"),
            _field("issue_date", FieldKind.TIMESTAMP, "issueDate"),
            _field("status", FieldKind.ENUM, enum_type=InvoiceStatus),
        ],
    ))
    registry.register(RecordTypeDefinition(
        name="Notification",
        record_class=Notification,
        prefix="NOTI",
        file_name="Notification_List.csv",
        fields=[
            _id(),
            _field("user_id", T, "userId"),
            _field("message", T),
            _field("datetime", FieldKind.TIMESTAMP),
            _field("read", FieldKind.BOOLEAN),
        ],
    ))
    request = registry.register(RecordTypeDefinition(
        name="Request",
        abstract=True,
        fields=[
            _id(),
            _field("requestor_id", T, "requestorId"),
            _field("approver_id", T, "approverId"),
            _field("status", FieldKind.ENUM, enum_type=RequestStatus),
            _field("time_created", FieldKind.TIMESTAMP, "timeCreated"),
            _field("time_modified", FieldKind.TIMESTAMP, "timeModified"),
        ],
    ))
    registry.register(RecordTypeDefinition(
        name="MedicineRequest",
        base=request,
        record_class=MedicineRequest,
        prefix="MEDREQ",
        file_name="MedicineRequest_List.csv",
        fields=[
            _field("medicine_id", T, "medicineId"),
            _field("quantity", FieldKind.INTEGER),
        ],
    ))

    return registry
