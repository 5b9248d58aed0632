"""
models.py
Domain constants, dataclasses and money helpers.

Money is Decimal in Python (2 places) and integer minor units in SQLite.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import ClassVar

from errors import ValidationError

# Plan durations in months (used for end_date auto-calculation). 'custom' takes an explicit count.
PLAN_MONTHS = {
    "monthly": 1,
    "quarterly": 3,
    "half_yearly": 6,
    "yearly": 12,
}
CUSTOM_PLAN = "custom"

SUBSCRIPTION_STATUSES = ("active", "expiring_soon", "expired")
MEMBER_STATUSES = ("active", "inactive", "frozen", "partial")
PAYMENT_TYPES = ("cash", "card", "upi", "bank_transfer")
RECEIPT_CATEGORIES = ("member", "staff_salary", "staff_bonus", "staff_salary_update")
TRANSACTION_TYPES = ("payment", "partial_payment", "due_payment", "renewal")
INVOICE_STATUSES = ("unpaid", "partial", "paid")
ENQUIRY_STATUSES = ("new", "contacted", "follow_up", "converted", "closed")
STAFF_ROLES = ("trainer", "receptionist", "manager")
STAFF_STATUSES = ("active", "inactive")
USER_ROLES = ("admin", "trainer", "receptionist")
MESSAGE_TYPES = (
    "receipt_created",
    "membership_expiring",
    "attendance_reminder",
    "due_amount_reminder",
    "birthday_wish",
    "welcome_message",
    "renewal_reminder",
)
MESSAGE_STATUSES = ("pending", "sent", "failed", "scheduled")

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    """Parse an amount (int, str, float or Decimal) into a 2-place Decimal."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor(value) -> int:
    return int(money(value) * 100)


def from_minor(value) -> Decimal:
    if value is None:
        return ZERO
    return (Decimal(int(value)) / 100).quantize(CENT)


def from_row(cls, row):
    """Build a dataclass from a sqlite3.Row, converting money/flag/JSON columns."""
    if row is None:
        return None
    names = {f.name for f in fields(cls)}
    data = {k: row[k] for k in row.keys() if k in names}
    for name in cls.MONEY_FIELDS:
        if name in data:
            data[name] = from_minor(data[name])
    for name in cls.FLAG_FIELDS:
        if name in data:
            data[name] = bool(data[name])
    for name in cls.JSON_FIELDS:
        if name in data:
            data[name] = tuple(json.loads(data[name] or "[]"))
    return cls(**data)


def to_params(cls, data: dict) -> dict:
    """Inverse of from_row for named-parameter statements."""
    params = dict(data)
    for name in cls.MONEY_FIELDS:
        if name in params:
            params[name] = to_minor(params[name])
    for name in cls.FLAG_FIELDS:
        if name in params:
            params[name] = 1 if params[name] else 0
    for name in cls.JSON_FIELDS:
        if name in params:
            params[name] = json.dumps(list(params[name] or []))
    return params


@dataclass(frozen=True)
class Record:
    MONEY_FIELDS: ClassVar[tuple[str, ...]] = ()
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ()
    JSON_FIELDS: ClassVar[tuple[str, ...]] = ()


@dataclass(frozen=True)
class Member(Record):
    MONEY_FIELDS: ClassVar[tuple[str, ...]] = (
        "membership_fees",
        "registration_fee",
        "package_fee",
        "discount",
        "paid_amount",
    )
    JSON_FIELDS: ClassVar[tuple[str, ...]] = ("services",)

    id: int | None
    name: str
    custom_member_id: str | None = None
    email: str | None = None
    address: str | None = None
    telephone_no: str | None = None
    mobile_no: str | None = None
    occupation: str | None = None
    marital_status: str | None = None
    anniversary_date: str | None = None
    blood_group: str | None = None
    sex: str | None = None
    date_of_birth: str | None = None
    alternate_no: str | None = None
    member_image: str | None = None
    id_proof_image: str | None = None
    date_of_registration: str | None = None
    receipt_no: str | None = None
    payment_mode: str | None = None
    plan_type: str | None = None
    services: tuple[str, ...] = ()
    membership_fees: Decimal = ZERO  # registration + package - discount, clamped at 0
    registration_fee: Decimal = ZERO
    package_fee: Decimal = ZERO
    discount: Decimal = ZERO
    paid_amount: Decimal = ZERO  # cached; receipts are authoritative
    subscription_start_date: str | None = None
    subscription_end_date: str | None = None
    subscription_status: str = "active"  # active / expiring_soon / expired
    status: str = "active"  # active / inactive / frozen / partial
    medical_issues: str | None = None
    goals: str | None = None
    height: float | None = None
    weight: float | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_partial(self) -> bool:
        return self.status == "partial"


@dataclass(frozen=True)
class DeletedMember(Record):
    id: int | None
    original_member_id: int
    name: str
    custom_member_id: str | None
    mobile_no: str | None
    email: str | None
    member_data: str  # JSON of the member row at deletion time
    original_created_at: str | None
    original_updated_at: str | None
    deleted_at: str
    deleted_by: str
    deletion_reason: str | None


@dataclass(frozen=True)
class Enquiry(Record):
    MONEY_FIELDS: ClassVar[tuple[str, ...]] = ("membership_fees",)
    JSON_FIELDS: ClassVar[tuple[str, ...]] = ("interested_in",)

    id: int | None
    enquiry_number: str
    name: str
    mobile_no: str
    date_of_enquiry: str
    created_by: str
    address: str | None = None
    telephone_no: str | None = None
    occupation: str | None = None
    sex: str | None = None
    ref_person_name: str | None = None
    interested_in: tuple[str, ...] = ()
    membership_fees: Decimal = ZERO
    payment_mode: str | None = None
    payment_frequency: str | None = None
    status: str = "new"
    notes: str | None = None
    follow_up_date: str | None = None
    converted_to_member_id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Invoice(Record):
    MONEY_FIELDS: ClassVar[tuple[str, ...]] = (
        "registration_fee",
        "package_fee",
        "discount",
        "total_amount",
        "paid_amount",
    )

    id: int | None
    invoice_number: str
    member_id: int
    member_name: str
    total_amount: Decimal
    paid_amount: Decimal = ZERO
    registration_fee: Decimal = ZERO
    package_fee: Decimal = ZERO
    discount: Decimal = ZERO
    status: str = "unpaid"  # unpaid / partial / paid
    due_date: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def balance(self) -> Decimal:
        return max(ZERO, self.total_amount - self.paid_amount)


@dataclass(frozen=True)
class Receipt(Record):
    MONEY_FIELDS: ClassVar[tuple[str, ...]] = (
        "amount",
        "amount_paid",
        "due_amount",
        "package_fee",
        "registration_fee",
        "discount",
        "cgst",
        "sigst",
    )
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ("is_current_version",)

    id: int | None
    receipt_number: str
    member_name: str
    amount: Decimal  # total attributable to this transaction
    amount_paid: Decimal
    payment_type: str
    created_at: str
    created_by: str
    due_amount: Decimal = ZERO
    invoice_id: int | None = None
    member_id: int | None = None  # None for staff payroll receipts
    custom_member_id: str | None = None
    description: str | None = None
    receipt_category: str = "member"
    transaction_type: str = "payment"
    subscription_start_date: str | None = None
    subscription_end_date: str | None = None
    plan_type: str | None = None
    payment_mode: str | None = None
    mobile_no: str | None = None
    email: str | None = None
    package_fee: Decimal = ZERO
    registration_fee: Decimal = ZERO
    discount: Decimal = ZERO
    cgst: Decimal = ZERO
    sigst: Decimal = ZERO
    original_receipt_id: int | None = None
    version_number: int = 1
    is_current_version: bool = True
    superseded_at: str | None = None

    @property
    def root_id(self) -> int | None:
        return self.original_receipt_id or self.id


@dataclass(frozen=True)
class ReceiptTaxMapping(Record):
    MONEY_FIELDS: ClassVar[tuple[str, ...]] = ("base_amount", "tax_amount")
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ("is_inclusive",)

    id: int | None
    receipt_id: int
    tax_setting_id: int
    tax_name: str
    tax_type: str
    tax_percentage: float
    is_inclusive: bool
    base_amount: Decimal
    tax_amount: Decimal
    created_at: str | None = None


@dataclass(frozen=True)
class BodyMeasurement(Record):
    id: int | None
    member_id: int
    member_name: str
    serial_number: int
    measurement_date: str
    recorded_by: str
    custom_member_id: str | None = None
    weight: float | None = None  # kg
    height: float | None = None  # cm
    age: int | None = None
    neck: float | None = None
    chest: float | None = None
    arms: float | None = None
    fore_arms: float | None = None
    wrist: float | None = None
    tummy: float | None = None
    waist: float | None = None
    hips: float | None = None
    thighs: float | None = None
    calf: float | None = None
    fat_percentage: float | None = None
    bmi: float | None = None
    bmr: float | None = None
    vf: float | None = None
    notes: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Attendance(Record):
    id: int | None
    member_id: int
    member_name: str
    check_in: str
    date: str
    custom_member_id: str | None = None
    check_out: str | None = None  # None while the visit is open
    profile_image: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Staff(Record):
    MONEY_FIELDS: ClassVar[tuple[str, ...]] = ("salary",)

    id: int | None
    name: str
    phone: str
    role: str  # trainer / receptionist / manager
    join_date: str
    salary: Decimal = ZERO
    email: str | None = None
    address: str | None = None
    status: str = "active"
    specialization: str | None = None
    emergency_contact: str | None = None
    date_of_birth: str | None = None
    profile_image: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class StaffAttendance(Record):
    id: int | None
    staff_id: int
    staff_name: str
    role: str
    check_in: str
    date: str
    shift: str | None = None
    check_out: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Expense(Record):
    MONEY_FIELDS: ClassVar[tuple[str, ...]] = ("amount",)

    id: int | None
    category: str
    description: str
    amount: Decimal
    date: str
    created_by: str
    receipt: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class User(Record):
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ("is_active",)

    id: int | None
    username: str
    role: str
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    is_active: bool = True
    created_at: str | None = None


@dataclass(frozen=True)
class MessageTemplate(Record):
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ("is_active",)

    id: int | None
    message_type: str
    template_content: str
    is_active: bool = True
    updated_at: str | None = None


@dataclass(frozen=True)
class Message(Record):
    id: int | None
    member_name: str
    member_phone: str
    message_type: str
    message_content: str
    member_id: int | None = None
    status: str = "pending"
    scheduled_at: str | None = None
    sent_at: str | None = None
    error_message: str | None = None
    retry_count: int = 0
    created_at: str | None = None


# ---------- Master data (soft-deletable reference lists) ----------

@dataclass(frozen=True)
class Package(Record):
    MONEY_FIELDS: ClassVar[tuple[str, ...]] = ("price", "registration_fee", "discount")
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ("is_active",)

    id: int | None
    name: str
    duration_type: str
    duration_months: int
    price: Decimal
    registration_fee: Decimal = ZERO
    discount: Decimal = ZERO
    description: str | None = None
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class TaxSetting(Record):
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ("is_inclusive", "is_active")

    id: int | None
    name: str
    tax_type: str
    percentage: float
    is_inclusive: bool = False
    description: str | None = None
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Occupation(Record):
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ("is_active",)

    id: int | None
    name: str
    description: str | None = None
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class PaymentType(Record):
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ("is_active",)

    id: int | None
    name: str
    display_name: str
    description: str | None = None
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class BodyMeasurementField(Record):
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ("is_required", "is_active")

    id: int | None
    field_name: str
    display_name: str
    field_type: str = "number"
    unit: str | None = None
    is_required: bool = False
    sort_order: int = 0
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class ExpenseCategory(Record):
    FLAG_FIELDS: ClassVar[tuple[str, ...]] = ("is_active",)

    id: int | None
    name: str
    description: str | None = None
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class TaxLine:
    tax_setting_id: int | None
    name: str
    tax_type: str
    percentage: float
    is_inclusive: bool
    amount: Decimal


@dataclass(frozen=True)
class TaxBreakdown:
    base_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    lines: tuple[TaxLine, ...] = field(default_factory=tuple)
