"""
services/staff.py
Staff records and payroll (salary, bonus, salary revisions as receipts).
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date

import db as storage
import pdfs
from errors import NotFoundError, ValidationError
from models import Receipt, STAFF_ROLES, STAFF_STATUSES, Staff, from_row, money, to_params
from queries import staff as q_staff
from services import receipts

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "email",
    "phone",
    "address",
    "role",
    "salary",
    "join_date",
    "status",
    "specialization",
    "emergency_contact",
    "date_of_birth",
    "profile_image",
)


def _validate(data: dict) -> list[str]:
    errors: list[str] = []
    if not str(data.get("name") or "").strip():
        errors.append("Name is required.")
    if not str(data.get("phone") or "").strip():
        errors.append("Phone is required.")
    if data.get("role") not in STAFF_ROLES:
        errors.append("Role must be one of: " + ", ".join(STAFF_ROLES))
    if data.get("status") not in STAFF_STATUSES:
        errors.append("Status must be one of: " + ", ".join(STAFF_STATUSES))
    try:
        if money(data.get("salary")) < 0:
            errors.append("Salary cannot be negative.")
    except ValidationError:
        errors.append("Salary must be numeric.")
    return errors


def get_staff(database: storage.Database, staff_id: int) -> Staff:
    person = from_row(Staff, database.fetch_one(q_staff.SELECT_BY_ID, (staff_id,)))
    if person is None:
        raise NotFoundError("Staff", staff_id)
    return person


def list_staff(database: storage.Database, active_only: bool = False) -> list[Staff]:
    sql = q_staff.SELECT_ACTIVE if active_only else q_staff.SELECT_ALL
    return [from_row(Staff, r) for r in database.fetch_all(sql)]


def create_staff(database: storage.Database, data: dict) -> Staff:
    params = {f.name: f.default for f in dataclasses.fields(Staff) if f.default is not dataclasses.MISSING}
    params.update({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
    params["join_date"] = params.get("join_date") or date.today().isoformat()
    errors = _validate(params)
    if errors:
        raise ValidationError(errors)
    now = storage.now_iso()
    params.update(created_at=now, updated_at=now)
    staff_id = database.execute(q_staff.INSERT, to_params(Staff, params))
    logger.info("Staff %s added as %s", params["name"], params["role"])
    return get_staff(database, staff_id)


def update_staff(
    database: storage.Database,
    staff_id: int,
    changes: dict,
    updated_by: str = "System",
) -> Staff:
    """A salary change also writes a staff_salary_update receipt."""
    with database.get_conn():
        current = get_staff(database, staff_id)
        params = {**dataclasses.asdict(current), **{k: v for k, v in changes.items() if k in EDITABLE_FIELDS}}
        errors = _validate(params)
        if errors:
            raise ValidationError(errors)
        params["salary"] = money(params["salary"])
        params["updated_at"] = storage.now_iso()
        database.execute(q_staff.UPDATE, to_params(Staff, params))
        updated = get_staff(database, staff_id)
        if updated.salary != current.salary:
            receipts.create_salary_update_receipt(database, updated, current.salary, updated.salary, updated_by)
    return updated


def delete_staff(database: storage.Database, staff_id: int) -> None:
    """Removes the record and its attendance. Payroll receipts stay."""
    get_staff(database, staff_id)
    database.execute(q_staff.DELETE, (staff_id,))
    logger.info("Staff %s deleted", staff_id)


def pay_salary(
    database: storage.Database,
    staff_id: int,
    amount=None,
    payment_type: str = "cash",
    created_by: str = "System",
    pdf: pdfs.PdfTarget | None = None,
) -> Receipt:
    person = get_staff(database, staff_id)
    return receipts.create_staff_salary_receipt(
        database, person, amount=amount, payment_type=payment_type, created_by=created_by, pdf=pdf
    )


def pay_bonus(
    database: storage.Database,
    staff_id: int,
    amount,
    payment_type: str = "cash",
    created_by: str = "System",
    description: str | None = None,
    pdf: pdfs.PdfTarget | None = None,
) -> Receipt:
    person = get_staff(database, staff_id)
    return receipts.create_bonus_receipt(
        database,
        person,
        amount,
        payment_type=payment_type,
        created_by=created_by,
        description=description,
        pdf=pdf,
    )
