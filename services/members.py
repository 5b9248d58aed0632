"""
services/members.py
Member registration (full and partial), profile edits, member numbers,
archival and restore.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from datetime import date

import db as storage
import pdfs
from errors import NotFoundError, ValidationError
from models import (
    CUSTOM_PLAN,
    DeletedMember,
    MEMBER_STATUSES,
    Member,
    PAYMENT_TYPES,
    PLAN_MONTHS,
    Receipt,
    ZERO,
    from_row,
    money,
    to_params,
)
from queries import attendance as q_attendance
from queries import body_measurements as q_measurements
from queries import deleted_members as q_deleted
from queries import invoices as q_invoices
from queries import members as q_members
from queries import receipts as q_receipts
from services import billing
from utils import calc_end_date, validate_member_inputs, validate_partial_member

logger = logging.getLogger(__name__)

# Columns a caller may set directly. paid_amount is derived from receipts,
# membership_fees from the fee structure, custom_member_id via update_member_number.
EDITABLE_FIELDS = tuple(
    f.name
    for f in dataclasses.fields(Member)
    if f.name not in ("id", "custom_member_id", "membership_fees", "paid_amount", "created_at", "updated_at")
)
MEMBER_DEFAULTS = {
    f.name: f.default
    for f in dataclasses.fields(Member)
    if f.name in EDITABLE_FIELDS and f.default is not dataclasses.MISSING
}


def _clean(data: dict) -> dict:
    return {k: (v.strip() if isinstance(v, str) else v) for k, v in data.items()}


def get_member(database: storage.Database, member_id: int) -> Member:
    return billing.load_member(database, member_id)


def list_members(database: storage.Database, search: str = "", status: str | None = None) -> list[Member]:
    if search.strip():
        rows = database.fetch_all(q_members.SEARCH, {"like": f"%{search.strip()}%"})
        members = [from_row(Member, r) for r in rows]
        if status:
            members = [m for m in members if m.status == status]
        return members
    if status:
        return [from_row(Member, r) for r in database.fetch_all(q_members.SELECT_BY_STATUS, (status,))]
    return [from_row(Member, r) for r in database.fetch_all(q_members.SELECT_ALL)]


def find_members_by_mobile(database: storage.Database, mobile_no: str) -> list[Member]:
    return [from_row(Member, r) for r in database.fetch_all(q_members.SELECT_BY_MOBILE, (mobile_no.strip(),))]


def is_member_number_taken(database: storage.Database, number: str, exclude_member_id: int | None = None) -> bool:
    row = database.fetch_one(q_members.SELECT_BY_NUMBER, (number,))
    return bool(row and row["id"] != exclude_member_id)


def generate_member_number(database: storage.Database) -> str:
    """Next free numeric member number; never reuses one handed out before."""
    with database.get_conn():
        numbers = [int(r["custom_member_id"]) for r in database.fetch_all(q_members.SELECT_NUMBERS)
                   if str(r["custom_member_id"]).isdigit()]
        issued = int(storage.get_setting(database, "member_counter", "0"))
        candidate = max(max(numbers, default=0), issued) + 1
        while is_member_number_taken(database, str(candidate)):
            candidate += 1
        storage.set_setting(database, "member_counter", str(candidate))
    return str(candidate)


def _membership_terms(data: dict, today: date, window_days: int) -> dict:
    """Fee structure and subscription window for a full membership."""
    plan_type = data.get("plan_type") or "monthly"
    if plan_type not in PLAN_MONTHS and plan_type != CUSTOM_PLAN:
        raise ValidationError(f"Unknown plan type: {plan_type!r}")
    start = data.get("subscription_start_date") or today.isoformat()
    end = data.get("subscription_end_date") or calc_end_date(start, plan_type, data.get("custom_months"))
    fees = billing.compute_total_fees(data.get("registration_fee"), data.get("package_fee"), data.get("discount"))
    subscription_status = billing.subscription_status_for(end, today, window_days)
    return {
        "plan_type": plan_type,
        "subscription_start_date": start,
        "subscription_end_date": end,
        "registration_fee": money(data.get("registration_fee")),
        "package_fee": money(data.get("package_fee")),
        "discount": money(data.get("discount")),
        "membership_fees": fees,
        "subscription_status": subscription_status,
        "status": "inactive" if subscription_status == "expired" else "active",
    }


def _initial_payment(data: dict, fees) -> tuple:
    paid = money(data.get("paid_amount"))
    payment_type = data.get("payment_mode") or "cash"
    if paid < 0:
        raise ValidationError("Paid amount cannot be negative.")
    if paid > fees:
        raise ValidationError(f"Paid amount ({paid}) cannot exceed the total fees ({fees}).")
    if paid > 0 and payment_type not in PAYMENT_TYPES:
        raise ValidationError("Payment mode must be one of: " + ", ".join(PAYMENT_TYPES))
    return paid, payment_type


def _open_membership(
    database: storage.Database,
    member: Member,
    paid,
    payment_type: str,
    created_by: str,
) -> Receipt | None:
    """Invoice for the fees plus the first receipt, inside the caller's transaction."""
    invoice = None
    if member.membership_fees > 0:
        invoice = billing.create_invoice(
            database,
            member,
            member.membership_fees,
            registration_fee=member.registration_fee,
            package_fee=member.package_fee,
            discount=member.discount,
            due_date=member.subscription_start_date,
        )
    if paid <= 0:
        return None
    receipt = billing.insert_receipt(
        database,
        {
            **billing.member_snapshot(member),
            "invoice_id": invoice.id if invoice else None,
            "amount": member.membership_fees,
            "amount_paid": paid,
            "due_amount": member.membership_fees - paid,
            "payment_type": payment_type,
            "description": "Membership fee",
            "transaction_type": "payment" if paid == member.membership_fees else "partial_payment",
            "created_by": created_by,
        },
    )
    database.execute(q_members.UPDATE_RECEIPT_NO, (receipt.receipt_number, storage.now_iso(), member.id))
    billing.recalculate_member_totals(database, member.id)
    return receipt


def create_member(
    database: storage.Database,
    data: dict,
    created_by: str = "System",
    pdf: pdfs.PdfTarget | None = None,
    today: date | None = None,
    window_days: int = billing.DEFAULT_EXPIRING_SOON_DAYS,
) -> Member:
    """
    Register a full member. Fees become an invoice; a non-zero paid_amount
    becomes the first receipt. All of it commits together or not at all.
    """
    data = _clean(data)
    errors = validate_member_inputs(data)
    if errors:
        raise ValidationError(errors)
    today = today or date.today()
    terms = _membership_terms(data, today, window_days)
    paid, payment_type = _initial_payment(data, terms["membership_fees"])

    now = storage.now_iso()
    with database.get_conn():
        number = str(data.get("custom_member_id") or "").strip()
        if number and is_member_number_taken(database, number):
            raise ValidationError(f"Member ID {number} is already in use.")
        params = {
            **MEMBER_DEFAULTS,
            **{k: v for k, v in data.items() if k in EDITABLE_FIELDS},
            **terms,
            "custom_member_id": number or generate_member_number(database),
            "payment_mode": payment_type,
            "date_of_registration": data.get("date_of_registration") or today.isoformat(),
            "paid_amount": ZERO,
            "created_at": now,
            "updated_at": now,
        }
        member_id = database.execute(q_members.INSERT, to_params(Member, params))
        member = get_member(database, member_id)
        receipt = _open_membership(database, member, paid, payment_type, created_by)
        member = get_member(database, member_id)

    logger.info("Member %s (%s) registered, fees %s, paid %s", member.custom_member_id, member.name,
                member.membership_fees, paid)
    if receipt:
        billing.save_receipt_pdf(receipt, pdf)
    return member


# ---------- Partial members ----------

def save_partial_member(database: storage.Database, data: dict) -> Member:
    """Identity-only registration; membership details are filled in later."""
    data = _clean(data)
    errors = validate_partial_member(data)
    if errors:
        raise ValidationError(errors)
    now = storage.now_iso()
    with database.get_conn():
        params = {
            **MEMBER_DEFAULTS,
            **{k: v for k, v in data.items() if k in EDITABLE_FIELDS},
            "custom_member_id": generate_member_number(database),
            "registration_fee": ZERO,
            "package_fee": ZERO,
            "discount": ZERO,
            "membership_fees": ZERO,
            "paid_amount": ZERO,
            "subscription_start_date": None,
            "subscription_end_date": None,
            "subscription_status": "active",
            "status": "partial",
            "date_of_registration": data.get("date_of_registration") or date.today().isoformat(),
            "created_at": now,
            "updated_at": now,
        }
        member_id = database.execute(q_members.INSERT, to_params(Member, params))
    logger.info("Partial member %s saved", params["custom_member_id"])
    return get_member(database, member_id)


def is_partial_member(database: storage.Database, member_id: int) -> bool:
    return get_member(database, member_id).is_partial


def get_partial_members(database: storage.Database) -> list[Member]:
    return list_members(database, status="partial")


def complete_partial_member(
    database: storage.Database,
    member_id: int,
    data: dict,
    created_by: str = "System",
    pdf: pdfs.PdfTarget | None = None,
    today: date | None = None,
    window_days: int = billing.DEFAULT_EXPIRING_SOON_DAYS,
) -> Member:
    data = _clean(data)
    today = today or date.today()
    with database.get_conn():
        member = get_member(database, member_id)
        if not member.is_partial:
            raise ValidationError("Member is not a partial registration.")
        merged = {**dataclasses.asdict(member), **{k: v for k, v in data.items() if k in EDITABLE_FIELDS}}
        merged["paid_amount"] = data.get("paid_amount")
        merged["custom_months"] = data.get("custom_months")
        errors = validate_member_inputs(merged)
        if errors:
            raise ValidationError(errors)
        terms = _membership_terms(merged, today, window_days)
        paid, payment_type = _initial_payment(merged, terms["membership_fees"])
        merged.update(terms)
        merged.update(payment_mode=payment_type, updated_at=storage.now_iso())
        database.execute(q_members.UPDATE, to_params(Member, merged))
        member = get_member(database, member_id)
        receipt = _open_membership(database, member, paid, payment_type, created_by)
        member = get_member(database, member_id)
    logger.info("Partial member %s completed", member.custom_member_id)
    if receipt:
        billing.save_receipt_pdf(receipt, pdf)
    return member


# ---------- Edits ----------

def update_member(
    database: storage.Database,
    member_id: int,
    data: dict,
    today: date | None = None,
    window_days: int = billing.DEFAULT_EXPIRING_SOON_DAYS,
) -> Member:
    """
    Edit profile, fee structure or subscription window. paid_amount in the
    input is ignored; it only ever follows the receipts.
    """
    data = _clean(data)
    with database.get_conn():
        member = get_member(database, member_id)
        merged = {**dataclasses.asdict(member), **{k: v for k, v in data.items() if k in EDITABLE_FIELDS}}
        errors = validate_partial_member(merged) if merged["status"] == "partial" else validate_member_inputs(merged)
        if merged["status"] not in MEMBER_STATUSES:
            errors.append(f"Invalid status: {merged['status']!r}")
        if errors:
            raise ValidationError(errors)
        for key in ("registration_fee", "package_fee", "discount"):
            merged[key] = money(merged[key])
        merged["membership_fees"] = billing.compute_total_fees(
            merged["registration_fee"], merged["package_fee"], merged["discount"]
        )
        merged["updated_at"] = storage.now_iso()

        new_number = str(data.get("custom_member_id") or "").strip()
        if new_number and new_number != member.custom_member_id:
            update_member_number(database, member_id, new_number)
            merged["custom_member_id"] = new_number

        database.execute(q_members.UPDATE, to_params(Member, merged))
        database.execute(
            q_receipts.UPDATE_MEMBER_IDENTITY,
            {
                "member_id": member_id,
                "name": merged["name"],
                "custom_member_id": merged["custom_member_id"],
                "mobile_no": merged["mobile_no"],
                "email": merged["email"],
            },
        )
        if merged["name"] != member.name:
            database.execute(q_invoices.UPDATE_MEMBER_NAME, (merged["name"], member_id))
            database.execute(q_attendance.UPDATE_MEMBER_NAME, (merged["name"], member_id))
            database.execute(q_measurements.UPDATE_MEMBER_NAME, (merged["name"], member_id))

        if merged["membership_fees"] != member.membership_fees:
            billing.recalculate_member_totals(database, member_id)
        dates_changed = (
            merged["subscription_start_date"] != member.subscription_start_date
            or merged["subscription_end_date"] != member.subscription_end_date
        )
        if dates_changed and merged["status"] != "partial":
            billing.update_member_subscription_status(database, member_id, today, window_days)
    logger.info("Member %s updated", member_id)
    return get_member(database, member_id)


def update_member_number(database: storage.Database, member_id: int, number: str) -> Member:
    """Change the human-facing member number and carry it to linked records."""
    number = str(number or "").strip()
    if not number:
        raise ValidationError("Member ID cannot be empty.")
    with database.get_conn():
        member = get_member(database, member_id)
        if number == member.custom_member_id:
            return member
        if is_member_number_taken(database, number, exclude_member_id=member_id):
            raise ValidationError(f"Member ID {number} is already in use.")
        now = storage.now_iso()
        database.execute(q_members.UPDATE_NUMBER, (number, now, member_id))
        database.execute(q_receipts.UPDATE_MEMBER_NUMBER, (number, member_id))
        database.execute(q_attendance.UPDATE_MEMBER_NUMBER, (number, member_id))
        database.execute(q_measurements.UPDATE_MEMBER_NUMBER, (number, member_id))
    logger.info("Member %s number changed %s -> %s", member_id, member.custom_member_id, number)
    return get_member(database, member_id)


# ---------- Archive ----------

def delete_member(
    database: storage.Database,
    member_id: int,
    deleted_by: str = "System",
    reason: str | None = None,
) -> DeletedMember:
    """
    Move a member to the deleted_members archive. Attendance and body
    measurements go with the member; receipts and invoices are kept.
    """
    with database.get_conn():
        row = database.fetch_one(q_members.SELECT_BY_ID, (member_id,))
        if row is None:
            raise NotFoundError("Member", member_id)
        raw = dict(row)
        archive_id = database.execute(
            q_deleted.INSERT,
            {
                "original_member_id": raw["id"],
                "custom_member_id": raw["custom_member_id"],
                "name": raw["name"],
                "mobile_no": raw["mobile_no"],
                "email": raw["email"],
                "member_data": json.dumps(raw),
                "original_created_at": raw["created_at"],
                "original_updated_at": raw["updated_at"],
                "deleted_at": storage.now_iso(),
                "deleted_by": deleted_by,
                "deletion_reason": reason,
            },
        )
        database.execute(q_attendance.DELETE_BY_MEMBER, (member_id,))
        database.execute(q_measurements.DELETE_BY_MEMBER, (member_id,))
        database.execute(q_members.DELETE, (member_id,))
    logger.info("Member %s (%s) archived by %s", raw["custom_member_id"], raw["name"], deleted_by)
    return get_deleted_member(database, archive_id)


def list_deleted_members(database: storage.Database) -> list[DeletedMember]:
    return [from_row(DeletedMember, r) for r in database.fetch_all(q_deleted.SELECT_ALL)]


def get_deleted_member(database: storage.Database, archive_id: int) -> DeletedMember:
    archived = from_row(DeletedMember, database.fetch_one(q_deleted.SELECT_BY_ID, (archive_id,)))
    if archived is None:
        raise NotFoundError("Deleted member", archive_id)
    return archived


def restore_deleted_member(
    database: storage.Database,
    archive_id: int,
    today: date | None = None,
    window_days: int = billing.DEFAULT_EXPIRING_SOON_DAYS,
) -> Member:
    """Put an archived member back under its original id, as active."""
    with database.get_conn():
        archived = get_deleted_member(database, archive_id)
        raw = json.loads(archived.member_data)
        if database.fetch_one(q_members.SELECT_BY_ID, (raw["id"],)):
            raise ValidationError(f"A member with id {raw['id']} already exists.")
        if raw.get("custom_member_id") and is_member_number_taken(database, raw["custom_member_id"]):
            raise ValidationError(f"Member ID {raw['custom_member_id']} is already in use.")
        raw["status"] = "active"
        raw["updated_at"] = storage.now_iso()
        database.execute(q_members.INSERT_WITH_ID, raw)
        database.execute(q_deleted.DELETE, (archive_id,))
        billing.recalculate_member_totals(database, raw["id"])
        billing.update_member_subscription_status(database, raw["id"], today, window_days)
    logger.info("Member %s restored from archive", raw["custom_member_id"])
    return get_member(database, raw["id"])


def permanently_delete_member(database: storage.Database, archive_id: int) -> None:
    get_deleted_member(database, archive_id)
    database.execute(q_deleted.DELETE, (archive_id,))
    logger.info("Archived member %s permanently deleted", archive_id)
