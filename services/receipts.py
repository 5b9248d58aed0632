"""
services/receipts.py
Receipts: manual entry, versioning, staff payroll receipts and tax-bearing receipts.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date

import db as storage
import pdfs
from errors import ValidationError
from models import (
    PAYMENT_TYPES,
    RECEIPT_CATEGORIES,
    Receipt,
    ReceiptTaxMapping,
    Staff,
    TRANSACTION_TYPES,
    ZERO,
    from_row,
    money,
    to_params,
)
from queries import receipt_tax_mapping as q_tax_map
from queries import receipts as q_receipts
from services import billing, masters, taxes

logger = logging.getLogger(__name__)

# Fields a new receipt version may change. Everything else is carried over.
VERSION_EDITABLE = (
    "member_name",
    "amount",
    "amount_paid",
    "payment_type",
    "description",
    "transaction_type",
    "cgst",
    "sigst",
)


def get_receipt(database: storage.Database, receipt_id: int) -> Receipt:
    return billing.get_receipt(database, receipt_id)


def list_receipts(database: storage.Database, include_superseded: bool = False) -> list[Receipt]:
    sql = q_receipts.SELECT_ALL_VERSIONS if include_superseded else q_receipts.SELECT_ALL
    return [from_row(Receipt, r) for r in database.fetch_all(sql)]


def receipts_for_member(database: storage.Database, member_id: int) -> list[Receipt]:
    """Every receipt linked to the member, superseded versions included."""
    return [from_row(Receipt, r) for r in database.fetch_all(q_receipts.SELECT_BY_MEMBER, (member_id,))]


def list_member_receipts(database: storage.Database, member_id: int) -> list[Receipt]:
    return billing.member_payment_history(database, member_id)


def receipts_between(database: storage.Database, start: date, end: date) -> list[Receipt]:
    rows = database.fetch_all(q_receipts.SELECT_BY_DATE_RANGE, (start.isoformat(), end.isoformat()))
    return [from_row(Receipt, r) for r in rows]


def _check_amounts(errors: list[str], data: dict) -> None:
    try:
        data["amount"] = money(data.get("amount"))
        if data["amount"] <= 0:
            errors.append("Amount must be greater than zero.")
    except ValidationError:
        errors.append("Amount must be numeric.")
        return
    paid = data.get("amount_paid")
    try:
        data["amount_paid"] = data["amount"] if paid is None or paid == "" else money(paid)
    except ValidationError:
        errors.append("Amount paid must be numeric.")
        return
    if data["amount_paid"] < 0 or data["amount_paid"] > data["amount"]:
        errors.append("Amount paid must be between 0 and the receipt amount.")
    data["due_amount"] = max(ZERO, data["amount"] - data["amount_paid"])


def create_receipt(database: storage.Database, data: dict, pdf: pdfs.PdfTarget | None = None) -> Receipt:
    """
    Manual receipt entry. Member receipts pick up any missing member details
    from the member record, land on the current cycle's invoice and resync
    the member's paid amount.
    """
    data = dict(data)
    data["receipt_category"] = data.get("receipt_category") or "member"
    data["transaction_type"] = data.get("transaction_type") or "payment"
    errors: list[str] = []
    if data["receipt_category"] not in RECEIPT_CATEGORIES:
        errors.append(f"Invalid receipt category: {data['receipt_category']!r}")
    if data["transaction_type"] not in TRANSACTION_TYPES:
        errors.append(f"Invalid transaction type: {data['transaction_type']!r}")
    if data.get("payment_type") not in PAYMENT_TYPES:
        errors.append("Payment type must be one of: " + ", ".join(PAYMENT_TYPES))
    _check_amounts(errors, data)
    is_member_receipt = data["receipt_category"] == "member"
    if is_member_receipt and not data.get("member_id"):
        errors.append("A member is required for member receipts.")
    if not is_member_receipt and not str(data.get("member_name") or "").strip():
        errors.append("Name is required.")
    if errors:
        raise ValidationError(errors)

    with database.get_conn():
        if is_member_receipt:
            member = billing.load_member(database, data["member_id"])
            for key, value in billing.member_snapshot(member).items():
                if data.get(key) in (None, ""):
                    data[key] = value
            if not data.get("invoice_id"):
                invoice = billing.current_invoice(database, member.id)
                data["invoice_id"] = invoice.id if invoice else None
        receipt = billing.insert_receipt(database, data)
        if is_member_receipt:
            billing.recalculate_member_totals(database, receipt.member_id)
    logger.info("Receipt %s created for %s (%s)", receipt.receipt_number, receipt.member_name, receipt.amount_paid)
    billing.save_receipt_pdf(receipt, pdf)
    return receipt


def mark_receipt_superseded(database: storage.Database, receipt_id: int) -> None:
    get_receipt(database, receipt_id)
    database.execute(q_receipts.MARK_SUPERSEDED, (storage.now_iso(), receipt_id))


def create_receipt_version(
    database: storage.Database,
    receipt_id: int,
    changes: dict,
    created_by: str = "System",
) -> Receipt:
    """
    Revise a receipt without editing it: the current version of its chain is
    marked superseded and a new version (with a new receipt number) replaces it.
    """
    with database.get_conn():
        original = get_receipt(database, receipt_id)
        root = original.root_id
        current = from_row(Receipt, database.fetch_one(q_receipts.SELECT_CURRENT_IN_CHAIN, {"root": root}))
        base = current or original

        data = dataclasses.asdict(base)
        for key in VERSION_EDITABLE:
            if key in changes and changes[key] is not None:
                data[key] = changes[key]
        errors: list[str] = []
        if data["payment_type"] not in PAYMENT_TYPES:
            errors.append(f"Invalid payment type: {data['payment_type']!r}")
        if data["transaction_type"] not in TRANSACTION_TYPES:
            errors.append(f"Invalid transaction type: {data['transaction_type']!r}")
        if "amount_paid" not in changes and "amount" in changes:
            data["amount_paid"] = min(money(base.amount_paid), money(data["amount"]))
        _check_amounts(errors, data)
        if errors:
            raise ValidationError(errors)

        version = database.fetch_one(q_receipts.MAX_VERSION, {"root": root})["v"] or 1
        database.execute(q_receipts.MARK_SUPERSEDED, (storage.now_iso(), base.id))
        for key in ("id", "receipt_number", "created_at", "superseded_at"):
            data.pop(key, None)
        data.update(
            original_receipt_id=root,
            version_number=version + 1,
            is_current_version=True,
            created_by=created_by,
        )
        receipt = billing.insert_receipt(database, data)
        if receipt.member_id and receipt.receipt_category == "member":
            billing.recalculate_member_totals(database, receipt.member_id)
    logger.info("Receipt %s revised as %s (v%d)", base.receipt_number, receipt.receipt_number, receipt.version_number)
    return receipt


def get_receipt_history(database: storage.Database, receipt_id: int) -> list[Receipt]:
    """All versions of the receipt's chain, oldest first."""
    root = get_receipt(database, receipt_id).root_id
    return [from_row(Receipt, r) for r in database.fetch_all(q_receipts.SELECT_HISTORY, {"root": root})]


def delete_receipt(database: storage.Database, receipt_id: int) -> None:
    with database.get_conn():
        receipt = get_receipt(database, receipt_id)
        database.execute(q_receipts.DELETE, (receipt_id,))
        if receipt.member_id and receipt.receipt_category == "member":
            billing.recalculate_member_totals(database, receipt.member_id)
    logger.info("Receipt %s deleted", receipt.receipt_number)


# ---------- Staff payroll receipts ----------

def _staff_receipt(
    database: storage.Database,
    staff: Staff,
    category: str,
    amount,
    payment_type: str,
    description: str,
    created_by: str,
    pdf: pdfs.PdfTarget | None,
) -> Receipt:
    amount = money(amount)
    receipt = billing.insert_receipt(
        database,
        {
            "member_id": None,
            "member_name": staff.name,
            "mobile_no": staff.phone,
            "email": staff.email,
            "amount": amount,
            "amount_paid": amount,
            "due_amount": ZERO,
            "payment_type": payment_type,
            "description": description,
            "receipt_category": category,
            "transaction_type": "payment",
            "created_by": created_by,
        },
    )
    logger.info("%s receipt %s for staff %s: %s", category, receipt.receipt_number, staff.name, amount)
    billing.save_receipt_pdf(receipt, pdf)
    return receipt


def create_staff_salary_receipt(
    database: storage.Database,
    staff: Staff,
    amount=None,
    payment_type: str = "cash",
    created_by: str = "System",
    description: str | None = None,
    pdf: pdfs.PdfTarget | None = None,
) -> Receipt:
    amount = staff.salary if amount is None else money(amount)
    if amount <= 0:
        raise ValidationError("Salary amount must be greater than zero.")
    return _staff_receipt(
        database,
        staff,
        "staff_salary",
        amount,
        payment_type,
        description or f"Salary payment - {staff.role}",
        created_by,
        pdf,
    )


def create_salary_update_receipt(
    database: storage.Database,
    staff: Staff,
    old_salary,
    new_salary,
    created_by: str = "System",
    pdf: pdfs.PdfTarget | None = None,
) -> Receipt:
    """Records a salary revision. The amount is the change (negative for a cut)."""
    old_salary, new_salary = money(old_salary), money(new_salary)
    return _staff_receipt(
        database,
        staff,
        "staff_salary_update",
        new_salary - old_salary,
        "bank_transfer",
        f"Salary updated from {old_salary} to {new_salary}",
        created_by,
        pdf,
    )


def create_bonus_receipt(
    database: storage.Database,
    staff: Staff,
    amount,
    payment_type: str = "cash",
    created_by: str = "System",
    description: str | None = None,
    pdf: pdfs.PdfTarget | None = None,
) -> Receipt:
    amount = money(amount)
    if amount <= 0:
        raise ValidationError("Bonus amount must be greater than zero.")
    return _staff_receipt(
        database, staff, "staff_bonus", amount, payment_type, description or "Bonus payment", created_by, pdf
    )


def get_staff_receipts(database: storage.Database, staff_name: str | None = None) -> list[Receipt]:
    if staff_name:
        rows = database.fetch_all(q_receipts.SELECT_STAFF_BY_NAME, (staff_name,))
    else:
        rows = database.fetch_all(q_receipts.SELECT_STAFF)
    return [from_row(Receipt, r) for r in rows]


# ---------- Taxes ----------

def get_receipt_taxes(database: storage.Database, receipt_id: int) -> list[ReceiptTaxMapping]:
    rows = database.fetch_all(q_tax_map.SELECT_BY_RECEIPT, (receipt_id,))
    return [from_row(ReceiptTaxMapping, r) for r in rows]


def create_receipt_with_taxes(
    database: storage.Database,
    data: dict,
    tax_setting_ids: list[int],
    pdf: pdfs.PdfTarget | None = None,
) -> Receipt:
    """
    data["amount"] is the pre-tax base. Exclusive taxes raise the receipt
    total; inclusive ones only split it. One mapping row is kept per tax.
    """
    settings = masters.tax_settings_by_ids(database, list(tax_setting_ids))
    breakdown = taxes.calculate_tax_amounts(data.get("amount"), settings)
    data = dict(data)
    data["amount"] = breakdown.total_amount
    if data.get("amount_paid") in (None, ""):
        data["amount_paid"] = breakdown.total_amount
    data["cgst"] = sum((line.amount for line in breakdown.lines if "CGST" in line.name.upper()), ZERO)
    data["sigst"] = sum((line.amount for line in breakdown.lines if "SGST" in line.name.upper()), ZERO)

    now = storage.now_iso()
    with database.get_conn():
        receipt = create_receipt(database, data)
        for line in breakdown.lines:
            database.execute(
                q_tax_map.INSERT,
                to_params(
                    ReceiptTaxMapping,
                    {
                        "receipt_id": receipt.id,
                        "tax_setting_id": line.tax_setting_id,
                        "tax_name": line.name,
                        "tax_type": line.tax_type,
                        "tax_percentage": line.percentage,
                        "is_inclusive": line.is_inclusive,
                        "base_amount": breakdown.base_amount,
                        "tax_amount": line.amount,
                        "created_at": now,
                    },
                ),
            )
    if pdf is not None:
        billing.save_receipt_pdf(receipt, pdf, taxes=get_receipt_taxes(database, receipt.id))
    return receipt
