"""
services/billing.py
Fee / due reconciliation: member totals, due payments, renewals, invoices and
subscription status refresh.

Receipts are the record of money received. members.paid_amount and
invoices.paid_amount are projections of them, kept in step here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

import db as storage
import pdfs
from errors import NotFoundError, ValidationError
from models import (
    Invoice,
    Member,
    PAYMENT_TYPES,
    Receipt,
    ReceiptTaxMapping,
    ZERO,
    from_minor,
    from_row,
    money,
    to_minor,
    to_params,
)
from queries import invoices as q_invoices
from queries import members as q_members
from queries import receipts as q_receipts
from utils import add_months, plan_months

logger = logging.getLogger(__name__)

DEFAULT_EXPIRING_SOON_DAYS = 7


@dataclass(frozen=True)
class MemberTotals:
    member_id: int
    total_fees: Decimal
    paid: Decimal
    due: Decimal


@dataclass(frozen=True)
class PaymentResult:
    member_id: int
    receipt: Receipt
    previous_paid: Decimal
    new_total_paid: Decimal
    remaining_due: Decimal
    payment_status: str  # 'partial' or 'paid'
    message: str
    pdf_path: str | None = None


@dataclass(frozen=True)
class RenewalResult:
    member: Member
    receipt: Receipt
    invoice: Invoice
    pdf_path: str | None = None


@dataclass(frozen=True)
class StatusUpdateCounts:
    expired: int
    expiring_soon: int
    active: int

    @property
    def total(self) -> int:
        return self.expired + self.expiring_soon + self.active


@dataclass(frozen=True)
class MemberDue:
    member: Member
    totals: MemberTotals
    unpaid_invoices: int


def compute_total_fees(registration_fee, package_fee, discount) -> Decimal:
    """registration + package - discount, never below zero. Inputs are not sign-checked."""
    return max(ZERO, money(registration_fee) + money(package_fee) - money(discount))


def subscription_status_for(end_date: str | date, as_of: date, window_days: int = DEFAULT_EXPIRING_SOON_DAYS) -> str:
    if isinstance(end_date, str):
        end_date = date.fromisoformat(end_date)
    if end_date < as_of:
        return "expired"
    if end_date <= as_of + timedelta(days=window_days):
        return "expiring_soon"
    return "active"


# ---------- Lookups ----------

def load_member(database: storage.Database, member_id: int) -> Member:
    member = from_row(Member, database.fetch_one(q_members.SELECT_BY_ID, (member_id,)))
    if member is None:
        raise NotFoundError("Member", member_id)
    return member


def get_receipt(database: storage.Database, receipt_id: int) -> Receipt:
    receipt = from_row(Receipt, database.fetch_one(q_receipts.SELECT_BY_ID, (receipt_id,)))
    if receipt is None:
        raise NotFoundError("Receipt", receipt_id)
    return receipt


def get_invoice(database: storage.Database, invoice_id: int) -> Invoice:
    invoice = from_row(Invoice, database.fetch_one(q_invoices.SELECT_BY_ID, (invoice_id,)))
    if invoice is None:
        raise NotFoundError("Invoice", invoice_id)
    return invoice


def list_invoices(database: storage.Database, member_id: int | None = None) -> list[Invoice]:
    if member_id is None:
        rows = database.fetch_all(q_invoices.SELECT_ALL)
    else:
        rows = database.fetch_all(q_invoices.SELECT_BY_MEMBER, (member_id,))
    return [from_row(Invoice, r) for r in rows]


def member_payment_history(database: storage.Database, member_id: int) -> list[Receipt]:
    rows = database.fetch_all(q_receipts.SELECT_MEMBER_CATEGORY, (member_id,))
    return [from_row(Receipt, r) for r in rows]


# ---------- Totals ----------

def cycle_anchor(database: storage.Database, member_id: int) -> int:
    """Root id of the latest renewal receipt, or 0 while the member is in the first cycle."""
    return database.fetch_one(q_receipts.SELECT_CYCLE_ANCHOR, (member_id,))["anchor"]


def member_totals(database: storage.Database, member_id: int) -> MemberTotals:
    """
    Fees, paid and due for the member's current billing cycle, from receipts only.
    The cycle opens at the most recent renewal receipt (or the first receipt).
    """
    member = load_member(database, member_id)
    anchor = cycle_anchor(database, member_id)
    paid = from_minor(database.fetch_one(q_receipts.SUM_PAID_IN_CYCLE, (member_id, anchor))["paid"])
    total = member.membership_fees
    return MemberTotals(member_id=member_id, total_fees=total, paid=paid, due=max(ZERO, total - paid))


def recalculate_member_totals(database: storage.Database, member_id: int) -> MemberTotals:
    """Re-derive members.paid_amount and the member's invoices from receipts, ignoring cached values."""
    with database.get_conn():
        member = load_member(database, member_id)
        totals = member_totals(database, member_id)
        if member.paid_amount != totals.paid:
            database.execute(q_members.UPDATE_PAID, (to_minor(totals.paid), storage.now_iso(), member_id))
            logger.info("Member %s paid_amount resynced %s -> %s", member_id, member.paid_amount, totals.paid)
        sync_member_invoices(database, member)
    return totals


def refresh_all_member_due_amounts(database: storage.Database) -> int:
    """Sequential resync of every member; safe to re-run after an interruption."""
    ids = [r["id"] for r in database.fetch_all(q_members.SELECT_IDS)]
    for member_id in ids:
        recalculate_member_totals(database, member_id)
    logger.info("Refreshed due amounts for %d members", len(ids))
    return len(ids)


def members_with_due_amounts(database: storage.Database, only_outstanding: bool = False) -> list[MemberDue]:
    out: list[MemberDue] = []
    for row in database.fetch_all(q_members.SELECT_ALL):
        member = from_row(Member, row)
        if member.is_partial:
            continue
        totals = member_totals(database, member.id)
        if only_outstanding and totals.due <= 0:
            continue
        unpaid = database.fetch_one(q_invoices.COUNT_OPEN_BY_MEMBER, (member.id,))["c"]
        out.append(MemberDue(member=member, totals=totals, unpaid_invoices=int(unpaid)))
    return out


# ---------- Numbering / inserts ----------

def generate_receipt_number(database: storage.Database) -> str:
    while True:
        number = str(storage.next_counter(database, "receipt_counter"))
        if not database.fetch_one(q_receipts.SELECT_BY_NUMBER, (number,)):
            return number


def generate_invoice_number(database: storage.Database) -> str:
    return f"INV{storage.next_counter(database, 'invoice_counter')}"


RECEIPT_DEFAULTS = {
    "invoice_id": None,
    "member_id": None,
    "custom_member_id": None,
    "due_amount": ZERO,
    "description": None,
    "receipt_category": "member",
    "transaction_type": "payment",
    "subscription_start_date": None,
    "subscription_end_date": None,
    "plan_type": None,
    "payment_mode": None,
    "mobile_no": None,
    "email": None,
    "package_fee": ZERO,
    "registration_fee": ZERO,
    "discount": ZERO,
    "cgst": ZERO,
    "sigst": ZERO,
    "original_receipt_id": None,
    "version_number": 1,
    "is_current_version": True,
    "created_by": "System",
}


def insert_receipt(database: storage.Database, data: dict) -> Receipt:
    params = {**RECEIPT_DEFAULTS, **data}
    if params["payment_type"] not in PAYMENT_TYPES:
        raise ValidationError(f"Invalid payment type: {params['payment_type']!r}")
    with database.get_conn():
        if not params.get("receipt_number"):
            params["receipt_number"] = generate_receipt_number(database)
        elif database.fetch_one(q_receipts.SELECT_BY_NUMBER, (params["receipt_number"],)):
            raise ValidationError(f"Receipt number {params['receipt_number']} already exists.")
        params["created_at"] = params.get("created_at") or storage.now_iso()
        receipt_id = database.execute(q_receipts.INSERT, to_params(Receipt, params))
    return get_receipt(database, receipt_id)


def member_snapshot(member: Member) -> dict:
    """Member fields copied onto a receipt at the time it is written."""
    return {
        "member_id": member.id,
        "member_name": member.name,
        "custom_member_id": member.custom_member_id,
        "subscription_start_date": member.subscription_start_date,
        "subscription_end_date": member.subscription_end_date,
        "plan_type": member.plan_type,
        "payment_mode": member.payment_mode,
        "mobile_no": member.mobile_no,
        "email": member.email,
        "package_fee": member.package_fee,
        "registration_fee": member.registration_fee,
        "discount": member.discount,
    }


def save_receipt_pdf(
    receipt: Receipt,
    target: pdfs.PdfTarget | None,
    taxes: list[ReceiptTaxMapping] | None = None,
) -> str | None:
    """PDF output never fails the payment it documents."""
    if target is None:
        return None
    try:
        return str(pdfs.write_receipt_pdf(receipt, target, taxes=taxes))
    except Exception:
        logger.exception("Could not write PDF for receipt %s", receipt.receipt_number)
        return None


# ---------- Invoices ----------

def _invoice_status(total: Decimal, paid: Decimal) -> str:
    if paid >= total:
        return "paid"
    if paid > 0:
        return "partial"
    return "unpaid"


def create_invoice(
    database: storage.Database,
    member: Member,
    total_amount,
    registration_fee=ZERO,
    package_fee=ZERO,
    discount=ZERO,
    due_date: str | None = None,
) -> Invoice:
    now = storage.now_iso()
    with database.get_conn():
        params = {
            "invoice_number": generate_invoice_number(database),
            "member_id": member.id,
            "member_name": member.name,
            "registration_fee": registration_fee,
            "package_fee": package_fee,
            "discount": discount,
            "total_amount": total_amount,
            "paid_amount": ZERO,
            "status": "unpaid",
            "due_date": due_date,
            "created_at": now,
            "updated_at": now,
        }
        invoice_id = database.execute(q_invoices.INSERT, to_params(Invoice, params))
    return get_invoice(database, invoice_id)


def current_invoice(database: storage.Database, member_id: int) -> Invoice | None:
    """The invoice of the current cycle: the latest renewal's, or the member's first one."""
    anchor = cycle_anchor(database, member_id)
    if anchor:
        row = database.fetch_one(q_receipts.SELECT_CURRENT_IN_CHAIN, {"root": anchor})
        return get_invoice(database, row["invoice_id"]) if row and row["invoice_id"] else None
    return from_row(Invoice, database.fetch_one(q_invoices.SELECT_FIRST_BY_MEMBER, (member_id,)))


def sync_member_invoices(database: storage.Database, member: Member) -> Invoice | None:
    """
    Invoices follow the receipts. Each invoice's paid amount is the sum of the
    current receipts carrying its id; the current cycle's invoice totals the
    member's fees and collects any cycle receipt written without an invoice.
    Returns the current cycle's invoice.
    """
    now = storage.now_iso()
    with database.get_conn():
        anchor = cycle_anchor(database, member.id)
        invoice = current_invoice(database, member.id)
        if invoice is None and not anchor and member.membership_fees > 0 and not member.is_partial:
            invoice = create_invoice(
                database,
                member,
                member.membership_fees,
                registration_fee=member.registration_fee,
                package_fee=member.package_fee,
                discount=member.discount,
                due_date=member.subscription_start_date,
            )
        if invoice is not None:
            if invoice.total_amount != member.membership_fees:
                database.execute(q_invoices.UPDATE_TOTAL, (to_minor(member.membership_fees), now, invoice.id))
            database.execute(
                q_receipts.ATTACH_CYCLE_TO_INVOICE,
                {"invoice_id": invoice.id, "member_id": member.id, "anchor": anchor},
            )
        for row in database.fetch_all(q_invoices.SELECT_BY_MEMBER, (member.id,)):
            existing = from_row(Invoice, row)
            paid = from_minor(database.fetch_one(q_receipts.SUM_PAID_FOR_INVOICE, (existing.id,))["paid"])
            status = _invoice_status(existing.total_amount, paid)
            if paid != existing.paid_amount or status != existing.status:
                database.execute(q_invoices.UPDATE_PAYMENT, (to_minor(paid), status, now, existing.id))
    return get_invoice(database, invoice.id) if invoice else None


# ---------- Payments ----------

def record_payment(
    database: storage.Database,
    member_id: int,
    amount,
    payment_type: str = "cash",
    created_by: str = "System",
    pdf: pdfs.PdfTarget | None = None,
) -> PaymentResult:
    """
    Take a payment against the member's outstanding due.
    Rejected (nothing written) unless 0 < amount <= due.
    """
    amount = money(amount)
    with database.get_conn():
        member = load_member(database, member_id)
        totals = member_totals(database, member_id)
        if totals.due <= 0:
            raise ValidationError("No due amount found for this member.")
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero.")
        if amount > totals.due:
            raise ValidationError(f"Payment amount ({amount}) cannot exceed due amount ({totals.due}).")

        remaining = totals.due - amount
        new_paid = totals.paid + amount
        invoice = current_invoice(database, member_id)
        receipt = insert_receipt(
            database,
            {
                **member_snapshot(member),
                "invoice_id": invoice.id if invoice else None,
                "amount": totals.total_fees,
                "amount_paid": amount,
                "due_amount": remaining,
                "payment_type": payment_type,
                "description": "Full due cleared" if remaining == 0 else "Partial due cleared",
                "transaction_type": "due_payment" if remaining == 0 else "partial_payment",
                "created_by": created_by,
            },
        )

        status = member.status
        if remaining == 0 and status == "inactive" and member.subscription_status != "expired":
            status = "active"
        database.execute(
            q_members.UPDATE_PAID_AND_STATUS, (to_minor(new_paid), status, storage.now_iso(), member_id)
        )
        sync_member_invoices(database, member)

    logger.info(
        "Payment of %s recorded for member %s (receipt %s), remaining due %s",
        amount,
        member_id,
        receipt.receipt_number,
        remaining,
    )
    pdf_path = save_receipt_pdf(receipt, pdf)
    if remaining == 0:
        message = f"Payment of {amount} received. All dues are cleared."
    else:
        message = f"Payment of {amount} received. Remaining due: {remaining}."
    return PaymentResult(
        member_id=member_id,
        receipt=receipt,
        previous_paid=totals.paid,
        new_total_paid=new_paid,
        remaining_due=remaining,
        payment_status="paid" if remaining == 0 else "partial",
        message=message,
        pdf_path=pdf_path,
    )


# ---------- Subscription status ----------

def update_subscription_statuses(
    database: storage.Database,
    as_of: date | None = None,
    window_days: int = DEFAULT_EXPIRING_SOON_DAYS,
) -> StatusUpdateCounts:
    """
    Batch refresh of subscription_status from end dates. Idempotent: each
    statement only touches rows not already at its target status.
    """
    as_of = as_of or date.today()
    params = {
        "today": as_of.isoformat(),
        "horizon": (as_of + timedelta(days=window_days)).isoformat(),
        "now": storage.now_iso(),
    }
    counts = StatusUpdateCounts(
        expired=database.execute_count(q_members.MARK_EXPIRED, params),
        expiring_soon=database.execute_count(q_members.MARK_EXPIRING_SOON, params),
        active=database.execute_count(q_members.MARK_ACTIVE, params),
    )
    if counts.total:
        logger.info("Subscription statuses updated: %s", counts)
    return counts


def update_member_subscription_status(
    database: storage.Database,
    member_id: int,
    as_of: date | None = None,
    window_days: int = DEFAULT_EXPIRING_SOON_DAYS,
) -> Member:
    """Single-member version of update_subscription_statuses."""
    as_of = as_of or date.today()
    with database.get_conn():
        member = load_member(database, member_id)
        if not member.subscription_end_date:
            return member
        target = subscription_status_for(member.subscription_end_date, as_of, window_days)
        now = storage.now_iso()
        lapsed = member.status == "inactive" and member.subscription_status == "expired"
        if target == "expired" and member.status in ("active", "inactive"):
            database.execute(q_members.UPDATE_SUBSCRIPTION_STATUS, ("expired", now, member_id))
            database.execute(q_members.UPDATE_STATUS, ("inactive", now, member_id))
        elif target != "expired" and (member.status == "active" or lapsed):
            # an extended end date reopens a membership that only lapsed by expiry
            if member.subscription_status != target:
                database.execute(q_members.UPDATE_SUBSCRIPTION_STATUS, (target, now, member_id))
            if lapsed:
                database.execute(q_members.UPDATE_STATUS, ("active", now, member_id))
    return load_member(database, member_id)


# ---------- Renewal ----------

def renew_membership(
    database: storage.Database,
    member_id: int,
    plan_type: str,
    fees,
    created_by: str = "System",
    custom_months=None,
    amount_paid=None,
    payment_type: str = "cash",
    today: date | None = None,
    pdf: pdfs.PdfTarget | None = None,
) -> RenewalResult:
    """
    Start a new subscription from today. The renewal receipt opens a new
    billing cycle, so the previous cycle must be fully paid first.
    """
    today = today or date.today()
    fees = money(fees)
    months = plan_months(plan_type, custom_months)
    paid = fees if amount_paid is None or amount_paid == "" else money(amount_paid)
    if fees < 0:
        raise ValidationError("Renewal fees cannot be negative.")
    if paid < 0 or paid > fees:
        raise ValidationError(f"Amount paid must be between 0 and {fees}.")
    end = add_months(today, months)

    with database.get_conn():
        member = load_member(database, member_id)
        if member.is_partial:
            raise ValidationError("Complete the membership before renewing.")
        outstanding = member_totals(database, member_id).due
        if outstanding > 0:
            raise ValidationError(f"Clear the outstanding due of {outstanding} before renewing.")

        database.execute(
            q_members.RENEW,
            {
                "id": member_id,
                "plan_type": plan_type,
                "fees": to_minor(fees),
                "start_date": today.isoformat(),
                "end_date": end.isoformat(),
                "payment_mode": payment_type,
                "updated_at": storage.now_iso(),
            },
        )
        member = load_member(database, member_id)
        invoice = create_invoice(database, member, fees, package_fee=fees, due_date=today.isoformat())
        receipt = insert_receipt(
            database,
            {
                **member_snapshot(member),
                "invoice_id": invoice.id,
                "amount": fees,
                "amount_paid": paid,
                "due_amount": fees - paid,
                "payment_type": payment_type,
                "description": f"Membership renewal ({plan_type}, {months} month(s))",
                "transaction_type": "renewal",
                "created_by": created_by,
            },
        )
        recalculate_member_totals(database, member_id)
        invoice = get_invoice(database, invoice.id)
        member = load_member(database, member_id)

    logger.info("Member %s renewed on %s until %s (receipt %s)", member_id, plan_type, end, receipt.receipt_number)
    pdf_path = save_receipt_pdf(receipt, pdf)
    return RenewalResult(member=member, receipt=receipt, invoice=invoice, pdf_path=pdf_path)
