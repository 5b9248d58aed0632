"""
pdfs.py
Receipt and salary slip PDFs (reportlab), written to the receipts directory.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas as pdf_canvas

from models import Receipt, ReceiptTaxMapping

ACCENT = HexColor("#2563EB")
DARK = HexColor("#111827")
MUTED = HexColor("#6B7280")

RECEIPT_TITLES = {
    "member": "PAYMENT RECEIPT",
    "staff_salary": "SALARY SLIP",
    "staff_bonus": "BONUS SLIP",
    "staff_salary_update": "SALARY REVISION",
}


@dataclass(frozen=True)
class PdfTarget:
    directory: Path
    gym_name: str


def _safe_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", name or "")


def receipt_filename(receipt: Receipt) -> str:
    """Receipt_<number>_<name with non-alphanumerics as _>_<YYYY-MM-DD>.pdf"""
    prefix = "Receipt" if receipt.receipt_category == "member" else "SalarySlip"
    day = (receipt.created_at or "")[:10]
    return f"{prefix}_{receipt.receipt_number}_{_safe_name(receipt.member_name)}_{day}.pdf"


def _fmt(amount: Decimal) -> str:
    return f"Rs. {amount:,.2f}"


def _header(c, target: PdfTarget, title: str, page_w: float, page_h: float) -> float:
    c.setFillColor(ACCENT)
    c.rect(0, page_h - 80, page_w, 80, fill=1, stroke=0)
    c.setFillColor(HexColor("#FFFFFF"))
    c.setFont("Helvetica-Bold", 18)
    c.drawString(40, page_h - 45, target.gym_name)
    c.setFont("Helvetica", 11)
    c.drawRightString(page_w - 40, page_h - 45, title)
    return page_h - 120


def _rows(c, rows: list[tuple[str, str]], x: float, y: float) -> float:
    for label, value in rows:
        c.setFillColor(MUTED)
        c.setFont("Helvetica", 10)
        c.drawString(x, y, label)
        c.setFillColor(DARK)
        c.setFont("Helvetica-Bold", 10)
        c.drawString(x + 160, y, value)
        y -= 18
    return y


def write_receipt_pdf(
    receipt: Receipt,
    target: PdfTarget,
    taxes: list[ReceiptTaxMapping] | None = None,
) -> Path:
    target.directory.mkdir(parents=True, exist_ok=True)
    path = target.directory / receipt_filename(receipt)
    page_w, page_h = A4
    c = pdf_canvas.Canvas(str(path), pagesize=A4)
    title = RECEIPT_TITLES.get(receipt.receipt_category, "RECEIPT")
    y = _header(c, target, title, page_w, page_h)

    details = [
        ("Receipt No.", receipt.receipt_number),
        ("Date", (receipt.created_at or "")[:10]),
        ("Name", receipt.member_name),
    ]
    if receipt.custom_member_id:
        details.append(("Member ID", receipt.custom_member_id))
    if receipt.mobile_no:
        details.append(("Mobile", receipt.mobile_no))
    if receipt.plan_type:
        details.append(("Plan", receipt.plan_type))
    if receipt.subscription_start_date and receipt.subscription_end_date:
        details.append(("Period", f"{receipt.subscription_start_date} to {receipt.subscription_end_date}"))
    if receipt.version_number > 1:
        details.append(("Version", str(receipt.version_number)))
    y = _rows(c, details, 40, y)

    y -= 10
    c.setStrokeColor(MUTED)
    c.line(40, y, page_w - 40, y)
    y -= 24

    amounts: list[tuple[str, str]] = []
    if receipt.receipt_category == "member":
        if receipt.registration_fee:
            amounts.append(("Registration fee", _fmt(receipt.registration_fee)))
        if receipt.package_fee:
            amounts.append(("Package fee", _fmt(receipt.package_fee)))
        if receipt.discount:
            amounts.append(("Discount", f"- {_fmt(receipt.discount)}"))
    for tax in taxes or []:
        kind = "incl." if tax.is_inclusive else "excl."
        amounts.append((f"{tax.tax_name} {tax.tax_percentage:g}% ({kind})", _fmt(tax.tax_amount)))
    amounts += [
        ("Total", _fmt(receipt.amount)),
        ("Amount paid", _fmt(receipt.amount_paid)),
        ("Payment mode", receipt.payment_type.replace("_", " ").title()),
    ]
    if receipt.receipt_category == "member":
        amounts.append(("Balance due", _fmt(receipt.due_amount)))
    y = _rows(c, amounts, 40, y)

    if receipt.description:
        c.setFillColor(MUTED)
        c.setFont("Helvetica-Oblique", 10)
        c.drawString(40, y - 10, receipt.description)

    c.setFillColor(MUTED)
    c.setFont("Helvetica-Oblique", 9)
    c.drawString(40, 40, f"Issued by {receipt.created_by}. This is a computer generated document.")
    c.showPage()
    c.save()
    return path
