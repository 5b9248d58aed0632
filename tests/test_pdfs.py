from decimal import Decimal
from pathlib import Path

import pdfs
from services import billing, masters, receipts, staff


def test_receipt_pdf_is_written(database, make_member, tmp_path):
    target = pdfs.PdfTarget(directory=tmp_path / "receipts", gym_name="Iron Temple")
    m = make_member(name="Asha K.", paid_amount="1000")

    result = billing.record_payment(database, m.id, "500", pdf=target)

    path = Path(result.pdf_path)
    assert path.exists()
    assert path.name.startswith(f"Receipt_{result.receipt.receipt_number}_Asha_K__")
    assert path.read_bytes()[:4] == b"%PDF"


def test_salary_slip_name(database, tmp_path):
    person = staff.create_staff(database, {"name": "Ravi", "phone": "9000000010", "role": "trainer", "salary": "10"})
    receipt = staff.pay_salary(database, person.id, pdf=pdfs.PdfTarget(tmp_path, "Iron Temple"))

    assert pdfs.receipt_filename(receipt).startswith(f"SalarySlip_{receipt.receipt_number}_Ravi_")
    assert (tmp_path / pdfs.receipt_filename(receipt)).exists()


def test_pdf_failure_does_not_undo_payment(database, make_member, tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    m = make_member(paid_amount="1000")

    result = billing.record_payment(database, m.id, "500", pdf=pdfs.PdfTarget(blocker, "Gym"))

    assert result.pdf_path is None
    assert billing.member_totals(database, m.id).due == Decimal("500.00")


def test_tax_receipt_pdf(database, make_member, tmp_path):
    m = make_member()
    gst = masters.create_item(
        database, "tax_settings", {"name": "GST 18", "tax_type": "GST", "percentage": 18, "is_inclusive": False}
    )
    data = {"member_id": m.id, "amount": "1000", "payment_type": "cash"}

    written = receipts.create_receipt_with_taxes(database, data, [gst.id], pdf=pdfs.PdfTarget(tmp_path, "Gym"))
    assert (tmp_path / pdfs.receipt_filename(written)).read_bytes()[:4] == b"%PDF"

    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    kept = receipts.create_receipt_with_taxes(database, data, [gst.id], pdf=pdfs.PdfTarget(blocker, "Gym"))
    assert kept.amount == Decimal("1180.00")
    assert len(receipts.get_receipt_taxes(database, kept.id)) == 1
