from decimal import Decimal

import pytest

from errors import ValidationError
from services import billing, masters, members, receipts, staff


@pytest.fixture
def trainer(database):
    return staff.create_staff(
        database, {"name": "Ravi Kumar", "phone": "9000000010", "role": "trainer", "salary": "18000"}
    )


class TestManualReceipts:
    def test_member_receipt_fills_details_and_updates_paid(self, database, make_member):
        m = make_member(paid_amount="500")

        receipt = receipts.create_receipt(
            database, {"member_id": m.id, "amount": "300", "payment_type": "cash", "created_by": "desk"}
        )

        assert receipt.member_name == m.name
        assert receipt.custom_member_id == m.custom_member_id
        assert receipt.amount_paid == Decimal("300.00")
        assert members.get_member(database, m.id).paid_amount == Decimal("800.00")

    def test_numbers_are_unique_and_sequential(self, database, make_member):
        m = make_member()
        numbers = [
            receipts.create_receipt(database, {"member_id": m.id, "amount": "100", "payment_type": "cash"}).receipt_number
            for _ in range(3)
        ]
        assert numbers == ["1001", "1002", "1003"]

    def test_rejects_bad_input(self, database, make_member):
        m = make_member()
        with pytest.raises(ValidationError) as info:
            receipts.create_receipt(
                database, {"member_id": m.id, "amount": "100", "amount_paid": "150", "payment_type": "cheque"}
            )
        assert len(info.value.errors) == 2
        assert receipts.list_receipts(database) == []

    def test_member_receipt_needs_member(self, database):
        with pytest.raises(ValidationError, match="member is required"):
            receipts.create_receipt(database, {"amount": "100", "payment_type": "cash"})


class TestVersions:
    def test_new_version_supersedes_previous(self, database, make_member):
        m = make_member(paid_amount="1000")
        (first,) = receipts.receipts_for_member(database, m.id)

        second = receipts.create_receipt_version(database, first.id, {"amount_paid": "800"})
        third = receipts.create_receipt_version(database, first.id, {"payment_type": "upi"})

        assert second.receipt_number != first.receipt_number
        assert (second.version_number, third.version_number) == (2, 3)
        assert third.original_receipt_id == first.id
        assert third.amount_paid == Decimal("800.00")
        history = receipts.get_receipt_history(database, third.id)
        assert [r.version_number for r in history] == [1, 2, 3]
        assert [r.is_current_version for r in history] == [False, False, True]
        assert members.get_member(database, m.id).paid_amount == Decimal("800.00")

    def test_current_list_hides_superseded(self, database, make_member):
        m = make_member(paid_amount="1000")
        (first,) = receipts.receipts_for_member(database, m.id)
        receipts.create_receipt_version(database, first.id, {"description": "Corrected"})

        assert len(receipts.list_receipts(database)) == 1
        assert len(receipts.list_receipts(database, include_superseded=True)) == 2

    def test_version_amount_paid_cannot_exceed_amount(self, database, make_member):
        m = make_member(paid_amount="1000")
        (first,) = receipts.receipts_for_member(database, m.id)
        with pytest.raises(ValidationError):
            receipts.create_receipt_version(database, first.id, {"amount_paid": "5000"})
        assert receipts.get_receipt(database, first.id).is_current_version

    def test_delete_recalculates_member(self, database, make_member):
        m = make_member(paid_amount="1000")
        extra = receipts.create_receipt(database, {"member_id": m.id, "amount": "500", "payment_type": "cash"})
        assert billing.member_totals(database, m.id).due == Decimal("500.00")

        receipts.delete_receipt(database, extra.id)

        assert billing.member_totals(database, m.id).due == Decimal("1000.00")
        assert members.get_member(database, m.id).paid_amount == Decimal("1000.00")


class TestStaffReceipts:
    def test_salary_defaults_to_staff_salary(self, database, trainer):
        receipt = staff.pay_salary(database, trainer.id)

        assert receipt.receipt_category == "staff_salary"
        assert receipt.member_id is None
        assert receipt.amount_paid == Decimal("18000.00")
        assert receipt.member_name == "Ravi Kumar"

    def test_bonus_must_be_positive(self, database, trainer):
        with pytest.raises(ValidationError):
            staff.pay_bonus(database, trainer.id, "0")
        bonus = staff.pay_bonus(database, trainer.id, "2500", payment_type="upi")
        assert bonus.receipt_category == "staff_bonus"

    def test_salary_change_writes_update_receipt(self, database, trainer):
        staff.update_staff(database, trainer.id, {"salary": "16000"})

        (update,) = receipts.get_staff_receipts(database, "Ravi Kumar")
        assert update.receipt_category == "staff_salary_update"
        assert update.amount == Decimal("-2000.00")
        assert update.payment_type == "bank_transfer"

    def test_staff_receipts_do_not_touch_members(self, database, trainer, make_member):
        m = make_member(paid_amount="100")
        staff.pay_salary(database, trainer.id)
        assert billing.member_totals(database, m.id).paid == Decimal("100.00")


class TestTaxes:
    def _tax(self, database, name, pct, inclusive):
        return masters.create_item(
            database,
            "tax_settings",
            {"name": name, "tax_type": "GST", "percentage": pct, "is_inclusive": inclusive},
        )

    def test_exclusive_taxes_raise_total(self, database, make_member):
        m = make_member()
        cgst = self._tax(database, "CGST", 9, False)
        sgst = self._tax(database, "SGST", 9, False)

        receipt = receipts.create_receipt_with_taxes(
            database, {"member_id": m.id, "amount": "1000", "payment_type": "cash"}, [cgst.id, sgst.id]
        )

        assert receipt.amount == Decimal("1180.00")
        assert receipt.amount_paid == Decimal("1180.00")
        assert (receipt.cgst, receipt.sigst) == (Decimal("90.00"), Decimal("90.00"))
        lines = receipts.get_receipt_taxes(database, receipt.id)
        assert {line.tax_name for line in lines} == {"CGST", "SGST"}
        assert all(line.base_amount == Decimal("1000.00") for line in lines)

    def test_inclusive_tax_keeps_total(self, database, make_member):
        m = make_member()
        gst = self._tax(database, "GST 18", 18, True)

        receipt = receipts.create_receipt_with_taxes(
            database, {"member_id": m.id, "amount": "1180", "payment_type": "cash"}, [gst.id]
        )

        assert receipt.amount == Decimal("1180.00")
        (line,) = receipts.get_receipt_taxes(database, receipt.id)
        assert line.tax_amount == Decimal("180.00")

    def test_inactive_tax_is_refused(self, database, make_member):
        m = make_member()
        gst = self._tax(database, "GST", 18, False)
        masters.deactivate_item(database, "tax_settings", gst.id)

        with pytest.raises(ValidationError, match="Inactive"):
            receipts.create_receipt_with_taxes(
                database, {"member_id": m.id, "amount": "100", "payment_type": "cash"}, [gst.id]
            )
