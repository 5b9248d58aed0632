from datetime import date
from decimal import Decimal

import pytest

from errors import NotFoundError, ValidationError
from services import attendance, billing, measurements, members, receipts

PARTIAL = {
    "name": "Priya Nair",
    "mobile_no": "9123456780",
    "email": "priya@example.com",
    "occupation": "Teacher",
    "sex": "female",
    "date_of_birth": "1994-08-21",
    "address": "4 Lake View",
}


class TestCreate:
    def test_defaults_and_computed_fields(self, make_member, today):
        m = make_member(discount="100")

        assert m.custom_member_id == "1"
        assert m.membership_fees == Decimal("1900.00")
        assert m.subscription_end_date == "2026-04-15"
        assert m.subscription_status == "active"
        assert m.status == "active"
        assert m.date_of_registration == today.isoformat()

    def test_member_numbers_increase(self, make_member):
        assert [make_member().custom_member_id for _ in range(3)] == ["1", "2", "3"]

    def test_number_is_not_reused_after_delete(self, database, make_member):
        make_member()
        second = make_member()
        members.delete_member(database, second.id)

        assert members.generate_member_number(database) == "3"

    def test_explicit_member_number_must_be_unique(self, make_member):
        make_member(custom_member_id="G-7")
        with pytest.raises(ValidationError, match="already in use"):
            make_member(custom_member_id="G-7")

    def test_invalid_input_lists_every_problem(self, make_member):
        with pytest.raises(ValidationError) as info:
            make_member(name="", mobile_no="12345", email="nope")
        assert len(info.value.errors) == 3

    def test_paid_more_than_fees_is_rejected(self, database, make_member):
        with pytest.raises(ValidationError, match="cannot exceed"):
            make_member(paid_amount="2500")
        assert members.list_members(database) == []

    def test_full_payment_receipt(self, database, make_member):
        m = make_member(paid_amount="2000", payment_mode="card")

        (receipt,) = receipts.receipts_for_member(database, m.id)
        assert receipt.transaction_type == "payment"
        assert receipt.payment_type == "card"
        assert receipt.due_amount == Decimal("0.00")
        assert receipt.custom_member_id == m.custom_member_id

    def test_past_end_date_starts_expired(self, make_member):
        m = make_member(subscription_start_date="2025-12-01", subscription_end_date="2026-01-01")
        assert m.subscription_status == "expired"
        assert m.status == "inactive"

    def test_custom_plan_needs_months(self, make_member):
        with pytest.raises(ValidationError, match="whole number of months"):
            make_member(plan_type="custom")
        m = make_member(plan_type="custom", custom_months="2")
        assert m.subscription_end_date == "2026-05-15"


class TestSearch:
    def test_search_by_name_and_status(self, database, make_member):
        make_member(name="Ravi Shankar")
        other = make_member(name="Anita Rao")
        members.update_member(database, other.id, {"status": "frozen"})

        assert [m.name for m in members.list_members(database, search="ravi")] == ["Ravi Shankar"]
        assert [m.name for m in members.list_members(database, status="frozen")] == ["Anita Rao"]

    def test_find_by_mobile(self, database, make_member):
        m = make_member(mobile_no="9988776655")
        assert [x.id for x in members.find_members_by_mobile(database, " 9988776655 ")] == [m.id]


class TestPartial:
    def test_partial_member_has_no_fees(self, database):
        m = members.save_partial_member(database, PARTIAL)

        assert m.status == "partial"
        assert m.membership_fees == Decimal("0.00")
        assert m.subscription_end_date is None
        assert members.is_partial_member(database, m.id)
        assert [p.id for p in members.get_partial_members(database)] == [m.id]

    def test_partial_requires_identity_fields(self, database):
        with pytest.raises(ValidationError) as info:
            members.save_partial_member(database, {"name": "X", "mobile_no": "9000000000"})
        assert "Email is required." in info.value.errors

    def test_completion_opens_membership(self, database, today):
        m = members.save_partial_member(database, PARTIAL)

        done = members.complete_partial_member(
            database,
            m.id,
            {"plan_type": "quarterly", "package_fee": "4500", "paid_amount": "2000", "payment_mode": "upi"},
            today=today,
        )

        assert done.status == "active"
        assert done.custom_member_id == m.custom_member_id
        assert done.subscription_end_date == "2026-06-15"
        assert billing.member_totals(database, m.id).due == Decimal("2500.00")

    def test_completing_twice_is_rejected(self, database, today):
        m = members.save_partial_member(database, PARTIAL)
        members.complete_partial_member(database, m.id, {"package_fee": "1000"}, today=today)
        with pytest.raises(ValidationError, match="not a partial"):
            members.complete_partial_member(database, m.id, {"package_fee": "1000"}, today=today)


class TestUpdate:
    def test_paid_amount_in_update_is_ignored(self, database, make_member):
        m = make_member(paid_amount="500")
        updated = members.update_member(database, m.id, {"paid_amount": "2000", "address": "New street"})

        assert updated.paid_amount == Decimal("500.00")
        assert updated.address == "New street"

    def test_fee_change_recomputes_due(self, database, make_member):
        m = make_member(paid_amount="500")
        members.update_member(database, m.id, {"discount": "500"})

        totals = billing.member_totals(database, m.id)
        assert totals.total_fees == Decimal("1500.00")
        assert totals.due == Decimal("1000.00")

    def test_identity_changes_reach_receipts(self, database, make_member):
        m = make_member(paid_amount="500")
        members.update_member(database, m.id, {"name": "Renamed Person", "custom_member_id": "500"})

        (receipt,) = receipts.receipts_for_member(database, m.id)
        assert receipt.member_name == "Renamed Person"
        assert receipt.custom_member_id == "500"
        (invoice,) = billing.list_invoices(database, m.id)
        assert invoice.member_name == "Renamed Person"

    def test_moving_end_date_refreshes_status(self, database, make_member, today):
        m = make_member()
        updated = members.update_member(database, m.id, {"subscription_end_date": "2026-03-20"}, today=today)
        assert updated.subscription_status == "expiring_soon"

    def test_number_clash_on_update(self, database, make_member):
        first = make_member()
        second = make_member()
        with pytest.raises(ValidationError, match="already in use"):
            members.update_member_number(database, second.id, first.custom_member_id)

    def test_unknown_member(self, database):
        with pytest.raises(NotFoundError):
            members.update_member(database, 42, {"name": "Nobody"})


class TestArchive:
    def test_delete_keeps_receipts_and_drops_visits(self, database, make_member):
        m = make_member(paid_amount="2000")
        attendance.check_in(database, m.id)
        measurements.add_measurement(database, m.id, {"weight": "70", "height": "175"})

        archived = members.delete_member(database, m.id, deleted_by="admin", reason="Moved away")

        assert archived.original_member_id == m.id
        assert archived.deletion_reason == "Moved away"
        assert len(receipts.receipts_for_member(database, m.id)) == 1
        assert attendance.list_attendance(database, member_id=m.id) == []
        assert measurements.list_measurements(database, m.id) == []
        with pytest.raises(NotFoundError):
            members.get_member(database, m.id)

    def test_restore_brings_member_back_active(self, database, make_member, today):
        m = make_member(paid_amount="1200")
        members.update_member(database, m.id, {"status": "inactive"})
        archived = members.delete_member(database, m.id)

        restored = members.restore_deleted_member(database, archived.id, today=today)

        assert restored.id == m.id
        assert restored.custom_member_id == m.custom_member_id
        assert restored.status == "active"
        assert restored.paid_amount == Decimal("1200.00")
        assert members.list_deleted_members(database) == []

    def test_restore_refuses_taken_number(self, database, make_member, today):
        m = make_member()
        archived = members.delete_member(database, m.id)
        make_member(custom_member_id=m.custom_member_id)

        with pytest.raises(ValidationError, match="already in use"):
            members.restore_deleted_member(database, archived.id, today=today)
        assert len(members.list_deleted_members(database)) == 1

    def test_permanent_delete(self, database, make_member):
        archived = members.delete_member(database, make_member().id)
        members.permanently_delete_member(database, archived.id)
        with pytest.raises(NotFoundError):
            members.get_deleted_member(database, archived.id)


def test_member_number_lookup(database, make_member):
    m = make_member()
    assert members.is_member_number_taken(database, m.custom_member_id)
    assert not members.is_member_number_taken(database, m.custom_member_id, exclude_member_id=m.id)
    assert not members.is_member_number_taken(database, "999")


def test_registration_date_can_be_backdated(make_member):
    m = make_member(date_of_registration=date(2026, 1, 2).isoformat())
    assert m.date_of_registration == "2026-01-02"
