from datetime import date
from decimal import Decimal

import pytest

from errors import NotFoundError, ValidationError
from services import billing, members, receipts


def _receipt_count(database):
    return database.fetch_one("SELECT COUNT(*) AS c FROM receipts")["c"]


def test_total_fees_never_negative():
    assert billing.compute_total_fees("100", "50", "500") == Decimal("0.00")
    assert billing.compute_total_fees("500", "1500", "250.50") == Decimal("1749.50")


@pytest.mark.parametrize(
    "end, expected",
    [
        ("2026-03-14", "expired"),
        ("2026-03-15", "expiring_soon"),
        ("2026-03-22", "expiring_soon"),
        ("2026-03-23", "active"),
    ],
)
def test_subscription_status_boundaries(end, expected):
    assert billing.subscription_status_for(end, date(2026, 3, 15), 7) == expected


def test_new_member_with_partial_payment(database, make_member):
    m = make_member(paid_amount="1200")

    totals = billing.member_totals(database, m.id)
    assert totals.total_fees == Decimal("2000.00")
    assert totals.paid == Decimal("1200.00")
    assert totals.due == Decimal("800.00")
    assert m.paid_amount == Decimal("1200.00")
    assert m.receipt_no == "1001"

    (invoice,) = billing.list_invoices(database, m.id)
    assert invoice.invoice_number == "INV1001"
    assert invoice.status == "partial"
    assert invoice.balance == Decimal("800.00")


def test_partial_then_full_due_payment(database, make_member):
    m = make_member(paid_amount="1200")

    first = billing.record_payment(database, m.id, "300", payment_type="upi")
    assert first.remaining_due == Decimal("500.00")
    assert first.payment_status == "partial"
    assert first.previous_paid == Decimal("1200.00")
    assert first.receipt.transaction_type == "partial_payment"
    assert first.receipt.due_amount == Decimal("500.00")

    second = billing.record_payment(database, m.id, "500")
    assert second.remaining_due == Decimal("0.00")
    assert second.payment_status == "paid"
    assert second.receipt.transaction_type == "due_payment"

    assert members.get_member(database, m.id).paid_amount == Decimal("2000.00")
    (invoice,) = billing.list_invoices(database, m.id)
    assert invoice.status == "paid"


def test_payment_above_due_is_rejected_without_writes(database, make_member):
    m = make_member(paid_amount="1500")
    before = _receipt_count(database)

    with pytest.raises(ValidationError, match="cannot exceed due amount"):
        billing.record_payment(database, m.id, "500.01")

    assert _receipt_count(database) == before
    assert members.get_member(database, m.id).paid_amount == Decimal("1500.00")


def test_payment_without_due_is_rejected(database, make_member):
    m = make_member(paid_amount="2000")
    with pytest.raises(ValidationError, match="No due amount"):
        billing.record_payment(database, m.id, "10")


def test_zero_payment_is_rejected(database, make_member):
    m = make_member()
    with pytest.raises(ValidationError, match="greater than zero"):
        billing.record_payment(database, m.id, "0")


def test_payment_for_unknown_member(database):
    with pytest.raises(NotFoundError):
        billing.record_payment(database, 999, "10")


def test_clearing_due_reactivates_inactive_member(database, make_member):
    m = make_member(paid_amount="1000")
    members.update_member(database, m.id, {"status": "inactive"})

    billing.record_payment(database, m.id, "1000")

    assert members.get_member(database, m.id).status == "active"


def test_recalculate_repairs_cached_paid_amount(database, make_member):
    m = make_member(paid_amount="1200")
    database.execute("UPDATE members SET paid_amount = 0 WHERE id = ?", (m.id,))

    totals = billing.recalculate_member_totals(database, m.id)

    assert totals.paid == Decimal("1200.00")
    assert members.get_member(database, m.id).paid_amount == Decimal("1200.00")


def test_refresh_all_member_due_amounts(database, make_member):
    a = make_member(paid_amount="100")
    b = make_member(paid_amount="200")
    database.execute("UPDATE members SET paid_amount = 0")

    assert billing.refresh_all_member_due_amounts(database) == 2
    assert members.get_member(database, a.id).paid_amount == Decimal("100.00")
    assert members.get_member(database, b.id).paid_amount == Decimal("200.00")


def test_members_with_due_amounts(database, make_member):
    owing = make_member(paid_amount="500")
    make_member(paid_amount="2000")
    members.save_partial_member(
        database,
        {
            "name": "Half Done",
            "mobile_no": "9000000099",
            "email": "half@example.com",
            "occupation": "Engineer",
            "sex": "female",
            "date_of_birth": "1995-05-05",
            "address": "12 Main Road",
        },
    )

    everyone = billing.members_with_due_amounts(database)
    assert len(everyone) == 2

    (entry,) = billing.members_with_due_amounts(database, only_outstanding=True)
    assert entry.member.id == owing.id
    assert entry.totals.due == Decimal("1500.00")
    assert entry.unpaid_invoices == 1


def test_renewal_refused_while_due_outstanding(database, make_member, today):
    m = make_member(paid_amount="1000")
    with pytest.raises(ValidationError, match="outstanding due"):
        billing.renew_membership(database, m.id, "monthly", "1500", today=today)


def test_renewal_opens_a_new_billing_cycle(database, make_member, today):
    m = make_member(paid_amount="2000")
    renew_day = date(2026, 4, 16)

    result = billing.renew_membership(
        database, m.id, "quarterly", "4000", amount_paid="1000", payment_type="card", today=renew_day
    )

    assert result.member.subscription_start_date == "2026-04-16"
    assert result.member.subscription_end_date == "2026-07-16"
    assert result.member.membership_fees == Decimal("4000.00")
    assert result.receipt.transaction_type == "renewal"
    assert result.invoice.status == "partial"

    totals = billing.member_totals(database, m.id)
    assert totals.paid == Decimal("1000.00")
    assert totals.due == Decimal("3000.00")

    billing.record_payment(database, m.id, "3000")
    assert billing.member_totals(database, m.id).due == Decimal("0.00")


def test_renewal_defaults_to_paying_in_full(database, make_member, today):
    m = make_member(paid_amount="2000")
    result = billing.renew_membership(database, m.id, "monthly", "1500", today=today)
    assert result.receipt.amount_paid == Decimal("1500.00")
    assert billing.member_totals(database, m.id).due == Decimal("0.00")


def test_receipt_versions_do_not_double_count(database, make_member):
    m = make_member(paid_amount="1200")
    first = billing.member_payment_history(database, m.id)[0]

    receipts.create_receipt_version(database, first.id, {"amount_paid": "1000"})

    totals = billing.member_totals(database, m.id)
    assert totals.paid == Decimal("1000.00")
    assert totals.due == Decimal("1000.00")


def test_batch_subscription_status_update_is_idempotent(database, make_member, today):
    expired = make_member(
        subscription_start_date="2026-01-01", subscription_end_date="2026-02-01", paid_amount="2000"
    )
    soon = make_member(subscription_start_date="2026-02-18", subscription_end_date="2026-03-18")
    make_member()

    later = date(2026, 3, 15)
    counts = billing.update_subscription_statuses(database, as_of=later, window_days=7)
    assert counts.total == 0

    counts = billing.update_subscription_statuses(database, as_of=date(2026, 3, 19), window_days=7)
    assert counts.expired == 1
    assert members.get_member(database, soon.id).subscription_status == "expired"
    assert members.get_member(database, soon.id).status == "inactive"
    assert members.get_member(database, expired.id).subscription_status == "expired"

    again = billing.update_subscription_statuses(database, as_of=date(2026, 3, 19), window_days=7)
    assert again.total == 0


def test_frozen_members_are_left_alone_by_status_refresh(database, make_member):
    m = make_member()
    members.update_member(database, m.id, {"status": "frozen"})

    billing.update_subscription_statuses(database, as_of=date(2027, 1, 1))

    frozen = members.get_member(database, m.id)
    assert frozen.status == "frozen"
    assert frozen.subscription_status == "active"


def _invoice_view(database, member_id):
    return [(i.invoice_number, i.status, i.paid_amount) for i in billing.list_invoices(database, member_id)]


def test_manual_receipt_settles_the_cycle_invoice(database, make_member):
    m = make_member()

    receipts.create_receipt(database, {"member_id": m.id, "amount": "2000", "payment_type": "cash"})

    assert _invoice_view(database, m.id) == [("INV1001", "paid", Decimal("2000.00"))]
    assert members.get_member(database, m.id).paid_amount == Decimal("2000.00")
    assert billing.member_totals(database, m.id).due == Decimal("0.00")
    (entry,) = billing.members_with_due_amounts(database)
    assert entry.unpaid_invoices == 0


def test_receipt_versions_and_deletes_carry_to_the_invoice(database, make_member):
    m = make_member(paid_amount="1200")
    first = billing.member_payment_history(database, m.id)[0]

    revised = receipts.create_receipt_version(database, first.id, {"amount_paid": "800"})
    (invoice,) = billing.list_invoices(database, m.id)
    assert (invoice.status, invoice.paid_amount) == ("partial", Decimal("800.00"))
    assert invoice.balance == billing.member_totals(database, m.id).due

    receipts.delete_receipt(database, revised.id)
    (invoice,) = billing.list_invoices(database, m.id)
    assert (invoice.status, invoice.paid_amount) == ("unpaid", Decimal("0.00"))
    assert members.get_member(database, m.id).paid_amount == Decimal("0.00")


def test_due_payment_after_renewal_lands_on_the_renewal_invoice(database, make_member):
    m = make_member()
    receipts.create_receipt(database, {"member_id": m.id, "amount": "2000", "payment_type": "cash"})
    renewal = billing.renew_membership(database, m.id, "monthly", "1000", amount_paid="0", today=date(2026, 4, 16))
    assert renewal.invoice.status == "unpaid"

    payment = billing.record_payment(database, m.id, "1000")

    assert payment.receipt.invoice_id == renewal.invoice.id
    assert _invoice_view(database, m.id) == [
        ("INV1002", "paid", Decimal("1000.00")),
        ("INV1001", "paid", Decimal("2000.00")),
    ]


def test_fee_edit_moves_the_invoice_total(database, make_member):
    m = make_member(paid_amount="1000")

    members.update_member(database, m.id, {"discount": "500"})

    (invoice,) = billing.list_invoices(database, m.id)
    assert invoice.total_amount == Decimal("1500.00")
    assert invoice.balance == billing.member_totals(database, m.id).due == Decimal("500.00")


def test_extending_the_end_date_reopens_an_expired_member(database, make_member):
    m = make_member(paid_amount="2000")
    later = date(2026, 5, 1)
    billing.update_subscription_statuses(database, as_of=later)
    lapsed = members.get_member(database, m.id)
    assert (lapsed.status, lapsed.subscription_status) == ("inactive", "expired")

    members.update_member(database, m.id, {"subscription_end_date": "2026-12-31"}, today=later)

    reopened = members.get_member(database, m.id)
    assert (reopened.status, reopened.subscription_status) == ("active", "active")


def test_batch_refresh_reopens_a_lapsed_member(database, make_member):
    m = make_member(paid_amount="2000")
    later = date(2026, 5, 1)
    billing.update_subscription_statuses(database, as_of=later)
    database.execute("UPDATE members SET subscription_end_date = '2026-05-05' WHERE id = ?", (m.id,))

    counts = billing.update_subscription_statuses(database, as_of=later)

    assert counts.expiring_soon == 1
    reopened = members.get_member(database, m.id)
    assert (reopened.status, reopened.subscription_status) == ("active", "expiring_soon")
    assert billing.update_subscription_statuses(database, as_of=later).total == 0
