from datetime import date
from decimal import Decimal

import pytest

from errors import ValidationError
from services import billing, enquiries


def _enquiry(database, **overrides):
    data = {
        "name": "Sara Khan",
        "mobile_no": "9000000020",
        "interested_in": ["gym", "cardio"],
        "membership_fees": "1500",
        "payment_mode": "upi",
    }
    data.update(overrides)
    return enquiries.create_enquiry(database, data, created_by="desk")


def test_numbers_and_defaults(database):
    first = _enquiry(database)
    second = _enquiry(database, name="Imran")

    assert (first.enquiry_number, second.enquiry_number) == ("ENQ001", "ENQ002")
    assert first.status == "new"
    assert first.interested_in == ("gym", "cardio")
    assert first.membership_fees == Decimal("1500.00")
    assert first.date_of_enquiry == date.today().isoformat()


def test_validation(database):
    with pytest.raises(ValidationError) as info:
        _enquiry(database, name=" ", mobile_no="1", status="maybe")
    assert len(info.value.errors) == 3


def test_follow_ups_due(database):
    _enquiry(database, follow_up_date="2026-03-10")
    _enquiry(database, name="Later", follow_up_date="2026-04-01")
    closed = _enquiry(database, name="Closed", follow_up_date="2026-03-01")
    enquiries.update_enquiry(database, closed.id, {"status": "closed"})

    due = enquiries.follow_ups_due(database, date(2026, 3, 15))

    assert [e.name for e in due] == ["Sara Khan"]


def test_status_cannot_be_set_to_converted_by_hand(database):
    e = _enquiry(database)
    with pytest.raises(ValidationError, match="conversion"):
        enquiries.update_enquiry(database, e.id, {"status": "converted"})


def test_conversion_creates_member_and_links(database, today):
    e = _enquiry(database)

    member = enquiries.convert_enquiry_to_member(
        database, e.id, {"paid_amount": "1000", "registration_fee": "500"}, today=today
    )

    assert member.name == "Sara Khan"
    assert member.services == ("gym", "cardio")
    assert member.payment_mode == "upi"
    assert billing.member_totals(database, member.id).due == Decimal("1000.00")
    converted = enquiries.get_enquiry(database, e.id)
    assert converted.status == "converted"
    assert converted.converted_to_member_id == member.id


def test_converting_twice_is_rejected(database, today):
    e = _enquiry(database)
    enquiries.convert_enquiry_to_member(database, e.id, today=today)
    with pytest.raises(ValidationError, match="already been converted"):
        enquiries.convert_enquiry_to_member(database, e.id, today=today)


def test_failed_conversion_leaves_enquiry_open(database, today):
    e = _enquiry(database, mobile_no="9000000021")
    with pytest.raises(ValidationError):
        enquiries.convert_enquiry_to_member(database, e.id, {"paid_amount": "99999"}, today=today)
    assert enquiries.get_enquiry(database, e.id).status == "new"
