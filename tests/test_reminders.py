from datetime import date, datetime

import pytest

from errors import NotFoundError, ValidationError
from services import attendance, members, receipts, reminders, staff


def test_render_template_leaves_unknown_placeholders():
    text = reminders.render_template("Hi {member_name}, due {due_amount} at {gym_name}", member_name="Asha", gym_name=None)
    assert text == "Hi Asha, due {due_amount} at "


def test_templates_are_seeded(database):
    kinds = {t.message_type for t in reminders.list_templates(database)}
    assert {"receipt_created", "membership_expiring", "birthday_wish", "welcome_message"} <= kinds


def test_update_template(database):
    updated = reminders.update_template(database, "welcome_message", "Hello {member_name}!", is_active=False)
    assert updated.template_content == "Hello {member_name}!"
    assert not updated.is_active
    with pytest.raises(ValidationError):
        reminders.update_template(database, "welcome_message", "   ")
    with pytest.raises(NotFoundError):
        reminders.update_template(database, "no_such_type", "x")


def test_welcome_message_is_rendered_and_deduplicated(database, make_member):
    m = make_member(name="Asha")

    message = reminders.queue_welcome_message(database, m, gym_name="Iron Temple")

    assert message.status == "pending"
    assert message.member_phone == m.mobile_no
    assert "Welcome to Iron Temple, Asha!" in message.message_content
    assert f"member ID is {m.custom_member_id}" in message.message_content
    assert reminders.queue_welcome_message(database, m) is None
    assert len(reminders.list_messages(database)) == 1


def test_inactive_template_queues_nothing(database, make_member):
    reminders.update_template(database, "welcome_message", "Hi {member_name}", is_active=False)
    assert reminders.queue_welcome_message(database, make_member()) is None


def test_unknown_message_type(database, make_member):
    with pytest.raises(ValidationError):
        reminders.queue_message(database, make_member(), "spam")


def test_scheduled_message(database, make_member):
    message = reminders.queue_message(
        database, make_member(), "birthday_wish", scheduled_at="2026-03-16T09:00:00"
    )
    assert message.status == "scheduled"


def test_receipt_message(database, make_member):
    m = make_member(paid_amount="1500")
    (receipt,) = receipts.receipts_for_member(database, m.id)

    message = reminders.queue_receipt_message(database, receipt)

    assert "Rs.1500.00" in message.message_content
    assert f"#{receipt.receipt_number}" in message.message_content


def test_staff_receipt_gets_no_message(database):
    person = staff.create_staff(database, {"name": "Ravi", "phone": "9000000010", "role": "trainer", "salary": "10"})
    assert reminders.queue_receipt_message(database, staff.pay_salary(database, person.id)) is None


def test_expiry_reminders(database, make_member, today):
    soon = make_member(subscription_end_date="2026-03-18")
    make_member()

    queued = reminders.queue_expiry_reminders(database, today=today, days=7)

    assert [q.member_id for q in queued] == [soon.id]
    assert "expires in 3 day(s) on 2026-03-18" in queued[0].message_content


def test_renewal_reminders_skip_frozen(database, make_member):
    expired = make_member(subscription_start_date="2026-01-01", subscription_end_date="2026-02-01")
    frozen = make_member(subscription_start_date="2026-01-01", subscription_end_date="2026-02-01")
    members.update_member(database, frozen.id, {"status": "frozen"})
    make_member()

    queued = reminders.queue_renewal_reminders(database)

    assert [q.member_id for q in queued] == [expired.id]


def test_attendance_reminders(database, make_member, today):
    regular = make_member()
    absent = make_member()
    attendance.check_in(database, regular.id, when=datetime(2026, 3, 12, 7, 0))

    queued = reminders.queue_attendance_reminders(database, today=today, days=7)

    assert [q.member_id for q in queued] == [absent.id]


def test_due_reminders(database, make_member):
    owing = make_member(paid_amount="500")
    make_member(paid_amount="2000")

    (message,) = reminders.queue_due_reminders(database)

    assert message.member_id == owing.id
    assert "Rs.1500.00" in message.message_content


def test_birthday_messages(database, make_member):
    make_member(name="Birthday Person", date_of_birth="1990-03-15")
    make_member(date_of_birth="1990-07-01")

    (message,) = reminders.queue_birthday_messages(database, today=date(2026, 3, 15))

    assert message.message_content.startswith("Happy birthday Birthday Person!")


def test_delivery_status_flow(database, make_member):
    message = reminders.queue_welcome_message(database, make_member())

    with pytest.raises(ValidationError, match="Only failed"):
        reminders.retry_message(database, message.id)

    failed = reminders.mark_message_failed(database, message.id, "number not on WhatsApp")
    assert failed.status == "failed"
    assert failed.error_message == "number not on WhatsApp"

    retried = reminders.retry_message(database, message.id)
    assert (retried.status, retried.retry_count) == ("pending", 1)

    sent = reminders.mark_message_sent(database, message.id)
    assert sent.status == "sent"
    assert sent.sent_at
    assert [m.id for m in reminders.list_messages(database, status="sent")] == [message.id]

    reminders.delete_message(database, message.id)
    assert reminders.list_messages(database) == []
