"""
services/reminders.py
Message templates and the outgoing WhatsApp queue.

Messages are only queued here; delivery is done outside the app and reported
back with mark_message_sent / mark_message_failed.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

import db as storage
from errors import NotFoundError, ValidationError
from models import MESSAGE_TYPES, Member, Message, MessageTemplate, Receipt, from_row
from queries import attendance as q_attendance
from queries import members as q_members
from queries import whatsapp_messages as q_messages
from queries import whatsapp_templates as q_templates
from services import billing

logger = logging.getLogger(__name__)

DEFAULT_GYM_NAME = "our gym"


class _Placeholders(dict):
    def __missing__(self, key):
        return "{" + key + "}"


def render_template(content: str, **values) -> str:
    """Fill {placeholders}; unknown ones are left as they are."""
    return content.format_map(_Placeholders({k: "" if v is None else v for k, v in values.items()}))


# ---------- Templates ----------

def list_templates(database: storage.Database) -> list[MessageTemplate]:
    return [from_row(MessageTemplate, r) for r in database.fetch_all(q_templates.SELECT_ALL)]


def get_template(database: storage.Database, message_type: str) -> MessageTemplate:
    template = from_row(MessageTemplate, database.fetch_one(q_templates.SELECT_BY_TYPE, (message_type,)))
    if template is None:
        raise NotFoundError("Message template", message_type)
    return template


def update_template(
    database: storage.Database,
    message_type: str,
    content: str,
    is_active: bool = True,
) -> MessageTemplate:
    get_template(database, message_type)
    if not str(content or "").strip():
        raise ValidationError("Template content cannot be empty.")
    database.execute(q_templates.UPDATE, (content, 1 if is_active else 0, storage.now_iso(), message_type))
    return get_template(database, message_type)


# ---------- Queue ----------

def get_message(database: storage.Database, message_id: int) -> Message:
    message = from_row(Message, database.fetch_one(q_messages.SELECT_BY_ID, (message_id,)))
    if message is None:
        raise NotFoundError("Message", message_id)
    return message


def list_messages(database: storage.Database, status: str | None = None) -> list[Message]:
    if status:
        rows = database.fetch_all(q_messages.SELECT_BY_STATUS, (status,))
    else:
        rows = database.fetch_all(q_messages.SELECT_ALL)
    return [from_row(Message, r) for r in rows]


def queue_message(
    database: storage.Database,
    member: Member,
    message_type: str,
    values: dict | None = None,
    gym_name: str = DEFAULT_GYM_NAME,
    scheduled_at: str | None = None,
) -> Message | None:
    """
    Render the member's message and add it to the queue. Returns None when
    the template is switched off, the member has no mobile number, or the
    same message type was already queued for the member today.
    """
    if message_type not in MESSAGE_TYPES:
        raise ValidationError(f"Unknown message type: {message_type!r}")
    template = get_template(database, message_type)
    if not template.is_active or not member.mobile_no:
        return None
    now = storage.now_iso()
    if database.fetch_one(q_messages.SELECT_SAME_DAY, (member.id, message_type, now[:10])):
        logger.debug("Skipping duplicate %s for member %s", message_type, member.id)
        return None

    content = render_template(
        template.template_content,
        member_name=member.name,
        custom_member_id=member.custom_member_id,
        gym_name=gym_name,
        end_date=member.subscription_end_date,
        **(values or {}),
    )
    message_id = database.execute(
        q_messages.INSERT,
        {
            "member_id": member.id,
            "member_name": member.name,
            "member_phone": member.mobile_no,
            "message_type": message_type,
            "message_content": content,
            "status": "scheduled" if scheduled_at else "pending",
            "scheduled_at": scheduled_at,
            "created_at": now,
        },
    )
    return get_message(database, message_id)


def queue_receipt_message(
    database: storage.Database,
    receipt: Receipt,
    gym_name: str = DEFAULT_GYM_NAME,
) -> Message | None:
    if receipt.member_id is None:
        return None
    member = billing.load_member(database, receipt.member_id)
    return queue_message(
        database,
        member,
        "receipt_created",
        {"amount_paid": receipt.amount_paid, "receipt_number": receipt.receipt_number},
        gym_name=gym_name,
    )


def queue_welcome_message(
    database: storage.Database,
    member: Member,
    gym_name: str = DEFAULT_GYM_NAME,
) -> Message | None:
    return queue_message(database, member, "welcome_message", gym_name=gym_name)


def queue_expiry_reminders(
    database: storage.Database,
    today: date | None = None,
    days: int = 7,
    gym_name: str = DEFAULT_GYM_NAME,
) -> list[Message]:
    today = today or date.today()
    horizon = today + timedelta(days=days)
    queued = []
    for row in database.fetch_all(q_members.SELECT_EXPIRING, (today.isoformat(), horizon.isoformat())):
        member = from_row(Member, row)
        left = (date.fromisoformat(member.subscription_end_date) - today).days
        message = queue_message(database, member, "membership_expiring", {"days": left}, gym_name=gym_name)
        if message:
            queued.append(message)
    logger.info("Queued %d expiry reminders", len(queued))
    return queued


def queue_renewal_reminders(database: storage.Database, gym_name: str = DEFAULT_GYM_NAME) -> list[Message]:
    """Members whose subscription has run out."""
    queued = []
    for row in database.fetch_all(q_members.SELECT_ALL):
        member = from_row(Member, row)
        if member.is_partial or member.status == "frozen" or member.subscription_status != "expired":
            continue
        message = queue_message(database, member, "renewal_reminder", gym_name=gym_name)
        if message:
            queued.append(message)
    return queued


def queue_attendance_reminders(
    database: storage.Database,
    today: date | None = None,
    days: int = 7,
    gym_name: str = DEFAULT_GYM_NAME,
) -> list[Message]:
    """Active members with no visit in the last `days` days."""
    today = today or date.today()
    cutoff = (today - timedelta(days=days)).isoformat()
    queued = []
    for row in database.fetch_all(q_attendance.SELECT_ABSENT_ACTIVE_MEMBERS, (cutoff,)):
        member = from_row(Member, row)
        message = queue_message(database, member, "attendance_reminder", {"days": days}, gym_name=gym_name)
        if message:
            queued.append(message)
    logger.info("Queued %d attendance reminders", len(queued))
    return queued


def queue_due_reminders(database: storage.Database, gym_name: str = DEFAULT_GYM_NAME) -> list[Message]:
    queued = []
    for entry in billing.members_with_due_amounts(database, only_outstanding=True):
        message = queue_message(
            database, entry.member, "due_amount_reminder", {"due_amount": entry.totals.due}, gym_name=gym_name
        )
        if message:
            queued.append(message)
    logger.info("Queued %d due reminders", len(queued))
    return queued


def queue_birthday_messages(
    database: storage.Database,
    today: date | None = None,
    gym_name: str = DEFAULT_GYM_NAME,
) -> list[Message]:
    today = today or date.today()
    queued = []
    for row in database.fetch_all(q_members.SELECT_BIRTHDAYS, (today.strftime("%m-%d"),)):
        message = queue_message(database, from_row(Member, row), "birthday_wish", gym_name=gym_name)
        if message:
            queued.append(message)
    return queued


# ---------- Delivery status ----------

def mark_message_sent(database: storage.Database, message_id: int) -> Message:
    get_message(database, message_id)
    database.execute(q_messages.MARK_SENT, (storage.now_iso(), message_id))
    return get_message(database, message_id)


def mark_message_failed(database: storage.Database, message_id: int, error: str) -> Message:
    get_message(database, message_id)
    database.execute(q_messages.MARK_FAILED, (error, message_id))
    logger.warning("Message %s failed: %s", message_id, error)
    return get_message(database, message_id)


def retry_message(database: storage.Database, message_id: int) -> Message:
    message = get_message(database, message_id)
    if message.status != "failed":
        raise ValidationError("Only failed messages can be retried.")
    database.execute(q_messages.RETRY, (message_id,))
    return get_message(database, message_id)


def delete_message(database: storage.Database, message_id: int) -> None:
    get_message(database, message_id)
    database.execute(q_messages.DELETE, (message_id,))
