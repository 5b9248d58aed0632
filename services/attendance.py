"""
services/attendance.py
Member and staff check-in / check-out.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

import db as storage
from errors import NotFoundError, ValidationError
from models import Attendance, StaffAttendance, from_row
from queries import attendance as q_attendance
from queries import staff_attendance as q_staff_attendance
from services import billing, staff as staff_service

logger = logging.getLogger(__name__)


def _stamp(when: datetime | None) -> datetime:
    return when or datetime.now()


def get_attendance(database: storage.Database, attendance_id: int) -> Attendance:
    record = from_row(Attendance, database.fetch_one(q_attendance.SELECT_BY_ID, (attendance_id,)))
    if record is None:
        raise NotFoundError("Attendance", attendance_id)
    return record


def check_in(database: storage.Database, member_id: int, when: datetime | None = None) -> Attendance:
    """One open visit per member per day."""
    when = _stamp(when)
    day = when.date().isoformat()
    with database.get_conn():
        member = billing.load_member(database, member_id)
        if member.is_partial:
            raise ValidationError("Partial registrations cannot check in.")
        if member.status == "frozen":
            raise ValidationError("Membership is frozen; check-in not allowed.")
        if database.fetch_one(q_attendance.SELECT_OPEN_FOR_MEMBER, (member_id, day)):
            raise ValidationError(f"{member.name} is already checked in.")
        attendance_id = database.execute(
            q_attendance.INSERT,
            {
                "member_id": member_id,
                "custom_member_id": member.custom_member_id,
                "member_name": member.name,
                "check_in": when.isoformat(timespec="seconds"),
                "date": day,
                "profile_image": member.member_image,
                "created_at": storage.now_iso(),
            },
        )
    logger.info("Member %s checked in", member.custom_member_id)
    return get_attendance(database, attendance_id)


def check_out(database: storage.Database, attendance_id: int, when: datetime | None = None) -> Attendance:
    when = _stamp(when)
    with database.get_conn():
        record = get_attendance(database, attendance_id)
        if record.check_out:
            raise ValidationError("This visit is already checked out.")
        if when.isoformat(timespec="seconds") < record.check_in:
            raise ValidationError("Check-out cannot be before check-in.")
        database.execute(q_attendance.CHECK_OUT, (when.isoformat(timespec="seconds"), attendance_id))
    return get_attendance(database, attendance_id)


def list_attendance(
    database: storage.Database,
    day: date | None = None,
    member_id: int | None = None,
) -> list[Attendance]:
    if member_id is not None:
        rows = database.fetch_all(q_attendance.SELECT_BY_MEMBER, (member_id,))
    else:
        rows = database.fetch_all(q_attendance.SELECT_BY_DATE, ((day or date.today()).isoformat(),))
    return [from_row(Attendance, r) for r in rows]


def attendance_between(database: storage.Database, start: date, end: date) -> list[Attendance]:
    rows = database.fetch_all(q_attendance.SELECT_BY_DATE_RANGE, (start.isoformat(), end.isoformat()))
    return [from_row(Attendance, r) for r in rows]


# ---------- Staff ----------

def get_staff_attendance(database: storage.Database, attendance_id: int) -> StaffAttendance:
    record = from_row(StaffAttendance, database.fetch_one(q_staff_attendance.SELECT_BY_ID, (attendance_id,)))
    if record is None:
        raise NotFoundError("Staff attendance", attendance_id)
    return record


def staff_check_in(
    database: storage.Database,
    staff_id: int,
    shift: str | None = None,
    when: datetime | None = None,
) -> StaffAttendance:
    when = _stamp(when)
    day = when.date().isoformat()
    with database.get_conn():
        person = staff_service.get_staff(database, staff_id)
        if person.status != "active":
            raise ValidationError(f"{person.name} is not an active staff member.")
        if database.fetch_one(q_staff_attendance.SELECT_OPEN_FOR_STAFF, (staff_id, day)):
            raise ValidationError(f"{person.name} is already checked in.")
        attendance_id = database.execute(
            q_staff_attendance.INSERT,
            {
                "staff_id": staff_id,
                "staff_name": person.name,
                "role": person.role,
                "shift": shift,
                "check_in": when.isoformat(timespec="seconds"),
                "date": day,
                "created_at": storage.now_iso(),
            },
        )
    return get_staff_attendance(database, attendance_id)


def staff_check_out(database: storage.Database, attendance_id: int, when: datetime | None = None) -> StaffAttendance:
    when = _stamp(when)
    with database.get_conn():
        record = get_staff_attendance(database, attendance_id)
        if record.check_out:
            raise ValidationError("This shift is already checked out.")
        database.execute(q_staff_attendance.CHECK_OUT, (when.isoformat(timespec="seconds"), attendance_id))
    return get_staff_attendance(database, attendance_id)


def list_staff_attendance(
    database: storage.Database,
    day: date | None = None,
    staff_id: int | None = None,
) -> list[StaffAttendance]:
    if staff_id is not None:
        rows = database.fetch_all(q_staff_attendance.SELECT_BY_STAFF, (staff_id,))
    else:
        rows = database.fetch_all(q_staff_attendance.SELECT_BY_DATE, ((day or date.today()).isoformat(),))
    return [from_row(StaffAttendance, r) for r in rows]
