"""
services/measurements.py
Body measurements per member (numbered 1, 2, 3... per member).
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date

import db as storage
from errors import NotFoundError, ValidationError
from models import BodyMeasurement, from_row
from queries import body_measurements as q_measurements
from services import billing
from utils import age_on, calculate_bmi, calculate_bmr

logger = logging.getLogger(__name__)

METRIC_FIELDS = (
    "weight",
    "height",
    "neck",
    "chest",
    "arms",
    "fore_arms",
    "wrist",
    "tummy",
    "waist",
    "hips",
    "thighs",
    "calf",
    "fat_percentage",
    "bmi",
    "bmr",
    "vf",
)
EDITABLE_FIELDS = ("measurement_date", "age", "notes") + METRIC_FIELDS


def _prepare(data: dict, sex: str | None, date_of_birth: str | None) -> dict:
    errors: list[str] = []
    for key in METRIC_FIELDS:
        value = data.get(key)
        if value in (None, ""):
            data[key] = None
            continue
        try:
            data[key] = float(value)
        except (TypeError, ValueError):
            errors.append(f"{key.replace('_', ' ').capitalize()} must be numeric.")
            continue
        if data[key] < 0:
            errors.append(f"{key.replace('_', ' ').capitalize()} cannot be negative.")
    try:
        measured_on = date.fromisoformat(str(data.get("measurement_date")))
    except ValueError:
        errors.append("Measurement date must be a valid ISO date (YYYY-MM-DD).")
        measured_on = None
    if errors:
        raise ValidationError(errors)

    if data.get("age") in (None, "") and measured_on:
        data["age"] = age_on(date_of_birth, measured_on)
    if data["bmi"] is None:
        data["bmi"] = calculate_bmi(data["weight"], data["height"])
    if data["bmr"] is None:
        data["bmr"] = calculate_bmr(data["weight"], data["height"], data.get("age"), sex)
    return data


def get_measurement(database: storage.Database, measurement_id: int) -> BodyMeasurement:
    record = from_row(BodyMeasurement, database.fetch_one(q_measurements.SELECT_BY_ID, (measurement_id,)))
    if record is None:
        raise NotFoundError("Body measurement", measurement_id)
    return record


def list_measurements(database: storage.Database, member_id: int) -> list[BodyMeasurement]:
    rows = database.fetch_all(q_measurements.SELECT_BY_MEMBER, (member_id,))
    return [from_row(BodyMeasurement, r) for r in rows]


def add_measurement(
    database: storage.Database,
    member_id: int,
    data: dict,
    recorded_by: str = "System",
) -> BodyMeasurement:
    """BMI and BMR are filled in from weight/height/age when not given."""
    with database.get_conn():
        member = billing.load_member(database, member_id)
        params = {key: None for key in EDITABLE_FIELDS}
        params.update({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
        params["measurement_date"] = params.get("measurement_date") or date.today().isoformat()
        params = _prepare(params, member.sex, member.date_of_birth)
        params.update(
            member_id=member_id,
            custom_member_id=member.custom_member_id,
            member_name=member.name,
            serial_number=database.fetch_one(q_measurements.NEXT_SERIAL, (member_id,))["n"],
            recorded_by=recorded_by,
            created_at=storage.now_iso(),
        )
        measurement_id = database.execute(q_measurements.INSERT, params)
    logger.info("Measurement #%s recorded for member %s", params["serial_number"], member.custom_member_id)
    return get_measurement(database, measurement_id)


def update_measurement(database: storage.Database, measurement_id: int, changes: dict) -> BodyMeasurement:
    with database.get_conn():
        current = get_measurement(database, measurement_id)
        member = billing.load_member(database, current.member_id)
        params = {**dataclasses.asdict(current), **{k: v for k, v in changes.items() if k in EDITABLE_FIELDS}}
        # Recompute derived values unless explicitly supplied.
        for key in ("bmi", "bmr"):
            if key not in changes:
                params[key] = None
        params = _prepare(params, member.sex, member.date_of_birth)
        database.execute(q_measurements.UPDATE, params)
    return get_measurement(database, measurement_id)


def delete_measurement(database: storage.Database, measurement_id: int) -> None:
    get_measurement(database, measurement_id)
    database.execute(q_measurements.DELETE, (measurement_id,))
