"""
services/masters.py
Master data: packages, tax settings, occupations, payment types, body
measurement fields and expense categories.

Items are never deleted, only deactivated; records that already use a value
keep it.
"""

from __future__ import annotations

import dataclasses
import logging
import sqlite3
from dataclasses import dataclass
from types import ModuleType

import db as storage
from errors import NotFoundError, ValidationError
from models import (
    BodyMeasurementField,
    CUSTOM_PLAN,
    ExpenseCategory,
    Occupation,
    PLAN_MONTHS,
    Package,
    PaymentType,
    TaxSetting,
    from_row,
    money,
    to_params,
)
from queries import master_body_measurement_fields as q_fields
from queries import master_expense_categories as q_expense_categories
from queries import master_occupations as q_occupations
from queries import master_packages as q_packages
from queries import master_payment_types as q_payment_types
from queries import master_tax_settings as q_tax_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MasterKind:
    model: type
    queries: ModuleType
    label: str
    name_field: str = "name"


KINDS = {
    "packages": MasterKind(Package, q_packages, "Package"),
    "tax_settings": MasterKind(TaxSetting, q_tax_settings, "Tax setting"),
    "occupations": MasterKind(Occupation, q_occupations, "Occupation"),
    "payment_types": MasterKind(PaymentType, q_payment_types, "Payment type"),
    "body_measurement_fields": MasterKind(
        BodyMeasurementField, q_fields, "Measurement field", name_field="field_name"
    ),
    "expense_categories": MasterKind(ExpenseCategory, q_expense_categories, "Expense category"),
}


def _kind(kind: str) -> MasterKind:
    try:
        return KINDS[kind]
    except KeyError:
        raise ValidationError(f"Unknown master list: {kind!r}") from None


def _validate(kind: str, data: dict) -> dict:
    meta = _kind(kind)
    errors: list[str] = []
    if not str(data.get(meta.name_field) or "").strip():
        errors.append(f"{meta.label} name is required.")

    if kind == "packages":
        duration_type = data.get("duration_type")
        if duration_type in PLAN_MONTHS:
            data["duration_months"] = PLAN_MONTHS[duration_type]
        elif duration_type == CUSTOM_PLAN:
            try:
                if int(data.get("duration_months") or 0) <= 0:
                    errors.append("Custom packages need a duration of at least 1 month.")
            except (TypeError, ValueError):
                errors.append("Duration (months) must be a whole number.")
        else:
            errors.append(f"Invalid duration type: {duration_type!r}")
        for key in ("price", "registration_fee", "discount"):
            label = key.replace("_", " ").capitalize()
            try:
                data[key] = money(data.get(key))
            except ValidationError:
                errors.append(f"{label} must be numeric.")
                continue
            if data[key] < 0:
                errors.append(f"{label} cannot be negative.")
    elif kind == "tax_settings":
        if not str(data.get("tax_type") or "").strip():
            errors.append("Tax type is required.")
        try:
            pct = float(data.get("percentage"))
            if not 0 <= pct <= 100:
                errors.append("Tax percentage must be between 0 and 100.")
        except (TypeError, ValueError):
            errors.append("Tax percentage must be numeric.")
    elif kind == "payment_types" and not str(data.get("display_name") or "").strip():
        data["display_name"] = str(data.get("name") or "").replace("_", " ").title()
    elif kind == "body_measurement_fields" and not str(data.get("display_name") or "").strip():
        errors.append("Display name is required.")

    if errors:
        raise ValidationError(errors)
    return data


def list_items(database: storage.Database, kind: str, include_inactive: bool = False) -> list:
    meta = _kind(kind)
    sql = meta.queries.SELECT_ALL if include_inactive else meta.queries.SELECT_ACTIVE
    return [from_row(meta.model, r) for r in database.fetch_all(sql)]


def get_item(database: storage.Database, kind: str, item_id: int):
    meta = _kind(kind)
    item = from_row(meta.model, database.fetch_one(meta.queries.SELECT_BY_ID, (item_id,)))
    if item is None:
        raise NotFoundError(meta.label, item_id)
    return item


def create_item(database: storage.Database, kind: str, data: dict):
    meta = _kind(kind)
    now = storage.now_iso()
    defaults = {f.name: f.default for f in dataclasses.fields(meta.model) if f.default is not dataclasses.MISSING}
    params = _validate(kind, {**defaults, **data})
    params.update(created_at=now, updated_at=now)
    try:
        item_id = database.execute(meta.queries.INSERT, to_params(meta.model, params))
    except sqlite3.IntegrityError:
        raise ValidationError(f"{meta.label} '{params[meta.name_field]}' already exists.") from None
    logger.info("%s created: %s", meta.label, params[meta.name_field])
    return get_item(database, kind, item_id)


def update_item(database: storage.Database, kind: str, item_id: int, changes: dict):
    meta = _kind(kind)
    current = dataclasses.asdict(get_item(database, kind, item_id))
    editable = {k: v for k, v in changes.items() if k not in ("id", "created_at", "updated_at")}
    params = _validate(kind, {**current, **editable})
    params["updated_at"] = storage.now_iso()
    try:
        database.execute(meta.queries.UPDATE, to_params(meta.model, params))
    except sqlite3.IntegrityError:
        raise ValidationError(f"{meta.label} '{params[meta.name_field]}' already exists.") from None
    return get_item(database, kind, item_id)


def set_item_active(database: storage.Database, kind: str, item_id: int, active: bool):
    meta = _kind(kind)
    get_item(database, kind, item_id)
    database.execute(meta.queries.SET_ACTIVE, (1 if active else 0, storage.now_iso(), item_id))
    return get_item(database, kind, item_id)


def deactivate_item(database: storage.Database, kind: str, item_id: int):
    return set_item_active(database, kind, item_id, False)


def tax_settings_by_ids(database: storage.Database, ids: list[int]) -> list[TaxSetting]:
    taxes = [get_item(database, "tax_settings", i) for i in ids]
    inactive = [t.name for t in taxes if not t.is_active]
    if inactive:
        raise ValidationError(f"Inactive tax settings cannot be applied: {', '.join(inactive)}")
    return taxes
