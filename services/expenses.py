"""
services/expenses.py
Gym expenses.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date

import pandas as pd

import db as storage
from errors import NotFoundError, ValidationError
from models import Expense, from_minor, from_row, money, to_params
from queries import expenses as q_expenses
from services import masters

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("category", "description", "amount", "date", "receipt")


def _validate(database: storage.Database, data: dict) -> list[str]:
    errors: list[str] = []
    categories = {c.name for c in masters.list_items(database, "expense_categories")}
    if not str(data.get("category") or "").strip():
        errors.append("Category is required.")
    elif data["category"] not in categories:
        errors.append(f"Unknown expense category: {data['category']!r}")
    if not str(data.get("description") or "").strip():
        errors.append("Description is required.")
    try:
        if money(data.get("amount")) <= 0:
            errors.append("Amount must be greater than zero.")
    except ValidationError:
        errors.append("Amount must be numeric.")
    try:
        date.fromisoformat(str(data.get("date")))
    except ValueError:
        errors.append("Date must be a valid ISO date (YYYY-MM-DD).")
    return errors


def get_expense(database: storage.Database, expense_id: int) -> Expense:
    expense = from_row(Expense, database.fetch_one(q_expenses.SELECT_BY_ID, (expense_id,)))
    if expense is None:
        raise NotFoundError("Expense", expense_id)
    return expense


def list_expenses(
    database: storage.Database,
    category: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Expense]:
    if category:
        rows = database.fetch_all(q_expenses.SELECT_BY_CATEGORY, (category,))
    elif start and end:
        rows = database.fetch_all(q_expenses.SELECT_BY_DATE_RANGE, (start.isoformat(), end.isoformat()))
    else:
        rows = database.fetch_all(q_expenses.SELECT_ALL)
    return [from_row(Expense, r) for r in rows]


def create_expense(database: storage.Database, data: dict, created_by: str = "System") -> Expense:
    params = {"receipt": None, **{k: v for k, v in data.items() if k in EDITABLE_FIELDS}}
    params["date"] = params.get("date") or date.today().isoformat()
    errors = _validate(database, params)
    if errors:
        raise ValidationError(errors)
    params.update(created_by=created_by, created_at=storage.now_iso())
    expense_id = database.execute(q_expenses.INSERT, to_params(Expense, params))
    logger.info("Expense %s recorded: %s %s", expense_id, params["category"], params["amount"])
    return get_expense(database, expense_id)


def update_expense(database: storage.Database, expense_id: int, changes: dict) -> Expense:
    params = {
        **dataclasses.asdict(get_expense(database, expense_id)),
        **{k: v for k, v in changes.items() if k in EDITABLE_FIELDS},
    }
    errors = _validate(database, params)
    if errors:
        raise ValidationError(errors)
    database.execute(q_expenses.UPDATE, to_params(Expense, params))
    return get_expense(database, expense_id)


def delete_expense(database: storage.Database, expense_id: int) -> None:
    get_expense(database, expense_id)
    database.execute(q_expenses.DELETE, (expense_id,))


def monthly_expense_report(database: storage.Database, month: int, year: int) -> pd.DataFrame:
    """Totals per category for one month."""
    rows = database.fetch_all(q_expenses.MONTHLY_BY_CATEGORY, (f"{year:04d}-{month:02d}",))
    if not rows:
        return pd.DataFrame(columns=["category", "entries", "total"])
    df = pd.DataFrame([dict(r) for r in rows])
    df["total"] = df["total"].map(from_minor)
    return df
