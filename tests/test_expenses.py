from datetime import date
from decimal import Decimal

import pytest

from errors import ValidationError
from services import expenses, masters


def _expense(database, **overrides):
    data = {"category": "maintenance", "description": "Treadmill belt", "amount": "3200", "date": "2026-03-05"}
    data.update(overrides)
    return expenses.create_expense(database, data, created_by="admin")


def test_create_and_filter(database):
    belt = _expense(database)
    _expense(database, category="rent", description="March rent", amount="25000", date="2026-03-01")
    _expense(database, category="rent", description="April rent", amount="25000", date="2026-04-01")

    assert belt.amount == Decimal("3200.00")
    assert belt.created_by == "admin"
    assert len(expenses.list_expenses(database, category="rent")) == 2
    assert len(expenses.list_expenses(database, start=date(2026, 3, 1), end=date(2026, 3, 31))) == 2
    assert len(expenses.list_expenses(database)) == 3


def test_date_defaults_to_today(database):
    e = expenses.create_expense(database, {"category": "other", "description": "Cleaning", "amount": "150"})
    assert e.date == date.today().isoformat()


def test_validation(database):
    with pytest.raises(ValidationError) as info:
        _expense(database, category="parties", description="", amount="0", date="March")
    assert len(info.value.errors) == 4


def test_inactive_category_is_refused(database):
    rent = next(c for c in masters.list_items(database, "expense_categories") if c.name == "rent")
    masters.deactivate_item(database, "expense_categories", rent.id)
    with pytest.raises(ValidationError, match="Unknown expense category"):
        _expense(database, category="rent")


def test_update_and_delete(database):
    e = _expense(database)
    updated = expenses.update_expense(database, e.id, {"amount": "3500", "description": "Belt + oil"})
    assert updated.amount == Decimal("3500.00")
    assert updated.category == "maintenance"

    expenses.delete_expense(database, e.id)
    assert expenses.list_expenses(database) == []


def test_monthly_report(database):
    _expense(database)
    _expense(database, description="Mirror", amount="800", date="2026-03-20")
    _expense(database, category="rent", description="Rent", amount="25000", date="2026-03-01")
    _expense(database, category="rent", description="Rent", amount="25000", date="2026-02-01")

    df = expenses.monthly_expense_report(database, 3, 2026)

    totals = dict(zip(df["category"], df["total"]))
    assert totals == {"rent": Decimal("25000.00"), "maintenance": Decimal("4000.00")}
    assert expenses.monthly_expense_report(database, 1, 2026).columns.tolist() == ["category", "entries", "total"]
