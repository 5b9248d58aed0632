"""
services/reports.py
Dashboard counts, monthly income/expense summaries and CSV exports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

import pandas as pd

import db as storage
from models import Member, ZERO, from_minor, from_row
from queries import expenses as q_expenses
from queries import members as q_members
from queries import receipts as q_receipts
from services import billing, enquiries, receipts
from utils import members_to_csv_bytes, receipts_to_csv_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthlyReport:
    month: int
    year: int
    member_income: Decimal
    receipt_count: int
    expenses: Decimal
    payroll: Decimal
    net: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    total_members: int
    active_members: int
    inactive_members: int
    frozen_members: int
    partial_members: int
    expiring_soon: int
    expired: int
    members_with_dues: int
    total_due: Decimal
    open_enquiries: int
    month_income: Decimal
    month_expenses: Decimal


def _month_key(month: int, year: int) -> str:
    return f"{year:04d}-{month:02d}"


def monthly_transaction_report(database: storage.Database, month: int, year: int) -> MonthlyReport:
    """
    Income is member receipts (current versions only). Expenses and staff
    payroll are both outgoings.
    """
    key = _month_key(month, year)
    income_row = database.fetch_one(q_receipts.MONTHLY_MEMBER_INCOME, (key,))
    income = from_minor(income_row["total"])
    spent = from_minor(database.fetch_one(q_expenses.MONTHLY_TOTAL, (key,))["total"])
    payroll = from_minor(database.fetch_one(q_receipts.MONTHLY_PAYROLL, (key,))["total"])
    return MonthlyReport(
        month=month,
        year=year,
        member_income=income,
        receipt_count=int(income_row["n"]),
        expenses=spent,
        payroll=payroll,
        net=income - spent - payroll,
    )


def revenue_summary_by_month(database: storage.Database) -> pd.DataFrame:
    rows = database.fetch_all(q_receipts.REVENUE_BY_MONTH)
    if not rows:
        return pd.DataFrame(columns=["month", "revenue"])
    df = pd.DataFrame([dict(r) for r in rows])
    df["revenue"] = df["revenue"].map(from_minor)
    return df


def members_expiring(database: storage.Database, today: date | None = None, days: int = 7) -> list[Member]:
    today = today or date.today()
    rows = database.fetch_all(
        q_members.SELECT_EXPIRING, (today.isoformat(), (today + timedelta(days=days)).isoformat())
    )
    return [from_row(Member, r) for r in rows]


def dashboard_summary(database: storage.Database, today: date | None = None) -> DashboardSummary:
    today = today or date.today()
    by_status = {r["status"]: r["c"] for r in database.fetch_all(q_members.COUNT_BY_STATUS)}
    by_subscription = {r["subscription_status"]: r["c"] for r in database.fetch_all(q_members.COUNT_BY_SUBSCRIPTION)}
    dues = billing.members_with_due_amounts(database, only_outstanding=True)
    month = monthly_transaction_report(database, today.month, today.year)
    open_enquiries = [e for e in enquiries.list_enquiries(database) if e.status not in ("converted", "closed")]
    return DashboardSummary(
        total_members=sum(by_status.values()),
        active_members=by_status.get("active", 0),
        inactive_members=by_status.get("inactive", 0),
        frozen_members=by_status.get("frozen", 0),
        partial_members=by_status.get("partial", 0),
        expiring_soon=by_subscription.get("expiring_soon", 0),
        expired=by_subscription.get("expired", 0),
        members_with_dues=len(dues),
        total_due=sum((d.totals.due for d in dues), ZERO),
        open_enquiries=len(open_enquiries),
        month_income=month.member_income,
        month_expenses=month.expenses + month.payroll,
    )


def export_members_csv(database: storage.Database) -> bytes:
    rows = database.fetch_all(q_members.SELECT_ALL)
    return members_to_csv_bytes([from_row(Member, r) for r in rows])


def export_receipts_csv(database: storage.Database, start: date | None = None, end: date | None = None) -> bytes:
    if start and end:
        found = receipts.receipts_between(database, start, end)
    else:
        found = receipts.list_receipts(database)
    return receipts_to_csv_bytes(found)
