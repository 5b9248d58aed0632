"""
services/sample_data.py
Demo rows for trying the app out (adds new rows each run).
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

import db as storage
from services import enquiries, expenses, members, staff

logger = logging.getLogger(__name__)


def insert_sample_data(database: storage.Database, today: date | None = None) -> None:
    """
    Three members (one expiring soon, one with a balance, one expired),
    a trainer, an enquiry and an expense.
    """
    today = today or date.today()

    # Member 1: paid in full, expires in ~5 days
    members.create_member(
        database,
        {
            "name": "Ahmed Hassan",
            "mobile_no": "9000000001",
            "plan_type": "monthly",
            "package_fee": "1500",
            "registration_fee": "500",
            "paid_amount": "2000",
            "subscription_start_date": (today - timedelta(days=25)).isoformat(),
            "subscription_end_date": (today + timedelta(days=5)).isoformat(),
        },
        created_by="Sample data",
        today=today,
    )
    # Member 2: quarterly plan with a balance due
    members.create_member(
        database,
        {
            "name": "Mona Ali",
            "mobile_no": "9000000002",
            "email": "mona@example.com",
            "plan_type": "quarterly",
            "package_fee": "4000",
            "discount": "200",
            "paid_amount": "2500",
            "payment_mode": "upi",
            "subscription_start_date": (today - timedelta(days=10)).isoformat(),
        },
        created_by="Sample data",
        today=today,
    )
    # Member 3: expired
    members.create_member(
        database,
        {
            "name": "Omar Samy",
            "mobile_no": "9000000003",
            "plan_type": "monthly",
            "package_fee": "1500",
            "paid_amount": "1500",
            "subscription_start_date": (today - timedelta(days=60)).isoformat(),
            "subscription_end_date": (today - timedelta(days=2)).isoformat(),
        },
        created_by="Sample data",
        today=today,
    )

    staff.create_staff(
        database,
        {"name": "Ravi Kumar", "phone": "9000000010", "role": "trainer", "salary": "18000"},
    )
    enquiries.create_enquiry(
        database,
        {
            "name": "Sara Khan",
            "mobile_no": "9000000020",
            "interested_in": ["gym", "cardio"],
            "membership_fees": "1500",
            "follow_up_date": (today + timedelta(days=2)).isoformat(),
        },
        created_by="Sample data",
    )
    expenses.create_expense(
        database,
        {"category": "maintenance", "description": "Treadmill belt replacement", "amount": "3200"},
        created_by="Sample data",
    )
    logger.info("Sample data inserted")
