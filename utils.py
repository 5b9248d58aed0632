"""
utils.py
Validation, dates, body metrics, exports.
"""

from __future__ import annotations

import dataclasses
import re
from datetime import date, timedelta

import pandas as pd

from errors import ValidationError
from models import CUSTOM_PLAN, PLAN_MONTHS, money

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MOBILE_RE = re.compile(r"^\d{10}$")


def today_iso() -> str:
    return date.today().isoformat()


def parse_iso(d: str) -> date:
    return date.fromisoformat(d)


def _month_end(y: int, m: int) -> date:
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    return next_month - timedelta(days=1)


def add_months(start: date, months: int) -> date:
    """
    Add months while keeping day in valid range (e.g., Jan 30 + 1 month => Feb 28/29).
    A start on the last day of its month lands on the last day of the target month.
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    last_day = _month_end(y, m)
    if start == _month_end(start.year, start.month):
        return last_day
    return date(y, m, min(start.day, last_day.day))


def plan_months(plan_type: str, custom_months=None) -> int:
    if plan_type in PLAN_MONTHS:
        return PLAN_MONTHS[plan_type]
    if plan_type == CUSTOM_PLAN:
        try:
            months = int(custom_months)
        except (TypeError, ValueError):
            raise ValidationError("Custom plans need a whole number of months.") from None
        if months <= 0:
            raise ValidationError("Custom plan duration must be at least 1 month.")
        return months
    raise ValidationError(f"Unknown plan type: {plan_type!r}")


def calc_end_date(start_date_iso: str, plan_type: str, custom_months=None) -> str:
    start = parse_iso(start_date_iso)
    end = add_months(start, plan_months(plan_type, custom_months))
    return end.isoformat()


def is_valid_email(value: str | None) -> bool:
    return bool(value and EMAIL_RE.match(value.strip()))


def is_valid_mobile(value: str | None) -> bool:
    return bool(value and MOBILE_RE.match(value.strip()))


def _check_date(errors: list[str], label: str, value) -> date | None:
    if not value:
        return None
    try:
        return parse_iso(str(value))
    except ValueError:
        errors.append(f"{label} must be a valid ISO date (YYYY-MM-DD).")
        return None


def _check_amount(errors: list[str], label: str, value) -> None:
    try:
        if money(value) < 0:
            errors.append(f"{label} cannot be negative.")
    except ValidationError:
        errors.append(f"{label} must be numeric.")


def validate_member_inputs(data: dict) -> list[str]:
    """Checks for a full (non-partial) member record. Returns error messages."""
    errors: list[str] = []
    if not str(data.get("name") or "").strip():
        errors.append("Name is required.")
    if not is_valid_mobile(data.get("mobile_no")):
        errors.append("Mobile number must be exactly 10 digits.")
    if data.get("email") and not is_valid_email(data.get("email")):
        errors.append("Email address is not valid.")
    for key, label in (
        ("registration_fee", "Registration fee"),
        ("package_fee", "Package fee"),
        ("discount", "Discount"),
        ("paid_amount", "Paid amount"),
    ):
        _check_amount(errors, label, data.get(key))
    _check_date(errors, "Date of birth", data.get("date_of_birth"))
    start = _check_date(errors, "Subscription start date", data.get("subscription_start_date"))
    end = _check_date(errors, "Subscription end date", data.get("subscription_end_date"))
    if start and end and end < start:
        errors.append("Subscription end date must not be before the start date.")
    return errors


PARTIAL_REQUIRED = (
    ("name", "Name"),
    ("mobile_no", "Mobile number"),
    ("email", "Email"),
    ("occupation", "Occupation"),
    ("sex", "Sex"),
    ("date_of_birth", "Date of birth"),
    ("address", "Address"),
)


def validate_partial_member(data: dict) -> list[str]:
    errors = [f"{label} is required." for key, label in PARTIAL_REQUIRED if not str(data.get(key) or "").strip()]
    if data.get("email") and not is_valid_email(data["email"]):
        errors.append("Email address is not valid.")
    if data.get("mobile_no") and not is_valid_mobile(data["mobile_no"]):
        errors.append("Mobile number must be exactly 10 digits.")
    _check_date(errors, "Date of birth", data.get("date_of_birth"))
    return errors


# ---------- Body metrics ----------

def calculate_bmi(weight_kg, height_cm) -> float | None:
    if not weight_kg or not height_cm:
        return None
    height_m = float(height_cm) / 100
    return round(float(weight_kg) / (height_m * height_m), 1)


def bmi_category(bmi: float) -> str:
    if bmi < 18.5:
        return "Underweight"
    if bmi < 25:
        return "Normal weight"
    if bmi < 30:
        return "Overweight"
    return "Obese"


def calculate_bmr(weight_kg, height_cm, age, sex: str | None) -> float | None:
    """Mifflin-St Jeor. Non-male uses the female constant."""
    if not weight_kg or not height_cm or not age:
        return None
    bmr = 10 * float(weight_kg) + 6.25 * float(height_cm) - 5 * int(age)
    bmr += 5 if (sex or "").lower() == "male" else -161
    return round(bmr, 1)


def age_on(date_of_birth: str | None, on: date) -> int | None:
    if not date_of_birth:
        return None
    dob = parse_iso(date_of_birth)
    return on.year - dob.year - ((on.month, on.day) < (dob.month, dob.day))


# ---------- Exports ----------

def _as_dict(rec) -> dict:
    if dataclasses.is_dataclass(rec):
        return dataclasses.asdict(rec)
    return dict(rec)


def records_to_frame(records, columns: list[str] | None = None) -> pd.DataFrame:
    df = pd.DataFrame([_as_dict(r) for r in records])
    if df.empty:
        return pd.DataFrame(columns=columns or [])
    if columns:
        df = df[[c for c in columns if c in df.columns]]
    return df


def members_to_csv_bytes(members) -> bytes:
    df = records_to_frame(members)
    return df.to_csv(index=False).encode("utf-8")


def receipts_to_csv_bytes(receipts) -> bytes:
    df = records_to_frame(receipts)
    return df.to_csv(index=False).encode("utf-8")
