from datetime import date
from decimal import Decimal

import pytest

from errors import ValidationError
from models import from_minor, money, to_minor
from utils import (
    add_months,
    age_on,
    bmi_category,
    calc_end_date,
    calculate_bmi,
    calculate_bmr,
    is_valid_email,
    is_valid_mobile,
    plan_months,
    records_to_frame,
    validate_member_inputs,
)


class TestDates:
    @pytest.mark.parametrize(
        "start, months, expected",
        [
            (date(2026, 1, 15), 1, date(2026, 2, 15)),
            (date(2026, 1, 30), 1, date(2026, 2, 28)),
            (date(2024, 1, 31), 1, date(2024, 2, 29)),
            (date(2026, 2, 28), 1, date(2026, 3, 31)),
            (date(2026, 11, 10), 3, date(2027, 2, 10)),
            (date(2026, 4, 30), 12, date(2027, 4, 30)),
        ],
    )
    def test_add_months(self, start, months, expected):
        assert add_months(start, months) == expected

    def test_plan_months(self):
        assert plan_months("monthly") == 1
        assert plan_months("half_yearly") == 6
        assert plan_months("custom", "4") == 4
        with pytest.raises(ValidationError):
            plan_months("custom", "0")
        with pytest.raises(ValidationError):
            plan_months("weekly")

    def test_calc_end_date(self):
        assert calc_end_date("2026-03-15", "yearly") == "2027-03-15"

    def test_age_on(self):
        assert age_on("2000-03-16", date(2026, 3, 15)) == 25
        assert age_on("2000-03-15", date(2026, 3, 15)) == 26
        assert age_on(None, date(2026, 3, 15)) is None


class TestValidation:
    def test_email_and_mobile(self):
        assert is_valid_email("a.b@gym.in")
        assert not is_valid_email("a@b")
        assert is_valid_mobile("9876543210")
        assert not is_valid_mobile("98765-43210")
        assert not is_valid_mobile(None)

    def test_member_inputs_ok(self):
        assert validate_member_inputs({"name": "A", "mobile_no": "9876543210", "package_fee": "100"}) == []

    def test_member_inputs_problems(self):
        errors = validate_member_inputs(
            {
                "name": "A",
                "mobile_no": "9876543210",
                "package_fee": "-1",
                "discount": "abc",
                "subscription_start_date": "2026-03-10",
                "subscription_end_date": "2026-03-01",
            }
        )
        assert errors == [
            "Package fee cannot be negative.",
            "Discount must be numeric.",
            "Subscription end date must not be before the start date.",
        ]


class TestMoney:
    def test_rounding_and_minor_units(self):
        assert money("10.005") == Decimal("10.01")
        assert money(None) == Decimal("0.00")
        assert to_minor("12.34") == 1234
        assert from_minor(1234) == Decimal("12.34")

    @pytest.mark.parametrize("bad", ["abc", "NaN", True])
    def test_invalid_amounts(self, bad):
        with pytest.raises(ValidationError):
            money(bad)


class TestBodyMetrics:
    def test_bmi(self):
        assert calculate_bmi(70, 175) == 22.9
        assert calculate_bmi(None, 175) is None
        assert bmi_category(22.9) == "Normal weight"
        assert bmi_category(31) == "Obese"

    def test_bmr(self):
        assert calculate_bmr(70, 175, 30, "male") == 1648.8
        assert calculate_bmr(60, 165, 30, "female") == 1320.2
        assert calculate_bmr(70, 175, None, "male") is None


def test_records_to_frame_keeps_columns_when_empty():
    df = records_to_frame([], columns=["name", "amount"])
    assert list(df.columns) == ["name", "amount"]
