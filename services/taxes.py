"""
services/taxes.py
Tax calculation for receipts and the tax collection report.

Inclusive taxes are carved out of the amount (total unchanged); exclusive
taxes are added on top. A receipt uses one kind or the other, never both.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

import pandas as pd

import db as storage
from errors import ValidationError
from models import CENT, TaxBreakdown, TaxLine, TaxSetting, ZERO, from_minor, money
from queries import receipt_tax_mapping as q_tax_map


def calculate_tax_amounts(base_amount, taxes: list[TaxSetting]) -> TaxBreakdown:
    base = money(base_amount)
    if not taxes:
        return TaxBreakdown(base_amount=base, tax_amount=ZERO, total_amount=base)

    kinds = {bool(t.is_inclusive) for t in taxes}
    if len(kinds) > 1:
        raise ValidationError("Inclusive and exclusive taxes cannot be combined on one receipt.")
    inclusive = kinds.pop()

    lines = []
    for tax in taxes:
        rate = Decimal(str(tax.percentage))
        if rate < 0:
            raise ValidationError(f"Tax rate for {tax.name} cannot be negative.")
        if inclusive:
            amount = base * rate / (100 + rate)
        else:
            amount = base * rate / 100
        lines.append(
            TaxLine(
                tax_setting_id=tax.id,
                name=tax.name,
                tax_type=tax.tax_type,
                percentage=float(tax.percentage),
                is_inclusive=inclusive,
                amount=amount.quantize(CENT, rounding=ROUND_HALF_UP),
            )
        )
    tax_total = sum((line.amount for line in lines), ZERO)
    total = base if inclusive else base + tax_total
    return TaxBreakdown(base_amount=base, tax_amount=tax_total, total_amount=total, lines=tuple(lines))


def tax_collection_report(
    database: storage.Database,
    start: date,
    end: date,
    tax_type: str | None = None,
) -> pd.DataFrame:
    if tax_type:
        rows = database.fetch_all(
            q_tax_map.COLLECTION_REPORT_BY_TYPE, (start.isoformat(), end.isoformat(), tax_type)
        )
    else:
        rows = database.fetch_all(q_tax_map.COLLECTION_REPORT, (start.isoformat(), end.isoformat()))
    columns = ["tax_name", "tax_type", "tax_percentage", "is_inclusive", "receipts", "base_amount", "tax_amount"]
    if not rows:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame([dict(r) for r in rows], columns=columns)
    df["is_inclusive"] = df["is_inclusive"].astype(bool)
    df["base_amount"] = df["base_amount"].map(from_minor)
    df["tax_amount"] = df["tax_amount"].map(from_minor)
    return df
