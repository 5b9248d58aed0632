from datetime import date
from decimal import Decimal

import pytest

from errors import ValidationError
from models import TaxSetting
from services import masters, receipts, taxes


def _setting(name, pct, inclusive=False, id=None):
    return TaxSetting(id=id, name=name, tax_type="GST", percentage=pct, is_inclusive=inclusive)


def test_no_taxes_leaves_amount_alone():
    breakdown = taxes.calculate_tax_amounts("999.99", [])
    assert breakdown.total_amount == Decimal("999.99")
    assert breakdown.tax_amount == Decimal("0.00")
    assert breakdown.lines == ()


def test_exclusive_taxes_are_added():
    breakdown = taxes.calculate_tax_amounts("1000", [_setting("CGST", 9), _setting("SGST", 9)])
    assert breakdown.tax_amount == Decimal("180.00")
    assert breakdown.total_amount == Decimal("1180.00")


def test_inclusive_tax_is_carved_out():
    breakdown = taxes.calculate_tax_amounts("1000", [_setting("GST", 18, inclusive=True)])
    assert breakdown.total_amount == Decimal("1000.00")
    assert breakdown.tax_amount == Decimal("152.54")


def test_mixed_inclusive_and_exclusive_is_rejected():
    with pytest.raises(ValidationError, match="cannot be combined"):
        taxes.calculate_tax_amounts("100", [_setting("A", 5), _setting("B", 5, inclusive=True)])


def test_collection_report(database, make_member):
    m = make_member()
    cgst = masters.create_item(database, "tax_settings", {"name": "CGST", "tax_type": "GST", "percentage": 9})
    receipts.create_receipt_with_taxes(
        database, {"member_id": m.id, "amount": "1000", "payment_type": "cash"}, [cgst.id]
    )
    receipts.create_receipt_with_taxes(
        database, {"member_id": m.id, "amount": "500", "payment_type": "cash"}, [cgst.id]
    )

    df = taxes.tax_collection_report(database, date(2000, 1, 1), date(2100, 1, 1))

    assert len(df) == 1
    row = df.iloc[0]
    assert row["receipts"] == 2
    assert row["tax_amount"] == Decimal("135.00")
    assert taxes.tax_collection_report(database, date(2000, 1, 1), date(2100, 1, 1), tax_type="VAT").empty
