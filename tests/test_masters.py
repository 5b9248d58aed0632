from decimal import Decimal

import pytest

from errors import NotFoundError, ValidationError
from services import masters


def test_seeded_lists(database):
    assert {p.name for p in masters.list_items(database, "payment_types")} == {"cash", "card", "upi", "bank_transfer"}
    assert {c.name for c in masters.list_items(database, "expense_categories")} >= {"rent", "maintenance"}


def test_package_duration_follows_type(database):
    pkg = masters.create_item(
        database, "packages", {"name": "Quarter Pass", "duration_type": "quarterly", "price": "4000"}
    )
    assert pkg.duration_months == 3
    assert pkg.price == Decimal("4000.00")
    assert pkg.is_active

    custom = masters.create_item(
        database,
        "packages",
        {"name": "Summer Special", "duration_type": "custom", "duration_months": 2, "price": "2500"},
    )
    assert custom.duration_months == 2


def test_package_validation(database):
    with pytest.raises(ValidationError) as info:
        masters.create_item(database, "packages", {"name": "", "duration_type": "weekly", "price": "-5"})
    assert len(info.value.errors) == 3


def test_duplicate_names_are_rejected(database):
    masters.create_item(database, "occupations", {"name": "Engineer"})
    with pytest.raises(ValidationError, match="already exists"):
        masters.create_item(database, "occupations", {"name": "Engineer"})


def test_tax_percentage_range(database):
    with pytest.raises(ValidationError, match="between 0 and 100"):
        masters.create_item(database, "tax_settings", {"name": "Bad", "tax_type": "GST", "percentage": 120})


def test_deactivate_hides_from_active_list(database):
    occupation = masters.create_item(database, "occupations", {"name": "Doctor"})

    masters.deactivate_item(database, "occupations", occupation.id)

    assert "Doctor" not in {o.name for o in masters.list_items(database, "occupations")}
    assert "Doctor" in {o.name for o in masters.list_items(database, "occupations", include_inactive=True)}
    assert masters.set_item_active(database, "occupations", occupation.id, True).is_active


def test_update_keeps_unchanged_fields(database):
    field = masters.create_item(
        database,
        "body_measurement_fields",
        {"field_name": "neck", "display_name": "Neck", "unit": "cm", "sort_order": 3},
    )

    updated = masters.update_item(database, "body_measurement_fields", field.id, {"display_name": "Neck size"})

    assert updated.display_name == "Neck size"
    assert updated.unit == "cm"
    assert updated.sort_order == 3


def test_payment_type_display_name_defaults(database):
    item = masters.create_item(database, "payment_types", {"name": "net_banking"})
    assert item.display_name == "Net Banking"


def test_unknown_kind_and_item(database):
    with pytest.raises(ValidationError, match="Unknown master list"):
        masters.list_items(database, "colours")
    with pytest.raises(NotFoundError):
        masters.get_item(database, "packages", 404)
