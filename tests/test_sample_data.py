from decimal import Decimal

from services import billing, enquiries, expenses, members, sample_data, staff


def test_sample_data_covers_each_screen(database, today):
    sample_data.insert_sample_data(database, today=today)

    found = {m.name: m for m in members.list_members(database)}
    assert set(found) == {"Ahmed Hassan", "Mona Ali", "Omar Samy"}
    assert found["Ahmed Hassan"].subscription_status == "expiring_soon"
    assert found["Omar Samy"].subscription_status == "expired"
    assert billing.member_totals(database, found["Mona Ali"].id).due == Decimal("1300.00")
    assert len(staff.list_staff(database)) == 1
    assert len(enquiries.list_enquiries(database)) == 1
    assert len(expenses.list_expenses(database)) == 1
