import pytest

from errors import ValidationError
from services import measurements, members


@pytest.fixture
def member(database, make_member):
    m = make_member()
    return members.update_member(database, m.id, {"sex": "male", "date_of_birth": "1996-03-15"})


def test_serials_count_up_per_member(database, member, make_member):
    other = make_member()
    first = measurements.add_measurement(database, member.id, {"weight": "70", "measurement_date": "2026-03-01"})
    second = measurements.add_measurement(database, member.id, {"weight": "69", "measurement_date": "2026-03-15"})
    measurements.add_measurement(database, other.id, {"weight": "80"})

    assert (first.serial_number, second.serial_number) == (1, 2)
    assert [m.serial_number for m in measurements.list_measurements(database, member.id)] == [1, 2]
    assert measurements.list_measurements(database, other.id)[0].serial_number == 1


def test_bmi_bmr_and_age_are_derived(database, member):
    record = measurements.add_measurement(
        database, member.id, {"weight": "70", "height": "175", "measurement_date": "2026-03-15"}
    )
    assert record.age == 30
    assert record.bmi == 22.9
    assert record.bmr == 1648.8
    assert record.member_name == member.name


def test_supplied_bmi_is_kept(database, member):
    record = measurements.add_measurement(database, member.id, {"weight": "70", "height": "175", "bmi": "21"})
    assert record.bmi == 21.0


def test_update_recomputes(database, member):
    record = measurements.add_measurement(
        database, member.id, {"weight": "70", "height": "175", "measurement_date": "2026-03-15"}
    )
    updated = measurements.update_measurement(database, record.id, {"weight": "80"})
    assert updated.bmi == 26.1


def test_rejects_bad_values(database, member):
    with pytest.raises(ValidationError) as info:
        measurements.add_measurement(database, member.id, {"weight": "heavy", "waist": "-3"})
    assert len(info.value.errors) == 2
    assert measurements.list_measurements(database, member.id) == []


def test_delete(database, member):
    record = measurements.add_measurement(database, member.id, {"weight": "70"})
    measurements.delete_measurement(database, record.id)
    assert measurements.list_measurements(database, member.id) == []
