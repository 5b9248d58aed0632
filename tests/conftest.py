from datetime import date

import pytest

import auth
import db
from services import members


@pytest.fixture(scope="session")
def admin_hash():
    return auth.hash_password("admin123")


@pytest.fixture
def database(tmp_path, admin_hash):
    database = db.Database(tmp_path / "gym.db")
    db.init_db(database, admin_hash)
    yield database
    database.close()


@pytest.fixture
def today():
    return date(2026, 3, 15)


@pytest.fixture
def make_member(database, today):
    """Registers a monthly member (fees 2000) starting `today`."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "name": f"Member {counter['n']}",
            "mobile_no": f"98765432{counter['n']:02d}",
            "plan_type": "monthly",
            "registration_fee": "500",
            "package_fee": "1500",
            "discount": "0",
            "paid_amount": "0",
            "subscription_start_date": today.isoformat(),
        }
        data.update(overrides)
        return members.create_member(database, data, today=today)

    return _make
