import pytest

import auth
import db
from errors import NotFoundError, ValidationError


def test_default_admin_must_change_password(database):
    user = auth.login(database, "admin", "admin123")

    assert user.role == "admin"
    assert db.is_force_password_change(database)


def test_wrong_password_and_unknown_user(database):
    assert auth.login(database, "admin", "nope") is None
    assert auth.login(database, "ghost", "admin123") is None


def test_change_password_clears_force_flag(database):
    auth.change_password(database, "admin", "s3cret-pass")

    assert not db.is_force_password_change(database)
    assert auth.login(database, "admin", "admin123") is None
    assert auth.login(database, "admin", "s3cret-pass") is not None


def test_short_password_is_rejected(database):
    with pytest.raises(ValidationError, match="at least"):
        auth.change_password(database, "admin", "abc")
    assert db.is_force_password_change(database)


def test_long_passwords_use_first_72_bytes():
    hashed = auth.hash_password("x" * 80)
    assert auth.verify_password("x" * 72 + "different", hashed)


def test_create_user(database):
    user = auth.create_user(database, " desk ", "welcome1", role="receptionist", full_name="Front Desk")

    assert user.username == "desk"
    assert user.is_active
    assert auth.login(database, "desk", "welcome1").full_name == "Front Desk"
    with pytest.raises(ValidationError, match="already taken"):
        auth.create_user(database, "desk", "welcome1")
    with pytest.raises(ValidationError, match="Role"):
        auth.create_user(database, "boss", "welcome1", role="owner")


def test_disabled_user_cannot_log_in(database):
    auth.create_user(database, "coach", "welcome1", role="trainer")
    auth.set_user_active(database, "coach", False)
    assert auth.login(database, "coach", "welcome1") is None


def test_last_admin_cannot_be_disabled(database):
    with pytest.raises(ValidationError, match="active admin"):
        auth.set_user_active(database, "admin", False)

    auth.create_user(database, "second", "welcome1", role="admin")
    assert not auth.set_user_active(database, "admin", False).is_active


def test_unknown_user(database):
    with pytest.raises(NotFoundError):
        auth.get_user(database, "ghost")


def test_init_db_is_idempotent(database, admin_hash):
    db.init_db(database, admin_hash)
    assert [u.username for u in auth.list_users(database)] == ["admin"]
    assert db.is_force_password_change(database)
