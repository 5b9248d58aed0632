"""
auth.py
Staff user accounts (bcrypt hashing, verify, login, change password, roles).
"""

from __future__ import annotations

import logging
import sqlite3

import bcrypt

import db as storage
from errors import NotFoundError, ValidationError
from models import USER_ROLES, User, from_row
from queries import users as q_users

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _to_bcrypt_secret(password: str) -> bytes:
    """
    bcrypt only uses the first 72 BYTES of the password.
    We truncate to 72 bytes to avoid ValueError and to make behavior explicit.
    """
    pw = password.encode("utf-8")
    if len(pw) > 72:
        pw = pw[:72]
    return pw


def hash_password(password: str) -> str:
    """
    Returns a bcrypt hash as a UTF-8 string (stored in SQLite).
    """
    secret = _to_bcrypt_secret(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(secret, salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    secret = _to_bcrypt_secret(password)
    return bcrypt.checkpw(secret, password_hash.encode("utf-8"))


def _check_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")


def get_user(database: storage.Database, username: str) -> User:
    user = from_row(User, database.fetch_one(q_users.SELECT_BY_USERNAME, (username,)))
    if user is None:
        raise NotFoundError("User", username)
    return user


def list_users(database: storage.Database) -> list[User]:
    return [from_row(User, r) for r in database.fetch_all(q_users.SELECT_ALL)]


def login(database: storage.Database, username: str, password: str) -> User | None:
    """The User on success; None for unknown, disabled or wrong password."""
    row = database.fetch_one(q_users.SELECT_BY_USERNAME, (username,))
    if not row or not row["is_active"]:
        logger.info("Login refused for %r", username)
        return None
    if not verify_password(password, row["password_hash"]):
        logger.info("Wrong password for %r", username)
        return None
    return from_row(User, row)


def change_password(database: storage.Database, username: str, new_password: str) -> None:
    _check_password(new_password)
    get_user(database, username)
    with database.get_conn():
        database.execute(q_users.UPDATE_PASSWORD, (hash_password(new_password), username))
        storage.clear_force_password_change(database)
    logger.info("Password changed for %s", username)


def create_user(
    database: storage.Database,
    username: str,
    password: str,
    role: str = "receptionist",
    full_name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
) -> User:
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required.")
    if role not in USER_ROLES:
        raise ValidationError("Role must be one of: " + ", ".join(USER_ROLES))
    _check_password(password)
    try:
        database.execute(
            q_users.INSERT,
            {
                "username": username,
                "password_hash": hash_password(password),
                "role": role,
                "full_name": full_name,
                "email": email,
                "phone": phone,
                "created_at": storage.now_iso(),
            },
        )
    except sqlite3.IntegrityError:
        raise ValidationError(f"Username {username!r} is already taken.") from None
    logger.info("User %s created with role %s", username, role)
    return get_user(database, username)


def set_user_active(database: storage.Database, username: str, active: bool) -> User:
    user = get_user(database, username)
    if not active and user.role == "admin":
        admins = [u for u in list_users(database) if u.role == "admin" and u.is_active]
        if len(admins) <= 1:
            raise ValidationError("At least one active admin is required.")
    database.execute(q_users.SET_ACTIVE, (1 if active else 0, username))
    return get_user(database, username)
