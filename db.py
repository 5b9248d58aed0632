"""
db.py
SQLite storage handle + initialization (creates DB/tables, default admin,
counters, message templates and starter master data).

Money columns hold integer minor units (paise); see models.to_minor/from_minor.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

COUNTER_START = {
    "receipt_counter": 1000,
    "invoice_counter": 1000,
    "enquiry_counter": 0,
    "member_counter": 0,
}


class Database:
    """
    One explicitly owned connection. Callers receive it as an argument;
    nothing in the project reaches for a module-level connection.

    get_conn() is re-entrant: only the outermost block commits (or rolls back
    on error), so a service can wrap several statements in one transaction
    and still call other services that open their own block.
    """

    def __init__(self, path: str | Path):
        self.path = str(path)
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._depth = 0

    @contextmanager
    def get_conn(self):
        self._depth += 1
        try:
            yield self._conn
        except BaseException:
            if self._depth == 1:
                self._conn.rollback()
            raise
        else:
            if self._depth == 1:
                self._conn.commit()
        finally:
            self._depth -= 1

    def execute(self, sql: str, params=()) -> int:
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.lastrowid

    def execute_count(self, sql: str, params=()) -> int:
        """Like execute(), but returns the number of rows touched."""
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.rowcount

    def executemany(self, sql: str, seq_of_params) -> None:
        with self.get_conn() as conn:
            conn.executemany(sql, seq_of_params)

    def fetch_one(self, sql: str, params=()) -> sqlite3.Row | None:
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.fetchone()

    def fetch_all(self, sql: str, params=()) -> list[sqlite3.Row]:
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.fetchall()

    def close(self) -> None:
        self._conn.close()


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL CHECK(role IN ('admin','trainer','receptionist')),
        full_name TEXT,
        email TEXT,
        phone TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS members (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        custom_member_id TEXT UNIQUE,
        name TEXT NOT NULL,
        email TEXT,
        address TEXT,
        telephone_no TEXT,
        mobile_no TEXT,
        occupation TEXT,
        marital_status TEXT,
        anniversary_date TEXT,
        blood_group TEXT,
        sex TEXT,
        date_of_birth TEXT,
        alternate_no TEXT,
        member_image TEXT,
        id_proof_image TEXT,
        date_of_registration TEXT,
        receipt_no TEXT,
        payment_mode TEXT,
        plan_type TEXT,
        services TEXT NOT NULL DEFAULT '[]',
        membership_fees INTEGER NOT NULL DEFAULT 0,
        registration_fee INTEGER NOT NULL DEFAULT 0,
        package_fee INTEGER NOT NULL DEFAULT 0,
        discount INTEGER NOT NULL DEFAULT 0,
        paid_amount INTEGER NOT NULL DEFAULT 0,
        subscription_start_date TEXT,
        subscription_end_date TEXT,
        subscription_status TEXT NOT NULL DEFAULT 'active'
            CHECK(subscription_status IN ('active','expiring_soon','expired')),
        status TEXT NOT NULL DEFAULT 'active'
            CHECK(status IN ('active','inactive','frozen','partial')),
        medical_issues TEXT,
        goals TEXT,
        height REAL,
        weight REAL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    # Whole member row kept as JSON so a restore can put it back verbatim.
    """
    CREATE TABLE IF NOT EXISTS deleted_members (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        original_member_id INTEGER NOT NULL,
        custom_member_id TEXT,
        name TEXT NOT NULL,
        mobile_no TEXT,
        email TEXT,
        member_data TEXT NOT NULL,
        original_created_at TEXT,
        original_updated_at TEXT,
        deleted_at TEXT NOT NULL,
        deleted_by TEXT NOT NULL,
        deletion_reason TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS enquiries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        enquiry_number TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        address TEXT,
        telephone_no TEXT,
        mobile_no TEXT NOT NULL,
        occupation TEXT,
        sex TEXT,
        ref_person_name TEXT,
        date_of_enquiry TEXT NOT NULL,
        interested_in TEXT NOT NULL DEFAULT '[]',
        membership_fees INTEGER NOT NULL DEFAULT 0,
        payment_mode TEXT,
        payment_frequency TEXT,
        status TEXT NOT NULL DEFAULT 'new'
            CHECK(status IN ('new','contacted','follow_up','converted','closed')),
        notes TEXT,
        follow_up_date TEXT,
        converted_to_member_id INTEGER,
        created_by TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    # No foreign key to members: billing history outlives an archived member.
    """
    CREATE TABLE IF NOT EXISTS invoices (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        invoice_number TEXT NOT NULL UNIQUE,
        member_id INTEGER NOT NULL,
        member_name TEXT NOT NULL,
        registration_fee INTEGER NOT NULL DEFAULT 0,
        package_fee INTEGER NOT NULL DEFAULT 0,
        discount INTEGER NOT NULL DEFAULT 0,
        total_amount INTEGER NOT NULL,
        paid_amount INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'unpaid' CHECK(status IN ('unpaid','partial','paid')),
        due_date TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS receipts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        receipt_number TEXT NOT NULL UNIQUE,
        invoice_id INTEGER,
        member_id INTEGER,
        member_name TEXT NOT NULL,
        custom_member_id TEXT,
        amount INTEGER NOT NULL,
        amount_paid INTEGER NOT NULL,
        due_amount INTEGER NOT NULL DEFAULT 0,
        payment_type TEXT NOT NULL CHECK(payment_type IN ('cash','card','upi','bank_transfer')),
        description TEXT,
        receipt_category TEXT NOT NULL DEFAULT 'member'
            CHECK(receipt_category IN ('member','staff_salary','staff_bonus','staff_salary_update')),
        transaction_type TEXT NOT NULL DEFAULT 'payment'
            CHECK(transaction_type IN ('payment','partial_payment','due_payment','renewal')),
        subscription_start_date TEXT,
        subscription_end_date TEXT,
        plan_type TEXT,
        payment_mode TEXT,
        mobile_no TEXT,
        email TEXT,
        package_fee INTEGER NOT NULL DEFAULT 0,
        registration_fee INTEGER NOT NULL DEFAULT 0,
        discount INTEGER NOT NULL DEFAULT 0,
        cgst INTEGER NOT NULL DEFAULT 0,
        sigst INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        created_by TEXT NOT NULL,
        original_receipt_id INTEGER,
        version_number INTEGER NOT NULL DEFAULT 1,
        is_current_version INTEGER NOT NULL DEFAULT 1,
        superseded_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS receipt_tax_mapping (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        receipt_id INTEGER NOT NULL,
        tax_setting_id INTEGER NOT NULL,
        tax_name TEXT NOT NULL,
        tax_type TEXT NOT NULL,
        tax_percentage REAL NOT NULL,
        is_inclusive INTEGER NOT NULL,
        base_amount INTEGER NOT NULL,
        tax_amount INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY(receipt_id) REFERENCES receipts(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS body_measurements (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        member_id INTEGER NOT NULL,
        custom_member_id TEXT,
        member_name TEXT NOT NULL,
        serial_number INTEGER NOT NULL,
        measurement_date TEXT NOT NULL,
        weight REAL,
        height REAL,
        age INTEGER,
        neck REAL,
        chest REAL,
        arms REAL,
        fore_arms REAL,
        wrist REAL,
        tummy REAL,
        waist REAL,
        hips REAL,
        thighs REAL,
        calf REAL,
        fat_percentage REAL,
        bmi REAL,
        bmr REAL,
        vf REAL,
        notes TEXT,
        recorded_by TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY(member_id) REFERENCES members(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS attendance (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        member_id INTEGER NOT NULL,
        custom_member_id TEXT,
        member_name TEXT NOT NULL,
        check_in TEXT NOT NULL,
        check_out TEXT,
        date TEXT NOT NULL,
        profile_image TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY(member_id) REFERENCES members(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS staff (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        email TEXT,
        phone TEXT NOT NULL,
        address TEXT,
        role TEXT NOT NULL CHECK(role IN ('trainer','receptionist','manager')),
        salary INTEGER NOT NULL DEFAULT 0,
        join_date TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'active' CHECK(status IN ('active','inactive')),
        specialization TEXT,
        emergency_contact TEXT,
        date_of_birth TEXT,
        profile_image TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS staff_attendance (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        staff_id INTEGER NOT NULL,
        staff_name TEXT NOT NULL,
        role TEXT NOT NULL,
        shift TEXT,
        check_in TEXT NOT NULL,
        check_out TEXT,
        date TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY(staff_id) REFERENCES staff(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS expenses (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        category TEXT NOT NULL,
        description TEXT NOT NULL,
        amount INTEGER NOT NULL,
        date TEXT NOT NULL,
        created_by TEXT NOT NULL,
        receipt TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS whatsapp_templates (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        message_type TEXT NOT NULL UNIQUE,
        template_content TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS whatsapp_messages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        member_id INTEGER,
        member_name TEXT NOT NULL,
        member_phone TEXT NOT NULL,
        message_type TEXT NOT NULL CHECK(message_type IN (
            'receipt_created','membership_expiring','attendance_reminder',
            'due_amount_reminder','birthday_wish','welcome_message','renewal_reminder'
        )),
        message_content TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending' CHECK(status IN ('pending','sent','failed','scheduled')),
        scheduled_at TEXT,
        sent_at TEXT,
        error_message TEXT,
        retry_count INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS master_packages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        duration_type TEXT NOT NULL
            CHECK(duration_type IN ('monthly','quarterly','half_yearly','yearly','custom')),
        duration_months INTEGER NOT NULL,
        price INTEGER NOT NULL,
        registration_fee INTEGER NOT NULL DEFAULT 0,
        discount INTEGER NOT NULL DEFAULT 0,
        description TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS master_tax_settings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        tax_type TEXT NOT NULL,
        percentage REAL NOT NULL,
        is_inclusive INTEGER NOT NULL DEFAULT 0,
        description TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS master_occupations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        description TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS master_payment_types (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        display_name TEXT NOT NULL,
        description TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS master_body_measurement_fields (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        field_name TEXT NOT NULL UNIQUE,
        display_name TEXT NOT NULL,
        field_type TEXT NOT NULL DEFAULT 'number',
        unit TEXT,
        is_required INTEGER NOT NULL DEFAULT 0,
        sort_order INTEGER NOT NULL DEFAULT 0,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS master_expense_categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        description TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_receipts_member ON receipts(member_id)",
    "CREATE INDEX IF NOT EXISTS idx_invoices_member ON invoices(member_id)",
    "CREATE INDEX IF NOT EXISTS idx_attendance_member_date ON attendance(member_id, date)",
]

DEFAULT_TEMPLATES = {
    "receipt_created": (
        "Hi {member_name}, we've received Rs.{amount_paid}. Receipt #{receipt_number} "
        "is attached. Thank you for choosing {gym_name}!"
    ),
    "membership_expiring": (
        "Hi {member_name}, your membership expires in {days} day(s) on {end_date}. "
        "Renew now to keep training without a break."
    ),
    "attendance_reminder": (
        "Hi {member_name}, we haven't seen you at the gym for {days} days. "
        "Your goals are waiting for you!"
    ),
    "due_amount_reminder": (
        "Hi {member_name}, a balance of Rs.{due_amount} is pending on your membership. "
        "Please clear it at the front desk."
    ),
    "birthday_wish": "Happy birthday {member_name}! Everyone at {gym_name} wishes you a great year ahead.",
    "welcome_message": (
        "Welcome to {gym_name}, {member_name}! Your member ID is {custom_member_id}. "
        "Let's get started."
    ),
    "renewal_reminder": (
        "Hi {member_name}, your membership ended on {end_date}. "
        "Renew today to continue your fitness journey."
    ),
}

DEFAULT_PAYMENT_TYPES = [
    ("cash", "Cash"),
    ("card", "Card"),
    ("upi", "UPI"),
    ("bank_transfer", "Bank Transfer"),
]

DEFAULT_EXPENSE_CATEGORIES = [
    ("equipment", "Machines, weights and accessories"),
    ("maintenance", "Repairs and upkeep"),
    ("utilities", "Electricity, water, internet"),
    ("rent", "Premises rent"),
    ("salaries", "Staff salaries and bonuses"),
    ("other", "Anything else"),
]


def _create_tables(database: Database) -> None:
    with database.get_conn() as conn:
        for statement in SCHEMA:
            conn.execute(statement)


def get_setting(database: Database, key: str, default: str | None = None) -> str | None:
    row = database.fetch_one("SELECT value FROM settings WHERE key = ?", (key,))
    if row:
        return str(row["value"])
    return default


def set_setting(database: Database, key: str, value: str) -> None:
    database.execute(
        """
        INSERT INTO settings(key, value) VALUES(?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """,
        (key, value),
    )


def next_counter(database: Database, key: str) -> int:
    """
    Increment and return a numbering counter (receipt/invoice/enquiry/member).
    Runs inside the caller's transaction when there is one.
    """
    with database.get_conn():
        current = int(get_setting(database, key, str(COUNTER_START.get(key, 0))))
        value = current + 1
        set_setting(database, key, str(value))
    return value


def init_db(database: Database, default_admin_hash: str) -> None:
    """
    Initialize the database.
    - Create tables
    - Seed numbering counters, message templates, payment types, expense categories
    - Insert default admin (admin/admin123) if no user exists
    - Force password change on first login
    """
    _create_tables(database)

    now = now_iso()
    with database.get_conn():
        for key, start in COUNTER_START.items():
            if get_setting(database, key) is None:
                set_setting(database, key, str(start))

        database.executemany(
            """
            INSERT OR IGNORE INTO whatsapp_templates(message_type, template_content, is_active, updated_at)
            VALUES(?, ?, 1, ?)
            """,
            [(kind, text, now) for kind, text in DEFAULT_TEMPLATES.items()],
        )
        database.executemany(
            """
            INSERT OR IGNORE INTO master_payment_types(name, display_name, is_active, created_at, updated_at)
            VALUES(?, ?, 1, ?, ?)
            """,
            [(name, label, now, now) for name, label in DEFAULT_PAYMENT_TYPES],
        )
        database.executemany(
            """
            INSERT OR IGNORE INTO master_expense_categories(name, description, is_active, created_at, updated_at)
            VALUES(?, ?, 1, ?, ?)
            """,
            [(name, desc, now, now) for name, desc in DEFAULT_EXPENSE_CATEGORIES],
        )

        admin = database.fetch_one("SELECT id FROM users LIMIT 1")
        if not admin:
            database.execute(
                "INSERT INTO users(username, password_hash, role, full_name, created_at) VALUES(?,?,?,?,?)",
                ("admin", default_admin_hash, "admin", "Administrator", now),
            )
            set_setting(database, "force_password_change", "1")
            logger.info("Created default admin user")
        elif get_setting(database, "force_password_change") is None:
            set_setting(database, "force_password_change", "0")


def is_force_password_change(database: Database) -> bool:
    return get_setting(database, "force_password_change") == "1"


def clear_force_password_change(database: Database) -> None:
    set_setting(database, "force_password_change", "0")
