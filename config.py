"""
config.py
Local paths and tunables, resolved from the environment (a .env file next to
this module is loaded first), plus logging setup for the app entry point.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_file: Path
    receipts_dir: Path
    expiring_soon_days: int  # look-ahead window for 'expiring_soon'
    attendance_reminder_days: int  # "not seen for N days" reminder window
    gym_name: str
    log_level: str
    log_file: Path | None


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


def load_settings() -> Settings:
    data_dir = Path(os.getenv("GYM_DATA_DIR") or BASE_DIR / "data")
    log_file = os.getenv("GYM_LOG_FILE")
    return Settings(
        data_dir=data_dir,
        db_file=Path(os.getenv("GYM_DB_FILE") or data_dir / "gym.db"),
        receipts_dir=Path(os.getenv("GYM_RECEIPTS_DIR") or data_dir / "receipts"),
        expiring_soon_days=_int_env("GYM_EXPIRING_SOON_DAYS", 7),
        attendance_reminder_days=_int_env("GYM_ATTENDANCE_REMINDER_DAYS", 7),
        gym_name=os.getenv("GYM_NAME", "Prime Fitness Health Point"),
        log_level=os.getenv("GYM_LOG_LEVEL", "INFO").upper(),
        log_file=Path(log_file) if log_file else None,
    )


def ensure_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_file.parent.mkdir(parents=True, exist_ok=True)
    settings.receipts_dir.mkdir(parents=True, exist_ok=True)


def setup_logging(settings: Settings) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, handlers=handlers)
