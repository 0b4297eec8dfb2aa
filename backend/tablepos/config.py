# backend/tablepos/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tablepos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tablepos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "Today" for the business day is always computed in this zone
    BUSINESS_TIMEZONE = os.environ.get("BUSINESS_TIMEZONE", "Europe/Istanbul")

    AUTO_CREATE_SCHEMA = _env_flag("AUTO_CREATE_SCHEMA", True)
    RUN_STARTUP_TASKS = _env_flag("RUN_STARTUP_TASKS", True)
    SEED_CATALOG_ON_STARTUP = _env_flag("SEED_CATALOG_ON_STARTUP", False)

    DAY_ROLLOVER_ENABLED = _env_flag("DAY_ROLLOVER_ENABLED", False)
    DAY_ROLLOVER_INTERVAL_SECONDS = int(os.environ.get("DAY_ROLLOVER_INTERVAL_SECONDS", "60"))

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
    AUTH_TOKEN_TTL_HOURS = int(os.environ.get("AUTH_TOKEN_TTL_HOURS", "24"))

    CORS_ALLOWED_ORIGINS = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:4173",
        "http://127.0.0.1:4173",
    }
