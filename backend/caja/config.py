# backend/caja/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process working directory
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pos_database.sqlite", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Create tables and default config rows on startup (no migration step needed)
    AUTO_CREATE_SCHEMA = _env_flag("AUTO_CREATE_SCHEMA", True)
    SEED_SAMPLE_DATA = _env_flag("SEED_SAMPLE_DATA", False)

    # HTTP Basic credentials guarding write endpoints
    ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "pos123")
    # Pre-hashed alternative; when unset create_app hashes ADMIN_PASSWORD
    ADMIN_PASSWORD_HASH = os.environ.get("ADMIN_PASSWORD_HASH")
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Base64 JSON pool of unused activation codes
    ACTIVATION_CODES_PATH = os.environ.get("ACTIVATION_CODES_PATH", "sysdata.dat")

    # Audit log writes happen on a background worker unless disabled
    AUDIT_LOG_ASYNC = _env_flag("AUDIT_LOG_ASYNC", True)
    OPERATION_LOG_RETENTION = int(os.environ.get("OPERATION_LOG_RETENTION", "1000"))

    # Limits applied while the system has no active license
    UNLICENSED_MAX_PROMOTIONS = 3
    UNLICENSED_MAX_PROMOTION_ITEMS = 1

    CORS_ALLOWED_ORIGINS = {
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    }

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
