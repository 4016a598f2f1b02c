# Overview: Service-layer operations for admin credentials (HTTP Basic).

"""
Admin credential checks.

The configured admin password is never kept in plain text after startup:
create_app hashes it with bcrypt into ADMIN_PASSWORD_HASH, and each
request is verified against that hash.
"""

import hmac

import bcrypt
from flask import current_app


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash password using bcrypt (cost factor 12 unless configured lower for tests)."""
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; a malformed hash is a failed check."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def check_admin_credentials(username: str | None, password: str | None) -> bool:
    if not username or password is None:
        return False
    expected_user = current_app.config.get("ADMIN_USERNAME", "admin")
    if not hmac.compare_digest(username.encode("utf-8"), expected_user.encode("utf-8")):
        return False
    return verify_password(password, current_app.config["ADMIN_PASSWORD_HASH"])
