# Overview: Service-layer operations for the time-boxed license gate.

"""
License Gate

LIFECYCLE: unused code -> active -> deactivated (terminal).

- Activation codes are 6-digit strings kept in a pool file (base64 of
  {"activation_codes": [...]}) at ACTIVATION_CODES_PATH. A code is
  removed from the pool once it is consumed.
- A consumed key keeps its License row forever, so it can never be
  activated twice.
- is_licensed() is evaluated on every call from the stored expiry;
  expiry never mutates rows (check_expired_licenses only reports).
"""

from __future__ import annotations

import base64
import binascii
import json
import math
import os
import secrets

from flask import current_app

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import License
from ..time_utils import add_months, now, to_iso
from . import audit_service
from .concurrency import with_transaction

STATUS_ACTIVE = "active"
STATUS_DEACTIVATED = "deactivated"

LICENSE_MONTHS = 1


# =============================================================================
# ACTIVATION CODE POOL
# =============================================================================

def _codes_path() -> str:
    return current_app.config["ACTIVATION_CODES_PATH"]


def load_activation_codes() -> list[str]:
    """Read the pool. A missing or unreadable file is an empty pool."""
    path = _codes_path()
    if not os.path.exists(path):
        current_app.logger.warning("Activation code file not found: %s", path)
        return []
    try:
        with open(path, "rb") as fh:
            decoded = base64.b64decode(fh.read().strip())
        data = json.loads(decoded.decode("utf-8"))
    except (OSError, binascii.Error, UnicodeDecodeError, ValueError):
        current_app.logger.warning("Activation code file is unreadable: %s", path)
        return []
    codes = data.get("activation_codes", []) if isinstance(data, dict) else []
    return [str(code) for code in codes]


def save_activation_codes(codes: list[str]) -> None:
    payload = json.dumps({"activation_codes": list(codes)}).encode("utf-8")
    with open(_codes_path(), "wb") as fh:
        fh.write(base64.b64encode(payload))


def generate_activation_codes(count: int) -> list[str]:
    """Append `count` fresh codes that are neither pooled nor consumed."""
    if count <= 0:
        raise ValidationError("count must be > 0")
    pool = load_activation_codes()
    taken = set(pool) | {row.license_key for row in db.session.query(License.license_key).all()}
    generated: list[str] = []
    while len(generated) < count:
        code = f"{secrets.randbelow(900000) + 100000:06d}"
        if code in taken:
            continue
        taken.add(code)
        generated.append(code)
    save_activation_codes(pool + generated)
    return generated


def _remove_from_pool(code: str) -> None:
    pool = load_activation_codes()
    if code in pool:
        save_activation_codes([c for c in pool if c != code])


# =============================================================================
# STATUS
# =============================================================================

def get_active_license() -> License | None:
    return (
        db.session.query(License)
        .filter(License.status == STATUS_ACTIVE, License.expires_at > now())
        .order_by(License.activated_at.desc())
        .first()
    )


def is_licensed() -> bool:
    return get_active_license() is not None


def can_generate_reports() -> bool:
    return is_licensed()


def license_details() -> dict:
    """
    {activated, expiration_date, days_remaining, expired}

    Reports the most recent active row even when it has already expired.
    """
    row = (
        db.session.query(License)
        .filter(License.status == STATUS_ACTIVE)
        .order_by(License.activated_at.desc())
        .first()
    )
    if row is None:
        return {"activated": False, "expiration_date": None, "days_remaining": 0, "expired": False}

    remaining = (row.expires_at - now()).total_seconds() / 86400
    expired = remaining <= 0
    return {
        "activated": not expired,
        "expiration_date": to_iso(row.expires_at),
        "days_remaining": max(0, math.ceil(remaining)),
        "expired": expired,
    }


def check_expired_licenses() -> int:
    """Log how many active rows are past their expiry. Does not modify them."""
    count = (
        db.session.query(License)
        .filter(License.status == STATUS_ACTIVE, License.expires_at <= now())
        .count()
    )
    if count:
        current_app.logger.warning("%d active license(s) have expired", count)
    return count


# =============================================================================
# ACTIVATION
# =============================================================================

def _validate_key_format(key) -> str:
    if key is None:
        raise ValidationError("license key is required")
    key = str(key).strip()
    if len(key) != 6 or not key.isdigit():
        raise ValidationError("La clave debe tener exactamente 6 dígitos numéricos")
    return key


def activate_license(key, customer_data: dict | None = None) -> License:
    """
    Consume an activation code.

    Raises:
        ValidationError: bad format, or code not in the pool
        ConflictError: code already consumed, or a license is already active
    """
    key = _validate_key_format(key)

    def _op():
        if db.session.query(License.id).filter_by(license_key=key).first() is not None:
            raise ConflictError("Esta clave de licencia ya ha sido utilizada")
        if get_active_license() is not None:
            raise ConflictError("Ya existe una licencia activa")
        if key not in load_activation_codes():
            raise ValidationError("Clave de licencia inválida")

        activated = now()
        license_row = License(
            license_key=key,
            status=STATUS_ACTIVE,
            activated_at=activated,
            expires_at=add_months(activated, LICENSE_MONTHS),
            customer_data=json.dumps(customer_data) if customer_data else None,
        )
        db.session.add(license_row)
        db.session.flush()
        return license_row

    license_row = with_transaction(_op, immediate=True)
    _remove_from_pool(key)

    current_app.logger.info("License %s activated until %s", key, license_row.expires_at)
    audit_service.log_operation(
        "LICENSE_ACTIVATED",
        f"Licencia activada hasta {license_row.expires_at.date().isoformat()}",
        entity_type="license",
        entity_id=license_row.id,
    )
    return license_row


def deactivate_license() -> int:
    """Move every active row to deactivated. Returns rows changed."""
    def _op():
        rows = db.session.query(License).filter_by(status=STATUS_ACTIVE).all()
        if not rows:
            raise ValidationError("No hay licencia activa para desactivar")
        for row in rows:
            row.status = STATUS_DEACTIVATED
        return len(rows)

    changed = with_transaction(_op)
    # The audit writer drops entries once unlicensed, so this goes to the app log only
    current_app.logger.info("Deactivated %d license(s)", changed)
    return changed
