# Overview: Cents conversion and currency display helpers.

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError

# Maximum price: $9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

_CENT = Decimal("0.01")


def to_cents(value, field: str = "amount") -> int:
    """
    Convert a decimal amount (number or numeric string) to integer cents.

    Rounds half-up to the cent. Rejects booleans, NaN/inf and non-numeric input.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{field} must be a finite number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int | None) -> float | None:
    if cents is None:
        return None
    return float((Decimal(cents) / 100).quantize(_CENT))


def discounted_unit_cents(unit_cents: int, discount_percent) -> int:
    """unit × (1 − d/100), rounded half-up; d == 0 leaves the price untouched."""
    discount = Decimal(str(discount_percent or 0))
    if discount <= 0:
        return unit_cents
    value = Decimal(unit_cents) * (Decimal(100) - discount) / Decimal(100)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_currency(cents: int) -> str:
    """Display format used on receipts and log descriptions: "$180,00"."""
    amount = (Decimal(cents or 0) / 100).quantize(_CENT)
    return "$" + f"{amount:.2f}".replace(".", ",")
