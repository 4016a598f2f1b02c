# Overview: Payment descriptor variants and their storage encoding.

"""
A sale is paid either with one method or with an itemized split.

    SimplePayment("efectivo")
    ItemizedPayment([PaymentEntry("efectivo", 5000), PaymentEntry("tarjeta", 13000)])

Storage uses a discriminator column (Sale.payment_kind) next to the
encoded value, so decoding never depends on guessing whether a string
looks like JSON.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from ..errors import ValidationError
from ..money import from_cents, to_cents

KIND_SIMPLE = "SIMPLE"
KIND_ITEMIZED = "ITEMIZED"

DEFAULT_METHOD = "efectivo"


@dataclass(frozen=True)
class PaymentEntry:
    method: str
    amount_cents: int

    def to_dict(self) -> dict:
        return {"method": self.method, "amount": from_cents(self.amount_cents)}


@dataclass(frozen=True)
class SimplePayment:
    method: str
    kind: str = field(default=KIND_SIMPLE, init=False)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "method": self.method}


@dataclass(frozen=True)
class ItemizedPayment:
    entries: tuple[PaymentEntry, ...]
    kind: str = field(default=KIND_ITEMIZED, init=False)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "entries": [e.to_dict() for e in self.entries]}


def serialize_payment(payment) -> tuple[str, str]:
    """Returns (payment_kind, payment_method) column values."""
    if isinstance(payment, SimplePayment):
        return KIND_SIMPLE, payment.method
    if isinstance(payment, ItemizedPayment):
        encoded = json.dumps([
            {"method": e.method, "amount_cents": e.amount_cents} for e in payment.entries
        ])
        return KIND_ITEMIZED, encoded
    raise TypeError(f"Unsupported payment type: {type(payment).__name__}")


def deserialize_payment(kind: str, value: str):
    if kind == KIND_ITEMIZED:
        raw = json.loads(value or "[]")
        return ItemizedPayment(tuple(
            PaymentEntry(str(item["method"]), int(item["amount_cents"])) for item in raw
        ))
    return SimplePayment(value or DEFAULT_METHOD)


def _parse_entry(entry) -> PaymentEntry:
    if not isinstance(entry, dict):
        raise ValidationError("Each payment must be an object with method and amount")
    method = entry.get("method", entry.get("metodo"))
    if not method or not isinstance(method, str):
        raise ValidationError("Payment method is required")
    amount = entry.get("amount", entry.get("monto"))
    cents = to_cents(amount, "payment amount")
    if cents < 0:
        raise ValidationError("Payment amount must be >= 0")
    return PaymentEntry(method.strip(), cents)


def payment_from_request(data: dict):
    """
    Build the payment variant from a request body.

    An itemized list ("payments"/"pagos") wins over a single method name
    ("paymentMethod"/"payment_method"/"metodo_pago"); default is cash.
    """
    entries = data.get("payments", data.get("pagos"))
    if entries is not None:
        if not isinstance(entries, list) or not entries:
            raise ValidationError("payments must be a non-empty list")
        return ItemizedPayment(tuple(_parse_entry(e) for e in entries))

    method = (
        data.get("paymentMethod")
        or data.get("payment_method")
        or data.get("metodo_pago")
        or DEFAULT_METHOD
    )
    if not isinstance(method, str):
        raise ValidationError("paymentMethod must be a string")
    return SimplePayment(method.strip() or DEFAULT_METHOD)


def totals_by_method(sales) -> dict[str, int]:
    """
    Sum cents per upper-cased method name. Itemized sales contribute
    each entry's amount; simple sales contribute the sale total.
    """
    totals: dict[str, int] = {}
    for sale in sales:
        payment = deserialize_payment(sale.payment_kind, sale.payment_method)
        if isinstance(payment, ItemizedPayment):
            for entry in payment.entries:
                key = entry.method.upper()
                totals[key] = totals.get(key, 0) + entry.amount_cents
        else:
            key = payment.method.upper()
            totals[key] = totals.get(key, 0) + sale.total_cents
    return totals


def payment_from_dict(data: dict):
    """Inverse of SimplePayment.to_dict / ItemizedPayment.to_dict (backup restore)."""
    if data.get("kind") == KIND_ITEMIZED:
        return ItemizedPayment(tuple(_parse_entry(e) for e in data.get("entries") or []))
    return SimplePayment(data.get("method") or DEFAULT_METHOD)
