# Overview: Service-layer operations for sales; encapsulates business logic and database work.

"""
Sale Workflow

A sale is created in one write transaction:
1. validate the cart and resolve every product
2. compute discounted unit prices, line totals and the sale total (cents)
3. insert the sale under a unique invoice number
4. per line: insert the line, then decrement stock with a conditional
   UPDATE ... WHERE stock >= qty. Zero affected rows means the product
   would be oversold and the whole transaction rolls back.

The conditional UPDATE is the only oversell guard; no stock value read
earlier in the request is trusted.
"""

from __future__ import annotations

import time
from datetime import date
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import InsufficientStockError, NotFoundError, PersistenceError, ValidationError
from ..extensions import db
from ..models import Product, Sale, SaleLine
from ..money import discounted_unit_cents, format_currency, to_cents
from ..time_utils import day_bounds, now
from . import audit_service
from .concurrency import with_transaction
from .payment_service import payment_from_request, serialize_payment

MAX_INVOICE_ATTEMPTS = 5

_PRODUCT_KEYS = ("product_id", "productId", "id")
_QUANTITY_KEYS = ("quantity", "cantidad")
_PRICE_KEYS = ("unit_price", "unitPrice", "precio")
_DISCOUNT_KEYS = ("discount_percent", "discountPercent", "descuento_porcentaje")


def _first(item: dict, keys: tuple[str, ...]):
    for key in keys:
        if key in item and item[key] is not None:
            return item[key]
    return None


def _parse_quantity(raw, index: int) -> int:
    if isinstance(raw, bool):
        raise ValidationError(f"Line {index}: quantity must be a positive integer")
    if isinstance(raw, str) and raw.strip().isdigit():
        raw = int(raw.strip())
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if not isinstance(raw, int) or raw <= 0:
        raise ValidationError(f"Line {index}: quantity must be a positive integer")
    return raw


def _parse_discount(raw, index: int) -> Decimal:
    if raw is None:
        return Decimal(0)
    if isinstance(raw, bool):
        raise ValidationError(f"Line {index}: discount must be a number")
    try:
        discount = Decimal(str(raw))
    except InvalidOperation:
        raise ValidationError(f"Line {index}: discount must be a number")
    if not discount.is_finite() or discount < 0 or discount > 100:
        raise ValidationError(f"Line {index}: discount must be between 0 and 100")
    return discount


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def build_cart(items) -> list[dict]:
    """
    Validate raw cart lines and price them.

    Returns one dict per line with the resolved product and cents values.
    The unit price is the one the register charged; when a line omits it
    the catalog price is used.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    cart = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"Line {index}: must be an object")

        product_id = _first(item, _PRODUCT_KEYS)
        if product_id is None or isinstance(product_id, bool):
            raise ValidationError(f"Line {index}: product id is required")
        try:
            product_id = int(product_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Line {index}: product id must be an integer")

        product = db.session.get(Product, product_id)
        if product is None:
            raise ValidationError(f"Line {index}: product {product_id} not found")

        quantity = _parse_quantity(_first(item, _QUANTITY_KEYS), index)

        raw_price = _first(item, _PRICE_KEYS)
        unit_cents = product.price_cents if raw_price is None else to_cents(raw_price, f"line {index} price")
        if unit_cents < 0:
            raise ValidationError(f"Line {index}: price must be >= 0")

        discount = _parse_discount(_first(item, _DISCOUNT_KEYS), index)
        charged = discounted_unit_cents(unit_cents, discount)

        cart.append({
            "product": product,
            "quantity": quantity,
            "original_unit_price_cents": unit_cents,
            "unit_price_cents": charged,
            "discount_percent": float(discount),
            "line_total_cents": charged * quantity,
        })
    return cart


def _add_sale_with_unique_invoice(**fields) -> Sale:
    """
    Insert the sale under FAC-<epoch millis>. A collision on the unique
    invoice column rolls back only its savepoint and retries with -1, -2, ...
    """
    base = f"FAC-{_epoch_millis()}"
    for attempt in range(MAX_INVOICE_ATTEMPTS):
        candidate = base if attempt == 0 else f"{base}-{attempt}"
        sale = Sale(invoice_number=candidate, **fields)
        try:
            with db.session.begin_nested():
                db.session.add(sale)
        except IntegrityError:
            current_app.logger.warning("Invoice number %s already taken, retrying", candidate)
            continue
        return sale
    raise PersistenceError("Could not allocate a unique invoice number")


def _decrement_stock(product: Product, quantity: int) -> None:
    result = db.session.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        available = db.session.query(Product.stock).filter(Product.id == product.id).scalar()
        raise InsufficientStockError(product.name, quantity, available)


def create_sale(items, payment=None, change=None) -> Sale:
    """
    Persist a sale with its lines and decrement stock atomically.

    Args:
        items: raw cart lines (see build_cart)
        payment: SimplePayment | ItemizedPayment; defaults to cash
        change: change given back ("vuelto"), decimal amount

    Raises:
        ValidationError, InsufficientStockError, PersistenceError
    """
    if payment is None:
        payment = payment_from_request({})
    change_cents = 0 if change in (None, "") else to_cents(change, "change")
    if change_cents < 0:
        raise ValidationError("change must be >= 0")
    payment_kind, payment_value = serialize_payment(payment)

    def _op():
        cart = build_cart(items)
        total_cents = sum(line["line_total_cents"] for line in cart)

        sale = _add_sale_with_unique_invoice(
            total_cents=total_cents,
            payment_kind=payment_kind,
            payment_method=payment_value,
            change_cents=change_cents,
            created_at=now(),
        )

        for line in cart:
            product = line["product"]
            db.session.add(SaleLine(
                sale_id=sale.id,
                product_id=product.id,
                quantity=line["quantity"],
                unit_price_cents=line["unit_price_cents"],
                original_unit_price_cents=line["original_unit_price_cents"],
                discount_percent=line["discount_percent"],
                line_total_cents=line["line_total_cents"],
            ))
            _decrement_stock(product, line["quantity"])

        return sale

    sale = with_transaction(_op, immediate=True)

    current_app.logger.info("Sale %s committed, total %s", sale.invoice_number, sale.total_cents)
    audit_service.log_operation(
        "SALE",
        f"Venta {sale.invoice_number} por {format_currency(sale.total_cents)}",
        entity_type="sale",
        entity_id=sale.id,
        after={"invoice_number": sale.invoice_number, "total_cents": sale.total_cents},
    )
    return sale


def create_sale_from_request(data: dict) -> Sale:
    return create_sale(
        data.get("items"),
        payment_from_request(data),
        data.get("change", data.get("vuelto")),
    )


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Venta no encontrada")
    return sale


def cancel_sale(sale_id: int) -> dict:
    """Restore stock for every line and delete the sale. Returns the pre-delete snapshot."""
    def _op():
        sale = get_sale(sale_id)
        snapshot = sale.to_dict()
        for line in sale.lines:
            db.session.execute(
                update(Product)
                .where(Product.id == line.product_id)
                .values(stock=Product.stock + line.quantity)
                .execution_options(synchronize_session=False)
            )
            db.session.delete(line)
        db.session.delete(sale)
        return snapshot

    snapshot = with_transaction(_op, immediate=True)

    audit_service.log_operation(
        "SALE_CANCELLED",
        f"Venta {snapshot['invoice_number']} cancelada, stock restaurado",
        entity_type="sale",
        entity_id=sale_id,
        before=snapshot,
    )
    return snapshot


def list_sales(day: date | None = None, start: date | None = None, end: date | None = None) -> list[Sale]:
    """Newest first. `day` wins over the start/end range; bounds are inclusive dates."""
    q = db.session.query(Sale)
    if day is not None:
        lo, hi = day_bounds(day)
        q = q.filter(Sale.created_at >= lo, Sale.created_at < hi)
    else:
        if start is not None:
            q = q.filter(Sale.created_at >= day_bounds(start)[0])
        if end is not None:
            q = q.filter(Sale.created_at < day_bounds(end)[1])
    return q.order_by(Sale.created_at.desc(), Sale.id.desc()).all()
