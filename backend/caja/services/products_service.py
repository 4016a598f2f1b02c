# backend/caja/services/products_service.py
"""
Product catalog.

Reads are decorated with the product's promotion discount (if any):
discount_percent, on_promotion and discounted_price. Writes go through
validate_payload with PRODUCT_POLICY.
"""
from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, PromotionItem
from ..money import discounted_unit_cents, format_currency, from_cents
from ..validation import (
    PRODUCT_POLICY,
    enforce_rules_product,
    normalize_price_field,
    validate_payload,
)
from . import audit_service
from .promotions_service import discount_by_product

PRODUCT_MUTABLE_FIELDS = {"code", "name", "description", "price_cents", "stock", "category"}
TRACKED_FIELDS = ("name", "price_cents", "stock", "category")

DEFAULT_SEARCH_LIMIT = 50
MAX_SEARCH_LIMIT = 200


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def product_with_discount(product: Product, discounts: dict[int, float]) -> dict:
    data = product.to_dict()
    discount = discounts.get(product.id, 0) or 0
    data["discount_percent"] = discount
    data["on_promotion"] = discount > 0
    data["discounted_price"] = from_cents(discounted_unit_cents(product.price_cents, discount))
    return data


def list_products() -> list[dict]:
    discounts = discount_by_product()
    products = db.session.query(Product).order_by(Product.name.asc()).all()
    return [product_with_discount(p, discounts) for p in products]


def list_products_with_discounts() -> list[dict]:
    return [p for p in list_products() if p["on_promotion"]]


def _parse_int_arg(raw, name: str, default: int) -> int:
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def search_products(
    q: str | None = None,
    category: str | None = None,
    limit=None,
    offset=None,
    only_promotions: bool = False,
) -> dict:
    """
    Paginated catalog search.

    q matches name or code (case-insensitive substring). limit defaults
    to 50 and is capped at 200; offset must be >= 0.
    """
    limit = _parse_int_arg(limit, "limit", DEFAULT_SEARCH_LIMIT)
    offset = _parse_int_arg(offset, "offset", 0)
    if limit <= 0:
        raise ValidationError("limit must be > 0")
    limit = min(limit, MAX_SEARCH_LIMIT)
    if offset < 0:
        raise ValidationError("offset must be >= 0")

    query = db.session.query(Product)
    term = (q or "").strip()
    if term:
        like = f"%{term.lower()}%"
        query = query.filter(
            db.func.lower(Product.name).like(like) | db.func.lower(Product.code).like(like)
        )
    if category:
        query = query.filter(Product.category == category)
    if only_promotions:
        query = query.filter(Product.id.in_(db.session.query(PromotionItem.product_id)))

    # One extra row tells us whether another page exists
    rows = query.order_by(Product.name.asc(), Product.id.asc()).offset(offset).limit(limit + 1).all()
    has_more = len(rows) > limit
    rows = rows[:limit]

    discounts = discount_by_product()
    return {
        "products": [product_with_discount(p, discounts) for p in rows],
        "pagination": {"limit": limit, "offset": offset, "has_more": has_more},
        "search": {"q": term, "category": category, "only_promotions": only_promotions},
    }


def get_product(product_id: int) -> dict:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Producto no encontrado")
    return product_with_discount(product, discount_by_product())


def list_categories() -> list[str]:
    rows = (
        db.session.query(Product.category)
        .filter(Product.category.isnot(None), Product.category != "")
        .distinct()
        .order_by(Product.category.asc())
        .all()
    )
    return [row[0] for row in rows]


def _ensure_code_available(code: str, exclude_id: int | None = None) -> None:
    q = db.session.query(Product.id).filter(Product.code == code)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(f"Ya existe un producto con el código {code}")


def create_product(payload: dict) -> Product:
    patch = validate_payload(
        model=Product,
        payload=normalize_price_field(payload or {}),
        policy=PRODUCT_POLICY,
        partial=False,
    )
    enforce_rules_product(patch)
    _ensure_code_available(patch["code"])

    product = Product()
    apply_product_patch(product, patch)
    db.session.add(product)
    db.session.commit()

    audit_service.log_operation(
        "PRODUCT_CREATED",
        f"Producto {product.code} - {product.name} creado ({format_currency(product.price_cents)}, stock {product.stock})",
        entity_type="product",
        entity_id=product.id,
        after=product.to_dict(),
    )
    return product


def update_product(product_id: int, payload: dict) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Producto no encontrado")

    patch = validate_payload(
        model=Product,
        payload=normalize_price_field(payload or {}),
        policy=PRODUCT_POLICY,
        partial=True,
    )
    if not patch:
        raise ValidationError("No fields to update")
    enforce_rules_product(patch)
    if "code" in patch:
        _ensure_code_available(patch["code"], exclude_id=product.id)

    before = {k: getattr(product, k) for k in TRACKED_FIELDS}
    apply_product_patch(product, patch)
    db.session.commit()

    after = {k: getattr(product, k) for k in TRACKED_FIELDS}
    changed = [k for k in TRACKED_FIELDS if before[k] != after[k]]
    if changed:
        audit_service.log_operation(
            "PRODUCT_UPDATED",
            f"Producto {product.code} actualizado: {', '.join(changed)}",
            entity_type="product",
            entity_id=product.id,
            before={k: before[k] for k in changed},
            after={k: after[k] for k in changed},
        )
    return product
