from __future__ import annotations

from decimal import Decimal, InvalidOperation

from flask import current_app

from ..errors import ConflictError, LicenseLimitError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, Promotion, PromotionItem
from . import audit_service, license_service
from .concurrency import with_transaction


def list_promotions() -> list[Promotion]:
    return db.session.query(Promotion).order_by(Promotion.created_at.desc(), Promotion.id.desc()).all()


def get_promotion(promo_id: int) -> Promotion:
    promo = db.session.get(Promotion, promo_id)
    if promo is None:
        raise NotFoundError("Promoción no encontrada")
    return promo


def discount_by_product() -> dict[int, float]:
    """product_id -> discount percent. With legacy duplicates the oldest promotion wins."""
    rows = (
        db.session.query(PromotionItem.product_id, PromotionItem.discount_percent)
        .join(Promotion, Promotion.id == PromotionItem.promotion_id)
        .order_by(Promotion.created_at.desc(), Promotion.id.desc())
        .all()
    )
    return {product_id: discount for product_id, discount in rows}


def _parse_items(raw_items) -> list[tuple[int, float]]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one product is required")

    parsed: list[tuple[int, float]] = []
    seen: set[int] = set()
    for index, item in enumerate(raw_items, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {index}: must be an object")
        product_id = item.get("product_id", item.get("producto_id"))
        if product_id is None or isinstance(product_id, bool):
            raise ValidationError(f"Item {index}: product_id is required")
        try:
            product_id = int(product_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Item {index}: product_id must be an integer")

        raw_discount = item.get("discount_percent", item.get("descuento_porcentaje"))
        if raw_discount is None or isinstance(raw_discount, bool):
            raise ValidationError(f"Item {index}: discount_percent is required")
        try:
            discount = Decimal(str(raw_discount))
        except InvalidOperation:
            raise ValidationError(f"Item {index}: discount_percent must be a number")
        if not discount.is_finite() or discount <= 0 or discount > 100:
            raise ValidationError(f"Item {index}: discount_percent must be between 0 and 100")

        if product_id in seen:
            raise ValidationError(f"Item {index}: product {product_id} is listed twice")
        seen.add(product_id)
        parsed.append((product_id, float(discount)))
    return parsed


def _enforce_license_caps(item_count: int) -> None:
    if license_service.is_licensed():
        return
    max_promotions = current_app.config.get("UNLICENSED_MAX_PROMOTIONS", 3)
    max_items = current_app.config.get("UNLICENSED_MAX_PROMOTION_ITEMS", 1)
    if db.session.query(Promotion).count() >= max_promotions:
        raise LicenseLimitError(
            f"Sin licencia solo se permiten {max_promotions} promociones. Active una licencia para crear más."
        )
    if item_count != max_items:
        raise LicenseLimitError(
            f"Sin licencia cada promoción debe tener exactamente {max_items} producto.",
            status_code=400,
        )


def create_promotion(data: dict) -> Promotion:
    """
    Create a promotion with its per-product discounts.

    Raises:
        ValidationError: missing title/items, bad discount, unknown product
        LicenseLimitError: unlicensed caps exceeded
        ConflictError: a product already belongs to another promotion
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    title = data.get("title", data.get("titulo"))
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title is required")
    items = _parse_items(data.get("items", data.get("productos")))

    def _op():
        # Counted under the write lock so concurrent creates cannot both pass the cap
        _enforce_license_caps(len(items))

        products = {}
        for product_id, _ in items:
            product = db.session.get(Product, product_id)
            if product is None:
                raise ValidationError(f"Product {product_id} not found")
            products[product_id] = product

        existing = (
            db.session.query(PromotionItem, Promotion)
            .join(Promotion, Promotion.id == PromotionItem.promotion_id)
            .filter(PromotionItem.product_id.in_(list(products)))
            .first()
        )
        if existing is not None:
            item, promo = existing
            product_name = products[item.product_id].name
            raise ConflictError(
                f'El producto "{product_name}" ya está en la promoción "{promo.title}"',
                {"product_id": item.product_id, "promotion_id": promo.id, "promotion_title": promo.title},
            )

        promo = Promotion(title=title.strip())
        db.session.add(promo)
        db.session.flush()
        for product_id, discount in items:
            db.session.add(PromotionItem(
                promotion_id=promo.id,
                product_id=product_id,
                discount_percent=discount,
            ))
        db.session.flush()
        return promo

    promo = with_transaction(_op, immediate=True)

    audit_service.log_operation(
        "PROMOTION_CREATED",
        f'Promoción "{promo.title}" creada con {len(items)} producto(s)',
        entity_type="promotion",
        entity_id=promo.id,
        after=promo.to_dict(include_items=True),
    )
    return promo


def delete_promotion(promo_id: int) -> None:
    def _op():
        promo = get_promotion(promo_id)
        db.session.query(PromotionItem).filter_by(promotion_id=promo.id).delete(synchronize_session=False)
        db.session.delete(promo)

    with_transaction(_op)


def clean_duplicate_promotions() -> dict:
    """
    Products present in several promotions keep the item of the oldest
    promotion; the other items are deleted.
    """
    def _op():
        rows = (
            db.session.query(PromotionItem, Promotion)
            .join(Promotion, Promotion.id == PromotionItem.promotion_id)
            .order_by(PromotionItem.product_id, Promotion.created_at.asc(), Promotion.id.asc())
            .all()
        )
        kept: dict[int, Promotion] = {}
        removed = []
        for item, promo in rows:
            if item.product_id not in kept:
                kept[item.product_id] = promo
                continue
            removed.append({
                "product_id": item.product_id,
                "removed_from_promotion": promo.title,
                "kept_in_promotion": kept[item.product_id].title,
            })
            db.session.delete(item)
        return removed

    removed = with_transaction(_op)
    if removed:
        audit_service.log_operation(
            "PROMOTIONS_CLEANED",
            f"Eliminados {len(removed)} productos duplicados en promociones",
            entity_type="promotion",
            after=removed,
        )
    return {"removed_count": len(removed), "details": removed}
