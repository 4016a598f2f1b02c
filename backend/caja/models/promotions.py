from __future__ import annotations

from ..extensions import db
from caja.money import from_cents
from caja.time_utils import now, to_iso


class Promotion(db.Model):
    """
    Named group of per-product discounts.

    A product is expected to belong to at most one promotion; this is
    enforced in promotions_service at creation time, not by a constraint,
    so legacy duplicates can exist until clean_duplicate_promotions runs.
    """
    __tablename__ = "promotions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=now, index=True)

    items = db.relationship(
        "PromotionItem",
        backref="promotion",
        lazy=True,
        order_by="PromotionItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "created_at": to_iso(self.created_at),
            "product_count": len(self.items),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PromotionItem(db.Model):
    __tablename__ = "promotion_items"
    __table_args__ = (
        db.CheckConstraint(
            "discount_percent > 0 AND discount_percent <= 100",
            name="ck_promotion_items_discount_range",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    promotion_id = db.Column(db.Integer, db.ForeignKey("promotions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    discount_percent = db.Column(db.Float, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "promotion_id": self.promotion_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "original_price": from_cents(self.product.price_cents) if self.product else None,
            "discount_percent": self.discount_percent,
        }
