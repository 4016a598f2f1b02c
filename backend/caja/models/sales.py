from __future__ import annotations

from ..extensions import db
from caja.money import from_cents
from caja.services.payment_service import deserialize_payment
from caja.time_utils import now, to_iso


class Sale(db.Model):
    """
    A completed sale ("factura").

    PAYMENT: payment_kind is the discriminator for payment_method.
    - SIMPLE: payment_method holds one method name ("efectivo", "tarjeta", ...)
    - ITEMIZED: payment_method holds a JSON list of {method, amount}
    Decode through payment_service.deserialize_payment, never by sniffing text.

    Created atomically with its lines; cancellation deletes both.
    """
    __tablename__ = "sales"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), nullable=False, unique=True)
    total_cents = db.Column(db.Integer, nullable=False)
    payment_kind = db.Column(db.String(16), nullable=False, default="SIMPLE")
    payment_method = db.Column(db.Text, nullable=False)
    change_cents = db.Column(db.Integer, nullable=False, default=0)

    # Server-assigned; client timestamps are ignored
    created_at = db.Column(db.DateTime, nullable=False, default=now, index=True)

    lines = db.relationship(
        "SaleLine",
        backref="sale",
        lazy=True,
        order_by="SaleLine.id",
    )

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "total": from_cents(self.total_cents),
            "total_cents": self.total_cents,
            "payment": deserialize_payment(self.payment_kind, self.payment_method).to_dict(),
            "change": from_cents(self.change_cents),
            "created_at": to_iso(self.created_at),
        }
        if include_lines:
            data["items"] = [line.to_dict() for line in self.lines]
        return data


class SaleLine(db.Model):
    """
    unit_price_cents is the discounted price actually charged;
    original_unit_price_cents keeps the pre-discount price for receipts.
    """
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_lines_quantity_positive"),
        db.CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="ck_sale_lines_discount_range",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    original_unit_price_cents = db.Column(db.Integer, nullable=False)
    discount_percent = db.Column(db.Float, nullable=False, default=0)
    line_total_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price": from_cents(self.unit_price_cents),
            "original_unit_price": from_cents(self.original_unit_price_cents),
            "discount_percent": self.discount_percent,
            "line_total": from_cents(self.line_total_cents),
        }
