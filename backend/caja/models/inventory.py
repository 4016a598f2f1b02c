from __future__ import annotations

from ..extensions import db
from caja.money import from_cents
from caja.time_utils import now, to_iso


class Product(db.Model):
    """
    Catalog item.

    Stock is a plain integer counter decremented by sales and restored by
    cancellations; the check constraint keeps it from going negative even
    if a caller bypasses the conditional update in sales_service.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (clients send and receive decimals)
    price_cents = db.Column(db.Integer, nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(db.String(128), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=now)
    updated_at = db.Column(db.DateTime, nullable=False, default=now, onupdate=now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "price": from_cents(self.price_cents),
            "price_cents": self.price_cents,
            "stock": self.stock,
            "category": self.category,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    contact_name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    products_services = db.Column(db.Text, nullable=True)
    payment_terms = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(32), nullable=False, default="active")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=now)
    updated_at = db.Column(db.DateTime, nullable=False, default=now, onupdate=now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_name": self.contact_name,
            "phone": self.phone,
            "email": self.email,
            "products_services": self.products_services,
            "payment_terms": self.payment_terms,
            "status": self.status,
            "notes": self.notes,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }


class SupplierOrder(db.Model):
    """
    Purchase order sent to a supplier.

    STATUS: pending -> in_progress -> delivered, or cancelled.
    Receiving an order does not touch product stock.
    """
    __tablename__ = "supplier_orders"
    __table_args__ = {"sqlite_autoincrement": True}

    STATUSES = ("pending", "in_progress", "delivered", "cancelled")

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(64), nullable=False, unique=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    ordered_at = db.Column(db.DateTime, nullable=False, default=now)
    expected_delivery = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(32), nullable=False, default="pending", index=True)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=now)
    updated_at = db.Column(db.DateTime, nullable=False, default=now, onupdate=now)

    supplier = db.relationship("Supplier", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "SupplierOrderItem",
        backref="order",
        lazy=True,
        order_by="SupplierOrderItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "contact_name": self.supplier.contact_name if self.supplier else None,
            "phone": self.supplier.phone if self.supplier else None,
            "email": self.supplier.email if self.supplier else None,
            "ordered_at": to_iso(self.ordered_at),
            "expected_delivery": self.expected_delivery.isoformat() if self.expected_delivery else None,
            "status": self.status,
            "total": from_cents(self.total_cents),
            "total_cents": self.total_cents,
            "notes": self.notes,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SupplierOrderItem(db.Model):
    __tablename__ = "supplier_order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_supplier_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("supplier_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_code": self.product.code if self.product else None,
            "quantity": self.quantity,
            "unit_cost": from_cents(self.unit_cost_cents),
            "line_total": from_cents(self.line_total_cents),
        }
