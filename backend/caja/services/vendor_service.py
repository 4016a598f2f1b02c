# Overview: Service-layer operations for suppliers and supplier orders.

"""
Supplier Service

Suppliers are simple contact records; supplier orders are purchase
orders made of (product, quantity, unit cost) items. Order totals are
computed here, never taken from the client. Receiving an order does not
change product stock.
"""

import time
from datetime import date

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, Supplier, SupplierOrder, SupplierOrderItem
from ..money import format_currency, to_cents
from ..validation import SUPPLIER_POLICY, validate_payload
from . import audit_service
from .concurrency import with_transaction

# Legacy Spanish status names accepted on input
STATUS_ALIASES = {
    "pendiente": "pending",
    "en_proceso": "in_progress",
    "entregado": "delivered",
    "cancelado": "cancelled",
}


# =============================================================================
# SUPPLIERS
# =============================================================================

def list_suppliers() -> list[Supplier]:
    return db.session.query(Supplier).order_by(Supplier.name.asc()).all()


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError("Proveedor no encontrado")
    return supplier


def create_supplier(payload: dict) -> Supplier:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
    supplier = Supplier(**patch)
    db.session.add(supplier)
    db.session.commit()

    audit_service.log_operation(
        "SUPPLIER_CREATED",
        f"Proveedor {supplier.name} creado",
        entity_type="supplier",
        entity_id=supplier.id,
        after=supplier.to_dict(),
    )
    return supplier


def update_supplier(supplier_id: int, payload: dict) -> Supplier:
    supplier = get_supplier(supplier_id)
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
    if not patch:
        raise ValidationError("No fields to update")
    for key, value in patch.items():
        setattr(supplier, key, value)
    db.session.commit()
    return supplier


def delete_supplier(supplier_id: int) -> None:
    supplier = get_supplier(supplier_id)
    if db.session.query(SupplierOrder.id).filter_by(supplier_id=supplier.id).first() is not None:
        raise ConflictError("El proveedor tiene pedidos asociados y no puede eliminarse")
    db.session.delete(supplier)
    db.session.commit()


# =============================================================================
# SUPPLIER ORDERS
# =============================================================================

def normalize_status(raw) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("status is required")
    status = STATUS_ALIASES.get(raw.strip().lower(), raw.strip().lower())
    if status not in SupplierOrder.STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(SupplierOrder.STATUSES)}")
    return status


def list_orders() -> list[SupplierOrder]:
    return (
        db.session.query(SupplierOrder)
        .order_by(SupplierOrder.ordered_at.desc(), SupplierOrder.id.desc())
        .all()
    )


def get_order(order_id: int) -> SupplierOrder:
    order = db.session.get(SupplierOrder, order_id)
    if order is None:
        raise NotFoundError("Pedido no encontrado")
    return order


def _parse_order_items(raw_items) -> list[dict]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("An order needs at least one item")
    items = []
    for index, item in enumerate(raw_items, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {index}: must be an object")
        product_id = item.get("product_id", item.get("producto_id"))
        quantity = item.get("quantity", item.get("cantidad"))
        unit_cost = item.get("unit_cost", item.get("precio_unitario"))
        if product_id is None or isinstance(product_id, bool):
            raise ValidationError(f"Item {index}: product_id is required")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"Item {index}: quantity must be a positive integer")
        cost_cents = to_cents(unit_cost, f"item {index} unit_cost")
        if cost_cents < 0:
            raise ValidationError(f"Item {index}: unit_cost must be >= 0")
        try:
            product_id = int(product_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Item {index}: product_id must be an integer")
        items.append({"product_id": product_id, "quantity": quantity, "unit_cost_cents": cost_cents})
    return items


def _parse_expected_delivery(raw) -> date | None:
    if raw in (None, ""):
        return None
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        raise ValidationError("expected_delivery must be in YYYY-MM-DD format")


def create_order(payload: dict) -> SupplierOrder:
    """
    Create an order and its items in one transaction.

    order_number is PED-<epoch millis>; total = sum(quantity * unit_cost).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    supplier_id = payload.get("supplier_id", payload.get("proveedor_id"))
    if supplier_id is None or isinstance(supplier_id, bool):
        raise ValidationError("supplier_id is required")
    try:
        supplier_id = int(supplier_id)
    except (TypeError, ValueError):
        raise ValidationError("supplier_id must be an integer")
    items = _parse_order_items(payload.get("items"))
    expected = _parse_expected_delivery(payload.get("expected_delivery", payload.get("fecha_entrega_estimada")))
    notes = payload.get("notes", payload.get("notas"))

    def _op():
        supplier = get_supplier(supplier_id)
        for item in items:
            if db.session.get(Product, item["product_id"]) is None:
                raise ValidationError(f"Product {item['product_id']} not found")

        order = SupplierOrder(
            order_number=f"PED-{int(time.time() * 1000)}",
            supplier_id=supplier.id,
            expected_delivery=expected,
            status="pending",
            total_cents=sum(i["quantity"] * i["unit_cost_cents"] for i in items),
            notes=notes,
        )
        db.session.add(order)
        db.session.flush()
        for item in items:
            db.session.add(SupplierOrderItem(
                order_id=order.id,
                product_id=item["product_id"],
                quantity=item["quantity"],
                unit_cost_cents=item["unit_cost_cents"],
                line_total_cents=item["quantity"] * item["unit_cost_cents"],
            ))
        return order

    order = with_transaction(_op)

    audit_service.log_operation(
        "ORDER_CREATED",
        f"Pedido {order.order_number} a {order.supplier.name} por {format_currency(order.total_cents)}",
        entity_type="supplier_order",
        entity_id=order.id,
    )
    return order


def update_order_status(order_id: int, raw_status) -> SupplierOrder:
    status = normalize_status(raw_status)
    order = get_order(order_id)
    previous = order.status
    order.status = status
    db.session.commit()

    audit_service.log_operation(
        "ORDER_STATUS_UPDATED",
        f"Pedido {order.order_number}: {previous} -> {status}",
        entity_type="supplier_order",
        entity_id=order.id,
        before={"status": previous},
        after={"status": status},
    )
    return order


def delete_order(order_id: int) -> None:
    def _op():
        order = get_order(order_id)
        db.session.query(SupplierOrderItem).filter_by(order_id=order.id).delete(synchronize_session=False)
        db.session.delete(order)

    with_transaction(_op)
