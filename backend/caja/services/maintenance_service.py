# Overview: Service-layer operations for maintenance; data resets and backup export/restore.

from __future__ import annotations

import json
from datetime import date

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import ValidationError
from ..extensions import db
from ..models import (
    OperationLogEntry,
    Product,
    Promotion,
    PromotionItem,
    RegisterClosing,
    Sale,
    SaleLine,
    Supplier,
    SupplierOrder,
    SupplierOrderItem,
)
from ..money import to_cents
from ..time_utils import now, parse_iso_datetime, to_iso
from . import audit_service
from .concurrency import with_transaction
from .payment_service import payment_from_dict, serialize_payment

BACKUP_VERSION = "1.0"

# flag -> legacy request key
RESET_FLAGS = {
    "sales": "resetVentas",
    "closings": "resetCierres",
    "suppliers": "resetProveedores",
    "promotions": "resetPromociones",
    "log": "resetLog",
}


def _delete_all(model) -> int:
    return db.session.query(model).delete(synchronize_session=False)


def _delete_sales() -> int:
    _delete_all(SaleLine)
    return _delete_all(Sale)


def _delete_suppliers() -> int:
    _delete_all(SupplierOrderItem)
    _delete_all(SupplierOrder)
    return _delete_all(Supplier)


def _delete_promotions() -> int:
    _delete_all(PromotionItem)
    return _delete_all(Promotion)


def reset_sales_data() -> dict:
    """Sales, their lines, closings and SALE log rows. Products are untouched."""
    def _op():
        deleted_sales = _delete_sales()
        deleted_closings = _delete_all(RegisterClosing)
        deleted_log = (
            db.session.query(OperationLogEntry)
            .filter(OperationLogEntry.operation_type == "SALE")
            .delete(synchronize_session=False)
        )
        return {"sales": deleted_sales, "closings": deleted_closings, "log_entries": deleted_log}

    return with_transaction(_op, immediate=True)


def parse_reset_flags(data: dict) -> dict[str, bool]:
    return {
        flag: bool(data.get(flag, data.get(legacy, False)))
        for flag, legacy in RESET_FLAGS.items()
    }


def reset_selective(flags: dict[str, bool]) -> dict:
    selected = [name for name, on in flags.items() if on]
    if not selected:
        raise ValidationError("Select at least one data set to reset")

    audit_service.log_operation(
        "SELECTIVE_RESET",
        f"Reinicio selectivo: {', '.join(selected)}",
        after=flags,
    )

    def _op():
        deleted = {}
        if flags.get("sales"):
            deleted["sales"] = _delete_sales()
        if flags.get("closings"):
            deleted["closings"] = _delete_all(RegisterClosing)
        if flags.get("suppliers"):
            deleted["suppliers"] = _delete_suppliers()
        if flags.get("promotions"):
            deleted["promotions"] = _delete_promotions()
        if flags.get("log"):
            deleted["log_entries"] = _delete_all(OperationLogEntry)
        return deleted

    return with_transaction(_op, immediate=True)


# =============================================================================
# BACKUP
# =============================================================================

def export_backup() -> dict:
    def rows(model, **kwargs):
        return [r.to_dict(**kwargs) for r in db.session.query(model).order_by(model.id).all()]

    return {
        "version": BACKUP_VERSION,
        "timestamp": to_iso(now()),
        "data": {
            "products": rows(Product),
            "suppliers": rows(Supplier),
            "supplier_orders": rows(SupplierOrder, include_items=True),
            "promotions": rows(Promotion, include_items=True),
            "sales": rows(Sale),
            "register_closings": rows(RegisterClosing),
            "operations_log": rows(OperationLogEntry),
        },
    }


def _dt(value):
    return parse_iso_datetime(value) if value else None


def _day(value):
    return date.fromisoformat(value[:10]) if value else None


def _restore_product(row: dict) -> None:
    db.session.merge(Product(
        id=row["id"],
        code=row["code"],
        name=row["name"],
        description=row.get("description"),
        price_cents=row.get("price_cents", to_cents(row.get("price", 0))),
        stock=row.get("stock", 0),
        category=row.get("category"),
        created_at=_dt(row.get("created_at")) or now(),
    ))


def _restore_supplier(row: dict) -> None:
    db.session.merge(Supplier(
        id=row["id"],
        name=row["name"],
        contact_name=row.get("contact_name"),
        phone=row.get("phone"),
        email=row.get("email"),
        products_services=row.get("products_services"),
        payment_terms=row.get("payment_terms"),
        status=row.get("status") or "active",
        notes=row.get("notes"),
    ))


def _restore_supplier_order(row: dict) -> None:
    db.session.merge(SupplierOrder(
        id=row["id"],
        order_number=row["order_number"],
        supplier_id=row["supplier_id"],
        ordered_at=_dt(row.get("ordered_at")) or now(),
        expected_delivery=_day(row.get("expected_delivery")),
        status=row.get("status") or "pending",
        total_cents=row.get("total_cents", to_cents(row.get("total", 0))),
        notes=row.get("notes"),
    ))
    for item in row.get("items") or []:
        quantity = item["quantity"]
        cost = to_cents(item.get("unit_cost", 0))
        db.session.merge(SupplierOrderItem(
            id=item["id"],
            order_id=row["id"],
            product_id=item["product_id"],
            quantity=quantity,
            unit_cost_cents=cost,
            line_total_cents=quantity * cost,
        ))


def _restore_promotion(row: dict) -> None:
    db.session.merge(Promotion(
        id=row["id"],
        title=row["title"],
        created_at=_dt(row.get("created_at")) or now(),
    ))
    for item in row.get("items") or []:
        db.session.merge(PromotionItem(
            id=item["id"],
            promotion_id=row["id"],
            product_id=item["product_id"],
            discount_percent=item["discount_percent"],
        ))


def _restore_sale(row: dict) -> None:
    kind, method = serialize_payment(payment_from_dict(row.get("payment") or {}))
    db.session.merge(Sale(
        id=row["id"],
        invoice_number=row["invoice_number"],
        total_cents=row.get("total_cents", to_cents(row.get("total", 0))),
        payment_kind=kind,
        payment_method=method,
        change_cents=to_cents(row.get("change") or 0),
        created_at=_dt(row.get("created_at")) or now(),
    ))
    for item in row.get("items") or []:
        db.session.merge(SaleLine(
            id=item["id"],
            sale_id=row["id"],
            product_id=item["product_id"],
            quantity=item["quantity"],
            unit_price_cents=to_cents(item["unit_price"]),
            original_unit_price_cents=to_cents(item.get("original_unit_price", item["unit_price"])),
            discount_percent=item.get("discount_percent") or 0,
            line_total_cents=to_cents(item["line_total"]),
        ))


def _restore_closing(row: dict) -> None:
    db.session.merge(RegisterClosing(
        id=row["id"],
        closed_at=_dt(row.get("closed_at")) or now(),
        business_date=_day(row.get("business_date") or row.get("closed_at")),
        opening_cash_cents=to_cents(row.get("opening_cash") or 0),
        total_sales_cents=to_cents(row.get("total_sales") or 0),
        expected_total_cents=to_cents(row.get("expected_total") or 0),
        counted_cash_cents=to_cents(row.get("counted_cash") or 0),
        discrepancy_cents=to_cents(row.get("discrepancy") or 0),
        sale_count=row.get("sale_count") or 0,
    ))


def _restore_log_entry(row: dict) -> None:
    db.session.merge(OperationLogEntry(
        id=row["id"],
        operation_type=row["operation_type"],
        description=row.get("description") or "",
        actor=row.get("actor") or audit_service.DEFAULT_ACTOR,
        entity_type=row.get("entity_type"),
        entity_id=row.get("entity_id"),
        before_data=json.dumps(row["before"]) if row.get("before") is not None else None,
        after_data=json.dumps(row["after"]) if row.get("after") is not None else None,
        created_at=_dt(row.get("created_at")) or now(),
    ))


# Restore order respects foreign keys
RESTORERS = (
    ("products", _restore_product),
    ("suppliers", _restore_supplier),
    ("supplier_orders", _restore_supplier_order),
    ("promotions", _restore_promotion),
    ("sales", _restore_sale),
    ("register_closings", _restore_closing),
    ("operations_log", _restore_log_entry),
)


def validate_backup(backup) -> dict:
    if not isinstance(backup, dict):
        raise ValidationError("Invalid backup format")
    missing = [k for k in ("data", "timestamp", "version") if not backup.get(k)]
    if missing:
        raise ValidationError(f"Invalid backup: missing {', '.join(missing)}")
    if not isinstance(backup["data"], dict):
        raise ValidationError("Invalid backup: data must be an object")
    return backup["data"]


def restore_backup(backup: dict) -> dict:
    """
    Replace everything except products with the backup contents.
    Products are merged by id. A row that fails to restore is skipped
    (its savepoint rolls back) and reported under "skipped".
    """
    data = validate_backup(backup)

    def _op():
        db.session.query(OperationLogEntry).delete(synchronize_session=False)
        _delete_sales()
        _delete_promotions()
        db.session.query(RegisterClosing).delete(synchronize_session=False)
        _delete_suppliers()
        # Bulk deletes bypass the identity map; drop stale instances so merge() inserts
        db.session.expunge_all()

        restored: dict[str, int] = {}
        skipped: dict[str, int] = {}
        for section, restore in RESTORERS:
            rows = data.get(section) or []
            restored[section] = 0
            for row in rows:
                try:
                    with db.session.begin_nested():
                        restore(row)
                except (KeyError, TypeError, ValueError, SQLAlchemyError) as exc:
                    current_app.logger.warning("Skipped %s row during restore: %s", section, exc)
                    skipped[section] = skipped.get(section, 0) + 1
                    continue
                restored[section] += 1
        return {"restored": restored, "skipped": skipped}

    result = with_transaction(_op, immediate=True)

    audit_service.log_operation(
        "BACKUP_RESTORED",
        f"Backup restaurado (versión {backup['version']}, {backup['timestamp']})",
        after=result,
    )
    return result
