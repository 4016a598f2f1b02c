"""Data resets and backup export/restore."""

import copy

import pytest

from caja.errors import ValidationError
from caja.models import (
    OperationLogEntry,
    Product,
    Promotion,
    RegisterClosing,
    Sale,
    SaleLine,
    Supplier,
    SupplierOrder,
)
from caja.services import (
    maintenance_service,
    promotions_service,
    register_service,
    sales_service,
    vendor_service,
)
from caja.services.payment_service import ItemizedPayment, PaymentEntry


@pytest.fixture
def populated(db_session, make_product, licensed):
    mouse = make_product(code="MOU-1", name="Mouse", price_cents=2500, stock=20)
    keyboard = make_product(code="KEY-1", name="Teclado", price_cents=4500, stock=20)
    sales_service.create_sale([{"id": mouse.id, "quantity": 2}])
    sales_service.create_sale(
        [{"id": keyboard.id, "quantity": 1}],
        ItemizedPayment((PaymentEntry("efectivo", 2000), PaymentEntry("tarjeta", 2500))),
    )
    register_service.close_register(raw_opening="100", raw_counted="200")
    supplier = vendor_service.create_supplier({"name": "Distribuidora Norte"})
    vendor_service.create_order({
        "supplier_id": supplier.id,
        "items": [{"product_id": mouse.id, "quantity": 10, "unit_cost": 12.5}],
    })
    promotions_service.create_promotion({
        "title": "Semana del teclado",
        "items": [{"product_id": keyboard.id, "discount_percent": 20}],
    })
    return {"mouse": mouse, "keyboard": keyboard}


def test_reset_sales_keeps_products(db_session, populated):
    counts = maintenance_service.reset_sales_data()

    assert counts["sales"] == 2
    assert counts["closings"] == 1
    assert db_session.query(Sale).count() == 0
    assert db_session.query(SaleLine).count() == 0
    assert db_session.query(RegisterClosing).count() == 0
    assert db_session.query(Product).count() == 2
    assert db_session.query(Supplier).count() == 1


def test_parse_reset_flags_accepts_legacy_keys():
    flags = maintenance_service.parse_reset_flags({"resetVentas": True, "promotions": 1})
    assert flags == {
        "sales": True, "closings": False, "suppliers": False, "promotions": True, "log": False,
    }


def test_selective_reset(db_session, populated):
    deleted = maintenance_service.reset_selective(
        maintenance_service.parse_reset_flags({"resetProveedores": True, "resetPromociones": True})
    )

    assert deleted == {"suppliers": 1, "promotions": 1}
    assert db_session.query(SupplierOrder).count() == 0
    assert db_session.query(Promotion).count() == 0
    assert db_session.query(Sale).count() == 2
    assert db_session.query(OperationLogEntry).filter_by(operation_type="SELECTIVE_RESET").count() == 1


def test_selective_reset_requires_a_flag(db_session):
    with pytest.raises(ValidationError):
        maintenance_service.reset_selective(maintenance_service.parse_reset_flags({}))


def test_export_shape(db_session, populated):
    backup = maintenance_service.export_backup()

    assert backup["version"] == "1.0"
    assert backup["timestamp"]
    data = backup["data"]
    assert len(data["products"]) == 2
    assert len(data["sales"]) == 2
    assert data["supplier_orders"][0]["items"][0]["quantity"] == 10
    assert data["promotions"][0]["items"][0]["discount_percent"] == 20


def test_restore_replaces_data_and_reports_skipped_rows(db_session, populated):
    backup = copy.deepcopy(maintenance_service.export_backup())
    del backup["data"]["sales"][1]["invoice_number"]

    maintenance_service.reset_selective(maintenance_service.parse_reset_flags({
        "sales": True, "closings": True, "suppliers": True, "promotions": True,
    }))
    assert db_session.query(Sale).count() == 0

    result = maintenance_service.restore_backup(backup)

    assert result["restored"]["sales"] == 1
    assert result["skipped"] == {"sales": 1}
    assert result["restored"]["register_closings"] == 1
    assert result["restored"]["supplier_orders"] == 1
    db_session.expire_all()
    assert db_session.query(Sale).count() == 1
    assert db_session.query(SaleLine).count() == 1
    assert db_session.query(Promotion).count() == 1
    closing = db_session.query(RegisterClosing).one()
    assert closing.opening_cash_cents == 10000
    assert db_session.query(OperationLogEntry).filter_by(operation_type="BACKUP_RESTORED").count() == 1


def test_restore_keeps_itemized_payment(db_session, populated):
    backup = maintenance_service.export_backup()
    maintenance_service.restore_backup(backup)

    db_session.expire_all()
    itemized = [s for s in db_session.query(Sale).all() if s.payment_kind == "ITEMIZED"]
    assert len(itemized) == 1
    entries = itemized[0].to_dict()["payment"]["entries"]
    assert [e["method"] for e in entries] == ["efectivo", "tarjeta"]


@pytest.mark.parametrize("backup", [
    None,
    [],
    {"version": "1.0", "timestamp": "2026-10-19T10:00:00"},
    {"data": {}, "timestamp": "2026-10-19T10:00:00", "version": "1.0"},
    {"data": [], "timestamp": "2026-10-19T10:00:00", "version": "1.0"},
])
def test_invalid_backups(db_session, backup):
    with pytest.raises(ValidationError):
        maintenance_service.restore_backup(backup)
