import pytest

from caja.errors import ConflictError, NotFoundError, ValidationError
from caja.models import SupplierOrder, SupplierOrderItem
from caja.services import vendor_service


@pytest.fixture
def supplier(db_session):
    return vendor_service.create_supplier({
        "nombre_proveedor": "Distribuidora Norte",
        "nombre_contacto": "Ana",
        "telefono": "555-0101",
        "email": "ventas@norte.example",
    })


def test_create_supplier_with_legacy_keys(supplier):
    assert supplier.name == "Distribuidora Norte"
    assert supplier.contact_name == "Ana"
    assert supplier.status == "active"


@pytest.mark.parametrize("payload", [{}, {"name": "   "}, {"name": "X", "unknown": 1}, None])
def test_invalid_supplier(db_session, payload):
    with pytest.raises(ValidationError):
        vendor_service.create_supplier(payload)


def test_update_supplier(supplier):
    updated = vendor_service.update_supplier(supplier.id, {"phone": "555-9999"})
    assert updated.phone == "555-9999"
    with pytest.raises(ValidationError):
        vendor_service.update_supplier(supplier.id, {})
    with pytest.raises(ValidationError):
        vendor_service.update_supplier(supplier.id, {"name": ""})


def test_create_order_computes_total(supplier, make_product):
    a, b = make_product(), make_product()

    order = vendor_service.create_order({
        "supplier_id": supplier.id,
        "expected_delivery": "2026-11-01",
        "items": [
            {"product_id": a.id, "quantity": 3, "unit_cost": 12.5},
            {"product_id": b.id, "quantity": 1, "unit_cost": "7.25"},
        ],
    })

    assert order.order_number.startswith("PED-")
    assert order.status == "pending"
    assert order.total_cents == 3 * 1250 + 725
    data = order.to_dict(include_items=True)
    assert data["supplier_name"] == "Distribuidora Norte"
    assert len(data["items"]) == 2


def test_order_for_unknown_supplier(db_session, make_product):
    product = make_product()
    with pytest.raises(NotFoundError):
        vendor_service.create_order({
            "supplier_id": 4242,
            "items": [{"product_id": product.id, "quantity": 1, "unit_cost": 1}],
        })
    assert db_session.query(SupplierOrder).count() == 0


@pytest.mark.parametrize("items", [
    [],
    [{"product_id": 1, "quantity": 0, "unit_cost": 1}],
    [{"product_id": 1, "quantity": 1, "unit_cost": -1}],
    [{"quantity": 1, "unit_cost": 1}],
])
def test_invalid_order_items(supplier, items):
    with pytest.raises(ValidationError):
        vendor_service.create_order({"supplier_id": supplier.id, "items": items})


def test_status_update_accepts_spanish_names(supplier, make_product):
    product = make_product()
    order = vendor_service.create_order({
        "supplier_id": supplier.id,
        "items": [{"product_id": product.id, "quantity": 1, "unit_cost": 1}],
    })

    assert vendor_service.update_order_status(order.id, "en_proceso").status == "in_progress"
    assert vendor_service.update_order_status(order.id, "delivered").status == "delivered"
    with pytest.raises(ValidationError):
        vendor_service.update_order_status(order.id, "lost")


def test_delete_order_and_supplier_guard(supplier, make_product, db_session):
    product = make_product()
    order = vendor_service.create_order({
        "supplier_id": supplier.id,
        "items": [{"product_id": product.id, "quantity": 2, "unit_cost": 3}],
    })

    with pytest.raises(ConflictError):
        vendor_service.delete_supplier(supplier.id)

    vendor_service.delete_order(order.id)
    assert db_session.query(SupplierOrderItem).count() == 0

    supplier_id = supplier.id
    vendor_service.delete_supplier(supplier_id)
    with pytest.raises(NotFoundError):
        vendor_service.get_supplier(supplier_id)
