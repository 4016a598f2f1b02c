import pytest

from caja.errors import ConflictError, NotFoundError, ValidationError
from caja.models import OperationLogEntry
from caja.services import products_service


def test_create_product_from_decimal_price(db_session):
    product = products_service.create_product({
        "codigo": "LAP-001", "nombre": "Laptop HP", "precio": 899.99, "stock": 25, "categoria": "Computadoras",
    })
    assert product.price_cents == 89999
    assert product.stock == 25
    assert product.category == "Computadoras"


@pytest.mark.parametrize("payload", [
    {"name": "Sin codigo", "price": 1, "stock": 1},
    {"code": "X-1", "name": "Negativo", "price": -1, "stock": 1},
    {"code": "X-1", "name": "Stock raro", "price": 1, "stock": 1.5},
    {"code": "X-1", "name": "Stock negativo", "price": 1, "stock": -3},
    {"code": "X-1", "name": "Precio texto", "price": "gratis", "stock": 1},
])
def test_invalid_products(db_session, payload):
    with pytest.raises(ValidationError):
        products_service.create_product(payload)


def test_duplicate_code(db_session, make_product):
    make_product(code="DUP-1")
    with pytest.raises(ConflictError):
        products_service.create_product({"code": "DUP-1", "name": "Otro", "price": 1, "stock": 1})


def test_update_is_partial_and_logged(db_session, make_product, licensed):
    product = make_product(price_cents=1000, stock=4)

    updated = products_service.update_product(product.id, {"price": 12.5})

    assert updated.price_cents == 1250
    assert updated.stock == 4
    entry = db_session.query(OperationLogEntry).filter_by(operation_type="PRODUCT_UPDATED").one()
    assert entry.to_dict()["before"] == {"price_cents": 1000}
    assert entry.to_dict()["after"] == {"price_cents": 1250}


def test_update_without_changes_is_not_logged(db_session, make_product, licensed):
    product = make_product(price_cents=1000)
    products_service.update_product(product.id, {"price": 10})
    assert db_session.query(OperationLogEntry).filter_by(operation_type="PRODUCT_UPDATED").count() == 0


def test_update_errors(db_session, make_product):
    a = make_product(code="A-1")
    make_product(code="B-1")
    with pytest.raises(NotFoundError):
        products_service.update_product(99999, {"name": "x"})
    with pytest.raises(ValidationError):
        products_service.update_product(a.id, {})
    with pytest.raises(ConflictError):
        products_service.update_product(a.id, {"code": "B-1"})


def test_search_pagination(db_session, make_product):
    for i in range(5):
        make_product(code=f"MOU-{i}", name=f"Mouse {i}", category="Perifericos")
    make_product(code="LAP-1", name="Laptop", category="Computadoras")

    page = products_service.search_products(q="mou", limit=2, offset=0)
    assert [p["name"] for p in page["products"]] == ["Mouse 0", "Mouse 1"]
    assert page["pagination"] == {"limit": 2, "offset": 0, "has_more": True}

    last = products_service.search_products(q="MOU", limit=2, offset=4)
    assert last["pagination"]["has_more"] is False
    assert len(last["products"]) == 1

    by_category = products_service.search_products(category="Computadoras")
    assert [p["code"] for p in by_category["products"]] == ["LAP-1"]

    assert products_service.search_products(limit=1000)["pagination"]["limit"] == 200
    with pytest.raises(ValidationError):
        products_service.search_products(offset=-1)


def test_categories_distinct_sorted(db_session, make_product):
    make_product(category="Audio")
    make_product(category="Audio")
    make_product(category="")
    make_product(category="Almacenamiento")
    assert products_service.list_categories() == ["Almacenamiento", "Audio"]
