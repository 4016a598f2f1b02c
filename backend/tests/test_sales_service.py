"""Sale workflow: totals, stock decrement, oversell guard, invoices, cancellation."""

import pytest

from caja.errors import InsufficientStockError, NotFoundError, ValidationError
from caja.models import Sale, SaleLine
from caja.services import sales_service
from caja.services.payment_service import ItemizedPayment, PaymentEntry, SimplePayment


def test_discounted_line_total_and_stock(db_session, make_product, refresh):
    product = make_product(price_cents=10000, stock=10)

    sale = sales_service.create_sale(
        [{"id": product.id, "cantidad": 2, "precio": 100, "descuento_porcentaje": 10}],
        SimplePayment("efectivo"),
    )

    assert sale.total_cents == 18000
    assert sale.invoice_number.startswith("FAC-")
    line = sale.lines[0]
    assert line.unit_price_cents == 9000
    assert line.original_unit_price_cents == 10000
    assert line.line_total_cents == 18000
    assert refresh(product).stock == 8


def test_total_is_sum_of_line_totals(db_session, make_product):
    a = make_product(price_cents=1999, stock=5)
    b = make_product(price_cents=333, stock=5)

    sale = sales_service.create_sale([
        {"productId": a.id, "quantity": 3, "unitPrice": 19.99, "discountPercent": 15},
        {"product_id": b.id, "quantity": 1, "unit_price": 3.33},
    ])

    lines = db_session.query(SaleLine).filter_by(sale_id=sale.id).all()
    assert sale.total_cents == sum(l.line_total_cents for l in lines)
    for l in lines:
        assert l.line_total_cents == l.quantity * l.unit_price_cents


def test_missing_price_uses_catalog_price(db_session, make_product):
    product = make_product(price_cents=2550, stock=3)
    sale = sales_service.create_sale([{"id": product.id, "quantity": 2}])
    assert sale.total_cents == 5100


def test_oversell_rejected_and_nothing_persisted(db_session, make_product, refresh):
    product = make_product(stock=3)

    with pytest.raises(InsufficientStockError) as exc:
        sales_service.create_sale([{"id": product.id, "quantity": 5, "unit_price": 100}])

    assert product.name in str(exc.value)
    assert refresh(product).stock == 3
    assert db_session.query(Sale).count() == 0
    assert db_session.query(SaleLine).count() == 0


def test_oversell_on_second_line_rolls_back_first(db_session, make_product, refresh):
    plenty = make_product(stock=10)
    scarce = make_product(stock=1)

    with pytest.raises(InsufficientStockError):
        sales_service.create_sale([
            {"id": plenty.id, "quantity": 4},
            {"id": scarce.id, "quantity": 2},
        ])

    assert refresh(plenty).stock == 10
    assert refresh(scarce).stock == 1
    assert db_session.query(Sale).count() == 0


def test_same_product_twice_counts_against_stock(db_session, make_product, refresh):
    product = make_product(stock=3)
    with pytest.raises(InsufficientStockError):
        sales_service.create_sale([
            {"id": product.id, "quantity": 2},
            {"id": product.id, "quantity": 2},
        ])
    assert refresh(product).stock == 3


@pytest.mark.parametrize("build", [
    lambda pid: [],
    lambda pid: None,
    lambda pid: ["not-an-object"],
    lambda pid: [{"quantity": 1}],
    lambda pid: [{"id": pid, "quantity": 0}],
    lambda pid: [{"id": pid, "quantity": -2}],
    lambda pid: [{"id": pid, "quantity": 1.5}],
    lambda pid: [{"id": pid, "quantity": True}],
    lambda pid: [{"id": pid, "quantity": 1, "unit_price": -1}],
    lambda pid: [{"id": pid, "quantity": 1, "unit_price": "abc"}],
    lambda pid: [{"id": pid, "quantity": 1, "discount_percent": 101}],
])
def test_invalid_carts_rejected(db_session, make_product, refresh, build):
    product = make_product(stock=5)
    with pytest.raises(ValidationError):
        sales_service.create_sale(build(product.id))
    assert refresh(product).stock == 5


def test_unknown_product_rejected(db_session):
    with pytest.raises(ValidationError):
        sales_service.create_sale([{"id": 9999, "quantity": 1, "unit_price": 1}])


def test_invoice_collision_gets_suffix(db_session, make_product, monkeypatch):
    product = make_product(stock=10)
    monkeypatch.setattr(sales_service, "_epoch_millis", lambda: 1700000000000)

    first = sales_service.create_sale([{"id": product.id, "quantity": 1}])
    second = sales_service.create_sale([{"id": product.id, "quantity": 1}])

    assert first.invoice_number == "FAC-1700000000000"
    assert second.invoice_number == "FAC-1700000000000-1"


def test_itemized_payment_round_trips(db_session, make_product):
    product = make_product(price_cents=10000, stock=2)
    payment = ItemizedPayment((PaymentEntry("efectivo", 5000), PaymentEntry("tarjeta", 5000)))

    sale = sales_service.create_sale([{"id": product.id, "quantity": 1}], payment, change=0)

    assert sale.payment_kind == "ITEMIZED"
    data = sale.to_dict()
    assert data["payment"]["kind"] == "ITEMIZED"
    assert data["payment"]["entries"] == [
        {"method": "efectivo", "amount": 50.0},
        {"method": "tarjeta", "amount": 50.0},
    ]


def test_cancel_sale_restores_stock(db_session, make_product, refresh):
    product = make_product(stock=5)
    sale = sales_service.create_sale([{"id": product.id, "quantity": 3}])
    sale_id = sale.id
    assert refresh(product).stock == 2

    snapshot = sales_service.cancel_sale(sale_id)

    assert snapshot["id"] == sale_id
    assert refresh(product).stock == 5
    assert db_session.get(Sale, sale_id) is None
    assert db_session.query(SaleLine).filter_by(sale_id=sale_id).count() == 0


def test_cancel_unknown_sale(db_session):
    with pytest.raises(NotFoundError):
        sales_service.cancel_sale(12345)


def test_list_sales_filters_by_day(db_session, make_product):
    from datetime import timedelta

    product = make_product(stock=10)
    old = sales_service.create_sale([{"id": product.id, "quantity": 1}])
    old.created_at = old.created_at - timedelta(days=3)
    db_session.commit()
    recent = sales_service.create_sale([{"id": product.id, "quantity": 1}])

    today = recent.created_at.date()
    assert [s.id for s in sales_service.list_sales(day=today)] == [recent.id]
    ranged = sales_service.list_sales(start=today - timedelta(days=5), end=today)
    assert [s.id for s in ranged] == [recent.id, old.id]
