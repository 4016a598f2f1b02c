import pytest

from caja.errors import ValidationError
from caja.money import discounted_unit_cents, format_currency, to_cents
from caja.services.payment_service import (
    ItemizedPayment,
    PaymentEntry,
    SimplePayment,
    deserialize_payment,
    payment_from_request,
    serialize_payment,
)


def test_itemized_list_wins_over_method_name():
    payment = payment_from_request({
        "paymentMethod": "tarjeta",
        "pagos": [{"metodo": "efectivo", "monto": 10}, {"method": "tarjeta", "amount": "5.50"}],
    })
    assert payment == ItemizedPayment((PaymentEntry("efectivo", 1000), PaymentEntry("tarjeta", 550)))


@pytest.mark.parametrize("body,method", [
    ({"paymentMethod": "tarjeta"}, "tarjeta"),
    ({"metodo_pago": "transferencia"}, "transferencia"),
    ({"payment_method": "cheque"}, "cheque"),
    ({}, "efectivo"),
])
def test_simple_method_keys(body, method):
    assert payment_from_request(body) == SimplePayment(method)


@pytest.mark.parametrize("body", [
    {"pagos": []},
    {"pagos": "efectivo"},
    {"pagos": [{"monto": 10}]},
    {"pagos": [{"metodo": "efectivo", "monto": -1}]},
    {"paymentMethod": 5},
])
def test_bad_payment_bodies(body):
    with pytest.raises(ValidationError):
        payment_from_request(body)


def test_storage_uses_discriminator():
    kind, value = serialize_payment(SimplePayment("efectivo"))
    assert (kind, value) == ("SIMPLE", "efectivo")
    # A method name that happens to look like JSON stays a simple payment
    assert deserialize_payment("SIMPLE", "[]") == SimplePayment("[]")

    itemized = ItemizedPayment((PaymentEntry("tarjeta", 1999),))
    assert deserialize_payment(*serialize_payment(itemized)) == itemized


def test_money_helpers():
    assert to_cents("19.995") == 2000
    assert to_cents(0.1) == 10
    assert discounted_unit_cents(10000, 10) == 9000
    assert discounted_unit_cents(999, 0) == 999
    assert discounted_unit_cents(999, 33.3) == 666
    assert format_currency(18000) == "$180,00"
    with pytest.raises(ValidationError):
        to_cents(float("nan"))
    with pytest.raises(ValidationError):
        to_cents(False)
