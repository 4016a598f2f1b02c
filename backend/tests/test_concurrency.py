"""Transaction helper: write lock acquisition and rollback."""

import pytest

from caja.errors import ValidationError
from caja.models import Product
from caja.services.concurrency import with_transaction


def test_immediate_after_open_read_transaction(db_session, make_product, refresh):
    product = make_product(stock=4)
    # A read leaves the session inside a transaction before the write lock is taken
    db_session.query(Product).count()

    def _op():
        db_session.get(Product, product.id).stock = 9
        return "done"

    assert with_transaction(_op, immediate=True) == "done"
    assert refresh(product).stock == 9


def test_error_rolls_back(db_session, make_product, refresh):
    product = make_product(stock=4)

    def _op():
        db_session.get(Product, product.id).stock = 0
        db_session.flush()
        raise ValidationError("nope")

    with pytest.raises(ValidationError):
        with_transaction(_op, immediate=True)
    assert refresh(product).stock == 4
