"""Promotions: validation, unlicensed caps, one-promotion-per-product conflicts."""

import pytest

from caja.errors import ConflictError, LicenseLimitError, NotFoundError, ValidationError
from caja.models import Promotion, PromotionItem
from caja.services import products_service, promotions_service


def _promo(title, *pairs):
    return {"title": title, "items": [{"product_id": pid, "discount_percent": d} for pid, d in pairs]}


def test_create_and_get(db_session, make_product):
    product = make_product(price_cents=10000)
    promo = promotions_service.create_promotion(_promo("Verano", (product.id, 25)))

    data = promotions_service.get_promotion(promo.id).to_dict(include_items=True)
    assert data["title"] == "Verano"
    assert data["product_count"] == 1
    assert data["items"][0]["original_price"] == 100.0
    assert data["items"][0]["discount_percent"] == 25


def test_product_in_two_promotions_is_conflict(db_session, make_product, licensed):
    product = make_product(name="Mouse")
    promotions_service.create_promotion(_promo("Primera", (product.id, 10)))

    with pytest.raises(ConflictError) as exc:
        promotions_service.create_promotion(_promo("Segunda", (product.id, 20)))

    assert "Primera" in str(exc.value)
    assert "Mouse" in str(exc.value)
    assert db_session.query(Promotion).count() == 1


@pytest.mark.parametrize("payload", [
    {"items": [{"product_id": 1, "discount_percent": 10}]},
    {"title": "  ", "items": [{"product_id": 1, "discount_percent": 10}]},
    {"title": "X", "items": []},
    {"title": "X"},
])
def test_invalid_payloads(db_session, payload):
    with pytest.raises(ValidationError):
        promotions_service.create_promotion(payload)


@pytest.mark.parametrize("discount", [0, -5, 101, "abc"])
def test_discount_range(db_session, make_product, discount):
    product = make_product()
    with pytest.raises(ValidationError):
        promotions_service.create_promotion(_promo("X", (product.id, discount)))


def test_unlicensed_promotion_count_cap(db_session, make_product):
    products = [make_product() for _ in range(4)]
    for i, p in enumerate(products[:3]):
        promotions_service.create_promotion(_promo(f"P{i}", (p.id, 10)))

    with pytest.raises(LicenseLimitError) as exc:
        promotions_service.create_promotion(_promo("P3", (products[3].id, 10)))
    assert exc.value.status_code == 403
    assert exc.value.details["requires_license"] is True


def test_unlicensed_single_item_cap(db_session, make_product):
    a, b = make_product(), make_product()
    with pytest.raises(LicenseLimitError) as exc:
        promotions_service.create_promotion(_promo("Combo", (a.id, 10), (b.id, 10)))
    assert exc.value.status_code == 400


def test_licensed_has_no_caps(db_session, make_product, licensed):
    products = [make_product() for _ in range(6)]
    for i in range(0, 6, 2):
        promotions_service.create_promotion(
            _promo(f"Combo {i}", (products[i].id, 10), (products[i + 1].id, 15))
        )
    assert db_session.query(Promotion).count() == 3


def test_delete_promotion(db_session, make_product):
    product = make_product()
    promo = promotions_service.create_promotion(_promo("Temp", (product.id, 10)))
    promo_id = promo.id

    promotions_service.delete_promotion(promo_id)

    assert db_session.get(Promotion, promo_id) is None
    assert db_session.query(PromotionItem).count() == 0
    with pytest.raises(NotFoundError):
        promotions_service.delete_promotion(promo_id)


def test_catalog_shows_discount(db_session, make_product):
    product = make_product(price_cents=2000)
    promotions_service.create_promotion(_promo("Oferta", (product.id, 25)))

    data = products_service.get_product(product.id)
    assert data["on_promotion"] is True
    assert data["discount_percent"] == 25
    assert data["discounted_price"] == 15.0
    assert [p["id"] for p in products_service.list_products_with_discounts()] == [product.id]


def test_clean_duplicates_keeps_oldest(db_session, make_product):
    product = make_product()
    older = Promotion(title="Vieja")
    db_session.add(older)
    db_session.flush()
    newer = Promotion(title="Nueva")
    db_session.add(newer)
    db_session.flush()
    db_session.add_all([
        PromotionItem(promotion_id=older.id, product_id=product.id, discount_percent=10),
        PromotionItem(promotion_id=newer.id, product_id=product.id, discount_percent=30),
    ])
    db_session.commit()

    result = promotions_service.clean_duplicate_promotions()

    assert result["removed_count"] == 1
    assert result["details"][0]["kept_in_promotion"] == "Vieja"
    remaining = db_session.query(PromotionItem).all()
    assert [i.promotion_id for i in remaining] == [older.id]


def test_count_cap_checked_inside_write_transaction(db_session, make_product, monkeypatch):
    calls = []
    real_with_transaction = promotions_service.with_transaction

    def recording(func, **kwargs):
        calls.append(kwargs)
        return real_with_transaction(func, **kwargs)

    monkeypatch.setattr(promotions_service, "with_transaction", recording)
    for i in range(3):
        product = make_product()
        promotions_service.create_promotion(_promo(f"P{i}", (product.id, 5)))

    product = make_product()
    with pytest.raises(LicenseLimitError):
        promotions_service.create_promotion(_promo("P4", (product.id, 5)))

    assert len(calls) == 4
    assert all(kwargs.get("immediate") is True for kwargs in calls)
    assert db_session.query(Promotion).count() == 3
