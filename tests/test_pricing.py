# tests/test_pricing.py

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import PersistenceFailure
from app.crud import vendor as crud_vendor
from app.models.catalog import Product
from app.services import pricing

from conftest import ACCOUNT_ID


@pytest.fixture
def make_product(db_session):
    def _make(account_id: str = ACCOUNT_ID, **fields) -> Product:
        product = Product(account_id=account_id, name=fields.pop("name", "Gold ring"), **fields)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, Decimal("0.75")),
        (0, Decimal("0.75")),
        (Decimal("0.916"), Decimal("0.916")),
        (Decimal("1"), Decimal("1")),
        (18, Decimal("0.75")),
        (24, Decimal("1")),
        (Decimal("75"), Decimal("0.75")),
        (Decimal("91.6"), Decimal("0.916")),
    ],
)
def test_normalize_purity(raw, expected):
    assert pricing.normalize_purity(raw) == expected


def test_price_formula(db_session, make_product):
    product = make_product(
        net_weight=Decimal("10"), purity_fraction_used=Decimal("18"),
        d_value=Decimal("12000"), mkg=Decimal("2500"),
        certification_cost=Decimal("500"), gemstone_cost=Decimal("1000"),
    )

    price = pricing.calculate_item_price(product, Decimal("6000"))

    # 10 * 0.75 * 6000 + 12000 + 2500 + 500 + 1000
    assert price == Decimal("61000.00")


def test_price_is_rounded_half_up(db_session, make_product):
    # 1.001 * (14/24) * 6000 = 3503.4999... -> 3503.50
    product = make_product(net_weight=Decimal("1.001"), purity_fraction_used=Decimal("14"))

    assert pricing.calculate_item_price(product, Decimal("6000")) == Decimal("3503.50")


def test_recalculate_updates_items_with_weight(db_session, make_product):
    plain = make_product(net_weight=Decimal("10"), purity_fraction_used=Decimal("18"))
    by_gross_weight = make_product(weight_grams=Decimal("2"), purity_fraction_used=Decimal("0.75"), mkg=Decimal("300"))
    weightless = make_product(name="Loose diamond", product_type="Loose Diamonds", d_value=Decimal("90000"))
    deleted = make_product(net_weight=Decimal("5"), deleted_at=datetime.now(timezone.utc))
    foreign = make_product(account_id="someone-else", net_weight=Decimal("5"))

    result = pricing.recalculate_prices(db_session, ACCOUNT_ID, Decimal("6000"))

    assert result.rate_per_gram == Decimal("6000")
    assert result.updated_count == 2
    assert result.skipped_count == 1
    assert result.failed_count == 0

    db_session.expire_all()
    assert db_session.get(Product, plain.id).cost_price == Decimal("45000.00")
    assert db_session.get(Product, plain.id).retail_price == Decimal("45000.00")
    assert db_session.get(Product, plain.id).gold_per_gram_price == Decimal("6000.00")
    assert db_session.get(Product, by_gross_weight.id).cost_price == Decimal("9300.00")
    assert db_session.get(Product, weightless.id).cost_price is None
    assert db_session.get(Product, deleted.id).cost_price is None
    assert db_session.get(Product, foreign.id).cost_price is None


def test_recalculate_stores_rate_in_profile(db_session):
    result = pricing.recalculate_prices(db_session, ACCOUNT_ID, Decimal("7250.50"))

    assert result.updated_count == 0
    profile = crud_vendor.get_profile(db_session, ACCOUNT_ID)
    assert profile.gold_rate_24k_per_gram == Decimal("7250.50")
    assert profile.gold_rate_updated_at is not None


def test_failed_item_does_not_stop_the_batch(db_session, make_product, mocker):
    make_product(net_weight=Decimal("10"))
    make_product(net_weight=Decimal("3"))
    original = pricing.calculate_item_price

    def flaky(product, rate):
        if product.net_weight == Decimal("10"):
            raise SQLAlchemyError("row is locked")
        return original(product, rate)

    mocker.patch("app.services.pricing.calculate_item_price", side_effect=flaky)

    result = pricing.recalculate_prices(db_session, ACCOUNT_ID, Decimal("6000"))

    assert result.updated_count == 1
    assert result.failed_count == 1


def test_rate_is_not_stored_when_profile_write_fails(db_session, mocker):
    mocker.patch(
        "app.crud.vendor.get_or_create_profile",
        side_effect=SQLAlchemyError("connection reset"),
    )

    with pytest.raises(PersistenceFailure):
        pricing.recalculate_prices(db_session, ACCOUNT_ID, Decimal("6000"))
