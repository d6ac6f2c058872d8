# app/services/pricing.py

import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import PersistenceFailure
from app.crud import catalog as crud_catalog
from app.crud import vendor as crud_vendor
from app.models.catalog import Product
from app.schemas.catalog import RecalculationResult

logger = logging.getLogger(__name__)

# Если проба не указана, считаем изделие 18-каратным
DEFAULT_PURITY = Decimal("18")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def normalize_purity(raw) -> Decimal:
    """
    Приводит пробу к доле 0..1. В базе она бывает записана тремя способами:
    долей (0.75), в каратах (18 -> 18/24) или в процентах (75 -> 75/100).
    """
    value = to_decimal(raw) if raw else DEFAULT_PURITY
    if value <= 1:
        return value
    if value <= 24:
        return value / 24
    return value / 100


def item_weight(product: Product) -> Decimal | None:
    """Вес металла: net_weight, иначе weight_grams. None - изделие не пересчитывается."""
    weight = product.net_weight or product.weight_grams
    return to_decimal(weight) if weight else None


def calculate_item_price(product: Product, rate_per_gram: Decimal) -> Decimal:
    """Себестоимость изделия при заданном курсе, округленная до копеек (half-up)."""
    gold_value = item_weight(product) * normalize_purity(product.purity_fraction_used) * rate_per_gram
    total = (
        gold_value
        + to_decimal(product.d_value)
        + to_decimal(product.mkg)
        + to_decimal(product.certification_cost)
        + to_decimal(product.gemstone_cost)
    )
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def recalculate_prices(db: Session, account_id: str, rate_per_gram) -> RecalculationResult:
    """
    Сохраняет новый курс в профиле вендора и пересчитывает цены всех изделий с весом.
    Изделия коммитятся по одному: ошибка на одном не откатывает остальные,
    результат содержит счетчики, а не исключение.
    """
    rate = to_decimal(rate_per_gram)

    try:
        profile = crud_vendor.get_or_create_profile(db, account_id)
        profile.gold_rate_24k_per_gram = rate
        profile.gold_rate_updated_at = datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to store gold rate {rate} for account {account_id}", exc_info=True)
        raise PersistenceFailure()

    products = crud_catalog.get_active_products(db, account_id)
    updated = skipped = failed = 0

    for product in products:
        if item_weight(product) is None:
            skipped += 1
            continue

        product_id = product.id
        try:
            price = calculate_item_price(product, rate)
            product.cost_price = price
            product.retail_price = price
            product.gold_per_gram_price = rate
            db.commit()
            updated += 1
        except SQLAlchemyError:
            db.rollback()
            failed += 1
            logger.error(f"Failed to recalculate price for product {product_id} (account {account_id})", exc_info=True)

    logger.info(
        f"Gold rate for account {account_id} set to {rate}/g: "
        f"{updated} products updated, {skipped} skipped (no weight), {failed} failed."
    )
    return RecalculationResult(
        rate_per_gram=rate,
        updated_count=updated,
        skipped_count=skipped,
        failed_count=failed,
    )
