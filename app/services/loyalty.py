# app/services/loyalty.py

import logging
import math
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.exceptions import InvalidAction, PersistenceFailure
from app.crud import loyalty as crud_loyalty
from app.models.loyalty import PointBalance
from app.schemas.loyalty import (
    AwardPointsResponse,
    BalanceChangedEvent,
    ExpiringPoints,
    InsufficientPointsRejection,
    PaginatedPointHistory,
    PointsSummary,
)

logger = logging.getLogger(__name__)

# Сколько баллов дается за каждое действие вендора
POINT_VALUES = {
    "product_added": 10,
    "share_link_created": 20,
    "product_viewed": 1,
    "catalog_shared": 15,
    "first_product": 50,
    "profile_completed": 30,
}

# Пороги уровней, от самого высокого к низкому
TIER_THRESHOLDS = {
    "platinum": 5000,
    "gold": 2000,
    "silver": 500,
    "bronze": 0,
}


def tier_for(total_points: int) -> str:
    """Определяет уровень по сумме баллов: самый высокий порог, не превышающий total_points."""
    for tier, threshold in TIER_THRESHOLDS.items():
        if total_points >= threshold:
            return tier
    return "bronze"


def next_tier(total_points: int) -> tuple[str | None, int | None]:
    """Следующий уровень и сколько баллов до него. (None, None) для platinum."""
    upcoming = None
    for tier, threshold in TIER_THRESHOLDS.items():
        if threshold > total_points:
            upcoming = (tier, threshold - total_points)
    return upcoming or (None, None)


def lock_balance(db: Session, account_id: str, create: bool = False) -> PointBalance | None:
    """
    Возвращает заблокированную строку баланса. При create=True сначала
    лениво создает ее (0 баллов, bronze).
    """
    balance = crud_loyalty.get_balance_for_update(db, account_id)
    if balance is None and create:
        crud_loyalty.ensure_balance(db, account_id)
        balance = crud_loyalty.get_balance_for_update(db, account_id)
    return balance


def apply_delta(balance: PointBalance, delta: int) -> int:
    """Меняет баланс (не ниже нуля) и пересчитывает уровень. Возвращает фактическое изменение."""
    new_total = max(0, balance.total_points + delta)
    applied = new_total - balance.total_points
    balance.total_points = new_total
    balance.tier = tier_for(new_total)
    return applied


def balance_event(balance: PointBalance, reason: str) -> BalanceChangedEvent:
    return BalanceChangedEvent(
        account_id=balance.account_id,
        total_points=balance.total_points,
        tier=balance.tier,
        reason=reason,
    )


def award_points(
    db: Session,
    account_id: str,
    action_type: str,
    action_details: dict | None = None,
) -> AwardPointsResponse:
    """
    Начисляет баллы за действие. Обновление баланса и запись в историю
    коммитятся одной транзакцией; при ошибке БД не остается ни того, ни другого.
    """
    points = POINT_VALUES.get(action_type)
    if not points:
        raise InvalidAction("Invalid action type")

    now = datetime.now(timezone.utc)
    try:
        balance = lock_balance(db, account_id, create=True)
        apply_delta(balance, points)
        crud_loyalty.create_history_entry(
            db,
            account_id=account_id,
            points=points,
            action_type=action_type,
            action_details=action_details,
            created_at=now,
            expires_at=now + timedelta(days=settings.POINTS_LIFETIME_DAYS),
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to award {points} points to account {account_id} for action: {action_type}", exc_info=True)
        raise PersistenceFailure()

    logger.info(f"Awarded {points} points to account {account_id} for action: {action_type}")
    return AwardPointsResponse(
        points_awarded=points,
        action_type=action_type,
        total_points=balance.total_points,
        tier=balance.tier,
    )


def adjust_points(
    db: Session,
    account_id: str,
    points: int,
    comment: str,
    admin_account_id: str,
) -> PointBalance | InsufficientPointsRejection:
    """Ручная корректировка баланса администратором. Такие баллы не сгорают."""
    try:
        balance = lock_balance(db, account_id, create=points > 0)
        available = balance.total_points if balance else 0
        if available + points < 0:
            db.rollback()
            return InsufficientPointsRejection(
                detail="Adjustment would make the balance negative.",
                required=-points,
                available=available,
            )

        apply_delta(balance, points)
        crud_loyalty.create_history_entry(
            db,
            account_id=account_id,
            points=points,
            action_type=f"admin_adjust_{'add' if points >= 0 else 'sub'}",
            action_details={"comment": comment, "admin_account_id": admin_account_id},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to adjust points for account {account_id}", exc_info=True)
        raise PersistenceFailure()

    logger.info(f"Admin {admin_account_id} adjusted account {account_id} by {points} points. New balance: {balance.total_points}")
    return balance


def get_points_summary(db: Session, account_id: str) -> PointsSummary:
    balance = crud_loyalty.get_balance(db, account_id)
    total = balance.total_points if balance else 0
    tier = balance.tier if balance else "bronze"
    upcoming, missing = next_tier(total)
    return PointsSummary(total_points=total, tier=tier, next_tier=upcoming, points_to_next_tier=missing)


def get_points_history(db: Session, account_id: str, page: int, size: int) -> PaginatedPointHistory:
    total_items = crud_loyalty.count_history(db, account_id)
    entries = crud_loyalty.get_history(db, account_id, skip=(page - 1) * size, limit=size)
    return PaginatedPointHistory(
        total_items=total_items,
        total_pages=math.ceil(total_items / size) if total_items else 0,
        current_page=page,
        size=size,
        items=entries,
    )


def get_expiring_points(db: Session, account_id: str, days: int) -> ExpiringPoints:
    """Сколько баллов сгорит в ближайшие `days` дней (уже просроченные не считаются)."""
    now = datetime.now(timezone.utc)
    points = crud_loyalty.get_points_expiring_between(db, account_id, now, now + timedelta(days=days))
    return ExpiringPoints(days=days, points_expiring=int(points))
