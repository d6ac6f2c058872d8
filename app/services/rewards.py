# app/services/rewards.py

import logging
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.exceptions import (
    BalanceNotFound,
    InvalidRedemptionState,
    PersistenceFailure,
    RedemptionNotFound,
    RewardNotFound,
    RewardUnavailable,
)
from app.crud import loyalty as crud_loyalty
from app.crud import rewards as crud_rewards
from app.crud import vendor as crud_vendor
from app.models.loyalty import Redemption, RewardCatalogEntry
from app.schemas.loyalty import InsufficientPointsRejection
from app.schemas.rewards import Redemption as RedemptionSchema, RedemptionResult, validate_reward_value
from app.services.loyalty import apply_delta, lock_balance

logger = logging.getLogger(__name__)

# Награды, которые применяются сразу: тип -> (поле лимита, настройка с лимитом тарифа)
QUOTA_REWARDS = {
    "extra_products": ("max_products", "DEFAULT_MAX_PRODUCTS"),
    "extra_share_links": ("max_share_links", "DEFAULT_MAX_SHARE_LINKS"),
}


def _apply_quota_reward(db: Session, account_id: str, reward: RewardCatalogEntry) -> None:
    """Увеличивает лимит вендора. Строка лимитов создается со значениями тарифа, если ее нет."""
    field, default_setting = QUOTA_REWARDS[reward.reward_type]
    amount = reward.reward_value["amount"]

    crud_vendor.ensure_permissions(
        db, account_id,
        max_products=settings.DEFAULT_MAX_PRODUCTS,
        max_share_links=settings.DEFAULT_MAX_SHARE_LINKS,
    )
    permissions = crud_vendor.get_permissions_for_update(db, account_id)
    current = getattr(permissions, field) or getattr(settings, default_setting)
    setattr(permissions, field, current + amount)
    logger.info(f"Account {account_id}: {field} {current} -> {current + amount} (reward {reward.id}).")


def redeem_reward(db: Session, account_id: str, reward_id: int) -> RedemptionResult | InsufficientPointsRejection:
    """
    Обменивает баллы на награду.

    Списание, запись в историю, создание обмена и применение лимита идут
    одной транзакцией: если лимит применить не удалось, баллы не списываются.
    Награды без автоматического применения (premium_support и т.п.) остаются
    в статусе 'pending' до ручной обработки админом.
    """
    reward = crud_rewards.get_reward(db, reward_id)
    if reward is None or not reward.is_active:
        raise RewardNotFound("Reward not found")

    try:
        validate_reward_value(reward.reward_type, reward.reward_value)
    except ValueError as e:
        logger.error(f"Reward {reward.id} cannot be redeemed: {e}")
        raise RewardUnavailable("This reward is temporarily unavailable")

    now = datetime.now(timezone.utc)
    try:
        balance = lock_balance(db, account_id)
        if balance is None:
            db.rollback()
            raise BalanceNotFound("No points balance found for this account")

        if balance.total_points < reward.points_cost:
            available = balance.total_points
            db.rollback()
            logger.info(f"Account {account_id}: insufficient points for reward {reward.id} ({available} < {reward.points_cost}).")
            return InsufficientPointsRejection(
                detail="Insufficient points",
                required=reward.points_cost,
                available=available,
            )

        apply_delta(balance, -reward.points_cost)
        crud_loyalty.create_history_entry(
            db,
            account_id=account_id,
            points=-reward.points_cost,
            action_type="reward_redemption",
            action_details={"reward_id": reward.id, "reward_name": reward.name},
        )

        expires_at = None
        if reward.reward_type == "premium_support":
            expires_at = now + timedelta(days=reward.reward_value["duration_days"])

        redemption = crud_rewards.create_redemption(db, account_id, reward, expires_at=expires_at)

        if reward.reward_type in QUOTA_REWARDS:
            _apply_quota_reward(db, account_id, reward)
            redemption.status = "applied"
            redemption.applied_at = now

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to redeem reward {reward_id} for account {account_id}. Nothing was deducted.", exc_info=True)
        raise PersistenceFailure()

    logger.info(f"Reward redeemed: {reward.name} for account {account_id} (redemption {redemption.id}, status {redemption.status})")
    return RedemptionResult(
        redemption=RedemptionSchema.model_validate(redemption),
        remaining_points=balance.total_points,
        tier=balance.tier,
    )


def _get_pending_redemption(db: Session, redemption_id: int) -> Redemption:
    redemption = crud_rewards.get_redemption_for_update(db, redemption_id)
    if redemption is None:
        db.rollback()
        raise RedemptionNotFound("Redemption not found")
    if redemption.status != "pending":
        status = redemption.status
        db.rollback()
        raise InvalidRedemptionState(f"Redemption is already {status}")
    return redemption


def mark_redemption_applied(db: Session, redemption_id: int) -> Redemption:
    """[АДМИН] Награда выдана вручную: pending -> applied."""
    try:
        redemption = _get_pending_redemption(db, redemption_id)
        redemption.status = "applied"
        redemption.applied_at = datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to mark redemption {redemption_id} as applied", exc_info=True)
        raise PersistenceFailure()
    db.refresh(redemption)
    logger.info(f"Redemption {redemption_id} manually marked as applied.")
    return redemption


def mark_redemption_failed(db: Session, redemption_id: int, reason: str):
    """
    [АДМИН] Награду выдать не удалось: pending -> failed.
    Потраченные баллы возвращаются компенсирующей записью в той же транзакции.
    Возвращает (обмен, баланс после возврата).
    """
    try:
        redemption = _get_pending_redemption(db, redemption_id)
        balance = lock_balance(db, redemption.account_id, create=True)
        apply_delta(balance, redemption.points_spent)
        crud_loyalty.create_history_entry(
            db,
            account_id=redemption.account_id,
            points=redemption.points_spent,
            action_type="reward_refund",
            action_details={"redemption_id": redemption.id, "reward_id": redemption.reward_id, "reason": reason},
        )
        redemption.status = "failed"
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to mark redemption {redemption_id} as failed", exc_info=True)
        raise PersistenceFailure()

    db.refresh(redemption)
    logger.info(f"Redemption {redemption_id} failed ({reason}). Refunded {redemption.points_spent} points to account {redemption.account_id}.")
    return redemption, balance
