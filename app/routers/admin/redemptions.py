# app/routers/admin/redemptions.py

from typing import List

from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from app.core.redis import get_redis_client
from app.crud import rewards as crud_rewards
from app.dependencies import get_db
from app.schemas.rewards import Redemption, RedemptionFailRequest, RedemptionStats, RedemptionStatus
from app.services import events as events_service
from app.services import rewards as rewards_service
from app.services.loyalty import balance_event

router = APIRouter()


@router.get("", response_model=List[Redemption])
def list_redemptions(
    status: RedemptionStatus | None = Query(None, description="Фильтр по статусу: pending, applied, failed"),
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """[АДМИН] Последние обмены баллов (от новых к старым)."""
    return crud_rewards.get_redemptions(db, status=status, skip=(page - 1) * size, limit=size)


@router.get("/stats", response_model=RedemptionStats)
def get_redemption_stats(db: Session = Depends(get_db)):
    return crud_rewards.get_redemption_stats(db)


@router.post("/{redemption_id}/applied", response_model=Redemption)
def mark_applied(redemption_id: int, db: Session = Depends(get_db)):
    """[АДМИН] Награда, требующая ручной выдачи (например, premium_support), выдана."""
    return rewards_service.mark_redemption_applied(db, redemption_id)


@router.post("/{redemption_id}/failed", response_model=Redemption)
async def mark_failed(
    redemption_id: int,
    payload: RedemptionFailRequest,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_client),
):
    """[АДМИН] Награду выдать не удалось: обмен помечается failed, баллы возвращаются."""
    redemption, balance = rewards_service.mark_redemption_failed(db, redemption_id, payload.reason)
    await events_service.publish_balance_changed(redis, balance_event(balance, "reward_refund"))
    return redemption
