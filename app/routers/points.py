# app/routers/points.py

from fastapi import APIRouter, Depends, Query, Request
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.limiter import limiter
from app.core.redis import get_redis_client
from app.dependencies import get_current_account_id, get_db
from app.schemas.loyalty import (
    AwardPointsRequest,
    AwardPointsResponse,
    BalanceChangedEvent,
    ExpiringPoints,
    PaginatedPointHistory,
    PointsSummary,
)
from app.services import events as events_service
from app.services import loyalty as loyalty_service

router = APIRouter(prefix="/points")


@router.get("/me", response_model=PointsSummary)
def get_my_points(
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """Баланс, уровень и прогресс до следующего уровня."""
    return loyalty_service.get_points_summary(db, account_id)


@router.get("/me/history", response_model=PaginatedPointHistory)
def get_my_points_history(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    return loyalty_service.get_points_history(db, account_id, page, size)


@router.get("/me/expiring", response_model=ExpiringPoints)
def get_my_expiring_points(
    days: int = Query(7, ge=1, le=90),
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """Сколько баллов сгорит в ближайшие N дней."""
    return loyalty_service.get_expiring_points(db, account_id, days)


@router.post("/award", response_model=AwardPointsResponse)
@limiter.limit(settings.AWARD_RATE_LIMIT)
async def award_points(
    request: Request,
    payload: AwardPointsRequest,
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_client),
):
    """
    Начисляет баллы за действие вендора (добавил товар, создал ссылку и т.д.).
    Неизвестный action_type -> 400 invalid_action.
    """
    result = loyalty_service.award_points(db, account_id, payload.action_type, payload.action_details)
    await events_service.publish_balance_changed(
        redis,
        BalanceChangedEvent(
            account_id=account_id,
            total_points=result.total_points,
            tier=result.tier,
            reason="points_awarded",
        ),
    )
    return result
