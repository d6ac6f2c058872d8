# app/routers/rewards.py

from typing import List

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from app.core.redis import get_redis_client
from app.crud import rewards as crud_rewards
from app.dependencies import get_current_account_id, get_db
from app.schemas.common import ErrorResponse
from app.schemas.loyalty import BalanceChangedEvent, InsufficientPointsRejection
from app.schemas.rewards import Redemption, RedeemRequest, RedemptionResult, Reward
from app.services import events as events_service
from app.services import rewards as rewards_service

router = APIRouter(prefix="/rewards")


@router.get("", response_model=List[Reward])
def get_rewards_catalog(
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """Активные награды по возрастанию стоимости."""
    return crud_rewards.get_rewards(db, active_only=True)


@router.post(
    "/redeem",
    response_model=RedemptionResult,
    responses={
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": InsufficientPointsRejection},
    },
)
async def redeem_reward(
    payload: RedeemRequest,
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_client),
):
    """
    Обмен баллов на награду.
    Нехватка баллов (409 insufficient_points) и неизвестная награда (404 reward_not_found)
    возвращаются разными кодами, чтобы UI показывал разные сообщения.
    """
    result = rewards_service.redeem_reward(db, account_id, payload.reward_id)
    if isinstance(result, InsufficientPointsRejection):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=result.model_dump())

    await events_service.publish_balance_changed(
        redis,
        BalanceChangedEvent(
            account_id=account_id,
            total_points=result.remaining_points,
            tier=result.tier,
            reason="reward_redemption",
        ),
    )
    return result


@router.get("/redemptions/me", response_model=List[Redemption])
def get_my_redemptions(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    return crud_rewards.get_account_redemptions(db, account_id, skip=(page - 1) * size, limit=size)
