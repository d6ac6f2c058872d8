# app/routers/admin/points.py

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from app.core.redis import get_redis_client
from app.dependencies import get_admin_account_id, get_db
from app.schemas.admin import AdminAdjustPointsRequest, AdminAdjustPointsResponse
from app.schemas.loyalty import InsufficientPointsRejection, PointsSummary
from app.services import events as events_service
from app.services import loyalty as loyalty_service

router = APIRouter()


@router.get("/{account_id}", response_model=PointsSummary)
def get_account_points(account_id: str, db: Session = Depends(get_db)):
    return loyalty_service.get_points_summary(db, account_id)


@router.post(
    "/{account_id}/adjust",
    response_model=AdminAdjustPointsResponse,
    responses={status.HTTP_409_CONFLICT: {"model": InsufficientPointsRejection}},
)
async def adjust_account_points(
    account_id: str,
    request_data: AdminAdjustPointsRequest,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_client),
    admin_account_id: str = Depends(get_admin_account_id),
):
    """[АДМИН] Начисляет или списывает баллы аккаунту. Баланс не может уйти в минус."""
    result = loyalty_service.adjust_points(
        db, account_id, request_data.points, request_data.comment, admin_account_id
    )
    if isinstance(result, InsufficientPointsRejection):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=result.model_dump())

    event = loyalty_service.balance_event(result, "admin_adjustment")
    await events_service.publish_balance_changed(redis, event)
    return AdminAdjustPointsResponse(new_balance=event.total_points, tier=event.tier)
