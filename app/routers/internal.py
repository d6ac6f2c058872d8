# app/routers/internal.py

import logging
from fastapi import APIRouter, Depends
from redis.asyncio import Redis

from app.core.redis import get_redis_client
from app.dependencies import get_session_factory, verify_scheduler_secret
from app.schemas.loyalty import ExpirySweepSummary
from app.services.points_expiration import expire_points_task

logger = logging.getLogger(__name__)

# Подключается в main.py с префиксом /internal/jobs.
# Вызывается внешним планировщиком, пользовательского токена здесь нет.
router = APIRouter(dependencies=[Depends(verify_scheduler_secret)])


@router.post("/expire-points", response_model=ExpirySweepSummary)
async def expire_points_job(
    session_factory=Depends(get_session_factory),
    redis: Redis = Depends(get_redis_client),
):
    """Сжигает просроченные баллы по всем аккаунтам и возвращает сводку."""
    logger.info("Expire points job triggered by external scheduler.")
    return await expire_points_task(session_factory=session_factory, redis=redis)
