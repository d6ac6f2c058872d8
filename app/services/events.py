# app/services/events.py

import logging
from redis.asyncio import Redis

from app.core.config import settings
from app.schemas.loyalty import BalanceChangedEvent

logger = logging.getLogger(__name__)


async def publish_balance_changed(redis: Redis | None, event: BalanceChangedEvent | None) -> bool:
    """
    Публикует событие "баланс изменился" в Redis-канал.
    Подписчик (уведомления, обновление UI) живет вне этого сервиса.
    Вызывается ПОСЛЕ коммита: ошибка публикации только логируется.
    """
    if redis is None or event is None:
        return False
    try:
        await redis.publish(settings.BALANCE_EVENTS_CHANNEL, event.model_dump_json())
        logger.debug(f"Published balance event for account {event.account_id} ({event.reason}).")
        return True
    except Exception:
        logger.error(f"Failed to publish balance event for account {event.account_id}", exc_info=True)
        return False
