# app/core/redis.py
import redis.asyncio as redis
from app.core.config import settings

# decode_responses=True: события публикуются как JSON-строки
redis_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)

async def get_redis_client():
    """Зависимость FastAPI: общий асинхронный клиент Redis."""
    return redis_client

async def close_redis_client():
    """Закрывает пул соединений при остановке приложения."""
    await redis_client.aclose()
