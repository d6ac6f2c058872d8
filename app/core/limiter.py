# app/core/limiter.py

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings


def key_func(request: Request) -> str:
    """
    Ключ для лимита: ID аккаунта (если уже аутентифицирован) -> IP-адрес.
    """
    account_id = getattr(request.state, "account_id", None)
    if account_id:
        return account_id
    return get_remote_address(request)


# Счетчики храним в Redis, чтобы лимит был общим для всех воркеров.
# 'moving-window' точнее 'fixed-window' на границах интервала.
limiter = Limiter(
    key_func=key_func,
    storage_uri=settings.REDIS_URL,
    strategy="moving-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
