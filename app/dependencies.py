# app/dependencies.py

import hmac
import logging
from typing import Iterator

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError, jwt

from app.core.config import settings
from app.db.session import SessionLocal

# --- Инициализация логгера ---
logger = logging.getLogger(__name__)

# --- Схемы аутентификации ---
# auto_error=False: отсутствие заголовка обрабатываем сами, чтобы всегда отдавать 401
bearer_scheme = HTTPBearer(auto_error=False)

# --- Управление сессией БД ---
def get_db() -> Iterator[Session]:
    """
    Основная зависимость FastAPI для получения сессии БД.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_session_factory():
    """Фабрика сессий для задач, которые открывают по транзакции на аккаунт."""
    return SessionLocal


# --- Зависимости аутентификации и авторизации ---

def get_current_account_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """
    ОБЯЗАТЕЛЬНАЯ зависимость.
    Проверяет JWT, выданный сервисом аутентификации, и возвращает ID аккаунта из `sub`.
    Сервисы получают этот ID параметром и сами пользователя не ищут.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        logger.debug("Request without bearer token rejected.")
        raise credentials_exception

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM], options={"verify_aud": False})
    except JWTError as e:
        logger.warning(f"JWT Error during token decoding: {e}")
        raise credentials_exception

    account_id = payload.get("sub")
    if not account_id:
        logger.warning("Token payload is missing 'sub' (account_id).")
        raise credentials_exception

    request.state.account_id = str(account_id)
    return str(account_id)


def get_admin_account_id(account_id: str = Depends(get_current_account_id)) -> str:
    """
    Зависимость для защиты админских эндпоинтов.
    """
    if account_id not in settings.ADMIN_ACCOUNT_IDS:
        logger.warning(f"Permission denied for account {account_id}. Not in ADMIN_ACCOUNT_IDS.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this resource."
        )
    logger.info(f"Admin access GRANTED for account {account_id}.")
    return account_id


def verify_scheduler_secret(x_scheduler_secret: str | None = Header(None)):
    """
    Внутренние задачи вызывает внешний планировщик, а не пользователь:
    аутентифицируем его общим секретом из заголовка.
    """
    if not x_scheduler_secret or not hmac.compare_digest(
        x_scheduler_secret.encode("utf-8"), settings.SCHEDULER_SECRET.encode("utf-8")
    ):
        logger.warning("Rejected internal job call with missing or invalid scheduler secret.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid scheduler secret")
