# tests/conftest.py
import os

# Настройки должны быть заданы до первого импорта app.*
os.environ.setdefault("DATABASE_USER", "test")
os.environ.setdefault("DATABASE_PASSWORD", "test")
os.environ.setdefault("DATABASE_HOST", "localhost")
os.environ.setdefault("DATABASE_PORT", "5432")
os.environ.setdefault("DATABASE_NAME", "rewards_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("REDIS_PORT", "6379")
os.environ.setdefault("SCHEDULER_SECRET", "scheduler-test-secret")
os.environ.setdefault("ADMIN_ACCOUNT_IDS", "admin-account")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RUN_SCHEDULER", "false")

import pytest
from unittest.mock import AsyncMock
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.db.session import Base
from app.models import loyalty, vendor, catalog  # noqa: F401 - модели нужны для create_all
from app.models.loyalty import PointBalance, PointHistoryEntry, RewardCatalogEntry
from app.services.loyalty import tier_for

# In-memory SQLite: StaticPool, чтобы все сессии (тест, API, задача сгорания) видели одну базу
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ACCOUNT_ID = "8d3c6d2e-1f7a-4a55-9a4c-3c1f0b9e7a11"
ADMIN_ACCOUNT_ID = "admin-account"


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Чистая база для каждого теста.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def redis_mock():
    return AsyncMock()


@pytest.fixture
def make_balance(db_session):
    def _make(account_id: str = ACCOUNT_ID, points: int = 0, tier: str | None = None) -> PointBalance:
        balance = PointBalance(account_id=account_id, total_points=points, tier=tier or tier_for(points))
        db_session.add(balance)
        db_session.commit()
        return balance
    return _make


@pytest.fixture
def make_reward(db_session):
    def _make(
        points_cost: int = 200,
        reward_type: str = "extra_products",
        reward_value: dict | None = None,
        name: str = "50 extra product slots",
        is_active: bool = True,
    ) -> RewardCatalogEntry:
        reward = RewardCatalogEntry(
            name=name,
            points_cost=points_cost,
            reward_type=reward_type,
            reward_value=reward_value if reward_value is not None else {"amount": 50},
            is_active=is_active,
        )
        db_session.add(reward)
        db_session.commit()
        return reward
    return _make


def history_of(db: Session, account_id: str = ACCOUNT_ID) -> list[PointHistoryEntry]:
    """Вся история аккаунта от старых записей к новым."""
    return db.query(PointHistoryEntry).filter(
        PointHistoryEntry.account_id == account_id
    ).order_by(PointHistoryEntry.id.asc()).all()


def make_token(account_id: str) -> str:
    return jwt.encode({"sub": account_id, "role": "authenticated"}, os.environ["SECRET_KEY"], algorithm="HS256")


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {make_token(ACCOUNT_ID)}"}


@pytest.fixture
def admin_auth_headers() -> dict:
    return {"Authorization": f"Bearer {make_token(ADMIN_ACCOUNT_ID)}"}


@pytest.fixture
async def client(db_session, redis_mock):
    from app.main import app
    from app.core.redis import get_redis_client
    from app.dependencies import get_db, get_session_factory

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_client] = lambda: redis_mock
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
