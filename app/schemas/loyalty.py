# app/schemas/loyalty.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Literal

from app.schemas.common import PaginatedResponse

Tier = Literal["bronze", "silver", "gold", "platinum"]


class AwardPointsRequest(BaseModel):
    action_type: str = Field(..., min_length=1, max_length=64)
    action_details: Dict[str, Any] | None = None

class AwardPointsResponse(BaseModel):
    success: bool = True
    points_awarded: int
    action_type: str
    total_points: int
    tier: Tier


class PointHistoryEntry(BaseModel):
    id: int
    points: int
    action_type: str
    action_details: Dict[str, Any] = {}
    created_at: datetime
    expires_at: datetime | None = None
    expired: bool

    class Config:
        from_attributes = True

class PaginatedPointHistory(PaginatedResponse[PointHistoryEntry]):
    pass


class PointsSummary(BaseModel):
    total_points: int
    tier: Tier
    next_tier: Tier | None  # null, если достигнут максимальный уровень
    points_to_next_tier: int | None

class ExpiringPoints(BaseModel):
    days: int
    points_expiring: int


class ExpirySweepSummary(BaseModel):
    expired_count: int
    affected_accounts: int
    failed_accounts: int = 0


class BalanceChangedEvent(BaseModel):
    """Доменное событие, которое публикуется после каждого изменения баланса."""
    account_id: str
    total_points: int
    tier: Tier
    reason: str


class InsufficientPointsRejection(BaseModel):
    """Недостаточно баллов. Это штатный отказ бизнес-правила, а не ошибка."""
    success: bool = False
    error: Literal["insufficient_points"] = "insufficient_points"
    detail: str
    required: int
    available: int
