# app/schemas/rewards.py
from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Any, Dict, Literal, Optional

RewardType = Literal["extra_products", "extra_share_links", "premium_support", "custom"]
RedemptionStatus = Literal["pending", "applied", "failed"]

# Обязательный ключ reward_value для каждого типа награды
REQUIRED_VALUE_KEYS = {
    "extra_products": "amount",
    "extra_share_links": "amount",
    "premium_support": "duration_days",
}


def _positive_int(value) -> bool:
    # bool - подкласс int, True не должен считаться единицей
    return type(value) is int and value > 0


def validate_reward_value(reward_type: str, reward_value: Dict[str, Any] | None) -> None:
    """Проверяет форму reward_value для типа награды. Бросает ValueError."""
    key = REQUIRED_VALUE_KEYS.get(reward_type)
    if key and not _positive_int((reward_value or {}).get(key)):
        raise ValueError(f"reward_value.{key} must be a positive integer for {reward_type}")


class Reward(BaseModel):
    id: int
    name: str
    description: str | None = None
    points_cost: int
    reward_type: str
    reward_value: Dict[str, Any]
    is_active: bool

    class Config:
        from_attributes = True


class RewardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    points_cost: int = Field(..., gt=0)
    reward_type: RewardType
    reward_value: Dict[str, Any] = {}
    is_active: bool = True

    @model_validator(mode="after")
    def check_reward_value(self):
        validate_reward_value(self.reward_type, self.reward_value)
        return self


class RewardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    points_cost: Optional[int] = Field(None, gt=0)
    reward_value: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class RedeemRequest(BaseModel):
    reward_id: int


class Redemption(BaseModel):
    id: int
    account_id: str
    reward_id: int
    points_spent: int
    reward_details: Dict[str, Any] | None = None
    status: RedemptionStatus
    redeemed_at: datetime | None = None
    applied_at: datetime | None = None
    expires_at: datetime | None = None

    class Config:
        from_attributes = True


class RedemptionResult(BaseModel):
    success: bool = True
    redemption: Redemption
    remaining_points: int
    tier: str


class RedemptionFailRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class RedemptionStats(BaseModel):
    total_redemptions: int
    total_points_spent: int
    applied_redemptions: int
