# app/models/loyalty.py
from sqlalchemy import (
    Column, Integer, String, Text, ForeignKey, DateTime, Boolean, JSON,
    CheckConstraint, Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.db.session import Base

# На Postgres храним метаданные в JSONB, в тестах (SQLite) - обычный JSON
JSONType = JSON().with_variant(JSONB(), "postgresql")


class PointBalance(Base):
    """Текущий баланс баллов вендора. Одна строка на аккаунт, создается лениво."""
    __tablename__ = "point_balances"
    __table_args__ = (
        CheckConstraint("total_points >= 0", name="ck_point_balances_non_negative"),
    )

    account_id = Column(String(64), primary_key=True)
    total_points = Column(Integer, nullable=False, default=0, server_default='0')
    # 'bronze', 'silver', 'gold', 'platinum'
    tier = Column(String, nullable=False, default="bronze", server_default='bronze')
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class PointHistoryEntry(Base):
    __tablename__ = "points_history"
    __table_args__ = (
        Index("ix_points_history_due", "expired", "expires_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(String(64), nullable=False, index=True)

    # Положительное число - начисление, отрицательное - списание/сгорание
    points = Column(Integer, nullable=False)

    # 'product_added', 'share_link_created', ..., 'reward_redemption', 'points_expired'
    action_type = Column(String, nullable=False)
    action_details = Column(JSONType, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    # Только у исходных начислений; у корректирующих записей всегда NULL
    expires_at = Column(DateTime(timezone=True), nullable=True)
    # Однажды выставленный флаг никогда не сбрасывается
    expired = Column(Boolean, nullable=False, default=False, server_default='false')


class RewardCatalogEntry(Base):
    __tablename__ = "rewards_catalog"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    points_cost = Column(Integer, nullable=False)
    # 'extra_products', 'extra_share_links', 'premium_support', ...
    reward_type = Column(String, nullable=False)
    # {"amount": 50} или {"duration_days": 30} - зависит от reward_type
    reward_value = Column(JSONType, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True, server_default='true')
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Redemption(Base):
    __tablename__ = "redemptions"
    __table_args__ = (
        CheckConstraint("status IN ('pending','applied','failed')", name="ck_redemptions_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(String(64), nullable=False, index=True)
    reward_id = Column(Integer, ForeignKey("rewards_catalog.id"), nullable=False)
    points_spent = Column(Integer, nullable=False)
    # Снимок reward_value на момент обмена
    reward_details = Column(JSONType, nullable=True)
    # 'pending' -> 'applied' | 'failed'
    status = Column(String, nullable=False, default="pending", server_default='pending', index=True)
    redeemed_at = Column(DateTime(timezone=True), server_default=func.now())
    applied_at = Column(DateTime(timezone=True), nullable=True)
    # Для наград с ограниченным сроком (premium_support)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    reward = relationship("RewardCatalogEntry")
