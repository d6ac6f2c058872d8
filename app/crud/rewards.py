# app/crud/rewards.py

from typing import List
from sqlalchemy.orm import Session
from sqlalchemy import func, case

from app.models.loyalty import RewardCatalogEntry, Redemption

# --- Каталог наград ---

def get_reward(db: Session, reward_id: int) -> RewardCatalogEntry | None:
    return db.get(RewardCatalogEntry, reward_id)

def get_rewards(db: Session, active_only: bool = True) -> List[RewardCatalogEntry]:
    """Награды по возрастанию стоимости."""
    query = db.query(RewardCatalogEntry)
    if active_only:
        query = query.filter(RewardCatalogEntry.is_active.is_(True))
    return query.order_by(RewardCatalogEntry.points_cost.asc(), RewardCatalogEntry.id.asc()).all()

def create_reward(db: Session, data: dict) -> RewardCatalogEntry:
    reward = RewardCatalogEntry(**data)
    db.add(reward)
    db.commit()
    db.refresh(reward)
    return reward

def update_reward(db: Session, reward: RewardCatalogEntry, data: dict) -> RewardCatalogEntry:
    for field, value in data.items():
        setattr(reward, field, value)
    db.commit()
    db.refresh(reward)
    return reward

def delete_reward(db: Session, reward: RewardCatalogEntry):
    db.delete(reward)
    db.commit()

def count_redemptions_for_reward(db: Session, reward_id: int) -> int:
    return db.query(Redemption).filter(Redemption.reward_id == reward_id).count()

# --- Обмены ---

def create_redemption(
    db: Session,
    account_id: str,
    reward: RewardCatalogEntry,
    expires_at=None,
) -> Redemption:
    """
    Создает запись обмена в статусе 'pending' и добавляет ее в сессию.
    Требует внешнего вызова db.commit().
    """
    redemption = Redemption(
        account_id=account_id,
        reward_id=reward.id,
        points_spent=reward.points_cost,
        reward_details=dict(reward.reward_value or {}),
        status="pending",
        expires_at=expires_at,
    )
    db.add(redemption)
    return redemption

def get_redemption_for_update(db: Session, redemption_id: int) -> Redemption | None:
    return db.query(Redemption).filter(Redemption.id == redemption_id).with_for_update().first()

def get_account_redemptions(db: Session, account_id: str, skip: int = 0, limit: int = 20) -> List[Redemption]:
    return db.query(Redemption).filter(
        Redemption.account_id == account_id
    ).order_by(Redemption.id.desc()).offset(skip).limit(limit).all()

def get_redemptions(db: Session, status: str | None = None, skip: int = 0, limit: int = 50) -> List[Redemption]:
    query = db.query(Redemption)
    if status:
        query = query.filter(Redemption.status == status)
    return query.order_by(Redemption.id.desc()).offset(skip).limit(limit).all()

def get_redemption_stats(db: Session) -> dict:
    total, points_spent, applied = db.query(
        func.count(Redemption.id),
        func.coalesce(func.sum(Redemption.points_spent), 0),
        func.coalesce(func.sum(case((Redemption.status == "applied", 1), else_=0)), 0),
    ).one()
    return {
        "total_redemptions": total,
        "total_points_spent": int(points_spent),
        "applied_redemptions": int(applied),
    }
