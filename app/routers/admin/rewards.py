# app/routers/admin/rewards.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.crud import rewards as crud_rewards
from app.dependencies import get_db
from app.schemas.rewards import Reward, RewardCreate, RewardUpdate, validate_reward_value

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_reward_or_404(db: Session, reward_id: int):
    reward = crud_rewards.get_reward(db, reward_id)
    if not reward:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reward not found")
    return reward


@router.get("", response_model=List[Reward])
def list_rewards(db: Session = Depends(get_db)):
    """[АДМИН] Все награды, включая выключенные."""
    return crud_rewards.get_rewards(db, active_only=False)


@router.post("", response_model=Reward, status_code=status.HTTP_201_CREATED)
def create_reward(payload: RewardCreate, db: Session = Depends(get_db)):
    reward = crud_rewards.create_reward(db, payload.model_dump())
    logger.info(f"Reward {reward.id} '{reward.name}' created ({reward.points_cost} points).")
    return reward


@router.patch("/{reward_id}", response_model=Reward)
def update_reward(reward_id: int, payload: RewardUpdate, db: Session = Depends(get_db)):
    reward = _get_reward_or_404(db, reward_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("reward_value") is None:
        data.pop("reward_value", None)
    # Тип награды не меняется, поэтому новое reward_value проверяем по сохраненному типу
    try:
        validate_reward_value(reward.reward_type, data.get("reward_value", reward.reward_value))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return crud_rewards.update_reward(db, reward, data)


@router.post("/{reward_id}/toggle", response_model=Reward)
def toggle_reward(reward_id: int, db: Session = Depends(get_db)):
    """[АДМИН] Включает/выключает награду в каталоге."""
    reward = _get_reward_or_404(db, reward_id)
    return crud_rewards.update_reward(db, reward, {"is_active": not reward.is_active})


@router.delete("/{reward_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reward(reward_id: int, db: Session = Depends(get_db)):
    """
    [АДМИН] Удаляет награду. Если ее уже обменивали, удалить нельзя -
    на нее ссылаются записи обменов, такую награду нужно выключить.
    """
    reward = _get_reward_or_404(db, reward_id)
    if crud_rewards.count_redemptions_for_reward(db, reward_id) > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Reward has redemptions and cannot be deleted. Deactivate it instead.",
        )
    crud_rewards.delete_reward(db, reward)
    logger.info(f"Reward {reward_id} deleted.")
