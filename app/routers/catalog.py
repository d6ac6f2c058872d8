# app/routers/catalog.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.crud import vendor as crud_vendor
from app.dependencies import get_current_account_id, get_db
from app.schemas.catalog import GoldRate, GoldRateUpdate, RecalculationResult
from app.services import pricing as pricing_service

router = APIRouter(prefix="/catalog")


@router.get("/gold-rate", response_model=GoldRate)
def get_gold_rate(
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    profile = crud_vendor.get_profile(db, account_id)
    if profile is None:
        return GoldRate()
    return GoldRate(rate_per_gram=profile.gold_rate_24k_per_gram, updated_at=profile.gold_rate_updated_at)


@router.post("/gold-rate", response_model=RecalculationResult)
def update_gold_rate(
    payload: GoldRateUpdate,
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """
    Сохраняет новый курс золота 24K и пересчитывает себестоимость и розничную цену
    всех изделий с указанным весом. Изделия без веса (камни, бриллианты) не меняются.
    """
    return pricing_service.recalculate_prices(db, account_id, payload.rate_per_gram)
