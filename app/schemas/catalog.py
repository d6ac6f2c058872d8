# app/schemas/catalog.py
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field


class GoldRateUpdate(BaseModel):
    # Курс 24K за грамм. Границы взяты из формы ввода курса в кабинете вендора.
    rate_per_gram: Decimal = Field(..., ge=1000, le=200000, decimal_places=2)


class RecalculationResult(BaseModel):
    rate_per_gram: Decimal
    updated_count: int
    skipped_count: int
    failed_count: int


class GoldRate(BaseModel):
    rate_per_gram: Decimal | None = None
    updated_at: datetime | None = None
