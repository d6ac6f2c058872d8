# app/models/vendor.py

from sqlalchemy import Column, Integer, String, Numeric, DateTime, func
from app.db.session import Base


class VendorPermissions(Base):
    """Лимиты аккаунта. Часть из них увеличивается наградами за баллы."""
    __tablename__ = "vendor_permissions"

    account_id = Column(String(64), primary_key=True)
    # NULL означает "лимит тарифа по умолчанию"
    max_products = Column(Integer, nullable=True)
    max_share_links = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class VendorProfile(Base):
    __tablename__ = "vendor_profiles"

    account_id = Column(String(64), primary_key=True)
    business_name = Column(String, nullable=True)
    # Курс золота 24K за грамм, от которого пересчитываются цены изделий
    gold_rate_24k_per_gram = Column(Numeric(12, 2), nullable=True)
    gold_rate_updated_at = Column(DateTime(timezone=True), nullable=True)
