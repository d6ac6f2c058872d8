# app/models/catalog.py

from sqlalchemy import Column, Integer, String, Numeric, DateTime, func
from app.db.session import Base


class Product(Base):
    """
    Изделие каталога вендора. Здесь описаны только поля, нужные для пересчета цен;
    остальные колонки таблицы принадлежат сервису каталога.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(String(64), nullable=False, index=True)
    name = Column(String, nullable=False)
    sku = Column(String, nullable=True)
    product_type = Column(String, nullable=True)  # 'Jewellery', 'Gemstones', 'Loose Diamonds'

    net_weight = Column(Numeric(10, 3), nullable=True)
    weight_grams = Column(Numeric(10, 3), nullable=True)
    # Дробь (0.75), карат (18) или процент (75) - нормализуется при пересчете
    purity_fraction_used = Column(Numeric(7, 3), nullable=True)

    d_value = Column(Numeric(12, 2), nullable=True)             # стоимость бриллиантов
    mkg = Column(Numeric(12, 2), nullable=True)                 # стоимость работы
    certification_cost = Column(Numeric(12, 2), nullable=True)
    gemstone_cost = Column(Numeric(12, 2), nullable=True)

    cost_price = Column(Numeric(12, 2), nullable=True)
    retail_price = Column(Numeric(12, 2), nullable=True)
    gold_per_gram_price = Column(Numeric(12, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)
