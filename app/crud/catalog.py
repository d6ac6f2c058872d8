# app/crud/catalog.py

from typing import List
from sqlalchemy.orm import Session

from app.models.catalog import Product


def get_active_products(db: Session, account_id: str) -> List[Product]:
    """Все неудаленные изделия вендора."""
    return db.query(Product).filter(
        Product.account_id == account_id,
        Product.deleted_at.is_(None),
    ).order_by(Product.id.asc()).all()
