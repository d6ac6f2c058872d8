# app/crud/vendor.py

from sqlalchemy.orm import Session

from app.crud.loyalty import dialect_insert
from app.models.vendor import VendorPermissions, VendorProfile


def get_permissions_for_update(db: Session, account_id: str) -> VendorPermissions | None:
    return db.query(VendorPermissions).filter(
        VendorPermissions.account_id == account_id
    ).with_for_update().first()

def ensure_permissions(db: Session, account_id: str, max_products: int, max_share_links: int) -> None:
    """Создает строку лимитов со значениями тарифа, если ее нет. Требует внешнего вызова db.commit()."""
    stmt = dialect_insert(db, VendorPermissions).values(
        account_id=account_id,
        max_products=max_products,
        max_share_links=max_share_links,
    ).on_conflict_do_nothing(index_elements=["account_id"])
    db.execute(stmt)

def get_profile(db: Session, account_id: str) -> VendorProfile | None:
    return db.get(VendorProfile, account_id)

def get_or_create_profile(db: Session, account_id: str) -> VendorProfile:
    """Требует внешнего вызова db.commit()."""
    profile = get_profile(db, account_id)
    if profile is None:
        profile = VendorProfile(account_id=account_id)
        db.add(profile)
    return profile
