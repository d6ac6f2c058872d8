# app/crud/loyalty.py

from typing import List, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from datetime import datetime, timezone

from app.models.loyalty import PointBalance, PointHistoryEntry

# --- Баланс ---

def get_balance(db: Session, account_id: str) -> PointBalance | None:
    return db.query(PointBalance).filter(PointBalance.account_id == account_id).first()

def get_balance_for_update(db: Session, account_id: str) -> PointBalance | None:
    """
    Выбирает баланс с блокировкой строки (`SELECT ... FOR UPDATE`).
    Все начисления, списания и сгорания по аккаунту идут через эту функцию,
    поэтому их read-modify-write не перемешиваются.
    """
    return db.query(PointBalance).filter(
        PointBalance.account_id == account_id
    ).with_for_update().first()

def dialect_insert(db: Session, model):
    """INSERT с поддержкой ON CONFLICT для текущего диалекта (Postgres в проде, SQLite в тестах)."""
    if db.get_bind().dialect.name == "postgresql":
        return pg_insert(model)
    return sqlite_insert(model)

def ensure_balance(db: Session, account_id: str) -> None:
    """
    Создает пустой баланс (0, bronze), если его еще нет.
    ON CONFLICT DO NOTHING: два параллельных "первых" начисления не падают на PK.
    Требует внешнего вызова db.commit().
    """
    stmt = dialect_insert(db, PointBalance).values(
        account_id=account_id, total_points=0, tier="bronze"
    ).on_conflict_do_nothing(index_elements=["account_id"])
    db.execute(stmt)

# --- История ---

def create_history_entry(
    db: Session,
    account_id: str,
    points: int,
    action_type: str,
    action_details: dict | None = None,
    created_at: datetime | None = None,
    expires_at: datetime | None = None,
) -> PointHistoryEntry:
    """
    Создает запись истории и добавляет ее в сессию.
    Требует внешнего вызова db.commit().
    """
    entry = PointHistoryEntry(
        account_id=account_id,
        points=points,
        action_type=action_type,
        action_details=action_details or {},
        created_at=created_at or datetime.now(timezone.utc),
        expires_at=expires_at,
        expired=False,
    )
    db.add(entry)
    return entry

def get_history(db: Session, account_id: str, skip: int = 0, limit: int = 20) -> List[PointHistoryEntry]:
    """Пагинированная история аккаунта (от новых к старым)."""
    return db.query(PointHistoryEntry).filter(
        PointHistoryEntry.account_id == account_id
    ).order_by(PointHistoryEntry.created_at.desc(), PointHistoryEntry.id.desc()).offset(skip).limit(limit).all()

def count_history(db: Session, account_id: str) -> int:
    return db.query(PointHistoryEntry).filter(PointHistoryEntry.account_id == account_id).count()

def get_points_expiring_between(db: Session, account_id: str, start: datetime, end: datetime) -> int:
    """Сумма еще не сгоревших начислений, срок которых истекает в интервале [start, end)."""
    total = db.query(func.sum(PointHistoryEntry.points)).filter(
        PointHistoryEntry.account_id == account_id,
        PointHistoryEntry.expired.is_(False),
        PointHistoryEntry.expires_at.isnot(None),
        PointHistoryEntry.expires_at >= start,
        PointHistoryEntry.expires_at < end,
    ).scalar()
    return total or 0

# --- Сгорание ---

def get_accounts_with_due_points(db: Session, now: datetime | None = None) -> List[Tuple[str]]:
    """
    Возвращает ID аккаунтов, у которых есть несгоревшие записи с датой сгорания в прошлом.
    """
    now = now or datetime.now(timezone.utc)
    return db.query(PointHistoryEntry.account_id).filter(
        PointHistoryEntry.expired.is_(False),
        PointHistoryEntry.expires_at.isnot(None),
        PointHistoryEntry.expires_at < now,
    ).distinct().all()

def get_due_entries_for_update(db: Session, account_id: str, now: datetime) -> List[PointHistoryEntry]:
    """Просроченные записи одного аккаунта, заблокированные до конца транзакции."""
    return db.query(PointHistoryEntry).filter(
        PointHistoryEntry.account_id == account_id,
        PointHistoryEntry.expired.is_(False),
        PointHistoryEntry.expires_at.isnot(None),
        PointHistoryEntry.expires_at < now,
    ).order_by(PointHistoryEntry.id.asc()).with_for_update().all()

def mark_entries_expired(db: Session, entry_ids: List[int]) -> int:
    """Одним UPDATE выставляет флаг `expired`. Повторный вызов ничего не меняет."""
    if not entry_ids:
        return 0
    return db.query(PointHistoryEntry).filter(
        PointHistoryEntry.id.in_(entry_ids),
        PointHistoryEntry.expired.is_(False),
    ).update({"expired": True}, synchronize_session=False)
