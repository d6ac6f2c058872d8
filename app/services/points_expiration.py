# app/services/points_expiration.py

import logging
from datetime import datetime, timezone
from redis.asyncio import Redis

from app.core.config import settings
from app.core.exceptions import PersistenceFailure
from app.core.redis import redis_client
from app.crud import loyalty as crud_loyalty
from app.db.session import SessionLocal
from app.schemas.loyalty import ExpirySweepSummary
from app.services import events as events_service
from app.services.loyalty import apply_delta, balance_event

logger = logging.getLogger(__name__)


async def expire_points_task(session_factory=SessionLocal, redis: Redis | None = None) -> ExpirySweepSummary:
    """
    Находит просроченные начисления и "сжигает" их.

    Каждый аккаунт обрабатывается в своей транзакции: флаг `expired`,
    уменьшение баланса (не ниже нуля) и корректирующая запись коммитятся вместе.
    Сумма считается только по строкам, которые эта транзакция сама заблокировала
    и пометила, поэтому повторный запуск ничего не спишет дважды.
    """
    logger.info("--- Starting scheduled job: Expire Loyalty Points ---")
    redis = redis or redis_client
    now = datetime.now(timezone.utc)

    try:
        with session_factory() as db:
            account_ids = [account_id for account_id, in crud_loyalty.get_accounts_with_due_points(db, now)]
    except Exception:
        logger.error("Failed to load accounts with expired points", exc_info=True)
        raise PersistenceFailure()

    if not account_ids:
        logger.info("No points to expire.")
        logger.info("--- Finished scheduled job: Expire Loyalty Points ---")
        return ExpirySweepSummary(expired_count=0, affected_accounts=0)

    logger.info(f"Found {len(account_ids)} accounts with expired points to process.")

    expired_count = 0
    affected_accounts = 0
    failed_accounts = 0
    events = []

    for account_id in account_ids:
        with session_factory() as db:
            try:
                # Сначала баланс, потом строки истории - тот же порядок блокировок, что и при начислении
                balance = crud_loyalty.get_balance_for_update(db, account_id)
                entries = crud_loyalty.get_due_entries_for_update(db, account_id, now)
                if not entries:
                    # Параллельный запуск уже все обработал
                    db.rollback()
                    continue

                expired_points = sum(entry.points for entry in entries)
                crud_loyalty.mark_entries_expired(db, [entry.id for entry in entries])

                if balance is None:
                    logger.warning(f"Account {account_id}: {expired_points} points expired, but no balance row exists. Entries flagged only.")
                else:
                    decrement = -apply_delta(balance, -expired_points)
                    if decrement < expired_points:
                        logger.warning(
                            f"Account {account_id}: {expired_points} points expired, but balance was only {decrement}. "
                            f"Balance floored at 0."
                        )
                    crud_loyalty.create_history_entry(
                        db,
                        account_id=account_id,
                        points=-expired_points,
                        action_type="points_expired",
                        action_details={
                            "expired_points": expired_points,
                            "balance_decrement": decrement,
                            "expired_entry_ids": [entry.id for entry in entries],
                            "reason": f"Points expired after {settings.POINTS_LIFETIME_DAYS} days",
                        },
                    )

                db.commit()

                expired_count += len(entries)
                affected_accounts += 1
                if balance is not None:
                    events.append(balance_event(balance, "points_expired"))
                logger.info(f"Account {account_id}: expired {len(entries)} entries ({expired_points} points).")

            except Exception:
                logger.error(f"Failed to process points expiration for account {account_id}", exc_info=True)
                db.rollback()
                failed_accounts += 1

    for event in events:
        await events_service.publish_balance_changed(redis, event)

    logger.info(
        f"Expired {expired_count} point entries for {affected_accounts} accounts "
        f"({failed_accounts} failed)."
    )
    logger.info("--- Finished scheduled job: Expire Loyalty Points ---")
    return ExpirySweepSummary(
        expired_count=expired_count,
        affected_accounts=affected_accounts,
        failed_accounts=failed_accounts,
    )
