"""
Daily settlement task.

Settles the previous UTC day: snapshots daily earnings of active users,
pays the daily aggregate commissions and resets activity flags.
Scheduled once per day shortly after midnight UTC.
"""

from datetime import date

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config.operational_constants import (
    DEFAULT_MAX_RETRIES,
    DRAMATIQ_TIME_LIMIT_LONG,
    LOCK_TIMEOUT_EXTENDED,
)
from app.services.settlement_service import SettlementReport, SettlementService
from app.utils.datetime_utils import previous_day, utc_today
from app.utils.distributed_lock import DistributedLock
from app.utils.exceptions import SettlementIncomplete
from app.utils.formatters import format_money
from app.utils.redis_utils import get_redis_client
from jobs.async_runner import run_async
from jobs.utils.database import create_task_engine, create_task_session_maker


@dramatiq.actor(max_retries=DEFAULT_MAX_RETRIES, time_limit=DRAMATIQ_TIME_LIMIT_LONG)
def run_daily_settlement(day_iso: str | None = None) -> None:
    """
    Settle a UTC day.

    Failures propagate so the Retries middleware re-runs the task,
    including a run in which some users could not be settled. A re-run
    settles the same day again and never pays a commission twice.

    Args:
        day_iso: Day to settle as YYYY-MM-DD (yesterday by default)
    """
    day = date.fromisoformat(day_iso) if day_iso else None
    report = run_async(settle_day(day))

    if report is None:
        logger.info("Daily settlement skipped: already running elsewhere")
        return

    logger.info(
        f"Daily settlement for {report.date} complete: "
        f"{report.processed_users} users settled, "
        f"{len(report.failed_users)} failed, "
        f"{report.commission_count} commissions, total {format_money(report.total_commissions)}"
    )

    if report.failed_users:
        raise SettlementIncomplete(report.date, report.failed_users)


async def settle_day(
    day: date | None = None,
    session_maker: async_sessionmaker | None = None,
    lock: DistributedLock | None = None,
) -> SettlementReport | None:
    """
    Run the settlement of one day under a distributed lock.

    Args:
        day: Day to settle (yesterday by default)
        session_maker: Session factory (task engine by default)
        lock: Lock (Redis lock by default)

    Returns:
        SettlementReport, or None if another worker holds the day's lock
    """
    day = day or previous_day(utc_today())

    redis_client = None
    if lock is None:
        redis_client = await get_redis_client()
        lock = DistributedLock(redis_client=redis_client)

    engine = None
    if session_maker is None:
        engine = create_task_engine()
        session_maker = create_task_session_maker(engine)

    try:
        async with lock.lock(
            f"daily_settlement:{day.isoformat()}",
            timeout=LOCK_TIMEOUT_EXTENDED,
            blocking=False,
        ) as acquired:
            if not acquired:
                return None

            async with session_maker() as session:
                service = SettlementService(session)
                return await service.run_daily_settlement(day)
    finally:
        if redis_client is not None:
            await redis_client.aclose()
        if engine is not None:
            await engine.dispose()
