"""
Per-transaction commission task.

Pays the legacy per-transaction bonus for one committed earning.
Enqueued with a short delay after the earning commits; its failure
never affects the earning itself.
"""

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config.operational_constants import (
    DEFAULT_MAX_RETRIES,
    DRAMATIQ_TIME_LIMIT_SHORT,
)
from app.config.settings import settings
from app.repositories.earning_repository import EarningRepository
from app.services.referral.commission_engine import (
    CommissionEngine,
    CommissionResult,
)
from app.services.referral.commission_policies import PerTransactionPolicy
from jobs.async_runner import run_async
from jobs.utils.database import create_task_engine, create_task_session_maker


@dramatiq.actor(max_retries=DEFAULT_MAX_RETRIES, time_limit=DRAMATIQ_TIME_LIMIT_SHORT)
def distribute_earning_commission(earning_id: int) -> None:
    """
    Distribute per-transaction commissions for an earning.

    Args:
        earning_id: Committed earning ID
    """
    result = run_async(distribute_for_earning(earning_id))
    if result is not None:
        logger.info(
            f"Commissions for earning {earning_id}: "
            f"{result.commission_count} paid, total {result.total_paid}"
        )


async def distribute_for_earning(
    earning_id: int,
    session_maker: async_sessionmaker | None = None,
) -> CommissionResult | None:
    """
    Load an earning and pay its upline.

    Args:
        earning_id: Earning ID
        session_maker: Session factory (task engine by default)

    Returns:
        CommissionResult, or None if nothing was distributed
    """
    if settings.uses_daily_settlement:
        logger.warning(
            f"Per-transaction commission for earning {earning_id} ignored: "
            f"policy is {settings.commission_policy}"
        )
        return None

    engine = None
    if session_maker is None:
        engine = create_task_engine()
        session_maker = create_task_session_maker(engine)

    try:
        async with session_maker() as session:
            earning = await EarningRepository(session).get_by_id(earning_id)
            if earning is None:
                logger.warning(f"Earning {earning_id} not found, no commissions")
                return None

            commission_engine = CommissionEngine(
                session, policy=PerTransactionPolicy()
            )
            result = await commission_engine.distribute_for_earning(earning)
            await session.commit()
            return result
    finally:
        if engine is not None:
            await engine.dispose()
