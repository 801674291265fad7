"""
Task scheduler.

Enqueues the daily settlement for the previous UTC day and serves the
health endpoints. Run with: python -m jobs.scheduler
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from app.config.settings import settings
from app.logging_config import setup_logging
from app.utils.datetime_utils import previous_day, utc_today
from jobs.broker import broker  # noqa: F401  (sets the global broker)
from jobs.health import set_scheduler, start_health_server, stop_health_server
from jobs.tasks.daily_settlement import run_daily_settlement


scheduler_instance: AsyncIOScheduler | None = None


def enqueue_daily_settlement() -> None:
    """Enqueue settlement of the previous UTC day."""
    day = previous_day(utc_today())
    run_daily_settlement.send(day.isoformat())
    logger.info(f"Daily settlement enqueued for {day}")


def create_scheduler() -> AsyncIOScheduler:
    """
    Create scheduler with all periodic jobs.

    Returns:
        Configured (not started) scheduler
    """
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        enqueue_daily_settlement,
        trigger=CronTrigger(
            hour=settings.settlement_hour_utc,
            minute=settings.settlement_minute_utc,
            timezone="UTC",
        ),
        id="daily_settlement",
        name="Daily settlement",
        replace_existing=True,
        misfire_grace_time=3600,
        coalesce=True,
    )
    return scheduler


async def main() -> None:
    """Run scheduler until SIGINT/SIGTERM."""
    global scheduler_instance

    setup_logging("scheduler")

    scheduler_instance = create_scheduler()
    scheduler_instance.start()
    set_scheduler(scheduler_instance)

    runner, _site = await start_health_server(port=settings.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    logger.info(
        f"Scheduler started (policy: {settings.commission_policy}, "
        f"settlement at {settings.settlement_hour_utc:02d}:"
        f"{settings.settlement_minute_utc:02d} UTC)"
    )

    await stop_event.wait()

    logger.info("Shutting down scheduler...")
    scheduler_instance.shutdown(wait=True)
    await stop_health_server(runner)


if __name__ == "__main__":
    asyncio.run(main())
