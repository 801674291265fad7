#!/usr/bin/env python3
"""
Run the daily settlement from the command line.

Usage:
    python scripts/run_daily_settlement.py              # yesterday (UTC)
    python scripts/run_daily_settlement.py --date 2024-05-01
    python scripts/run_daily_settlement.py --enqueue    # via dramatiq
"""

import argparse
import asyncio
import sys
from datetime import date

from loguru import logger

from app.logging_config import setup_logging
from app.utils.datetime_utils import previous_day, utc_today
from app.utils.exceptions import StoreUnavailable
from app.utils.formatters import format_money


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Settle one UTC day")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Day to settle, YYYY-MM-DD (default: yesterday UTC)",
    )
    parser.add_argument(
        "--enqueue",
        action="store_true",
        help="Send the task to the worker queue instead of running it here",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point. Returns process exit code."""
    args = parse_args(argv)
    setup_logging("settlement-cli")

    day = args.date or previous_day(utc_today())

    if args.enqueue:
        from jobs.broker import broker  # noqa: F401
        from jobs.tasks.daily_settlement import run_daily_settlement

        run_daily_settlement.send(day.isoformat())
        logger.info(f"Settlement for {day} enqueued")
        return 0

    from jobs.tasks.daily_settlement import settle_day

    try:
        report = asyncio.run(settle_day(day))
    except StoreUnavailable as e:
        logger.error(f"Settlement for {day} aborted, store unavailable: {e}")
        return 2

    if report is None:
        logger.warning(f"Settlement for {day} is already running elsewhere")
        return 1

    logger.info(
        f"Settled {day}: {report.processed_users} users, "
        f"{len(report.failed_users)} failed, "
        f"{report.commission_count} commissions totalling {format_money(report.total_commissions)}"
    )
    return 1 if report.failed_users else 0


if __name__ == "__main__":
    sys.exit(main())
