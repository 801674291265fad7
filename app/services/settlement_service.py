"""
Daily settlement service.

Settles one UTC day: snapshots the own earnings of every user active
on that day, pays the daily aggregate commissions on them and clears
the activity flags. Who was active on the day is read from the recorded
activity days, so neither the flag reset nor a later check-in changes
the outcome of a re-run. Each user is settled in its own transaction,
so one failing user never blocks the others. Re-running a day is safe:
snapshots are overwritten and already paid commission keys are skipped.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.referral_commission import CommissionPolicyName
from app.repositories.activity_day_repository import ActivityDayRepository
from app.repositories.daily_earnings_repository import DailyEarningsRepository
from app.repositories.earning_repository import EarningRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService
from app.services.referral.commission_engine import (
    CommissionEngine,
    CommissionResult,
)
from app.utils.datetime_utils import Clock, previous_day, utc_now
from app.utils.exceptions import StoreUnavailable, store_errors


class SettlementState(StrEnum):
    """Settlement run state."""

    IDLE = "idle"
    SELECTING = "selecting"
    PER_USER_SETTLEMENT = "per_user_settlement"
    RESETTING_ACTIVITY = "resetting_activity"


@dataclass
class SettlementReport:
    """Outcome of a settlement run."""

    date: date
    processed_users: int = 0
    failed_users: list[int] = field(default_factory=list)
    total_commissions: Decimal = Decimal("0")
    commission_count: int = 0
    reset_users: int = 0


class SettlementService(BaseService):
    """Runs the daily settlement."""

    def __init__(
        self,
        session: AsyncSession,
        engine: CommissionEngine | None = None,
        clock: Clock = utc_now,
        batch_size: int | None = None,
    ) -> None:
        """
        Initialize settlement service.

        Args:
            session: Async database session
            engine: Commission engine (configured policy by default)
            clock: Returns the current UTC datetime
            batch_size: Page size of the active-user selection
        """
        super().__init__(session, clock)
        self.engine = engine or CommissionEngine(session, clock=clock)
        self.batch_size = batch_size or settings.settlement_batch_size
        self.user_repo = UserRepository(session)
        self.earning_repo = EarningRepository(session)
        self.activity_repo = ActivityDayRepository(session)
        self.daily_repo = DailyEarningsRepository(session)
        self.state = SettlementState.IDLE

    @property
    def pays_commissions(self) -> bool:
        """True if the engine runs the daily aggregate policy."""
        return self.engine.policy.name == CommissionPolicyName.DAILY_AGGREGATE

    async def _select_active_users(self, day: date) -> list[int]:
        user_ids: list[int] = []
        after_id = 0
        while True:
            async with store_errors():
                page = await self.activity_repo.get_active_user_ids(
                    day, limit=self.batch_size, after_id=after_id
                )
            if not page:
                break
            user_ids.extend(page)
            after_id = page[-1]
            if len(page) < self.batch_size:
                break
        return user_ids

    async def _settle_user(
        self, user_id: int, day: date
    ) -> CommissionResult | None:
        async with store_errors():
            total = await self.earning_repo.sum_for_day(user_id, day)
            await self.daily_repo.upsert(user_id, day, total)

            result = None
            if total > 0 and self.pays_commissions:
                result = await self.engine.distribute_daily(user_id, total, day)

            await self.commit()
        return result

    async def run_daily_settlement(
        self, day: date | None = None
    ) -> SettlementReport:
        """
        Settle a UTC day (yesterday by default).

        Args:
            day: Day to settle

        Returns:
            SettlementReport

        Raises:
            StoreUnavailable: If selection or the activity reset fails
        """
        day = day or previous_day(self.today())
        report = SettlementReport(date=day)

        self.logger.info(
            "Daily settlement started",
            extra={"date": day.isoformat(), "pays_commissions": self.pays_commissions},
        )

        try:
            self.state = SettlementState.SELECTING
            user_ids = await self._select_active_users(day)

            self.state = SettlementState.PER_USER_SETTLEMENT
            for user_id in user_ids:
                try:
                    result = await self._settle_user(user_id, day)
                except (StoreUnavailable, SQLAlchemyError) as e:
                    await self.rollback()
                    report.failed_users.append(user_id)
                    self.logger.error(
                        "User settlement failed, day must be re-run",
                        extra={
                            "user_id": user_id,
                            "date": day.isoformat(),
                            "error": str(e),
                        },
                    )
                    continue

                report.processed_users += 1
                if result is not None:
                    report.total_commissions += result.total_paid
                    report.commission_count += result.commission_count

            self.state = SettlementState.RESETTING_ACTIVITY
            async with store_errors():
                report.reset_users = await self.user_repo.reset_activity(
                    day, exclude_ids=report.failed_users
                )
                await self.commit()
        finally:
            self.state = SettlementState.IDLE

        self.logger.info(
            "Daily settlement completed",
            extra={
                "date": day.isoformat(),
                "processed_users": report.processed_users,
                "failed_users": len(report.failed_users),
                "total_commissions": str(report.total_commissions),
                "commission_count": report.commission_count,
                "reset_users": report.reset_users,
            },
        )

        return report
