"""
Activity gate.

Enforces per-activity daily limits and records the activity days that
make a user eligible for commissions. Every day is a UTC
calendar day.
"""

from datetime import date

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import DAILY_LIMITS
from app.repositories.activity_day_repository import ActivityDayRepository
from app.repositories.earning_repository import EarningRepository
from app.repositories.user_repository import UserRepository
from app.utils.datetime_utils import Clock, utc_now, utc_today
from app.utils.exceptions import DailyLimitExceeded, NotFound


class ActivityGate:
    """Daily limit and activity flag checks."""

    def __init__(
        self, session: AsyncSession, clock: Clock = utc_now
    ) -> None:
        """
        Initialize activity gate.

        Args:
            session: Async database session
            clock: Returns the current UTC datetime
        """
        self.session = session
        self.clock = clock
        self.user_repo = UserRepository(session)
        self.earning_repo = EarningRepository(session)
        self.activity_repo = ActivityDayRepository(session)

    async def check_daily_limit(
        self,
        user_id: int,
        activity_type: str,
        limit: int | None = None,
    ) -> int:
        """
        Check that a user may perform an activity once more today.

        Args:
            user_id: User ID
            activity_type: Activity (earning) type
            limit: Override of the configured daily limit

        Returns:
            Number of times the activity was already performed today

        Raises:
            DailyLimitExceeded: If the count reached the limit
        """
        if limit is None:
            limit = DAILY_LIMITS.get(activity_type)

        today = utc_today(self.clock)
        count = await self.earning_repo.count_for_day(
            user_id, activity_type, today
        )

        if limit is not None and count >= limit:
            logger.info(
                "Daily limit reached",
                extra={
                    "user_id": user_id,
                    "activity_type": activity_type,
                    "limit": limit,
                },
            )
            raise DailyLimitExceeded(activity_type, limit)

        return count

    async def is_user_active(self, user_id: int, day: date) -> bool:
        """
        Check if a user is commission eligible on a day.

        Eligibility is read from the recorded activity days, not from the
        is_active flag, which only reflects the current day.
        """
        return await self.activity_repo.is_active_on(user_id, day)

    async def mark_active(self, user_id: int, day: date | None = None) -> None:
        """
        Mark a user commission eligible for a day (today by default).

        Raises:
            NotFound: If the user does not exist
        """
        day = day or utc_today(self.clock)
        if not await self.user_repo.mark_active(user_id, day):
            raise NotFound("User", user_id)
        await self.activity_repo.record(user_id, day)
