"""
Activity day repository.

Data access layer for ActivityDay model.
"""

from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_day import ActivityDay
from app.repositories.base import BaseRepository


class ActivityDayRepository(BaseRepository[ActivityDay]):
    """Activity day repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize activity day repository."""
        super().__init__(ActivityDay, session)

    async def record(self, user_id: int, day: date) -> bool:
        """
        Record a user as active on a day.

        Args:
            user_id: User ID
            day: UTC day

        Returns:
            True if the row was created, False if it already existed
        """
        if await self.is_active_on(user_id, day):
            return False

        try:
            async with self.session.begin_nested():
                await self.create(user_id=user_id, activity_date=day)
        except IntegrityError:
            # Concurrent writer got there first
            return False
        return True

    async def is_active_on(self, user_id: int, day: date) -> bool:
        """Check if a user was active on a day."""
        return await self.exists(user_id=user_id, activity_date=day)

    async def get_active_user_ids(
        self, day: date, limit: int, after_id: int = 0
    ) -> list[int]:
        """
        Get IDs of users active on a day (keyset pagination).

        Args:
            day: UTC day
            limit: Page size
            after_id: Return IDs strictly greater than this

        Returns:
            Ascending list of user IDs
        """
        stmt = (
            select(ActivityDay.user_id)
            .where(
                ActivityDay.activity_date == day,
                ActivityDay.user_id > after_id,
            )
            .order_by(ActivityDay.user_id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]
