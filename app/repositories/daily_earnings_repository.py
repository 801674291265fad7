"""
Daily earnings repository.

Data access layer for DailyEarningsSnapshot model.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.daily_earnings import DailyEarningsSnapshot
from app.repositories.base import BaseRepository


class DailyEarningsRepository(BaseRepository[DailyEarningsSnapshot]):
    """Daily earnings snapshot repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize daily earnings repository."""
        super().__init__(DailyEarningsSnapshot, session)

    async def get_for_day(
        self, user_id: int, day: date
    ) -> DailyEarningsSnapshot | None:
        """Get a user's snapshot for a day."""
        return await self.get_by(user_id=user_id, snapshot_date=day)

    async def upsert(
        self, user_id: int, day: date, total: Decimal
    ) -> DailyEarningsSnapshot:
        """
        Insert or overwrite the snapshot of (user, day).

        The row is locked before the write so concurrent settlements of
        the same user serialize on it. Recomputing a day replaces the
        total, it never accumulates.

        Args:
            user_id: User ID
            day: UTC day
            total: Daily total

        Returns:
            Stored snapshot
        """
        stmt = (
            select(DailyEarningsSnapshot)
            .where(
                DailyEarningsSnapshot.user_id == user_id,
                DailyEarningsSnapshot.snapshot_date == day,
            )
            .with_for_update()
        )
        result = await self.session.execute(stmt)
        snapshot = result.scalar_one_or_none()

        if snapshot is None:
            return await self.create(
                user_id=user_id, snapshot_date=day, total_earned=total
            )

        snapshot.total_earned = total
        await self.session.flush()
        return snapshot
