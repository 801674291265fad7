"""
Earning repository.

Data access layer for the append-only Earning ledger.
"""

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.earning import NETWORK_EARNING_TYPES, Earning
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import day_bounds


class EarningRepository(BaseRepository[Earning]):
    """Earning repository with ledger queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize earning repository."""
        super().__init__(Earning, session)

    def _filtered(
        self,
        stmt: Select,
        user_id: int,
        earning_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        exclude_types: Iterable[str] | None = None,
    ) -> Select:
        stmt = stmt.where(Earning.user_id == user_id)
        if earning_type:
            stmt = stmt.where(Earning.type == earning_type)
        if exclude_types:
            stmt = stmt.where(Earning.type.not_in([str(t) for t in exclude_types]))
        if start is not None:
            stmt = stmt.where(Earning.created_at >= start)
        if end is not None:
            stmt = stmt.where(Earning.created_at <= end)
        return stmt

    async def query_earnings(
        self,
        user_id: int,
        earning_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
    ) -> list[Earning]:
        """
        Query earnings of a user, newest first.

        Args:
            user_id: User ID
            earning_type: Optional type filter
            start: Inclusive lower bound on created_at
            end: Inclusive upper bound on created_at
            limit: Max number of rows

        Returns:
            List of earnings
        """
        stmt = self._filtered(
            select(Earning), user_id, earning_type, start, end
        ).order_by(Earning.created_at.desc(), Earning.id.desc())
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_day(
        self, user_id: int, earning_type: str, day: date
    ) -> int:
        """
        Count earnings of one type within a UTC day.

        Args:
            user_id: User ID
            earning_type: Earning type
            day: UTC day

        Returns:
            Number of earnings
        """
        start, end = day_bounds(day)
        stmt = self._filtered(
            select(func.count(Earning.id)), user_id, earning_type, start, end
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def summary_for_day(
        self,
        user_id: int,
        day: date,
        earning_type: str | None = None,
        exclude_types: Iterable[str] | None = None,
    ) -> tuple[Decimal, int]:
        """
        Get total amount and count of earnings within a UTC day.

        Args:
            user_id: User ID
            day: UTC day
            earning_type: Optional type filter
            exclude_types: Types left out of the aggregate

        Returns:
            Tuple of (total, count)
        """
        start, end = day_bounds(day)
        stmt = self._filtered(
            select(
                func.coalesce(func.sum(Earning.amount), Decimal("0")).label("total"),
                func.count(Earning.id).label("count"),
            ),
            user_id,
            earning_type,
            start,
            end,
            exclude_types,
        )
        result = await self.session.execute(stmt)
        row = result.one()
        return Decimal(str(row.total or 0)), row.count or 0

    async def sum_for_day(self, user_id: int, day: date) -> Decimal:
        """
        Get a user's own earnings for a UTC day.

        Referral network income is excluded so that commissions are
        never paid on commissions.

        Args:
            user_id: User ID
            day: UTC day

        Returns:
            Daily total
        """
        total, _ = await self.summary_for_day(
            user_id, day, exclude_types=NETWORK_EARNING_TYPES
        )
        return total

    async def get_history(
        self, user_id: int, limit: int = 10
    ) -> list[Earning]:
        """Get most recent earnings of a user."""
        return await self.query_earnings(user_id, limit=limit)
