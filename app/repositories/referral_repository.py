"""
Referral repository.

Data access layer for ReferralEdge model.
"""

from datetime import date

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import REFERRAL_DEPTH
from app.models.activity_day import ActivityDay
from app.models.referral import ReferralEdge
from app.models.user import User
from app.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[ReferralEdge]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(ReferralEdge, session)

    async def get_edge(
        self, invitee_id: int, level: int = 1
    ) -> ReferralEdge | None:
        """
        Get the edge pointing at an invitee's ancestor at a level.

        Args:
            invitee_id: Invitee user ID
            level: Referral level (1-7)

        Returns:
            Edge or None
        """
        return await self.get_by(invitee_id=invitee_id, level=level)

    async def get_inviter_id(self, invitee_id: int) -> int | None:
        """
        Get direct inviter ID of a user.

        Args:
            invitee_id: Invitee user ID

        Returns:
            Inviter ID or None if the user signed up without a code
        """
        stmt = select(ReferralEdge.inviter_id).where(
            ReferralEdge.invitee_id == invitee_id,
            ReferralEdge.level == 1,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_upline_edges(self, invitee_id: int) -> list[ReferralEdge]:
        """
        Get all stored upline edges of a user ordered by level.

        Args:
            invitee_id: Invitee user ID

        Returns:
            Edges for levels 1..7 that exist
        """
        stmt = (
            select(ReferralEdge)
            .where(
                ReferralEdge.invitee_id == invitee_id,
                ReferralEdge.level <= REFERRAL_DEPTH,
            )
            .order_by(ReferralEdge.level)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_inviter(
        self, inviter_id: int, level: int | None = None
    ) -> list[ReferralEdge]:
        """
        Get edges where user is the inviter.

        Args:
            inviter_id: Inviter user ID
            level: Optional level filter (1-7)

        Returns:
            List of edges
        """
        filters = {"inviter_id": inviter_id}
        if level:
            filters["level"] = level

        return await self.find_by(**filters)

    async def get_direct_invitees(
        self, inviter_id: int, limit: int | None = None
    ) -> list[User]:
        """
        Get users directly invited by a user, oldest edge first.

        Args:
            inviter_id: Inviter user ID
            limit: Max number of invitees

        Returns:
            List of invitee users
        """
        stmt = (
            select(User)
            .join(ReferralEdge, ReferralEdge.invitee_id == User.id)
            .where(
                ReferralEdge.inviter_id == inviter_id,
                ReferralEdge.level == 1,
            )
            .order_by(ReferralEdge.created_at, ReferralEdge.id)
            .execution_options(populate_existing=True)
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_level_counts(self, inviter_id: int) -> dict[int, int]:
        """
        Get referral counts for all levels in a single query.

        Uses SQL GROUP BY instead of one COUNT per level.

        Args:
            inviter_id: Inviter user ID

        Returns:
            Dict mapping level to count {1: count1, ..., 7: count7}
        """
        stmt = (
            select(
                ReferralEdge.level,
                func.count(ReferralEdge.id).label("count")
            )
            .where(ReferralEdge.inviter_id == inviter_id)
            .group_by(ReferralEdge.level)
        )

        result = await self.session.execute(stmt)

        level_counts = {level: 0 for level in range(1, REFERRAL_DEPTH + 1)}
        for row in result.all():
            level_counts[row.level] = row.count

        return level_counts

    async def get_active_counts(
        self, inviter_id: int, day: date
    ) -> dict[int, int]:
        """
        Get counts of referrals active on a day, per level.

        Args:
            inviter_id: Inviter user ID
            day: UTC day

        Returns:
            Dict mapping level to active count
        """
        stmt = (
            select(
                ReferralEdge.level,
                func.count(ReferralEdge.id).label("count")
            )
            .join(
                ActivityDay,
                (ActivityDay.user_id == ReferralEdge.invitee_id)
                & (ActivityDay.activity_date == day),
            )
            .where(ReferralEdge.inviter_id == inviter_id)
            .group_by(ReferralEdge.level)
        )

        result = await self.session.execute(stmt)

        active_counts = {level: 0 for level in range(1, REFERRAL_DEPTH + 1)}
        for row in result.all():
            active_counts[row.level] = row.count

        return active_counts

    async def mark_bonus_given(self, edge_id: int) -> bool:
        """
        Flag an edge as having produced its first per-transaction bonus.

        Args:
            edge_id: Edge ID

        Returns:
            True if the flag changed
        """
        stmt = (
            update(ReferralEdge)
            .where(
                ReferralEdge.id == edge_id,
                ReferralEdge.bonus_given.is_(False),
            )
            .values(bonus_given=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
