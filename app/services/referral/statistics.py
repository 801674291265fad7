"""
Referral statistics module.

Aggregates network size, activity and commission income for a user.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.commission_repository import CommissionRepository
from app.repositories.referral_repository import ReferralRepository
from app.repositories.user_repository import UserRepository
from app.utils.exceptions import NotFound


@dataclass
class ReferralStats:
    """Referral statistics of a user."""

    total_referrals: int = 0
    level_counts: dict[int, int] = field(default_factory=dict)
    active_counts: dict[int, int] = field(default_factory=dict)
    total_earnings: Decimal = Decimal("0")
    todays_earnings: Decimal = Decimal("0")


class ReferralStatisticsManager:
    """Manages referral statistics."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize statistics manager."""
        self.session = session
        self.referral_repo = ReferralRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.user_repo = UserRepository(session)

    async def get_referral_stats(self, user_id: int, day: date) -> ReferralStats:
        """
        Get referral statistics for user.

        Args:
            user_id: User ID
            day: UTC day used for activity and today's income

        Returns:
            ReferralStats

        Raises:
            NotFound: If the user does not exist
        """
        user = await self.user_repo.get_fresh(user_id)
        if user is None:
            raise NotFound("User", user_id)

        level_counts = await self.referral_repo.get_level_counts(user_id)
        active_counts = await self.referral_repo.get_active_counts(user_id, day)
        todays_earnings = await self.commission_repo.sum_for_day(user_id, day)

        return ReferralStats(
            total_referrals=sum(level_counts.values()),
            level_counts=level_counts,
            active_counts=active_counts,
            total_earnings=user.total_referral_earnings,
            todays_earnings=todays_earnings,
        )
