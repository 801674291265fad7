"""
Referral service.

Caller-facing referral operations: applying a code at signup, network
statistics, commission history and the downline tree.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import REFERRAL_DEPTH
from app.config.operational_constants import (
    COMMISSION_HISTORY_PAGE_SIZE,
    MAX_PAGE_SIZE,
)
from app.models.referral import ReferralEdge
from app.models.referral_commission import CommissionRecord
from app.repositories.commission_repository import CommissionRepository
from app.services.base_service import BaseService, log_operation, transaction
from app.services.referral.chain_manager import (
    DownlineNode,
    ReferralChainManager,
)
from app.services.referral.statistics import (
    ReferralStatisticsManager,
    ReferralStats,
)
from app.utils.datetime_utils import Clock, utc_now


class ReferralService(BaseService):
    """Referral service for managing referral chains and statistics."""

    def __init__(
        self, session: AsyncSession, clock: Clock = utc_now
    ) -> None:
        """Initialize referral service."""
        super().__init__(session, clock)
        self.chain_manager = ReferralChainManager(session)
        self.statistics = ReferralStatisticsManager(session)
        self.commission_repo = CommissionRepository(session)

    @log_operation
    @transaction
    async def apply_referral(
        self, invitee_id: int, referral_code: str | None
    ) -> list[ReferralEdge]:
        """
        Attach a new user to the inviter owning a referral code.

        Args:
            invitee_id: New user ID
            referral_code: Code presented at signup

        Returns:
            Created edges (empty for a missing or invalid code)

        Raises:
            DuplicateSignupReferral: If the user already has an inviter
        """
        return await self.chain_manager.record_signup(invitee_id, referral_code)

    async def get_referral_stats(self, user_id: int) -> ReferralStats:
        """Get network size, activity and income of a user for today."""
        return await self.statistics.get_referral_stats(user_id, self.today())

    async def get_commission_history(
        self, user_id: int, limit: int = COMMISSION_HISTORY_PAGE_SIZE
    ) -> list[CommissionRecord]:
        """Get most recent commissions received by a user."""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        return await self.commission_repo.get_history(user_id, limit=limit)

    async def get_downline_tree(
        self, user_id: int, max_level: int = REFERRAL_DEPTH
    ) -> list[DownlineNode]:
        """Get the downline tree of a user."""
        return await self.chain_manager.get_downline(user_id, max_level=max_level)
