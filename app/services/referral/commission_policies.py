"""
Commission policies.

Strategies for turning an invitee's earnings into upline commissions.
The daily aggregate policy is the system of record; the
per-transaction policy is the legacy bonus kept for opt-in use.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from datetime import date
from decimal import ROUND_DOWN, Decimal

from app.config.business_constants import CENT, MONEY_QUANTUM
from app.config.settings import settings
from app.models.referral_commission import (
    CommissionPolicyName,
    daily_commission_key,
    transaction_commission_key,
)
from app.services.referral.chain_manager import ReferralChainManager
from app.services.referral.config import (
    LEGACY_REFERRAL_RATES,
    REFERRAL_DEPTH,
    REFERRAL_RATES,
)


class CommissionPolicy(ABC):
    """Base commission policy."""

    name: str
    rates: dict[int, Decimal]
    # Set bonus_given on the edge after the first payout
    marks_bonus: bool = False

    def rate_for(self, level: int) -> Decimal:
        """Get commission rate for a level (0 outside the table)."""
        return self.rates.get(level, Decimal("0"))

    @abstractmethod
    def calculate(self, base_amount: Decimal, level: int) -> Decimal:
        """Calculate payout for a level."""

    @abstractmethod
    def idempotency_key(
        self,
        day: date,
        inviter_id: int,
        invitee_id: int,
        level: int,
        source_earning_id: int | None = None,
    ) -> str:
        """Build the unique key of one payout."""

    @abstractmethod
    def iter_upline(
        self, graph: ReferralChainManager, user_id: int
    ) -> AsyncIterator[tuple[int, int, int | None]]:
        """
        Yield (level, inviter_id, edge_id) from level 1 upwards.

        Stops at REFERRAL_DEPTH or when no further ancestor exists.
        """


class DailyAggregatePolicy(CommissionPolicy):
    """Percent of the invitee's daily total, paid by the settlement job."""

    name = CommissionPolicyName.DAILY_AGGREGATE
    rates = REFERRAL_RATES

    def calculate(self, base_amount: Decimal, level: int) -> Decimal:
        return (base_amount * self.rate_for(level)).quantize(
            MONEY_QUANTUM, rounding=ROUND_DOWN
        )

    def idempotency_key(
        self,
        day: date,
        inviter_id: int,
        invitee_id: int,
        level: int,
        source_earning_id: int | None = None,
    ) -> str:
        return daily_commission_key(day, inviter_id, invitee_id, level)

    async def iter_upline(
        self, graph: ReferralChainManager, user_id: int
    ) -> AsyncIterator[tuple[int, int, int | None]]:
        # Hop by hop over level-1 edges; inactive members are still hops
        seen = {user_id}
        current = user_id
        for level in range(1, REFERRAL_DEPTH + 1):
            inviter_id = await graph.referral_repo.get_inviter_id(current)
            if inviter_id is None or inviter_id in seen:
                return
            seen.add(inviter_id)
            yield level, inviter_id, None
            current = inviter_id


class PerTransactionPolicy(CommissionPolicy):
    """Legacy bonus: percent of each earning, floored to cents."""

    name = CommissionPolicyName.PER_TRANSACTION
    rates = LEGACY_REFERRAL_RATES
    marks_bonus = True

    def calculate(self, base_amount: Decimal, level: int) -> Decimal:
        return (base_amount * self.rate_for(level)).quantize(
            CENT, rounding=ROUND_DOWN
        )

    def idempotency_key(
        self,
        day: date,
        inviter_id: int,
        invitee_id: int,
        level: int,
        source_earning_id: int | None = None,
    ) -> str:
        if source_earning_id is None:
            raise ValueError("Per-transaction payouts need a source earning")
        return transaction_commission_key(source_earning_id, level)

    async def iter_upline(
        self, graph: ReferralChainManager, user_id: int
    ) -> AsyncIterator[tuple[int, int, int | None]]:
        # Materialized edges written at signup
        edges = {
            edge.level: edge
            for edge in await graph.referral_repo.get_upline_edges(user_id)
        }
        for level in range(1, REFERRAL_DEPTH + 1):
            edge = edges.get(level)
            if edge is None:
                return
            yield level, edge.inviter_id, edge.id


def get_policy(name: str | None = None) -> CommissionPolicy:
    """
    Get policy by name (configured policy by default).

    Raises:
        ValueError: If the name is unknown
    """
    name = name or settings.commission_policy
    if name == CommissionPolicyName.DAILY_AGGREGATE:
        return DailyAggregatePolicy()
    if name == CommissionPolicyName.PER_TRANSACTION:
        return PerTransactionPolicy()
    raise ValueError(f"Unknown commission policy: {name}")
