"""
Commission engine.

Walks an invitee's upline and pays each level according to the
configured commission policy. Each level is paid inside its own
SAVEPOINT: a failure at one level is logged and the walk continues,
while a transient store failure aborts the caller's unit of work.
"""

from dataclasses import dataclass, field
from datetime import UTC, date
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.earning import NETWORK_EARNING_TYPES, Earning, EarningType
from app.models.referral_commission import CommissionPolicyName
from app.repositories.activity_day_repository import ActivityDayRepository
from app.repositories.commission_repository import CommissionRepository
from app.services.balance_service import BalanceService
from app.services.referral.chain_manager import ReferralChainManager
from app.services.referral.commission_policies import (
    CommissionPolicy,
    get_policy,
)
from app.utils.datetime_utils import Clock, utc_now
from app.utils.exceptions import (
    RewardsError,
    StoreUnavailable,
    is_transient,
)
from app.utils.formatters import format_rate


@dataclass
class CommissionPayout:
    """One paid level."""

    level: int
    inviter_id: int
    rate: Decimal
    amount: Decimal
    record_id: int


@dataclass
class CommissionResult:
    """Result of one distribution."""

    total_paid: Decimal = Decimal("0")
    payouts: list[CommissionPayout] = field(default_factory=list)
    skipped_levels: list[int] = field(default_factory=list)
    failed_levels: list[int] = field(default_factory=list)

    @property
    def commission_count(self) -> int:
        """Number of paid levels."""
        return len(self.payouts)


class CommissionEngine:
    """Distributes commissions over the referral network."""

    def __init__(
        self,
        session: AsyncSession,
        policy: CommissionPolicy | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """
        Initialize commission engine.

        Args:
            session: Async database session
            policy: Commission policy (configured policy by default)
            clock: Returns the current UTC datetime
        """
        self.session = session
        self.policy = policy or get_policy()
        self.graph = ReferralChainManager(session)
        self.activity_repo = ActivityDayRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.balance_service = BalanceService(session, clock)
        self.logger = logger.bind(service=self.__class__.__name__)

    def _require_policy(self, name: str) -> None:
        if self.policy.name != name:
            raise ValueError(
                f"Commission engine is configured for {self.policy.name}, "
                f"not {name}"
            )

    async def distribute_daily(
        self, user_id: int, daily_total: Decimal, day: date
    ) -> CommissionResult:
        """
        Pay the upline of a user for their daily total.

        Args:
            user_id: Invitee whose day is being settled
            daily_total: Invitee's own earnings for the day
            day: Settled UTC day

        Returns:
            CommissionResult
        """
        self._require_policy(CommissionPolicyName.DAILY_AGGREGATE)
        return await self._distribute(user_id, Decimal(str(daily_total)), day)

    async def distribute_for_earning(self, earning: Earning) -> CommissionResult:
        """
        Pay the upline of a user for one earning (legacy bonus).

        Referral network earnings never produce commissions.

        Args:
            earning: Triggering earning

        Returns:
            CommissionResult
        """
        if EarningType(earning.type) in NETWORK_EARNING_TYPES:
            self.logger.debug(
                "Network earning does not trigger commissions",
                extra={"earning_id": earning.id, "type": earning.type},
            )
            return CommissionResult()

        self._require_policy(CommissionPolicyName.PER_TRANSACTION)

        created_at = earning.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        day = created_at.astimezone(UTC).date()

        return await self._distribute(
            earning.user_id,
            Decimal(str(earning.amount)),
            day,
            source_earning_id=earning.id,
        )

    async def _distribute(
        self,
        invitee_id: int,
        base_amount: Decimal,
        day: date,
        source_earning_id: int | None = None,
    ) -> CommissionResult:
        result = CommissionResult()

        if settings.emergency_stop_commissions:
            self.logger.warning(
                "Commissions are stopped, distribution skipped",
                extra={"invitee_id": invitee_id},
            )
            return result

        if base_amount <= 0:
            return result

        async for level, inviter_id, edge_id in self.policy.iter_upline(
            self.graph, invitee_id
        ):
            try:
                payout = await self._pay_level(
                    invitee_id=invitee_id,
                    inviter_id=inviter_id,
                    level=level,
                    base_amount=base_amount,
                    day=day,
                    edge_id=edge_id,
                    source_earning_id=source_earning_id,
                )
            except StoreUnavailable:
                raise
            except (SQLAlchemyError, RewardsError, ValueError) as e:
                if is_transient(e):
                    raise StoreUnavailable(str(e)) from e
                self.logger.error(
                    "Commission level failed",
                    extra={
                        "invitee_id": invitee_id,
                        "inviter_id": inviter_id,
                        "level": level,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                result.failed_levels.append(level)
                continue

            if payout is None:
                result.skipped_levels.append(level)
                continue

            result.payouts.append(payout)
            result.total_paid += payout.amount

        self.logger.info(
            "Commissions distributed",
            extra={
                "invitee_id": invitee_id,
                "policy": self.policy.name,
                "date": day.isoformat(),
                "base_amount": str(base_amount),
                "total_paid": str(result.total_paid),
                "paid_levels": [p.level for p in result.payouts],
                "skipped_levels": result.skipped_levels,
                "failed_levels": result.failed_levels,
            },
        )

        return result

    async def _pay_level(
        self,
        invitee_id: int,
        inviter_id: int,
        level: int,
        base_amount: Decimal,
        day: date,
        edge_id: int | None,
        source_earning_id: int | None,
    ) -> CommissionPayout | None:
        """
        Pay one level inside a SAVEPOINT.

        Returns:
            Payout, or None if the level is skipped
        """
        if not await self.activity_repo.is_active_on(inviter_id, day):
            self.logger.debug(
                "Inactive upline member skipped",
                extra={"inviter_id": inviter_id, "level": level},
            )
            return None

        rate = self.policy.rate_for(level)
        amount = self.policy.calculate(base_amount, level)
        if amount <= 0:
            return None

        key = self.policy.idempotency_key(
            day, inviter_id, invitee_id, level, source_earning_id
        )

        async with self.session.begin_nested():
            if await self.commission_repo.exists_key(key):
                self.logger.debug(
                    "Commission already paid",
                    extra={"idempotency_key": key},
                )
                return None

            # Record first: a concurrent duplicate fails here, before any credit
            record = await self.commission_repo.create(
                inviter_id=inviter_id,
                invitee_id=invitee_id,
                level=level,
                commission_rate=rate,
                invitee_daily_earnings=base_amount,
                commission_amount=amount,
                commission_date=day,
                policy=self.policy.name,
                idempotency_key=key,
                source_earning_id=source_earning_id,
            )
            await self.balance_service.credit(
                inviter_id,
                amount,
                EarningType.REFERRAL,
                description=f"Level {level} referral commission ({format_rate(rate)})",
                level=level,
            )
            if self.policy.marks_bonus and edge_id is not None:
                await self.graph.referral_repo.mark_bonus_given(edge_id)

        return CommissionPayout(
            level=level,
            inviter_id=inviter_id,
            rate=rate,
            amount=amount,
            record_id=record.id,
        )
