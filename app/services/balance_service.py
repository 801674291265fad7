"""
Balance service.

The only component that mutates monetary fields of users. Every credit
is one atomic UPDATE ... RETURNING plus an Earning ledger row in the
same transaction; debits carry the balance guard in their WHERE clause.

The service flushes but never commits: the calling operation owns the
unit of work.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import MONEY_QUANTUM
from app.models.earning import NETWORK_EARNING_TYPES, Earning, EarningType
from app.repositories.earning_repository import EarningRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService
from app.utils.datetime_utils import Clock, utc_now
from app.utils.exceptions import InsufficientFunds, NotFound


@dataclass
class BalanceChange:
    """Result of a balance mutation."""

    user_id: int
    amount: Decimal
    total_balance: Decimal
    earned_balance: Decimal | None = None
    withdrawn_balance: Decimal | None = None
    earning_id: int | None = None


@dataclass
class Balance:
    """Balance snapshot of a user."""

    total_balance: Decimal
    earned_balance: Decimal
    withdrawn_balance: Decimal
    total_referral_earnings: Decimal


def _to_money(amount: Decimal | float | int | str) -> Decimal:
    return Decimal(str(amount)).quantize(MONEY_QUANTUM)


class BalanceService(BaseService):
    """Atomic credits and debits over the users table."""

    def __init__(
        self, session: AsyncSession, clock: Clock = utc_now
    ) -> None:
        """
        Initialize balance service.

        Args:
            session: Async database session
            clock: Returns the current UTC datetime
        """
        super().__init__(session, clock)
        self.user_repo = UserRepository(session)
        self.earning_repo = EarningRepository(session)

    async def credit(
        self,
        user_id: int,
        amount: Decimal,
        earning_type: EarningType | str,
        description: str | None = None,
        level: int | None = None,
    ) -> BalanceChange:
        """
        Credit a user and append the ledger row.

        Args:
            user_id: Credited user
            amount: Positive amount
            earning_type: Earning type of the ledger row
            description: Human-readable reason
            level: Referral level for network earnings

        Returns:
            BalanceChange with the post-update balances

        Raises:
            ValueError: If amount is not positive
            NotFound: If the user does not exist
        """
        amount = _to_money(amount)
        if amount <= 0:
            raise ValueError(f"Credit amount must be positive, got {amount}")

        earning_type = EarningType(earning_type)
        balances = await self.user_repo.increment_balances(
            user_id,
            amount,
            referral_income=earning_type in NETWORK_EARNING_TYPES,
        )
        if balances is None:
            raise NotFound("User", user_id)

        earning: Earning = await self.earning_repo.create(
            user_id=user_id,
            type=earning_type.value,
            amount=amount,
            level=level,
            description=description,
            created_at=self.clock(),
        )

        total_balance, earned_balance = balances
        self.logger.debug(
            "Balance credited",
            extra={
                "user_id": user_id,
                "amount": str(amount),
                "type": earning_type.value,
                "earning_id": earning.id,
            },
        )

        return BalanceChange(
            user_id=user_id,
            amount=amount,
            total_balance=Decimal(str(total_balance)),
            earned_balance=Decimal(str(earned_balance)),
            earning_id=earning.id,
        )

    async def debit(self, user_id: int, amount: Decimal) -> BalanceChange:
        """
        Debit a user's withdrawable balance.

        Args:
            user_id: Debited user
            amount: Positive amount

        Returns:
            BalanceChange with the post-update balances

        Raises:
            ValueError: If amount is not positive
            NotFound: If the user does not exist
            InsufficientFunds: If total_balance is lower than amount
        """
        amount = _to_money(amount)
        if amount <= 0:
            raise ValueError(f"Debit amount must be positive, got {amount}")

        balances = await self.user_repo.decrement_total_balance(user_id, amount)
        if balances is None:
            user = await self.user_repo.get_fresh(user_id)
            if user is None:
                raise NotFound("User", user_id)
            self.logger.warning(
                "Debit rejected: insufficient funds",
                extra={
                    "user_id": user_id,
                    "available": str(user.total_balance),
                    "requested": str(amount),
                },
            )
            raise InsufficientFunds(
                user_id, Decimal(str(user.total_balance)), amount
            )

        total_balance, withdrawn_balance = balances
        self.logger.info(
            "Balance debited",
            extra={"user_id": user_id, "amount": str(amount)},
        )

        return BalanceChange(
            user_id=user_id,
            amount=amount,
            total_balance=Decimal(str(total_balance)),
            withdrawn_balance=Decimal(str(withdrawn_balance)),
        )

    async def get_balance(self, user_id: int) -> Balance:
        """
        Get current balances of a user.

        Raises:
            NotFound: If the user does not exist
        """
        user = await self.user_repo.get_fresh(user_id)
        if user is None:
            raise NotFound("User", user_id)

        return Balance(
            total_balance=user.total_balance,
            earned_balance=user.earned_balance,
            withdrawn_balance=user.withdrawn_balance,
            total_referral_earnings=user.total_referral_earnings,
        )

    async def get_earnings_history(
        self, user_id: int, limit: int = 10
    ) -> list[Earning]:
        """Get the most recent ledger rows of a user."""
        return await self.earning_repo.get_history(user_id, limit=limit)
