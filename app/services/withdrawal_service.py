"""
Withdrawal service.

Creates withdrawal requests. The gross amount is debited from the
withdrawable balance; the fee is kept and the net amount paid out.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import MONEY_QUANTUM
from app.config.operational_constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.config.settings import settings
from app.models.withdrawal import Withdrawal, WithdrawalStatus
from app.repositories.withdrawal_repository import WithdrawalRepository
from app.services.balance_service import BalanceService
from app.services.base_service import BaseService, log_operation, transaction
from app.utils.datetime_utils import Clock, utc_now


def calculate_fee(amount: Decimal) -> tuple[Decimal, Decimal]:
    """
    Split a requested amount into fee and net amount.

    Args:
        amount: Requested (gross) amount

    Returns:
        Tuple of (fee, net_amount)
    """
    rate = Decimal(str(settings.withdrawal_fee_rate))
    fee = (amount * rate).quantize(MONEY_QUANTUM)
    return fee, amount - fee


class WithdrawalService(BaseService):
    """Withdrawal requests and history."""

    def __init__(
        self, session: AsyncSession, clock: Clock = utc_now
    ) -> None:
        """Initialize withdrawal service."""
        super().__init__(session, clock)
        self.withdrawal_repo = WithdrawalRepository(session)
        self.balance_service = BalanceService(session, clock)

    @log_operation
    @transaction
    async def request_withdrawal(
        self,
        user_id: int,
        method: str,
        account: str,
        amount: Decimal,
    ) -> Withdrawal:
        """
        Request a withdrawal.

        Args:
            user_id: User ID
            method: Payout method (upi, paytm, ...)
            account: Payout account
            amount: Gross amount

        Returns:
            Pending withdrawal

        Raises:
            ValueError: If withdrawals are stopped, the amount is below
                the minimum or the destination is missing
            InsufficientFunds: If the balance does not cover the amount
            NotFound: If the user does not exist
        """
        if settings.emergency_stop_withdrawals:
            raise ValueError("Withdrawals are temporarily suspended")

        amount = Decimal(str(amount)).quantize(MONEY_QUANTUM)
        minimum = Decimal(str(settings.withdrawal_min_amount))
        if amount < minimum:
            raise ValueError(f"Minimum withdrawal amount is {minimum}")
        if not method or not account:
            raise ValueError("Withdrawal method and account are required")

        fee, net_amount = calculate_fee(amount)

        await self.balance_service.debit(user_id, amount)
        withdrawal = await self.withdrawal_repo.create(
            user_id=user_id,
            method=method,
            account=account,
            amount_requested=amount,
            fee=fee,
            net_amount=net_amount,
            status=WithdrawalStatus.PENDING.value,
            created_at=self.clock(),
        )

        self.logger.info(
            "Withdrawal requested",
            extra={
                "user_id": user_id,
                "withdrawal_id": withdrawal.id,
                "amount": str(amount),
                "fee": str(fee),
            },
        )

        return withdrawal

    async def get_withdrawal_history(
        self, user_id: int, limit: int = DEFAULT_PAGE_SIZE
    ) -> list[Withdrawal]:
        """Get most recent withdrawals of a user."""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        return await self.withdrawal_repo.get_by_user(user_id, limit=limit)
