"""
Integration tests for balances and withdrawals.

Tests cover:
- Atomic credit and debit
- Insufficient funds
- Withdrawal requests, fees and validation
"""

from decimal import Decimal

import pytest

from app.config.settings import settings
from app.services.balance_service import BalanceService
from app.services.withdrawal_service import WithdrawalService
from app.utils.exceptions import InsufficientFunds, NotFound


class TestBalanceService:
    """Test credits and debits."""

    async def test_credit_updates_balances_and_ledger(self, session, clock, make_user):
        """Credit raises total and earned balance and writes one earning."""
        user = await make_user()
        service = BalanceService(session, clock)

        change = await service.credit(user.id, Decimal("1.25"), "scratch", description="Scratch")
        await session.commit()

        assert change.total_balance == Decimal("1.25")
        assert change.earned_balance == Decimal("1.25")
        history = await service.get_earnings_history(user.id)
        assert [e.id for e in history] == [change.earning_id]

    async def test_credit_rejects_non_positive(self, session, make_user):
        """Zero credits are refused."""
        user = await make_user()

        with pytest.raises(ValueError):
            await BalanceService(session).credit(user.id, Decimal("0"), "watch")

    async def test_credit_unknown_user(self, session):
        """Missing user is reported."""
        with pytest.raises(NotFound):
            await BalanceService(session).credit(404, Decimal("1"), "watch")

    async def test_debit_keeps_earned_balance(self, session, make_user):
        """Debit lowers the withdrawable balance only."""
        user = await make_user(balance="10")
        service = BalanceService(session)

        change = await service.debit(user.id, Decimal("4"))
        await session.commit()

        assert change.total_balance == Decimal("6")
        assert change.withdrawn_balance == Decimal("4")
        balance = await service.get_balance(user.id)
        assert balance.earned_balance == Decimal("10")

    async def test_debit_never_negative(self, session, make_user):
        """Overdraw raises and leaves the balance as it was."""
        user_id = (await make_user(balance="3")).id
        service = BalanceService(session)

        with pytest.raises(InsufficientFunds) as exc_info:
            await service.debit(user_id, Decimal("3.01"))

        assert exc_info.value.available == Decimal("3")
        assert exc_info.value.requested == Decimal("3.01")
        balance = await service.get_balance(user_id)
        assert balance.total_balance == Decimal("3")

    async def test_debit_whole_balance(self, session, make_user):
        """Balance can reach exactly zero."""
        user = await make_user(balance="3")

        change = await BalanceService(session).debit(user.id, Decimal("3"))

        assert change.total_balance == Decimal("0")


class TestWithdrawalService:
    """Test withdrawal requests."""

    async def test_request_withdrawal(self, session, clock, make_user):
        """Gross amount is debited; fee and net are recorded."""
        user = await make_user(balance="150")
        service = WithdrawalService(session, clock)

        withdrawal = await service.request_withdrawal(user.id, "upi", "user@upi", Decimal("100"))

        assert withdrawal.status == "pending"
        assert withdrawal.fee == Decimal("5")
        assert withdrawal.net_amount == Decimal("95")
        balance = await BalanceService(session).get_balance(user.id)
        assert balance.total_balance == Decimal("50")
        assert balance.withdrawn_balance == Decimal("100")

        history = await service.get_withdrawal_history(user.id)
        assert [w.id for w in history] == [withdrawal.id]

    async def test_insufficient_funds(self, session, make_user):
        """Nothing is recorded when the balance is too low."""
        user_id = (await make_user(balance="50")).id
        service = WithdrawalService(session)

        with pytest.raises(InsufficientFunds):
            await service.request_withdrawal(user_id, "upi", "user@upi", Decimal("60"))

        assert await service.get_withdrawal_history(user_id) == []
        balance = await BalanceService(session).get_balance(user_id)
        assert balance.total_balance == Decimal("50")

    async def test_below_minimum(self, session, make_user):
        """Amounts under the minimum are refused."""
        user = await make_user(balance="50")

        with pytest.raises(ValueError):
            await WithdrawalService(session).request_withdrawal(
                user.id, "upi", "user@upi", Decimal("9.99")
            )

    async def test_missing_destination(self, session, make_user):
        """Method and account are required."""
        user = await make_user(balance="50")

        with pytest.raises(ValueError):
            await WithdrawalService(session).request_withdrawal(user.id, "upi", "", Decimal("20"))

    async def test_emergency_stop(self, session, make_user, monkeypatch):
        """Stopped withdrawals are refused before any debit."""
        monkeypatch.setattr(settings, "emergency_stop_withdrawals", True)
        user = await make_user(balance="50")

        with pytest.raises(ValueError):
            await WithdrawalService(session).request_withdrawal(
                user.id, "upi", "user@upi", Decimal("20")
            )

        balance = await BalanceService(session).get_balance(user.id)
        assert balance.total_balance == Decimal("50")
