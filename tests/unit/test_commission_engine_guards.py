"""
Unit tests for CommissionEngine entry guards.

Tests cover:
- Network earnings never trigger distribution, under either policy
- Entry points refuse a policy they are not configured for
- Emergency stop
"""

from datetime import date
from decimal import Decimal

import pytest

from app.config.settings import settings
from app.services.referral.commission_engine import CommissionEngine


class TestEngineGuards:
    """Test guards evaluated before any store access."""

    @pytest.mark.parametrize("earning_type", ["referral", "commission"])
    async def test_network_earning_pays_nothing(
        self, mock_session, legacy_policy, mock_earning, earning_type
    ):
        """Commission income is never itself commissioned."""
        mock_earning.type = earning_type
        engine = CommissionEngine(mock_session, policy=legacy_policy)

        result = await engine.distribute_for_earning(mock_earning)

        assert result.payouts == []
        assert result.total_paid == Decimal("0")
        mock_session.execute.assert_not_awaited()

    @pytest.mark.parametrize("earning_type", ["referral", "commission"])
    async def test_network_earning_under_daily_policy_pays_nothing(
        self, mock_session, daily_policy, mock_earning, earning_type
    ):
        """The network-type check runs before the policy check."""
        mock_earning.type = earning_type
        engine = CommissionEngine(mock_session, policy=daily_policy)

        result = await engine.distribute_for_earning(mock_earning)

        assert result.commission_count == 0
        mock_session.execute.assert_not_awaited()

    async def test_daily_entry_requires_daily_policy(self, mock_session, legacy_policy):
        """Daily distribution with the legacy policy would double-pay."""
        engine = CommissionEngine(mock_session, policy=legacy_policy)

        with pytest.raises(ValueError):
            await engine.distribute_daily(1, Decimal("100"), date(2024, 5, 10))

    async def test_earning_entry_requires_legacy_policy(
        self, mock_session, daily_policy, mock_earning
    ):
        """Per-earning distribution with the daily policy is refused."""
        engine = CommissionEngine(mock_session, policy=daily_policy)

        with pytest.raises(ValueError):
            await engine.distribute_for_earning(mock_earning)

    async def test_zero_total_pays_nothing(self, mock_session, daily_policy):
        """Nothing to distribute on a zero day."""
        engine = CommissionEngine(mock_session, policy=daily_policy)

        result = await engine.distribute_daily(1, Decimal("0"), date(2024, 5, 10))

        assert result.commission_count == 0
        mock_session.execute.assert_not_awaited()

    async def test_emergency_stop(self, mock_session, daily_policy, monkeypatch):
        """Stopped commissions skip the walk entirely."""
        monkeypatch.setattr(settings, "emergency_stop_commissions", True)
        engine = CommissionEngine(mock_session, policy=daily_policy)

        result = await engine.distribute_daily(1, Decimal("100"), date(2024, 5, 10))

        assert result.commission_count == 0
        mock_session.execute.assert_not_awaited()
