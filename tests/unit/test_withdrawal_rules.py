"""
Unit tests for withdrawal fee calculation.

Tests cover:
- 5% fee and net amount
- Settings driven fee rate
"""

from decimal import Decimal

from app.config.settings import settings
from app.services.withdrawal_service import calculate_fee


class TestWithdrawalFee:
    """Test fee split."""

    def test_five_percent_fee(self):
        """100 requested: fee 5, net 95."""
        fee, net = calculate_fee(Decimal("100"))

        assert fee == Decimal("5")
        assert net == Decimal("95")

    def test_fee_and_net_add_up(self):
        """Fee + net always equals the requested amount."""
        for amount in (Decimal("10"), Decimal("12.34"), Decimal("999.99")):
            fee, net = calculate_fee(amount)
            assert fee + net == amount

    def test_fee_rate_from_settings(self, monkeypatch):
        """Fee follows the configured rate."""
        monkeypatch.setattr(settings, "withdrawal_fee_rate", 0.1)

        fee, net = calculate_fee(Decimal("50"))

        assert fee == Decimal("5")
        assert net == Decimal("45")
