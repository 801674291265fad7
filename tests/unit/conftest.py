"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Commission policy instances
- Mock earning objects
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.services.referral.commission_policies import (
    DailyAggregatePolicy,
    PerTransactionPolicy,
)


@pytest.fixture
def daily_policy():
    """Daily aggregate policy."""
    return DailyAggregatePolicy()


@pytest.fixture
def legacy_policy():
    """Per-transaction policy."""
    return PerTransactionPolicy()


@pytest.fixture
def mock_earning():
    """
    Create mock earning object with default values.

    Default values:
    - id: 1
    - user_id: 100
    - type: watch
    - amount: 10.00
    - created_at: 2024-05-10 08:00 UTC

    Returns:
        MagicMock: Mock earning object
    """
    earning = MagicMock()
    earning.id = 1
    earning.user_id = 100
    earning.type = "watch"
    earning.amount = Decimal("10.00")
    earning.created_at = datetime(2024, 5, 10, 8, 0, tzinfo=UTC)
    return earning
