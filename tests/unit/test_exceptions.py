"""
Unit tests for error categorisation.

Tests cover:
- Transient error detection
- store_errors translation to StoreUnavailable
"""

import asyncio

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from app.utils.exceptions import (
    DailyLimitExceeded,
    InsufficientFunds,
    NotFound,
    SettlementIncomplete,
    StoreUnavailable,
    is_transient,
    store_errors,
)


def _operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("server closed the connection"))


class TestCategorisation:
    """Test exception categories."""

    def test_operational_error_is_transient(self):
        """Lost connections are retried later."""
        assert is_transient(_operational_error()) is True

    def test_timeout_is_transient(self):
        """Timeouts are retried later."""
        assert is_transient(asyncio.TimeoutError()) is True

    def test_invalidated_connection_is_transient(self):
        """DBAPIError with an invalidated connection is transient."""
        error = DBAPIError("SELECT 1", {}, Exception("gone"), connection_invalidated=True)

        assert is_transient(error) is True

    def test_integrity_error_is_not_transient(self):
        """Constraint violations are logged, not retried."""
        error = IntegrityError("INSERT", {}, Exception("duplicate key"))

        assert is_transient(error) is False

    def test_domain_errors(self):
        """Domain errors are never transient."""
        assert is_transient(NotFound("User", 1)) is False
        assert is_transient(DailyLimitExceeded("watch", 20)) is False

    def test_error_payloads(self):
        """Errors carry their context."""
        limit = DailyLimitExceeded("watch", 20)
        funds = InsufficientFunds(1, available=5, requested=10)

        assert (limit.activity_type, limit.limit) == ("watch", 20)
        assert (funds.available, funds.requested) == (5, 10)

    def test_settlement_incomplete_lists_failed_users(self):
        """Incomplete settlement names the day and the failed users."""
        error = SettlementIncomplete("2024-05-10", [2, 5])

        assert error.failed_users == [2, 5]
        assert "2024-05-10" in str(error)
        assert "2 users failed" in str(error)


class TestStoreErrors:
    """Test store_errors context manager."""

    async def test_translates_transient_errors(self):
        """OperationalError becomes StoreUnavailable."""
        with pytest.raises(StoreUnavailable) as exc_info:
            async with store_errors():
                raise _operational_error()

        assert isinstance(exc_info.value.__cause__, OperationalError)

    async def test_passes_other_errors(self):
        """Non-transient errors propagate unchanged."""
        with pytest.raises(NotFound):
            async with store_errors():
                raise NotFound("User", 1)

    async def test_no_error(self):
        """Body result is untouched."""
        async with store_errors():
            value = 1

        assert value == 1
