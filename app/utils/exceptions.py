"""
Exception handling utilities.

Defines the domain error taxonomy and categorized exception types
for proper error handling.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal

from sqlalchemy.exc import DBAPIError, OperationalError


class RewardsError(Exception):
    """Base class for domain errors."""


class NotFound(RewardsError):
    """Raised when a user or referral edge does not exist."""

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class DailyLimitExceeded(RewardsError):
    """Raised when a daily-limited activity has reached its limit."""

    def __init__(self, activity_type: str, limit: int) -> None:
        self.activity_type = activity_type
        self.limit = limit
        super().__init__(
            f"Daily {activity_type} limit reached ({limit} per day)"
        )


class AlreadyCheckedIn(RewardsError):
    """Raised on a second check-in within the same UTC day."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__("Already checked in today")


class InsufficientFunds(RewardsError):
    """Raised when a debit would drive total_balance negative."""

    def __init__(
        self, user_id: int, available: Decimal, requested: Decimal
    ) -> None:
        self.user_id = user_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient funds: available {available}, requested {requested}"
        )


class DuplicateSignupReferral(RewardsError):
    """Raised when an invitee already has a direct (level 1) inviter."""

    def __init__(self, invitee_id: int) -> None:
        self.invitee_id = invitee_id
        super().__init__(f"User {invitee_id} already has an inviter")


class StoreUnavailable(RewardsError):
    """Raised on a transient backend failure. Safe to retry."""


class SettlementIncomplete(RewardsError):
    """Raised when some users of a settled day could not be settled."""

    def __init__(self, day: object, failed_users: list[int]) -> None:
        self.day = day
        self.failed_users = failed_users
        super().__init__(
            f"Settlement of {day} incomplete: {len(failed_users)} users failed"
        )


# Exception categories based on handling strategy

# Transient - abort the unit of work and retry later
TRANSIENT = (
    OperationalError,      # Connection lost, server shutdown, lock timeout
    asyncio.TimeoutError,  # Request timeout
    ConnectionError,
)


def is_transient(exc: BaseException) -> bool:
    """
    Check if exception is a transient store failure.

    Args:
        exc: Exception to check

    Returns:
        True if the operation can be retried later
    """
    if isinstance(exc, StoreUnavailable):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, TRANSIENT)


@asynccontextmanager
async def store_errors() -> AsyncIterator[None]:
    """
    Translate transient SQLAlchemy/driver errors into StoreUnavailable.

    Usage:
        async with store_errors():
            await session.execute(...)
    """
    try:
        yield
    except StoreUnavailable:
        raise
    except Exception as e:
        if is_transient(e):
            raise StoreUnavailable(str(e)) from e
        raise
