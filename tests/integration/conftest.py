"""
Shared fixtures for integration tests.

- activate: marks users commission eligible for a day
- earn: credits an activity earning to a user
"""

from datetime import date
from decimal import Decimal

import pytest

from app.models import User
from app.services.activity.gate import ActivityGate
from app.services.balance_service import BalanceChange, BalanceService


@pytest.fixture
def activate(session):
    """Mark users active on a day and commit."""

    async def _activate(users: list[User], day: date) -> None:
        gate = ActivityGate(session)
        for user in users:
            await gate.mark_active(user.id, day)
        await session.commit()

    return _activate


@pytest.fixture
def earn(session, clock):
    """Credit an earning at the current clock time and commit."""

    async def _earn(
        user: User, amount: Decimal | str, earning_type: str = "watch"
    ) -> BalanceChange:
        change = await BalanceService(session, clock).credit(
            user.id, Decimal(str(amount)), earning_type
        )
        await session.commit()
        return change

    return _earn
