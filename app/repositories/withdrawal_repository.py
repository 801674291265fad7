"""
Withdrawal repository.

Data access layer for Withdrawal model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.withdrawal import Withdrawal
from app.repositories.base import BaseRepository


class WithdrawalRepository(BaseRepository[Withdrawal]):
    """Withdrawal repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal repository."""
        super().__init__(Withdrawal, session)

    async def get_by_user(
        self, user_id: int, limit: int = 10
    ) -> list[Withdrawal]:
        """
        Get withdrawals of a user, newest first.

        Args:
            user_id: User ID
            limit: Max number of withdrawals

        Returns:
            List of withdrawals
        """
        stmt = (
            select(Withdrawal)
            .where(Withdrawal.user_id == user_id)
            .order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
