"""
Commission repository.

Data access layer for CommissionRecord model.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.referral_commission import CommissionRecord
from app.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[CommissionRecord]):
    """Commission record repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(CommissionRecord, session)

    async def exists_key(self, idempotency_key: str) -> bool:
        """Check if a payout with this idempotency key was already recorded."""
        stmt = select(CommissionRecord.id).where(
            CommissionRecord.idempotency_key == idempotency_key
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def query_records(
        self,
        inviter_id: int,
        day: date | None = None,
        limit: int | None = None,
    ) -> list[CommissionRecord]:
        """
        Get commissions received by an inviter, newest first.

        Args:
            inviter_id: Inviter user ID
            day: Optional UTC day filter
            limit: Max number of records

        Returns:
            List of commission records
        """
        stmt = select(CommissionRecord).where(
            CommissionRecord.inviter_id == inviter_id
        )
        if day is not None:
            stmt = stmt.where(CommissionRecord.commission_date == day)
        stmt = stmt.order_by(
            CommissionRecord.created_at.desc(), CommissionRecord.id.desc()
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.unique().scalars().all())

    async def sum_for_day(self, inviter_id: int, day: date) -> Decimal:
        """
        Get total commissions received by an inviter on a day.

        Args:
            inviter_id: Inviter user ID
            day: UTC day

        Returns:
            Sum of commission amounts
        """
        stmt = select(
            func.coalesce(
                func.sum(CommissionRecord.commission_amount), Decimal("0")
            )
        ).where(
            CommissionRecord.inviter_id == inviter_id,
            CommissionRecord.commission_date == day,
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def get_history(
        self, inviter_id: int, limit: int = 20
    ) -> list[CommissionRecord]:
        """Get most recent commissions received by an inviter."""
        return await self.query_records(inviter_id, limit=limit)
