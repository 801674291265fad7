"""
User repository.

Data access layer for User model. Balance mutations are expressed as
single atomic UPDATE statements so that concurrent credits never lose
updates.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_referral_code(
        self, referral_code: str
    ) -> User | None:
        """
        Get user by referral code (case-insensitive).

        Args:
            referral_code: Referral code as typed by the invitee

        Returns:
            User or None
        """
        normalized = referral_code.strip().upper()
        if not normalized:
            return None
        return await self.get_by(referral_code=normalized)

    async def get_by_email(self, email: str) -> User | None:
        """
        Get user by email.

        Args:
            email: Email address

        Returns:
            User or None
        """
        return await self.get_by(email=email.strip().lower())

    async def referral_code_exists(self, referral_code: str) -> bool:
        """Check if a referral code is already taken."""
        return await self.exists(referral_code=referral_code)

    async def get_for_update(self, user_id: int) -> User | None:
        """
        Get user by ID and lock the row until the transaction ends.

        Serializes concurrent operations that read, then write, per-user
        state (daily limit counts).

        Args:
            user_id: User ID

        Returns:
            User or None
        """
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def increment_balances(
        self,
        user_id: int,
        amount: Decimal,
        referral_income: bool = False,
    ) -> tuple[Decimal, Decimal] | None:
        """
        Atomically add amount to total and earned balances.

        Args:
            user_id: User ID
            amount: Positive amount
            referral_income: Also add to total_referral_earnings

        Returns:
            Tuple of (new_total_balance, new_earned_balance),
            or None if the user does not exist
        """
        values = {
            "total_balance": User.total_balance + amount,
            "earned_balance": User.earned_balance + amount,
        }
        if referral_income:
            values["total_referral_earnings"] = (
                User.total_referral_earnings + amount
            )

        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(**values)
            .returning(User.total_balance, User.earned_balance)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return row.total_balance, row.earned_balance

    async def decrement_total_balance(
        self, user_id: int, amount: Decimal
    ) -> tuple[Decimal, Decimal] | None:
        """
        Atomically subtract amount from total balance if funds suffice.

        The balance guard lives in the WHERE clause, so two concurrent
        debits can never both pass it.

        Args:
            user_id: User ID
            amount: Positive amount

        Returns:
            Tuple of (new_total_balance, new_withdrawn_balance),
            or None if the user does not exist or funds are insufficient
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.total_balance >= amount)
            .values(
                total_balance=User.total_balance - amount,
                withdrawn_balance=User.withdrawn_balance + amount,
            )
            .returning(User.total_balance, User.withdrawn_balance)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return row.total_balance, row.withdrawn_balance

    async def record_checkin(
        self, user_id: int, day: date, streak: int
    ) -> bool:
        """
        Compare-and-set check-in for a day.

        Updates the streak and marks the user active only if they have
        not checked in on that day yet.

        Args:
            user_id: User ID
            day: UTC day of the check-in
            streak: New streak value

        Returns:
            True if the check-in was recorded, False if already checked in
        """
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                or_(
                    User.last_checkin_date.is_(None),
                    User.last_checkin_date != day,
                ),
            )
            .values(
                daily_streak=streak,
                last_checkin_date=day,
                is_active=True,
                last_activity_date=day,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def mark_active(self, user_id: int, day: date) -> bool:
        """
        Mark user active (commission eligible) for a day.

        Args:
            user_id: User ID
            day: UTC day

        Returns:
            True if the user exists
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(is_active=True, last_activity_date=day)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def reset_activity(
        self, up_to_day: date, exclude_ids: list[int] | None = None
    ) -> int:
        """
        Clear the active flag of users whose activity is not newer than a day.

        Args:
            up_to_day: Last settled UTC day
            exclude_ids: Users that keep their flag (unsettled users)

        Returns:
            Number of users reset
        """
        stmt = (
            update(User)
            .where(
                User.is_active.is_(True),
                or_(
                    User.last_activity_date.is_(None),
                    User.last_activity_date <= up_to_day,
                ),
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        if exclude_ids:
            stmt = stmt.where(User.id.not_in(exclude_ids))
        result = await self.session.execute(stmt)
        return result.rowcount or 0
