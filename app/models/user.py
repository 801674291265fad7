"""
User model.

Represents a registered user of the rewards application.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType

if TYPE_CHECKING:
    from app.models.earning import Earning
    from app.models.withdrawal import Withdrawal


class User(Base):
    """User model - balances, check-in streak and daily activity flag."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "total_balance >= 0", name="check_user_total_balance_non_negative"
        ),
        CheckConstraint(
            "earned_balance >= 0",
            name="check_user_earned_balance_non_negative"
        ),
        CheckConstraint(
            "withdrawn_balance >= 0",
            name="check_user_withdrawn_balance_non_negative"
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Identity
    email: Mapped[str | None] = mapped_column(
        String(255), nullable=True, unique=True, index=True
    )
    referral_code: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, index=True
    )

    # Balances
    total_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False,
        comment="Withdrawable balance",
    )
    earned_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False,
        comment="Lifetime earned, never decreases",
    )
    withdrawn_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_referral_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False,
        comment="Denormalized running total of commissions received",
    )

    # Daily check-in
    daily_streak: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    last_checkin_date: Mapped[date | None] = mapped_column(
        Date, nullable=True
    )

    # Commission eligibility for the current day
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    last_activity_date: Mapped[date | None] = mapped_column(
        Date, nullable=True, index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    earnings: Mapped[list["Earning"]] = relationship(
        "Earning",
        back_populates="user",
        lazy="noload",
    )
    withdrawals: Mapped[list["Withdrawal"]] = relationship(
        "Withdrawal",
        back_populates="user",
        lazy="noload",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, referral_code={self.referral_code}, "
            f"total_balance={self.total_balance})>"
        )
