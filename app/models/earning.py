"""
Earning model.

Append-only ledger of every credited amount. The sole audit trail
for balance changes: rows are never updated or deleted.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType

if TYPE_CHECKING:
    from app.models.user import User


class EarningType(StrEnum):
    """Earning type."""

    WATCH = "watch"
    SCRATCH = "scratch"
    CHECKIN = "checkin"
    TREASURE = "treasure"
    TASK = "task"
    REFERRAL = "referral"
    COMMISSION = "commission"


# Earnings produced by the referral network itself. They never count
# towards daily totals and never trigger further distribution.
NETWORK_EARNING_TYPES = frozenset({EarningType.REFERRAL, EarningType.COMMISSION})

# Earnings produced by a user's own activities
ACTIVITY_EARNING_TYPES = frozenset(
    {
        EarningType.WATCH,
        EarningType.SCRATCH,
        EarningType.CHECKIN,
        EarningType.TREASURE,
        EarningType.TASK,
    }
)


class Earning(Base):
    """
    Earning entity.

    Attributes:
        id: Primary key
        user_id: Credited user
        type: EarningType value
        amount: Credited amount (positive)
        level: Referral level for network earnings
        description: Human-readable reason
        created_at: Credit timestamp (UTC)
    """

    __tablename__ = "earnings"
    __table_args__ = (
        CheckConstraint("amount > 0", name="check_earning_amount_positive"),
        Index("ix_earnings_user_type_created", "user_id", "type", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(
        String(20), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )
    level: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    description: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="earnings"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"Earning(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, amount={self.amount})"
        )
