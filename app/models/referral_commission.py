"""
ReferralCommission model.

Append-only audit of every commission paid to an upline member.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType, RateType

if TYPE_CHECKING:
    from app.models.user import User


class CommissionPolicyName:
    """Commission policy constants."""

    DAILY_AGGREGATE = "daily_aggregate"
    PER_TRANSACTION = "per_transaction"


def daily_commission_key(
    day: date, inviter_id: int, invitee_id: int, level: int
) -> str:
    """Idempotency key of a daily aggregate payout."""
    return f"daily:{day.isoformat()}:{inviter_id}:{invitee_id}:{level}"


def transaction_commission_key(earning_id: int, level: int) -> str:
    """Idempotency key of a per-transaction payout."""
    return f"earning:{earning_id}:{level}"


class CommissionRecord(Base):
    """
    CommissionRecord entity.

    The idempotency key is unique: under the daily aggregate policy it
    encodes (inviter, invitee, level, date), so a settlement re-run
    for the same date can never pay the same level twice.

    Attributes:
        id: Primary key
        inviter_id: Upline member who received the commission
        invitee_id: Downline member whose earnings produced it
        level: Distance between inviter and invitee (1-7)
        commission_rate: Rate applied (fraction)
        invitee_daily_earnings: Base amount the rate was applied to
        commission_amount: Paid amount
        commission_date: UTC day the commission belongs to
        policy: Policy that produced the record
        idempotency_key: Unique payout key
        source_earning_id: Triggering earning (per-transaction policy)
    """

    __tablename__ = "referral_commissions"
    __table_args__ = (
        Index("ix_referral_commissions_inviter_date", "inviter_id", "date"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    inviter_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    invitee_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    level: Mapped[int] = mapped_column(
        Integer, nullable=False
    )

    commission_rate: Mapped[Decimal] = mapped_column(
        RateType, nullable=False
    )
    invitee_daily_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )
    commission_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )
    commission_date: Mapped[date] = mapped_column(
        "date", Date, nullable=False
    )

    policy: Mapped[str] = mapped_column(
        String(32), nullable=False, default=CommissionPolicyName.DAILY_AGGREGATE
    )
    idempotency_key: Mapped[str] = mapped_column(
        String(128), nullable=False, unique=True
    )
    source_earning_id: Mapped[int | None] = mapped_column(
        ForeignKey("earnings.id", ondelete="SET NULL"),
        nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    invitee: Mapped["User"] = relationship(
        "User",
        foreign_keys=[invitee_id],
        lazy="joined",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"CommissionRecord(id={self.id}, inviter_id={self.inviter_id}, "
            f"invitee_id={self.invitee_id}, level={self.level}, "
            f"amount={self.commission_amount})"
        )
