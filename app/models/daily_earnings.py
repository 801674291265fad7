"""
Daily earnings snapshot model.

One row per (user, date), upserted by the daily settlement job.
Recomputing a day overwrites the total instead of accumulating.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType


class DailyEarningsSnapshot(Base):
    """Daily earnings of a user, excluding referral network income."""

    __tablename__ = "daily_earnings"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_earnings_user_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    snapshot_date: Mapped[date] = mapped_column(
        "date", Date, nullable=False, index=True
    )
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"DailyEarningsSnapshot(user_id={self.user_id}, "
            f"date={self.snapshot_date}, total_earned={self.total_earned})"
        )
