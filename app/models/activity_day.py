"""
Activity day model.

One row per (user, UTC day) on which the user checked in. Commission
eligibility for a settled day is read from here, so it survives both
the nightly flag reset and later check-ins.
"""

from datetime import UTC, date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ActivityDay(Base):
    """A UTC day on which a user was active."""

    __tablename__ = "activity_days"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_activity_days_user_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    activity_date: Mapped[date] = mapped_column(
        "date", Date, nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"ActivityDay(user_id={self.user_id}, date={self.activity_date})"
