"""
Referral model.

Represents materialized upline edges: one row per (invitee, level)
pointing at the invitee's ancestor at that level.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.user import User


class ReferralEdge(Base):
    """Referral edge - multi-level inviter -> invitee relationship."""

    __tablename__ = "referrals"
    __table_args__ = (
        UniqueConstraint("invitee_id", "level", name="uq_referrals_invitee_level"),
        CheckConstraint("level >= 1 AND level <= 7", name="check_referral_level_range"),
        CheckConstraint("inviter_id <> invitee_id", name="check_referral_not_self"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Ancestor (who invited, directly or transitively)
    inviter_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Invitee (who was invited)
    invitee_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # 1 = direct inviter ... 7 = seventh-degree ancestor
    level: Mapped[int] = mapped_column(
        Integer, nullable=False, index=True
    )

    # Set once the legacy per-transaction bonus has been paid on this edge
    bonus_given: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    inviter: Mapped["User"] = relationship(
        "User",
        foreign_keys=[inviter_id],
    )
    invitee: Mapped["User"] = relationship(
        "User",
        foreign_keys=[invitee_id],
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralEdge(id={self.id}, inviter_id={self.inviter_id}, "
            f"invitee_id={self.invitee_id}, level={self.level})>"
        )
