"""
Withdrawal model.

Tracks withdrawal requests and their fees.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType

if TYPE_CHECKING:
    from app.models.user import User


class WithdrawalStatus(StrEnum):
    """Withdrawal status."""

    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class Withdrawal(Base):
    """Withdrawal request."""

    __tablename__ = "withdrawals"
    __table_args__ = (
        CheckConstraint(
            "amount_requested > 0", name="check_withdrawal_amount_positive"
        ),
        CheckConstraint(
            "net_amount >= 0", name="check_withdrawal_net_non_negative"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True
    )

    # Payout destination
    method: Mapped[str] = mapped_column(String(50), nullable=False)
    account: Mapped[str] = mapped_column(String(255), nullable=False)

    # Amounts
    amount_requested: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    fee: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=WithdrawalStatus.PENDING, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="withdrawals"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"Withdrawal(id={self.id}, user_id={self.user_id}, "
            f"amount={self.amount_requested}, status={self.status})"
        )
