"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.activity_day import ActivityDay
from app.models.base import Base
from app.models.daily_earnings import DailyEarningsSnapshot
from app.models.earning import (
    ACTIVITY_EARNING_TYPES,
    NETWORK_EARNING_TYPES,
    Earning,
    EarningType,
)
from app.models.referral import ReferralEdge
from app.models.referral_commission import CommissionPolicyName, CommissionRecord
from app.models.user import User
from app.models.withdrawal import Withdrawal, WithdrawalStatus

__all__ = [
    # Base
    "Base",
    # Enums and constants
    "EarningType",
    "ACTIVITY_EARNING_TYPES",
    "NETWORK_EARNING_TYPES",
    "CommissionPolicyName",
    "WithdrawalStatus",
    # Core Models
    "User",
    "Earning",
    "ReferralEdge",
    "ActivityDay",
    "DailyEarningsSnapshot",
    "CommissionRecord",
    "Withdrawal",
]
