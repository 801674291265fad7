"""
Services.

Business logic layer.
"""

# Base Service Infrastructure
from app.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)

# Core Services
from app.services.activity_service import ActivityService
from app.services.balance_service import BalanceService

# Referral Package
from app.services.referral import CommissionEngine, ReferralChainManager
from app.services.referral_service import ReferralService
from app.services.settlement_service import SettlementService
from app.services.user_service import UserService
from app.services.withdrawal_service import WithdrawalService


__all__ = [
    # Base Infrastructure
    "BaseService",
    "transaction",
    "log_operation",
    # Referral Package
    "CommissionEngine",
    "ReferralChainManager",
    # Core
    "ActivityService",
    "BalanceService",
    "ReferralService",
    "SettlementService",
    "UserService",
    "WithdrawalService",
]
