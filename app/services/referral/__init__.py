"""
Referral services package.

Contains modular services for referral processing:
- config: Configuration constants (REFERRAL_DEPTH, rate tables)
- chain_manager: Referral graph (signup edges, upline, downline)
- commission_policies: Daily aggregate and per-transaction strategies
- commission_engine: Upline walk and per-level payouts
- statistics: Network size and income
"""

from app.services.referral.chain_manager import (
    DownlineNode,
    ReferralChainManager,
    UplineEntry,
)
from app.services.referral.commission_engine import (
    CommissionEngine,
    CommissionPayout,
    CommissionResult,
)
from app.services.referral.commission_policies import (
    CommissionPolicy,
    DailyAggregatePolicy,
    PerTransactionPolicy,
    get_policy,
)
from app.services.referral.config import (
    LEGACY_REFERRAL_RATES,
    REFERRAL_DEPTH,
    REFERRAL_RATES,
)
from app.services.referral.statistics import (
    ReferralStatisticsManager,
    ReferralStats,
)


__all__ = [
    # Configuration
    "REFERRAL_DEPTH",
    "REFERRAL_RATES",
    "LEGACY_REFERRAL_RATES",
    # Graph
    "ReferralChainManager",
    "UplineEntry",
    "DownlineNode",
    # Commissions
    "CommissionEngine",
    "CommissionPayout",
    "CommissionResult",
    "CommissionPolicy",
    "DailyAggregatePolicy",
    "PerTransactionPolicy",
    "get_policy",
    # Statistics
    "ReferralStatisticsManager",
    "ReferralStats",
]
