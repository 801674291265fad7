"""
Referral system configuration.

Contains constants and configuration for the referral system.
"""

from app.config.business_constants import (
    DAILY_COMMISSION_RATES,
    PER_TRANSACTION_COMMISSION_RATES,
    REFERRAL_DEPTH,
)

# 7-level network. Daily aggregate rates are the system of record,
# per-transaction rates belong to the legacy bonus.
REFERRAL_RATES = DAILY_COMMISSION_RATES
LEGACY_REFERRAL_RATES = PER_TRANSACTION_COMMISSION_RATES

__all__ = [
    "REFERRAL_DEPTH",
    "REFERRAL_RATES",
    "LEGACY_REFERRAL_RATES",
]
