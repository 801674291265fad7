"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, rewards
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Commission rate stored as a fraction (0.045 = 4.5%)
# Precision: 10 digits total, 6 after decimal point
# Suitable for: 0.00002 (0.002%) up to 1.0
RateType = DECIMAL(10, 6)
