"""
Business logic constants for the rewards service.

Central location for business rules used across the application:
activity limits, reward ranges, check-in streak rewards and referral
commission tables. Importable from services and jobs without
circular dependencies.
"""

from decimal import Decimal


# Currency precision
MONEY_QUANTUM = Decimal("0.00000001")  # storage precision (DECIMAL(18, 8))
CENT = Decimal("0.01")                 # smallest payable unit


# Referral network depth
REFERRAL_DEPTH = 7


# Per-activity daily limits (count of earning rows per UTC day)
DAILY_LIMITS = {
    "watch": 20,
    "scratch": 3,
    "treasure": 1,
    "task": 10,
    "checkin": 1,
}


# Random reward ranges [min, max) per activity
REWARD_RANGES = {
    "watch": (Decimal("0.10"), Decimal("0.20")),
    "scratch": (Decimal("0.05"), Decimal("0.50")),
    "treasure": (Decimal("0.20"), Decimal("2.00")),
}


# Daily check-in: Day1 0.10 -> Day7 1.00, capped afterwards
CHECKIN_BASE_REWARD = Decimal("0.10")
CHECKIN_STREAK_INCREMENT = Decimal("0.15")
CHECKIN_MAX_REWARD = Decimal("1.00")


# Daily aggregate commission (percent of invitee daily earnings)
DAILY_COMMISSION_RATES = {
    1: Decimal("0.045"),   # 4.5%
    2: Decimal("0.025"),   # 2.5%
    3: Decimal("0.015"),   # 1.5%
    4: Decimal("0.008"),   # 0.8%
    5: Decimal("0.003"),   # 0.3%
    6: Decimal("0.001"),   # 0.1%
    7: Decimal("0.0005"),  # 0.05%
}

# Legacy per-transaction bonus (percent of the triggering earning)
PER_TRANSACTION_COMMISSION_RATES = {
    1: Decimal("0.045"),   # 4.5%
    2: Decimal("0.020"),   # 2.0%
    3: Decimal("0.010"),   # 1.0%
    4: Decimal("0.005"),   # 0.5%
    5: Decimal("0.001"),   # 0.1%
    6: Decimal("0.0001"),  # 0.01%
    7: Decimal("0.00002"),  # 0.002%
}


# Referral code format
REFERRAL_CODE_LENGTH = 6
REFERRAL_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
REFERRAL_CODE_MAX_ATTEMPTS = 10


def calculate_checkin_reward(streak: int) -> Decimal:
    """
    Calculate daily check-in reward for a streak day.

    Args:
        streak: Consecutive check-in count (1-based)

    Returns:
        Reward amount, linearly increasing and capped at CHECKIN_MAX_REWARD
    """
    if streak < 1:
        streak = 1
    reward = CHECKIN_BASE_REWARD + (streak - 1) * CHECKIN_STREAK_INCREMENT
    return min(reward, CHECKIN_MAX_REWARD)
