"""
Activity reward amounts.

Random reward sampling for timed activities.
"""

import random
from decimal import ROUND_DOWN, Decimal

from app.config.business_constants import CENT, REWARD_RANGES


# Only tasks carry a caller-supplied reward
FIXED_REWARD_ACTIVITY = "task"


class RewardGenerator:
    """Samples reward amounts within the configured ranges."""

    def __init__(self, rng: random.Random | None = None) -> None:
        """
        Initialize generator.

        Args:
            rng: Randomness source (seeded instance in tests)
        """
        self.rng = rng or random.Random()

    def amount_for(
        self, activity_type: str, reward: Decimal | None = None
    ) -> Decimal:
        """
        Get reward amount for one activity.

        Args:
            activity_type: Activity type
            reward: Fixed reward supplied by the caller (tasks)

        Returns:
            Amount rounded down to cents, within [min, max)

        Raises:
            ValueError: If the activity has no range and no fixed reward,
                or a fixed reward is given for anything but a task
        """
        if reward is not None:
            if activity_type != FIXED_REWARD_ACTIVITY:
                raise ValueError(
                    f"Fixed rewards are only accepted for tasks, not {activity_type}"
                )
            amount = Decimal(str(reward)).quantize(CENT, rounding=ROUND_DOWN)
            if amount <= 0:
                raise ValueError(f"Reward must be positive, got {reward}")
            return amount

        if activity_type not in REWARD_RANGES:
            raise ValueError(f"No reward range for activity: {activity_type}")

        low, high = REWARD_RANGES[activity_type]
        sampled = low + (high - low) * Decimal(str(self.rng.random()))
        amount = sampled.quantize(CENT, rounding=ROUND_DOWN)
        # Stay inside the half-open range after rounding
        if amount >= high:
            amount = high - CENT
        return max(amount, low)
