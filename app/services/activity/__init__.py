"""
Activity services package.

- gate: daily limits and the commission eligibility flag
- rewards: random reward amounts per activity
"""

from app.services.activity.gate import ActivityGate
from app.services.activity.rewards import RewardGenerator


__all__ = [
    "ActivityGate",
    "RewardGenerator",
]
