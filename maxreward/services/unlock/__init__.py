"""
Unlock gate services.
"""

from maxreward.services.unlock.gate import (
    UnlockGate,
    UnlockResult,
    referrals_needed_for_next_tier,
    unlocked_level_for,
)


__all__ = [
    "UnlockGate",
    "UnlockResult",
    "referrals_needed_for_next_tier",
    "unlocked_level_for",
]
