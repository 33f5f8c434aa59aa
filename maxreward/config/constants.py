"""
Single source of truth for community point business constants.

Every other module imports level bounds, unlock tiers and the default
level configuration from here.
"""

from decimal import Decimal
from typing import NamedTuple


# Money and percentages are stored with two decimal places
MONEY_QUANT = Decimal("0.01")
PERCENT_QUANT = Decimal("0.01")
HUNDRED = Decimal("100")

# Referral tree depth that receives community points
MAX_CP_LEVELS = 30
MIN_CP_LEVEL = 1

# Every member can always receive levels 1-5
DEFAULT_UNLOCKED_LEVEL = 5

# Number of rows in a complete level configuration set
LEVEL_CONFIG_ROW_COUNT = 5

# Sum of total_percentage_for_range across the whole set
LEVEL_CONFIG_TOTAL_PERCENT = Decimal("100.00")

# Direct referrals -> highest unlocked level.
# Counts above the last key map to the last value.
UNLOCK_TIERS: dict[int, int] = {
    0: 5,
    1: 10,
    2: 15,
    3: 20,
    4: 25,
    5: 30,
}


class LevelRange(NamedTuple):
    """One row of the level configuration."""

    level_from: int
    level_to: int
    cp_percentage_per_level: Decimal
    total_percentage_for_range: Decimal

    @property
    def level_count(self) -> int:
        """Number of levels covered by the range."""
        return self.level_to - self.level_from + 1


DEFAULT_LEVEL_CONFIG: tuple[LevelRange, ...] = (
    LevelRange(1, 3, Decimal("5.00"), Decimal("15.00")),
    LevelRange(4, 6, Decimal("6.00"), Decimal("18.00")),
    LevelRange(7, 9, Decimal("8.00"), Decimal("24.00")),
    LevelRange(10, 20, Decimal("3.00"), Decimal("33.00")),
    LevelRange(21, 30, Decimal("1.00"), Decimal("10.00")),
)
