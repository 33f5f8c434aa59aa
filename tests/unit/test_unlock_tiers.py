"""Tests for the referral count to unlocked level mapping."""

import pytest

from maxreward.services.unlock.gate import (
    referrals_needed_for_next_tier,
    unlocked_level_for,
)


@pytest.mark.parametrize(
    ("referrals", "level"),
    [(0, 5), (1, 10), (2, 15), (3, 20), (4, 25), (5, 30), (6, 30), (250, 30)],
)
def test_unlocked_level_for(referrals, level):
    assert unlocked_level_for(referrals) == level


def test_negative_referrals_rejected():
    with pytest.raises(ValueError):
        unlocked_level_for(-1)


def test_levels_are_monotonic():
    """More referrals never mean a lower level."""
    levels = [unlocked_level_for(n) for n in range(0, 12)]
    assert levels == sorted(levels)


@pytest.mark.parametrize(
    ("referrals", "needed"),
    [(0, 1), (3, 1), (4, 1), (5, None), (9, None)],
)
def test_referrals_needed_for_next_tier(referrals, needed):
    assert referrals_needed_for_next_tier(referrals) == needed
