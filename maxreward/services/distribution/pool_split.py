"""
Point pool split.

Splits an event's point pool into PP, RP, CP and CR shares.
"""

from decimal import Decimal
from typing import NamedTuple

from maxreward.config.settings import Settings, settings
from maxreward.utils.money import percent_of, quantize_points


class PoolSplit(NamedTuple):
    """Shares of a point pool, each rounded to 2 places."""

    total: Decimal
    pp: Decimal
    rp: Decimal
    cp: Decimal
    cr: Decimal


def split_pool(
    total: Decimal,
    pp_percent: Decimal,
    rp_percent: Decimal,
    cp_percent: Decimal,
    cr_percent: Decimal,
) -> PoolSplit:
    """
    Split a pool by percentages.

    Args:
        total: Pool amount
        pp_percent: Personal points share
        rp_percent: Referral points share
        cp_percent: Community points share
        cr_percent: Company reserve share

    Returns:
        Pool split
    """
    total = quantize_points(total)
    return PoolSplit(
        total=total,
        pp=percent_of(total, pp_percent),
        rp=percent_of(total, rp_percent),
        cp=percent_of(total, cp_percent),
        cr=percent_of(total, cr_percent),
    )


def registration_split(config: Settings = settings) -> PoolSplit:
    """Split of the registration pool (10/20/50/20 by default)."""
    return split_pool(
        config.registration_pool_points,
        config.pp_points_percent,
        config.rp_points_percent,
        config.cp_points_percent,
        config.cr_points_percent,
    )


def purchase_split(purchase_points: Decimal, config: Settings = settings) -> PoolSplit:
    """Split of a purchase's reward pool."""
    return split_pool(
        purchase_points,
        config.purchase_pp_percent,
        config.purchase_rp_percent,
        config.purchase_cp_percent,
        config.purchase_cr_percent,
    )
