"""
Point amount helpers.

All point math uses Decimal rounded half-up to two places.
"""

from decimal import ROUND_HALF_UP, Decimal

from maxreward.config.constants import HUNDRED, MONEY_QUANT, PERCENT_QUANT


def to_decimal(value: Decimal | int | str | float) -> Decimal:
    """
    Convert a value to Decimal without binary float artefacts.

    Floats go through str() so 0.1 becomes Decimal("0.1").
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize_points(value: Decimal | int | str | float) -> Decimal:
    """Round a point amount to two decimal places."""
    return to_decimal(value).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def quantize_percent(value: Decimal | int | str | float) -> Decimal:
    """Round a percentage to two decimal places."""
    return to_decimal(value).quantize(PERCENT_QUANT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """
    Calculate percentage share of an amount.

    Args:
        amount: Base amount
        percentage: Percent, e.g. Decimal("8.00") for 8%

    Returns:
        Share rounded to two places (0 for non-positive inputs)
    """
    if amount <= 0 or percentage <= 0:
        return Decimal("0.00")
    return quantize_points(to_decimal(amount) * to_decimal(percentage) / HUNDRED)


def format_points(value: Decimal) -> str:
    """Format points for messages, e.g. 1234.5 -> '1,234.50'."""
    return f"{quantize_points(value):,.2f}"
