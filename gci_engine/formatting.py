"""
Display formatting for rates and dollar amounts.
"""

from decimal import ROUND_HALF_UP, Decimal

from .numbers import fraction_to_percent, quantize_money, to_decimal

MAX_PERCENT_PLACES = 4


def format_percentage(value) -> str:
    """
    Render a percentage with the fewest decimals that still parse back to it.

    Tries 1, 2 and 3 places, then settles for 4 rounded half up.
    e.g. 2.5 -> "2.5", 2.55 -> "2.55", 20 -> "20.0"
    """
    number = to_decimal(value)
    for places in range(1, MAX_PERCENT_PLACES + 1):
        rounded = number.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
        if rounded == number or places == MAX_PERCENT_PLACES:
            return f"{rounded:.{places}f}"


def format_rate(fraction) -> str:
    """Render a stored fraction as a percent string: 0.025 -> "2.5%"."""
    return f"{format_percentage(fraction_to_percent(fraction))}%"


def format_currency(amount) -> str:
    """Format a number as currency string for descriptions."""
    value = quantize_money(to_decimal(amount))
    if value < 0:
        return f"-${-value:,.2f}"
    return f"${value:,.2f}"
