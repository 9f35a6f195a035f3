"""
Numeric normalization helpers.

Every figure that enters the engine passes through to_decimal first, so a
missing or garbled field becomes 0 instead of poisoning the arithmetic.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Convert any input to a finite Decimal; None, NaN, infinities and junk become 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places using ROUND_HALF_UP."""
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return float(quantize_money(value))


def percent_to_fraction(value) -> Decimal:
    """5 -> 0.05"""
    return to_decimal(value) / HUNDRED


def fraction_to_percent(value) -> Decimal:
    """0.05 -> 5"""
    return to_decimal(value) * HUNDRED
