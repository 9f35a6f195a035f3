"""
Tiered Split Resolver

Picks the brokerage split rate for a sale price from a lead source's price tiers.
"""

from decimal import Decimal

from ..models import TierRule
from ..numbers import to_decimal


class TieredSplitResolver:
    """Looks up the split rate of the price bracket a sale falls into."""

    def resolve(self, sale_price: Decimal, tiers: list[TierRule] | None, fallback_rate: Decimal) -> Decimal:
        """
        Return the split rate of the tier containing sale_price.

        Tiers are half-open [min_amount, max_amount), so a price sitting
        exactly on a boundary belongs to the upper tier. Tiers are scanned
        in ascending min_amount order; the first hit wins.

        Falls back to fallback_rate when there are no tiers or none matches
        (e.g. price below the lowest min_amount).
        """
        if not tiers:
            return fallback_rate

        price = to_decimal(sale_price)
        for tier in sorted(tiers, key=lambda t: t.min_amount):
            if tier.contains(price):
                return tier.split_rate

        return fallback_rate
