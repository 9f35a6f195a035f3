"""
Unit Tests for Tiered Split Resolver

Tiers are half-open [min_amount, max_amount).
"""

from decimal import Decimal

import pytest

from gci_engine.calculators.tiers import TieredSplitResolver
from gci_engine.models import TierRule

FALLBACK = Decimal("0.25")


def tier(min_amount, max_amount, rate) -> TierRule:
    return TierRule(
        min_amount=Decimal(str(min_amount)),
        max_amount=Decimal(str(max_amount)) if max_amount is not None else None,
        split_rate=Decimal(str(rate)),
    )


@pytest.fixture
def resolver():
    return TieredSplitResolver()


@pytest.fixture
def two_tiers():
    return [tier(0, 300000, "0.3"), tier(300000, None, "0.2")]


class TestFallback:
    """No tiers or no matching tier returns the fallback rate."""

    def test_empty_tiers(self, resolver):
        assert resolver.resolve(Decimal("500000"), [], FALLBACK) == FALLBACK

    def test_none_tiers(self, resolver):
        assert resolver.resolve(Decimal("500000"), None, FALLBACK) == FALLBACK

    def test_price_below_lowest_tier(self, resolver):
        tiers = [tier(100000, 300000, "0.3"), tier(300000, None, "0.2")]
        assert resolver.resolve(Decimal("99999.99"), tiers, FALLBACK) == FALLBACK

    def test_gap_between_tiers(self, resolver):
        tiers = [tier(0, 100000, "0.3"), tier(200000, None, "0.2")]
        assert resolver.resolve(Decimal("150000"), tiers, FALLBACK) == FALLBACK

    def test_price_above_bounded_top_tier(self, resolver):
        tiers = [tier(0, 100000, "0.3")]
        assert resolver.resolve(Decimal("100000"), tiers, FALLBACK) == FALLBACK


class TestTierMatching:
    """Finding the bracket a sale price falls into."""

    def test_lower_tier(self, resolver, two_tiers):
        assert resolver.resolve(Decimal("250000"), two_tiers, FALLBACK) == Decimal("0.3")

    def test_boundary_belongs_to_upper_tier(self, resolver, two_tiers):
        """$300,000 sits on the boundary: [300000, inf) wins."""
        assert resolver.resolve(Decimal("300000"), two_tiers, FALLBACK) == Decimal("0.2")

    def test_just_below_boundary(self, resolver, two_tiers):
        assert resolver.resolve(Decimal("299999.99"), two_tiers, FALLBACK) == Decimal("0.3")

    def test_unbounded_top_tier(self, resolver, two_tiers):
        assert resolver.resolve(Decimal("10000000"), two_tiers, FALLBACK) == Decimal("0.2")

    def test_zero_price_matches_first_tier(self, resolver, two_tiers):
        assert resolver.resolve(Decimal("0"), two_tiers, FALLBACK) == Decimal("0.3")

    def test_unsorted_tiers_are_scanned_by_min_amount(self, resolver):
        tiers = [tier(500000, None, "0.1"), tier(0, 250000, "0.3"), tier(250000, 500000, "0.2")]
        assert resolver.resolve(Decimal("100000"), tiers, FALLBACK) == Decimal("0.3")
        assert resolver.resolve(Decimal("250000"), tiers, FALLBACK) == Decimal("0.2")
        assert resolver.resolve(Decimal("500000"), tiers, FALLBACK) == Decimal("0.1")

    def test_resolve_does_not_reorder_input(self, resolver):
        tiers = [tier(300000, None, "0.2"), tier(0, 300000, "0.3")]
        resolver.resolve(Decimal("100000"), tiers, FALLBACK)
        assert tiers[0].min_amount == Decimal("300000")
