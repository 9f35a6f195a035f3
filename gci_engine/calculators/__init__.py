"""
Calculators Package

Provides all calculation components for the commission waterfall.
"""

from .adjustments import DealAdjustmentWaterfall
from .breakdown import CommissionBreakdownEngine
from .tiers import TieredSplitResolver

__all__ = [
    "TieredSplitResolver",
    "CommissionBreakdownEngine",
    "DealAdjustmentWaterfall",
]
