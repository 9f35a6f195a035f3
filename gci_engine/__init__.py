"""
COMMISSION WATERFALL ENGINE
Gross commission to Net to Agent for real-estate deals
"""

from .calculators import CommissionBreakdownEngine, DealAdjustmentWaterfall, TieredSplitResolver
from .formatting import format_percentage
from .models import DealInput, DealResult
from .processor import DealProcessor

__all__ = [
    'DealProcessor',
    'DealInput',
    'DealResult',
    'TieredSplitResolver',
    'CommissionBreakdownEngine',
    'DealAdjustmentWaterfall',
    'format_percentage',
]
