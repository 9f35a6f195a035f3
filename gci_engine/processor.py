"""
Deal Processor - Main Orchestrator

Coordinates the commission waterfall through discrete, testable steps.
"""

import json
import logging
from typing import Any, Dict

from .calculators import CommissionBreakdownEngine, DealAdjustmentWaterfall
from .models import DealInput, DealResult, ProcessingContext
from .output import OutputBuilder
from .validators import InputValidator

logger = logging.getLogger(__name__)


class DealProcessor:
    """
    Main orchestrator for commission processing.

    Implements a clear pipeline pattern:
    1. Validate Input
    2. Build Context
    3. Compute Breakdown (gross -> net before adjustments)
    4. Apply Deal Adjustments (Total GCI, Net to Agent)
    5. Build Output
    """

    def __init__(self):
        self.validator = InputValidator()
        self.breakdown_engine = CommissionBreakdownEngine()
        self.adjustment_waterfall = DealAdjustmentWaterfall()
        self.output_builder = OutputBuilder()

    def process(self, input_data: DealInput) -> DealResult:
        """
        Process a deal through the complete pipeline.

        Args:
            input_data: DealInput object

        Returns:
            DealResult with every figure of the waterfall
        """
        # Step 1: Validate
        self.validator.validate(input_data)

        # Step 2: Build initial context
        ctx = ProcessingContext(input=input_data)

        # Step 3: Gross to net
        ctx.breakdown = self.breakdown_engine.compute_breakdown(
            input_data.terms, input_data.partner, input_data.options
        )

        # Step 4: Deal-level deductions and credits
        ctx.adjustments = self.adjustment_waterfall.apply_adjustments(
            ctx.breakdown, input_data.deductions, input_data.credits
        )

        logger.debug(
            "Computed %s: gross=%s net_to_agent=%s",
            input_data.deal_name,
            ctx.breakdown.gross_commission,
            ctx.adjustments.net_to_agent,
        )

        # Step 5: Build output
        return self.output_builder.build(ctx)

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process a deal from raw dictionary input.

        Convenience method for API usage.
        """
        input_data = DealInput.from_dict(data)
        result = self.process(input_data)
        return self._result_to_dict(result)

    def _result_to_dict(self, result: DealResult) -> Dict[str, Any]:
        """Convert DealResult to dictionary for API response."""
        return {
            "deal_summary": result.deal_summary,
            "breakdown": result.breakdown,
            "partner_deductions": result.partner_deductions,
            "adjustments": result.adjustments,
            "totals": result.totals,
        }


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def process_deal_from_dict(input_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Process a deal from Python dict and return Python dict.
    """
    processor = DealProcessor()
    return processor.process_from_dict(input_data)


def process_deal_from_json(json_input: str) -> str:
    """
    Process a deal from JSON string input and return JSON string output.
    """
    try:
        input_data = json.loads(json_input)
        processor = DealProcessor()
        result = processor.process_from_dict(input_data)
        return json.dumps(result, indent=2)

    except (ValueError, KeyError, TypeError) as e:
        logger.error("Validation error: %s", e)
        error_response = {"error": str(e), "status": "validation_failed"}
        return json.dumps(error_response, indent=2)

    except Exception as e:
        logger.error("Processing error: %s", e, exc_info=True)
        error_response = {"error": str(e), "status": "failed"}
        return json.dumps(error_response, indent=2)
