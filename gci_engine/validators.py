"""
Input Validation for the Commission Waterfall Engine

Validates request payloads before processing begins. The calculators
themselves never raise; this is the gate that rejects data a form should
never have submitted.
Raises ValueError with clear messages for any constraint violations.
"""

from decimal import Decimal

from .models import (
    ADJUSTMENT_TYPES,
    PAYOUT_STRUCTURES,
    PAYOUT_TIERED,
    PERCENT_BASES,
    AdjustmentItem,
    CalculationOptions,
    DealInput,
    PartnerProfile,
    PercentageAdjustment,
    SaleTerms,
)


def _check_rate(label: str, rate: Decimal | None) -> None:
    if rate is not None and not (0 <= rate <= 1):
        raise ValueError(f"{label} must be between 0 and 1, got: {rate}")


class InputValidator:
    """Validates deal input according to business rules."""

    def validate(self, input_data: DealInput) -> None:
        """
        Run all validations. Raises ValueError if any check fails.
        """
        self._validate_terms(input_data.terms)
        if input_data.partner is not None:
            self._validate_partner(input_data.partner)
        for item in input_data.deductions:
            self._validate_adjustment(item, "deduction")
        for item in input_data.credits:
            self._validate_adjustment(item, "credit")
        self._validate_options(input_data.options)

    def _validate_terms(self, terms: SaleTerms) -> None:
        """Validate price, rate and fee constraints."""
        for label, price in (
            ("actual_sale_price", terms.actual_sale_price),
            ("expected_sale_price", terms.expected_sale_price),
        ):
            if price is not None and price < 0:
                raise ValueError(f"{label} cannot be negative, got: {price}")

        if terms.transaction_fee < 0:
            raise ValueError(f"transaction_fee cannot be negative, got: {terms.transaction_fee}")

        _check_rate("gross_commission_rate", terms.gross_commission_rate)
        _check_rate("brokerage_split_rate", terms.brokerage_split_rate)
        _check_rate("referral_out_rate", terms.referral_out_rate)
        _check_rate("referral_in_rate", terms.referral_in_rate)

    def _validate_partner(self, partner: PartnerProfile) -> None:
        """Validate lead source payout configuration."""
        if partner.payout_structure not in PAYOUT_STRUCTURES:
            raise ValueError(
                f"Invalid payout_structure: {partner.payout_structure}. "
                f"Must be one of {', '.join(PAYOUT_STRUCTURES)}"
            )

        _check_rate("partnership_split_rate", partner.partnership_split_rate)

        if partner.payout_structure == PAYOUT_TIERED:
            if not partner.tiered_splits:
                raise ValueError("tiered_splits is required when payout_structure='tiered'")
            self._validate_tiers(partner)

        for deduction in partner.custom_deductions:
            if deduction.type not in ADJUSTMENT_TYPES:
                raise ValueError(f"Invalid type for custom deduction '{deduction.name}': {deduction.type}")
            if deduction.value < 0:
                raise ValueError(f"Custom deduction '{deduction.name}' cannot be negative, got: {deduction.value}")
            if deduction.type == "percentage":
                _check_rate(f"Custom deduction '{deduction.name}'", deduction.value)

    def _validate_tiers(self, partner: PartnerProfile) -> None:
        tiers = sorted(partner.tiered_splits, key=lambda t: t.min_amount)
        for i, tier in enumerate(tiers):
            _check_rate(f"Tier {i} split_rate", tier.split_rate)
            if tier.min_amount < 0:
                raise ValueError(f"Tier {i} min_amount cannot be negative, got: {tier.min_amount}")
            if tier.max_amount is not None and tier.max_amount <= tier.min_amount:
                raise ValueError(
                    f"Tier {i} max_amount must be greater than min_amount, "
                    f"got: {tier.min_amount} - {tier.max_amount}"
                )
            if i > 0:
                previous = tiers[i - 1]
                if previous.max_amount is None or previous.max_amount > tier.min_amount:
                    raise ValueError(f"Tier {i} overlaps tier {i - 1}")

    def _validate_adjustment(self, item: AdjustmentItem, kind: str) -> None:
        if not item.name.strip():
            raise ValueError(f"Every {kind} needs a name")
        # Credits at or below zero are allowed through; the waterfall ignores them.
        if kind == "deduction" and item.value < 0:
            raise ValueError(f"Deduction '{item.name}' cannot be negative, got: {item.value}")
        if isinstance(item, PercentageAdjustment):
            if item.percent_basis not in PERCENT_BASES:
                raise ValueError(
                    f"Invalid percent_basis for {kind} '{item.name}': {item.percent_basis}. "
                    f"Must be one of {', '.join(PERCENT_BASES)}"
                )
            if item.value > 1:
                raise ValueError(f"{kind.capitalize()} '{item.name}' must be at most 1 (100%), got: {item.value}")

    def _validate_options(self, options: CalculationOptions) -> None:
        if options.partner_deduction_basis not in CalculationOptions.DEDUCTION_BASES:
            raise ValueError(
                f"Invalid partner_deduction_basis: {options.partner_deduction_basis}. "
                "Must be 'gross' or 'running'"
            )
