"""
Commission Breakdown Engine

Walks a sale from gross commission down to the agent's net, before any
deal-level deductions or credits.
"""

from decimal import Decimal

from ..models import (
    PAYOUT_PARTNERSHIP,
    PAYOUT_TIERED,
    CalculationOptions,
    CommissionBreakdown,
    DeductionDetail,
    PartnerDeduction,
    PartnerProfile,
    SaleTerms,
    TYPE_FLAT,
)
from ..numbers import ONE, ZERO, to_decimal
from .tiers import TieredSplitResolver


class CommissionBreakdownEngine:
    """Computes the gross to net commission waterfall."""

    def __init__(self, tier_resolver: TieredSplitResolver | None = None):
        self.tier_resolver = tier_resolver or TieredSplitResolver()

    def compute_breakdown(
        self,
        terms: SaleTerms,
        partner: PartnerProfile | None = None,
        options: CalculationOptions | None = None,
    ) -> CommissionBreakdown:
        """
        Compute every subtotal of the waterfall.

        Order of operations:
        1. Gross = sale price x gross commission rate
        2. Partnership split (partnership lead sources only)
        3. Brokerage split (rate resolved from tiers for tiered lead sources)
        4. Referral out, then referral in (when requested)
        5. Transaction fee and partner deductions, floored at 0
        """
        options = options or CalculationOptions()

        sale_price = self.select_sale_price(terms, options.prefer_actual)
        gross = sale_price * to_decimal(terms.gross_commission_rate)

        brokerage_rate = self._effective_brokerage_rate(sale_price, terms, partner)
        after_partnership = self._apply_partnership_split(gross, partner)
        after_brokerage = after_partnership * (ONE - brokerage_rate)

        referral_out = to_decimal(terms.referral_out_rate)
        after_referral_out = after_brokerage * (ONE - referral_out) if referral_out > 0 else after_brokerage

        referral_in = to_decimal(terms.referral_in_rate)
        if options.include_referral_in and referral_in > 0:
            after_referral_in = after_referral_out * (ONE + referral_in)
        else:
            after_referral_in = after_referral_out

        transaction_fee = to_decimal(terms.transaction_fee)
        deductions = partner.custom_deductions if partner else []

        if options.partner_deduction_basis == "running":
            details = self._running_deductions(
                max(ZERO, after_referral_in - transaction_fee), deductions
            )
        else:
            details = self._gross_deductions(gross, deductions)

        deductions_total = sum((d.amount for d in details), ZERO)
        net = max(ZERO, after_referral_in - transaction_fee - deductions_total)

        return CommissionBreakdown(
            sale_price=sale_price,
            effective_brokerage_rate=brokerage_rate,
            gross_commission=gross,
            after_partnership_split=after_partnership,
            after_brokerage_split=after_brokerage,
            after_referral_out=after_referral_out,
            after_referral_in=after_referral_in,
            transaction_fee_amount=transaction_fee,
            custom_deductions_total=deductions_total,
            deduction_details=tuple(details),
            net_before_deal_adjustments=net,
        )

    @staticmethod
    def select_sale_price(terms: SaleTerms, prefer_actual: bool = True) -> Decimal:
        """Preferred price when non-zero, otherwise the other one."""
        actual = to_decimal(terms.actual_sale_price)
        expected = to_decimal(terms.expected_sale_price)
        if prefer_actual:
            return actual or expected
        return expected or actual

    def _effective_brokerage_rate(
        self, sale_price: Decimal, terms: SaleTerms, partner: PartnerProfile | None
    ) -> Decimal:
        default_rate = to_decimal(terms.brokerage_split_rate)
        if partner is not None and partner.payout_structure == PAYOUT_TIERED:
            return to_decimal(self.tier_resolver.resolve(sale_price, partner.tiered_splits, default_rate))
        return default_rate

    def _apply_partnership_split(self, gross: Decimal, partner: PartnerProfile | None) -> Decimal:
        if partner is None or partner.payout_structure != PAYOUT_PARTNERSHIP:
            return gross
        return gross * (ONE - to_decimal(partner.partnership_split_rate))

    def _gross_deductions(
        self, gross: Decimal, deductions: list[PartnerDeduction]
    ) -> list[DeductionDetail]:
        """Each deduction is taken independently; percentages are of gross commission."""
        details = []
        for deduction in sorted(deductions, key=lambda d: d.apply_order):
            value = to_decimal(deduction.value)
            amount = value if deduction.type == TYPE_FLAT else gross * value
            details.append(DeductionDetail(name=deduction.name, amount=amount))
        return details

    def _running_deductions(
        self, balance: Decimal, deductions: list[PartnerDeduction]
    ) -> list[DeductionDetail]:
        """
        Deductions compound in apply_order against the remaining balance.

        A flat deduction never takes more than what is left.
        """
        details = []
        remaining = balance
        for deduction in sorted(deductions, key=lambda d: d.apply_order):
            value = to_decimal(deduction.value)
            if deduction.type == TYPE_FLAT:
                amount = min(value, remaining)
            else:
                amount = remaining * value
            remaining -= amount
            details.append(DeductionDetail(name=deduction.name, amount=amount))
        return details


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def calculate_net_commission(
    terms: SaleTerms,
    partner: PartnerProfile | None = None,
    options: CalculationOptions | None = None,
) -> Decimal:
    """Agent's net before deal-level adjustments."""
    return CommissionBreakdownEngine().compute_breakdown(terms, partner, options).net_before_deal_adjustments


def calculate_actual_gci(terms: SaleTerms, partner: PartnerProfile | None = None) -> Decimal:
    """Net commission priced off the actual sale price."""
    return calculate_net_commission(terms, partner, CalculationOptions(prefer_actual=True))


def calculate_expected_gci(terms: SaleTerms, partner: PartnerProfile | None = None) -> Decimal:
    """Net commission priced off the expected sale price."""
    return calculate_net_commission(terms, partner, CalculationOptions(prefer_actual=False))


def calculate_gross_commission(terms: SaleTerms, prefer_actual: bool = True) -> Decimal:
    sale_price = CommissionBreakdownEngine.select_sale_price(terms, prefer_actual)
    return sale_price * to_decimal(terms.gross_commission_rate)
