"""
Output Builder

Constructs the final API response from processing context.
"""

from .formatting import format_currency as _fmt
from .formatting import format_rate
from .models import (
    PAYOUT_PARTNERSHIP,
    PAYOUT_STANDARD,
    PAYOUT_TIERED,
    DealResult,
    PercentageAdjustment,
    ProcessingContext,
)
from .numbers import to_decimal, to_money

PHASE_LABELS = {
    "gci": "gross commission",
    "total_gci": "total GCI",
    "net": "net",
}


class OutputBuilder:
    """Builds the final output response."""

    def build(self, ctx: ProcessingContext) -> DealResult:
        """Construct the complete deal result from processing context."""
        return DealResult(
            deal_summary=self._build_deal_summary(ctx),
            breakdown=self._build_breakdown(ctx),
            partner_deductions=[
                {"name": d.name, "amount": to_money(d.amount)} for d in ctx.breakdown.deduction_details
            ],
            adjustments=self._build_adjustments(ctx),
            totals=self._build_totals(ctx),
        )

    def _build_deal_summary(self, ctx: ProcessingContext) -> dict:
        """Build deal summary section."""
        data = ctx.input
        partner = data.partner
        return {
            "deal_name": data.deal_name,
            "sale_price": to_money(ctx.breakdown.sale_price),
            "price_basis": "actual" if data.options.prefer_actual else "expected",
            "lead_source": partner.name if partner else None,
            "payout_structure": partner.payout_structure if partner else PAYOUT_STANDARD,
            "effective_brokerage_rate": format_rate(ctx.breakdown.effective_brokerage_rate),
            "referral_in_included": data.options.include_referral_in,
        }

    def _build_breakdown(self, ctx: ProcessingContext) -> dict:
        """Build breakdown section with value and dynamic description for each field."""
        terms = ctx.input.terms
        partner = ctx.input.partner
        b = ctx.breakdown

        structure = partner.payout_structure if partner else PAYOUT_STANDARD
        if structure == PAYOUT_PARTNERSHIP:
            partnership_desc = (
                f"{_fmt(b.gross_commission)} × (1 - {format_rate(partner.partnership_split_rate)}) "
                f"= {_fmt(b.after_partnership_split)} after paying the partner"
            )
        else:
            partnership_desc = "No partnership split for this lead source"

        if structure == PAYOUT_TIERED:
            rate_desc = f"tiered rate ({format_rate(b.effective_brokerage_rate)})"
        else:
            rate_desc = f"brokerage split ({format_rate(b.effective_brokerage_rate)})"

        referral_out = to_decimal(terms.referral_out_rate)
        referral_in = to_decimal(terms.referral_in_rate)

        return {
            "sale_price": {
                "value": to_money(b.sale_price),
                "description": "Sale price used for all commission calculations",
            },
            "gross_commission": {
                "value": to_money(b.gross_commission),
                "description": f"{_fmt(b.sale_price)} × {format_rate(terms.gross_commission_rate)} = {_fmt(b.gross_commission)}",
            },
            "after_partnership_split": {
                "value": to_money(b.after_partnership_split),
                "description": partnership_desc,
            },
            "after_brokerage_split": {
                "value": to_money(b.after_brokerage_split),
                "description": f"{_fmt(b.after_partnership_split)} less {rate_desc} = {_fmt(b.after_brokerage_split)}",
            },
            "after_referral_out": {
                "value": to_money(b.after_referral_out),
                "description": f"{format_rate(referral_out)} referral paid out" if referral_out > 0 else "No outgoing referral",
            },
            "after_referral_in": {
                "value": to_money(b.after_referral_in),
                "description": (
                    f"{format_rate(referral_in)} incoming referral added"
                    if ctx.input.options.include_referral_in and referral_in > 0
                    else "No incoming referral applied"
                ),
            },
            "transaction_fee": {
                "value": to_money(b.transaction_fee_amount),
                "description": f"Flat transaction fee of {_fmt(b.transaction_fee_amount)}",
            },
            "custom_deductions_total": {
                "value": to_money(b.custom_deductions_total),
                "description": (
                    " + ".join(f"{d.name} ({_fmt(d.amount)})" for d in b.deduction_details)
                    if b.deduction_details
                    else "No lead source deductions"
                ),
            },
            "net_before_deal_adjustments": {
                "value": to_money(b.net_before_deal_adjustments),
                "description": (
                    f"{_fmt(b.after_referral_in)} - fee ({_fmt(b.transaction_fee_amount)}) "
                    f"- deductions ({_fmt(b.custom_deductions_total)}), never below $0.00"
                ),
            },
        }

    def _build_adjustments(self, ctx: ProcessingContext) -> list:
        """Build one row per deal-level deduction or credit, in display order."""
        rows = []
        for line in ctx.adjustments.lines:
            item = line.item
            is_percentage = isinstance(item, PercentageAdjustment)
            rows.append({
                "id": line.id,
                "name": line.name,
                "kind": line.kind,
                "index": line.index,
                "type": item.type,
                "rate": format_rate(item.value) if is_percentage else None,
                "percent_basis": item.percent_basis if is_percentage else None,
                "include_in_gci": item.include_in_gci,
                "is_waived": item.is_waived,
                "phase": line.phase,
                "included": line.included,
                "amount": to_money(line.amount),
                "description": self._describe_line(line, is_percentage),
            })
        return rows

    def _describe_line(self, line, is_percentage: bool) -> str:
        if not line.included:
            return "Waived" if line.item.is_waived else "Not applied"
        if is_percentage:
            return f"{format_rate(line.item.value)} of {PHASE_LABELS[line.phase]} = {_fmt(line.amount)}"
        return f"Flat {_fmt(line.amount)}, {'included in' if line.item.include_in_gci else 'excluded from'} GCI"

    def _build_totals(self, ctx: ProcessingContext) -> dict:
        b = ctx.breakdown
        a = ctx.adjustments
        return {
            "reported_gci": {
                "value": to_money(a.reported_gci),
                "description": (
                    f"gross ({_fmt(b.gross_commission)}) - deductions ({_fmt(a.gci_deductions_total)}) "
                    f"+ credits ({_fmt(a.gci_credits_total)}) = {_fmt(a.reported_gci)}"
                ),
            },
            "non_gci_deductions_total": {
                "value": to_money(a.non_gci_deductions_total),
                "description": "Deductions taken after GCI is reported",
            },
            "non_gci_additions_total": {
                "value": to_money(a.non_gci_additions_total),
                "description": "Credits added after GCI is reported",
            },
            "prelim_net": {
                "value": to_money(a.prelim_net),
                "description": "Net before adjustments calculated as a percentage of net",
            },
            "net_to_agent": {
                "value": to_money(a.net_to_agent),
                "description": (
                    f"prelim net ({_fmt(a.prelim_net)}) - net deductions ({_fmt(a.net_deductions_total)}) "
                    f"+ net credits ({_fmt(a.net_credits_total)}) = {_fmt(a.net_to_agent)}"
                ),
            },
        }
