"""
Deal Adjustment Waterfall

Applies deal-level deductions and credits on top of a commission breakdown.
"""

from decimal import Decimal

from ..models import (
    BASIS_NET,
    BASIS_TOTAL_GCI,
    AdjustmentItem,
    AdjustmentLine,
    CommissionBreakdown,
    DealAdjustmentResult,
    FlatAdjustment,
    PercentageAdjustment,
)
from ..numbers import ZERO, to_decimal

PHASE_GCI = "gci"
PHASE_TOTAL_GCI = "total_gci"
PHASE_NET = "net"

KIND_DEDUCTION = "deduction"
KIND_CREDIT = "credit"


def adjustment_phase(item: AdjustmentItem) -> str:
    """Which subtotal an item is computed against and folded into."""
    if isinstance(item, FlatAdjustment):
        return PHASE_GCI if item.include_in_gci else PHASE_TOTAL_GCI
    if item.percent_basis == BASIS_NET:
        return PHASE_NET
    if item.percent_basis == BASIS_TOTAL_GCI:
        return PHASE_TOTAL_GCI
    return PHASE_GCI


def is_counted(item: AdjustmentItem, kind: str) -> bool:
    """Waived items and non-positive credits contribute nothing."""
    if item.is_waived:
        return False
    if kind == KIND_CREDIT:
        return to_decimal(item.value) > 0
    return True


class DealAdjustmentWaterfall:
    """Folds deal-level deductions and credits into Total GCI and Net to Agent."""

    def apply_adjustments(
        self,
        breakdown: CommissionBreakdown,
        deductions: list[AdjustmentItem] | None = None,
        credits: list[AdjustmentItem] | None = None,
    ) -> DealAdjustmentResult:
        """
        Run the three phases in order.

        1. GCI: percentages of gross, and flat items included in GCI.
           Reported GCI = gross - deductions + credits.
        2. Total GCI: percentages of reported GCI, and flat items kept out of GCI.
        3. Net: percentages of the preliminary net left after phases 1 and 2.

        Within a phase every item is computed off the same base, so the
        order of items never changes a total.
        """
        entries = [(KIND_DEDUCTION, i, item) for i, item in enumerate(deductions or [])]
        entries += [(KIND_CREDIT, i, item) for i, item in enumerate(credits or [])]
        counted = [entry for entry in entries if is_counted(entry[2], entry[0])]

        # (kind, index) -> dollar amount, filled phase by phase
        amounts: dict[tuple[str, int], Decimal] = {}

        gross = breakdown.gross_commission
        gci_ded, gci_cred = self._run_phase(PHASE_GCI, gross, counted, amounts)
        reported_gci = gross - gci_ded + gci_cred

        tgci_ded, tgci_cred = self._run_phase(PHASE_TOTAL_GCI, reported_gci, counted, amounts)

        prelim_net = (
            breakdown.net_before_deal_adjustments
            - gci_ded
            - tgci_ded
            + gci_cred
            + tgci_cred
        )
        net_ded, net_cred = self._run_phase(PHASE_NET, max(ZERO, prelim_net), counted, amounts)

        net_to_agent = max(ZERO, prelim_net - net_ded + net_cred)

        return DealAdjustmentResult(
            reported_gci=reported_gci,
            net_to_agent=net_to_agent,
            prelim_net=prelim_net,
            gci_deductions_total=gci_ded,
            gci_credits_total=gci_cred,
            total_gci_deductions_total=tgci_ded,
            total_gci_credits_total=tgci_cred,
            net_deductions_total=net_ded,
            net_credits_total=net_cred,
            lines=self._build_lines(entries, amounts),
        )

    def item_amount(self, item: AdjustmentItem, base: Decimal) -> Decimal:
        """Dollar amount of one item against its phase base."""
        value = to_decimal(item.value)
        if isinstance(item, PercentageAdjustment):
            return base * value
        return value

    def _run_phase(
        self,
        phase: str,
        base: Decimal,
        counted: list[tuple[str, int, AdjustmentItem]],
        amounts: dict[tuple[str, int], Decimal],
    ) -> tuple[Decimal, Decimal]:
        deductions_total = ZERO
        credits_total = ZERO
        for kind, index, item in counted:
            if adjustment_phase(item) != phase:
                continue
            amount = self.item_amount(item, base)
            amounts[(kind, index)] = amount
            if kind == KIND_DEDUCTION:
                deductions_total += amount
            else:
                credits_total += amount
        return deductions_total, credits_total

    def _build_lines(
        self,
        entries: list[tuple[str, int, AdjustmentItem]],
        amounts: dict[tuple[str, int], Decimal],
    ) -> tuple[AdjustmentLine, ...]:
        """Deductions then credits, each sorted by apply_order."""
        ordered = sorted(entries, key=lambda e: (e[0] != KIND_DEDUCTION, e[2].apply_order))
        return tuple(
            AdjustmentLine(
                id=item.id,
                name=item.name,
                kind=kind,
                index=index,
                phase=adjustment_phase(item),
                amount=amounts.get((kind, index), ZERO),
                included=(kind, index) in amounts,
                item=item,
            )
            for kind, index, item in ordered
        )
