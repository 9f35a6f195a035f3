"""
Domain Models for the Commission Waterfall Engine

These dataclasses provide type-safe representations of all business entities.
All monetary values and rates use Decimal for precision.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union

from .numbers import ZERO, percent_to_fraction, fraction_to_percent, to_decimal

PAYOUT_STANDARD = "standard"
PAYOUT_PARTNERSHIP = "partnership"
PAYOUT_TIERED = "tiered"
PAYOUT_STRUCTURES = (PAYOUT_STANDARD, PAYOUT_PARTNERSHIP, PAYOUT_TIERED)

TYPE_FLAT = "flat"
TYPE_PERCENTAGE = "percentage"
ADJUSTMENT_TYPES = (TYPE_FLAT, TYPE_PERCENTAGE)

BASIS_GROSS = "gross"
BASIS_TOTAL_GCI = "totalGci"
BASIS_NET = "net"
PERCENT_BASES = (BASIS_GROSS, BASIS_TOTAL_GCI, BASIS_NET)

SCALE_FRACTION = "fraction"  # stored records: percentages as 0-1
SCALE_PERCENT = "percent"  # editing surface: percentages as 0-100
SCALES = (SCALE_FRACTION, SCALE_PERCENT)


def _get(data: dict, *keys, default=None):
    """Read the first present key, accepting snake_case and camelCase spellings."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _flag(data: dict, *keys, default: bool) -> bool:
    """Read a boolean field; anything but a real bool (e.g. the string "false") is rejected."""
    value = _get(data, *keys)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"{keys[0]} must be true or false, got: {value!r}")
    return value


def _optional_decimal(value) -> Decimal | None:
    if value is None:
        return None
    return to_decimal(value)


# =============================================================================
# INPUT MODELS
# =============================================================================


@dataclass
class SaleTerms:
    """Price, rate and fee terms of a single transaction."""

    gross_commission_rate: Decimal = ZERO
    brokerage_split_rate: Decimal = ZERO
    transaction_fee: Decimal = ZERO
    actual_sale_price: Decimal | None = None
    expected_sale_price: Decimal | None = None
    referral_out_rate: Decimal | None = None
    referral_in_rate: Decimal | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "SaleTerms":
        return cls(
            gross_commission_rate=to_decimal(_get(data, "gross_commission_rate", "grossCommissionRate")),
            brokerage_split_rate=to_decimal(_get(data, "brokerage_split_rate", "brokerageSplitRate")),
            transaction_fee=to_decimal(_get(data, "transaction_fee", "transactionFee")),
            actual_sale_price=_optional_decimal(_get(data, "actual_sale_price", "actualSalePrice")),
            expected_sale_price=_optional_decimal(_get(data, "expected_sale_price", "expectedSalePrice")),
            referral_out_rate=_optional_decimal(_get(data, "referral_out_rate", "referralOutRate")),
            referral_in_rate=_optional_decimal(_get(data, "referral_in_rate", "referralInRate")),
        )


@dataclass
class TierRule:
    """A single price bracket of a tiered payout. Covers [min_amount, max_amount)."""

    min_amount: Decimal
    max_amount: Decimal | None  # None = unbounded
    split_rate: Decimal

    def contains(self, sale_price: Decimal) -> bool:
        if sale_price < self.min_amount:
            return False
        return self.max_amount is None or sale_price < self.max_amount

    @classmethod
    def from_dict(cls, data: dict) -> "TierRule":
        max_amount = _get(data, "max_amount", "maxAmount", "max")
        return cls(
            min_amount=to_decimal(_get(data, "min_amount", "minAmount", "min")),
            max_amount=to_decimal(max_amount) if max_amount is not None else None,
            split_rate=to_decimal(_get(data, "split_rate", "splitRate", "rate")),
        )


@dataclass
class PartnerDeduction:
    """A lead-source level deduction taken off the agent's side of every deal."""

    name: str
    type: str  # 'flat' or 'percentage'
    value: Decimal  # dollars if flat, fraction if percentage
    apply_order: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "PartnerDeduction":
        return cls(
            name=data["name"],
            type=data["type"],
            value=to_decimal(data.get("value")),
            apply_order=int(_get(data, "apply_order", "applyOrder", default=0) or 0),
        )


@dataclass
class PartnerProfile:
    """Payout configuration of a lead source."""

    payout_structure: str = PAYOUT_STANDARD
    name: str | None = None
    partnership_split_rate: Decimal | None = None
    tiered_splits: list[TierRule] = field(default_factory=list)
    custom_deductions: list[PartnerDeduction] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "PartnerProfile":
        tiers = _get(data, "tiered_splits", "tieredSplits") or []
        deductions = _get(data, "custom_deductions", "customDeductions") or []
        return cls(
            payout_structure=_get(data, "payout_structure", "payoutStructure") or PAYOUT_STANDARD,
            name=data.get("name"),
            partnership_split_rate=_optional_decimal(_get(data, "partnership_split_rate", "partnershipSplitRate")),
            tiered_splits=[TierRule.from_dict(t) for t in tiers],
            custom_deductions=[PartnerDeduction.from_dict(d) for d in deductions],
        )


@dataclass(frozen=True)
class FlatAdjustment:
    """A deal-level dollar amount, either part of GCI or taken after it."""

    id: str
    name: str
    value: Decimal
    include_in_gci: bool = True
    is_waived: bool = False
    apply_order: int = 0

    type = TYPE_FLAT


@dataclass(frozen=True)
class PercentageAdjustment:
    """A deal-level rate applied to the subtotal named by ``percent_basis``."""

    id: str
    name: str
    value: Decimal  # fraction, 0.05 == 5%
    percent_basis: str = BASIS_GROSS
    is_waived: bool = False
    apply_order: int = 0

    type = TYPE_PERCENTAGE

    @property
    def include_in_gci(self) -> bool:
        return self.percent_basis == BASIS_GROSS


AdjustmentItem = Union[FlatAdjustment, PercentageAdjustment]


def adjustment_from_dict(data: dict, scale: str = SCALE_FRACTION) -> AdjustmentItem:
    """
    Build the right adjustment shape from a loosely-typed stored record.

    Fields that have no meaning for the record's type are dropped: a flat
    record loses ``percent_basis`` and a percentage record derives
    ``include_in_gci`` from its basis instead of reading it.
    """
    item_type = data.get("type", TYPE_FLAT)
    item_id = str(data.get("id") or "")
    name = data.get("name") or ""
    is_waived = _flag(data, "is_waived", "isWaived", default=False)
    apply_order = int(_get(data, "apply_order", "applyOrder", default=0) or 0)
    value = to_decimal(data.get("value"))

    if item_type == TYPE_PERCENTAGE:
        if scale == SCALE_PERCENT:
            value = percent_to_fraction(value)
        return PercentageAdjustment(
            id=item_id,
            name=name,
            value=value,
            percent_basis=_get(data, "percent_basis", "percentBasis") or BASIS_GROSS,
            is_waived=is_waived,
            apply_order=apply_order,
        )

    if item_type != TYPE_FLAT:
        raise ValueError(f"Invalid adjustment type: {item_type}. Must be 'flat' or 'percentage'")

    include_in_gci = _flag(data, "include_in_gci", "includeInGci", default=True)
    return FlatAdjustment(
        id=item_id,
        name=name,
        value=value,
        include_in_gci=include_in_gci,
        is_waived=is_waived,
        apply_order=apply_order,
    )


def adjustment_to_dict(item: AdjustmentItem, scale: str = SCALE_FRACTION) -> dict:
    """Inverse of adjustment_from_dict."""
    data = {
        "id": item.id,
        "name": item.name,
        "type": item.type,
        "is_waived": item.is_waived,
        "apply_order": item.apply_order,
        "include_in_gci": item.include_in_gci,
    }
    if isinstance(item, PercentageAdjustment):
        data["value"] = fraction_to_percent(item.value) if scale == SCALE_PERCENT else item.value
        data["percent_basis"] = item.percent_basis
    else:
        data["value"] = item.value
        data["percent_basis"] = None
    return data


def toggle_adjustment_type(item: AdjustmentItem) -> AdjustmentItem:
    """
    Switch an adjustment between flat and percentage.

    The value resets to 0. The GCI placement carries over: a flat item in GCI
    becomes a percentage of gross, one outside GCI becomes a percentage of
    total GCI, and a percentage item is in GCI only if its basis was gross.
    """
    if isinstance(item, FlatAdjustment):
        return PercentageAdjustment(
            id=item.id,
            name=item.name,
            value=ZERO,
            percent_basis=BASIS_GROSS if item.include_in_gci else BASIS_TOTAL_GCI,
            is_waived=item.is_waived,
            apply_order=item.apply_order,
        )
    return FlatAdjustment(
        id=item.id,
        name=item.name,
        value=ZERO,
        include_in_gci=item.include_in_gci,
        is_waived=item.is_waived,
        apply_order=item.apply_order,
    )


@dataclass(frozen=True)
class CalculationOptions:
    """Switches that change how a breakdown is computed."""

    prefer_actual: bool = True
    include_referral_in: bool = False
    partner_deduction_basis: str = "gross"  # 'gross' or 'running'

    DEDUCTION_BASES = ("gross", "running")

    @classmethod
    def from_dict(cls, data: dict | None) -> "CalculationOptions":
        data = data or {}
        return cls(
            prefer_actual=_flag(data, "prefer_actual", default=True),
            include_referral_in=_flag(data, "include_referral_in", default=False),
            partner_deduction_basis=data.get("partner_deduction_basis", "gross"),
        )


@dataclass
class DealInput:
    """Complete input for computing a deal's commission."""

    terms: SaleTerms
    partner: PartnerProfile | None = None
    deductions: list[AdjustmentItem] = field(default_factory=list)
    credits: list[AdjustmentItem] = field(default_factory=list)
    options: CalculationOptions = field(default_factory=CalculationOptions)
    deal_name: str = "Unnamed deal"
    percent_scale: str = SCALE_FRACTION

    @classmethod
    def from_dict(cls, data: dict) -> "DealInput":
        options = data.get("options") or {}
        scale = options.get("percent_scale", SCALE_FRACTION)
        if scale not in SCALES:
            raise ValueError(f"Invalid percent_scale: {scale}. Must be 'fraction' or 'percent'")
        lead_source = data.get("lead_source")
        return cls(
            terms=SaleTerms.from_dict(data["terms"]),
            partner=PartnerProfile.from_dict(lead_source) if lead_source else None,
            deductions=[adjustment_from_dict(d, scale) for d in data.get("deductions") or []],
            credits=[adjustment_from_dict(c, scale) for c in data.get("credits") or []],
            options=CalculationOptions.from_dict(options),
            deal_name=data.get("deal_name") or "Unnamed deal",
            percent_scale=scale,
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass(frozen=True)
class DeductionDetail:
    """Dollar amount taken by one partner deduction."""

    name: str
    amount: Decimal


@dataclass(frozen=True)
class CommissionBreakdown:
    """Every subtotal of the gross to net waterfall, before deal-level adjustments."""

    sale_price: Decimal = ZERO
    effective_brokerage_rate: Decimal = ZERO
    gross_commission: Decimal = ZERO
    after_partnership_split: Decimal = ZERO
    after_brokerage_split: Decimal = ZERO
    after_referral_out: Decimal = ZERO
    after_referral_in: Decimal = ZERO
    transaction_fee_amount: Decimal = ZERO
    custom_deductions_total: Decimal = ZERO
    deduction_details: tuple[DeductionDetail, ...] = ()
    net_before_deal_adjustments: Decimal = ZERO


@dataclass(frozen=True)
class AdjustmentLine:
    """Display row for one deal-level deduction or credit."""

    id: str
    name: str
    kind: str  # 'deduction' or 'credit'
    index: int  # position in the caller's deductions or credits list
    phase: str  # 'gci', 'total_gci' or 'net'
    amount: Decimal
    included: bool
    item: AdjustmentItem


@dataclass(frozen=True)
class DealAdjustmentResult:
    """
    Outcome of the deal-level adjustment waterfall.

    Note: non_gci_* totals cover the total-GCI and net phases together; the
    GCI phase is already reflected in reported_gci.
    """

    reported_gci: Decimal = ZERO
    net_to_agent: Decimal = ZERO
    prelim_net: Decimal = ZERO
    gci_deductions_total: Decimal = ZERO
    gci_credits_total: Decimal = ZERO
    total_gci_deductions_total: Decimal = ZERO
    total_gci_credits_total: Decimal = ZERO
    net_deductions_total: Decimal = ZERO
    net_credits_total: Decimal = ZERO
    lines: tuple[AdjustmentLine, ...] = ()

    @property
    def non_gci_deductions_total(self) -> Decimal:
        return self.total_gci_deductions_total + self.net_deductions_total

    @property
    def non_gci_additions_total(self) -> Decimal:
        return self.total_gci_credits_total + self.net_credits_total

    def amount_at(self, kind: str, index: int) -> Decimal:
        """Dollar impact of the item at ``index`` of the deductions or credits list."""
        for line in self.lines:
            if line.kind == kind and line.index == index:
                return line.amount
        return ZERO

    def amount_for(self, item_id: str) -> Decimal:
        """
        Dollar impact of the item with this id, 0 when it is excluded or unknown.

        Ids are only unique when the caller makes them so; rows loaded without
        an id all share "" and must be looked up with amount_at instead.
        """
        if not item_id:
            raise ValueError("amount_for needs a non-empty id; use amount_at for id-less rows")
        for line in self.lines:
            if line.id == item_id:
                return line.amount
        return ZERO


@dataclass
class ProcessingContext:
    """
    Holds all intermediate state during deal processing.
    This is the "bag" that flows through the pipeline.
    """

    input: DealInput
    breakdown: CommissionBreakdown = field(default_factory=CommissionBreakdown)
    adjustments: DealAdjustmentResult = field(default_factory=DealAdjustmentResult)


@dataclass
class DealResult:
    """Final output of deal processing."""

    deal_summary: dict
    breakdown: dict
    partner_deductions: list
    adjustments: list
    totals: dict
