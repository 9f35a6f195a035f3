"""
Tests for model parsing and the flat/percentage adjustment shapes.
"""

from decimal import Decimal

import pytest

from gci_engine.models import (
    CalculationOptions,
    DealInput,
    FlatAdjustment,
    PartnerProfile,
    PercentageAdjustment,
    SaleTerms,
    TierRule,
    adjustment_from_dict,
    adjustment_to_dict,
    toggle_adjustment_type,
)


class TestSaleTermsParsing:

    def test_snake_case(self):
        terms = SaleTerms.from_dict({"actual_sale_price": 500000, "gross_commission_rate": 0.03})
        assert terms.actual_sale_price == Decimal("500000")
        assert terms.gross_commission_rate == Decimal("0.03")

    def test_camel_case(self):
        terms = SaleTerms.from_dict({"expectedSalePrice": 400000, "brokerageSplitRate": 0.2, "transactionFee": 250})
        assert terms.expected_sale_price == Decimal("400000")
        assert terms.brokerage_split_rate == Decimal("0.2")
        assert terms.transaction_fee == Decimal("250")

    def test_missing_optional_fields_stay_none(self):
        terms = SaleTerms.from_dict({})
        assert terms.actual_sale_price is None
        assert terms.referral_out_rate is None
        assert terms.transaction_fee == Decimal("0")


class TestPartnerProfileParsing:

    def test_tiered(self):
        profile = PartnerProfile.from_dict({
            "name": "Zillow Flex",
            "payout_structure": "tiered",
            "tiered_splits": [
                {"min_amount": 0, "max_amount": 300000, "split_rate": 0.3},
                {"min_amount": 300000, "max_amount": None, "split_rate": 0.2},
            ],
        })
        assert profile.payout_structure == "tiered"
        assert profile.tiered_splits[1] == TierRule(Decimal("300000"), None, Decimal("0.2"))

    def test_custom_deductions(self):
        profile = PartnerProfile.from_dict({
            "payout_structure": "standard",
            "custom_deductions": [{"name": "E&O", "type": "flat", "value": 100, "apply_order": 2}],
        })
        assert profile.custom_deductions[0].value == Decimal("100")
        assert profile.custom_deductions[0].apply_order == 2

    def test_missing_structure_is_standard(self):
        assert PartnerProfile.from_dict({}).payout_structure == "standard"


class TestAdjustmentFromDict:
    """Stored records become one of two exclusive shapes."""

    def test_flat_drops_percent_basis(self):
        item = adjustment_from_dict({"id": "1", "name": "TC", "type": "flat", "value": 200,
                                     "include_in_gci": False, "percent_basis": "net"})
        assert isinstance(item, FlatAdjustment)
        assert item.include_in_gci is False
        assert not hasattr(item, "percent_basis")

    def test_flat_defaults_into_gci(self):
        item = adjustment_from_dict({"id": "1", "name": "TC", "type": "flat", "value": 200})
        assert item.include_in_gci is True

    def test_percentage_derives_include_in_gci(self):
        item = adjustment_from_dict({"id": "2", "name": "Team", "type": "percentage", "value": 0.1,
                                     "percent_basis": "gross", "include_in_gci": False})
        assert isinstance(item, PercentageAdjustment)
        assert item.include_in_gci is True

    def test_percentage_outside_gci(self):
        item = adjustment_from_dict({"id": "2", "name": "Cap", "type": "percentage", "value": 0.1,
                                     "percentBasis": "net"})
        assert item.percent_basis == "net"
        assert item.include_in_gci is False

    def test_percentage_default_basis(self):
        item = adjustment_from_dict({"id": "2", "name": "Team", "type": "percentage", "value": 0.1})
        assert item.percent_basis == "gross"

    def test_percent_scale_divides_by_100(self):
        item = adjustment_from_dict({"id": "3", "name": "Bonus", "type": "percentage", "value": 5}, scale="percent")
        assert item.value == Decimal("0.05")

    def test_percent_scale_leaves_flat_alone(self):
        item = adjustment_from_dict({"id": "3", "name": "Fee", "type": "flat", "value": 5}, scale="percent")
        assert item.value == Decimal("5")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            adjustment_from_dict({"id": "4", "name": "?", "type": "sliding", "value": 1})

    @pytest.mark.parametrize("field", ["is_waived", "isWaived", "include_in_gci"])
    @pytest.mark.parametrize("raw", ["false", "true", 0, 1])
    def test_non_boolean_flags_rejected(self, field, raw):
        with pytest.raises(ValueError):
            adjustment_from_dict({"id": "1", "name": "TC", "type": "flat", "value": 200, field: raw})

    def test_null_flags_take_defaults(self):
        item = adjustment_from_dict({"id": "1", "name": "TC", "type": "flat", "value": 200,
                                     "is_waived": None, "include_in_gci": None})
        assert item.is_waived is False
        assert item.include_in_gci is True

    def test_include_in_gci_cannot_be_set_on_percentage(self):
        item = PercentageAdjustment(id="1", name="Team", value=Decimal("0.1"))
        with pytest.raises(AttributeError):
            item.include_in_gci = False


class TestAdjustmentToDict:

    def test_percentage_to_percent_scale(self):
        item = PercentageAdjustment(id="1", name="Bonus", value=Decimal("0.05"), percent_basis="net")
        data = adjustment_to_dict(item, scale="percent")
        assert data["value"] == Decimal("5")
        assert data["percent_basis"] == "net"
        assert data["include_in_gci"] is False

    def test_flat_clears_basis(self):
        data = adjustment_to_dict(FlatAdjustment(id="1", name="TC", value=Decimal("200")))
        assert data["percent_basis"] is None
        assert data["include_in_gci"] is True

    def test_round_trip_through_form_scale(self):
        item = PercentageAdjustment(id="1", name="Bonus", value=Decimal("0.025"), percent_basis="totalGci")
        assert adjustment_from_dict(adjustment_to_dict(item, "percent"), "percent") == item


class TestToggleAdjustmentType:
    """Switching type resets the value and re-derives GCI placement."""

    def test_flat_in_gci_becomes_gross_percentage(self):
        toggled = toggle_adjustment_type(FlatAdjustment(id="1", name="TC", value=Decimal("200")))
        assert isinstance(toggled, PercentageAdjustment)
        assert toggled.value == Decimal("0")
        assert toggled.percent_basis == "gross"

    def test_flat_outside_gci_becomes_total_gci_percentage(self):
        toggled = toggle_adjustment_type(
            FlatAdjustment(id="1", name="TC", value=Decimal("200"), include_in_gci=False)
        )
        assert toggled.percent_basis == "totalGci"

    def test_percentage_becomes_flat(self):
        toggled = toggle_adjustment_type(
            PercentageAdjustment(id="1", name="Cap", value=Decimal("0.1"), percent_basis="net", apply_order=3)
        )
        assert isinstance(toggled, FlatAdjustment)
        assert toggled.value == Decimal("0")
        assert toggled.include_in_gci is False
        assert toggled.apply_order == 3
        assert not hasattr(toggled, "percent_basis")


class TestDealInputParsing:

    def test_full_payload(self):
        data = DealInput.from_dict({
            "deal_name": "12 Elm St",
            "terms": {"actual_sale_price": 500000},
            "lead_source": {"name": "Sphere", "payout_structure": "standard"},
            "deductions": [{"id": "d1", "name": "TC", "type": "flat", "value": 200}],
            "credits": [{"id": "c1", "name": "Bonus", "type": "percentage", "value": 5, "percent_basis": "net"}],
            "options": {"percent_scale": "percent", "prefer_actual": False},
        })
        assert data.deal_name == "12 Elm St"
        assert data.partner.name == "Sphere"
        assert data.credits[0].value == Decimal("0.05")
        assert data.options.prefer_actual is False

    def test_no_lead_source(self):
        data = DealInput.from_dict({"terms": {}})
        assert data.partner is None
        assert data.deductions == []

    def test_missing_terms_raises(self):
        with pytest.raises(KeyError):
            DealInput.from_dict({})

    def test_invalid_scale_raises(self):
        with pytest.raises(ValueError):
            DealInput.from_dict({"terms": {}, "options": {"percent_scale": "basis_points"}})


class TestCalculationOptionsParsing:

    def test_defaults(self):
        options = CalculationOptions.from_dict(None)
        assert options.prefer_actual is True
        assert options.include_referral_in is False

    def test_real_booleans(self):
        options = CalculationOptions.from_dict({"prefer_actual": False, "include_referral_in": True})
        assert options.prefer_actual is False
        assert options.include_referral_in is True

    @pytest.mark.parametrize("field", ["prefer_actual", "include_referral_in"])
    def test_string_flag_rejected(self, field):
        with pytest.raises(ValueError):
            CalculationOptions.from_dict({field: "false"})
