"""
Unit tests for valuation/value_gap.py
"""

from decimal import Decimal

import pytest

from exitready.services.valuation.industry_multiples import DEFAULT_MULTIPLES, IndustryMultiples
from exitready.services.valuation.multiple_adjustments import MultipleAdjustment, summarize_adjustments
from exitready.services.valuation.risk_discounts import (
    ADDRESSABLE,
    CONCENTRATION_SINGLE_NAME,
    DLOM_NAME,
    KEY_PERSON_NAME,
    STRUCTURAL,
    RiskDiscount,
)
from exitready.services.valuation.valuation_v2 import calculate_valuation_v2
from exitready.services.valuation.value_gap import calculate_value_gap_v2


def quality(*impacts):
    return summarize_adjustments([
        MultipleAdjustment(factor=f"adj-{i}", name=f"adj-{i}", impact=Decimal(v), explanation="")
        for i, v in enumerate(impacts)
    ])


def discount(name, rate, reducibility) -> RiskDiscount:
    return RiskDiscount(name, Decimal(rate), "", reducibility)


def gap_for(ebitda, multiples, adjustments, discounts, **kwargs):
    valuation = calculate_valuation_v2(ebitda, multiples, adjustments, discounts, **kwargs)
    return calculate_value_gap_v2(ebitda, multiples, valuation)


class TestValueGapV2:
    def test_dlom_only_gap(self):
        result = gap_for(1_000_000, DEFAULT_MULTIPLES, quality(), [discount(DLOM_NAME, "0.2", STRUCTURAL)])
        assert result.potential_value == Decimal("6000000.00")
        assert result.current_value == Decimal("3600000.00")
        assert result.total_gap == Decimal("2400000.00")
        assert result.addressable_gap == Decimal("0.00")
        assert result.structural_gap == Decimal("900000.00")
        assert result.aspirational_gap == Decimal("1500000.00")

    def test_quality_shortfall_is_addressable(self):
        result = gap_for(1_000_000, DEFAULT_MULTIPLES, quality("-0.2"), [])
        # median 4.5 → quality 3.6: 0.9x shortfall
        assert result.addressable_gap == Decimal("900000.00")
        assert result.structural_gap == Decimal("0.00")
        assert result.aspirational_gap == Decimal("1500000.00")

    def test_risk_gap_split_by_log_share(self):
        result = gap_for(
            1_000_000,
            DEFAULT_MULTIPLES,
            quality(),
            [
                discount(DLOM_NAME, "0.2", STRUCTURAL),
                discount(KEY_PERSON_NAME, "0.2", ADDRESSABLE),
            ],
        )
        # Equal rates share the risk gap equally.
        assert result.addressable_gap == result.structural_gap
        names = {c.name: c.bucket for c in result.components}
        assert names[DLOM_NAME] == "structural"
        assert names[KEY_PERSON_NAME] == "addressable"

    def test_concentration_is_structural(self):
        result = gap_for(
            1_000_000, DEFAULT_MULTIPLES, quality(),
            [discount(CONCENTRATION_SINGLE_NAME, "0.15", STRUCTURAL)],
        )
        assert result.structural_gap > 0
        assert result.addressable_gap == Decimal("0.00")

    def test_explicit_risk_multiplier_without_discounts(self):
        result = gap_for(1_000_000, DEFAULT_MULTIPLES, quality(), [], risk_multiplier="0.8")
        assert result.structural_gap == Decimal("900000.00")

    @pytest.mark.parametrize("ebitda", [0, -100_000])
    def test_non_positive_ebitda_has_no_gap(self, ebitda):
        result = gap_for(ebitda, DEFAULT_MULTIPLES, quality(), [discount(DLOM_NAME, "0.2", STRUCTURAL)])
        assert result.total_gap == 0
        assert result.addressable_gap == result.structural_gap == result.aspirational_gap == 0

    def test_no_gap_when_current_exceeds_potential(self):
        result = gap_for(1_000_000, IndustryMultiples.create(4, 4), quality("0.5"), [])
        assert result.total_gap == 0

    @pytest.mark.parametrize("ebitda, impacts, discounts", [
        (1_000_000, (), [("dlom", "0.18", STRUCTURAL)]),
        (333_333, ("-0.18", "0.12"), [("dlom", "0.22", STRUCTURAL), ("key", "0.11", ADDRESSABLE)]),
        (1_234_567, ("-0.35", "-0.2", "-0.25"), [
            ("dlom", "0.25", STRUCTURAL), ("key", "0.19", ADDRESSABLE),
            ("conc", "0.15", STRUCTURAL), ("docs", "0.05", ADDRESSABLE), ("legal", "0.08", ADDRESSABLE),
        ]),
        (987_654, ("0.25", "0.2"), [("dlom", "0.10", STRUCTURAL)]),
        (50_001, ("-0.9",), [("dlom", "0.18", STRUCTURAL), ("key", "0.30", ADDRESSABLE)]),
    ])
    def test_buckets_sum_to_total(self, ebitda, impacts, discounts):
        result = gap_for(
            ebitda, DEFAULT_MULTIPLES, quality(*impacts),
            [discount(name, rate, kind) for name, rate, kind in discounts],
        )
        assert result.addressable_gap + result.structural_gap + result.aspirational_gap == result.total_gap
        assert result.addressable_gap >= 0
        assert result.structural_gap >= 0
        assert result.aspirational_gap >= 0
        assert abs(result.total_gap - (result.potential_value - result.current_value)) <= Decimal("0.01")
