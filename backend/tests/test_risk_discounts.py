"""
Unit tests for valuation/risk_discounts.py
"""

from decimal import Decimal

import pytest

from exitready.services.valuation.ebitda import RevenueSizeCategory
from exitready.services.valuation.risk_discounts import (
    ADDRESSABLE,
    DLOM_NAME,
    DOCUMENTATION_NAME,
    KEY_PERSON_NAME,
    LEGAL_TAX_NAME,
    STRUCTURAL,
    RiskDiscount,
    RiskProfile,
    calculate_concentration_discounts,
    calculate_dlom,
    calculate_key_person_discount,
    calculate_risk_discounts,
    summarize_risk_discounts,
)


class TestDlom:
    def test_default_rate_without_size(self):
        assert calculate_dlom(None).rate == Decimal("0.18")

    def test_rate_by_size(self):
        discount = calculate_dlom(RevenueSizeCategory.FROM_3M_TO_10M)
        assert discount.rate == Decimal("0.15")
        assert discount.reducibility == STRUCTURAL

    def test_smaller_companies_get_larger_dlom(self):
        rates = [calculate_dlom(size).rate for size in RevenueSizeCategory]
        assert rates == sorted(rates, reverse=True)


class TestKeyPerson:
    def test_base_rate_without_transferability(self):
        discount = calculate_key_person_discount(RiskProfile.create(owner_involvement="HIGH"))
        assert discount.rate == Decimal("0.15")
        assert discount.reducibility == ADDRESSABLE

    @pytest.mark.parametrize("transferability, expected", [
        ("1.0", Decimal("0.11")),
        ("0.0", Decimal("0.19")),
        ("0.5", Decimal("0.15")),
    ])
    def test_transferability_modulates_rate(self, transferability, expected):
        profile = RiskProfile.create(owner_involvement="HIGH", transferability_score=transferability)
        assert calculate_key_person_discount(profile).rate == expected

    def test_minimal_involvement_has_no_discount(self):
        assert calculate_key_person_discount(RiskProfile.create(owner_involvement="MINIMAL")) is None

    def test_unknown_involvement_rejected(self):
        with pytest.raises(ValueError):
            RiskProfile.create(owner_involvement="ABSENT")


class TestConcentration:
    def test_high_single_suppresses_top3(self):
        result = calculate_concentration_discounts(
            RiskProfile.create(top_customer_concentration="0.35", top3_customer_concentration="0.70")
        )
        assert [d.rate for d in result] == [Decimal("0.15")]
        assert all(d.is_structural for d in result)

    def test_moderate_single_and_top3(self):
        result = calculate_concentration_discounts(
            RiskProfile.create(top_customer_concentration="0.22", top3_customer_concentration="0.45")
        )
        assert [d.rate for d in result] == [Decimal("0.08"), Decimal("0.05")]


class TestCombinedDiscounts:
    def test_dlom_always_applies(self):
        summary = calculate_risk_discounts(RiskProfile.create())
        assert [d.name for d in summary.discounts] == [DLOM_NAME]
        assert summary.risk_multiplier == Decimal("0.82")
        assert summary.risk_severity_score == Decimal("0.18")
        assert summary.dlom_rate == Decimal("0.18")

    def test_documentation_and_legal_discounts(self):
        summary = calculate_risk_discounts(RiskProfile.create(financial_score="0.4", legal_tax_score="0.3"))
        rates = summary.rates_by_name()
        assert rates[DOCUMENTATION_NAME] == Decimal("0.05")
        assert rates[LEGAL_TAX_NAME] == Decimal("0.08")
        addressable = [d.name for d in summary.discounts if not d.is_structural]
        assert addressable == [DOCUMENTATION_NAME, LEGAL_TAX_NAME]

    def test_scores_at_threshold_do_not_trigger(self):
        summary = calculate_risk_discounts(RiskProfile.create(financial_score="0.5", legal_tax_score="0.4"))
        assert len(summary.discounts) == 1

    def test_multiplier_is_product(self):
        summary = calculate_risk_discounts(RiskProfile.create(
            owner_involvement="HIGH",
            revenue_size_category="FROM_3M_TO_10M",
        ))
        assert summary.rates_by_name()[KEY_PERSON_NAME] == Decimal("0.15")
        assert summary.risk_multiplier == Decimal("0.85") * Decimal("0.85")

    @pytest.mark.parametrize("rate", ["1", "-0.1", "1.5"])
    def test_invalid_rate_rejected(self, rate):
        with pytest.raises(ValueError):
            summarize_risk_discounts([RiskDiscount("Bad", Decimal(rate), "", STRUCTURAL)])
