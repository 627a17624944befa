"""
Unit tests for valuation/industry_multiples.py and valuation/ebitda.py
"""

from decimal import Decimal

import pytest

from exitready.core.categories import BRI_CATEGORIES
from exitready.services.valuation.ebitda import (
    RevenueSizeCategory,
    calculate_ebitda_improvement_potential,
    calculate_owner_comp_adjustment,
    market_salary_benchmark,
    normalize_ebitda,
    revenue_size_category,
)
from exitready.services.valuation.industry_multiples import (
    DEFAULT_MULTIPLES,
    IndustryMultiples,
    calculate_base_multiple,
    estimate_ebitda_from_revenue,
)


class TestIndustryMultiples:
    def test_create_coerces_values(self):
        multiples = IndustryMultiples.create(4, "7.5", 0.8, 1.2, source="NAICS 541511")
        assert multiples.ebitda_low == Decimal("4")
        assert multiples.ebitda_high == Decimal("7.5")
        assert multiples.revenue_low == Decimal("0.8")
        assert not multiples.has_margin_data

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError):
            IndustryMultiples.create(6, 3)

    def test_negative_multiple_rejected(self):
        with pytest.raises(ValueError):
            IndustryMultiples.create(-1, 3)

    def test_base_multiple_is_midpoint(self):
        assert calculate_base_multiple(Decimal("3"), Decimal("6")) == Decimal("4.5")


class TestRevenueEstimate:
    def test_default_range_estimate_is_rounded(self):
        # avg(10M × 0.5/6, 10M × 1.5/3) = 2,916,667 → nearest 100k
        assert estimate_ebitda_from_revenue(10_000_000) == Decimal("2900000")

    def test_margin_midpoint_used_when_available(self):
        multiples = IndustryMultiples.create(3, 6, 0.5, 1.5, ebitda_margin_low="0.10", ebitda_margin_high="0.20")
        assert estimate_ebitda_from_revenue(1_000_000, multiples) == Decimal("150000")

    def test_estimate_capped_at_35_percent_of_revenue(self):
        multiples = IndustryMultiples.create(1, 1, 2, 2)
        # Implied margin of 200% is capped at 35%.
        assert estimate_ebitda_from_revenue(1_000_000, multiples) == Decimal("400000")

    def test_non_positive_revenue(self):
        assert estimate_ebitda_from_revenue(0) == Decimal("0")


class TestRevenueSizeCategory:
    @pytest.mark.parametrize("revenue, expected", [
        (0, RevenueSizeCategory.UNDER_500K),
        (499_999, RevenueSizeCategory.UNDER_500K),
        (500_000, RevenueSizeCategory.FROM_500K_TO_1M),
        (2_000_000, RevenueSizeCategory.FROM_1M_TO_3M),
        (9_999_999, RevenueSizeCategory.FROM_3M_TO_10M),
        (10_000_000, RevenueSizeCategory.FROM_10M_TO_25M),
        (25_000_000, RevenueSizeCategory.OVER_25M),
    ])
    def test_bucket_bounds(self, revenue, expected):
        assert revenue_size_category(revenue) == expected


class TestOwnerCompensation:
    def test_default_benchmark(self):
        assert market_salary_benchmark(None) == Decimal("150000")

    def test_overpaid_owner_adds_back(self):
        assert calculate_owner_comp_adjustment(250_000, "FROM_1M_TO_3M") == Decimal("100000")

    def test_underpaid_owner_reduces_ebitda(self):
        assert calculate_owner_comp_adjustment(50_000, RevenueSizeCategory.FROM_1M_TO_3M) == Decimal("-100000")

    def test_unknown_size_category_raises(self):
        with pytest.raises(ValueError):
            market_salary_benchmark("MEGA")


class TestNormalizeEbitda:
    def test_full_adjustment_chain(self):
        result = normalize_ebitda(
            annual_revenue=2_000_000,
            annual_ebitda=300_000,
            add_backs=50_000,
            deductions=10_000,
            owner_compensation=200_000,
        )
        assert result.size_category == RevenueSizeCategory.FROM_1M_TO_3M
        assert result.owner_comp_adjustment == Decimal("50000")
        assert result.adjusted_ebitda == Decimal("390000")
        assert not result.used_revenue_estimate
        labels = [item.label for item in result.line_items]
        assert labels == ["Reported EBITDA", "Add-backs", "Deductions", "Owner Compensation Adjustment"]

    def test_underpaid_owner(self):
        result = normalize_ebitda(2_000_000, 300_000, owner_compensation=100_000)
        assert result.adjusted_ebitda == Decimal("250000")
        assert "below" in result.line_items[-1].explanation

    def test_owner_adjustment_skipped_without_compensation(self):
        result = normalize_ebitda(2_000_000, 300_000)
        assert result.owner_comp_adjustment == Decimal("0")
        assert result.adjusted_ebitda == Decimal("300000")

    @pytest.mark.parametrize("reported", [0, -250_000])
    def test_non_positive_ebitda_uses_revenue_estimate(self, reported):
        result = normalize_ebitda(10_000_000, reported)
        assert result.used_revenue_estimate
        assert result.base_ebitda == Decimal("2900000")
        assert result.line_items[0].label == "Estimated EBITDA"

    def test_explicit_size_category_overrides_revenue(self):
        result = normalize_ebitda(2_000_000, 300_000, owner_compensation=400_000, size_category="OVER_25M")
        assert result.owner_comp_adjustment == Decimal("0")


class TestImprovementPotential:
    def test_fully_ready_company_has_no_uplift(self):
        scores = {c: 1 for c in BRI_CATEGORIES}
        assert calculate_ebitda_improvement_potential(scores) == Decimal("0")

    def test_zero_scores_with_default_weights(self):
        scores = {c: 0 for c in BRI_CATEGORIES}
        assert calculate_ebitda_improvement_potential(scores) == Decimal("0.17")

    def test_unscored_categories_ignored(self):
        assert calculate_ebitda_improvement_potential({"FINANCIAL": 0}) == Decimal("0.05")

    def test_capped_at_25_percent(self):
        scores = {c: 0 for c in BRI_CATEGORIES}
        heavy = {c: Decimal("1") for c in BRI_CATEGORIES}
        assert calculate_ebitda_improvement_potential(scores, heavy) == Decimal("0.25")

    def test_default_multiples_source(self):
        assert DEFAULT_MULTIPLES.source == "Default SMB multiple range"
