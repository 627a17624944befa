"""
Unit tests for scoring/category_scorer.py and scoring/core_score.py
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import List

import pytest

from exitready.core.categories import BRI_CATEGORIES, BriCategory
from exitready.services.scoring.category_scorer import (
    AssessmentQuestion,
    AssessmentResponse,
    calculate_composite_score,
    deduplicate_responses,
    score_categories,
)
from exitready.services.scoring.core_score import (
    CoreFactors,
    calculate_core_score,
    score_factor,
)

T0 = datetime(2026, 1, 15, 9, 0, 0)


def response(question_id, category, max_points, score, minutes=0) -> AssessmentResponse:
    return AssessmentResponse.create(question_id, category, max_points, score, T0 + timedelta(minutes=minutes))


@pytest.fixture
def sample_responses() -> List[AssessmentResponse]:
    """Financial: 8/20 (one unanswered). Operational: 10/10."""
    return [
        response("fin-1", "FINANCIAL", 10, 8),
        response("fin-2", "FINANCIAL", 10, None),
        response("ops-1", "OPERATIONAL", 10, 10),
    ]


class TestDeduplication:
    def test_latest_response_per_question_wins(self):
        older = response("fin-1", "FINANCIAL", 10, 2, minutes=0)
        newer = response("fin-1", "FINANCIAL", 10, 9, minutes=5)
        result = deduplicate_responses([newer, older])
        assert result == [newer]

    def test_equal_timestamps_keep_later_input(self):
        first = response("fin-1", "FINANCIAL", 10, 2)
        second = response("fin-1", "FINANCIAL", 10, 9)
        assert deduplicate_responses([first, second]) == [second]

    def test_other_questions_survive_reassessment(self):
        # A new assessment re-answers only the financial question.
        responses = [
            response("fin-1", "FINANCIAL", 10, 2, minutes=0),
            response("mkt-1", "MARKET", 10, 7, minutes=0),
            response("fin-1", "FINANCIAL", 10, 9, minutes=60),
        ]
        result = score_categories(responses)
        assert result.get("FINANCIAL").score == Decimal("0.9")
        assert result.get("MARKET").score == Decimal("0.7")


class TestCategoryScores:
    def test_unanswered_questions_count_in_max(self, sample_responses):
        result = score_categories(sample_responses)
        financial = result.get(BriCategory.FINANCIAL)
        assert financial.score == Decimal("0.4")
        assert financial.earned_points == Decimal("8")
        assert financial.max_points == Decimal("20")
        assert financial.question_count == 2
        assert financial.answered_count == 1

    def test_active_questions_define_the_universe(self, sample_responses):
        questions = [
            AssessmentQuestion("fin-1", BriCategory.FINANCIAL, Decimal("10")),
            AssessmentQuestion("fin-2", BriCategory.FINANCIAL, Decimal("10")),
            AssessmentQuestion("fin-3", BriCategory.FINANCIAL, Decimal("20")),
        ]
        result = score_categories(sample_responses, questions=questions)
        assert result.get("FINANCIAL").score == Decimal("8") / Decimal("40")
        # ops-1 is not an active question, so it is ignored.
        assert result.get("OPERATIONAL").has_questions() is False

    def test_all_six_categories_reported_in_order(self, sample_responses):
        result = score_categories(sample_responses)
        assert [c.category for c in result.categories] == list(BRI_CATEGORIES)

    def test_category_without_questions_scores_zero(self, sample_responses):
        market = score_categories(sample_responses).get("MARKET")
        assert market.score == Decimal("0")
        assert not market.has_questions()

    def test_scores_are_bounded(self):
        # Over-scored answer (bad data) is clamped to 1.
        result = score_categories([response("ops-1", "OPERATIONAL", 10, 15)])
        assert result.get("OPERATIONAL").score == Decimal("1")

    def test_get_unknown_category_raises(self, sample_responses):
        with pytest.raises(ValueError):
            score_categories(sample_responses).get("SALES")


class TestCompositeScore:
    def test_weighted_over_scored_categories_only(self, sample_responses):
        result = score_categories(sample_responses)
        # (0.4 × 0.25 + 1.0 × 0.20) / (0.25 + 0.20)
        assert result.bri_score == Decimal("0.30") / Decimal("0.45")

    def test_zero_total_weight_gives_none(self, sample_responses):
        result = score_categories(sample_responses, weights={"MARKET": 1})
        assert result.bri_score is None

    def test_no_responses_gives_none(self):
        assert score_categories([]).bri_score is None

    def test_zero_weight_category_excluded(self, sample_responses):
        result = score_categories(sample_responses, weights={"FINANCIAL": 0, "OPERATIONAL": 1})
        assert result.bri_score == Decimal("1")

    def test_composite_is_weighted_mean(self):
        categories = score_categories([
            response("fin-1", "FINANCIAL", 10, 5),
            response("leg-1", "LEGAL_TAX", 10, 10),
        ]).categories
        weights = {c: Decimal("1") for c in BRI_CATEGORIES}
        assert calculate_composite_score(categories, weights) == Decimal("0.75")


class TestCoreScore:
    def test_all_missing_is_neutral(self):
        assert calculate_core_score(CoreFactors()) == Decimal("0.5")

    def test_best_case_is_one(self):
        factors = CoreFactors(
            revenue_model="SUBSCRIPTION_SAAS",
            gross_margin_proxy="EXCELLENT",
            labor_intensity="LOW",
            asset_intensity="ASSET_LIGHT",
            owner_involvement="MINIMAL",
        )
        assert calculate_core_score(factors) == Decimal("1")

    def test_mixed_factors_average(self):
        factors = CoreFactors(
            revenue_model="SUBSCRIPTION_SAAS",
            gross_margin_proxy="EXCELLENT",
            labor_intensity="LOW",
            asset_intensity="ASSET_LIGHT",
            owner_involvement="CRITICAL",
        )
        assert calculate_core_score(factors) == Decimal("0.8")

    def test_unknown_value_raises(self):
        with pytest.raises(ValueError):
            calculate_core_score(CoreFactors(revenue_model="FREEMIUM"))

    def test_unknown_factor_raises(self):
        with pytest.raises(ValueError):
            score_factor("headcount", "LOW")
