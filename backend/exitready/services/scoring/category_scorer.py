"""
category_scorer.py — Per-Category and Composite BRI Scoring

Purpose:
- Turn raw assessment responses into a 0-1 score per BRI category.
- Combine category scores into one weight-normalized composite (the BRI score).

Algorithm:
1. Deduplicate: keep only the latest-updated response per question, across
   every assessment instance the responses came from.
2. Category score = earned points / max points of every active question in
   the category. Unanswered questions earn 0 but still count in the max.
3. BRI = Σ(score × weight) / Σ(weight), over categories with weight > 0 and
   a non-zero max.

Missing data:
- A category with no active questions scores 0 and is left out of the BRI.
- When no category carries weight, the BRI is None ("no score available").
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from exitready.core.categories import (
    BRI_CATEGORIES,
    DEFAULT_BRI_WEIGHTS,
    BriCategory,
    CategoryKey,
    normalize_weights,
    parse_category,
)
from exitready.core.logging import get_logger
from exitready.core.numeric import ONE, ZERO, Number, clamp, dec, safe_divide, to_decimal

logger = get_logger(__name__)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class AssessmentResponse:
    """One answer to one assessment question."""
    question_id: str
    category: BriCategory
    max_impact_points: Decimal
    score_value: Optional[Decimal]   # None when no option is selected
    updated_at: datetime

    @classmethod
    def create(
        cls,
        question_id: str,
        category: CategoryKey,
        max_impact_points: Number,
        score_value: Optional[Number],
        updated_at: datetime,
    ) -> "AssessmentResponse":
        """Build a response from loosely typed values (str categories, floats)."""
        return cls(
            question_id=question_id,
            category=parse_category(category),
            max_impact_points=dec(max_impact_points),
            score_value=to_decimal(score_value),
            updated_at=updated_at,
        )


@dataclass(frozen=True)
class AssessmentQuestion:
    """An active question; used to count unanswered questions in the max."""
    question_id: str
    category: BriCategory
    max_impact_points: Decimal


@dataclass(frozen=True)
class CategoryScore:
    category: BriCategory
    score: Decimal                   # 0-1
    earned_points: Decimal
    max_points: Decimal
    question_count: int
    answered_count: int

    def has_questions(self) -> bool:
        return self.max_points > 0


@dataclass(frozen=True)
class CategoryScoringResult:
    """Scores for all six categories plus the composite BRI."""
    categories: List[CategoryScore] = field(default_factory=list)
    bri_score: Optional[Decimal] = None   # None when total weight is zero

    @property
    def category_scores(self) -> Dict[BriCategory, Decimal]:
        return {c.category: c.score for c in self.categories}

    def get(self, category: CategoryKey) -> CategoryScore:
        wanted = parse_category(category)
        for category_score in self.categories:
            if category_score.category == wanted:
                return category_score
        raise KeyError(wanted)


# =============================================================================
# Deduplication
# =============================================================================

def deduplicate_responses(responses: Iterable[AssessmentResponse]) -> List[AssessmentResponse]:
    """
    Keep only the most recently updated response per question.

    Re-answering one category in a new assessment must not zero out another
    category's untouched answers, so deduplication is done per question, not
    per assessment. On equal timestamps the later response in input order wins.

    Returns:
        Responses in first-seen question order
    """
    latest: Dict[str, AssessmentResponse] = {}
    for response in responses:
        current = latest.get(response.question_id)
        if current is None or response.updated_at >= current.updated_at:
            latest[response.question_id] = response
    return list(latest.values())


# =============================================================================
# Scoring
# =============================================================================

def _score_category(
    category: BriCategory,
    max_by_question: Mapping[str, Decimal],
    earned_by_question: Mapping[str, Optional[Decimal]],
) -> CategoryScore:
    max_points = sum(max_by_question.values(), ZERO)
    earned = sum((v for v in earned_by_question.values() if v is not None), ZERO)
    answered = sum(1 for v in earned_by_question.values() if v is not None)
    score = clamp(safe_divide(earned, max_points), ZERO, ONE)
    return CategoryScore(
        category=category,
        score=score,
        earned_points=earned,
        max_points=max_points,
        question_count=len(max_by_question),
        answered_count=answered,
    )


def calculate_composite_score(
    categories: Sequence[CategoryScore],
    weights: Mapping[BriCategory, Decimal],
) -> Optional[Decimal]:
    """
    Weight-normalized composite of category scores.

    Categories with weight 0 or without any active question are excluded from
    both numerator and denominator.

    Returns:
        Composite in [0, 1], or None when no category carries weight
    """
    numerator = ZERO
    denominator = ZERO
    for category_score in categories:
        weight = weights.get(category_score.category, ZERO)
        if weight <= 0 or not category_score.has_questions():
            continue
        numerator += category_score.score * weight
        denominator += weight
    if denominator == 0:
        logger.debug("Composite BRI unavailable: total effective weight is zero")
        return None
    return clamp(numerator / denominator, ZERO, ONE)


def score_categories(
    responses: Iterable[AssessmentResponse],
    weights: Optional[Mapping[CategoryKey, Number]] = None,
    questions: Optional[Iterable[AssessmentQuestion]] = None,
) -> CategoryScoringResult:
    """
    Score assessment responses per category and as a composite BRI.

    Args:
        responses: Responses, possibly spanning several assessment instances
        weights: The single resolved weight set (see resolve_category_weights);
            defaults to DEFAULT_BRI_WEIGHTS
        questions: Active questions. When given, they define the max-points
            universe, so questions with no response at all still depress the
            score; responses to questions outside this set are ignored.

    Returns:
        CategoryScoringResult with one CategoryScore per category (fixed order)
    """
    resolved = DEFAULT_BRI_WEIGHTS if weights is None else normalize_weights(weights)
    latest = deduplicate_responses(responses)

    max_by_category: Dict[BriCategory, Dict[str, Decimal]] = {c: {} for c in BRI_CATEGORIES}
    earned_by_category: Dict[BriCategory, Dict[str, Optional[Decimal]]] = {c: {} for c in BRI_CATEGORIES}

    if questions is not None:
        active: Dict[str, AssessmentQuestion] = {q.question_id: q for q in questions}
        for question in active.values():
            max_by_category[question.category][question.question_id] = question.max_impact_points
            earned_by_category[question.category][question.question_id] = None
        for response in latest:
            question = active.get(response.question_id)
            if question is None:
                continue
            earned_by_category[question.category][question.question_id] = response.score_value
    else:
        for response in latest:
            max_by_category[response.category][response.question_id] = response.max_impact_points
            earned_by_category[response.category][response.question_id] = response.score_value

    categories = [
        _score_category(category, max_by_category[category], earned_by_category[category])
        for category in BRI_CATEGORIES
    ]
    bri_score = calculate_composite_score(categories, resolved)

    logger.debug(
        "Scored %d deduplicated responses across %d questions; BRI=%s",
        len(latest), sum(c.question_count for c in categories), bri_score,
    )
    return CategoryScoringResult(categories=categories, bri_score=bri_score)
