"""
Assessment scoring: per-category BRI scores, the composite BRI and the core score.
"""

from exitready.services.scoring.category_scorer import (
    AssessmentQuestion,
    AssessmentResponse,
    CategoryScore,
    CategoryScoringResult,
    deduplicate_responses,
    score_categories,
)
from exitready.services.scoring.core_score import CoreFactors, calculate_core_score

__all__ = [
    "AssessmentQuestion",
    "AssessmentResponse",
    "CategoryScore",
    "CategoryScoringResult",
    "CoreFactors",
    "calculate_core_score",
    "deduplicate_responses",
    "score_categories",
]
