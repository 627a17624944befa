"""
core_score.py — Core Factor Score

The core score summarizes five business-model factors that do not depend on
assessment answers. It positions the base multiple inside the industry range
(see valuation_v1.py).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Mapping, Optional

from exitready.core.logging import get_logger

logger = get_logger(__name__)

MISSING_FACTOR_SCORE = Decimal("0.5")

FACTOR_SCORES: Dict[str, Mapping[str, Decimal]] = {
    "revenue_model": {
        "PROJECT_BASED": Decimal("0.25"),
        "TRANSACTIONAL": Decimal("0.5"),
        "RECURRING_CONTRACTS": Decimal("0.75"),
        "SUBSCRIPTION_SAAS": Decimal("1.0"),
    },
    "gross_margin_proxy": {
        "LOW": Decimal("0.25"),
        "MODERATE": Decimal("0.5"),
        "GOOD": Decimal("0.75"),
        "EXCELLENT": Decimal("1.0"),
    },
    "labor_intensity": {
        "VERY_HIGH": Decimal("0.25"),
        "HIGH": Decimal("0.5"),
        "MODERATE": Decimal("0.75"),
        "LOW": Decimal("1.0"),
    },
    "asset_intensity": {
        "ASSET_HEAVY": Decimal("0.33"),
        "MODERATE": Decimal("0.67"),
        "ASSET_LIGHT": Decimal("1.0"),
    },
    "owner_involvement": {
        "CRITICAL": Decimal("0"),
        "HIGH": Decimal("0.25"),
        "MODERATE": Decimal("0.5"),
        "LOW": Decimal("0.75"),
        "MINIMAL": Decimal("1.0"),
    },
}


@dataclass(frozen=True)
class CoreFactors:
    """Business-model factors captured during onboarding. None = not answered."""
    revenue_model: Optional[str] = None
    gross_margin_proxy: Optional[str] = None
    labor_intensity: Optional[str] = None
    asset_intensity: Optional[str] = None
    owner_involvement: Optional[str] = None


def score_factor(factor: str, value: Optional[str]) -> Decimal:
    """
    Score a single core factor.

    Raises:
        ValueError: if the factor name or value is unknown
    """
    if factor not in FACTOR_SCORES:
        raise ValueError(f"Unknown core factor: {factor!r}")
    if value is None:
        return MISSING_FACTOR_SCORE
    table = FACTOR_SCORES[factor]
    if value not in table:
        raise ValueError(f"Unknown value {value!r} for core factor {factor}; expected one of {sorted(table)}")
    return table[value]


def calculate_core_score(factors: CoreFactors) -> Decimal:
    """Average of the five factor scores, each in [0, 1]."""
    scores = [score_factor(name, getattr(factors, name)) for name in FACTOR_SCORES]
    core = sum(scores, Decimal("0")) / Decimal(len(scores))
    logger.debug("Core score %s from factors %s", core, factors)
    return core
