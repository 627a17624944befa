"""
categories.py — Buyer Readiness Index (BRI) categories and weights

Purpose:
- Single source of truth for the six fixed BRI categories, their display
  labels and default weights.
- Resolve the active weight set through the three-tier chain
  (company override → global override → default).

This module does NOT:
- Read weight overrides from storage; callers pass them in.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union

from exitready.core.logging import get_logger
from exitready.core.numeric import Number, dec

logger = get_logger(__name__)


class UnknownCategoryError(ValueError):
    """Raised when a category value is not one of the six BRI categories."""


class BriCategory(str, Enum):
    FINANCIAL = "FINANCIAL"
    TRANSFERABILITY = "TRANSFERABILITY"
    OPERATIONAL = "OPERATIONAL"
    MARKET = "MARKET"
    LEGAL_TAX = "LEGAL_TAX"
    PERSONAL = "PERSONAL"


# Iteration order used everywhere category-by-category output is produced.
BRI_CATEGORIES = tuple(BriCategory)

VALID_BRI_CATEGORIES = {category.value for category in BriCategory}

CATEGORY_LABELS: Mapping[BriCategory, str] = MappingProxyType({
    BriCategory.FINANCIAL: "Financial Health",
    BriCategory.TRANSFERABILITY: "Transferability",
    BriCategory.OPERATIONAL: "Operations",
    BriCategory.MARKET: "Market Position",
    BriCategory.LEGAL_TAX: "Legal & Tax",
    BriCategory.PERSONAL: "Personal Readiness",
})

DEFAULT_BRI_WEIGHTS: Mapping[BriCategory, Decimal] = MappingProxyType({
    BriCategory.FINANCIAL: Decimal("0.25"),
    BriCategory.TRANSFERABILITY: Decimal("0.20"),
    BriCategory.OPERATIONAL: Decimal("0.20"),
    BriCategory.MARKET: Decimal("0.15"),
    BriCategory.LEGAL_TAX: Decimal("0.10"),
    BriCategory.PERSONAL: Decimal("0.10"),
})

CategoryWeights = Mapping[BriCategory, Decimal]
CategoryKey = Union[BriCategory, str]

WEIGHT_SOURCE_COMPANY = "company"
WEIGHT_SOURCE_GLOBAL = "global"
WEIGHT_SOURCE_DEFAULT = "default"


def parse_category(value: CategoryKey) -> BriCategory:
    """
    Coerce a category value to BriCategory.

    Raises:
        UnknownCategoryError: if the value is not a recognised category.
    """
    if isinstance(value, BriCategory):
        return value
    if isinstance(value, str) and value in VALID_BRI_CATEGORIES:
        return BriCategory(value)
    raise UnknownCategoryError(f"Unknown BRI category: {value!r}")


def category_label(category: CategoryKey) -> str:
    return CATEGORY_LABELS[parse_category(category)]


def normalize_weights(raw: Mapping[CategoryKey, Number]) -> Dict[BriCategory, Decimal]:
    """
    Validate a weight mapping and return it keyed by BriCategory.

    Categories absent from ``raw`` get weight 0 so an override always forms a
    complete set.

    Raises:
        UnknownCategoryError: on an unknown category key.
        ValueError: on a negative weight.
    """
    weights: Dict[BriCategory, Decimal] = {category: Decimal("0") for category in BRI_CATEGORIES}
    for key, value in raw.items():
        category = parse_category(key)
        weight = dec(value)
        if weight < 0:
            raise ValueError(f"Weight for {category.value} must be non-negative, got {weight}")
        weights[category] = weight
    return weights


@dataclass(frozen=True)
class ResolvedWeights:
    """The single active weight set and the tier it came from."""
    weights: Mapping[BriCategory, Decimal]
    source: str  # "company", "global" or "default"


def resolve_category_weights(
    company_weights: Optional[Mapping[CategoryKey, Number]] = None,
    global_weights: Optional[Mapping[CategoryKey, Number]] = None,
) -> ResolvedWeights:
    """
    Resolve the active category weights.

    Resolution order: per-company override → global override → hardcoded
    default. An empty or missing tier falls through to the next one.

    Args:
        company_weights: Company-specific override, if any
        global_weights: Global (platform-wide) override, if any

    Returns:
        ResolvedWeights with the chosen weight set and its source tier
    """
    if company_weights:
        logger.debug("Using company BRI weight override")
        return ResolvedWeights(MappingProxyType(normalize_weights(company_weights)), WEIGHT_SOURCE_COMPANY)
    if global_weights:
        logger.debug("Using global BRI weight override")
        return ResolvedWeights(MappingProxyType(normalize_weights(global_weights)), WEIGHT_SOURCE_GLOBAL)
    return ResolvedWeights(DEFAULT_BRI_WEIGHTS, WEIGHT_SOURCE_DEFAULT)
