"""
ebitda.py — Adjusted EBITDA Normalization

Purpose:
- Normalize reported EBITDA into the buyer's view of sustainable earnings:
  add-backs, deductions and an owner-compensation adjustment.
- Fall back to a revenue-based estimate when reported EBITDA is not positive.
- Estimate how much EBITDA could improve if BRI categories were fully addressed.

Owner compensation is normalized in BOTH directions: an underpaid owner masks
true labor cost (adjustment is negative), an overpaid owner inflates costs
(adjustment is positive).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Mapping, Optional, Union

from exitready.core.categories import (
    BRI_CATEGORIES,
    DEFAULT_BRI_WEIGHTS,
    BriCategory,
    CategoryKey,
    parse_category,
)
from exitready.core.logging import get_logger
from exitready.core.numeric import ZERO, Number, dec, to_decimal
from exitready.services.valuation.industry_multiples import (
    DEFAULT_MULTIPLES,
    IndustryMultiples,
    estimate_ebitda_from_revenue,
)

logger = get_logger(__name__)


# =============================================================================
# Revenue Size Categories
# =============================================================================

class RevenueSizeCategory(str, Enum):
    UNDER_500K = "UNDER_500K"
    FROM_500K_TO_1M = "FROM_500K_TO_1M"
    FROM_1M_TO_3M = "FROM_1M_TO_3M"
    FROM_3M_TO_10M = "FROM_3M_TO_10M"
    FROM_10M_TO_25M = "FROM_10M_TO_25M"
    OVER_25M = "OVER_25M"


SIZE_CATEGORY_LABELS: Dict[RevenueSizeCategory, str] = {
    RevenueSizeCategory.UNDER_500K: "under $500K",
    RevenueSizeCategory.FROM_500K_TO_1M: "$500K-$1M",
    RevenueSizeCategory.FROM_1M_TO_3M: "$1M-$3M",
    RevenueSizeCategory.FROM_3M_TO_10M: "$3M-$10M",
    RevenueSizeCategory.FROM_10M_TO_25M: "$10M-$25M",
    RevenueSizeCategory.OVER_25M: "over $25M",
}

# Upper bounds (exclusive); anything above the last bound is OVER_25M.
_SIZE_BOUNDS = (
    (Decimal("500000"), RevenueSizeCategory.UNDER_500K),
    (Decimal("1000000"), RevenueSizeCategory.FROM_500K_TO_1M),
    (Decimal("3000000"), RevenueSizeCategory.FROM_1M_TO_3M),
    (Decimal("10000000"), RevenueSizeCategory.FROM_3M_TO_10M),
    (Decimal("25000000"), RevenueSizeCategory.FROM_10M_TO_25M),
)


def parse_size_category(value: Union[RevenueSizeCategory, str]) -> RevenueSizeCategory:
    if isinstance(value, RevenueSizeCategory):
        return value
    try:
        return RevenueSizeCategory(value)
    except ValueError:
        raise ValueError(f"Unknown revenue size category: {value!r}") from None


def revenue_size_category(revenue: Number) -> RevenueSizeCategory:
    """Bucket annual revenue into a size category."""
    rev = dec(revenue)
    for upper, category in _SIZE_BOUNDS:
        if rev < upper:
            return category
    return RevenueSizeCategory.OVER_25M


# =============================================================================
# Owner Compensation
# =============================================================================

MARKET_SALARY_BY_SIZE: Dict[RevenueSizeCategory, Decimal] = {
    RevenueSizeCategory.UNDER_500K: Decimal("80000"),
    RevenueSizeCategory.FROM_500K_TO_1M: Decimal("120000"),
    RevenueSizeCategory.FROM_1M_TO_3M: Decimal("150000"),
    RevenueSizeCategory.FROM_3M_TO_10M: Decimal("200000"),
    RevenueSizeCategory.FROM_10M_TO_25M: Decimal("300000"),
    RevenueSizeCategory.OVER_25M: Decimal("400000"),
}
DEFAULT_MARKET_SALARY = Decimal("150000")


def market_salary_benchmark(size_category: Optional[Union[RevenueSizeCategory, str]]) -> Decimal:
    """Replacement-manager salary a buyer would pay for a company of this size."""
    if size_category is None:
        return DEFAULT_MARKET_SALARY
    return MARKET_SALARY_BY_SIZE[parse_size_category(size_category)]


def calculate_owner_comp_adjustment(
    owner_compensation: Number,
    size_category: Optional[Union[RevenueSizeCategory, str]],
) -> Decimal:
    """
    Owner compensation minus the market salary benchmark.

    Positive when the owner is overpaid (EBITDA understated), negative when
    underpaid (EBITDA overstated).
    """
    return dec(owner_compensation) - market_salary_benchmark(size_category)


# =============================================================================
# Adjusted EBITDA
# =============================================================================

@dataclass(frozen=True)
class EbitdaLineItem:
    label: str
    amount: Decimal
    explanation: str


@dataclass(frozen=True)
class AdjustedEbitdaResult:
    """Adjusted EBITDA with the line items that produced it."""
    reported_ebitda: Decimal
    base_ebitda: Decimal
    used_revenue_estimate: bool
    add_backs: Decimal
    deductions: Decimal
    owner_comp_adjustment: Decimal
    adjusted_ebitda: Decimal
    size_category: Optional[RevenueSizeCategory] = None
    line_items: List[EbitdaLineItem] = field(default_factory=list)


def normalize_ebitda(
    annual_revenue: Number,
    annual_ebitda: Number,
    add_backs: Number = 0,
    deductions: Number = 0,
    owner_compensation: Optional[Number] = None,
    multiples: IndustryMultiples = DEFAULT_MULTIPLES,
    size_category: Optional[Union[RevenueSizeCategory, str]] = None,
) -> AdjustedEbitdaResult:
    """
    Compute adjusted EBITDA.

    adjusted = base + add_backs + owner_comp_adjustment - deductions, where
    base is the reported EBITDA, or a revenue-based estimate if reported
    EBITDA is zero or negative.

    Args:
        annual_revenue: Annual revenue
        annual_ebitda: Reported EBITDA (signed)
        add_backs: Total one-time/discretionary expenses added back
        deductions: Total non-recurring income removed
        owner_compensation: Owner's total compensation; None skips the adjustment
        multiples: Industry multiples (margins used for the fallback estimate)
        size_category: Revenue size category; inferred from revenue when None

    Returns:
        AdjustedEbitdaResult with an explained line item per component
    """
    revenue = dec(annual_revenue)
    reported = dec(annual_ebitda)
    add_back_total = dec(add_backs)
    deduction_total = dec(deductions)
    category = parse_size_category(size_category) if size_category is not None else revenue_size_category(revenue)

    line_items: List[EbitdaLineItem] = []
    used_estimate = reported <= 0
    if used_estimate:
        base = estimate_ebitda_from_revenue(revenue, multiples)
        logger.debug("Reported EBITDA %s not positive; using revenue estimate %s", reported, base)
        line_items.append(EbitdaLineItem(
            "Estimated EBITDA",
            base,
            f"Reported EBITDA of ${reported:,.0f} is not positive; estimated from revenue using "
            f"industry averages ({multiples.source or 'industry range'}).",
        ))
    else:
        base = reported
        line_items.append(EbitdaLineItem("Reported EBITDA", base, "EBITDA as reported in the financial statements."))

    if add_back_total:
        line_items.append(EbitdaLineItem(
            "Add-backs", add_back_total, "One-time or discretionary expenses a buyer would not incur.",
        ))
    if deduction_total:
        line_items.append(EbitdaLineItem(
            "Deductions", -deduction_total, "Non-recurring income a buyer would not receive.",
        ))

    owner_adjustment = ZERO
    if owner_compensation is not None:
        benchmark = market_salary_benchmark(category)
        owner_adjustment = calculate_owner_comp_adjustment(owner_compensation, category)
        if owner_adjustment > 0:
            explanation = (
                f"Owner is paid ${owner_adjustment:,.0f} above the ${benchmark:,.0f} market salary "
                f"for a {SIZE_CATEGORY_LABELS[category]} business; the excess is added back."
            )
        elif owner_adjustment < 0:
            explanation = (
                f"Owner is paid ${-owner_adjustment:,.0f} below the ${benchmark:,.0f} market salary "
                f"for a {SIZE_CATEGORY_LABELS[category]} business; a buyer must fund the shortfall."
            )
        else:
            explanation = "Owner compensation matches the market salary benchmark."
        line_items.append(EbitdaLineItem("Owner Compensation Adjustment", owner_adjustment, explanation))

    adjusted = base + add_back_total + owner_adjustment - deduction_total
    return AdjustedEbitdaResult(
        reported_ebitda=reported,
        base_ebitda=base,
        used_revenue_estimate=used_estimate,
        add_backs=add_back_total,
        deductions=deduction_total,
        owner_comp_adjustment=owner_adjustment,
        adjusted_ebitda=adjusted,
        size_category=category,
        line_items=line_items,
    )


# =============================================================================
# EBITDA Improvement Potential
# =============================================================================

MAX_EBITDA_IMPROVEMENT_BY_CATEGORY: Dict[BriCategory, Decimal] = {
    BriCategory.FINANCIAL: Decimal("0.05"),
    BriCategory.TRANSFERABILITY: Decimal("0.02"),
    BriCategory.OPERATIONAL: Decimal("0.08"),
    BriCategory.MARKET: Decimal("0.04"),
    BriCategory.LEGAL_TAX: Decimal("0.03"),
    BriCategory.PERSONAL: Decimal("0.01"),
}
MAX_TOTAL_EBITDA_IMPROVEMENT = Decimal("0.25")
_REFERENCE_WEIGHT = Decimal("0.25")


def calculate_ebitda_improvement_potential(
    category_scores: Mapping[CategoryKey, Number],
    weights: Optional[Mapping[BriCategory, Decimal]] = None,
) -> Decimal:
    """
    Fractional EBITDA uplift available from closing every category's gap.

    Σ (1 − score) × max_improvement × (weight / 0.25), capped at 25%.
    Categories without a score contribute nothing.
    """
    active_weights = weights or DEFAULT_BRI_WEIGHTS
    scores = {parse_category(k): dec(v) for k, v in category_scores.items()}
    total = ZERO
    for category in BRI_CATEGORIES:
        score = to_decimal(scores.get(category))
        if score is None:
            continue
        weight = active_weights.get(category, ZERO)
        total += (1 - score) * MAX_EBITDA_IMPROVEMENT_BY_CATEGORY[category] * (weight / _REFERENCE_WEIGHT)
    return min(total, MAX_TOTAL_EBITDA_IMPROVEMENT)
