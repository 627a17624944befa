"""
multiple_adjustments.py — Quality Adjustments to the Industry Multiple

Purpose:
- Adjust the industry multiple for differences between the subject company and
  its comparables (size, growth, margins, customer concentration, owner
  dependency, revenue model).
- Derive the business quality score (BQS) from the combined adjustment.
- Size the low/high spread around an adjusted multiple.

Adjustments are additive fractions applied multiplicatively:
    adjustedMultiple = baseMultiple × clamp(1 + Σ enabled impacts, 0.3, 1.5)

Every adjustment carries a plain-English explanation for the audit trail and
can be disabled individually for sensitivity analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Union

from exitready.core.logging import get_logger
from exitready.core.numeric import ZERO, Number, clamp, dec, round_to, to_decimal
from exitready.services.valuation.ebitda import (
    SIZE_CATEGORY_LABELS,
    RevenueSizeCategory,
    parse_size_category,
    revenue_size_category,
)

logger = get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

SIZE_DISCOUNTS = {
    RevenueSizeCategory.UNDER_500K: Decimal("-0.35"),
    RevenueSizeCategory.FROM_500K_TO_1M: Decimal("-0.25"),
    RevenueSizeCategory.FROM_1M_TO_3M: Decimal("-0.18"),
    RevenueSizeCategory.FROM_3M_TO_10M: Decimal("-0.10"),
    RevenueSizeCategory.FROM_10M_TO_25M: Decimal("-0.05"),
    RevenueSizeCategory.OVER_25M: Decimal("0"),
}

# (minimum, impact, label), checked top-down
GROWTH_TIERS = (
    (Decimal("0.30"), Decimal("0.20"), "high growth"),
    (Decimal("0.20"), Decimal("0.12"), "strong growth"),
    (Decimal("0.10"), Decimal("0.05"), "moderate growth"),
    (Decimal("0"), Decimal("0"), "flat to low growth"),
    (Decimal("-0.10"), Decimal("-0.10"), "modest decline"),
)
GROWTH_FLOOR = (Decimal("-0.20"), "significant decline")

MARGIN_TIERS = (
    (Decimal("0.30"), Decimal("0.15"), "excellent margins"),
    (Decimal("0.20"), Decimal("0.08"), "strong margins"),
    (Decimal("0.15"), Decimal("0"), "average margins"),
    (Decimal("0.10"), Decimal("-0.08"), "below-average margins"),
    (Decimal("0"), Decimal("-0.15"), "thin margins"),
)
MARGIN_FLOOR = (Decimal("-0.25"), "negative margins")

SINGLE_CUSTOMER_HIGH = (Decimal("0.30"), Decimal("-0.20"))
SINGLE_CUSTOMER_MODERATE = (Decimal("0.20"), Decimal("-0.10"))
TOP3_HIGH = (Decimal("0.60"), Decimal("-0.15"))
TOP3_MODERATE = (Decimal("0.40"), Decimal("-0.08"))
# A single-customer discount at least this deep already covers top-3 exposure.
TOP3_SUPPRESSED_AT = Decimal("-0.15")

OWNER_DEPENDENCY_MAX_DISCOUNT = Decimal("-0.25")
MIN_MEANINGFUL_IMPACT = Decimal("0.02")

RECURRING_REVENUE_PREMIUMS = {
    "SUBSCRIPTION_SAAS": Decimal("0.25"),
    "RECURRING_CONTRACTS": Decimal("0.12"),
    "TRANSACTIONAL": Decimal("0"),
    "PROJECT_BASED": Decimal("-0.05"),
}
GENERIC_RECURRING_PREMIUM = Decimal("0.15")
REVENUE_MODEL_LABELS = {
    "SUBSCRIPTION_SAAS": "SaaS/subscription",
    "RECURRING_CONTRACTS": "recurring contract",
    "TRANSACTIONAL": "transactional",
    "PROJECT_BASED": "project-based",
}

MIN_ADJUSTMENT_MULTIPLIER = Decimal("0.3")
MAX_ADJUSTMENT_MULTIPLIER = Decimal("1.5")

MIN_RANGE_MULTIPLE = Decimal("0.5")
MAX_SPREAD_FACTOR = Decimal("0.50")


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class MultipleAdjustment:
    """A single named adjustment to the base multiple."""
    factor: str          # stable id, e.g. "size_discount"
    name: str            # display name
    impact: Decimal      # signed fraction: -0.15 = 15% discount
    explanation: str
    enabled: bool = True
    category: str = ""   # size | growth | profitability | risk | quality


@dataclass(frozen=True)
class QualityProfile:
    """Subject-company attributes the adjustments are computed from."""
    annual_revenue: Decimal
    revenue_size_category: Optional[RevenueSizeCategory] = None
    revenue_growth_rate: Optional[Decimal] = None
    ebitda_margin: Optional[Decimal] = None
    top_customer_concentration: Optional[Decimal] = None
    top3_customer_concentration: Optional[Decimal] = None
    transferability_score: Optional[Decimal] = None
    revenue_model: Optional[str] = None
    is_recurring_revenue: bool = False

    @classmethod
    def create(
        cls,
        annual_revenue: Number,
        revenue_size_category: Optional[Union[RevenueSizeCategory, str]] = None,
        revenue_growth_rate: Optional[Number] = None,
        ebitda_margin: Optional[Number] = None,
        top_customer_concentration: Optional[Number] = None,
        top3_customer_concentration: Optional[Number] = None,
        transferability_score: Optional[Number] = None,
        revenue_model: Optional[str] = None,
        is_recurring_revenue: bool = False,
    ) -> "QualityProfile":
        if revenue_model is not None and revenue_model not in RECURRING_REVENUE_PREMIUMS:
            raise ValueError(f"Unknown revenue model: {revenue_model!r}")
        return cls(
            annual_revenue=dec(annual_revenue),
            revenue_size_category=(
                parse_size_category(revenue_size_category) if revenue_size_category is not None else None
            ),
            revenue_growth_rate=to_decimal(revenue_growth_rate),
            ebitda_margin=to_decimal(ebitda_margin),
            top_customer_concentration=to_decimal(top_customer_concentration),
            top3_customer_concentration=to_decimal(top3_customer_concentration),
            transferability_score=to_decimal(transferability_score),
            revenue_model=revenue_model,
            is_recurring_revenue=is_recurring_revenue,
        )


@dataclass(frozen=True)
class AdjustmentSummary:
    """All adjustments plus their combined effect."""
    adjustments: List[MultipleAdjustment] = field(default_factory=list)
    total_adjustment: Decimal = ZERO
    adjustment_multiplier: Decimal = Decimal("1")

    @property
    def enabled_adjustments(self) -> List[MultipleAdjustment]:
        return [a for a in self.adjustments if a.enabled]

    @property
    def business_quality_score(self) -> Decimal:
        return calculate_business_quality_score(self.adjustment_multiplier)


@dataclass(frozen=True)
class MultipleRange:
    low: Decimal
    mid: Decimal
    high: Decimal


# =============================================================================
# Individual Adjustments
# =============================================================================

def _pct(value: Decimal, places: int = 0) -> str:
    return f"{abs(value * 100):.{places}f}%"


def calculate_size_adjustment(profile: QualityProfile) -> Optional[MultipleAdjustment]:
    category = profile.revenue_size_category or revenue_size_category(profile.annual_revenue)
    impact = SIZE_DISCOUNTS[category]
    if impact == 0:
        return None
    return MultipleAdjustment(
        factor="size_discount",
        name="Size Discount",
        impact=impact,
        explanation=(
            f"Private companies with revenue in the {SIZE_CATEGORY_LABELS[category]} range typically trade "
            f"at a {_pct(impact)} discount to larger comparables due to less diversified revenue, "
            f"thinner management and higher key-person risk."
        ),
        category="size",
    )


def _tiered(value: Decimal, tiers, floor) -> tuple:
    for minimum, impact, label in tiers:
        if value >= minimum:
            return impact, label
    return floor


def calculate_growth_adjustment(profile: QualityProfile) -> Optional[MultipleAdjustment]:
    if profile.revenue_growth_rate is None:
        return None
    impact, label = _tiered(profile.revenue_growth_rate, GROWTH_TIERS, GROWTH_FLOOR)
    if impact == 0:
        return None
    premium = impact > 0
    reason = (
        "Buyers pay more for companies growing above market rates."
        if premium else "Declining revenue signals risk that future earnings may erode."
    )
    return MultipleAdjustment(
        factor="growth_adjustment",
        name="Growth Premium" if premium else "Growth Discount",
        impact=impact,
        explanation=(
            f"Revenue growth of {profile.revenue_growth_rate * 100:.1f}% ({label}) warrants a "
            f"{_pct(impact)} {'premium' if premium else 'discount'}. {reason}"
        ),
        category="growth",
    )


def calculate_margin_adjustment(profile: QualityProfile) -> Optional[MultipleAdjustment]:
    if profile.ebitda_margin is None:
        return None
    impact, label = _tiered(profile.ebitda_margin, MARGIN_TIERS, MARGIN_FLOOR)
    if impact == 0:
        return None
    premium = impact > 0
    reason = (
        "Higher margins indicate pricing power and operational efficiency."
        if premium else "Lower margins reduce buyer confidence in sustainable earnings."
    )
    return MultipleAdjustment(
        factor="margin_adjustment",
        name="Margin Premium" if premium else "Margin Discount",
        impact=impact,
        explanation=(
            f"EBITDA margin of {profile.ebitda_margin * 100:.1f}% ({label}) warrants a "
            f"{_pct(impact)} {'premium' if premium else 'discount'}. {reason}"
        ),
        category="profitability",
    )


def calculate_concentration_adjustments(profile: QualityProfile) -> List[MultipleAdjustment]:
    adjustments: List[MultipleAdjustment] = []

    single = profile.top_customer_concentration
    if single is not None:
        for (threshold, impact), detail in (
            (SINGLE_CUSTOMER_HIGH, "Losing this customer would materially impact the business."),
            (SINGLE_CUSTOMER_MODERATE, "Buyers will factor in the risk of this customer relationship."),
        ):
            if single >= threshold:
                adjustments.append(MultipleAdjustment(
                    factor="customer_concentration_single",
                    name="Customer Concentration (Single)",
                    impact=impact,
                    explanation=f"Top customer represents {_pct(single)} of revenue. {detail}",
                    category="risk",
                ))
                break

    top3 = profile.top3_customer_concentration
    suppressed = any(a.impact <= TOP3_SUPPRESSED_AT for a in adjustments)
    if top3 is not None and not suppressed:
        for threshold, impact in (TOP3_HIGH, TOP3_MODERATE):
            if top3 >= threshold:
                adjustments.append(MultipleAdjustment(
                    factor="customer_concentration_top3",
                    name="Customer Concentration (Top 3)",
                    impact=impact,
                    explanation=f"Top 3 customers represent {_pct(top3)} of revenue, a concentration buyers will price in.",
                    category="risk",
                ))
                break

    return adjustments


def owner_dependency_severity(transferability_score: Decimal) -> str:
    if transferability_score < Decimal("0.3"):
        return "high"
    if transferability_score < Decimal("0.6"):
        return "moderate"
    return "low"


def calculate_owner_dependency_adjustment(profile: QualityProfile) -> Optional[MultipleAdjustment]:
    score = profile.transferability_score
    if score is None:
        return None
    impact = OWNER_DEPENDENCY_MAX_DISCOUNT * (1 - score)
    if abs(impact) < MIN_MEANINGFUL_IMPACT:
        return None
    return MultipleAdjustment(
        factor="owner_dependency",
        name="Owner Dependency Discount",
        impact=impact,
        explanation=(
            f"Transferability score of {_pct(score)} indicates {owner_dependency_severity(score)} owner "
            f"dependency. Buyers discount businesses that cannot run without the current owner, "
            f"applying a {_pct(impact)} discount."
        ),
        category="risk",
    )


def calculate_recurring_revenue_adjustment(profile: QualityProfile) -> Optional[MultipleAdjustment]:
    if profile.revenue_model:
        impact = RECURRING_REVENUE_PREMIUMS[profile.revenue_model]
        if impact != 0:
            premium = impact > 0
            reason = (
                "Predictable, recurring revenue reduces buyer risk and increases willingness to pay."
                if premium else "Project-based revenue is less predictable, increasing buyer risk."
            )
            return MultipleAdjustment(
                factor="recurring_revenue",
                name="Recurring Revenue Premium" if premium else "Revenue Model Discount",
                impact=impact,
                explanation=(
                    f"{REVENUE_MODEL_LABELS[profile.revenue_model]} revenue model warrants a "
                    f"{_pct(impact)} {'premium' if premium else 'discount'}. {reason}"
                ),
                category="quality",
            )

    if profile.is_recurring_revenue:
        return MultipleAdjustment(
            factor="recurring_revenue",
            name="Recurring Revenue Premium",
            impact=GENERIC_RECURRING_PREMIUM,
            explanation=(
                f"Recurring revenue model warrants a {_pct(GENERIC_RECURRING_PREMIUM)} premium. "
                f"Predictable revenue reduces buyer risk and increases willingness to pay."
            ),
            category="quality",
        )
    return None


# =============================================================================
# Combined Adjustment
# =============================================================================

def calculate_multiple_adjustments(
    profile: QualityProfile,
    disabled_factors: Iterable[str] = (),
) -> AdjustmentSummary:
    """
    Compute every applicable adjustment for a company profile.

    Args:
        profile: Subject-company attributes
        disabled_factors: Factor ids to keep in the audit trail but switch off

    Returns:
        AdjustmentSummary; the multiplier is clamped to [0.3, 1.5]
    """
    disabled = set(disabled_factors)
    adjustments: List[MultipleAdjustment] = []

    for calculator in (
        calculate_size_adjustment,
        calculate_growth_adjustment,
        calculate_margin_adjustment,
    ):
        adjustment = calculator(profile)
        if adjustment:
            adjustments.append(adjustment)
    adjustments.extend(calculate_concentration_adjustments(profile))
    for calculator in (calculate_owner_dependency_adjustment, calculate_recurring_revenue_adjustment):
        adjustment = calculator(profile)
        if adjustment:
            adjustments.append(adjustment)

    adjustments = [replace(a, enabled=False) if a.factor in disabled else a for a in adjustments]
    return summarize_adjustments(adjustments)


def summarize_adjustments(adjustments: Sequence[MultipleAdjustment]) -> AdjustmentSummary:
    """Total the enabled impacts and clamp the resulting multiplier."""
    total = sum((a.impact for a in adjustments if a.enabled), ZERO)
    multiplier = clamp(1 + total, MIN_ADJUSTMENT_MULTIPLIER, MAX_ADJUSTMENT_MULTIPLIER)
    logger.debug("Quality adjustments total %s -> multiplier %s", total, multiplier)
    return AdjustmentSummary(adjustments=list(adjustments), total_adjustment=total, adjustment_multiplier=multiplier)


def calculate_business_quality_score(adjustment_multiplier: Decimal) -> Decimal:
    """
    Map the clamped adjustment multiplier onto a 0-1 quality score.

    0.3 (floor) → 0, 1.0 (no net adjustment) → 0.583..., 1.5 (cap) → 1.
    """
    span = MAX_ADJUSTMENT_MULTIPLIER - MIN_ADJUSTMENT_MULTIPLIER
    return clamp((adjustment_multiplier - MIN_ADJUSTMENT_MULTIPLIER) / span, ZERO, Decimal("1"))


# =============================================================================
# Spread & Ranges
# =============================================================================

def calculate_multiple_dispersion(comparable_multiples: Sequence[Number]) -> Decimal:
    """(max − min) / mean over positive comparable multiples; 0 with fewer than two."""
    values = [dec(m) for m in comparable_multiples if m is not None and dec(m) > 0]
    if len(values) < 2:
        return ZERO
    mean = sum(values, ZERO) / len(values)
    return (max(values) - min(values)) / mean


def calculate_spread_factor(
    comparable_count: int,
    comparable_multiples: Sequence[Number] = (),
) -> Decimal:
    """
    Relative half-width of the valuation range.

    Fewer comparables and more dispersed comparable multiples both widen the
    spread; the result never exceeds 50%.
    """
    if comparable_count >= 5:
        spread = Decimal("0.15")
    elif comparable_count >= 3:
        spread = Decimal("0.25")
    elif comparable_count >= 1:
        spread = Decimal("0.35")
    else:
        spread = Decimal("0.40")

    dispersion = calculate_multiple_dispersion(comparable_multiples)
    if dispersion > Decimal("0.5"):
        spread += Decimal("0.05")
    if dispersion > Decimal("1.0"):
        spread += Decimal("0.05")
    return min(spread, MAX_SPREAD_FACTOR)


def round_multiple(value: Decimal) -> Decimal:
    """Round a multiple to one decimal for presentation."""
    return round_to(value, 1)


def calculate_multiple_range(
    base_multiple: Number,
    summary: AdjustmentSummary,
    spread_factor: Number,
) -> MultipleRange:
    """Presentation range around base × adjustment multiplier, floored at 0.5x."""
    mid = dec(base_multiple) * summary.adjustment_multiplier
    spread = dec(spread_factor)
    return MultipleRange(
        low=max(MIN_RANGE_MULTIPLE, round_multiple(mid * (1 - spread))),
        mid=max(MIN_RANGE_MULTIPLE, round_multiple(mid)),
        high=max(MIN_RANGE_MULTIPLE, round_multiple(mid * (1 + spread))),
    )
