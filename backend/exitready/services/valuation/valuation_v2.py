"""
valuation_v2.py — V2 Valuation (quality- and risk-adjusted multiple)

Purpose:
- Start from the industry median multiple.
- Scale it by the named quality adjustments (multiple_adjustments.py).
- Apply the discrete risk discounts multiplicatively (risk_discounts.py).
- Produce a low/mid/high enterprise value band around the risk-adjusted
  multiple, plus the dollar size of the DLOM.

Formulas:
    industryMedianMultiple  = (low + high) / 2
    qualityAdjustedMultiple = industryMedianMultiple × adjustmentMultiplier
    riskAdjustedMultiple    = qualityAdjustedMultiple × riskMultiplier
    evMid                   = adjustedEbitda × riskAdjustedMultiple   (floored at 0)
    evLow / evHigh          = evMid × (1 ∓ spreadFactor)
    dlomAmount              = evMid × dlomRate / (1 − dlomRate)

evMid is already net of the DLOM, so the DLOM amount is back-solved from the
pre-discount value rather than taken as evMid × dlomRate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Mapping, Optional, Sequence, Union

from exitready.core.categories import BRI_CATEGORIES, DEFAULT_BRI_WEIGHTS, BriCategory, CategoryKey, parse_category
from exitready.core.logging import get_logger
from exitready.core.numeric import ONE, ZERO, Number, clamp, dec
from exitready.services.valuation.industry_multiples import IndustryMultiples, calculate_base_multiple
from exitready.services.valuation.multiple_adjustments import (
    AdjustmentSummary,
    MultipleAdjustment,
    calculate_business_quality_score,
    summarize_adjustments,
)
from exitready.services.valuation.risk_discounts import (
    RiskDiscount,
    RiskDiscountSummary,
    summarize_risk_discounts,
)

logger = get_logger(__name__)

MIN_DEFAULT_SPREAD = Decimal("0.10")
MAX_SPREAD = Decimal("0.50")

# Personal readiness describes the owner, not the deal, so it is left out.
DEAL_READINESS_CATEGORIES = tuple(c for c in BRI_CATEGORIES if c != BriCategory.PERSONAL)


@dataclass(frozen=True)
class V2Result:
    industry_median_multiple: Decimal
    quality_adjusted_multiple: Decimal
    risk_adjusted_multiple: Decimal
    adjustment_multiplier: Decimal
    risk_multiplier: Decimal
    spread_factor: Decimal
    ev_low: Decimal
    ev_mid: Decimal
    ev_high: Decimal
    dlom_rate: Decimal
    dlom_amount: Decimal
    business_quality_score: Decimal
    risk_severity_score: Decimal
    deal_readiness_score: Optional[Decimal] = None
    adjustments: List[MultipleAdjustment] = field(default_factory=list)
    discounts: List[RiskDiscount] = field(default_factory=list)


def default_spread_factor(multiples: IndustryMultiples) -> Decimal:
    """Relative half-width of the industry range, clamped to [0.10, 0.50]."""
    total = multiples.ebitda_low + multiples.ebitda_high
    if total <= 0:
        return MIN_DEFAULT_SPREAD
    return clamp((multiples.ebitda_high - multiples.ebitda_low) / total, MIN_DEFAULT_SPREAD, MAX_SPREAD)


def calculate_dlom_amount(ev_mid: Decimal, dlom_rate: Decimal) -> Decimal:
    """
    Dollar value removed by the DLOM, back-solved from the post-discount EV.

    Raises:
        ValueError: if dlom_rate is outside [0, 1)
    """
    if dlom_rate < 0 or dlom_rate >= 1:
        raise ValueError(f"DLOM rate must be in [0, 1), got {dlom_rate}")
    if ev_mid <= 0:
        return ZERO
    return ev_mid * dlom_rate / (ONE - dlom_rate)


def calculate_deal_readiness_score(category_scores: Mapping[CategoryKey, Number]) -> Optional[Decimal]:
    """
    Default-weighted mean of the deal-facing category scores.

    Returns:
        Score in [0, 1], or None when none of those categories is scored
    """
    scores = {parse_category(k): dec(v) for k, v in category_scores.items()}
    numerator = ZERO
    denominator = ZERO
    for category in DEAL_READINESS_CATEGORIES:
        if category not in scores:
            continue
        weight = DEFAULT_BRI_WEIGHTS[category]
        numerator += clamp(scores[category], ZERO, ONE) * weight
        denominator += weight
    if denominator == 0:
        return None
    return numerator / denominator


def calculate_valuation_v2(
    adjusted_ebitda: Number,
    multiples: IndustryMultiples,
    quality_adjustments: Union[AdjustmentSummary, Sequence[MultipleAdjustment]],
    risk_discounts: Union[RiskDiscountSummary, Sequence[RiskDiscount]],
    risk_multiplier: Optional[Number] = None,
    spread_factor: Optional[Number] = None,
    category_scores: Optional[Mapping[CategoryKey, Number]] = None,
) -> V2Result:
    """
    V2 valuation.

    Args:
        adjusted_ebitda: Adjusted EBITDA (signed)
        multiples: Industry EBITDA multiple range
        quality_adjustments: Adjustment summary, or raw adjustments to summarize
        risk_discounts: Risk discount summary, or raw discounts to combine
        risk_multiplier: Explicit risk multiplier; defaults to the product of the discounts
        spread_factor: Relative half-width of the EV band; defaults to the
            industry range's own relative width
        category_scores: BRI category scores for the deal readiness score

    Returns:
        V2Result with multiples, EV band, DLOM and scores
    """
    ebitda = dec(adjusted_ebitda)
    quality = (
        quality_adjustments if isinstance(quality_adjustments, AdjustmentSummary)
        else summarize_adjustments(list(quality_adjustments))
    )
    risk = (
        risk_discounts if isinstance(risk_discounts, RiskDiscountSummary)
        else summarize_risk_discounts(list(risk_discounts))
    )
    multiplier = clamp(dec(risk_multiplier), ZERO, ONE) if risk_multiplier is not None else risk.risk_multiplier
    spread = (
        clamp(dec(spread_factor), ZERO, MAX_SPREAD) if spread_factor is not None
        else default_spread_factor(multiples)
    )

    median = max(calculate_base_multiple(multiples.ebitda_low, multiples.ebitda_high), ZERO)
    quality_multiple = median * quality.adjustment_multiplier
    risk_multiple = max(quality_multiple * multiplier, ZERO)

    ev_mid = max(ebitda * risk_multiple, ZERO)
    ev_low = ev_mid * (ONE - spread)
    ev_high = ev_mid * (ONE + spread)

    dlom_rate = risk.dlom_rate
    dlom_amount = calculate_dlom_amount(ev_mid, dlom_rate)

    drs = calculate_deal_readiness_score(category_scores) if category_scores is not None else None
    logger.debug(
        "V2 valuation: median=%s quality=%s risk=%s evMid=%s spread=%s",
        median, quality_multiple, risk_multiple, ev_mid, spread,
    )
    return V2Result(
        industry_median_multiple=median,
        quality_adjusted_multiple=quality_multiple,
        risk_adjusted_multiple=risk_multiple,
        adjustment_multiplier=quality.adjustment_multiplier,
        risk_multiplier=multiplier,
        spread_factor=spread,
        ev_low=ev_low,
        ev_mid=ev_mid,
        ev_high=ev_high,
        dlom_rate=dlom_rate,
        dlom_amount=dlom_amount,
        business_quality_score=calculate_business_quality_score(quality.adjustment_multiplier),
        risk_severity_score=ONE - multiplier,
        deal_readiness_score=drs,
        adjustments=list(quality.adjustments),
        discounts=list(risk.discounts),
    )
