"""
valuation_v1.py — V1 Valuation (single discount fraction)

Purpose:
- Position a base multiple inside the industry range using the core score.
- Discount the multiple for buyer-readiness gaps with a non-linear curve on
  (1 − BRI), so the first points of readiness matter most.

Formulas:
    baseMultiple     = low + coreScore × (high − low)
    discountFraction = (1 − briScore) ^ ALPHA
    finalMultiple    = low + (baseMultiple − low) × (1 − discountFraction)
    currentValue     = adjustedEbitda × finalMultiple
    potentialValue   = adjustedEbitda × baseMultiple
    valueGap         = potentialValue − currentValue

The discount only erodes the premium above the industry low, so the final
multiple never drops below the low end of the range.

V1 fields are still produced alongside V2 on every snapshot for backward
compatible consumers.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Any

from exitready.core.logging import get_logger
from exitready.core.numeric import ONE, ZERO, Number, clamp, dec
from exitready.services.valuation.industry_multiples import IndustryMultiples

logger = get_logger(__name__)

ALPHA = Decimal("1.4")


@dataclass(frozen=True)
class V1Result:
    base_multiple: Decimal
    discount_fraction: Decimal
    final_multiple: Decimal
    current_value: Decimal
    potential_value: Decimal
    value_gap: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_multiple": self.base_multiple,
            "discount_fraction": self.discount_fraction,
            "final_multiple": self.final_multiple,
            "current_value": self.current_value,
            "potential_value": self.potential_value,
            "value_gap": self.value_gap,
        }


def calculate_discount_fraction(bri_score: Decimal) -> Decimal:
    """(1 − BRI) ^ ALPHA; 0 at full readiness, 1 at zero readiness."""
    gap = ONE - clamp(bri_score, ZERO, ONE)
    if gap == 0:
        return ZERO
    return gap ** ALPHA


def calculate_valuation(
    adjusted_ebitda: Number,
    multiples: IndustryMultiples,
    core_score: Number,
    bri_score: Number,
) -> V1Result:
    """
    V1 valuation.

    Args:
        adjusted_ebitda: Adjusted EBITDA (signed)
        multiples: Industry EBITDA multiple range
        core_score: Core factor score, 0-1 (clamped)
        bri_score: Composite BRI score, 0-1 (clamped)

    Returns:
        V1Result with multiples and values
    """
    ebitda = dec(adjusted_ebitda)
    core = clamp(dec(core_score), ZERO, ONE)
    bri = clamp(dec(bri_score), ZERO, ONE)
    low = max(multiples.ebitda_low, ZERO)
    high = max(multiples.ebitda_high, low)

    base_multiple = low + core * (high - low)
    discount_fraction = calculate_discount_fraction(bri)
    final_multiple = low + (base_multiple - low) * (ONE - discount_fraction)

    current_value = ebitda * final_multiple
    potential_value = ebitda * base_multiple
    logger.debug(
        "V1 valuation: base=%s discount=%s final=%s current=%s",
        base_multiple, discount_fraction, final_multiple, current_value,
    )
    return V1Result(
        base_multiple=base_multiple,
        discount_fraction=discount_fraction,
        final_multiple=final_multiple,
        current_value=current_value,
        potential_value=potential_value,
        value_gap=potential_value - current_value,
    )


def calculate_valuation_from_percentages(
    adjusted_ebitda: Number,
    multiples: IndustryMultiples,
    core_score: Number,
    bri_score_percent: Number,
) -> V1Result:
    """Same as calculate_valuation, with the BRI given on a 0-100 scale."""
    return calculate_valuation(adjusted_ebitda, multiples, core_score, dec(bri_score_percent) / 100)
