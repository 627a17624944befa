"""
value_gap.py — V2 Value Gap Decomposition

Purpose:
- Split the gap between the current value (evMid) and the potential value at
  the top of the industry range into three non-overlapping buckets:

  addressable   quality shortfall below the industry median, plus the share of
                risk discounts that readiness work can remove (key-person,
                documentation, legal/tax)
  structural    the share of risk discounts that needs long-term structural
                change (DLOM, customer concentration)
  aspirational  whatever remains between the modeled factors and the top of
                the industry range

Each risk discount's share of the risk gap is its share of the log of the
risk multiplier, ln(1 − r_i) / Σ ln(1 − r_j), so the split does not depend on
the order the discounts are applied in.

Invariant: addressable + structural + aspirational == total gap, exactly to
the cent (aspirational is computed as the residual).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from exitready.core.logging import get_logger
from exitready.core.numeric import ONE, ZERO, Number, dec, round_money
from exitready.services.valuation.industry_multiples import IndustryMultiples
from exitready.services.valuation.valuation_v2 import V2Result

logger = get_logger(__name__)

ADDRESSABLE_BUCKET = "addressable"
STRUCTURAL_BUCKET = "structural"
ASPIRATIONAL_BUCKET = "aspirational"


@dataclass(frozen=True)
class GapComponent:
    """One factor's contribution to a bucket (informational, rounded to cents)."""
    name: str
    bucket: str
    amount: Decimal


@dataclass(frozen=True)
class ValueGapV2Result:
    potential_value: Decimal
    current_value: Decimal
    total_gap: Decimal
    addressable_gap: Decimal
    structural_gap: Decimal
    aspirational_gap: Decimal
    components: List[GapComponent] = field(default_factory=list)


def _empty_result(potential: Decimal, current: Decimal) -> ValueGapV2Result:
    return ValueGapV2Result(
        potential_value=potential,
        current_value=current,
        total_gap=ZERO,
        addressable_gap=ZERO,
        structural_gap=ZERO,
        aspirational_gap=ZERO,
    )


def calculate_value_gap_v2(
    adjusted_ebitda: Number,
    multiples: IndustryMultiples,
    valuation: V2Result,
) -> ValueGapV2Result:
    """
    Decompose the V2 value gap.

    Args:
        adjusted_ebitda: Adjusted EBITDA used for the valuation
        multiples: Industry multiple range (its high end defines potential value)
        valuation: Result of calculate_valuation_v2

    Returns:
        ValueGapV2Result with the three buckets, in dollars rounded to cents
    """
    ebitda = dec(adjusted_ebitda)
    high = max(multiples.ebitda_high, ZERO)
    median = valuation.industry_median_multiple
    quality_multiple = valuation.quality_adjusted_multiple
    risk_multiple = valuation.risk_adjusted_multiple

    if ebitda <= 0:
        logger.debug("Value gap is zero for non-positive EBITDA %s", ebitda)
        return _empty_result(ZERO, valuation.ev_mid)

    potential = round_money(ebitda * high)
    current = round_money(valuation.ev_mid)
    gap_multiple = max(high - risk_multiple, ZERO)
    if gap_multiple == 0:
        return _empty_result(potential, current)

    # Work in multiple-space first, then convert to dollars.
    quality_gap = max(median - quality_multiple, ZERO)
    risk_gap = max(quality_multiple - risk_multiple, ZERO)

    log_total = sum((log_retained(d.rate) for d in valuation.discounts), ZERO)
    shares = []
    for discount in valuation.discounts:
        share = log_retained(discount.rate) / log_total if log_total != 0 else ZERO
        shares.append((discount, share * risk_gap))

    addressable = quality_gap + sum((m for d, m in shares if not d.is_structural), ZERO)
    structural = sum((m for d, m in shares if d.is_structural), ZERO)
    if log_total == 0 and risk_gap > 0:
        # Explicit risk multiplier without itemised discounts.
        structural += risk_gap

    modeled = addressable + structural
    scale = ONE
    if modeled > gap_multiple:
        scale = gap_multiple / modeled
        addressable *= scale
        structural *= scale

    total_gap = round_money(ebitda * gap_multiple)
    addressable_gap = round_money(ebitda * addressable)
    structural_gap = round_money(ebitda * structural)
    aspirational_gap = total_gap - addressable_gap - structural_gap
    if aspirational_gap < 0:
        structural_gap += aspirational_gap
        aspirational_gap = ZERO

    components: List[GapComponent] = []
    if quality_gap > 0:
        components.append(GapComponent("Quality Adjustments", ADDRESSABLE_BUCKET, round_money(ebitda * quality_gap * scale)))
    for discount, multiple_share in shares:
        if multiple_share > 0:
            bucket = STRUCTURAL_BUCKET if discount.is_structural else ADDRESSABLE_BUCKET
            components.append(GapComponent(discount.name, bucket, round_money(ebitda * multiple_share * scale)))
    if aspirational_gap > 0:
        components.append(GapComponent("Top of Industry Range", ASPIRATIONAL_BUCKET, aspirational_gap))

    logger.debug(
        "Value gap %s: addressable=%s structural=%s aspirational=%s",
        total_gap, addressable_gap, structural_gap, aspirational_gap,
    )
    return ValueGapV2Result(
        potential_value=potential,
        current_value=current,
        total_gap=total_gap,
        addressable_gap=addressable_gap,
        structural_gap=structural_gap,
        aspirational_gap=aspirational_gap,
        components=components,
    )


def log_retained(rate: Decimal) -> Decimal:
    """ln(1 − rate): the log of the fraction of value a discount keeps."""
    return (ONE - rate).ln()
