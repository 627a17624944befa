"""
industry_multiples.py — Industry Multiple Ranges and Revenue-Based EBITDA Estimates

Purpose:
- Hold the EBITDA/revenue multiple range used for a company's industry.
- Provide the default SMB range when no industry match is available.
- Estimate EBITDA from revenue when reported EBITDA is missing or non-positive.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from exitready.core.logging import get_logger
from exitready.core.numeric import ZERO, Number, dec, to_decimal

logger = get_logger(__name__)

# Revenue-derived EBITDA is never assumed above this share of revenue.
MAX_ESTIMATED_EBITDA_MARGIN = Decimal("0.35")
ESTIMATE_ROUNDING_UNIT = Decimal("100000")


@dataclass(frozen=True)
class IndustryMultiples:
    """Multiple ranges for one industry classification."""
    ebitda_low: Decimal
    ebitda_high: Decimal
    revenue_low: Decimal
    revenue_high: Decimal
    ebitda_margin_low: Optional[Decimal] = None
    ebitda_margin_high: Optional[Decimal] = None
    source: str = ""

    @classmethod
    def create(
        cls,
        ebitda_low: Number,
        ebitda_high: Number,
        revenue_low: Number = "0",
        revenue_high: Number = "0",
        ebitda_margin_low: Optional[Number] = None,
        ebitda_margin_high: Optional[Number] = None,
        source: str = "",
    ) -> "IndustryMultiples":
        """
        Build a range from loosely typed values.

        Raises:
            ValueError: on negative multiples or an inverted EBITDA range
        """
        low = dec(ebitda_low)
        high = dec(ebitda_high)
        if low < 0 or high < 0:
            raise ValueError(f"EBITDA multiples must be non-negative, got {low}-{high}")
        if low > high:
            raise ValueError(f"EBITDA multiple low {low} exceeds high {high}")
        return cls(
            ebitda_low=low,
            ebitda_high=high,
            revenue_low=dec(revenue_low),
            revenue_high=dec(revenue_high),
            ebitda_margin_low=to_decimal(ebitda_margin_low),
            ebitda_margin_high=to_decimal(ebitda_margin_high),
            source=source,
        )

    @property
    def has_margin_data(self) -> bool:
        return self.ebitda_margin_low is not None and self.ebitda_margin_high is not None


DEFAULT_MULTIPLES = IndustryMultiples(
    ebitda_low=Decimal("3.0"),
    ebitda_high=Decimal("6.0"),
    revenue_low=Decimal("0.5"),
    revenue_high=Decimal("1.5"),
    source="Default SMB multiple range",
)


def calculate_base_multiple(low: Decimal, high: Decimal) -> Decimal:
    """Midpoint of a multiple range."""
    return (low + high) / 2


def estimate_ebitda_from_revenue(revenue: Number, multiples: IndustryMultiples = DEFAULT_MULTIPLES) -> Decimal:
    """
    Estimate EBITDA from revenue using industry averages.

    With margin data: revenue × midpoint of the industry EBITDA margin range.
    Without it: average of the margins implied by the two multiple ranges
    (revLow/ebitdaHigh and revHigh/ebitdaLow), capped at 35% of revenue and
    rounded to the nearest 100,000.

    Args:
        revenue: Annual revenue
        multiples: Industry multiple range

    Returns:
        Estimated EBITDA (0 for non-positive revenue or a zero EBITDA multiple)
    """
    rev = dec(revenue)
    if rev <= 0:
        return ZERO

    if multiples.has_margin_data:
        margin = (multiples.ebitda_margin_low + multiples.ebitda_margin_high) / 2
        estimate = rev * margin
        logger.debug("Estimated EBITDA %s from revenue %s at margin %s", estimate, rev, margin)
        return estimate

    if multiples.ebitda_low == 0 or multiples.ebitda_high == 0:
        return ZERO

    estimate_low = rev * multiples.revenue_low / multiples.ebitda_high
    estimate_high = rev * multiples.revenue_high / multiples.ebitda_low
    estimate = min((estimate_low + estimate_high) / 2, rev * MAX_ESTIMATED_EBITDA_MARGIN)
    rounded = (estimate / ESTIMATE_ROUNDING_UNIT).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * ESTIMATE_ROUNDING_UNIT
    logger.debug("Estimated EBITDA %s from revenue %s via multiple ratio", rounded, rev)
    return rounded
