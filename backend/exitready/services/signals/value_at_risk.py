"""
value_at_risk.py — Confidence-Weighted Value at Risk

Purpose:
- Total the dollar value threatened by open signals, weighted by confidence.
- List the largest individual threats and break the total down by category.
- Compare against the previous period's total to report a trend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from exitready.core.categories import BRI_CATEGORIES, BriCategory, category_label
from exitready.core.logging import get_logger
from exitready.core.numeric import ONE, ZERO, Number, to_decimal
from exitready.services.signals.confidence import CONFIDENCE_MULTIPLIERS
from exitready.services.signals.types import ConfidenceLevel, Signal, SignalSeverity

logger = get_logger(__name__)

TREND_THRESHOLD = Decimal("0.05")
DEFAULT_TOP_THREATS = 3

TREND_INCREASING = "increasing"
TREND_DECREASING = "decreasing"
TREND_STABLE = "stable"


@dataclass(frozen=True)
class ThreatEntry:
    signal_id: str
    title: str
    severity: SignalSeverity
    confidence: ConfidenceLevel
    raw_impact: Decimal
    weighted_impact: Decimal
    category: Optional[BriCategory]
    category_label: Optional[str]


@dataclass(frozen=True)
class CategoryValueAtRisk:
    category: BriCategory
    label: str
    weighted_value_at_risk: Decimal
    raw_value_at_risk: Decimal
    signal_count: int


@dataclass(frozen=True)
class ValueAtRiskTrend:
    previous: Decimal
    current: Decimal
    change: Decimal
    percentage_change: Decimal
    direction: str


@dataclass(frozen=True)
class ValueAtRiskSummary:
    total_value_at_risk: Decimal
    raw_value_at_risk: Decimal
    signal_count: int
    top_threats: List[ThreatEntry] = field(default_factory=list)
    by_category: List[CategoryValueAtRisk] = field(default_factory=list)
    trend: Optional[ValueAtRiskTrend] = None


def get_raw_impact(signal: Signal) -> Decimal:
    if signal.estimated_value_impact is None:
        return ZERO
    return abs(signal.estimated_value_impact)


def get_weighted_impact(signal: Signal) -> Decimal:
    return get_raw_impact(signal) * CONFIDENCE_MULTIPLIERS[signal.confidence]


def extract_top_threats(signals: Sequence[Signal], limit: int = DEFAULT_TOP_THREATS) -> List[ThreatEntry]:
    """Largest weighted threats first; signals without a dollar impact are skipped."""
    entries = [
        ThreatEntry(
            signal_id=s.id,
            title=s.title,
            severity=s.severity,
            confidence=s.confidence,
            raw_impact=get_raw_impact(s),
            weighted_impact=get_weighted_impact(s),
            category=s.category,
            category_label=category_label(s.category) if s.category is not None else None,
        )
        for s in signals
        if s.estimated_value_impact
    ]
    entries.sort(key=lambda e: e.signal_id)
    entries.sort(key=lambda e: e.weighted_impact, reverse=True)
    return entries[:limit]


def aggregate_by_category(signals: Sequence[Signal]) -> List[CategoryValueAtRisk]:
    """One row per BRI category (fixed order); uncategorized signals are left out."""
    weighted: Dict[BriCategory, Decimal] = {c: ZERO for c in BRI_CATEGORIES}
    raw: Dict[BriCategory, Decimal] = {c: ZERO for c in BRI_CATEGORIES}
    counts: Dict[BriCategory, int] = {c: 0 for c in BRI_CATEGORIES}
    for signal in signals:
        if signal.category is None:
            continue
        weighted[signal.category] += get_weighted_impact(signal)
        raw[signal.category] += get_raw_impact(signal)
        counts[signal.category] += 1
    return [
        CategoryValueAtRisk(c, category_label(c), weighted[c], raw[c], counts[c])
        for c in BRI_CATEGORIES
    ]


def calculate_var_trend(current: Decimal, previous: Optional[Number]) -> Optional[ValueAtRiskTrend]:
    """Trend versus the previous total; None when there is no previous total."""
    prev = to_decimal(previous)
    if prev is None:
        return None
    change = current - prev
    if prev > 0:
        pct = change / prev
    else:
        pct = ONE if current > 0 else ZERO

    if pct > TREND_THRESHOLD:
        direction = TREND_INCREASING
    elif pct < -TREND_THRESHOLD:
        direction = TREND_DECREASING
    else:
        direction = TREND_STABLE
    return ValueAtRiskTrend(previous=prev, current=current, change=change, percentage_change=pct, direction=direction)


def calculate_value_at_risk(
    signals: Sequence[Signal],
    previous_total: Optional[Number] = None,
    limit: int = DEFAULT_TOP_THREATS,
) -> ValueAtRiskSummary:
    """
    Value-at-risk summary for a set of signals.

    Args:
        signals: Signals to include (callers typically pass OPEN signals only)
        previous_total: Last period's weighted total, if known
        limit: Number of top threats to list
    """
    total = sum((get_weighted_impact(s) for s in signals), ZERO)
    raw = sum((get_raw_impact(s) for s in signals), ZERO)
    logger.debug("Value at risk: weighted=%s raw=%s over %d signals", total, raw, len(signals))
    return ValueAtRiskSummary(
        total_value_at_risk=total,
        raw_value_at_risk=raw,
        signal_count=len(signals),
        top_threats=extract_top_threats(signals, limit),
        by_category=aggregate_by_category(signals),
        trend=calculate_var_trend(total, previous_total),
    )
