"""
ranking.py — Signal Ranking, Grouping and Display Bounding

Purpose:
- Score every signal so the most severe, most trusted, highest-value open
  issues rise to the top.
- Group related signals (same eventType) so ten stale documents surface as one
  item instead of ten.
- Bound what is shown: the top groups become "active", the rest are "queued".
  Queued groups are deprioritized, never dropped.

Rank score:
    severityWeight × confidenceMultiplier × resolutionMultiplier × valueFactor
    valueFactor = 1 + |impact × confidenceMultiplier| / VALUE_FACTOR_SCALE
                  (1 when the impact is unknown)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from exitready.core.logging import get_logger
from exitready.core.numeric import ONE, ZERO
from exitready.services.signals.confidence import CONFIDENCE_MULTIPLIERS, apply_confidence_weight
from exitready.services.signals.types import (
    ConfidenceLevel,
    ResolutionStatus,
    Signal,
    SignalSeverity,
)

logger = get_logger(__name__)

MAX_ACTIVE_DISPLAY_SIGNALS = 3

SEVERITY_WEIGHTS: Mapping[SignalSeverity, Decimal] = MappingProxyType({
    SignalSeverity.INFO: Decimal("1"),
    SignalSeverity.LOW: Decimal("2"),
    SignalSeverity.MEDIUM: Decimal("3"),
    SignalSeverity.HIGH: Decimal("4"),
    SignalSeverity.CRITICAL: Decimal("5"),
})

RESOLUTION_MULTIPLIERS: Mapping[ResolutionStatus, Decimal] = MappingProxyType({
    ResolutionStatus.OPEN: Decimal("1.0"),
    ResolutionStatus.ACKNOWLEDGED: Decimal("0.9"),
    ResolutionStatus.IN_PROGRESS: Decimal("0.8"),
    ResolutionStatus.RESOLVED: Decimal("0.3"),
    ResolutionStatus.DISMISSED: Decimal("0.1"),
    ResolutionStatus.EXPIRED: Decimal("0.05"),
})

# A $10,000 weighted impact doubles the base score.
VALUE_FACTOR_SCALE = Decimal("10000")

_CONFIDENCE_ORDER = (
    ConfidenceLevel.UNCERTAIN,
    ConfidenceLevel.SOMEWHAT_CONFIDENT,
    ConfidenceLevel.CONFIDENT,
    ConfidenceLevel.NOT_APPLICABLE,
    ConfidenceLevel.VERIFIED,
)
_SEVERITY_ORDER = tuple(SignalSeverity)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class RankedSignal:
    signal: Signal
    rank_score: Decimal
    weighted_value_impact: Optional[Decimal]


@dataclass(frozen=True)
class SignalGroup:
    """Signals sharing one eventType, summarized for display."""
    group_key: str
    display_title: str
    primary_signal: RankedSignal
    signals: List[RankedSignal]
    count: int
    group_rank_score: Decimal
    total_weighted_impact: Decimal
    max_severity: SignalSeverity
    max_confidence: ConfidenceLevel


@dataclass(frozen=True)
class DisplaySignals:
    active_display_groups: List[SignalGroup] = field(default_factory=list)
    queued_groups: List[SignalGroup] = field(default_factory=list)
    total_weighted_value_at_risk: Decimal = ZERO
    total_signal_count: int = 0


# =============================================================================
# Scoring
# =============================================================================

def calculate_weighted_value_impact(signal: Signal) -> Optional[Decimal]:
    """Estimated impact × confidence multiplier; sign preserved, None stays None."""
    return apply_confidence_weight(signal.estimated_value_impact, signal.confidence)


def calculate_rank_score(signal: Signal) -> Decimal:
    severity = SEVERITY_WEIGHTS[signal.severity]
    confidence = CONFIDENCE_MULTIPLIERS[signal.confidence]
    resolution = RESOLUTION_MULTIPLIERS[signal.resolution_status]

    weighted = calculate_weighted_value_impact(signal)
    value_factor = ONE if weighted is None else ONE + abs(weighted) / VALUE_FACTOR_SCALE

    return severity * confidence * resolution * value_factor


def rank_signals(signals: Iterable[Signal]) -> List[RankedSignal]:
    """
    Score and sort signals, highest rank score first.

    Ties are broken by signal id so the order is stable across runs.
    """
    ranked = [
        RankedSignal(
            signal=signal,
            rank_score=calculate_rank_score(signal),
            weighted_value_impact=calculate_weighted_value_impact(signal),
        )
        for signal in signals
    ]
    ranked.sort(key=lambda r: r.signal.id)
    ranked.sort(key=lambda r: r.rank_score, reverse=True)
    return ranked


# =============================================================================
# Grouping
# =============================================================================

def group_display_title(event_type: str, members: Sequence[RankedSignal]) -> str:
    """Primary signal's own title for a single member, else a templated summary."""
    primary = members[0]
    count = len(members)
    if count == 1:
        return primary.signal.title

    key = event_type.lower()
    if "document" in key or "staleness" in key or "time_decay" in key:
        return f"{count} documents need attention"
    if "drift" in key:
        return f"{count} drift signals detected"
    if "disclosure" in key:
        return f"{count} disclosure findings"
    if "external" in key:
        return f"{count} external signals"
    return f"{primary.signal.title} (+{count - 1} related)"


def _max_confidence(members: Sequence[RankedSignal]) -> ConfidenceLevel:
    return max((m.signal.confidence for m in members), key=_CONFIDENCE_ORDER.index)


def _max_severity(members: Sequence[RankedSignal]) -> SignalSeverity:
    return max((m.signal.severity for m in members), key=_SEVERITY_ORDER.index)


def group_signals(ranked_signals: Iterable[RankedSignal]) -> List[SignalGroup]:
    """
    Partition ranked signals by eventType.

    Every input signal lands in exactly one group. Within a group, members are
    ordered by rank score and the first is the primary signal.

    Returns:
        Groups sorted by aggregate (max member) rank score, highest first
    """
    buckets: Dict[str, List[RankedSignal]] = {}
    for ranked in ranked_signals:
        buckets.setdefault(ranked.signal.event_type, []).append(ranked)

    groups: List[SignalGroup] = []
    for event_type, members in buckets.items():
        members = sorted(members, key=lambda r: r.rank_score, reverse=True)
        total_weighted = sum(
            (m.weighted_value_impact for m in members if m.weighted_value_impact is not None), ZERO
        )
        groups.append(SignalGroup(
            group_key=event_type,
            display_title=group_display_title(event_type, members),
            primary_signal=members[0],
            signals=members,
            count=len(members),
            group_rank_score=members[0].rank_score,
            total_weighted_impact=total_weighted,
            max_severity=_max_severity(members),
            max_confidence=_max_confidence(members),
        ))

    groups.sort(key=lambda g: g.group_key)
    groups.sort(key=lambda g: g.group_rank_score, reverse=True)
    return groups


# =============================================================================
# Value at Risk & Display
# =============================================================================

def calculate_weighted_value_at_risk(signals: Iterable[Signal]) -> Decimal:
    """
    Σ |estimated impact| × confidence multiplier; unknown impacts add 0.

    Callers decide which statuses to include (typically OPEN only).
    """
    total = ZERO
    for signal in signals:
        if signal.estimated_value_impact is None:
            continue
        total += abs(signal.estimated_value_impact) * CONFIDENCE_MULTIPLIERS[signal.confidence]
    return total


def process_signals_for_display(
    signals: Sequence[Signal],
    max_display: int = MAX_ACTIVE_DISPLAY_SIGNALS,
) -> DisplaySignals:
    """
    Rank, group and bound signals for the dashboard.

    Args:
        signals: Every signal for the company
        max_display: Number of groups shown as active

    Returns:
        DisplaySignals with at most ``max_display`` active groups; the rest
        are queued in rank order
    """
    if max_display < 0:
        raise ValueError(f"max_display must be non-negative, got {max_display}")
    if not signals:
        return DisplaySignals()

    groups = group_signals(rank_signals(signals))
    open_signals = [s for s in signals if s.resolution_status == ResolutionStatus.OPEN]
    result = DisplaySignals(
        active_display_groups=groups[:max_display],
        queued_groups=groups[max_display:],
        total_weighted_value_at_risk=calculate_weighted_value_at_risk(open_signals),
        total_signal_count=len(signals),
    )
    logger.debug(
        "Signals for display: %d signals, %d active groups, %d queued",
        len(signals), len(result.active_display_groups), len(result.queued_groups),
    )
    return result
