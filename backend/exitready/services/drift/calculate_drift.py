"""
calculate_drift.py — Pure Drift Calculation Engine

Purpose:
- Compare two points in time to answer "how has buyer readiness changed since
  last period?"
- Combine BRI category changes, document staleness, signal pressure and task
  completion into one weighted drift score and an overall direction.
- Recommend a short, ordered list of actions.

Every function here is pure: identical inputs always give identical outputs
(Decimal arithmetic, fixed category order, stable sorts), so results can be
snapshot-tested without a database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence

from exitready.core.categories import (
    BRI_CATEGORIES,
    CATEGORY_LABELS,
    DEFAULT_BRI_WEIGHTS,
    BriCategory,
    CategoryKey,
    parse_category,
)
from exitready.core.logging import get_logger
from exitready.core.numeric import ONE, ZERO, Number, dec, to_points
from exitready.services.signals.types import SignalSeverity

logger = get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

# On the 0-1 BRI scale: half a percentage point.
STABILITY_THRESHOLD = Decimal("0.005")

HIGH_BRI_DROP = Decimal("0.05")
CRITICAL_BRI_DROP = Decimal("0.10")

# A 0.10 swing in weighted BRI maps to a factor of ±1.0.
BRI_NORMALIZATION = Decimal("0.10")

BRI_FACTOR_WEIGHT = Decimal("0.60")
STALENESS_WEIGHT = Decimal("0.15")
SIGNAL_PRESSURE_WEIGHT = Decimal("0.10")
TASK_COMPLETION_WEIGHT = Decimal("0.15")

STALENESS_PER_DOCUMENT = Decimal("0.1")
CRITICAL_SIGNAL_PRESSURE = Decimal("0.3")
HIGH_SIGNAL_PRESSURE = Decimal("0.15")

DIRECTION_THRESHOLD = Decimal("0.05")

MAX_RECOMMENDED_ACTIONS = 5
MAX_CATEGORY_ACTIONS = 2
MAX_TASK_ACTIONS = 3


class CategoryDirection(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class DriftDirection(str, Enum):
    IMPROVING = "IMPROVING"
    STABLE = "STABLE"
    DECLINING = "DECLINING"


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class SnapshotData:
    """The slice of a valuation snapshot the drift engine reads."""
    bri_score: Decimal
    current_value: Decimal
    category_scores: Mapping[BriCategory, Decimal] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        bri_score: Number,
        current_value: Number,
        category_scores: Optional[Mapping[CategoryKey, Number]] = None,
    ) -> "SnapshotData":
        scores = {parse_category(k): dec(v) for k, v in (category_scores or {}).items()}
        return cls(dec(bri_score), dec(current_value), MappingProxyType(scores))

    @classmethod
    def from_valuation_snapshot(cls, snapshot) -> "SnapshotData":
        """Accepts a services.valuation.snapshot.ValuationSnapshot."""
        return cls(snapshot.bri_score, snapshot.current_value, snapshot.category_scores)


@dataclass(frozen=True)
class SignalsSummary:
    high: int = 0
    critical: int = 0
    total: int = 0


@dataclass(frozen=True)
class PendingTask:
    id: str
    title: str
    bri_category: BriCategory
    normalized_value: Decimal

    @classmethod
    def create(cls, id: str, title: str, bri_category: CategoryKey, normalized_value: Number) -> "PendingTask":
        return cls(id, title, parse_category(bri_category), dec(normalized_value))


@dataclass(frozen=True)
class CategoryChange:
    category: BriCategory
    label: str
    previous_score: Decimal
    current_score: Decimal
    delta: Decimal
    direction: CategoryDirection
    weight: Decimal   # default BRI weight, used in the weighted drift score


@dataclass(frozen=True)
class RecommendedAction:
    description: str
    impact: str
    category: Optional[BriCategory] = None
    task_id: Optional[str] = None


@dataclass(frozen=True)
class DriftResult:
    bri_score_change: Decimal
    valuation_change: Decimal
    category_changes: List[CategoryChange]
    stale_document_count: int
    signals_summary: SignalsSummary
    task_completion_rate: Decimal
    overall_drift_direction: DriftDirection
    recommended_actions: List[RecommendedAction]
    weighted_drift_score: Decimal   # positive = improving, negative = declining


# =============================================================================
# Steps
# =============================================================================

def get_direction(delta: Decimal, threshold: Decimal = STABILITY_THRESHOLD) -> CategoryDirection:
    if delta > threshold:
        return CategoryDirection.IMPROVING
    if delta < -threshold:
        return CategoryDirection.DECLINING
    return CategoryDirection.STABLE


def _category_score(snapshot: Optional[SnapshotData], category: BriCategory) -> Decimal:
    if snapshot is None:
        return ZERO
    return snapshot.category_scores.get(category, ZERO)


def calculate_category_changes(
    current: Optional[SnapshotData],
    previous: Optional[SnapshotData],
) -> List[CategoryChange]:
    """Per-category deltas in fixed category order; an absent snapshot scores 0."""
    changes = []
    for category in BRI_CATEGORIES:
        current_score = _category_score(current, category)
        previous_score = _category_score(previous, category)
        delta = current_score - previous_score
        changes.append(CategoryChange(
            category=category,
            label=CATEGORY_LABELS[category],
            previous_score=previous_score,
            current_score=current_score,
            delta=delta,
            direction=get_direction(delta),
            weight=DEFAULT_BRI_WEIGHTS[category],
        ))
    return changes


def calculate_task_completion_rate(tasks_completed: int, tasks_pending_at_start: int) -> Decimal:
    """
    completed / (completed + pending at period start), clamped to [0, 1].

    Returns 0 when there was nothing to complete.
    """
    total = tasks_completed + tasks_pending_at_start
    if total <= 0:
        return ZERO
    return min(Decimal(tasks_completed) / Decimal(total), ONE)


def calculate_weighted_bri_change(
    category_changes: Sequence[CategoryChange],
    bri_score_change: Optional[Decimal] = None,
) -> Decimal:
    """
    Σ delta × weight over categories.

    When neither snapshot carries a category breakdown (every category delta
    is built from missing scores), the overall BRI change stands in; the
    default weights sum to 1, so both are on the same scale.
    """
    if bri_score_change is not None:
        return bri_score_change
    return sum((c.delta * c.weight for c in category_changes), ZERO)


def calculate_weighted_drift_score(
    category_changes: Sequence[CategoryChange],
    stale_document_count: int,
    signals_summary: SignalsSummary,
    task_completion_rate: Decimal,
    bri_score_change: Optional[Decimal] = None,
) -> Decimal:
    """
    Combine the four drift factors.

        0.60 × (weighted BRI change / 0.10)
      − 0.15 × min(stale × 0.1, 1)
      − 0.10 × min(critical × 0.3 + high × 0.15, 1)
      + 0.15 × task completion rate

    Args:
        bri_score_change: Pass only when no category breakdown is available;
            it then replaces the category-weighted change.
    """
    bri_factor = calculate_weighted_bri_change(category_changes, bri_score_change) / BRI_NORMALIZATION
    staleness_penalty = min(Decimal(stale_document_count) * STALENESS_PER_DOCUMENT, ONE)
    signal_pressure = min(
        Decimal(signals_summary.critical) * CRITICAL_SIGNAL_PRESSURE
        + Decimal(signals_summary.high) * HIGH_SIGNAL_PRESSURE,
        ONE,
    )
    return (
        bri_factor * BRI_FACTOR_WEIGHT
        - staleness_penalty * STALENESS_WEIGHT
        - signal_pressure * SIGNAL_PRESSURE_WEIGHT
        + task_completion_rate * TASK_COMPLETION_WEIGHT
    )


def determine_drift_direction(weighted_score: Decimal) -> DriftDirection:
    if weighted_score > DIRECTION_THRESHOLD:
        return DriftDirection.IMPROVING
    if weighted_score < -DIRECTION_THRESHOLD:
        return DriftDirection.DECLINING
    return DriftDirection.STABLE


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def generate_recommended_actions(
    category_changes: Sequence[CategoryChange],
    top_pending_tasks: Sequence[PendingTask],
    stale_document_count: int,
    signals_summary: SignalsSummary,
) -> List[RecommendedAction]:
    """
    Ordered actions, capped at five:
    1. up to two most-declined categories (most negative delta first)
    2. up to three highest-value pending tasks in a declining category
    3. a stale-document reminder
    4. a critical-signal reminder
    """
    actions: List[RecommendedAction] = []

    declining = sorted(
        (c for c in category_changes if c.direction == CategoryDirection.DECLINING),
        key=lambda c: c.delta,
    )
    for change in declining[:MAX_CATEGORY_ACTIONS]:
        points = abs(to_points(change.delta))
        actions.append(RecommendedAction(
            description=f"Address {change.label} decline (-{points} points this period)",
            impact=(
                f"{change.label} dropped from {to_points(change.previous_score)} "
                f"to {to_points(change.current_score)}"
            ),
            category=change.category,
        ))

    declining_set = {c.category for c in declining}
    relevant = sorted(
        (t for t in top_pending_tasks if t.bri_category in declining_set),
        key=lambda t: t.normalized_value,
        reverse=True,
    )
    for task in relevant[:MAX_TASK_ACTIONS]:
        actions.append(RecommendedAction(
            description=task.title,
            impact=f"High-value task in {CATEGORY_LABELS[task.bri_category]}",
            category=task.bri_category,
            task_id=task.id,
        ))

    if stale_document_count > 0:
        actions.append(RecommendedAction(
            description=f"Update {_plural(stale_document_count, 'stale document')} in your evidence room",
            impact="Stale documents reduce buyer confidence and evidence score",
        ))

    if signals_summary.critical > 0:
        actions.append(RecommendedAction(
            description=(
                f"Review {_plural(signals_summary.critical, 'critical signal')} requiring immediate attention"
            ),
            impact="Critical signals can significantly impact buyer readiness",
        ))

    return actions[:MAX_RECOMMENDED_ACTIONS]


def get_drift_signal_severity(bri_score_change: Number) -> Optional[SignalSeverity]:
    """
    Severity of the drift signal to raise, if any.

    Only declines qualify: a drop of 0.10 or more is CRITICAL, 0.05 or more is
    HIGH, anything smaller (or any non-negative change) raises nothing.
    """
    change = dec(bri_score_change)
    if change >= 0:
        return None
    drop = -change
    if drop >= CRITICAL_BRI_DROP:
        return SignalSeverity.CRITICAL
    if drop >= HIGH_BRI_DROP:
        return SignalSeverity.HIGH
    return None


# =============================================================================
# Main Calculation
# =============================================================================

def _has_breakdown(snapshot: Optional[SnapshotData]) -> bool:
    return snapshot is not None and bool(snapshot.category_scores)


def calculate_drift(
    current_snapshot: Optional[SnapshotData],
    previous_snapshot: Optional[SnapshotData],
    stale_document_count: int = 0,
    signals_summary: Optional[SignalsSummary] = None,
    tasks_completed_count: int = 0,
    tasks_pending_at_start: int = 0,
    top_pending_tasks: Sequence[PendingTask] = (),
) -> DriftResult:
    """
    Execute the complete drift calculation.

    Args:
        current_snapshot: Snapshot at period end (None if none exists)
        previous_snapshot: Snapshot at period start (None if none exists)
        stale_document_count: Documents needing an update or overdue
        signals_summary: Signals raised during the period, by severity
        tasks_completed_count: Tasks completed during the period
        tasks_pending_at_start: Tasks open at period start
        top_pending_tasks: Highest-value open tasks, for recommendations

    Returns:
        DriftResult

    Raises:
        ValueError: on negative counts
    """
    summary = signals_summary or SignalsSummary()
    for name, value in (
        ("stale_document_count", stale_document_count),
        ("tasks_completed_count", tasks_completed_count),
        ("tasks_pending_at_start", tasks_pending_at_start),
        ("signals_summary.high", summary.high),
        ("signals_summary.critical", summary.critical),
    ):
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")

    current_bri = current_snapshot.bri_score if current_snapshot else ZERO
    previous_bri = previous_snapshot.bri_score if previous_snapshot else ZERO
    bri_score_change = current_bri - previous_bri

    current_value = current_snapshot.current_value if current_snapshot else ZERO
    previous_value = previous_snapshot.current_value if previous_snapshot else ZERO
    valuation_change = current_value - previous_value

    category_changes = calculate_category_changes(current_snapshot, previous_snapshot)
    task_completion_rate = calculate_task_completion_rate(tasks_completed_count, tasks_pending_at_start)

    breakdown_available = _has_breakdown(current_snapshot) or _has_breakdown(previous_snapshot)
    weighted_drift_score = calculate_weighted_drift_score(
        category_changes,
        stale_document_count,
        summary,
        task_completion_rate,
        bri_score_change=None if breakdown_available else bri_score_change,
    )
    direction = determine_drift_direction(weighted_drift_score)
    actions = generate_recommended_actions(category_changes, top_pending_tasks, stale_document_count, summary)

    logger.debug(
        "Drift: bri_change=%s weighted=%s direction=%s actions=%d",
        bri_score_change, weighted_drift_score, direction.value, len(actions),
    )
    return DriftResult(
        bri_score_change=bri_score_change,
        valuation_change=valuation_change,
        category_changes=category_changes,
        stale_document_count=stale_document_count,
        signals_summary=summary,
        task_completion_rate=task_completion_rate,
        overall_drift_direction=direction,
        recommended_actions=actions,
        weighted_drift_score=weighted_drift_score,
    )
