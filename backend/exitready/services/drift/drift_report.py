"""
drift_report.py — Monthly Drift Report

Purpose:
- Wrap one calculate_drift() run into an immutable, storable DriftReport with
  period bounds, start/end figures, per-category point changes and a
  template-driven narrative.
- Propose (not create) a drift signal when BRI declined enough to matter.
  Persisting the report and any signal is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from exitready.core.categories import BriCategory
from exitready.core.logging import get_logger
from exitready.core.numeric import round_to, to_points
from exitready.services.drift.calculate_drift import (
    CategoryChange,
    CategoryDirection,
    DriftDirection,
    DriftResult,
    PendingTask,
    RecommendedAction,
    SignalsSummary,
    SnapshotData,
    calculate_drift,
    get_drift_signal_severity,
)
from exitready.services.signals.types import ConfidenceLevel, SignalChannel, SignalSeverity

logger = get_logger(__name__)

DRIFT_SIGNAL_EVENT_TYPE = "monthly_drift_decline"

REPORT_DIRECTIONS = {
    CategoryDirection.IMPROVING: "up",
    CategoryDirection.DECLINING: "down",
    CategoryDirection.STABLE: "flat",
}


@dataclass(frozen=True)
class DriftInputs:
    """Arguments for calculate_drift, gathered by the caller for one period."""
    current_snapshot: Optional[SnapshotData]
    previous_snapshot: Optional[SnapshotData]
    stale_document_count: int = 0
    signals_summary: SignalsSummary = field(default_factory=SignalsSummary)
    tasks_completed_count: int = 0
    tasks_pending_at_start: int = 0
    top_pending_tasks: Sequence[PendingTask] = ()


@dataclass(frozen=True)
class CategoryDriftEntry:
    category: BriCategory
    label: str
    score_before: int   # 0-100 points
    score_after: int
    direction: str      # "up" | "down" | "flat"


@dataclass(frozen=True)
class DriftSignalProposal:
    event_type: str
    channel: SignalChannel
    severity: SignalSeverity
    confidence: ConfidenceLevel
    title: str
    description: str
    estimated_value_impact: Optional[Decimal]
    estimated_bri_impact: Decimal


@dataclass(frozen=True)
class DriftReport:
    period_start: datetime
    period_end: datetime
    bri_score_start: Optional[Decimal]
    bri_score_end: Optional[Decimal]
    valuation_start: Optional[Decimal]
    valuation_end: Optional[Decimal]
    signals_count: int
    tasks_completed_count: int
    tasks_added_count: int
    drift_categories: List[CategoryDriftEntry]
    summary: str
    overall_drift_direction: DriftDirection
    weighted_drift_score: Decimal
    recommended_actions: List[RecommendedAction]
    drift_result: DriftResult
    signal_proposal: Optional[DriftSignalProposal] = None


def _count(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _format_currency(amount: Decimal) -> str:
    return f"${round_to(abs(amount), 0):,.0f}"


def build_narrative_summary(
    drift: DriftResult,
    period_start: datetime,
    tasks_completed_count: int,
    total_signals: int,
) -> str:
    """
    Deterministic, template-driven summary of a drift period.

    Example:
        "In March 2026, your Buyer Readiness Score declined by 12 points and
        your estimated valuation decreased by $50,000. Areas needing
        attention: Financial Health."
    """
    month_name = period_start.strftime("%B %Y")
    bri_points = abs(to_points(drift.bri_score_change))
    if bri_points == 0:
        bri_part = "held steady"
    else:
        bri_verb = "improved" if drift.bri_score_change > 0 else "declined"
        bri_part = f"{bri_verb} by {_count(bri_points, 'point')}"

    if round_to(abs(drift.valuation_change), 0) == 0:
        value_part = "held steady"
    else:
        value_verb = "grew" if drift.valuation_change > 0 else "decreased"
        value_part = f"{value_verb} by {_format_currency(drift.valuation_change)}"

    summary = (
        f"In {month_name}, your Buyer Readiness Score {bri_part}"
        f" and your estimated valuation {value_part}."
    )

    if tasks_completed_count > 0:
        summary += f" You completed {_count(tasks_completed_count, 'task')}."

    improving = [c.label for c in drift.category_changes if c.direction == CategoryDirection.IMPROVING]
    declining = [c.label for c in drift.category_changes if c.direction == CategoryDirection.DECLINING]
    if improving:
        summary += f" Strongest improvements in {', '.join(improving)}."
    if declining:
        summary += f" Areas needing attention: {', '.join(declining)}."

    if total_signals > 0:
        summary += f" {_count(total_signals, 'new signal')} detected."

    return summary


def build_category_entries(category_changes: Sequence[CategoryChange]) -> List[CategoryDriftEntry]:
    return [
        CategoryDriftEntry(
            category=c.category,
            label=c.label,
            score_before=to_points(c.previous_score),
            score_after=to_points(c.current_score),
            direction=REPORT_DIRECTIONS[c.direction],
        )
        for c in category_changes
    ]


def build_drift_signal_proposal(drift: DriftResult) -> Optional[DriftSignalProposal]:
    """A TIME_DECAY signal for a material BRI decline, or None."""
    severity = get_drift_signal_severity(drift.bri_score_change)
    if severity is None:
        return None

    drop_points = abs(to_points(drift.bri_score_change))
    declining = [c.label for c in drift.category_changes if c.direction == CategoryDirection.DECLINING]
    if declining:
        description = f"BRI dropped {drop_points} points. Declining areas: {', '.join(declining)}."
    else:
        description = f"BRI dropped {drop_points} points over the past month."

    return DriftSignalProposal(
        event_type=DRIFT_SIGNAL_EVENT_TYPE,
        channel=SignalChannel.TIME_DECAY,
        severity=severity,
        confidence=ConfidenceLevel.CONFIDENT,
        title=f"Monthly BRI declined {drop_points} points",
        description=description,
        estimated_value_impact=abs(drift.valuation_change) if drift.valuation_change < 0 else None,
        estimated_bri_impact=drift.bri_score_change,
    )


def build_drift_report(
    period_start: datetime,
    period_end: datetime,
    inputs: DriftInputs,
    tasks_added_count: int = 0,
) -> DriftReport:
    """
    Run the drift engine for one period and assemble the report.

    Args:
        period_start: Start of the reporting period
        period_end: End of the reporting period
        inputs: Snapshots and period activity
        tasks_added_count: Tasks created during the period

    Returns:
        DriftReport (with a signal proposal when BRI dropped materially)

    Raises:
        ValueError: if the period ends before it starts
    """
    if period_end < period_start:
        raise ValueError("period_end must not be earlier than period_start")

    drift = calculate_drift(
        inputs.current_snapshot,
        inputs.previous_snapshot,
        stale_document_count=inputs.stale_document_count,
        signals_summary=inputs.signals_summary,
        tasks_completed_count=inputs.tasks_completed_count,
        tasks_pending_at_start=inputs.tasks_pending_at_start,
        top_pending_tasks=inputs.top_pending_tasks,
    )
    current, previous = inputs.current_snapshot, inputs.previous_snapshot
    proposal = build_drift_signal_proposal(drift)

    report = DriftReport(
        period_start=period_start,
        period_end=period_end,
        bri_score_start=previous.bri_score if previous else None,
        bri_score_end=current.bri_score if current else None,
        valuation_start=previous.current_value if previous else None,
        valuation_end=current.current_value if current else None,
        signals_count=inputs.signals_summary.total,
        tasks_completed_count=inputs.tasks_completed_count,
        tasks_added_count=tasks_added_count,
        drift_categories=build_category_entries(drift.category_changes),
        summary=build_narrative_summary(
            drift, period_start, inputs.tasks_completed_count, inputs.signals_summary.total
        ),
        overall_drift_direction=drift.overall_drift_direction,
        weighted_drift_score=drift.weighted_drift_score,
        recommended_actions=drift.recommended_actions,
        drift_result=drift,
        signal_proposal=proposal,
    )
    logger.info(
        "Drift report %s..%s: direction=%s signal=%s",
        period_start.date(), period_end.date(), drift.overall_drift_direction.value,
        proposal.severity.value if proposal else None,
    )
    return report
