"""Drift: period-over-period comparison of valuation snapshots."""

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
from exitready.services.drift.drift_report import (
    DriftInputs,
    DriftReport,
    DriftSignalProposal,
    build_drift_report,
)

__all__ = [
    "CategoryChange",
    "CategoryDirection",
    "DriftDirection",
    "DriftInputs",
    "DriftReport",
    "DriftResult",
    "DriftSignalProposal",
    "PendingTask",
    "RecommendedAction",
    "SignalsSummary",
    "SnapshotData",
    "build_drift_report",
    "calculate_drift",
    "get_drift_signal_severity",
]
