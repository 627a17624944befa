"""
Signals: ranking, grouping, display bounding, confidence and value at risk.
"""

from exitready.services.signals.ranking import (
    MAX_ACTIVE_DISPLAY_SIGNALS,
    DisplaySignals,
    RankedSignal,
    SignalGroup,
    calculate_rank_score,
    calculate_weighted_value_at_risk,
    calculate_weighted_value_impact,
    group_signals,
    process_signals_for_display,
    rank_signals,
)
from exitready.services.signals.types import (
    ConfidenceLevel,
    ResolutionStatus,
    Signal,
    SignalChannel,
    SignalSeverity,
    UnknownSignalValueError,
)

__all__ = [
    "MAX_ACTIVE_DISPLAY_SIGNALS",
    "ConfidenceLevel",
    "DisplaySignals",
    "RankedSignal",
    "ResolutionStatus",
    "Signal",
    "SignalChannel",
    "SignalGroup",
    "SignalSeverity",
    "UnknownSignalValueError",
    "calculate_rank_score",
    "calculate_weighted_value_at_risk",
    "calculate_weighted_value_impact",
    "group_signals",
    "process_signals_for_display",
    "rank_signals",
]
