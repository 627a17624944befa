"""
priority_matrix.py — Impact × Difficulty Task Priority

Purpose:
- Map an (impact, difficulty) pair to a fixed priority rank in [1, 25]
  (1 = do first).
- Translate a category readiness score and an effort estimate into those
  levels.
- Bound the visible action plan: the best-ranked actionable tasks are active,
  the rest wait in a queue.

Rank bands:
    1-10   highest priority
    11-17  moderate
    18-25  lowest / defer
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from exitready.core.logging import get_logger
from exitready.core.numeric import Number, dec, to_decimal

logger = get_logger(__name__)

MAX_ACTION_PLAN_TASKS = 15


class UnknownLevelError(ValueError):
    """Raised when an impact, difficulty, effort or status value is not recognised."""


class ImpactLevel(str, Enum):
    VERY_HIGH = "VERY_HIGH"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NONE = "NONE"


class DifficultyLevel(str, Enum):
    NONE = "NONE"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class EffortLevel(str, Enum):
    MINIMAL = "MINIMAL"
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    MAJOR = "MAJOR"


class PriorityBand(str, Enum):
    HIGHEST = "HIGHEST"
    MODERATE = "MODERATE"
    LOWEST = "LOWEST"


# =============================================================================
# Matrix
# =============================================================================

# Rows: impact (best first). Columns: difficulty NONE → VERY_HIGH.
# Ranks ascend along anti-diagonals; within one, higher impact ranks first.
PRIORITY_MATRIX: Mapping[ImpactLevel, Mapping[DifficultyLevel, int]] = MappingProxyType({
    ImpactLevel.VERY_HIGH: MappingProxyType({
        DifficultyLevel.NONE: 1, DifficultyLevel.LOW: 2, DifficultyLevel.MEDIUM: 4,
        DifficultyLevel.HIGH: 7, DifficultyLevel.VERY_HIGH: 11,
    }),
    ImpactLevel.HIGH: MappingProxyType({
        DifficultyLevel.NONE: 3, DifficultyLevel.LOW: 5, DifficultyLevel.MEDIUM: 8,
        DifficultyLevel.HIGH: 12, DifficultyLevel.VERY_HIGH: 16,
    }),
    ImpactLevel.MEDIUM: MappingProxyType({
        DifficultyLevel.NONE: 6, DifficultyLevel.LOW: 9, DifficultyLevel.MEDIUM: 13,
        DifficultyLevel.HIGH: 17, DifficultyLevel.VERY_HIGH: 20,
    }),
    ImpactLevel.LOW: MappingProxyType({
        DifficultyLevel.NONE: 10, DifficultyLevel.LOW: 14, DifficultyLevel.MEDIUM: 18,
        DifficultyLevel.HIGH: 21, DifficultyLevel.VERY_HIGH: 23,
    }),
    ImpactLevel.NONE: MappingProxyType({
        DifficultyLevel.NONE: 15, DifficultyLevel.LOW: 19, DifficultyLevel.MEDIUM: 22,
        DifficultyLevel.HIGH: 24, DifficultyLevel.VERY_HIGH: 25,
    }),
})

HIGHEST_BAND_MAX = 10
MODERATE_BAND_MAX = 17

# Lower readiness score → more room to improve → higher impact.
IMPACT_BREAKPOINTS: Tuple[Tuple[Decimal, ImpactLevel], ...] = (
    (Decimal("0.9"), ImpactLevel.NONE),
    (Decimal("0.7"), ImpactLevel.LOW),
    (Decimal("0.5"), ImpactLevel.MEDIUM),
    (Decimal("0.3"), ImpactLevel.HIGH),
)

HOURS_BREAKPOINTS: Tuple[Tuple[Decimal, DifficultyLevel], ...] = (
    (Decimal("1"), DifficultyLevel.NONE),
    (Decimal("4"), DifficultyLevel.LOW),
    (Decimal("16"), DifficultyLevel.MEDIUM),
    (Decimal("40"), DifficultyLevel.HIGH),
)

EFFORT_TO_DIFFICULTY: Mapping[EffortLevel, DifficultyLevel] = MappingProxyType({
    EffortLevel.MINIMAL: DifficultyLevel.NONE,
    EffortLevel.LOW: DifficultyLevel.LOW,
    EffortLevel.MODERATE: DifficultyLevel.MEDIUM,
    EffortLevel.HIGH: DifficultyLevel.HIGH,
    EffortLevel.MAJOR: DifficultyLevel.VERY_HIGH,
})


L = TypeVar("L", bound=Enum)


def parse_level(enum_cls: Type[L], value: Union[L, str]) -> L:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        raise UnknownLevelError(f"Unknown {enum_cls.__name__} value: {value!r}") from None


def calculate_priority_rank(
    impact: Union[ImpactLevel, str],
    difficulty: Union[DifficultyLevel, str],
) -> int:
    """Fixed rank for an (impact, difficulty) pair; 1 is the highest priority."""
    return PRIORITY_MATRIX[parse_level(ImpactLevel, impact)][parse_level(DifficultyLevel, difficulty)]


def priority_band(rank: int) -> PriorityBand:
    if not 1 <= rank <= 25:
        raise ValueError(f"Priority rank must be within 1-25, got {rank}")
    if rank <= HIGHEST_BAND_MAX:
        return PriorityBand.HIGHEST
    if rank <= MODERATE_BAND_MAX:
        return PriorityBand.MODERATE
    return PriorityBand.LOWEST


def score_to_impact_level(score: Number) -> ImpactLevel:
    """
    Impact of improving a category currently scoring ``score`` (0-1).

    ≥0.9 NONE, ≥0.7 LOW, ≥0.5 MEDIUM, ≥0.3 HIGH, otherwise VERY_HIGH.
    """
    value = dec(score)
    for threshold, level in IMPACT_BREAKPOINTS:
        if value >= threshold:
            return level
    return ImpactLevel.VERY_HIGH


def effort_to_difficulty_level(
    effort_level: Optional[Union[EffortLevel, str]],
    estimated_hours: Optional[Number] = None,
) -> DifficultyLevel:
    """
    Difficulty from an hours estimate when one is given, else from the
    categorical effort label.

    Hours: ≤1 NONE, ≤4 LOW, ≤16 MEDIUM, ≤40 HIGH, otherwise VERY_HIGH.

    Raises:
        UnknownLevelError: for an unrecognised effort label
        ValueError: when neither an estimate nor a label is available
    """
    hours = to_decimal(estimated_hours)
    if hours is not None:
        for limit, level in HOURS_BREAKPOINTS:
            if hours <= limit:
                return level
        return DifficultyLevel.VERY_HIGH

    if effort_level is None:
        raise ValueError("Either effort_level or estimated_hours is required")
    return EFFORT_TO_DIFFICULTY[parse_level(EffortLevel, effort_level)]


@dataclass(frozen=True)
class TaskPriority:
    impact_level: ImpactLevel
    difficulty_level: DifficultyLevel
    priority_rank: int


def calculate_task_priority_from_attributes(
    score: Number,
    effort_level: Optional[Union[EffortLevel, str]],
    estimated_hours: Optional[Number] = None,
) -> TaskPriority:
    """Impact, difficulty and rank for a task in one call."""
    impact = score_to_impact_level(score)
    difficulty = effort_to_difficulty_level(effort_level, estimated_hours)
    return TaskPriority(impact, difficulty, calculate_priority_rank(impact, difficulty))


# =============================================================================
# Action Plan
# =============================================================================

class TaskStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    DEFERRED = "DEFERRED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NOT_APPLICABLE = "NOT_APPLICABLE"


INACTIVE_STATUSES = frozenset({
    TaskStatus.COMPLETED,
    TaskStatus.CANCELLED,
    TaskStatus.DEFERRED,
    TaskStatus.NOT_APPLICABLE,
})


@dataclass(frozen=True)
class PlannedTask:
    id: str
    title: str
    priority_rank: int
    status: TaskStatus = TaskStatus.PENDING
    in_action_plan: bool = False

    @classmethod
    def create(
        cls,
        id: str,
        title: str,
        priority_rank: int,
        status: Union[TaskStatus, str] = TaskStatus.PENDING,
        in_action_plan: bool = False,
    ) -> "PlannedTask":
        if not 1 <= priority_rank <= 25:
            raise ValueError(f"Priority rank must be within 1-25, got {priority_rank}")
        return cls(id, title, priority_rank, parse_level(TaskStatus, status), in_action_plan)

    @property
    def is_actionable(self) -> bool:
        return self.status not in INACTIVE_STATUSES


@dataclass(frozen=True)
class ActionPlan:
    active: List[PlannedTask] = field(default_factory=list)
    queued: List[PlannedTask] = field(default_factory=list)
    added_count: int = 0   # queued tasks promoted into the plan by this call


def _by_priority(tasks: Sequence[PlannedTask]) -> List[PlannedTask]:
    return sorted(tasks, key=lambda t: (t.priority_rank, t.id))


def build_action_plan(tasks: Sequence[PlannedTask], max_tasks: int = MAX_ACTION_PLAN_TASKS) -> ActionPlan:
    """
    Split actionable tasks into the visible plan and the queue.

    Tasks already in the plan keep their slot; free slots are filled from the
    queue in priority order (rank, then id). Completed, cancelled, deferred and
    not-applicable tasks are left out entirely.

    Raises:
        ValueError: if max_tasks is negative
    """
    if max_tasks < 0:
        raise ValueError(f"max_tasks must be non-negative, got {max_tasks}")

    actionable = [t for t in tasks if t.is_actionable]
    current = _by_priority([t for t in actionable if t.in_action_plan])
    waiting = _by_priority([t for t in actionable if not t.in_action_plan])

    slots = max(max_tasks - len(current), 0)
    promoted = waiting[:slots]
    plan = ActionPlan(
        active=_by_priority(current + promoted),
        queued=waiting[slots:],
        added_count=len(promoted),
    )
    logger.debug(
        "Action plan: %d active (%d added), %d queued",
        len(plan.active), plan.added_count, len(plan.queued),
    )
    return plan
