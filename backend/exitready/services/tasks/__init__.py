"""Task prioritization: impact/difficulty matrix and the bounded action plan."""

from exitready.services.tasks.priority_matrix import (
    ActionPlan,
    DifficultyLevel,
    EffortLevel,
    ImpactLevel,
    PlannedTask,
    PriorityBand,
    TaskStatus,
    UnknownLevelError,
    build_action_plan,
    calculate_priority_rank,
    calculate_task_priority_from_attributes,
    effort_to_difficulty_level,
    priority_band,
    score_to_impact_level,
)

__all__ = [
    "ActionPlan",
    "DifficultyLevel",
    "EffortLevel",
    "ImpactLevel",
    "PlannedTask",
    "PriorityBand",
    "TaskStatus",
    "UnknownLevelError",
    "build_action_plan",
    "calculate_priority_rank",
    "calculate_task_priority_from_attributes",
    "effort_to_difficulty_level",
    "priority_band",
    "score_to_impact_level",
]
