"""
Unit tests for tasks/priority_matrix.py

Covers the 5×5 rank matrix, level translation and action plan bounding.
"""

from itertools import product

import pytest

from exitready.services.tasks.priority_matrix import (
    PRIORITY_MATRIX,
    DifficultyLevel,
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

IMPACTS = list(ImpactLevel)          # best first
DIFFICULTIES = list(DifficultyLevel)  # easiest first


class TestMatrix:
    def test_ranks_are_a_permutation(self):
        ranks = sorted(calculate_priority_rank(i, d) for i, d in product(IMPACTS, DIFFICULTIES))
        assert ranks == list(range(1, 26))

    def test_corners(self):
        assert calculate_priority_rank("VERY_HIGH", "NONE") == 1
        assert calculate_priority_rank(ImpactLevel.NONE, DifficultyLevel.VERY_HIGH) == 25

    def test_dominance(self):
        """Higher impact and lower difficulty never rank worse."""
        for (i1, d1), (i2, d2) in product(product(range(5), range(5)), repeat=2):
            if i1 <= i2 and d1 <= d2:
                assert PRIORITY_MATRIX[IMPACTS[i1]][DIFFICULTIES[d1]] <= PRIORITY_MATRIX[IMPACTS[i2]][DIFFICULTIES[d2]]

    def test_lowercase_accepted(self):
        assert calculate_priority_rank("high", "low") == 5

    def test_unknown_level(self):
        with pytest.raises(UnknownLevelError):
            calculate_priority_rank("EXTREME", "LOW")

    @pytest.mark.parametrize("rank, band", [
        (1, PriorityBand.HIGHEST),
        (10, PriorityBand.HIGHEST),
        (11, PriorityBand.MODERATE),
        (17, PriorityBand.MODERATE),
        (18, PriorityBand.LOWEST),
        (25, PriorityBand.LOWEST),
    ])
    def test_bands(self, rank, band):
        assert priority_band(rank) == band

    @pytest.mark.parametrize("rank", [0, 26])
    def test_band_out_of_range(self, rank):
        with pytest.raises(ValueError):
            priority_band(rank)


class TestLevels:
    @pytest.mark.parametrize("score, level", [
        ("0.95", ImpactLevel.NONE),
        ("0.9", ImpactLevel.NONE),
        ("0.89", ImpactLevel.LOW),
        ("0.7", ImpactLevel.LOW),
        ("0.5", ImpactLevel.MEDIUM),
        ("0.3", ImpactLevel.HIGH),
        ("0.29", ImpactLevel.VERY_HIGH),
        (0, ImpactLevel.VERY_HIGH),
    ])
    def test_score_to_impact(self, score, level):
        assert score_to_impact_level(score) == level

    @pytest.mark.parametrize("effort, hours, level", [
        ("MAJOR", 1, DifficultyLevel.NONE),
        (None, 4, DifficultyLevel.LOW),
        (None, 16, DifficultyLevel.MEDIUM),
        (None, 40, DifficultyLevel.HIGH),
        (None, 41, DifficultyLevel.VERY_HIGH),
        ("MINIMAL", None, DifficultyLevel.NONE),
        ("moderate", None, DifficultyLevel.MEDIUM),
        ("MAJOR", None, DifficultyLevel.VERY_HIGH),
    ])
    def test_effort_to_difficulty(self, effort, hours, level):
        assert effort_to_difficulty_level(effort, hours) == level

    def test_unknown_effort(self):
        with pytest.raises(UnknownLevelError):
            effort_to_difficulty_level("HUGE")

    def test_missing_effort(self):
        with pytest.raises(ValueError):
            effort_to_difficulty_level(None, None)

    def test_priority_from_attributes(self):
        priority = calculate_task_priority_from_attributes("0.2", "MINIMAL")
        assert priority.impact_level == ImpactLevel.VERY_HIGH
        assert priority.difficulty_level == DifficultyLevel.NONE
        assert priority.priority_rank == 1


class TestActionPlan:
    @pytest.fixture
    def twenty_tasks(self):
        return [PlannedTask.create(f"t-{i:02d}", f"Task {i}", 1 + i) for i in range(20)]

    def test_plan_is_bounded(self, twenty_tasks):
        plan = build_action_plan(twenty_tasks)
        assert len(plan.active) == 15
        assert len(plan.queued) == 5
        assert plan.added_count == 15
        assert [t.id for t in plan.queued] == ["t-15", "t-16", "t-17", "t-18", "t-19"]

    def test_inactive_tasks_excluded(self):
        tasks = [
            PlannedTask.create("done", "Done", 1, status="COMPLETED"),
            PlannedTask.create("later", "Later", 2, status=TaskStatus.DEFERRED),
            PlannedTask.create("open", "Open", 3, status="in_progress"),
        ]
        plan = build_action_plan(tasks)
        assert [t.id for t in plan.active] == ["open"]
        assert plan.queued == []

    def test_existing_plan_members_keep_their_slot(self, twenty_tasks):
        keeper = PlannedTask.create("keeper", "Low priority but committed", 25, in_action_plan=True)
        plan = build_action_plan(twenty_tasks + [keeper])
        assert "keeper" in [t.id for t in plan.active]
        assert len(plan.active) == 15
        assert plan.added_count == 14
        assert plan.active[-1].id == "keeper"

    def test_ties_broken_by_id(self):
        tasks = [PlannedTask.create(i, i, 5) for i in ("c", "a", "b")]
        assert [t.id for t in build_action_plan(tasks, max_tasks=2).active] == ["a", "b"]

    def test_zero_slots(self, twenty_tasks):
        plan = build_action_plan(twenty_tasks, max_tasks=0)
        assert plan.active == []
        assert len(plan.queued) == 20

    def test_negative_bound_rejected(self, twenty_tasks):
        with pytest.raises(ValueError):
            build_action_plan(twenty_tasks, max_tasks=-1)

    def test_rank_validated(self):
        with pytest.raises(ValueError):
            PlannedTask.create("x", "x", 26)
