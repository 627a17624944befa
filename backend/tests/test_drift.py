"""
Unit tests for drift/calculate_drift.py
"""

from decimal import Decimal

import pytest

from exitready.core.categories import BRI_CATEGORIES, BriCategory, UnknownCategoryError
from exitready.services.drift.calculate_drift import (
    CategoryDirection,
    DriftDirection,
    PendingTask,
    SignalsSummary,
    SnapshotData,
    calculate_category_changes,
    calculate_drift,
    calculate_task_completion_rate,
    calculate_weighted_drift_score,
    determine_drift_direction,
    generate_recommended_actions,
    get_drift_signal_severity,
)
from exitready.services.signals.types import SignalSeverity


def full_scores(**overrides):
    scores = {category.value: "0.6" for category in BRI_CATEGORIES}
    scores.update(overrides)
    return scores


@pytest.fixture
def previous_snapshot() -> SnapshotData:
    return SnapshotData.create("0.70", 1_000_000, full_scores(FINANCIAL="0.8", MARKET="0.7", LEGAL_TAX="0.65"))


@pytest.fixture
def current_snapshot() -> SnapshotData:
    return SnapshotData.create("0.61", 920_000, full_scores(FINANCIAL="0.6", MARKET="0.6", LEGAL_TAX="0.6"))


class TestSpecScenario:
    def test_twelve_point_drop_is_critical_and_declining(self):
        previous = SnapshotData.create(0.70, 1_000_000)
        current = SnapshotData.create(0.58, 950_000)
        result = calculate_drift(current, previous)
        assert result.bri_score_change == Decimal("-0.12")
        assert get_drift_signal_severity(result.bri_score_change) == SignalSeverity.CRITICAL
        assert result.overall_drift_direction == DriftDirection.DECLINING
        assert result.overall_drift_direction == "DECLINING"
        assert result.valuation_change == Decimal("-50000")


class TestSignalSeverity:
    @pytest.mark.parametrize("change, expected", [
        ("-0.30", SignalSeverity.CRITICAL),
        ("-0.10", SignalSeverity.CRITICAL),
        ("-0.0999", SignalSeverity.HIGH),
        ("-0.05", SignalSeverity.HIGH),
        ("-0.049", None),
        ("0", None),
        ("0.25", None),
    ])
    def test_thresholds(self, change, expected):
        assert get_drift_signal_severity(change) == expected

    def test_positive_changes_never_emit(self):
        for points in range(0, 101):
            assert get_drift_signal_severity(Decimal(points) / 100) is None


class TestCategoryChanges:
    def test_deltas_and_directions(self, current_snapshot, previous_snapshot):
        changes = {c.category: c for c in calculate_category_changes(current_snapshot, previous_snapshot)}
        assert changes[BriCategory.FINANCIAL].delta == Decimal("-0.2")
        assert changes[BriCategory.FINANCIAL].direction == CategoryDirection.DECLINING
        assert changes[BriCategory.OPERATIONAL].direction == CategoryDirection.STABLE

    def test_half_point_threshold(self):
        previous = SnapshotData.create(0, 0, {"FINANCIAL": "0.500", "MARKET": "0.500"})
        current = SnapshotData.create(0, 0, {"FINANCIAL": "0.505", "MARKET": "0.506"})
        changes = {c.category: c for c in calculate_category_changes(current, previous)}
        assert changes[BriCategory.FINANCIAL].direction == CategoryDirection.STABLE
        assert changes[BriCategory.MARKET].direction == CategoryDirection.IMPROVING

    def test_absent_snapshot_defaults_to_zero(self, current_snapshot):
        changes = calculate_category_changes(current_snapshot, None)
        assert [c.previous_score for c in changes] == [Decimal("0")] * 6
        assert [c.category for c in changes] == list(BRI_CATEGORIES)

    def test_unknown_category_rejected(self):
        with pytest.raises(UnknownCategoryError):
            SnapshotData.create("0.5", 0, {"SALES": "0.5"})


class TestFactors:
    @pytest.mark.parametrize("completed, pending, expected", [
        (3, 1, Decimal("0.75")),
        (0, 5, Decimal("0")),
        (4, 0, Decimal("1")),
        (0, 0, Decimal("0")),
    ])
    def test_task_completion_rate(self, completed, pending, expected):
        assert calculate_task_completion_rate(completed, pending) == expected

    def test_weighted_score_components(self):
        changes = calculate_category_changes(None, None)
        score = calculate_weighted_drift_score(changes, 3, SignalsSummary(high=1, critical=1, total=2), Decimal("0.5"))
        # −0.3 × 0.15 − 0.45 × 0.10 + 0.5 × 0.15
        assert score == Decimal("-0.015")

    def test_penalties_are_capped(self):
        changes = calculate_category_changes(None, None)
        score = calculate_weighted_drift_score(changes, 50, SignalsSummary(high=9, critical=9, total=18), Decimal("0"))
        assert score == Decimal("-0.25")

    @pytest.mark.parametrize("score, expected", [
        ("0.06", DriftDirection.IMPROVING),
        ("0.05", DriftDirection.STABLE),
        ("-0.05", DriftDirection.STABLE),
        ("-0.051", DriftDirection.DECLINING),
    ])
    def test_direction_thresholds(self, score, expected):
        assert determine_drift_direction(Decimal(score)) == expected


class TestCalculateDrift:
    def test_category_weighted_decline(self, current_snapshot, previous_snapshot):
        result = calculate_drift(current_snapshot, previous_snapshot)
        # (−0.2 × 0.25 − 0.1 × 0.15 − 0.05 × 0.10) / 0.10 × 0.60
        assert result.weighted_drift_score == Decimal("-0.42")
        assert result.overall_drift_direction == DriftDirection.DECLINING

    def test_task_completion_can_lift_a_flat_period(self, previous_snapshot):
        result = calculate_drift(previous_snapshot, previous_snapshot, tasks_completed_count=4)
        assert result.task_completion_rate == Decimal("1")
        assert result.overall_drift_direction == DriftDirection.IMPROVING

    def test_no_snapshots_is_stable(self):
        result = calculate_drift(None, None)
        assert result.bri_score_change == Decimal("0")
        assert result.overall_drift_direction == DriftDirection.STABLE
        assert result.recommended_actions == []

    def test_staleness_alone_can_decline(self, previous_snapshot):
        result = calculate_drift(previous_snapshot, previous_snapshot, stale_document_count=20)
        assert result.weighted_drift_score == Decimal("-0.15")
        assert result.overall_drift_direction == DriftDirection.DECLINING

    def test_negative_counts_rejected(self):
        with pytest.raises(ValueError):
            calculate_drift(None, None, stale_document_count=-1)

    def test_deterministic(self, current_snapshot, previous_snapshot):
        tasks = [PendingTask.create("t-1", "Clean up books", "FINANCIAL", 5000)]
        args = (current_snapshot, previous_snapshot, 2, SignalsSummary(1, 1, 2), 3, 4, tasks)
        assert calculate_drift(*args) == calculate_drift(*args)


class TestRecommendedActions:
    @pytest.fixture
    def tasks(self):
        return [
            PendingTask.create("t-fin", "Produce audited financials", "FINANCIAL", 5000),
            PendingTask.create("t-mkt", "Document competitive moat", "MARKET", 9000),
            PendingTask.create("t-per", "Plan post-exit role", "PERSONAL", 99999),
            PendingTask.create("t-leg", "Resolve open tax notice", "LEGAL_TAX", 1000),
        ]

    def test_order_and_cap(self, current_snapshot, previous_snapshot, tasks):
        changes = calculate_category_changes(current_snapshot, previous_snapshot)
        actions = generate_recommended_actions(changes, tasks, 2, SignalsSummary(high=0, critical=1, total=1))
        assert len(actions) == 5
        assert actions[0].description == "Address Financial Health decline (-20 points this period)"
        assert actions[0].impact == "Financial Health dropped from 80 to 60"
        assert actions[1].category == BriCategory.MARKET
        # Declining-category tasks by value; PERSONAL is not declining.
        assert [a.task_id for a in actions[2:]] == ["t-mkt", "t-fin", "t-leg"]
        assert actions[2].impact == "High-value task in Market Position"

    def test_reminders(self):
        previous = SnapshotData.create("0.6", 0, {"OPERATIONAL": "0.6"})
        current = SnapshotData.create("0.5", 0, {"OPERATIONAL": "0.5"})
        changes = calculate_category_changes(current, previous)
        actions = generate_recommended_actions(changes, [], 1, SignalsSummary(high=0, critical=2, total=2))
        assert [a.description for a in actions] == [
            "Address Operations decline (-10 points this period)",
            "Update 1 stale document in your evidence room",
            "Review 2 critical signals requiring immediate attention",
        ]

    def test_no_declines_no_task_actions(self, previous_snapshot, tasks):
        changes = calculate_category_changes(previous_snapshot, previous_snapshot)
        assert generate_recommended_actions(changes, tasks, 0, SignalsSummary()) == []
