"""
Unit tests for drift/drift_report.py
"""

from datetime import datetime
from decimal import Decimal

import pytest

from exitready.services.drift.calculate_drift import (
    DriftDirection,
    SignalsSummary,
    SnapshotData,
)
from exitready.services.drift.drift_report import (
    DRIFT_SIGNAL_EVENT_TYPE,
    DriftInputs,
    build_drift_report,
)
from exitready.services.signals.types import ConfidenceLevel, SignalChannel, SignalSeverity

PERIOD_START = datetime(2026, 3, 1)
PERIOD_END = datetime(2026, 3, 31, 23, 59, 59)


class TestDeclineReport:
    @pytest.fixture
    def report(self):
        inputs = DriftInputs(
            current_snapshot=SnapshotData.create(0.58, 950_000),
            previous_snapshot=SnapshotData.create(0.70, 1_000_000),
        )
        return build_drift_report(PERIOD_START, PERIOD_END, inputs)

    def test_summary(self, report):
        assert report.summary == (
            "In March 2026, your Buyer Readiness Score declined by 12 points "
            "and your estimated valuation decreased by $50,000."
        )

    def test_start_and_end_figures(self, report):
        assert report.bri_score_start == Decimal("0.7")
        assert report.bri_score_end == Decimal("0.58")
        assert report.valuation_start == Decimal("1000000")
        assert report.valuation_end == Decimal("950000")
        assert report.overall_drift_direction == DriftDirection.DECLINING

    def test_signal_proposal(self, report):
        proposal = report.signal_proposal
        assert proposal.event_type == DRIFT_SIGNAL_EVENT_TYPE
        assert proposal.channel == SignalChannel.TIME_DECAY
        assert proposal.confidence == ConfidenceLevel.CONFIDENT
        assert proposal.severity == SignalSeverity.CRITICAL
        assert proposal.title == "Monthly BRI declined 12 points"
        assert proposal.description == "BRI dropped 12 points over the past month."
        assert proposal.estimated_value_impact == Decimal("50000")


class TestMixedReport:
    @pytest.fixture
    def inputs(self):
        return DriftInputs(
            current_snapshot=SnapshotData.create("0.66", 1_100_000, {"FINANCIAL": "0.9", "MARKET": "0.5"}),
            previous_snapshot=SnapshotData.create("0.60", 1_000_000, {"FINANCIAL": "0.7", "MARKET": "0.6"}),
            signals_summary=SignalsSummary(high=1, critical=0, total=3),
            tasks_completed_count=2,
            tasks_pending_at_start=2,
        )

    def test_narrative_lists_categories_and_activity(self, inputs):
        report = build_drift_report(PERIOD_START, PERIOD_END, inputs, tasks_added_count=4)
        assert report.summary == (
            "In March 2026, your Buyer Readiness Score improved by 6 points and your estimated "
            "valuation grew by $100,000. You completed 2 tasks. Strongest improvements in "
            "Financial Health. Areas needing attention: Market Position. 3 new signals detected."
        )
        assert report.tasks_added_count == 4
        assert report.signals_count == 3

    def test_category_entries_in_points(self, inputs):
        report = build_drift_report(PERIOD_START, PERIOD_END, inputs)
        entries = {e.category.value: e for e in report.drift_categories}
        assert (entries["FINANCIAL"].score_before, entries["FINANCIAL"].score_after) == (70, 90)
        assert entries["FINANCIAL"].direction == "up"
        assert entries["MARKET"].direction == "down"
        assert entries["PERSONAL"].direction == "flat"

    def test_improvement_has_no_signal(self, inputs):
        assert build_drift_report(PERIOD_START, PERIOD_END, inputs).signal_proposal is None

    def test_singular_task(self, inputs):
        from dataclasses import replace
        report = build_drift_report(PERIOD_START, PERIOD_END, replace(inputs, tasks_completed_count=1))
        assert "You completed 1 task." in report.summary


class TestEdgeCases:
    def test_decline_with_categories_names_them(self):
        inputs = DriftInputs(
            current_snapshot=SnapshotData.create("0.64", 900_000, {"LEGAL_TAX": "0.2"}),
            previous_snapshot=SnapshotData.create("0.70", 900_000, {"LEGAL_TAX": "0.8"}),
        )
        proposal = build_drift_report(PERIOD_START, PERIOD_END, inputs).signal_proposal
        assert proposal.severity == SignalSeverity.HIGH
        assert proposal.description == "BRI dropped 6 points. Declining areas: Legal & Tax."
        assert proposal.estimated_value_impact is None

    def test_first_period_has_no_start_figures(self):
        inputs = DriftInputs(current_snapshot=SnapshotData.create("0.5", 500_000), previous_snapshot=None)
        report = build_drift_report(PERIOD_START, PERIOD_END, inputs)
        assert report.bri_score_start is None
        assert report.valuation_start is None
        assert report.signal_proposal is None

    def test_inverted_period_rejected(self):
        inputs = DriftInputs(current_snapshot=None, previous_snapshot=None)
        with pytest.raises(ValueError):
            build_drift_report(PERIOD_END, PERIOD_START, inputs)


class TestNarrativeWording:
    def test_sub_point_change_holds_steady(self):
        inputs = DriftInputs(
            current_snapshot=SnapshotData.create("0.696", 1_000_000),
            previous_snapshot=SnapshotData.create("0.70", 1_000_000),
        )
        report = build_drift_report(PERIOD_START, PERIOD_END, inputs)
        assert report.summary == (
            "In March 2026, your Buyer Readiness Score held steady "
            "and your estimated valuation held steady."
        )
        assert report.signal_proposal is None

    def test_single_point_is_singular(self):
        inputs = DriftInputs(
            current_snapshot=SnapshotData.create("0.71", 1_000_250),
            previous_snapshot=SnapshotData.create("0.70", 1_000_000),
        )
        summary = build_drift_report(PERIOD_START, PERIOD_END, inputs).summary
        assert summary.startswith(
            "In March 2026, your Buyer Readiness Score improved by 1 point "
            "and your estimated valuation grew by $250."
        )
