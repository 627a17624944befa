"""
build_monthly_drift_report.py — Build one month's drift report from a JSON input file.

This script:
1. Loads two snapshots (previous and current) plus the period's activity counts
2. Runs the drift engine and assembles the report
3. Writes the report (and any proposed drift signal) to JSON

Input JSON shape:
    {
      "period_start": "2026-03-01",
      "period_end": "2026-03-31",
      "previous_snapshot": {"bri_score": 0.70, "current_value": 1000000, "category_scores": {...}},
      "current_snapshot": {"bri_score": 0.58, "current_value": 950000, "category_scores": {...}},
      "stale_document_count": 0,
      "signals_summary": {"high": 0, "critical": 0, "total": 0},
      "tasks_completed_count": 0,
      "tasks_pending_at_start": 0,
      "tasks_added_count": 0,
      "top_pending_tasks": [{"id": "...", "title": "...", "bri_category": "FINANCIAL", "normalized_value": 5000}]
    }

Usage:
    python scripts/build_monthly_drift_report.py --input-json data/drift_input.json --output-json outputs/drift_report.json
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from exitready.core.logging import configure_logging, get_logger
from exitready.services.drift import (
    DriftInputs,
    DriftReport,
    PendingTask,
    SignalsSummary,
    SnapshotData,
    build_drift_report,
)

logger = get_logger(__name__)


def parse_snapshot(data: Optional[Dict[str, Any]]) -> Optional[SnapshotData]:
    if not data:
        return None
    return SnapshotData.create(
        data["bri_score"],
        data["current_value"],
        data.get("category_scores"),
    )


def parse_drift_inputs(data: Dict[str, Any]) -> DriftInputs:
    """Build DriftInputs from the input JSON document."""
    summary = data.get("signals_summary") or {}
    return DriftInputs(
        current_snapshot=parse_snapshot(data.get("current_snapshot")),
        previous_snapshot=parse_snapshot(data.get("previous_snapshot")),
        stale_document_count=data.get("stale_document_count", 0),
        signals_summary=SignalsSummary(
            high=summary.get("high", 0),
            critical=summary.get("critical", 0),
            total=summary.get("total", 0),
        ),
        tasks_completed_count=data.get("tasks_completed_count", 0),
        tasks_pending_at_start=data.get("tasks_pending_at_start", 0),
        top_pending_tasks=[
            PendingTask.create(t["id"], t["title"], t["bri_category"], t["normalized_value"])
            for t in data.get("top_pending_tasks", [])
        ],
    )


def report_to_dict(report: DriftReport) -> Dict[str, Any]:
    """JSON-ready dict; Decimals and datetimes are written as strings."""
    return json.loads(json.dumps(asdict(report), default=str))


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Build a monthly BRI drift report from two snapshots"
    )
    parser.add_argument(
        "--input-json",
        type=str,
        required=True,
        help="Path to drift input JSON file",
    )
    parser.add_argument(
        "--output-json",
        type=str,
        required=True,
        help="Path to output report JSON file",
    )

    args = parser.parse_args()
    configure_logging()

    try:
        input_path = Path(args.input_json)
        if not input_path.exists():
            raise FileNotFoundError(f"Input JSON file not found: {args.input_json}")

        logger.info("Loading drift inputs from: %s", args.input_json)
        with input_path.open("r", encoding="utf-8") as f:
            data = json.load(f)

        report = build_drift_report(
            datetime.fromisoformat(data["period_start"]),
            datetime.fromisoformat(data["period_end"]),
            parse_drift_inputs(data),
            tasks_added_count=data.get("tasks_added_count", 0),
        )

        output_path = Path(args.output_json)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8") as f:
            json.dump(report_to_dict(report), f, indent=2, ensure_ascii=False)

        print(f"Successfully built drift report and wrote to {args.output_json}")
        print(f"\n{report.summary}")
        if report.signal_proposal is not None:
            print(f"  Proposed signal: {report.signal_proposal.title} ({report.signal_proposal.severity.value})")

    except FileNotFoundError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    except (KeyError, ValueError) as e:
        print(f"ERROR: Invalid drift input: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
