"""
build_dashboard_queues.py — Rank signals and bound the action plan for one company.

This script:
1. Loads the company's signals and tasks from JSON
2. Ranks and groups signals; the top groups are active, the rest queued
3. Splits actionable tasks into the active plan and the queue
4. Writes both views to JSON

Bounds come from settings (MAX_ACTIVE_DISPLAY_SIGNALS, MAX_ACTION_PLAN_TASKS)
unless overridden on the command line.

Usage:
    python scripts/build_dashboard_queues.py --input-json data/company.json --output-json outputs/queues.json
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from exitready.core.config import settings
from exitready.core.logging import configure_logging, get_logger
from exitready.services.signals.ranking import DisplaySignals, SignalGroup, process_signals_for_display
from exitready.services.signals.types import Signal
from exitready.services.tasks.priority_matrix import ActionPlan, PlannedTask, build_action_plan

logger = get_logger(__name__)


def parse_signal(data: Dict[str, Any]) -> Signal:
    fields = dict(data)
    if fields.get("created_at"):
        fields["created_at"] = datetime.fromisoformat(fields["created_at"])
    return Signal.create(**fields)


def parse_task(data: Dict[str, Any]) -> PlannedTask:
    return PlannedTask.create(
        data["id"],
        data["title"],
        data["priority_rank"],
        status=data.get("status", "PENDING"),
        in_action_plan=data.get("in_action_plan", False),
    )


def group_to_dict(group: SignalGroup) -> Dict[str, Any]:
    return {
        "group_key": group.group_key,
        "display_title": group.display_title,
        "count": group.count,
        "group_rank_score": str(group.group_rank_score),
        "total_weighted_impact": str(group.total_weighted_impact),
        "max_severity": group.max_severity.value,
        "max_confidence": group.max_confidence.value,
        "signal_ids": [r.signal.id for r in group.signals],
    }


def queues_to_dict(display: DisplaySignals, plan: ActionPlan) -> Dict[str, Any]:
    return {
        "signals": {
            "active": [group_to_dict(g) for g in display.active_display_groups],
            "queued": [group_to_dict(g) for g in display.queued_groups],
            "total_weighted_value_at_risk": str(display.total_weighted_value_at_risk),
            "total_signal_count": display.total_signal_count,
        },
        "action_plan": {
            "active": [t.id for t in plan.active],
            "queued": [t.id for t in plan.queued],
            "added_count": plan.added_count,
        },
    }


def build_queues(
    data: Dict[str, Any],
    max_display: Optional[int] = None,
    max_tasks: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Build both dashboard queues from an input document.

    Args:
        data: {"signals": [...], "tasks": [...]}
        max_display: Active signal groups (defaults to settings)
        max_tasks: Active plan size (defaults to settings)
    """
    signals: List[Signal] = [parse_signal(s) for s in data.get("signals", [])]
    tasks: List[PlannedTask] = [parse_task(t) for t in data.get("tasks", [])]

    display = process_signals_for_display(
        signals,
        max_display=settings.MAX_ACTIVE_DISPLAY_SIGNALS if max_display is None else max_display,
    )
    plan = build_action_plan(
        tasks,
        max_tasks=settings.MAX_ACTION_PLAN_TASKS if max_tasks is None else max_tasks,
    )
    logger.info(
        "Built queues: %d signal groups active, %d tasks in plan",
        len(display.active_display_groups), len(plan.active),
    )
    return queues_to_dict(display, plan)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Rank signals and bound the action plan for the dashboard"
    )
    parser.add_argument("--input-json", type=str, required=True, help="Path to signals/tasks JSON file")
    parser.add_argument("--output-json", type=str, required=True, help="Path to output queues JSON file")
    parser.add_argument("--max-display", type=int, default=None, help="Override MAX_ACTIVE_DISPLAY_SIGNALS")
    parser.add_argument("--max-tasks", type=int, default=None, help="Override MAX_ACTION_PLAN_TASKS")

    args = parser.parse_args()
    configure_logging()

    try:
        input_path = Path(args.input_json)
        if not input_path.exists():
            raise FileNotFoundError(f"Input JSON file not found: {args.input_json}")

        with input_path.open("r", encoding="utf-8") as f:
            data = json.load(f)

        queues = build_queues(data, args.max_display, args.max_tasks)

        output_path = Path(args.output_json)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8") as f:
            json.dump(queues, f, indent=2, ensure_ascii=False)

        print(f"Successfully built dashboard queues and wrote to {args.output_json}")
        print(f"  Active signal groups: {len(queues['signals']['active'])}")
        print(f"  Tasks in action plan: {len(queues['action_plan']['active'])}")

    except FileNotFoundError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    except (KeyError, TypeError, ValueError) as e:
        print(f"ERROR: Invalid input: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
