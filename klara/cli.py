#!/usr/bin/env python3
"""
Klara Command Line Interface

Main entry point for the `klara` command. Every subcommand reads a JSON
task file (a list of task objects, snake_case or camelCase) and prints JSON.

Usage:
    klara nudges --tasks tasks.json                 # Nudges with badge quota applied
    klara nudges --tasks tasks.json --dismiss t1:overdue
    klara infer --tasks tasks.json                  # Inferred user state
    klara suggest --tasks tasks.json --task-id t1 --tone gentle
    klara --version
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from klara import __version__
from klara.config_models import load_config
from klara.logging_config import get_logger, setup_logging
from klara.tasks.models import TaskSnapshot

logger = get_logger(__name__)


def load_tasks(path: Path) -> list[TaskSnapshot]:
    """Load task snapshots from a JSON file containing a list or {"tasks": [...]}."""
    with open(path) as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("tasks", [])
    return [TaskSnapshot.from_dict(item) for item in raw]


def _print(result) -> None:
    print(json.dumps(result, indent=2, default=str))


def cmd_nudges(args) -> int:
    """Handle nudges subcommand."""
    from klara.nudges import NudgeType
    from klara.nudges.detector import NudgeDetector

    config = load_config(args.config)
    detector = NudgeDetector(config.nudges)

    if args.dismiss:
        task_id, _, nudge_type = args.dismiss.rpartition(":")
        if not task_id:
            _print({"success": False, "error": "--dismiss expects TASK_ID:NUDGE_TYPE"})
            return 1
        until = detector.dismiss(task_id, NudgeType(nudge_type))
        _print({"success": True, "task_id": task_id, "nudge_type": nudge_type, "until": until})
        return 0

    tasks = load_tasks(args.tasks)
    nudge_map = detector.detect_all(tasks)
    _print(
        {
            "success": True,
            "nudges": {
                task_id: [n.to_dict() for n in nudges] for task_id, nudges in nudge_map.items()
            },
        }
    )
    return 0


def cmd_infer(args) -> int:
    """Handle infer subcommand."""
    from klara.inference.state import get_state_description, get_state_group, infer_state

    config = load_config(args.config)
    state = infer_state(load_tasks(args.tasks), config=config.inference)
    _print(
        {
            "success": True,
            **state.to_dict(),
            "description": get_state_description(state.state),
            "group": get_state_group(state.state),
        }
    )
    return 0


async def _suggest(args) -> int:
    from klara.suggestions.orchestrator import SuggestionOrchestrator

    tasks = {t.id: t for t in load_tasks(args.tasks)}
    task = tasks.get(args.task_id)
    if task is None:
        _print({"success": False, "error": f"Task not found: {args.task_id}"})
        return 1

    orchestrator = SuggestionOrchestrator.from_config(
        config=load_config(args.config),
        task_exists=lambda task_id: task_id in tasks,
    )
    try:
        result = await orchestrator.request_suggestions(task, tone=args.tone, state=args.state)
    finally:
        aclose = getattr(orchestrator.provider, "aclose", None)
        if aclose is not None:
            await aclose()

    _print(result.to_dict())
    return 0 if result.success else 1


def cmd_suggest(args) -> int:
    """Handle suggest subcommand."""
    return asyncio.run(_suggest(args))


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="klara",
        description="Klara - task suggestions, nudges and state inference",
    )
    parser.add_argument("--version", action="version", version=f"klara {__version__}")
    parser.add_argument("--config", type=Path, default=None, help="Path to klara.yaml")
    parser.add_argument("--log-level", default=None, help="Log level (default: KLARA_LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    nudges_parser = subparsers.add_parser("nudges", help="Detect nudges for a task list")
    nudges_parser.add_argument("--tasks", type=Path, help="JSON task file")
    nudges_parser.add_argument("--dismiss", help="Dismiss a nudge: TASK_ID:NUDGE_TYPE")
    nudges_parser.set_defaults(func=cmd_nudges)

    infer_parser = subparsers.add_parser("infer", help="Infer the user's current state")
    infer_parser.add_argument("--tasks", type=Path, required=True, help="JSON task file")
    infer_parser.set_defaults(func=cmd_infer)

    suggest_parser = subparsers.add_parser("suggest", help="Request subtask suggestions")
    suggest_parser.add_argument("--tasks", type=Path, required=True, help="JSON task file")
    suggest_parser.add_argument("--task-id", required=True, help="Task to break down")
    suggest_parser.add_argument(
        "--tone", choices=["gentle", "concise", "coach", "silent"], help="Tone preset"
    )
    suggest_parser.add_argument("--state", help="Inferred state label, e.g. tired or avoidant")
    suggest_parser.set_defaults(func=cmd_suggest)

    args = parser.parse_args(argv)
    setup_logging(level=args.log_level)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "nudges" and not args.tasks and not args.dismiss:
        parser.error("nudges requires --tasks or --dismiss")

    try:
        return args.func(args)
    except (OSError, ValueError) as e:
        logger.error("cli_failed", command=args.command, error=str(e))
        _print({"success": False, "error": str(e)})
        return 1


if __name__ == "__main__":
    sys.exit(main())
