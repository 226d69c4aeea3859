"""
Tool: Nudge Detector
Purpose: Decide which gentle reminders to surface for which tasks

Rules (pure predicates over a TaskSnapshot):
    overdue              - incomplete, due date before today
    needs_breakdown      - incomplete, long text, no subtasks, no AI suggestions yet
    long_pending         - incomplete, no due date, not in "Later", 7+ days old
    repeatedly_postponed - incomplete, deadline moved 3+ times

Which rules run is a policy decision (``nudges.enabled_rules``). By default
only overdue and needs_breakdown are active; the other two are fully
implemented and ranked but switched off.

Badge quota:
    Every candidate that wants a badge is pooled across tasks, sorted by
    priority (stable, so task order breaks ties) and only the first
    ``max_badges`` tasks keep one. Everything else is still returned with
    ``show_badge=False`` so its detail card and actions stay available.

Usage:
    from klara.nudges.detector import NudgeDetector, get_primary_nudge

    detector = NudgeDetector()
    nudge_map = detector.detect_all(tasks)
    primary = get_primary_nudge(nudge_map.get("task_1", []))
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from klara.config_models import NudgesConfig
from klara.logging_config import get_logger
from klara.nudges import NUDGE_PRIORITY, NUDGE_SHOWS_BADGE, NudgeType
from klara.nudges.cooldowns import CooldownStore
from klara.tasks.models import Importance, TaskSnapshot, Urgency

logger = get_logger(__name__)


@dataclass
class Nudge:
    """A detected nudge. Recomputed on every pass, never persisted."""

    type: NudgeType
    task_id: str
    priority: int
    show_badge: bool
    detected_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "task_id": self.task_id,
            "priority": self.priority,
            "show_badge": self.show_badge,
            "detected_at": self.detected_at.isoformat(),
        }


# =============================================================================
# Rule predicates
# =============================================================================


def is_task_overdue(task: TaskSnapshot, now: datetime) -> bool:
    if task.completed or task.due_date is None:
        return False
    return task.due_date < now.date()


def task_needs_breakdown(task: TaskSnapshot, complex_length: int = 50) -> bool:
    if task.completed:
        return False
    if task.subtask_count > 0 or task.has_ai_suggestions:
        return False
    return len(task.text) > complex_length


def is_long_pending(task: TaskSnapshot, now: datetime, pending_days: int = 7) -> bool:
    if task.completed or task.due_date is not None:
        return False
    if task.importance == Importance.LOW and task.urgency == Urgency.LOW:
        return False
    days_old = (now - task.created_at) // timedelta(days=1)
    return days_old >= pending_days


def is_repeatedly_postponed(task: TaskSnapshot, threshold: int = 3) -> bool:
    if task.completed:
        return False
    return task.postpone_count >= threshold


# =============================================================================
# Detector
# =============================================================================


class NudgeDetector:
    """
    Rule-based nudge classifier with a global badge quota.

    Args:
        config: Thresholds, quota and enabled rules
        cooldowns: Dismissal store (defaults to data/nudges.db)
        clock: Source of "now"
    """

    def __init__(
        self,
        config: NudgesConfig | None = None,
        cooldowns: CooldownStore | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or NudgesConfig()
        self.clock = clock
        self.cooldowns = cooldowns or CooldownStore(clock=clock)
        self.enabled_rules = self._resolve_rules(self.config.enabled_rules)

    @staticmethod
    def _resolve_rules(names: list[str]) -> tuple[NudgeType, ...]:
        rules = []
        for name in names:
            try:
                rules.append(NudgeType(name))
            except ValueError:
                logger.warning("nudge_rule_unknown", rule=name)
        return tuple(rules)

    def _matches(self, rule: NudgeType, task: TaskSnapshot, now: datetime) -> bool:
        if rule == NudgeType.OVERDUE:
            return is_task_overdue(task, now)
        if rule == NudgeType.NEEDS_BREAKDOWN:
            return task_needs_breakdown(task, self.config.complex_task_length)
        if rule == NudgeType.LONG_PENDING:
            return is_long_pending(task, now, self.config.long_pending_days)
        if rule == NudgeType.REPEATEDLY_POSTPONED:
            return is_repeatedly_postponed(task, self.config.postpone_threshold)
        return False

    def detect_task_nudges(self, task: TaskSnapshot, now: datetime | None = None) -> list[Nudge]:
        """Every active rule that fires for one task, ignoring cooldowns."""
        now = now or self.clock()
        if task.completed:
            return []

        return [
            Nudge(
                type=rule,
                task_id=task.id,
                priority=NUDGE_PRIORITY[rule],
                show_badge=NUDGE_SHOWS_BADGE[rule],
                detected_at=now,
            )
            for rule in sorted(self.enabled_rules, key=NUDGE_PRIORITY.get)
            if self._matches(rule, task, now)
        ]

    def _load_cooldowns(self) -> dict[tuple[str, NudgeType], datetime]:
        try:
            return self.cooldowns.load_active()
        except sqlite3.Error as e:
            logger.warning("nudge_cooldowns_unavailable", error=str(e))
            return {}

    def detect_all(
        self,
        tasks: list[TaskSnapshot],
        max_badges: int | None = None,
    ) -> dict[str, list[Nudge]]:
        """
        Detect nudges for every incomplete task and apply the badge quota.

        Args:
            tasks: Task corpus in display order
            max_badges: Badge quota (defaults to config, normally 3)

        Returns:
            dict mapping task id to its nudges; tasks without nudges are absent.
            Any internal failure yields an empty dict.
        """
        if max_badges is None:
            max_badges = self.config.max_badges

        try:
            now = self.clock()
            cooldowns = self._load_cooldowns()
            result: dict[str, list[Nudge]] = {}
            badge_pool: list[Nudge] = []

            for task in tasks:
                if task.completed:
                    continue
                nudges = [
                    nudge
                    for nudge in self.detect_task_nudges(task, now)
                    if (task.id, nudge.type) not in cooldowns
                ]
                if nudges:
                    result[task.id] = nudges
                    badge_pool.extend(n for n in nudges if n.show_badge)

            self._apply_badge_quota(badge_pool, max_badges)
            return result

        except Exception:
            logger.exception("nudge_detection_failed")
            return {}

    @staticmethod
    def _apply_badge_quota(pool: list[Nudge], max_badges: int) -> None:
        """Keep one badge for each of the first ``max_badges`` tasks by priority."""
        badged_tasks: set[str] = set()
        for nudge in sorted(pool, key=lambda n: n.priority):
            if nudge.task_id in badged_tasks or len(badged_tasks) >= max_badges:
                nudge.show_badge = False
            else:
                badged_tasks.add(nudge.task_id)

    def dismiss(self, task_id: str, nudge_type: NudgeType) -> datetime:
        """Put a nudge type to sleep for this task."""
        return self.cooldowns.set_cooldown(
            task_id, nudge_type, timedelta(hours=self.config.cooldown_hours)
        )


# =============================================================================
# Helpers over a detection result
# =============================================================================


def get_primary_nudge(nudges: list[Nudge]) -> Nudge | None:
    """Most urgent nudge; the first one wins a tie."""
    if not nudges:
        return None
    return min(nudges, key=lambda n: n.priority)


def has_active_nudge(task_id: str, nudge_map: dict[str, list[Nudge]]) -> bool:
    return bool(nudge_map.get(task_id))


def should_show_badge(task_id: str, nudge_map: dict[str, list[Nudge]]) -> bool:
    return any(n.show_badge for n in nudge_map.get(task_id, []))


def get_badge_nudge(task_id: str, nudge_map: dict[str, list[Nudge]]) -> Nudge | None:
    return next((n for n in nudge_map.get(task_id, []) if n.show_badge), None)


__all__ = [
    "Nudge",
    "NudgeDetector",
    "get_badge_nudge",
    "get_primary_nudge",
    "has_active_nudge",
    "is_long_pending",
    "is_repeatedly_postponed",
    "is_task_overdue",
    "should_show_badge",
    "task_needs_breakdown",
]
