"""
Tool: Task Snapshot Models
Purpose: Read-only view of a task as seen by the suggestion and nudge engines

Usage:
    from klara.tasks.models import TaskSnapshot, Importance, Urgency
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any


class Importance(str, Enum):
    """Importance axis of the Eisenhower matrix."""

    HIGH = "high"
    LOW = "low"


class Urgency(str, Enum):
    """Urgency axis of the Eisenhower matrix."""

    HIGH = "high"
    LOW = "low"


def _parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    # Snapshots compare against a naive local clock
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


@dataclass(frozen=True)
class TaskSnapshot:
    """
    Snapshot of a task owned by the external task store.

    The core never mutates a snapshot. ``postpone_count`` is reserved for the
    repeatedly-postponed nudge and defaults to zero when the store does not
    track deadline changes.
    """

    id: str
    text: str
    importance: Importance
    urgency: Urgency
    created_at: datetime
    due_date: date | None = None
    completed: bool = False
    completed_at: datetime | None = None
    subtask_count: int = 0
    has_ai_suggestions: bool = False
    postpone_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        return {
            "id": self.id,
            "text": self.text,
            "importance": self.importance.value,
            "urgency": self.urgency.value,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "completed": self.completed,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "created_at": self.created_at.isoformat(),
            "subtask_count": self.subtask_count,
            "has_ai_suggestions": self.has_ai_suggestions,
            "postpone_count": self.postpone_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskSnapshot:
        """
        Create from dict.

        Accepts both snake_case and the camelCase keys used by the web client
        (``dueDate``, ``createdAt``, ``subTasks`` and friends).
        """

        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return default

        subtasks = pick("subtask_count", "subtaskCount", "subTasks", default=0)
        suggestions = pick("has_ai_suggestions", "hasAISuggestions", "aiSuggestions", default=False)

        created_at = _parse_timestamp(pick("created_at", "createdAt"))
        if created_at is None:
            raise ValueError(f"Task {data.get('id')!r} is missing created_at")

        return cls(
            id=str(data["id"]),
            text=str(data.get("text", "")),
            importance=Importance(pick("importance", default="low")),
            urgency=Urgency(pick("urgency", default="low")),
            created_at=created_at,
            due_date=_parse_date(pick("due_date", "dueDate")),
            completed=bool(pick("completed", default=False)),
            completed_at=_parse_timestamp(pick("completed_at", "completedAt")),
            subtask_count=len(subtasks) if isinstance(subtasks, list) else int(subtasks),
            has_ai_suggestions=bool(suggestions),
            postpone_count=int(pick("postpone_count", "postponeCount", default=0)),
        )
