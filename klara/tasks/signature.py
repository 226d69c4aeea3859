"""
Task planning signature.

Two snapshots with the same signature are planning-equivalent: cached AI
suggestions generated for one are still valid for the other. Only text,
importance, urgency and due date take part. Completion state, subtasks and
timestamps do not.

The signature is a coherence token, not a hash. Never use it for anything
security sensitive.
"""

from __future__ import annotations

from klara.tasks.models import TaskSnapshot

SIGNATURE_DELIMITER = "|"


def build_task_signature(task: TaskSnapshot) -> str:
    due = task.due_date.isoformat() if task.due_date else ""
    return SIGNATURE_DELIMITER.join(
        [task.text.strip(), task.importance.value, task.urgency.value, due]
    )


__all__ = ["SIGNATURE_DELIMITER", "build_task_signature"]
