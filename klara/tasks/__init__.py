"""Tasks - read-only task views for the suggestion and nudge engines

Philosophy:
    The task store belongs to the UI layer. This package only ever reads a
    snapshot of each task, so nudges and suggestions can never corrupt the
    user's list.

Components:
    models.py: TaskSnapshot and the importance/urgency enums
    signature.py: Planning signature used for suggestion cache coherence
    classification.py: Keyword heuristics for quadrant classification

Usage:
    from klara.tasks.models import TaskSnapshot
    from klara.tasks.signature import build_task_signature

    task = TaskSnapshot.from_dict({"id": "t1", "text": "Plan the offsite", ...})
    signature = build_task_signature(task)
"""

# Valid levels for both importance and urgency
PRIORITY_LEVELS = ("high", "low")

# Eisenhower quadrant names keyed by (importance, urgency)
QUADRANT_NAMES = {
    ("high", "high"): "Do First",
    ("high", "low"): "Schedule",
    ("low", "high"): "Quick Tasks",
    ("low", "low"): "Later",
}

__all__ = ["PRIORITY_LEVELS", "QUADRANT_NAMES"]
