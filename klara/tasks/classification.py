"""
Tool: Task Classifier
Purpose: Keyword heuristics for placing a new task in the Eisenhower matrix

Deliberately simple: a keyword hit sets importance or urgency to high,
deferral words ("someday", "maybe") force both to low, and a date of today
or tomorrow makes the task urgent. No language understanding beyond that.

Usage:
    from klara.tasks.classification import classify_task, get_quadrant_name

    result = classify_task("Prepare client presentation tomorrow")
    get_quadrant_name(result.importance, result.urgency)  # "Do First"
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from klara.tasks import QUADRANT_NAMES

# Tasks that contribute to long-term goals
IMPORTANCE_KEYWORDS = (
    "plan",
    "strategy",
    "launch",
    "important",
    "meeting",
    "presentation",
    "interview",
    "review",
    "report",
    "proposal",
    "contract",
    "budget",
    "client",
    "boss",
    "customer",
    "project",
    "milestone",
    "prepare",
    "organize",
    "develop",
    "design",
    "create",
)

# Tasks with time pressure
URGENCY_KEYWORDS = (
    "now",
    "asap",
    "urgent",
    "immediately",
    "emergency",
    "critical",
    "today",
    "tonight",
    "tomorrow",
    "deadline",
    "due",
    "overdue",
    "expire",
    "eod",
    "eow",
    "bill",
    "payment",
    "pay",
)

# Override everything else when present
LOW_PRIORITY_KEYWORDS = (
    "movie",
    "watch",
    "game",
    "play",
    "someday",
    "maybe",
    "later",
    "eventually",
    "whenever",
    "optional",
    "if time",
    "nice to have",
)

# Tasks that usually benefit from a breakdown
COMPLEX_KEYWORDS = (
    "plan",
    "organize",
    "prepare",
    "create",
    "build",
    "develop",
    "launch",
    "design",
    "implement",
    "research",
    "analyze",
    "write",
    "complete",
    "finish",
    "project",
    "trip",
    "event",
    "meeting",
    "presentation",
    "report",
    "strategy",
)

MIN_SUGGESTION_TEXT_LENGTH = 15


@dataclass(frozen=True)
class TaskClassification:
    importance: str
    urgency: str
    detected_date: date | None


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(kw in text for kw in keywords)


def classify_task(
    task_text: str,
    existing_date: date | None = None,
    today: date | None = None,
) -> TaskClassification:
    """
    Classify a task from its text.

    Args:
        task_text: The task description
        existing_date: Date already chosen in the date picker, if any
        today: Reference date (defaults to the local date)

    Returns:
        TaskClassification with importance, urgency and detected date
    """
    today = today or date.today()
    lower_text = task_text.lower()
    importance = "low"
    urgency = "low"
    detected_date = existing_date

    if _contains_any(lower_text, IMPORTANCE_KEYWORDS):
        importance = "high"

    if _contains_any(lower_text, URGENCY_KEYWORDS):
        urgency = "high"

    low_priority = _contains_any(lower_text, LOW_PRIORITY_KEYWORDS)
    if low_priority:
        importance = "low"
        urgency = "low"

    if detected_date is None:
        if "tomorrow" in lower_text:
            detected_date = today + timedelta(days=1)
        elif "today" in lower_text or "tonight" in lower_text:
            detected_date = today

    if detected_date is not None and not low_priority:
        if detected_date <= today + timedelta(days=1):
            urgency = "high"

    return TaskClassification(
        importance=importance,
        urgency=urgency,
        detected_date=detected_date,
    )


def get_quadrant_name(importance: str, urgency: str) -> str:
    return QUADRANT_NAMES.get((importance, urgency), "Later")


def should_suggest_subtasks(task_text: str) -> bool:
    """Return True for tasks that would benefit from decomposition."""
    return (
        _contains_any(task_text.lower(), COMPLEX_KEYWORDS)
        or len(task_text) > MIN_SUGGESTION_TEXT_LENGTH
    )


__all__ = [
    "COMPLEX_KEYWORDS",
    "IMPORTANCE_KEYWORDS",
    "LOW_PRIORITY_KEYWORDS",
    "URGENCY_KEYWORDS",
    "TaskClassification",
    "classify_task",
    "get_quadrant_name",
    "should_suggest_subtasks",
]
