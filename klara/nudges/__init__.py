"""Nudges - gentle, rate-limited reminders about tasks

Philosophy:
    A badge on every task is noise, and noise gets ignored. Klara shows at
    most three ambient badges at a time, most pressing first, and stays
    quiet for a day about anything the user dismissed. The detail card is
    always still there for whoever goes looking.

Components:
    detector.py: Rule predicates, badge quota and primary-nudge selection
    cooldowns.py: Durable per-(task, nudge type) dismissal cooldowns
    texts.py: Calm, guilt-free card copy for each nudge type

Usage:
    from klara.nudges.detector import NudgeDetector

    detector = NudgeDetector()
    nudges = detector.detect_all(tasks)
    detector.dismiss("task_1", NudgeType.OVERDUE)

Database: data/nudges.db
    - nudge_cooldowns: Dismissals that suppress a nudge type for a task
"""

from enum import Enum

from klara import DATA_DIR

DB_PATH = DATA_DIR / "nudges.db"


class NudgeType(str, Enum):
    """Conditions about a task that may warrant a nudge."""

    OVERDUE = "overdue"
    NEEDS_BREAKDOWN = "needs_breakdown"
    LONG_PENDING = "long_pending"
    REPEATEDLY_POSTPONED = "repeatedly_postponed"


# Lower number = more urgent
NUDGE_PRIORITY = {
    NudgeType.OVERDUE: 1,
    NudgeType.REPEATEDLY_POSTPONED: 2,
    NudgeType.LONG_PENDING: 3,
    NudgeType.NEEDS_BREAKDOWN: 99,
}

# Whether a freshly detected nudge asks for an ambient badge
NUDGE_SHOWS_BADGE = {
    NudgeType.OVERDUE: True,
    NudgeType.REPEATEDLY_POSTPONED: True,
    NudgeType.LONG_PENDING: True,
    NudgeType.NEEDS_BREAKDOWN: False,
}

__all__ = ["DB_PATH", "NUDGE_PRIORITY", "NUDGE_SHOWS_BADGE", "NudgeType"]
