"""Shared test fixtures for Klara tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- A controllable clock for expiry, windows and cooldowns
- Standard task snapshots

Usage:
    def test_something(temp_db, clock):
        cache = SuggestionCache(db_path=temp_db, clock=clock)
        clock.advance(hours=25)
        ...
"""

import os
import tempfile
from collections.abc import Generator
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from klara.tasks.models import Importance, TaskSnapshot, Urgency


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
KLARA_DIR = PROJECT_ROOT / "klara"

# Monday afternoon, well clear of the late-night window
FIXED_NOW = datetime(2025, 3, 10, 14, 0, 0)


# ─────────────────────────────────────────────────────────────────────────────
# Clock
# ─────────────────────────────────────────────────────────────────────────────


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at FIXED_NOW."""
    return FakeClock()


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file for testing.

    The database file is automatically deleted after the test completes.

    Yields:
        Path to the temporary database file
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    if db_path.exists():
        os.unlink(db_path)


# ─────────────────────────────────────────────────────────────────────────────
# Task Fixtures
# ─────────────────────────────────────────────────────────────────────────────


def make_task(
    task_id: str = "task_1",
    text: str = "Book dentist appointment",
    importance: Importance = Importance.HIGH,
    urgency: Urgency = Urgency.LOW,
    created_at: datetime = FIXED_NOW - timedelta(days=1),
    **kwargs,
) -> TaskSnapshot:
    """Build a TaskSnapshot with sensible defaults."""
    return TaskSnapshot(
        id=task_id,
        text=text,
        importance=importance,
        urgency=urgency,
        created_at=created_at,
        **kwargs,
    )


@pytest.fixture
def sample_task() -> TaskSnapshot:
    """A short, fresh, incomplete task that triggers nothing."""
    return make_task()


@pytest.fixture
def complex_task() -> TaskSnapshot:
    """Long task text (62 chars) with no subtasks or suggestions."""
    return make_task(
        task_id="task_complex",
        text="Prepare the quarterly board presentation and rehearse delivery",
    )


@pytest.fixture
def overdue_task() -> TaskSnapshot:
    """Incomplete task that was due yesterday."""
    return make_task(
        task_id="task_overdue",
        text="Renew passport",
        urgency=Urgency.HIGH,
        due_date=date(2025, 3, 9),
    )


@pytest.fixture
def sample_task_dict() -> dict:
    """Task as the web client serializes it.

    Returns:
        dict with camelCase task fields
    """
    return {
        "id": "task_web",
        "text": "Send the invoice to the client",
        "importance": "high",
        "urgency": "high",
        "dueDate": "2025-03-12",
        "completed": False,
        "createdAt": "2025-03-01T09:30:00",
        "subTasks": [{"id": "s1", "text": "Find the invoice"}],
        "aiSuggestions": None,
    }


@pytest.fixture
def task_factory():
    """Factory for TaskSnapshot objects; keyword arguments override defaults."""
    return make_task
