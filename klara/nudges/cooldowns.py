"""
Tool: Nudge Cooldowns
Purpose: Remember dismissed nudges so they stay quiet for a while

A dismissal suppresses one nudge type for one task, 24 hours by default.
Rows are purged lazily when they are read after expiry.

Usage:
    from klara.nudges.cooldowns import CooldownStore

    store = CooldownStore()
    store.set_cooldown("task_1", NudgeType.OVERDUE)
    store.is_on_cooldown("task_1", NudgeType.OVERDUE)  # True

Dependencies:
    - sqlite3 (stdlib)
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

from klara.logging_config import get_logger
from klara.nudges import DB_PATH, NudgeType

logger = get_logger(__name__)

DEFAULT_COOLDOWN = timedelta(hours=24)


class CooldownStore:
    def __init__(
        self,
        db_path: Path | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db_path = Path(db_path) if db_path else DB_PATH
        self.clock = clock

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        conn.execute("""
            CREATE TABLE IF NOT EXISTS nudge_cooldowns (
                task_id TEXT NOT NULL,
                nudge_type TEXT NOT NULL,
                until DATETIME NOT NULL,
                PRIMARY KEY(task_id, nudge_type)
            )
        """)

        conn.commit()
        return conn

    def set_cooldown(
        self,
        task_id: str,
        nudge_type: NudgeType,
        duration: timedelta = DEFAULT_COOLDOWN,
    ) -> datetime:
        """Suppress a nudge type for a task. Returns when it ends."""
        until = self.clock() + duration
        conn = self.get_connection()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO nudge_cooldowns (task_id, nudge_type, until) VALUES (?, ?, ?)",
                (task_id, NudgeType(nudge_type).value, until.isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

        logger.info("nudge_cooldown_set", task_id=task_id, nudge_type=NudgeType(nudge_type).value)
        return until

    def load_active(self) -> dict[tuple[str, NudgeType], datetime]:
        """All unexpired cooldowns. Expired rows are deleted on the way."""
        now = self.clock()
        conn = self.get_connection()
        try:
            conn.execute("DELETE FROM nudge_cooldowns WHERE until <= ?", (now.isoformat(),))
            conn.commit()
            rows = conn.execute("SELECT task_id, nudge_type, until FROM nudge_cooldowns").fetchall()
        finally:
            conn.close()

        active = {}
        for row in rows:
            try:
                key = (row["task_id"], NudgeType(row["nudge_type"]))
                active[key] = datetime.fromisoformat(row["until"])
            except ValueError:
                logger.warning("nudge_cooldown_unreadable", task_id=row["task_id"])
        return active

    def is_on_cooldown(self, task_id: str, nudge_type: NudgeType) -> bool:
        return (task_id, NudgeType(nudge_type)) in self.load_active()

    def clear_task(self, task_id: str) -> int:
        """Remove every cooldown for a task, e.g. after it was deleted."""
        conn = self.get_connection()
        try:
            cursor = conn.execute("DELETE FROM nudge_cooldowns WHERE task_id = ?", (task_id,))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()


__all__ = ["DEFAULT_COOLDOWN", "CooldownStore"]
