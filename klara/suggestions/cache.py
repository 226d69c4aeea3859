"""
Tool: Suggestion Cache
Purpose: Persist AI suggestions per task and decide when they are stale

One row per task. A cached bundle is valid while the task's planning
signature is unchanged and the entry has not expired (24h). Eviction is
lazy: ``lookup`` deletes a stale row when it sees one, so no background
sweep is needed. Accepted bundles are marked ``consumed`` rather than
deleted so they are never offered again.

Usage:
    from klara.suggestions.cache import SuggestionCache

    cache = SuggestionCache()
    hit = cache.lookup("task_1", signature)
    if hit is None:
        cache.put(SuggestionCacheEntry.create("task_1", ["Step"], signature, now))

Dependencies:
    - sqlite3 (stdlib)
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from klara.logging_config import get_logger
from klara.suggestions import DB_PATH
from klara.suggestions.models import CacheStatus, SuggestionCacheEntry

logger = get_logger(__name__)


class SuggestionCache:
    """SQLite-backed suggestion cache keyed by task id."""

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
            CREATE TABLE IF NOT EXISTS suggestion_cache (
                task_id TEXT PRIMARY KEY,
                suggestions TEXT NOT NULL,
                signature TEXT NOT NULL,
                status TEXT CHECK(status IN ('active', 'consumed')) DEFAULT 'active',
                created_at DATETIME NOT NULL,
                expires_at DATETIME NOT NULL
            )
        """)
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_suggestion_expires ON suggestion_cache(expires_at)"
        )

        conn.commit()
        return conn

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> SuggestionCacheEntry:
        return SuggestionCacheEntry(
            task_id=row["task_id"],
            suggestions=json.loads(row["suggestions"]),
            signature=row["signature"],
            status=CacheStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
        )

    def get(self, task_id: str) -> SuggestionCacheEntry | None:
        conn = self.get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM suggestion_cache WHERE task_id = ?", (task_id,)
            ).fetchone()
        finally:
            conn.close()
        return self._row_to_entry(row) if row else None

    def put(self, entry: SuggestionCacheEntry) -> None:
        """Store an entry, replacing any previous entry for the task."""
        conn = self.get_connection()
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO suggestion_cache
                (task_id, suggestions, signature, status, created_at, expires_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                (
                    entry.task_id,
                    json.dumps(entry.suggestions),
                    entry.signature,
                    entry.status.value,
                    entry.created_at.isoformat(),
                    entry.expires_at.isoformat(),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, task_id: str) -> bool:
        conn = self.get_connection()
        try:
            cursor = conn.execute("DELETE FROM suggestion_cache WHERE task_id = ?", (task_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def lookup(self, task_id: str, signature: str) -> list[str] | None:
        """
        Return cached suggestions for a task, or None on a miss.

        A signature mismatch or an expired entry deletes the row before
        reporting the miss. A consumed entry is a miss but stays in place.
        """
        entry = self.get(task_id)
        if entry is None:
            return None

        if entry.signature != signature:
            self.delete(task_id)
            logger.info("suggestion_cache_evicted", task_id=task_id, reason="signature_changed")
            return None

        if entry.is_expired(self.clock()):
            self.delete(task_id)
            logger.info("suggestion_cache_evicted", task_id=task_id, reason="expired")
            return None

        if entry.status == CacheStatus.CONSUMED:
            return None

        return list(entry.suggestions)

    def mark_consumed(self, task_id: str) -> bool:
        """Flag a bundle as accepted so it is not resurfaced."""
        conn = self.get_connection()
        try:
            cursor = conn.execute(
                "UPDATE suggestion_cache SET status = ? WHERE task_id = ?",
                (CacheStatus.CONSUMED.value, task_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def purge_expired(self) -> int:
        """Delete every expired row. Returns the number removed."""
        conn = self.get_connection()
        try:
            cursor = conn.execute(
                "DELETE FROM suggestion_cache WHERE expires_at < ?",
                (self.clock().isoformat(),),
            )
            conn.commit()
            removed = cursor.rowcount
        finally:
            conn.close()

        if removed:
            logger.info("suggestion_cache_purged", removed=removed)
        return removed


__all__ = ["SuggestionCache"]
