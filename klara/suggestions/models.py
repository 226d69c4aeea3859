"""
Tool: Suggestion Models
Purpose: Cache entries and the tagged result of a suggestion request

Every call to ``request_suggestions`` returns exactly one of four variants:

    CacheHit    - served from the cache, no rate-limit or network cost
    RateLimited - a sliding window is full, nothing was sent
    Failed      - validation or provider failure, nothing was cached
    Fetched     - fresh suggestions from the provider, now cached

Usage:
    from klara.suggestions.models import CacheHit, Failed, Fetched, RateLimited

    if isinstance(result, RateLimited):
        show_toast(result.error)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, ClassVar, Union


class CacheStatus(str, Enum):
    """Lifecycle of a cached suggestion bundle."""

    ACTIVE = "active"
    CONSUMED = "consumed"  # User accepted the suggestions as subtasks


@dataclass
class SuggestionCacheEntry:
    """Cached suggestions for one task. At most one entry per task_id."""

    task_id: str
    suggestions: list[str]
    signature: str
    created_at: datetime
    expires_at: datetime
    status: CacheStatus = CacheStatus.ACTIVE

    @classmethod
    def create(
        cls,
        task_id: str,
        suggestions: list[str],
        signature: str,
        now: datetime,
        ttl: timedelta = timedelta(hours=24),
    ) -> SuggestionCacheEntry:
        return cls(
            task_id=task_id,
            suggestions=list(suggestions),
            signature=signature,
            created_at=now,
            expires_at=now + ttl,
        )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        return {
            "task_id": self.task_id,
            "suggestions": self.suggestions,
            "signature": self.signature,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }


# =============================================================================
# Result variants
# =============================================================================


@dataclass(frozen=True)
class _SuggestionResult:
    kind: ClassVar[str] = ""

    @property
    def success(self) -> bool:
        return False

    @property
    def from_cache(self) -> bool:
        return False

    @property
    def rate_limited(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        """Shape returned to the web client."""
        data: dict[str, Any] = {
            "suggestions": list(getattr(self, "suggestions", [])),
            "success": self.success,
            "from_cache": self.from_cache,
            "rate_limited": self.rate_limited,
        }
        error = getattr(self, "error", None)
        if error:
            data["error"] = error
        return data


@dataclass(frozen=True)
class CacheHit(_SuggestionResult):
    suggestions: list[str] = field(default_factory=list)
    kind: ClassVar[str] = "cache_hit"

    @property
    def success(self) -> bool:
        return True

    @property
    def from_cache(self) -> bool:
        return True


@dataclass(frozen=True)
class Fetched(_SuggestionResult):
    suggestions: list[str] = field(default_factory=list)
    kind: ClassVar[str] = "fetched"

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class RateLimited(_SuggestionResult):
    error: str = ""
    bucket: str = ""
    suggestions: list[str] = field(default_factory=list)
    kind: ClassVar[str] = "rate_limited"

    @property
    def rate_limited(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed(_SuggestionResult):
    error: str = ""
    error_kind: str = "error"
    suggestions: list[str] = field(default_factory=list)
    kind: ClassVar[str] = "failed"


SuggestionResult = Union[CacheHit, Fetched, RateLimited, Failed]


__all__ = [
    "CacheHit",
    "CacheStatus",
    "Failed",
    "Fetched",
    "RateLimited",
    "SuggestionCacheEntry",
    "SuggestionResult",
]
