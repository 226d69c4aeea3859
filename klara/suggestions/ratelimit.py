"""
Tool: Suggestion Rate Limiter
Purpose: Protect the suggestion provider with sliding-window request limits

Four independent buckets, checked in priority order:

    task_short  - per task, 5 minutes, 1 request
    task_hourly - per task, 60 minutes, 3 requests
    user_short  - per process, 60 seconds, 3 requests
    user_hourly - per process, 60 minutes, 10 requests

A per-task violation is reported before a per-user one so the message talks
about "this task" rather than generic throttling.

Admission is not transactional across buckets: a request that passes the
first buckets and fails a later one keeps the slots it took. Buckets only
get stricter under contention, never laxer.

State is in memory and local to one running instance. ``admit`` reads and
writes a window without suspending, so it is atomic with respect to other
asyncio tasks.

Usage:
    from klara.suggestions.ratelimit import SlidingWindowRateLimiter

    limiter = SlidingWindowRateLimiter.from_config(config.rate_limits)
    check = limiter.check_all(task_key="task_1", user_key="local")
    if not check.ok:
        print(check.blocking_message)
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from klara.config_models import BucketConfig, RateLimitsConfig
from klara.logging_config import get_logger

logger = get_logger(__name__)

# Evaluation order matters: task buckets explain themselves first
BUCKET_ORDER = ("task_short", "task_hourly", "user_short", "user_hourly")


@dataclass(frozen=True)
class RateCheck:
    ok: bool
    blocking_message: str | None = None
    bucket: str | None = None


class SlidingWindowRateLimiter:
    """In-memory sliding-window limiter over named buckets."""

    def __init__(
        self,
        buckets: dict[str, BucketConfig] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if buckets is None:
            defaults = RateLimitsConfig()
            buckets = {name: getattr(defaults, name) for name in BUCKET_ORDER}
        self.buckets = buckets
        self.clock = clock
        self._windows: dict[str, deque[datetime]] = {}

    @classmethod
    def from_config(
        cls,
        config: RateLimitsConfig,
        clock: Callable[[], datetime] = datetime.now,
    ) -> SlidingWindowRateLimiter:
        return cls({name: getattr(config, name) for name in BUCKET_ORDER}, clock=clock)

    def _prune(self, bucket_key: str, config: BucketConfig, now: datetime) -> deque[datetime]:
        """
        Drop timestamps older than the window. Must not suspend.

        A window that prunes to empty is forgotten so idle keys do not pile up.
        """
        window = self._windows.get(bucket_key)
        if window is None:
            return deque()
        horizon = timedelta(seconds=config.window_seconds)
        while window and now - window[0] > horizon:
            window.popleft()
        if not window:
            del self._windows[bucket_key]
        return window

    def admit(self, bucket_key: str, config: BucketConfig) -> bool:
        """
        Admit one request into a bucket if it has room.

        On rejection the window stays pruned so a parallel check sees the
        same state.
        """
        now = self.clock()
        window = self._prune(bucket_key, config, now)
        if len(window) >= config.max_requests:
            return False
        window.append(now)
        self._windows[bucket_key] = window
        return True

    def check_all(self, task_key: str, user_key: str) -> RateCheck:
        """Run every bucket in priority order and report the first violation."""
        for name in BUCKET_ORDER:
            config = self.buckets[name]
            bucket_key = self._bucket_key(name, task_key, user_key)
            if not self.admit(bucket_key, config):
                logger.info("suggestion_rate_limited", bucket=name, key=bucket_key)
                return RateCheck(ok=False, blocking_message=config.message, bucket=name)
        return RateCheck(ok=True)

    @staticmethod
    def _bucket_key(name: str, task_key: str, user_key: str) -> str:
        if name.startswith("task_"):
            return f"{name}:task:{task_key}"
        return f"{name}:user:{user_key}"

    def get_status(self, task_key: str, user_key: str) -> dict[str, Any]:
        """Current usage per bucket without admitting anything."""
        now = self.clock()
        status = {}
        for name in BUCKET_ORDER:
            config = self.buckets[name]
            window = self._prune(self._bucket_key(name, task_key, user_key), config, now)
            retry_after = None
            if len(window) >= config.max_requests:
                oldest = window[0]
                retry_after = round(
                    (oldest + timedelta(seconds=config.window_seconds) - now).total_seconds(), 1
                )
            status[name] = {
                "used": len(window),
                "max": config.max_requests,
                "window_seconds": config.window_seconds,
                "retry_after_seconds": retry_after,
            }
        return status

    def reset(self, key_suffix: str | None = None) -> None:
        """Clear every window, or only windows whose key ends with the suffix."""
        if key_suffix is None:
            self._windows.clear()
            return
        for bucket_key in [k for k in self._windows if k.endswith(f":{key_suffix}")]:
            del self._windows[bucket_key]


__all__ = ["BUCKET_ORDER", "RateCheck", "SlidingWindowRateLimiter"]
