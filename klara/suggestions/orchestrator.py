"""
Tool: Suggestion Orchestrator
Purpose: The single entry point for AI subtask suggestions

Flow for ``request_suggestions``:
    1. Validate the task text (non-empty, bounded length)
    2. Cache lookup on (task id, signature) - a hit costs nothing
    3. Join an identical request that is already in flight
    4. Rate check across the four sliding windows
    5. Coalesced fetch: prompt -> provider (with retries) -> parse -> cache write
    6. Tagged result: CacheHit | RateLimited | Failed | Fetched

Steps 2-5 run synchronously up to the first await, so the rate-limit
windows and the in-flight map are never read and written across a
suspension point.

The orchestrator never raises for an ordinary failure: every path returns a
result the UI can branch on. Tasks stay creatable whether or not the AI
answers.

Usage:
    from klara.suggestions.orchestrator import SuggestionOrchestrator

    orchestrator = SuggestionOrchestrator.from_config()
    result = await orchestrator.request_suggestions(task, tone="gentle", state="tired")
    print(result.to_dict())
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from pathlib import Path

from klara.config_models import KlaraConfig, load_config
from klara.logging_config import get_logger
from klara.suggestions.cache import SuggestionCache
from klara.suggestions.coalescer import RequestCoalescer
from klara.suggestions.errors import (
    ProviderUnavailableError,
    SuggestionError,
    SuggestionValidationError,
)
from klara.suggestions.models import (
    CacheHit,
    Failed,
    Fetched,
    RateLimited,
    SuggestionCacheEntry,
    SuggestionResult,
)
from klara.suggestions.prompts import build_prompt, parse_suggestions
from klara.suggestions.provider import SuggestionProvider, get_provider
from klara.suggestions.ratelimit import SlidingWindowRateLimiter
from klara.suggestions.retry import fetch_with_retry_config
from klara.tasks.models import TaskSnapshot
from klara.tasks.signature import build_task_signature

logger = get_logger(__name__)


def coalescing_key(task: TaskSnapshot, signature: str | None) -> str:
    """Signature first, then task id, then raw text."""
    if signature:
        return f"sig:{signature}"
    if task.id:
        return f"id:{task.id}"
    return f"text:{task.text}"


class SuggestionOrchestrator:
    """
    Owns the cache, rate limiter and coalescer for one process.

    Construct one instance and share it; tests build a fresh one per case.

    Args:
        provider: Suggestion provider collaborator
        cache: Suggestion cache (defaults to data/suggestions.db)
        rate_limiter: Sliding-window limiter (defaults from config)
        coalescer: In-flight request map
        config: Full Klara config (defaults to args/klara.yaml)
        clock: Source of "now" for expiry and rate windows
        task_exists: Optional task-store check run before the cache write;
            a task deleted mid-request is simply not cached
        sleep: Backoff sleep, replaceable in tests
        rng: Jitter source, replaceable in tests
    """

    def __init__(
        self,
        provider: SuggestionProvider,
        cache: SuggestionCache | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        coalescer: RequestCoalescer | None = None,
        config: KlaraConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
        task_exists: Callable[[str], bool] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self.config = config or KlaraConfig()
        self.provider = provider
        self.clock = clock
        self.cache = cache or SuggestionCache(clock=clock)
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter.from_config(
            self.config.rate_limits, clock=clock
        )
        self.coalescer = coalescer or RequestCoalescer()
        self.task_exists = task_exists
        self._sleep = sleep
        self._rng = rng

    @classmethod
    def from_config(
        cls,
        config: KlaraConfig | None = None,
        provider: SuggestionProvider | None = None,
        db_path: Path | None = None,
        clock: Callable[[], datetime] = datetime.now,
        task_exists: Callable[[str], bool] | None = None,
    ) -> SuggestionOrchestrator:
        config = config or load_config()
        return cls(
            provider=provider or get_provider(config.provider),
            cache=SuggestionCache(db_path=db_path, clock=clock),
            config=config,
            clock=clock,
            task_exists=task_exists,
        )

    def _validate(self, task: TaskSnapshot) -> str:
        text = task.text.strip()
        if not text:
            raise SuggestionValidationError("taskText cannot be empty")
        limit = self.config.suggestions.max_task_text_length
        if len(text) > limit:
            raise SuggestionValidationError(f"taskText too long (max {limit} characters)")
        return text

    async def request_suggestions(
        self,
        task: TaskSnapshot,
        tone: str | None = None,
        state: str | None = None,
        existing_subtasks: list[str] | None = None,
    ) -> SuggestionResult:
        """
        Get subtask suggestions for a task.

        Args:
            task: Snapshot of the task to break down
            tone: Tone preset (gentle, concise, coach, silent)
            state: Inferred user state label used to tune wording
            existing_subtasks: Subtask texts the provider should not repeat

        Returns:
            CacheHit, RateLimited, Failed or Fetched
        """
        try:
            text = self._validate(task)
            signature = build_task_signature(task)

            cached = self.cache.lookup(task.id, signature)
            if cached is not None:
                logger.debug("suggestion_cache_hit", task_id=task.id)
                return CacheHit(suggestions=cached)

            if not self.provider.is_available():
                raise ProviderUnavailableError("AI service not configured")

            key = coalescing_key(task, signature)
            shared = self.coalescer.join(key)
            if shared is None:
                check = self.rate_limiter.check_all(
                    task_key=task.id, user_key=self.config.suggestions.user_key
                )
                if not check.ok:
                    return RateLimited(error=check.blocking_message or "", bucket=check.bucket or "")

                shared = self.coalescer.coalesce(
                    key,
                    lambda: self._fetch_and_store(task, text, signature, tone, state, existing_subtasks),
                )

            owner_id, suggestions = await shared
            if owner_id != task.id:
                # Joined another task's call; it only cached under its own id.
                self._store(task.id, signature, suggestions)
            return Fetched(suggestions=list(suggestions))

        except SuggestionError as e:
            logger.warning("suggestion_request_failed", task_id=task.id, kind=e.kind, error=str(e))
            return Failed(error=str(e), error_kind=e.kind)
        except Exception as e:
            logger.exception("suggestion_request_crashed", task_id=task.id)
            return Failed(error=f"Unexpected error: {e}", error_kind="error")

    async def _fetch_and_store(
        self,
        task: TaskSnapshot,
        text: str,
        signature: str,
        tone: str | None,
        state: str | None,
        existing_subtasks: list[str] | None,
    ) -> tuple[str, list[str]]:
        """Fetch once for the coalescing key and cache under the owning task."""
        settings = self.config.suggestions
        prompt = build_prompt(text, existing_subtasks, tone, state)

        raw = await fetch_with_retry_config(
            lambda: self.provider.generate(prompt),
            settings.retry,
            sleep=self._sleep,
            rng=self._rng,
        )
        suggestions = parse_suggestions(raw, max_items=settings.max_suggestions)
        self._store(task.id, signature, suggestions)
        return task.id, suggestions

    def _store(self, task_id: str, signature: str, suggestions: list[str]) -> None:
        if self.task_exists is not None and not self.task_exists(task_id):
            logger.info("suggestion_cache_write_skipped", task_id=task_id, reason="task_vanished")
            return

        self.cache.put(
            SuggestionCacheEntry.create(
                task_id=task_id,
                suggestions=suggestions,
                signature=signature,
                now=self.clock(),
                ttl=timedelta(hours=self.config.suggestions.cache_ttl_hours),
            )
        )
        logger.info("suggestions_cached", task_id=task_id, count=len(suggestions))

    def mark_consumed(self, task_id: str) -> bool:
        """Called by the UI after the user accepted the suggestions as subtasks."""
        return self.cache.mark_consumed(task_id)

    def forget_task(self, task_id: str) -> None:
        """Drop cached suggestions and rate windows for a deleted task."""
        self.cache.delete(task_id)
        self.rate_limiter.reset(f"task:{task_id}")


__all__ = ["SuggestionOrchestrator", "coalescing_key"]
