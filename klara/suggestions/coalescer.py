"""
Request coalescing for suggestion calls.

However many UI callers ask for suggestions for the same task at once,
only one provider call is made. Every caller awaits the same future and
sees the same settled result, success or failure.

Both ``coalesce`` and ``join`` are synchronous: they read and write the
in-flight map without suspending, so no other asyncio task can slip a
second call in between.

Callers receive a shielded view of the shared call. A caller that gets
cancelled stops waiting, but the call keeps running for everyone else.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from klara.logging_config import get_logger

logger = get_logger(__name__)


class RequestCoalescer:
    def __init__(self) -> None:
        self._in_flight: dict[str, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._in_flight)

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def join(self, key: str) -> asyncio.Future[Any] | None:
        """Wait on an outstanding call for ``key`` without starting one."""
        future = self._in_flight.get(key)
        if future is None:
            return None
        logger.debug("suggestion_request_joined", key=key)
        return asyncio.shield(future)

    def coalesce(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
    ) -> asyncio.Future[Any]:
        """
        Return the shared future for ``key``, creating it via ``factory``.

        Must be called from inside a running event loop.
        """
        future = self._in_flight.get(key)
        if future is None:
            future = asyncio.ensure_future(factory())
            self._in_flight[key] = future
            future.add_done_callback(lambda done, key=key: self._settle(key, done))
        return asyncio.shield(future)

    def _settle(self, key: str, future: asyncio.Future[Any]) -> None:
        if self._in_flight.get(key) is future:
            del self._in_flight[key]
        # Mark the outcome as retrieved even if every waiter went away
        if not future.cancelled():
            future.exception()


__all__ = ["RequestCoalescer"]
