"""
Tool: Retrying Fetcher
Purpose: Retry transient provider failures with exponential backoff

Only network failures and 5xx answers are retried. Validation problems,
4xx answers and a missing provider fail immediately.

Backoff before retry ``n`` (0-based):

    delay = base_delay * factor ** n * (1 + U[0, jitter))

With the defaults (0.3s, x3, 20% jitter, 2 retries) a provider that never
recovers adds at most about 1.4s before the caller gets the last error.

Usage:
    from klara.suggestions.retry import fetch_with_retry

    text = await fetch_with_retry(lambda: provider.generate(prompt))
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from klara.config_models import RetryConfig
from klara.logging_config import get_logger
from klara.suggestions.errors import is_retryable

logger = get_logger(__name__)

T = TypeVar("T")


def compute_delay(
    attempt: int,
    base_delay: float = 0.3,
    factor: float = 3.0,
    jitter: float = 0.2,
    rng: random.Random | None = None,
) -> float:
    """Seconds to wait before retry number ``attempt`` (0-based)."""
    roll = (rng or random).random()
    return base_delay * (factor ** attempt) * (1 + roll * jitter)


async def fetch_with_retry(
    request_builder: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    base_delay: float = 0.3,
    factor: float = 3.0,
    jitter: float = 0.2,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: random.Random | None = None,
) -> T:
    """
    Call ``request_builder`` until it succeeds or retries run out.

    Args:
        request_builder: Zero-argument factory producing a fresh awaitable per attempt
        max_retries: Retries after the first attempt (total attempts = 1 + max_retries)
        base_delay: Delay before the first retry, in seconds
        factor: Multiplier applied per attempt
        jitter: Upper bound of the random extra fraction added to each delay
        sleep: Awaitable sleep, replaceable in tests
        rng: Random source for jitter, replaceable in tests

    Returns:
        Whatever the request returns on success

    Raises:
        The last failure once retries are exhausted, or the first
        non-retryable failure.
    """
    attempt = 0
    while True:
        try:
            return await request_builder()
        except Exception as e:
            if not is_retryable(e) or attempt >= max_retries:
                if attempt:
                    logger.warning(
                        "suggestion_fetch_gave_up",
                        attempts=attempt + 1,
                        error=str(e),
                    )
                raise

            delay = compute_delay(attempt, base_delay, factor, jitter, rng)
            logger.info(
                "suggestion_fetch_retrying",
                attempt=attempt + 1,
                delay_seconds=round(delay, 3),
                error=str(e),
            )
            await sleep(delay)
            attempt += 1


async def fetch_with_retry_config(
    request_builder: Callable[[], Awaitable[T]],
    config: RetryConfig,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: random.Random | None = None,
) -> T:
    return await fetch_with_retry(
        request_builder,
        max_retries=config.max_retries,
        base_delay=config.base_delay_seconds,
        factor=config.backoff_factor,
        jitter=config.jitter,
        sleep=sleep,
        rng=rng,
    )


__all__ = ["compute_delay", "fetch_with_retry", "fetch_with_retry_config"]
