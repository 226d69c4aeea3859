"""Tests for klara/suggestions/retry.py

Retries only cover transient failures and are bounded by max_retries.
Sleeps are recorded instead of awaited.
"""

import random

import pytest

from klara.config_models import RetryConfig
from klara.suggestions.errors import (
    ProviderNetworkError,
    ProviderServerError,
    ProviderUnavailableError,
    SuggestionValidationError,
)
from klara.suggestions.retry import compute_delay, fetch_with_retry, fetch_with_retry_config


@pytest.fixture
def sleeps():
    """List that collects requested sleep durations."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds):
        sleeps.append(seconds)

    return _sleep


def failing_request(error, counter):
    async def _request():
        counter.append(1)
        raise error

    return _request


class TestComputeDelay:
    def test_no_jitter_when_roll_is_zero(self):
        rng = random.Random()
        rng.random = lambda: 0.0
        assert compute_delay(0, rng=rng) == pytest.approx(0.3)
        assert compute_delay(1, rng=rng) == pytest.approx(0.9)

    def test_jitter_bounded(self):
        rng = random.Random(42)
        for attempt in range(3):
            base = 0.3 * 3**attempt
            assert base <= compute_delay(attempt, rng=rng) <= base * 1.2


class TestFetchWithRetry:
    @pytest.mark.asyncio
    async def test_success_needs_no_retry(self, fake_sleep, sleeps):
        async def request():
            return "ok"

        assert await fetch_with_retry(request, sleep=fake_sleep) == "ok"
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_retryable_failure_exhausts_attempts(self, fake_sleep, sleeps):
        """An always-failing request runs 1 + max_retries times."""
        attempts = []

        with pytest.raises(ProviderServerError):
            await fetch_with_retry(
                failing_request(ProviderServerError("boom", 503), attempts),
                max_retries=2,
                sleep=fake_sleep,
                rng=random.Random(7),
            )

        assert len(attempts) == 3
        assert len(sleeps) == 2
        assert 1.2 <= sum(sleeps) <= 1.2 * 1.2

    @pytest.mark.asyncio
    async def test_recovers_after_transient_error(self, fake_sleep, sleeps):
        attempts = []

        async def request():
            attempts.append(1)
            if len(attempts) == 1:
                raise ProviderNetworkError("reset by peer")
            return "ok"

        assert await fetch_with_retry(request, sleep=fake_sleep) == "ok"
        assert len(attempts) == 2
        assert len(sleeps) == 1

    @pytest.mark.parametrize(
        "error",
        [
            SuggestionValidationError("bad json"),
            ProviderUnavailableError("no key"),
            ValueError("unexpected"),
        ],
    )
    @pytest.mark.asyncio
    async def test_non_retryable_fails_immediately(self, error, fake_sleep, sleeps):
        attempts = []

        with pytest.raises(type(error)):
            await fetch_with_retry(failing_request(error, attempts), sleep=fake_sleep)

        assert len(attempts) == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_zero_retries(self, fake_sleep):
        attempts = []

        with pytest.raises(ProviderNetworkError):
            await fetch_with_retry(
                failing_request(ProviderNetworkError("down"), attempts),
                max_retries=0,
                sleep=fake_sleep,
            )

        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_config_variant(self, fake_sleep, sleeps):
        attempts = []
        config = RetryConfig(max_retries=1, base_delay_seconds=1.0, backoff_factor=2, jitter=0)

        with pytest.raises(ProviderNetworkError):
            await fetch_with_retry_config(
                failing_request(ProviderNetworkError("down"), attempts), config, sleep=fake_sleep
            )

        assert len(attempts) == 2
        assert sleeps == [1.0]
