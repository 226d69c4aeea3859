"""Tests for klara/suggestions/orchestrator.py

The orchestrator ties cache, rate limiter, coalescer and retries together
and always answers with a tagged result instead of raising.
"""

import asyncio
import random
from dataclasses import replace

import pytest

from klara.suggestions.cache import SuggestionCache
from klara.suggestions.errors import ProviderServerError
from klara.suggestions.models import CacheHit, CacheStatus, Failed, Fetched, RateLimited
from klara.suggestions.orchestrator import SuggestionOrchestrator, coalescing_key
from klara.suggestions.provider import SuggestionProvider, UnavailableProvider


class FakeProvider(SuggestionProvider):
    """Provider that records prompts and answers from canned data."""

    def __init__(self, response='["Open the slides", "Outline three sections"]', error=None):
        self.response = response
        self.error = error
        self.prompts = []
        self.gate = None

    @property
    def calls(self):
        return len(self.prompts)

    def is_available(self):
        return True

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def orchestrator_factory(provider, temp_db, clock, sleeps):
    """Build orchestrators sharing the temp database and clock."""

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    def _build(**kwargs):
        kwargs.setdefault("provider", provider)
        return SuggestionOrchestrator(
            cache=SuggestionCache(db_path=temp_db, clock=clock),
            clock=clock,
            sleep=fake_sleep,
            rng=random.Random(0),
            **kwargs,
        )

    return _build


@pytest.fixture
def orchestrator(orchestrator_factory):
    return orchestrator_factory()


# ─────────────────────────────────────────────────────────────────────────────
# Happy path and cache
# ─────────────────────────────────────────────────────────────────────────────


class TestRequestSuggestions:
    """Tests for the main request flow."""

    @pytest.mark.asyncio
    async def test_fetches_and_caches(self, orchestrator, complex_task, provider):
        result = await orchestrator.request_suggestions(complex_task)

        assert isinstance(result, Fetched)
        assert result.suggestions == ["Open the slides", "Outline three sections"]
        assert orchestrator.cache.get(complex_task.id) is not None
        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_second_request_is_cache_hit(self, orchestrator, complex_task, provider):
        await orchestrator.request_suggestions(complex_task)

        result = await orchestrator.request_suggestions(complex_task)

        assert isinstance(result, CacheHit)
        assert result.from_cache is True
        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_cache_hit_ignores_non_planning_changes(self, orchestrator, complex_task):
        await orchestrator.request_suggestions(complex_task)

        result = await orchestrator.request_suggestions(replace(complex_task, subtask_count=2))

        assert isinstance(result, CacheHit)

    @pytest.mark.asyncio
    async def test_tone_and_state_reach_prompt(self, orchestrator, complex_task, provider):
        await orchestrator.request_suggestions(complex_task, tone="coach", state="avoidant")

        assert "3-5 minute starter step" in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_result_shape(self, orchestrator, complex_task):
        result = await orchestrator.request_suggestions(complex_task)

        assert result.to_dict() == {
            "suggestions": ["Open the slides", "Outline three sections"],
            "success": True,
            "from_cache": False,
            "rate_limited": False,
        }


# ─────────────────────────────────────────────────────────────────────────────
# Coalescing and rate limits
# ─────────────────────────────────────────────────────────────────────────────


class TestCoalescing:
    @pytest.mark.asyncio
    async def test_concurrent_requests_call_provider_once(
        self, orchestrator, complex_task, provider
    ):
        """K identical concurrent requests share one provider call."""
        provider.gate = asyncio.Event()

        pending = [
            asyncio.ensure_future(orchestrator.request_suggestions(complex_task)) for _ in range(4)
        ]
        await asyncio.sleep(0)
        provider.gate.set()
        results = await asyncio.gather(*pending)

        assert provider.calls == 1
        assert all(isinstance(r, Fetched) for r in results)
        assert len({tuple(r.suggestions) for r in results}) == 1

    @pytest.mark.asyncio
    async def test_joined_requests_use_no_rate_slots(self, orchestrator, complex_task, provider):
        provider.gate = asyncio.Event()

        pending = [
            asyncio.ensure_future(orchestrator.request_suggestions(complex_task)) for _ in range(3)
        ]
        await asyncio.sleep(0)
        provider.gate.set()
        await asyncio.gather(*pending)

        status = orchestrator.rate_limiter.get_status(complex_task.id, "local")
        assert status["user_short"]["used"] == 1

    @pytest.mark.asyncio
    async def test_twin_tasks_each_get_a_cache_entry(self, orchestrator, complex_task, provider):
        """Two tasks with the same wording share a call but both are cached."""
        twin = replace(complex_task, id="task_twin")
        provider.gate = asyncio.Event()

        pending = [
            asyncio.ensure_future(orchestrator.request_suggestions(complex_task)),
            asyncio.ensure_future(orchestrator.request_suggestions(twin)),
        ]
        await asyncio.sleep(0)
        provider.gate.set()
        results = await asyncio.gather(*pending)

        assert [type(r) for r in results] == [Fetched, Fetched]
        assert orchestrator.cache.get(complex_task.id) is not None
        assert orchestrator.cache.get(twin.id).suggestions == results[1].suggestions

        again = await orchestrator.request_suggestions(twin)

        assert isinstance(again, CacheHit)
        assert provider.calls == 1

    @pytest.mark.asyncio
    async def test_twin_task_deleted_mid_flight_is_not_cached(
        self, orchestrator_factory, complex_task, provider
    ):
        twin = replace(complex_task, id="task_twin")
        orchestrator = orchestrator_factory(task_exists=lambda task_id: task_id != twin.id)
        provider.gate = asyncio.Event()

        pending = [
            asyncio.ensure_future(orchestrator.request_suggestions(complex_task)),
            asyncio.ensure_future(orchestrator.request_suggestions(twin)),
        ]
        await asyncio.sleep(0)
        provider.gate.set()
        results = await asyncio.gather(*pending)

        assert isinstance(results[1], Fetched)
        assert orchestrator.cache.get(complex_task.id) is not None
        assert orchestrator.cache.get(twin.id) is None

    def test_key_prefers_signature(self, sample_task):
        assert coalescing_key(sample_task, "sig") == "sig:sig"
        assert coalescing_key(sample_task, "") == f"id:{sample_task.id}"


class TestRateLimits:
    @pytest.mark.asyncio
    async def test_edited_task_within_five_minutes_is_limited(self, orchestrator, complex_task):
        await orchestrator.request_suggestions(complex_task)
        edited = replace(complex_task, text=complex_task.text + " with notes")

        result = await orchestrator.request_suggestions(edited)

        assert isinstance(result, RateLimited)
        assert result.bucket == "task_short"
        assert result.to_dict()["rate_limited"] is True
        assert result.to_dict()["error"]

    @pytest.mark.asyncio
    async def test_limit_lifts_after_window(self, orchestrator, complex_task, clock):
        await orchestrator.request_suggestions(complex_task)
        edited = replace(complex_task, text=complex_task.text + " with notes")

        clock.advance(minutes=5, seconds=1)

        assert isinstance(await orchestrator.request_suggestions(edited), Fetched)

    @pytest.mark.asyncio
    async def test_user_limit_across_tasks(self, orchestrator, task_factory, provider):
        tasks = [task_factory(task_id=f"t{n}", text=f"Draft chapter {n} outline") for n in range(4)]

        results = [await orchestrator.request_suggestions(t) for t in tasks]

        assert [type(r) for r in results] == [Fetched, Fetched, Fetched, RateLimited]
        assert results[-1].bucket == "user_short"
        assert provider.calls == 3


# ─────────────────────────────────────────────────────────────────────────────
# Failures
# ─────────────────────────────────────────────────────────────────────────────


class TestFailures:
    """Every failure degrades to a Failed result; nothing is cached."""

    @pytest.mark.asyncio
    async def test_unavailable_provider(self, orchestrator_factory, complex_task):
        orchestrator = orchestrator_factory(provider=UnavailableProvider())

        result = await orchestrator.request_suggestions(complex_task)

        assert isinstance(result, Failed)
        assert result.error_kind == "provider_unavailable"
        status = orchestrator.rate_limiter.get_status(complex_task.id, "local")
        assert status["task_short"]["used"] == 0

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, orchestrator, task_factory, provider):
        result = await orchestrator.request_suggestions(task_factory(text="   "))

        assert isinstance(result, Failed)
        assert result.error_kind == "validation_error"
        assert provider.calls == 0

    @pytest.mark.asyncio
    async def test_overlong_text_rejected(self, orchestrator, task_factory):
        result = await orchestrator.request_suggestions(task_factory(text="x" * 501))

        assert result.error_kind == "validation_error"
        assert "too long" in result.error

    @pytest.mark.asyncio
    async def test_unparseable_answer_not_cached(self, orchestrator, complex_task, provider):
        provider.response = "Sorry, I can't do that."

        result = await orchestrator.request_suggestions(complex_task)

        assert isinstance(result, Failed)
        assert result.error_kind == "validation_error"
        assert orchestrator.cache.get(complex_task.id) is None

    @pytest.mark.asyncio
    async def test_server_errors_retried_then_failed(
        self, orchestrator, complex_task, provider, sleeps
    ):
        provider.error = ProviderServerError("unavailable", status_code=503)

        result = await orchestrator.request_suggestions(complex_task)

        assert isinstance(result, Failed)
        assert result.error_kind == "server_error"
        assert provider.calls == 3
        assert len(sleeps) == 2
        assert orchestrator.cache.get(complex_task.id) is None

    @pytest.mark.asyncio
    async def test_unexpected_error_contained(self, orchestrator, complex_task, provider):
        provider.error = RuntimeError("kaboom")

        result = await orchestrator.request_suggestions(complex_task)

        assert isinstance(result, Failed)
        assert result.error_kind == "error"
        assert result.success is False

    @pytest.mark.asyncio
    async def test_vanished_task_not_cached(self, orchestrator_factory, complex_task):
        orchestrator = orchestrator_factory(task_exists=lambda task_id: False)

        result = await orchestrator.request_suggestions(complex_task)

        assert isinstance(result, Fetched)
        assert orchestrator.cache.get(complex_task.id) is None


# ─────────────────────────────────────────────────────────────────────────────
# Lifecycle hooks
# ─────────────────────────────────────────────────────────────────────────────


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_consumed_suggestions_not_served_again(self, orchestrator, complex_task):
        await orchestrator.request_suggestions(complex_task)

        assert orchestrator.mark_consumed(complex_task.id) is True
        result = await orchestrator.request_suggestions(complex_task)

        assert not isinstance(result, CacheHit)
        assert orchestrator.cache.get(complex_task.id).status == CacheStatus.CONSUMED

    @pytest.mark.asyncio
    async def test_forget_task_clears_cache_and_windows(
        self, orchestrator, complex_task, provider
    ):
        await orchestrator.request_suggestions(complex_task)

        orchestrator.forget_task(complex_task.id)
        result = await orchestrator.request_suggestions(complex_task)

        assert isinstance(result, Fetched)
        assert provider.calls == 2
