"""Suggestions - AI subtask suggestions that never get in the way

Philosophy:
    Suggestions are a nicety, not a critical path. A task is always
    creatable whether or not the AI answers. So this package protects the
    provider from bursts, never pays twice for the same question, and
    degrades to "no suggestions right now" instead of blocking the user.

Components:
    cache.py: Per-task suggestion cache with signature coherence and 24h expiry
    ratelimit.py: Sliding-window limits (per task and per process)
    coalescer.py: At most one in-flight provider call per key
    retry.py: Bounded retries with exponential backoff for transient failures
    provider.py: Suggestion provider interface and the Gemini client
    prompts.py: Tone/state prompt guidance and response parsing
    orchestrator.py: The single request_suggestions entry point

Usage:
    from klara.suggestions.orchestrator import SuggestionOrchestrator

    orchestrator = SuggestionOrchestrator.from_config()
    result = await orchestrator.request_suggestions(task, tone="gentle")
    if result.success:
        print(result.suggestions)

Database: data/suggestions.db
    - suggestion_cache: One cached bundle per task
"""

from klara import DATA_DIR

DB_PATH = DATA_DIR / "suggestions.db"

# Cache entry statuses
CACHE_STATUSES = ("active", "consumed")

# Tone presets the prompt builder understands
TONE_STYLES = ("gentle", "concise", "coach", "silent")

__all__ = ["DB_PATH", "CACHE_STATUSES", "TONE_STYLES"]
