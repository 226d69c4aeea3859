"""Klara Test Suite

Tests for the suggestion orchestration and nudge engine core.

Test organization:
- unit/tasks/: Task snapshots, planning signatures, classification
- unit/suggestions/: Cache, rate limiter, coalescer, retry, prompts, provider, orchestrator
- unit/nudges/: Nudge detection, cooldowns, copy selection
- unit/inference/: Behavioral signals and state inference
- unit/test_config_models.py, unit/test_logging_config.py, unit/test_cli.py: Ambient stack

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/suggestions/

    # With coverage
    pytest --cov=klara --cov-report=term-missing
"""
