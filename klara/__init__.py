"""Klara - task clarity companion core

Philosophy:
    A task list should lower the pressure, not raise it. Klara only speaks
    up when it has something useful to say: a small first step for a task
    that looks too big, a gentle note when a date slipped by. Everything
    else stays quiet.

Components:
    tasks/: Read-only task snapshots, signatures and keyword classification
    suggestions/: AI subtask suggestions (cache, rate limits, coalescing, retries)
    nudges/: Gentle reminders with a global badge quota and dismissal cooldowns
    inference/: Behavioral state inference used to tune suggestion tone

Usage:
    from klara.suggestions.orchestrator import SuggestionOrchestrator
    from klara.nudges.detector import NudgeDetector
    from klara.inference.state import infer_state
"""

from pathlib import Path

__version__ = "0.1.0"

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"
DATA_DIR = PROJECT_ROOT / "data"
CONFIG_PATH = ARGS_DIR / "klara.yaml"

__all__ = ["__version__", "PROJECT_ROOT", "ARGS_DIR", "DATA_DIR", "CONFIG_PATH"]
