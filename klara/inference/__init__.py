"""Inference - a time-boxed guess at how the user is doing

Philosophy:
    Users won't fill out mood logs, and they shouldn't have to. Their task
    list already tells part of the story: a productive day, a pile of
    untouched items, a late-night session. Klara reads those signals,
    makes a modest guess, and uses it only to soften or sharpen its tone.
    The guess expires after a few hours.

Components:
    state.py: Signal generation, state scoring and validity checks

Usage:
    from klara.inference.state import infer_state, is_state_valid

    state = infer_state(tasks)
    if not is_state_valid(state):
        state = infer_state(tasks)
"""

from enum import Enum


class InferredStateType(str, Enum):
    """Inferred user states. Order matters: earlier states win score ties."""

    ENERGIZED = "energized"
    OKAY = "okay"
    LOW = "low"
    TIRED = "tired"
    AVOIDANT = "avoidant"
    UNCERTAIN = "uncertain"
    DISENGAGED = "disengaged"
    NEEDS_BREAKDOWN = "needs_breakdown"


class SignalWeight(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


SIGNAL_WEIGHTS = {
    SignalWeight.HIGH: 3,
    SignalWeight.MEDIUM: 2,
    SignalWeight.LOW: 1,
}

# Which state each signal type votes for
SIGNAL_STATE_MAP = {
    "completion_rate": InferredStateType.ENERGIZED,
    "low_completion_rate": InferredStateType.LOW,
    "procrastination": InferredStateType.AVOIDANT,
    "late_night_usage": InferredStateType.TIRED,
    "needs_breakdown": InferredStateType.NEEDS_BREAKDOWN,
}

__all__ = [
    "SIGNAL_STATE_MAP",
    "SIGNAL_WEIGHTS",
    "InferredStateType",
    "SignalWeight",
]
