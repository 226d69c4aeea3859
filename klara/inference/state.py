"""
Tool: State Inference
Purpose: Infer the user's current disposition from their task corpus

Signals:
    completion_rate      - 70%+ of today's tasks done (high weight)
    low_completion_rate  - 30% or less done (medium weight)
    procrastination      - 3+ undated tasks older than a week (high weight)
    late_night_usage     - local time between 23:00 and 05:00 (low weight)
    needs_breakdown      - a long task with no subtasks (medium weight)

Scoring:
    Every state starts at 0 except ``okay`` at 0.5, so ``okay`` is the
    floor. Each signal adds its weight (3/2/1) to one state. The highest
    score wins; ties go to the earlier state in InferredStateType order.
    Confidence = max score / (signal count x 3), clamped to [0, 1].

An inference is valid for 4 hours. This module never schedules itself;
callers re-infer when ``is_state_valid`` turns false.

Usage:
    from klara.inference.state import infer_state

    state = infer_state(tasks)
    print(state.state.value, state.confidence)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from klara.config_models import InferenceConfig
from klara.inference import (
    SIGNAL_STATE_MAP,
    SIGNAL_WEIGHTS,
    InferredStateType,
    SignalWeight,
)
from klara.logging_config import get_logger
from klara.tasks.models import TaskSnapshot

logger = get_logger(__name__)

DEFAULT_CONFIDENCE = 0.5
NEUTRAL_COMPLETION_RATE = 0.5
OKAY_BASE_SCORE = 0.5


@dataclass(frozen=True)
class BehavioralSignal:
    type: str
    value: Any
    observed_at: datetime
    weight: SignalWeight

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "value": self.value,
            "observed_at": self.observed_at.isoformat(),
            "weight": self.weight.value,
        }


@dataclass(frozen=True)
class InferredUserState:
    state: InferredStateType
    confidence: float
    inferred_at: datetime
    valid_until: datetime
    signals: list[BehavioralSignal] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for storing alongside user preferences."""
        return {
            "state": self.state.value,
            "confidence": self.confidence,
            "signals": [s.to_dict() for s in self.signals],
            "inferred_at": self.inferred_at.isoformat(),
            "valid_until": self.valid_until.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InferredUserState:
        return cls(
            state=InferredStateType(data["state"]),
            confidence=float(data["confidence"]),
            inferred_at=datetime.fromisoformat(data["inferred_at"]),
            valid_until=datetime.fromisoformat(data["valid_until"]),
            signals=[
                BehavioralSignal(
                    type=s["type"],
                    value=s["value"],
                    observed_at=datetime.fromisoformat(s["observed_at"]),
                    weight=SignalWeight(s["weight"]),
                )
                for s in data.get("signals", [])
            ],
        )


# =============================================================================
# Signal helpers
# =============================================================================


def calculate_completion_rate(tasks: list[TaskSnapshot], now: datetime) -> float:
    """Share of today's tasks (open, or completed today) that are done."""
    today = now.date()

    def completed_today(task: TaskSnapshot) -> bool:
        return task.completed and task.completed_at is not None and task.completed_at.date() == today

    todays_tasks = [t for t in tasks if not t.completed or completed_today(t)]
    if not todays_tasks:
        return NEUTRAL_COMPLETION_RATE

    done = sum(1 for t in todays_tasks if completed_today(t))
    return done / len(todays_tasks)


def count_delayed_tasks(tasks: list[TaskSnapshot], now: datetime, days: int = 7) -> int:
    """Open tasks with no due date created more than ``days`` ago."""
    cutoff = now - timedelta(days=days)
    return sum(
        1 for t in tasks if not t.completed and t.due_date is None and t.created_at < cutoff
    )


def is_late_night(now: datetime, start_hour: int = 23, end_hour: int = 5) -> bool:
    """True inside [start_hour, end_hour), wrapping past midnight when start > end."""
    if start_hour > end_hour:
        return now.hour >= start_hour or now.hour < end_hour
    return start_hour <= now.hour < end_hour


def has_breakdown_candidates(tasks: list[TaskSnapshot], complex_length: int = 50) -> bool:
    return any(
        not t.completed and len(t.text) > complex_length and t.subtask_count == 0 for t in tasks
    )


# =============================================================================
# Inference
# =============================================================================


def generate_signals(
    tasks: list[TaskSnapshot],
    now: datetime | None = None,
    config: InferenceConfig | None = None,
) -> list[BehavioralSignal]:
    now = now or datetime.now()
    config = config or InferenceConfig()
    signals = []

    rate = calculate_completion_rate(tasks, now)
    if rate >= config.high_completion_rate:
        signals.append(BehavioralSignal("completion_rate", rate, now, SignalWeight.HIGH))
    elif rate <= config.low_completion_rate:
        signals.append(BehavioralSignal("low_completion_rate", rate, now, SignalWeight.MEDIUM))

    delayed = count_delayed_tasks(tasks, now, config.procrastination_days)
    if delayed >= config.procrastination_count:
        signals.append(BehavioralSignal("procrastination", delayed, now, SignalWeight.HIGH))

    if is_late_night(now, config.late_night_start_hour, config.late_night_end_hour):
        signals.append(BehavioralSignal("late_night_usage", True, now, SignalWeight.LOW))

    if has_breakdown_candidates(tasks, config.complex_task_length):
        signals.append(BehavioralSignal("needs_breakdown", True, now, SignalWeight.MEDIUM))

    return signals


def determine_state(signals: list[BehavioralSignal]) -> tuple[InferredStateType, float]:
    """Pick the winning state and a confidence in [0, 1]."""
    if not signals:
        return InferredStateType.OKAY, DEFAULT_CONFIDENCE

    scores = {state: 0.0 for state in InferredStateType}
    scores[InferredStateType.OKAY] = OKAY_BASE_SCORE

    for signal in signals:
        state = SIGNAL_STATE_MAP.get(signal.type)
        if state is not None:
            scores[state] += SIGNAL_WEIGHTS[signal.weight]

    max_score = 0.0
    primary = InferredStateType.OKAY
    for state, score in scores.items():
        if score > max_score:
            max_score = score
            primary = state

    max_possible = len(signals) * SIGNAL_WEIGHTS[SignalWeight.HIGH]
    confidence = min(max(max_score / max_possible, 0.0), 1.0)
    return primary, confidence


def infer_state(
    tasks: list[TaskSnapshot],
    now: datetime | None = None,
    config: InferenceConfig | None = None,
) -> InferredUserState:
    """
    Infer the user's state from their tasks.

    Falls back to ``okay`` with default confidence if anything goes wrong.
    """
    now = now or datetime.now()
    config = config or InferenceConfig()
    valid_until = now + timedelta(hours=config.validity_hours)

    try:
        signals = generate_signals(tasks, now, config)
        state, confidence = determine_state(signals)
    except Exception:
        logger.exception("state_inference_failed")
        signals, state, confidence = [], InferredStateType.OKAY, DEFAULT_CONFIDENCE

    return InferredUserState(
        state=state,
        confidence=confidence,
        signals=signals,
        inferred_at=now,
        valid_until=valid_until,
    )


def is_state_valid(state: InferredUserState | None, now: datetime | None = None) -> bool:
    if state is None:
        return False
    return (now or datetime.now()) < state.valid_until


STATE_DESCRIPTIONS = {
    InferredStateType.ENERGIZED: "You seem to be in a productive flow!",
    InferredStateType.OKAY: "Things seem to be going steadily.",
    InferredStateType.LOW: "Taking it easy today.",
    InferredStateType.TIRED: "It's late. Remember to rest.",
    InferredStateType.AVOIDANT: "Some tasks might need attention.",
    InferredStateType.UNCERTAIN: "Feeling unsure about priorities?",
    InferredStateType.DISENGAGED: "Welcome back!",
    InferredStateType.NEEDS_BREAKDOWN: "Some tasks might be easier in smaller steps.",
}

STATE_GROUPS = {
    InferredStateType.LOW: "S_low_energy",
    InferredStateType.TIRED: "S_low_energy",
    InferredStateType.AVOIDANT: "S_avoidant",
    InferredStateType.NEEDS_BREAKDOWN: "S_avoidant",
}


def get_state_description(state: InferredStateType) -> str:
    return STATE_DESCRIPTIONS.get(InferredStateType(state), "")


def get_state_group(state: InferredStateType) -> str:
    """Collapse a state into the group used to pick nudge copy."""
    return STATE_GROUPS.get(InferredStateType(state), "S_neutral_or_up")


__all__ = [
    "BehavioralSignal",
    "InferredUserState",
    "calculate_completion_rate",
    "count_delayed_tasks",
    "determine_state",
    "generate_signals",
    "get_state_description",
    "get_state_group",
    "has_breakdown_candidates",
    "infer_state",
    "is_late_night",
    "is_state_valid",
]
