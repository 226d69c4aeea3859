"""
Nudge card copy.

Tone guide: calm, gentle, no guilt, low pressure. Nothing here should read
like a scolding; a slipped date is just a fact to work with.

Usage:
    from klara.nudges.texts import get_nudge_texts, get_state_aware_texts

    texts = get_state_aware_texts(NudgeType.OVERDUE, "S_low_energy")
    print(texts.message, texts.sub_message)
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace

from klara.nudges import NudgeType


@dataclass(frozen=True)
class NudgeCardTexts:
    message: str
    sub_message: str
    actions: dict[str, str] = field(default_factory=dict)


NUDGE_TEXTS: dict[NudgeType, NudgeCardTexts] = {
    NudgeType.OVERDUE: NudgeCardTexts(
        message="This one slipped past its date.",
        sub_message="No worries. Want to set a new one?",
        actions={
            "set_new_date": "Set new date",
            "break_down": "Break it down",
            "let_go": "Let it go",
        },
    ),
    NudgeType.NEEDS_BREAKDOWN: NudgeCardTexts(
        message="This task looks a bit big.",
        sub_message="Want me to help break it into smaller steps?",
        actions={
            "break_down": "Yes, break it down",
            "not_now": "Not now",
        },
    ),
    NudgeType.LONG_PENDING: NudgeCardTexts(
        message="This task has been sitting for a while.",
        sub_message="Want to give it a date, or let it go?",
        actions={
            "give_date": "Give it a date",
            "break_down": "Break it down",
            "let_go": "Let it go",
        },
    ),
    NudgeType.REPEATEDLY_POSTPONED: NudgeCardTexts(
        message="This task keeps getting pushed back.",
        sub_message="Maybe it needs a smaller first step?",
        actions={
            "break_down": "Break it down",
            "set_firm_date": "Set firm date",
            "let_go": "Let it go",
        },
    ),
}

DISMISS_TEXTS = {
    "confirmation": "Got it.",
    "show_less": "Show less of these",
}

NUDGE_VARIANTS: dict[NudgeType, tuple[str, ...]] = {
    NudgeType.OVERDUE: (
        "This one slipped past its date.",
        "The deadline has passed, but we can restart gently.",
        "It makes sense this slipped. Want a softer version to get going?",
        "Even though it's past due, one small move today is already meaningful.",
    ),
    NudgeType.NEEDS_BREAKDOWN: (
        "This task looks a bit big.",
        "If this still feels abstract, we can just name the first tiny step.",
        "You don't have to plan everything. One small line is enough for now.",
    ),
    NudgeType.LONG_PENDING: (
        "This task has been sitting for a while.",
        "If today already feels full, this task can stay very light.",
        "This will matter sometime soon. Want to take a light first step?",
    ),
    NudgeType.REPEATEDLY_POSTPONED: (
        "This task keeps getting pushed back.",
        "You've already noticed this task; one 3-5 minute start could make it easier.",
        "If you'd like, we can choose the simplest version to do.",
    ),
}

SUB_MESSAGE_VARIANTS: dict[NudgeType, tuple[str, ...]] = {
    NudgeType.OVERDUE: (
        "No worries. Want to set a new one?",
        "Want to pick a new date, or let it go?",
        "A fresh start might feel lighter.",
    ),
    NudgeType.NEEDS_BREAKDOWN: (
        "Want me to help break it into smaller steps?",
        "We can start with just one clear, tiny action.",
        "What's the smallest step that still feels honest to you?",
    ),
    NudgeType.LONG_PENDING: (
        "Want to give it a date, or let it go?",
        "Sometimes things just need a gentle push, or permission to go.",
        "Would a deadline help, or is this one ready to release?",
    ),
    NudgeType.REPEATEDLY_POSTPONED: (
        "Maybe it needs a smaller first step?",
        "Sometimes the smallest entry point makes all the difference.",
        "A 3-5 minute version might be the key.",
    ),
}

# Softer copy per state group, keyed by (group, nudge type)
STATE_OVERRIDES: dict[tuple[str, NudgeType], dict[str, str]] = {
    ("S_low_energy", NudgeType.OVERDUE): {
        "message": "It makes sense this slipped.",
        "sub_message": "Want a softer version to get going again?",
    },
    ("S_low_energy", NudgeType.NEEDS_BREAKDOWN): {
        "message": "If today already feels full, this task can stay very light.",
        "sub_message": "We can just name the first tiny step.",
    },
    ("S_avoidant", NudgeType.OVERDUE): {
        "sub_message": "A 3-5 minute start will help your future self.",
    },
    ("S_avoidant", NudgeType.NEEDS_BREAKDOWN): {
        "sub_message": "The smallest step is the most important one.",
    },
}


def get_nudge_texts(nudge_type: NudgeType) -> NudgeCardTexts:
    return NUDGE_TEXTS[NudgeType(nudge_type)]


def get_random_variant(
    nudge_type: NudgeType, rng: random.Random | None = None
) -> tuple[str, str]:
    """Pick a (message, sub_message) pair for variety."""
    rng = rng or random.Random()
    nudge_type = NudgeType(nudge_type)
    base = NUDGE_TEXTS[nudge_type]
    messages = NUDGE_VARIANTS.get(nudge_type) or (base.message,)
    sub_messages = SUB_MESSAGE_VARIANTS.get(nudge_type) or (base.sub_message,)
    return rng.choice(messages), rng.choice(sub_messages)


def get_state_aware_texts(nudge_type: NudgeType, state_group: str | None = None) -> NudgeCardTexts:
    """Card texts adjusted for the user's simplified state group."""
    nudge_type = NudgeType(nudge_type)
    base = NUDGE_TEXTS[nudge_type]
    override = STATE_OVERRIDES.get((state_group, nudge_type)) if state_group else None
    if not override:
        return base
    return replace(base, **override)


__all__ = [
    "DISMISS_TEXTS",
    "NUDGE_TEXTS",
    "NUDGE_VARIANTS",
    "STATE_OVERRIDES",
    "SUB_MESSAGE_VARIANTS",
    "NudgeCardTexts",
    "get_nudge_texts",
    "get_random_variant",
    "get_state_aware_texts",
]
