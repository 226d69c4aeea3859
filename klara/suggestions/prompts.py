"""
Tool: Suggestion Prompts
Purpose: Build the subtask prompt and parse the provider's answer

Tone and inferred state shape the wording through a lookup table keyed by
``(tone, state)``. An exact pair wins; otherwise the tone-only and
state-only entries are combined. Adding a rule means adding a row, not a
branch.

Usage:
    from klara.suggestions.prompts import build_prompt, parse_suggestions

    prompt = build_prompt("Plan the offsite", tone="gentle", state="tired")
    suggestions = parse_suggestions('["Pick a date", "Book a room"]')
"""

from __future__ import annotations

import json
import re

from klara.suggestions.errors import SuggestionValidationError

MAX_SUGGESTIONS = 5
MAX_WORDS_PER_SUGGESTION = 20

# First bracketed, list-looking span in the answer
_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")

PROMPT_GUIDANCE: dict[tuple[str | None, str | None], str] = {
    # Tone only
    ("gentle", None): (
        "Tone: Warm and supportive. Use gentle, encouraging language.\n"
        "- Frame suggestions as helpful offerings, not commands\n"
        '- Use phrases like "You might want to..." or "Consider..."\n'
        "- Keep the tone light and non-pressuring"
    ),
    ("concise", None): (
        "Tone: Direct and efficient. Minimal words, maximum clarity.\n"
        "- Skip emotional padding and pleasantries\n"
        "- Use short, action-oriented phrases\n"
        "- Get straight to the point"
    ),
    ("coach", None): (
        "Tone: Motivational and action-oriented.\n"
        "- Use energizing language that encourages immediate action\n"
        "- Be direct but supportive\n"
        "- Frame steps as achievable milestones"
    ),
    ("silent", None): (
        "Tone: Minimal. Keep suggestions extremely brief.\n"
        "- Only essential information\n"
        "- No extra encouragement or padding\n"
        "- Just the bare action items"
    ),
    # State only
    (None, "energized"): "The user has momentum today. Steps can be a little more ambitious.",
    (None, "low"): "The user has low energy today. Keep every step small and easy to start.",
    (None, "tired"): "It is late for the user. Suggest light steps, and make the first one doable in a few minutes.",
    (None, "avoidant"): "The user has been putting tasks off. Make the first step tiny, something that takes under 5 minutes.",
    (None, "uncertain"): "The user seems unsure about priorities. Start with a step that clarifies what done looks like.",
    (None, "disengaged"): "The user is just coming back. Offer a gentle re-entry step first.",
    (None, "needs_breakdown"): "Several tasks feel too big. Prefer very concrete, physical first actions.",
    # Exact pairs
    ("gentle", "tired"): (
        "Tone: Soft and restful. It is late, so nothing here needs to happen tonight.\n"
        "- Offer steps as options for tomorrow\n"
        "- Keep the first step tiny and calm"
    ),
    ("coach", "avoidant"): (
        "Tone: Encouraging and forward-facing, never judgmental.\n"
        "- Open with a 3-5 minute starter step\n"
        "- Frame each step as a quick win"
    ),
    ("concise", "low"): (
        "Tone: Direct, few words. Energy is low.\n"
        "- Three short steps at most\n"
        "- Start with the easiest one"
    ),
}


def get_guidance(tone: str | None = None, state: str | None = None) -> str:
    """Resolve tone/state guidance from the lookup table."""
    if tone is not None and state is not None and (tone, state) in PROMPT_GUIDANCE:
        return PROMPT_GUIDANCE[(tone, state)]

    parts = [
        PROMPT_GUIDANCE.get((tone, None), "") if tone else "",
        PROMPT_GUIDANCE.get((None, state), "") if state else "",
    ]
    return "\n\n".join(part for part in parts if part)


def build_prompt(
    task_text: str,
    existing_subtasks: list[str] | None = None,
    tone: str | None = None,
    state: str | None = None,
) -> str:
    prompt = f'You are a task decomposition assistant. The user has a task: "{task_text}"\n\n'

    if existing_subtasks:
        prompt += f"The user already has these sub-tasks: {', '.join(existing_subtasks)}\n\n"

    guidance = get_guidance(tone, state)
    if guidance:
        prompt += f"{guidance}\n\n"

    prompt += (
        "Please suggest 3-5 concise sub-task steps to help the user complete this task.\n\n"
        "Requirements:\n"
        f"- Each sub-task should be no more than {MAX_WORDS_PER_SUGGESTION} words\n"
        "- Steps should be specific and actionable\n"
        "- Do not repeat existing sub-tasks\n"
        "- Do not use dashes (—, –) in text\n"
        "- Return ONLY a valid JSON array format, no other text\n"
        '- Example: ["Step 1", "Step 2", "Step 3"]'
    )
    return prompt


def parse_suggestions(text: str, max_items: int = MAX_SUGGESTIONS) -> list[str]:
    """
    Extract the suggestion list from a provider answer.

    Raises:
        SuggestionValidationError: no array found, the array does not
            decode, or it holds no usable strings.
    """
    match = _JSON_ARRAY_RE.search(text or "")
    if not match:
        raise SuggestionValidationError("No JSON array found in response")

    try:
        decoded = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise SuggestionValidationError(f"Failed to parse suggestions as JSON: {e}") from e

    if not isinstance(decoded, list):
        raise SuggestionValidationError("Response is not an array")

    suggestions = []
    for item in decoded:
        if not isinstance(item, str) or not item.strip():
            continue
        words = item.split()
        suggestions.append(" ".join(words[:MAX_WORDS_PER_SUGGESTION]))

    if not suggestions:
        raise SuggestionValidationError("Response contained no usable suggestions")

    return suggestions[:max_items]


__all__ = [
    "MAX_SUGGESTIONS",
    "MAX_WORDS_PER_SUGGESTION",
    "PROMPT_GUIDANCE",
    "build_prompt",
    "get_guidance",
    "parse_suggestions",
]
