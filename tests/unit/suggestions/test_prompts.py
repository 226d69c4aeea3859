"""Tests for klara/suggestions/prompts.py"""

import pytest

from klara.suggestions.errors import SuggestionValidationError
from klara.suggestions.prompts import (
    PROMPT_GUIDANCE,
    build_prompt,
    get_guidance,
    parse_suggestions,
)


class TestGuidance:
    """Lookup-table resolution of tone and state."""

    def test_exact_pair_wins(self):
        assert get_guidance("gentle", "tired") == PROMPT_GUIDANCE[("gentle", "tired")]

    def test_tone_and_state_combined(self):
        guidance = get_guidance("concise", "avoidant")
        assert guidance == "\n\n".join(
            [PROMPT_GUIDANCE[("concise", None)], PROMPT_GUIDANCE[(None, "avoidant")]]
        )

    def test_tone_only(self):
        assert get_guidance("coach") == PROMPT_GUIDANCE[("coach", None)]

    def test_state_only(self):
        assert get_guidance(state="low") == PROMPT_GUIDANCE[(None, "low")]

    def test_neutral_state_adds_nothing(self):
        assert get_guidance(None, "okay") == ""

    def test_unknown_tone_adds_nothing(self):
        assert get_guidance("sarcastic", None) == ""


class TestBuildPrompt:
    def test_includes_task_text(self):
        prompt = build_prompt("Plan the offsite")
        assert '"Plan the offsite"' in prompt
        assert "JSON array" in prompt

    def test_lists_existing_subtasks(self):
        prompt = build_prompt("Plan the offsite", existing_subtasks=["Pick a date", "Set budget"])
        assert "Pick a date, Set budget" in prompt

    def test_includes_guidance(self):
        prompt = build_prompt("Plan the offsite", tone="gentle", state="tired")
        assert PROMPT_GUIDANCE[("gentle", "tired")] in prompt


class TestParseSuggestions:
    """Tests for extracting the JSON array from a model answer."""

    def test_plain_array(self):
        assert parse_suggestions('["Open the file", "Write the intro"]') == [
            "Open the file",
            "Write the intro",
        ]

    def test_array_inside_prose_and_fences(self):
        text = 'Sure! Here you go:\n```json\n["Step one", "Step two"]\n```'
        assert parse_suggestions(text) == ["Step one", "Step two"]

    def test_caps_item_count(self):
        text = str([f"Step {n}" for n in range(8)]).replace("'", '"')
        assert len(parse_suggestions(text)) == 5

    def test_truncates_long_items(self):
        long_item = " ".join(f"w{n}" for n in range(30))
        result = parse_suggestions(f'["{long_item}"]')
        assert len(result[0].split()) == 20

    def test_skips_blank_and_non_string_items(self):
        assert parse_suggestions('["", 3, null, "Real step"]') == ["Real step"]

    @pytest.mark.parametrize(
        "text",
        [
            "I cannot help with that.",
            "[not json]",
            '["", "   "]',
            "",
        ],
    )
    def test_unusable_answers_rejected(self, text):
        with pytest.raises(SuggestionValidationError):
            parse_suggestions(text)
