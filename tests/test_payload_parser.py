"""
Tests for payload normalization and strict envelope decoding.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from payload_parser import (
    ParsedEnvelope,
    ParseError,
    candidates_from_envelope,
    decode_envelope,
    extract_structured,
    normalize_payload,
)


class TestNormalizePayload:
    """Test code fence and whitespace stripping."""

    def test_strips_json_fence(self):
        """Should strip a json-tagged code fence."""
        assert normalize_payload('```json\n{"a":1}\n```') == '{"a":1}'

    def test_strips_bare_fence(self):
        """Should strip an untagged code fence and trailing newline."""
        assert normalize_payload('```\n{"a": 1}\n```\n') == '{"a": 1}'

    def test_drops_text_after_closing_fence(self):
        """Should drop prose after the closing fence."""
        text = '```json\n{"a": 1}\n```\nHope this helps!'
        assert normalize_payload(text) == '{"a": 1}'

    def test_unclosed_fence_keeps_body(self):
        """Should keep the body when the fence is never closed."""
        assert normalize_payload('```json\n{"a": 1}') == '{"a": 1}'

    def test_plain_text_is_trimmed(self):
        """Should only trim plain text."""
        assert normalize_payload("  Just prose.\n") == "Just prose."

    def test_empty_and_none(self):
        """Should return an empty string for empty, None or fence-only input."""
        assert normalize_payload("") == ""
        assert normalize_payload(None) == ""
        assert normalize_payload("```") == ""

    @pytest.mark.parametrize("text", [
        "",
        "plain",
        '```json\n{"a":1}\n```',
        "```\n```\nleftover```",
        "   ```python\nprint('x')\n```  trailing",
        '  {"summary": "x"}  ',
        "```json\n```json\n{}\n```\n```",
    ])
    def test_idempotent(self, text):
        """Should leave already normalized text unchanged."""
        once = normalize_payload(text)
        assert normalize_payload(once) == once


class TestDecodeEnvelope:
    """Test strict decoding of the outermost object span."""

    def test_decodes_object_embedded_in_prose(self):
        """Should decode the object span surrounded by prose."""
        result = decode_envelope('Here you go: {"summary": "Hi"} Let me know!')
        assert isinstance(result, ParsedEnvelope)
        assert result.data == {"summary": "Hi"}

    def test_no_braces(self):
        """Should fail when there are no braces."""
        assert isinstance(decode_envelope("no json here"), ParseError)

    def test_end_before_start(self):
        """Should fail when the closing brace comes first."""
        assert isinstance(decode_envelope("} then {"), ParseError)

    def test_invalid_json(self):
        """Should fail with a reason on invalid JSON."""
        result = decode_envelope('{"summary": "unterminated}')
        assert isinstance(result, ParseError)
        assert "invalid JSON" in result.reason

    def test_empty_text(self):
        """Should fail on empty text."""
        assert isinstance(decode_envelope(""), ParseError)


class TestExtractStructured:
    """Test reading candidates from a decoded envelope."""

    def test_spec_example(self):
        """Should read the summary and suggestions from a fenced reply."""
        raw = ('```json\n{"summary":"You are learning to pause before reacting.",'
               '"suggestions":["Notice the urge before acting on it."]}\n```')
        candidates = extract_structured(normalize_payload(raw))

        assert candidates is not None
        assert candidates.summary_candidate == "You are learning to pause before reacting."
        assert candidates.insight_candidates == ["Notice the urge before acting on it."]
        assert candidates.insight_tier == "structured"

    def test_returns_none_without_object(self):
        """Should return None for prose without an object."""
        assert extract_structured("Your reflection shows real growth today.") is None

    def test_insights_alias(self):
        """Should accept the insights key as an alias."""
        candidates = extract_structured('{"summary": "S", "insights": ["One", "Two"]}')
        assert candidates.insight_candidates == ["One", "Two"]

    def test_suggestions_preferred_over_alias(self):
        """Should prefer suggestions over the insights alias."""
        candidates = extract_structured('{"suggestions": ["From suggestions"], "insights": ["From insights"]}')
        assert candidates.insight_candidates == ["From suggestions"]

    def test_null_suggestions_falls_back_to_alias(self):
        """Should fall back to the alias when suggestions is null."""
        candidates = extract_structured('{"suggestions": null, "insights": ["From insights"]}')
        assert candidates.insight_candidates == ["From insights"]

    def test_non_string_elements_dropped(self):
        """Should drop non-string and blank elements."""
        candidates = extract_structured('{"suggestions": ["a", 3, "  ", {"x": 1}, " b "]}')
        assert candidates.insight_candidates == ["a", "b"]

    def test_string_suggestions_are_segmented(self):
        """Should segment a string suggestions value."""
        candidates = extract_structured('{"summary": "S", "suggestions": "- Breathe first\\n- Then respond"}')
        assert candidates.insight_candidates == ["Breathe first", "Then respond"]
        assert candidates.insight_tier == "segmented"

    def test_non_string_summary_ignored(self):
        """Should ignore a non-string summary."""
        candidates = extract_structured('{"summary": 42, "suggestions": []}')
        assert candidates.summary_candidate is None
        assert candidates.insight_candidates == []

    def test_custom_keys(self):
        """Should read feature-specific summary and insight keys."""
        candidates = candidates_from_envelope(
            {"fullDescription": "A calm life.", "guidingSentences": ["I trust myself."]},
            summary_keys=("summary", "fullDescription"),
            insight_keys=("suggestions", "insights", "guidingSentences"),
        )
        assert candidates.summary_candidate == "A calm life."
        assert candidates.insight_candidates == ["I trust myself."]
