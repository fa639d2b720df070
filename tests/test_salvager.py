"""
Tests for salvaging a suggestions list from malformed output.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from salvager import (
    decode_quoted,
    match_quoted,
    parse_array_literal,
    salvage_scalars,
    salvage_suggestions,
    scan_bracketed,
    value_after_key,
)


class TestSalvageSuggestions:
    """Test recovery of the suggestions value from a dump."""

    def test_bracketed_array_in_broken_json(self):
        """Should recover a complete array from broken JSON."""
        dump = '{"summary": "x", "suggestions": ["a", "b", "c"], "extra": '
        assert salvage_suggestions(dump) == ["a", "b", "c"]

    def test_scalar_run(self):
        """Should recover a run of quoted scalars."""
        assert salvage_suggestions('{"suggestions": "a", "b"}') == ["a", "b"]

    def test_missing_key(self):
        """Should return nothing when the key is absent."""
        assert salvage_suggestions('{"summary": "only a summary"}') == []

    def test_empty_input(self):
        """Should return nothing for empty or None input."""
        assert salvage_suggestions("") == []
        assert salvage_suggestions(None) == []

    def test_truncated_array_keeps_complete_items(self):
        """Should keep the complete items of a truncated array."""
        dump = '{"suggestions": ["first idea", "second idea", "thi'
        assert salvage_suggestions(dump) == ["first idea", "second idea"]

    def test_brackets_inside_strings(self):
        """Should ignore brackets inside quoted strings."""
        dump = '{"suggestions": ["use [brackets] freely", "ok"]}'
        assert salvage_suggestions(dump) == ["use [brackets] freely", "ok"]

    def test_escapes_are_decoded(self):
        """Should decode escapes and collapse whitespace."""
        dump = r'{"suggestions": "Line one\nstill one", "Say \"hi\""'
        assert salvage_suggestions(dump) == ["Line one still one", 'Say "hi"']

    def test_non_string_array_items(self):
        """Should stringify scalars and drop null, bool and blank items."""
        dump = '"suggestions": [1, "two", null, true, "  "]'
        assert salvage_suggestions(dump) == ["1", "two"]

    def test_unquoted_value(self):
        """Should return nothing for an unquoted value."""
        assert salvage_suggestions('"suggestions": none here') == []

    def test_custom_key(self):
        """Should salvage under a custom key."""
        dump = '{"guidingSentences": ["I live calmly."'
        assert salvage_suggestions(dump, key="guidingSentences") == ["I live calmly."]

    def test_serialized_envelope(self):
        """Should find the key inside a serialized envelope."""
        dump = '{"message": "hi", "data": {"suggestions": ["Rest well."]}}'
        assert salvage_suggestions(dump) == ["Rest well."]


class TestScanners:
    """Test the individual scanning steps."""

    def test_value_after_key(self):
        """Should return the text after the key and colon."""
        assert value_after_key('{"suggestions" :  [1]}') == "[1]}"
        assert value_after_key('{"suggestions"') is None
        assert value_after_key('{"other": 1}') is None

    def test_scan_bracketed_nested(self):
        """Should find the matching close bracket of nested arrays."""
        assert scan_bracketed("[[1],[2]] tail") == 8

    def test_scan_bracketed_unbalanced(self):
        """Should return None for unbalanced brackets."""
        assert scan_bracketed("[[1]") is None

    def test_scan_bracketed_escaped_quote(self):
        """Should skip escaped quotes inside strings."""
        text = r'["a \"]\" b"] rest'
        assert text[scan_bracketed(text)] == "]"
        assert scan_bracketed(text) == 12

    def test_parse_array_literal(self):
        """Should parse only well-formed array literals."""
        assert parse_array_literal('[" a ", "b"]') == ["a", "b"]
        assert parse_array_literal('{"a": 1}') is None
        assert parse_array_literal("[oops") is None

    def test_match_quoted(self):
        """Should match a quoted string with escapes."""
        assert match_quoted(r'"a\"b" rest') == (r'a\"b', 6)
        assert match_quoted('no quote') is None
        assert match_quoted('"unterminated') is None

    def test_decode_quoted_falls_back_on_bad_escape(self):
        """Should fall back to manual unescaping on a bad escape."""
        assert decode_quoted(r"bad \q escape\nnext") == "bad \\q escape\nnext"

    def test_salvage_scalars_stops_without_comma(self):
        """Should stop at the first scalar not followed by a comma."""
        assert salvage_scalars('"one" "two"') == ["one"]
