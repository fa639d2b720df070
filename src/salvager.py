"""
Best-effort recovery of an insight list from text that failed strict parsing.

The salvager looks for the literal ``"suggestions"`` key anywhere in a dump and
reads what follows it either as a bracketed array literal or as a
comma-separated run of quoted strings. Each scanning step is a pure function
over ``(text, index)`` so it can be tested on its own.
"""

import json
import re
from typing import Any, List, Optional, Tuple

from constants import SALVAGE_KEY
from segmenter import collapse_whitespace

_QUOTED = re.compile(r'"((?:[^"\\]|\\.)*)"', re.DOTALL)


def value_after_key(dump: str, key: str = SALVAGE_KEY) -> Optional[str]:
    """Return the trimmed text after ``"key"`` and its colon, or None."""
    marker = f'"{key}"'
    index = dump.find(marker)
    if index == -1:
        return None

    rest = dump[index + len(marker):]
    colon = rest.find(":")
    if colon == -1:
        return None

    return rest[colon + 1:].strip()


def scan_bracketed(text: str, start: int = 0) -> Optional[int]:
    """
    Index of the ']' that closes the '[' at ``start``, or None if unbalanced.

    Brackets inside quoted strings do not count.
    """
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return i

    return None


def _as_text(item: Any) -> str:
    if isinstance(item, bool) or not isinstance(item, (str, int, float)):
        return ""
    return str(item).strip()


def parse_array_literal(literal: str) -> Optional[List[str]]:
    """JSON-decode an array literal into trimmed non-empty strings."""
    try:
        data = json.loads(literal)
    except (json.JSONDecodeError, RecursionError):
        return None

    if not isinstance(data, list):
        return None

    return [text for text in (_as_text(item) for item in data) if text]


def match_quoted(text: str, pos: int = 0) -> Optional[Tuple[str, int]]:
    """Match a quoted string at ``pos``; return (raw inner text, end index)."""
    match = _QUOTED.match(text, pos)
    if not match:
        return None
    return match.group(1), match.end()


def decode_quoted(inner: str) -> str:
    """Decode JSON escapes in a quoted literal's body."""
    try:
        value = json.loads(f'"{inner}"')
    except json.JSONDecodeError:
        value = inner.replace("\\n", "\n")
    return value if isinstance(value, str) else inner


def salvage_scalars(text: str) -> List[str]:
    """Read a comma-separated run of quoted strings from the start of ``text``."""
    results = []
    pos = 0

    while True:
        matched = match_quoted(text, pos)
        if matched is None:
            break

        inner, pos = matched
        value = collapse_whitespace(decode_quoted(inner))
        if value:
            results.append(value)

        # Continue only across a comma
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text) or text[pos] != ",":
            break
        pos += 1
        while pos < len(text) and text[pos].isspace():
            pos += 1

    return results


def salvage_suggestions(dump: Optional[str], key: str = SALVAGE_KEY) -> List[str]:
    """
    Recover the insight list stored under ``key`` in a serialized dump.

    Args:
        dump: Raw model text or a serialized response envelope
        key: Envelope key to look for

    Returns:
        Recovered strings in their original order (possibly empty)
    """
    if not dump:
        return []

    rest = value_after_key(dump, key)
    if not rest:
        return []

    if rest.startswith("["):
        end = scan_bracketed(rest)
        if end is not None:
            items = parse_array_literal(rest[:end + 1])
            if items is not None:
                return items
        # Unbalanced or unparsable: read the elements one by one
        rest = rest[1:].lstrip()

    if rest.startswith('"'):
        return salvage_scalars(rest)

    return []
