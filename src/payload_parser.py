"""
Normalization and strict decoding of model output.

Model text may arrive fenced in a markdown code block, embedded in prose, or
with no JSON at all. ``normalize_payload`` strips the fence, ``decode_envelope``
tries a strict parse of the outermost ``{...}`` span and ``extract_structured``
reads the summary and insight candidates out of it.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from constants import INSIGHT_KEYS, SUMMARY_KEYS, TIER_SEGMENTED, TIER_STRUCTURED
from segmenter import segment_text

FENCE = "```"


def normalize_payload(text: Optional[str]) -> str:
    """Strip a surrounding markdown code fence and whitespace."""
    if not text:
        return ""

    cleaned = text.strip()
    if not cleaned.startswith(FENCE):
        return cleaned

    # Drop the opening fence line, language tag included
    newline = cleaned.find("\n")
    body = cleaned[newline + 1:] if newline != -1 else ""

    closing = body.find(FENCE)
    if closing != -1:
        body = body[:closing]

    return body.strip()


@dataclass(frozen=True)
class ParsedEnvelope:
    """A JSON object found in the model text."""
    data: Dict[str, Any]


@dataclass(frozen=True)
class ParseError:
    """Why no JSON object could be decoded."""
    reason: str


DecodeResult = Union[ParsedEnvelope, ParseError]


def decode_envelope(text: str) -> DecodeResult:
    """Strictly decode the span from the first '{' to the last '}'."""
    if not text:
        return ParseError("empty text")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return ParseError("no object braces")

    try:
        data = json.loads(text[start:end + 1])
    except (json.JSONDecodeError, RecursionError) as e:
        return ParseError(f"invalid JSON: {e}")

    if not isinstance(data, dict):
        return ParseError(f"expected object, got {type(data).__name__}")

    return ParsedEnvelope(data)


@dataclass
class StructuredCandidates:
    """Summary and insight candidates read from a decoded envelope."""
    summary_candidate: Optional[str] = None
    insight_candidates: List[str] = field(default_factory=list)
    insight_tier: str = TIER_STRUCTURED


def string_items(values: Sequence[Any]) -> List[str]:
    """Keep string elements only, trimmed, empties dropped."""
    return [v.strip() for v in values if isinstance(v, str) and v.strip()]


def candidates_from_envelope(
    data: Dict[str, Any],
    summary_keys: Sequence[str] = SUMMARY_KEYS,
    insight_keys: Sequence[str] = INSIGHT_KEYS,
) -> StructuredCandidates:
    """Read candidates from an already decoded object."""
    candidates = StructuredCandidates()

    for key in summary_keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            candidates.summary_candidate = value.strip()
            break

    for key in insight_keys:
        value = data.get(key)
        if isinstance(value, list):
            candidates.insight_candidates = string_items(value)
            break
        if isinstance(value, str):
            candidates.insight_candidates = segment_text(value)
            candidates.insight_tier = TIER_SEGMENTED
            break

    return candidates


def extract_structured(
    text: str,
    summary_keys: Sequence[str] = SUMMARY_KEYS,
    insight_keys: Sequence[str] = INSIGHT_KEYS,
) -> Optional[StructuredCandidates]:
    """Return candidates from the JSON object in ``text``, or None."""
    decoded = decode_envelope(text)
    if isinstance(decoded, ParseError):
        return None
    return candidates_from_envelope(decoded.data, summary_keys, insight_keys)
