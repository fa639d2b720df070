"""
Merge insight candidates from every extraction source into one result.
"""

import re
from typing import Dict, List, Optional, Sequence, Tuple

from constants import DEDUP_MODES, TIER_SEGMENTED, TIER_STRUCTURED
from insight_types import ExtractionResult
from segmenter import collapse_whitespace

_FULLY_QUOTED = re.compile(r'^"(.*)"$', re.DOTALL)

CandidateSource = Tuple[str, Sequence[str]]


class CandidateDeduplicator:
    """
    Resolve the summary and an ordered, unique, bounded insight list.

    Sources are ``(tier, candidates)`` pairs given in priority order. The
    result's tier is the source of the first insight that survives.
    """

    def __init__(
        self,
        max_insights: int,
        default_summary: str,
        default_insight: str,
        dedup_mode: str = "exact",
    ):
        if max_insights < 1:
            raise ValueError("max_insights must be at least 1")
        if not default_summary.strip() or not default_insight.strip():
            raise ValueError("default summary and insight must be non-empty")
        if default_summary.strip() == default_insight.strip():
            raise ValueError("default summary and insight must differ")

        self.max_insights = max_insights
        self.default_summary = default_summary.strip()
        self.default_insight = default_insight.strip()
        self.dedup_mode = dedup_mode if dedup_mode in DEDUP_MODES else "exact"

    def dedup_key(self, text: str) -> str:
        """Comparison key for a candidate under the configured mode."""
        key = collapse_whitespace(text)
        if self.dedup_mode == "casefold":
            key = key.casefold()
        return key

    def resolve_summary(self, normalized_message: str, summary_candidate: Optional[str]) -> str:
        """Pick the summary: structured field, unquoted message, message, default."""
        if summary_candidate and summary_candidate.strip():
            return summary_candidate.strip()

        message = (normalized_message or "").strip()
        quoted = _FULLY_QUOTED.match(message)
        if quoted and quoted.group(1).strip():
            return quoted.group(1).strip()

        if message:
            return message

        return self.default_summary

    def merge(self, summary: str, sources: Sequence[CandidateSource]) -> List[Tuple[str, str]]:
        """Return ``(insight, tier)`` pairs, deduplicated and truncated."""
        summary_key = self.dedup_key(summary)
        seen: Dict[str, str] = {}
        merged: List[Tuple[str, str]] = []

        for tier, candidates in sources:
            for candidate in candidates:
                if not isinstance(candidate, str):
                    continue
                text = collapse_whitespace(candidate)
                if not text:
                    continue
                key = self.dedup_key(text)
                if key == summary_key or key in seen:
                    continue
                seen[key] = text
                merged.append((text, tier))

        return merged[:self.max_insights]

    def resolve(
        self,
        normalized_message: str,
        summary_candidate: Optional[str],
        sources: Sequence[CandidateSource],
        envelope_parsed: bool = False,
    ) -> ExtractionResult:
        """Build the final result from the message and candidate sources."""
        summary = self.resolve_summary(normalized_message, summary_candidate)
        merged = self.merge(summary, sources)

        if merged:
            insights = tuple(text for text, _ in merged)
            tier = merged[0][1]
        else:
            insights = (self._default_for(summary),)
            tier = TIER_STRUCTURED if envelope_parsed else TIER_SEGMENTED

        return ExtractionResult(summary=summary, insights=insights, tier=tier)

    def _default_for(self, summary: str) -> str:
        # The default insight must still differ from a model-supplied summary
        if self.dedup_key(self.default_insight) == self.dedup_key(summary):
            return self.default_summary
        return self.default_insight
