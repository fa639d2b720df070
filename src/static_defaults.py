"""
Last-resort constant output.
"""

from constants import TIER_STATIC
from insight_types import ExtractionResult


class StaticDefaultProvider:
    """Always returns the same one-insight result."""

    def __init__(self, summary: str, insight: str):
        if not summary.strip() or not insight.strip():
            raise ValueError("static summary and insight must be non-empty")
        self._result = ExtractionResult(
            summary=summary.strip(),
            insights=(insight.strip(),),
            tier=TIER_STATIC,
        )

    def get(self) -> ExtractionResult:
        return self._result
