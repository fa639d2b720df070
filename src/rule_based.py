"""
Deterministic insight generation from locally stored session tags.

Used when the remote model cannot be reached, and as the default strategy for
mood insights. Output depends only on the session contexts and the clock.
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from constants import (
    RULE_BASE_CONFIDENCE,
    RULE_CONFIDENCE_STEP,
    RULE_LOOKBACK_DAYS,
    RULE_MAX_CONFIDENCE,
    RULE_MIN_FREQUENCY,
    RULE_TOP_K,
)
from insight_types import GeneratedInsight, SessionContext, parse_iso, utc_now
from logging_setup import get_logger

logger = get_logger("rule_based")


TAG_GROUPS = [
    # (tags, category, message)
    (("relationships", "social"), "strength",
     "Building stronger connections and social confidence"),
    (("work", "career", "professional"), "progress",
     "Making strides in professional growth and career clarity"),
    (("anxiety", "stress", "worry"), "clarity",
     "Developing better tools to manage stress and uncertainty"),
    (("health", "wellness", "self-care"), "strength",
     "Prioritizing wellbeing and building healthy habits"),
    (("goals", "future", "planning"), "growth",
     "Creating clear direction and meaningful progress"),
    (("mindfulness", "meditation", "awareness"), "growth",
     "Cultivating mindfulness and emotional awareness"),
]

TAG_INSIGHTS: Dict[str, Tuple[str, str]] = {
    tag: (category, message)
    for tags, category, message in TAG_GROUPS
    for tag in tags
}

UNKNOWN_TAG_CATEGORY = "progress"
UNKNOWN_TAG_TEMPLATE = "Growing in {tag} with consistent self-reflection"

# (id, category, confidence, text), in padding order
GENERIC_INSIGHTS = [
    ("general-progress", "progress", 0.7,
     "Showing consistent commitment to personal growth and wellbeing"),
    ("general-growth", "growth", 0.6,
     "Building emotional awareness and positive coping strategies"),
    ("general-strength", "strength", 0.6,
     "Demonstrating resilience and openness to positive change"),
]


def tag_confidence(frequency: int) -> float:
    """Confidence for a tag seen ``frequency`` times."""
    value = min(RULE_MAX_CONFIDENCE, RULE_BASE_CONFIDENCE + frequency * RULE_CONFIDENCE_STEP)
    return round(value, 4)


def describe_tag(tag: str) -> Tuple[str, str]:
    """Return (category, message) for a tag."""
    known = TAG_INSIGHTS.get(tag.lower())
    if known:
        return known
    return UNKNOWN_TAG_CATEGORY, UNKNOWN_TAG_TEMPLATE.format(tag=tag)


class RuleBasedFallbackGenerator:
    """Synthesize insights from tag frequencies across recent sessions."""

    def __init__(
        self,
        lookback_days: int = RULE_LOOKBACK_DAYS,
        top_k: int = RULE_TOP_K,
        min_frequency: int = RULE_MIN_FREQUENCY,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.lookback_days = lookback_days
        self.top_k = top_k
        self.min_frequency = min_frequency
        self.clock = clock or utc_now

    def recent(self, contexts: Sequence[SessionContext]) -> List[SessionContext]:
        """Contexts dated within the lookback window."""
        cutoff = self.clock() - timedelta(days=self.lookback_days)
        recent = []
        for context in contexts:
            when = parse_iso(context.date)
            if when is not None and when >= cutoff:
                recent.append(context)
        return recent

    def frequent_tags(self, contexts: Sequence[SessionContext]) -> List[Tuple[str, int]]:
        """Tags seen at least ``min_frequency`` times, most frequent first."""
        counts = Counter()
        for context in contexts:
            for tag in context.tags:
                tag = tag.strip()
                if tag:
                    counts[tag] += 1

        # Counter.most_common keeps first-seen order for ties
        frequent = [(tag, n) for tag, n in counts.most_common() if n >= self.min_frequency]
        return frequent[:self.top_k]

    def generate(self, contexts: Sequence[SessionContext]) -> List[GeneratedInsight]:
        """
        Build up to ``top_k`` insights from session contexts.

        Returns an empty list when no context falls inside the lookback window.
        """
        recent = self.recent(contexts)
        if not recent:
            logger.debug("No session context inside %d-day window", self.lookback_days)
            return []

        insights = []
        for index, (tag, frequency) in enumerate(self.frequent_tags(recent)):
            category, text = describe_tag(tag)
            if any(i.text == text for i in insights):
                # Synonym tags share a message; keep the more frequent one
                continue
            insights.append(GeneratedInsight(
                id=f"insight-{index}",
                text=text,
                category=category,
                confidence=tag_confidence(frequency),
                sessions_referenced=tuple(
                    c.id for c in recent if tag in (t.strip() for t in c.tags)
                ),
            ))

        if len(insights) < self.top_k:
            insights.extend(self._padding(insights, recent))

        return insights[:self.top_k]

    def _padding(
        self,
        insights: List[GeneratedInsight],
        recent: Sequence[SessionContext],
    ) -> List[GeneratedInsight]:
        """Generic insights to fill up to ``top_k``, new categories first."""
        needed = self.top_k - len(insights)
        used_categories = {i.category for i in insights}
        used_texts = {i.text for i in insights}
        all_ids = tuple(c.id for c in recent)

        pool = [g for g in GENERIC_INSIGHTS if g[3] not in used_texts]
        pool.sort(key=lambda g: g[1] in used_categories)  # stable

        return [
            GeneratedInsight(
                id=insight_id,
                text=text,
                category=category,
                confidence=confidence,
                sessions_referenced=all_ids,
            )
            for insight_id, category, confidence, text in pool[:needed]
        ]
