"""
Rolling mood-insight highlights over the last two weeks of sessions.

Results are cached for two days. By default highlights come from the
rule-based generator; with ``mood.strategy = "remote"`` the model is asked
first and the rule-based generator is only the fallback.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from config_manager import get_setting
from constants import (
    MOOD_CACHE_KEY,
    MOOD_CACHE_TTL_HOURS,
    MOOD_CATEGORIES,
    MOOD_DEFAULT_STRATEGY,
    MOOD_STRATEGIES,
    MOOD_WEEKS_COVERED,
    RULE_LOOKBACK_DAYS,
    RULE_TOP_K,
    TIER_STATIC,
    TIER_STRUCTURED,
)
from feature_profiles import get_profile
from insight_cache import CacheProvider, MemoryCache, is_fresh
from insight_types import CachedInsight, ExtractionResult, GenerationRequest, SessionContext, utc_now
from logging_setup import get_logger
from orchestrator import ExtractionOrchestrator
from rule_based import RuleBasedFallbackGenerator

logger = get_logger("mood_insights")


@dataclass(frozen=True)
class MoodInsight:
    """One highlight shown on the mood insights card."""
    id: str
    text: str
    category: str  # strength, progress, clarity, challenge, growth
    confidence: float
    sessions_referenced: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category,
            "confidence": self.confidence,
            "sessions_referenced": list(self.sessions_referenced),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MoodInsight":
        if data["category"] not in MOOD_CATEGORIES:
            raise ValueError(f"Unknown mood category: {data['category']}")
        return cls(
            id=data["id"],
            text=data["text"],
            category=data["category"],
            confidence=float(data["confidence"]),
            sessions_referenced=list(data.get("sessions_referenced", [])),
        )


@dataclass
class MoodInsightsData:
    """Highlights plus the analysis metadata exposed to the UI."""
    highlights: List[MoodInsight]
    analysis_date: str
    sessions_analyzed: int
    weeks_covered: int
    tier: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "highlights": [h.to_dict() for h in self.highlights],
            "analysis_date": self.analysis_date,
            "sessions_analyzed": self.sessions_analyzed,
            "weeks_covered": self.weeks_covered,
            "tier": self.tier,
        }


# Checked in order; first match wins
CATEGORY_KEYWORDS = [
    ("challenge", ("struggl", "difficult", "setback", "challeng")),
    ("clarity", ("clarity", "clear", "understand", "stress", "anxiety", "uncertain")),
    ("strength", ("strength", "resilien", "courage", "connect", "confiden", "boundar")),
    ("growth", ("grow", "learn", "aware", "mindful", "direction")),
]

# Confidence for highlights taken from model text, by extraction tier
TIER_CONFIDENCE = {
    TIER_STRUCTURED: 0.8,
    TIER_STATIC: 0.8,
}
DEFAULT_TIER_CONFIDENCE = 0.6

FALLBACK_HIGHLIGHTS = [
    MoodInsight("fallback-1", "Taking positive steps toward mental wellness and self-care", "strength", 0.8),
    MoodInsight("fallback-2", "Building awareness and developing healthy coping tools", "progress", 0.7),
    MoodInsight("fallback-3", "Showing courage and commitment to personal growth", "growth", 0.7),
]


def categorize_insight(text: str) -> str:
    """Assign a mood category to free text by keyword."""
    lowered = text.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k in lowered for k in keywords):
            return category
    return "progress"


def build_mood_prompt(sessions: Sequence[SessionContext]) -> str:
    """Describe recent sessions for the model."""
    lines = ["Recent sessions (last 14 days):"]
    for session in sessions:
        topics = ", ".join(session.tags) or "none"
        line = f"- {session.date}: topics [{topics}], sentiment {session.sentiment or 'neutral'}"
        if session.summary:
            line += f". {session.summary}"
        lines.append(line)
    lines.append("")
    lines.append("Write a one-sentence summary and up to three positive highlights.")
    return "\n".join(lines)


class MoodInsightsService:
    """Compute and cache mood highlights for recent sessions."""

    def __init__(
        self,
        config=None,
        client=None,
        cache: Optional[CacheProvider] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.clock = clock or utc_now
        self.cache = cache if cache is not None else MemoryCache()
        self.profile = get_profile("mood", config)

        self.strategy = get_setting(config, "mood.strategy", MOOD_DEFAULT_STRATEGY)
        if self.strategy not in MOOD_STRATEGIES:
            self.strategy = MOOD_DEFAULT_STRATEGY

        ttl_hours = get_setting(config, "mood.cache_ttl_hours", MOOD_CACHE_TTL_HOURS)
        self.ttl = timedelta(hours=ttl_hours)

        self.rule_generator = RuleBasedFallbackGenerator(
            lookback_days=get_setting(config, "mood.lookback_days", RULE_LOOKBACK_DAYS),
            top_k=min(get_setting(config, "mood.top_k", RULE_TOP_K), self.profile.max_insights),
            clock=self.clock,
        )
        self.orchestrator = ExtractionOrchestrator(
            self.profile,
            client=client,
            rule_generator=self.rule_generator,
        )

    def generate_mood_insights(
        self,
        sessions: Sequence[SessionContext],
        force_refresh: bool = False,
    ) -> MoodInsightsData:
        """
        Return cached highlights if still fresh, else compute and cache new ones.

        Args:
            sessions: All locally stored session contexts
            force_refresh: Ignore any cached result

        Returns:
            Mood insight data; never raises
        """
        now = self.clock()

        if not force_refresh:
            cached = self.get_cached_insights(now)
            if cached is not None:
                logger.debug("Using cached mood insights from %s", cached.analysis_date)
                return cached

        recent = self.rule_generator.recent(sessions)
        if not recent:
            logger.info("No sessions in the last %d days, using fallback insights",
                        self.rule_generator.lookback_days)
            return self.fallback_insights(now)

        request = GenerationRequest(
            prompt=build_mood_prompt(recent),
            source_context=tuple(recent),
            payload={
                "sessions": [s.to_payload() for s in recent],
                "analysisType": "positive_highlights",
                "targetInsights": self.profile.max_insights,
                "focusPeriod": f"{self.rule_generator.lookback_days}_days",
            },
        )

        if self.strategy == "remote":
            result = self.orchestrator.run(request)
        else:
            result = self.orchestrator.local_fallback(request)

        data = MoodInsightsData(
            highlights=self._highlights(result, recent),
            analysis_date=now.isoformat(),
            sessions_analyzed=len(recent),
            weeks_covered=MOOD_WEEKS_COVERED,
            tier=result.tier,
        )
        self._cache_insights(result, data)
        return data

    def _highlights(self, result: ExtractionResult, recent: Sequence[SessionContext]) -> List[MoodInsight]:
        if result.rule_insights:
            return [
                MoodInsight(
                    id=g.id,
                    text=g.text,
                    category=g.category,
                    confidence=g.confidence,
                    sessions_referenced=list(g.sessions_referenced),
                )
                for g in result.rule_insights
            ]

        referenced = [] if result.tier == TIER_STATIC else [s.id for s in recent]
        confidence = TIER_CONFIDENCE.get(result.tier, DEFAULT_TIER_CONFIDENCE)
        return [
            MoodInsight(
                id=f"insight-{index}",
                text=text,
                category=categorize_insight(text),
                confidence=confidence,
                sessions_referenced=list(referenced),
            )
            for index, text in enumerate(result.insights)
        ]

    def fallback_insights(self, now: Optional[datetime] = None) -> MoodInsightsData:
        """Fixed highlights for when there is nothing to analyze."""
        now = now or self.clock()
        return MoodInsightsData(
            highlights=list(FALLBACK_HIGHLIGHTS),
            analysis_date=now.isoformat(),
            sessions_analyzed=0,
            weeks_covered=MOOD_WEEKS_COVERED,
            tier=TIER_STATIC,
        )

    def get_cached_insights(self, now: Optional[datetime] = None) -> Optional[MoodInsightsData]:
        """Cached data if present and younger than the TTL."""
        now = now or self.clock()
        try:
            entry = self.cache.get(MOOD_CACHE_KEY)
        except Exception as e:
            logger.error("Error reading insights cache: %s", e)
            return None

        if not is_fresh(entry, now, self.ttl):
            return None

        extras = entry.extras
        try:
            highlights = [MoodInsight.from_dict(h) for h in extras.get("highlights", [])]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding malformed cached highlights: %s", e)
            return None

        return MoodInsightsData(
            highlights=highlights,
            analysis_date=entry.computed_at,
            sessions_analyzed=int(extras.get("sessions_analyzed", 0)),
            weeks_covered=int(extras.get("weeks_covered", MOOD_WEEKS_COVERED)),
            tier=entry.result.tier,
        )

    def _cache_insights(self, result: ExtractionResult, data: MoodInsightsData):
        entry = CachedInsight(
            result=result,
            computed_at=data.analysis_date,
            extras={
                "highlights": [h.to_dict() for h in data.highlights],
                "sessions_analyzed": data.sessions_analyzed,
                "weeks_covered": data.weeks_covered,
            },
        )
        try:
            self.cache.set(MOOD_CACHE_KEY, entry)
        except Exception as e:
            logger.error("Error caching insights: %s", e)

    def clear_insights_cache(self):
        """Drop the cached result so the next call recomputes."""
        try:
            self.cache.delete(MOOD_CACHE_KEY)
        except Exception as e:
            logger.error("Error clearing insights cache: %s", e)


def get_mood_trend_insights(mood_stats: Dict[str, Any]) -> List[str]:
    """
    Three short messages describing a mood trend.

    Args:
        mood_stats: ``overall_trend`` ("improving", "declining" or other) and
            ``current_week``/``previous_week`` dicts with ``average_rating``

    Returns:
        Trend, week-over-week and rating messages, in that order
    """
    insights = []

    trend = mood_stats.get("overall_trend")
    current = float((mood_stats.get("current_week") or {}).get("average_rating", 0) or 0)
    previous = float((mood_stats.get("previous_week") or {}).get("average_rating", 0) or 0)

    if trend == "improving":
        insights.append("Your mood has been trending upward - great progress!")
    elif trend == "declining":
        insights.append("Notice some mood challenges - this is normal and temporary")
    else:
        insights.append("Maintaining stable mood patterns with consistent self-care")

    if current > previous:
        insights.append("This week shows improvement from last week's patterns")
    elif current < previous:
        insights.append("Some fluctuation this week - remember that ups and downs are normal")
    else:
        insights.append("Steady emotional patterns across recent weeks")

    if current >= 4:
        insights.append("Strong positive mood patterns and emotional wellbeing")
    elif current <= 2:
        insights.append("Challenging period - consider reaching out for additional support")
    else:
        insights.append("Balanced emotional state with room for growth")

    return insights[:3]
