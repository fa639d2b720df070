"""
Per-feature configuration of the extraction pipeline.

Each feature (journal summaries, mood highlights, vision insights) runs the
same pipeline with its own prompt, envelope keys, limits and default text:
- journal: one-sentence summary plus a single key insight
- mood: up to three positive highlights across recent sessions
- vision: a future-self description plus guiding sentences
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from config_manager import get_setting
from constants import (
    INSIGHT_KEYS,
    JOURNAL_MAX_INSIGHTS,
    MOOD_MAX_INSIGHTS,
    SALVAGE_KEY,
    SUMMARY_KEYS,
    VISION_MAX_INSIGHTS,
)


@dataclass(frozen=True)
class ExtractionProfile:
    """Everything the pipeline needs to know about one feature."""
    name: str
    function_name: str
    system_prompt: str
    max_insights: int
    dedup_mode: str
    default_summary: str
    default_insight: str
    static_summary: str
    static_insight: str
    rule_based_summary: str
    summary_keys: Tuple[str, ...] = SUMMARY_KEYS
    insight_keys: Tuple[str, ...] = INSIGHT_KEYS
    salvage_key: str = SALVAGE_KEY


# Output format shared across prompts
ENVELOPE_INSTRUCTIONS = """IMPORTANT: Respond with ONLY valid JSON in exactly this format (no text before or after):
{
  "summary": "One warm, supportive sentence",
  "suggestions": ["Short insight"]
}"""


JOURNAL_PROFILE = ExtractionProfile(
    name="journal",
    function_name="chat",
    system_prompt=f"""Please create a brief, encouraging summary of this journal entry and extract the key insight.

Make the summary supportive and affirming. Keep the insight concise and meaningful.

{ENVELOPE_INSTRUCTIONS}""",
    max_insights=JOURNAL_MAX_INSIGHTS,
    dedup_mode="exact",
    default_summary="Thank you for your thoughtful reflection.",
    default_insight="Your willingness to explore your thoughts shows great self-awareness",
    static_summary=(
        "Thank you for taking the time to reflect and explore your thoughts. "
        "Your willingness to look deeper shows great self-awareness and commitment to personal growth."
    ),
    static_insight="Self-reflection is a valuable practice for personal growth",
    rule_based_summary="Your recent reflections show themes worth noticing.",
)


MOOD_PROFILE = ExtractionProfile(
    name="mood",
    function_name="generate-mood-insights",
    system_prompt=f"""You are reviewing a person's recent therapy-style sessions.

Write positive, therapeutic highlights about their progress over the last two weeks.
Each highlight is one short sentence. Focus on strengths, progress, clarity and growth.
Never diagnose and never mention specific session dates.

{ENVELOPE_INSTRUCTIONS}""",
    max_insights=MOOD_MAX_INSIGHTS,
    dedup_mode="casefold",
    default_summary="Your recent sessions show steady commitment to your wellbeing.",
    default_insight="Taking positive steps toward mental wellness and self-care",
    static_summary="Your recent sessions show steady commitment to your wellbeing.",
    static_insight="Taking positive steps toward mental wellness and self-care",
    rule_based_summary="Patterns from your recent sessions.",
)


VISION_PROFILE = ExtractionProfile(
    name="vision",
    function_name="extract-insights",
    system_prompt="""Analyze this Vision of the Future exercise session. The user imagined their future self and connected emotionally with that vision.

Extract:
1. A beautifully written 2-3 sentence description of their complete vision
2. 2-3 short guiding sentences or affirmations that capture its essence (like "I live with balance and calm")

IMPORTANT: Respond with ONLY valid JSON in exactly this format:
{
  "summary": "The vision description",
  "suggestions": ["Guiding sentence 1", "Guiding sentence 2"]
}""",
    max_insights=VISION_MAX_INSIGHTS,
    dedup_mode="casefold",
    default_summary="A meaningful vision of your future self was explored.",
    default_insight="I am moving toward the person I want to become",
    static_summary="A meaningful vision of your future self was explored.",
    static_insight="I trust myself and my choices",
    rule_based_summary="Themes from your recent sessions that connect to your vision.",
    summary_keys=("summary", "fullDescription"),
    insight_keys=INSIGHT_KEYS + ("guidingSentences",),
)


PROFILES: Dict[str, ExtractionProfile] = {
    JOURNAL_PROFILE.name: JOURNAL_PROFILE,
    MOOD_PROFILE.name: MOOD_PROFILE,
    VISION_PROFILE.name: VISION_PROFILE,
}


def get_profile(name: str, config: Optional[object] = None) -> ExtractionProfile:
    """
    Get a feature profile, with ``extraction.<name>.*`` config overrides applied.

    Args:
        name: Feature name ("journal", "mood" or "vision")
        config: Optional ConfigManager or nested dict

    Returns:
        The profile for that feature
    """
    if name not in PROFILES:
        raise KeyError(f"Unknown feature profile: {name}")

    profile = PROFILES[name]
    if config is None:
        return profile

    max_insights = get_setting(config, f"extraction.{name}.max_insights", profile.max_insights)
    dedup_mode = get_setting(config, f"extraction.{name}.dedup_mode", profile.dedup_mode)

    try:
        max_insights = max(1, int(max_insights))
    except (TypeError, ValueError):
        max_insights = profile.max_insights

    return replace(profile, max_insights=max_insights, dedup_mode=str(dedup_mode))
