"""
Central constants for InsightLane.

Update model versions and other configuration here.
"""

# Remote generation defaults
ANTHROPIC_DEFAULT_MODEL = "claude-haiku-4-5-20251001"
ANTHROPIC_MAX_TOKENS = 600
GENERATION_TIMEOUT = 30  # seconds

# Generation backends
GENERATION_BACKENDS = ["auto", "endpoint", "anthropic"]
GENERATION_DEFAULT_BACKEND = "auto"

# Environment overrides for the generation endpoint
ENDPOINT_URL_ENV = "INSIGHTLANE_ENDPOINT_URL"
ENDPOINT_KEY_ENV = "INSIGHTLANE_API_KEY"

# Extraction tiers, best first
TIER_STRUCTURED = "structured"
TIER_SALVAGED = "salvaged"
TIER_SEGMENTED = "segmented"
TIER_RULE_BASED = "rule-based"
TIER_STATIC = "static"
EXTRACTION_TIERS = [
    TIER_STRUCTURED,
    TIER_SALVAGED,
    TIER_SEGMENTED,
    TIER_RULE_BASED,
    TIER_STATIC,
]

# Envelope keys
SUMMARY_KEYS = ("summary",)
INSIGHT_KEYS = ("suggestions", "insights")
SALVAGE_KEY = "suggestions"

# Dedup normalization modes
DEDUP_MODES = ["exact", "casefold"]

# Insight limits per feature
JOURNAL_MAX_INSIGHTS = 1
MOOD_MAX_INSIGHTS = 3
VISION_MAX_INSIGHTS = 3

# Mood insight categories
MOOD_CATEGORIES = ["strength", "progress", "clarity", "challenge", "growth"]

# Rule-based fallback
RULE_LOOKBACK_DAYS = 14
RULE_TOP_K = 3
RULE_MIN_FREQUENCY = 2
RULE_BASE_CONFIDENCE = 0.4
RULE_CONFIDENCE_STEP = 0.1
RULE_MAX_CONFIDENCE = 0.7

# Mood insight cache
MOOD_CACHE_KEY = "mood_insights_cache"
MOOD_CACHE_TTL_HOURS = 48
MOOD_WEEKS_COVERED = 2
MOOD_STRATEGIES = ["rule_based", "remote"]
MOOD_DEFAULT_STRATEGY = "rule_based"

# Vision extraction
VISION_MESSAGE_WINDOW = 30
VISION_MIN_MESSAGE_LENGTH = 20
