"""
Future-vision insight extraction and storage.

After a "Vision of the Future" exercise the conversation is sent to the model,
which returns a description of the user's future self plus guiding sentences.
Results are stored newest first in a JSON file.
"""

import json
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from constants import VISION_MESSAGE_WINDOW, VISION_MIN_MESSAGE_LENGTH
from feature_profiles import get_profile
from insight_types import GenerationRequest, parse_iso, utc_now
from logging_setup import get_logger
from orchestrator import ExtractionOrchestrator

logger = get_logger("vision_insights")


@dataclass
class VisionInsight:
    """A stored vision of the user's future self"""
    id: str
    date: str
    full_description: str
    guiding_sentences: List[str]
    source_session_id: str
    tier: str


class VisionInsightStore:
    """
    Vision insights persisted as a JSON list, most recent first
    """

    def __init__(self, store_path: str = ".insightlane/vision_insights.json"):
        self.store_path = Path(store_path)

    def load(self) -> List[Dict]:
        """Load stored insights as dicts"""
        if not self.store_path.exists():
            return []

        try:
            with open(self.store_path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Corrupted vision insight file, backing up and starting fresh")
            self._backup_corrupted()
            return []
        except OSError as e:
            logger.error("Error reading vision insight file %s: %s", self.store_path, e)
            return []

        return data if isinstance(data, list) else []

    def save(self, insight: VisionInsight):
        """Prepend an insight and persist"""
        insights = self.load()
        insights.insert(0, asdict(insight))

        self.store_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.store_path, 'w') as f:
            json.dump(insights, f, indent=2)

    def all(self) -> List[VisionInsight]:
        """All insights, newest first"""
        insights = []
        for record in self.load():
            try:
                insights.append(VisionInsight(**record))
            except TypeError:
                logger.warning("Skipping malformed vision insight record")

        insights.sort(key=lambda i: parse_iso(i.date) or datetime.min, reverse=True)
        return insights

    def latest(self) -> Optional[VisionInsight]:
        insights = self.all()
        return insights[0] if insights else None

    def _backup_corrupted(self):
        backup = self.store_path.with_suffix(".corrupted.json")
        try:
            self.store_path.replace(backup)
        except OSError as e:
            logger.error("Could not back up corrupted vision insight file: %s", e)


# Phrases that mark a conversation as a vision exercise
EXERCISE_INDICATORS = [
    'vision of the future',
    'vision exercise',
    'your ideal future',
    'imagine your future',
    'envisioning',
]

# Phrases that show the vision was actually explored
VISION_CONTENT_KEYWORDS = [
    'years from now',
    'future vision',
    'how will you live',
    'your future life',
    'future you',
]


def message_text(message: Dict[str, Any]) -> str:
    text = message.get("text") or message.get("content") or ""
    return text if isinstance(text, str) else ""


class VisionInsightsService:
    """Extract and store vision insights from exercise conversations."""

    def __init__(
        self,
        config=None,
        client=None,
        store: Optional[VisionInsightStore] = None,
        clock: Optional[Callable] = None,
    ):
        self.config = config
        self.clock = clock or utc_now
        self.profile = get_profile("vision", config)
        self.store = store or VisionInsightStore()
        self.orchestrator = ExtractionOrchestrator(self.profile, client=client)

    def should_extract(self, messages: Sequence[Dict[str, Any]]) -> bool:
        """True when the conversation is a vision exercise with real content."""
        text = " ".join(message_text(m).lower() for m in messages if isinstance(m, dict))

        if not any(k in text for k in EXERCISE_INDICATORS):
            return False

        content_count = sum(1 for k in VISION_CONTENT_KEYWORDS if k in text)
        return content_count >= 2 or 'vision of the future' in text

    def build_prompt(self, messages: Sequence[Dict[str, Any]]) -> str:
        """Conversation transcript from the last messages with real content."""
        lines = []
        for message in list(messages)[-VISION_MESSAGE_WINDOW:]:
            if not isinstance(message, dict):
                continue
            text = message_text(message).strip()
            if len(text) < VISION_MIN_MESSAGE_LENGTH:
                continue
            role = "user" if message.get("type") == "user" else "guide"
            lines.append(f"{role}: {text}")
        return "\n".join(lines)

    def extract_vision_insight(
        self,
        messages: Sequence[Dict[str, Any]],
        session_id: str,
    ) -> Optional[VisionInsight]:
        """
        Extract, store and return a vision insight.

        Returns None only when the conversation has no usable messages.
        """
        transcript = self.build_prompt(messages)
        if not transcript:
            logger.info("No vision exercise content to process for session %s", session_id)
            return None

        result = self.orchestrator.run(GenerationRequest(
            prompt=f"CONVERSATION TO ANALYZE:\n{transcript}",
            payload={"action": "extract_vision_insights", "sessionId": session_id},
        ))

        insight = VisionInsight(
            id=f"vision_{uuid.uuid4().hex[:12]}",
            date=self.clock().isoformat(),
            full_description=result.summary,
            guiding_sentences=list(result.insights),
            source_session_id=session_id,
            tier=result.tier,
        )

        try:
            self.store.save(insight)
        except OSError as e:
            logger.error("Error saving vision insight: %s", e)

        return insight
