"""
Guided-journal session summaries.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from extraction_errors import InsightLaneError
from feature_profiles import get_profile
from insight_types import ExtractionResult, GenerationRequest, SessionContext
from logging_setup import get_logger
from orchestrator import ExtractionOrchestrator
from payload_parser import normalize_payload

logger = get_logger("journal_summary")


@dataclass(frozen=True)
class JournalEntry:
    """One guided-journal step: the question shown and what the user wrote."""
    prompt: str
    response: str


FOLLOW_UP_SYSTEM_PROMPT = """You are a gentle journaling guide.

Ask one thoughtful follow-up question that helps the writer go deeper into what they just wrote.
- Warm and curious, never judgmental
- A single question, not multiple questions

Return only the question, no additional text."""

FALLBACK_QUESTIONS = [
    "What emotions came up for you as you wrote that? How do those feelings connect to your daily experience?",
    "Looking deeper at what you shared, what patterns or themes do you notice? What might this reveal about what's important to you right now?",
]
DEFAULT_FOLLOW_UP = "What else would you like to explore about this topic?"


def format_entries(entries: Sequence[JournalEntry]) -> str:
    """Render entries as Question/Response blocks."""
    return "\n\n".join(
        f"Question: {entry.prompt}\nResponse: {entry.response}"
        for entry in entries
        if entry.response and entry.response.strip()
    )


class JournalSummaryService:
    """Summarize a finished guided-journal session."""

    def __init__(self, config=None, client=None, orchestrator: Optional[ExtractionOrchestrator] = None):
        self.config = config
        self.client = client
        self.profile = get_profile("journal", config)
        self.orchestrator = orchestrator or ExtractionOrchestrator(self.profile, client=client)

    def summarize(
        self,
        entries: Sequence[JournalEntry],
        contexts: Sequence[SessionContext] = (),
    ) -> ExtractionResult:
        """
        Summarize journal entries into one summary and one key insight.

        Args:
            entries: The session's question/response pairs
            contexts: Recent session contexts for the offline fallback

        Returns:
            The extraction result; never raises
        """
        journal_text = format_entries(entries)
        if not journal_text:
            logger.info("Journal session has no written responses")
            return self.orchestrator.static_provider.get()

        request = GenerationRequest(
            prompt=f"Journal entry:\n\n{journal_text}",
            source_context=tuple(contexts),
        )
        return self.orchestrator.run(request)

    def follow_up_question(self, entries: Sequence[JournalEntry], step: int) -> str:
        """
        Ask the model for the next journaling question.

        Falls back to a fixed question for ``step`` on any failure.
        """
        journal_text = format_entries(entries)

        if self.client is not None and journal_text:
            request = GenerationRequest(prompt=f"The writer has shared so far:\n\n{journal_text}")
            profile = replace(self.profile, system_prompt=FOLLOW_UP_SYSTEM_PROMPT)
            try:
                raw = self.client.generate(request, profile)
                question = normalize_payload(raw.message_text).strip().strip('"')
                if question:
                    return question
            except InsightLaneError as e:
                logger.warning("Follow-up question generation failed: %s", e)
            except Exception as e:
                logger.error("Unexpected error generating follow-up question: %s", e, exc_info=True)

        if 0 <= step < len(FALLBACK_QUESTIONS):
            return FALLBACK_QUESTIONS[step]
        return DEFAULT_FOLLOW_UP


def entries_from_dicts(records: List[dict]) -> List[JournalEntry]:
    """Build entries from ``{"prompt": ..., "response": ...}`` records."""
    return [
        JournalEntry(prompt=str(r.get("prompt", "")), response=str(r.get("response", "")))
        for r in records
        if isinstance(r, dict)
    ]
