"""
Data records shared across the InsightLane pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from constants import EXTRACTION_TIERS


def utc_now() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into naive UTC, or None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass(frozen=True)
class SessionContext:
    """Locally stored facts about one past session."""
    id: str
    date: str
    tags: Tuple[str, ...] = ()
    sentiment: Optional[str] = None
    summary: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionContext":
        """Build from a stored session record (``keyTopics``/``timestamp`` accepted)."""
        tags = data.get("tags")
        if tags is None:
            tags = data.get("keyTopics") or []
        return cls(
            id=str(data.get("id", "")),
            date=str(data.get("date") or data.get("timestamp") or ""),
            tags=tuple(str(t) for t in tags if isinstance(t, str)),
            sentiment=data.get("sentiment"),
            summary=data.get("summary"),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Session shape sent to the mood-insight endpoint."""
        return {
            "id": self.id,
            "date": self.date,
            "summary": self.summary or "",
            "keyTopics": list(self.tags),
            "sentiment": self.sentiment or "neutral",
        }


@dataclass(frozen=True)
class GenerationRequest:
    """One call into the pipeline."""
    prompt: str
    source_context: Tuple[SessionContext, ...] = ()
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RawModelResponse:
    """Text returned by the model plus the full decoded HTTP body."""
    message_text: str
    raw_envelope: Any = None


@dataclass(frozen=True)
class GeneratedInsight:
    """An insight produced locally by the rule-based generator."""
    id: str
    text: str
    category: str
    confidence: float
    sessions_referenced: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category,
            "confidence": self.confidence,
            "sessions_referenced": list(self.sessions_referenced),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedInsight":
        return cls(
            id=data["id"],
            text=data["text"],
            category=data["category"],
            confidence=float(data["confidence"]),
            sessions_referenced=tuple(data.get("sessions_referenced", [])),
        )


@dataclass(frozen=True)
class ExtractionResult:
    """
    The validated output of the pipeline.

    ``summary`` is never empty and ``insights`` always holds at least one
    trimmed, unique entry that differs from the summary.
    """
    summary: str
    insights: Tuple[str, ...]
    tier: str
    rule_insights: Tuple[GeneratedInsight, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "summary": self.summary,
            "insights": list(self.insights),
            "tier": self.tier,
        }
        if self.rule_insights:
            data["rule_insights"] = [i.to_dict() for i in self.rule_insights]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractionResult":
        if data["tier"] not in EXTRACTION_TIERS:
            raise ValueError(f"Unknown extraction tier: {data['tier']}")
        return cls(
            summary=data["summary"],
            insights=tuple(data["insights"]),
            tier=data["tier"],
            rule_insights=tuple(
                GeneratedInsight.from_dict(i) for i in data.get("rule_insights", [])
            ),
        )


@dataclass
class CachedInsight:
    """A cached result and when it was computed."""
    result: ExtractionResult
    computed_at: str
    extras: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result.to_dict(),
            "computed_at": self.computed_at,
            "extras": self.extras,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CachedInsight":
        return cls(
            result=ExtractionResult.from_dict(data["result"]),
            computed_at=data["computed_at"],
            extras=data.get("extras") or {},
        )


def sessions_from_dicts(records: List[Dict[str, Any]]) -> List[SessionContext]:
    """Convert stored session records, skipping anything that is not a dict."""
    return [SessionContext.from_dict(r) for r in records if isinstance(r, dict)]
