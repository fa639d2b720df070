"""
Tiered extraction pipeline for InsightLane.

Turns one generation request into exactly one valid ExtractionResult:

    Requesting -> Decoding -> done
    Requesting -> LocalFallback -> done
    LocalFallback -> StaticFallback -> done

Remote failures of any kind fall back to rule-based insights over the
request's session context, then to the profile's static result. ``run`` and
``decode`` never raise.
"""

import json
from typing import Any, List, Optional

from constants import TIER_RULE_BASED, TIER_SALVAGED, TIER_SEGMENTED, TIER_STATIC
from deduplicator import CandidateDeduplicator, CandidateSource
from extraction_errors import InsightLaneError
from feature_profiles import ExtractionProfile
from insight_types import ExtractionResult, GenerationRequest, RawModelResponse
from logging_setup import get_logger
from payload_parser import candidates_from_envelope, decode_envelope, normalize_payload, ParseError
from rule_based import RuleBasedFallbackGenerator
from salvager import salvage_suggestions
from segmenter import segment_text
from static_defaults import StaticDefaultProvider

logger = get_logger("orchestrator")


def serialize_envelope(raw_envelope: Any) -> str:
    """Serialize the raw response body for salvage; empty if it cannot be."""
    if raw_envelope is None:
        return ""
    if isinstance(raw_envelope, str):
        return raw_envelope
    try:
        return json.dumps(raw_envelope, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return ""


class ExtractionOrchestrator:
    """
    Run the generation call and the fallback chain for one feature profile.

    Args:
        profile: Feature profile (limits, keys, default text)
        client: Anything with ``generate(request, profile) -> RawModelResponse``;
            None means no remote backend, which goes straight to local fallback
        rule_generator: Generator for the local fallback tier
        static_provider: Provider for the last tier
    """

    def __init__(
        self,
        profile: ExtractionProfile,
        client=None,
        rule_generator: Optional[RuleBasedFallbackGenerator] = None,
        static_provider: Optional[StaticDefaultProvider] = None,
    ):
        self.profile = profile
        self.client = client
        self.rule_generator = rule_generator or RuleBasedFallbackGenerator()
        self.static_provider = static_provider or StaticDefaultProvider(
            profile.static_summary, profile.static_insight
        )
        self.deduplicator = CandidateDeduplicator(
            max_insights=profile.max_insights,
            default_summary=profile.default_summary,
            default_insight=profile.default_insight,
            dedup_mode=profile.dedup_mode,
        )

    def run(self, request: GenerationRequest) -> ExtractionResult:
        """Produce a result for ``request``; never raises."""
        raw = self._request(request)

        if raw is None:
            result = self.local_fallback(request)
        else:
            result = self.decode(raw)

        self._log_tier(result)
        return result

    def _request(self, request: GenerationRequest) -> Optional[RawModelResponse]:
        """Requesting state: the remote call, or None on any failure."""
        if self.client is None:
            logger.warning("%s: no generation client, using local fallback", self.profile.name)
            return None

        try:
            raw = self.client.generate(request, self.profile)
        except InsightLaneError as e:
            logger.warning("%s: generation failed (%s: %s)", self.profile.name, type(e).__name__, e)
            return None
        except Exception as e:
            logger.error("%s: unexpected generation error: %s", self.profile.name, e, exc_info=True)
            return None

        if not isinstance(raw, RawModelResponse):
            logger.warning("%s: client returned %r, using local fallback", self.profile.name, type(raw))
            return None

        return raw

    def decode(self, raw: RawModelResponse) -> ExtractionResult:
        """Decoding state: model text to result; never raises."""
        message = ""
        try:
            message = normalize_payload(raw.message_text if isinstance(raw.message_text, str) else "")
            return self._decode(message, raw.raw_envelope)
        except Exception as e:
            logger.error("%s: decoding failed, using message text only: %s", self.profile.name, e, exc_info=True)
            return self.deduplicator.resolve(message, None, [])

    def _decode(self, message: str, raw_envelope: Any) -> ExtractionResult:
        profile = self.profile

        decoded = decode_envelope(message)
        if not isinstance(decoded, ParseError):
            candidates = candidates_from_envelope(decoded.data, profile.summary_keys, profile.insight_keys)
            return self.deduplicator.resolve(
                message,
                candidates.summary_candidate,
                [(candidates.insight_tier, candidates.insight_candidates)],
                envelope_parsed=True,
            )

        logger.debug("%s: strict decode failed (%s)", profile.name, decoded.reason)

        sources: List[CandidateSource] = []
        string_field = self._string_insight_field(raw_envelope)

        salvaged = salvage_suggestions(message, profile.salvage_key)
        if not salvaged and string_field is None:
            salvaged = salvage_suggestions(serialize_envelope(raw_envelope), profile.salvage_key)
        if salvaged:
            sources.append((TIER_SALVAGED, salvaged))

        # A plain-text insight field is split rather than read as one scalar
        if string_field is not None:
            sources.append((TIER_SEGMENTED, segment_text(string_field)))

        if not message and not any(candidates for _, candidates in sources):
            logger.warning("%s: empty model response", profile.name)
            return self.static_provider.get()

        return self.deduplicator.resolve(message, None, sources)

    def _string_insight_field(self, raw_envelope: Any) -> Optional[str]:
        if not isinstance(raw_envelope, dict):
            return None
        for key in self.profile.insight_keys:
            value = raw_envelope.get(key)
            if isinstance(value, str):
                return value
        return None

    def local_fallback(self, request: GenerationRequest) -> ExtractionResult:
        """LocalFallback state: rule-based insights, else the static result."""
        try:
            generated = self.rule_generator.generate(request.source_context)
        except Exception as e:
            logger.error("%s: rule-based fallback failed: %s", self.profile.name, e, exc_info=True)
            generated = []

        if not generated:
            return self.static_provider.get()

        merged = self.deduplicator.merge(
            self.profile.rule_based_summary,
            [(TIER_RULE_BASED, [g.text for g in generated])],
        )
        if not merged:
            return self.static_provider.get()

        kept = {text for text, _ in merged}
        return ExtractionResult(
            summary=self.profile.rule_based_summary,
            insights=tuple(text for text, _ in merged),
            tier=TIER_RULE_BASED,
            rule_insights=tuple(g for g in generated if g.text in kept),
        )

    def _log_tier(self, result: ExtractionResult):
        if result.tier in (TIER_RULE_BASED, TIER_STATIC):
            logger.warning("%s: degraded to %s output", self.profile.name, result.tier)
        else:
            logger.info("%s: extracted via %s tier (%d insights)",
                        self.profile.name, result.tier, len(result.insights))
