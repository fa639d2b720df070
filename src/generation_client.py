"""
Remote text generation for InsightLane.

Supports multiple backends (configurable via generation.backend):
- "auto": hosted endpoint if configured, else Anthropic API (default)
- "endpoint": POST to the hosted generation function, response ``{"message": str}``
- "anthropic": Anthropic Messages API

Every failure is raised as a ConfigurationError, NetworkError or
MalformedPayloadError; callers decide how to fall back.
"""

import os
from typing import Any, Dict, Optional

import requests

from config_manager import get_setting
from constants import (
    ANTHROPIC_DEFAULT_MODEL,
    ANTHROPIC_MAX_TOKENS,
    ENDPOINT_KEY_ENV,
    ENDPOINT_URL_ENV,
    GENERATION_BACKENDS,
    GENERATION_DEFAULT_BACKEND,
    GENERATION_TIMEOUT,
)
from extraction_errors import ConfigurationError, MalformedPayloadError, NetworkError
from feature_profiles import ExtractionProfile
from insight_types import GenerationRequest, RawModelResponse
from logging_setup import get_logger

logger = get_logger("generation_client")


class GenerationClient:
    """Send one prompt to the configured backend and return the raw response."""

    BACKENDS = set(GENERATION_BACKENDS)

    def __init__(self, config=None, http: Optional[Any] = None):
        self.config = config

        self.backend = get_setting(config, "generation.backend", GENERATION_DEFAULT_BACKEND)
        if self.backend not in self.BACKENDS:
            self.backend = GENERATION_DEFAULT_BACKEND

        self.endpoint_url = (
            os.environ.get(ENDPOINT_URL_ENV)
            or get_setting(config, "generation.endpoint_url", "")
            or ""
        )
        self.api_key = (
            os.environ.get(ENDPOINT_KEY_ENV)
            or get_setting(config, "generation.api_key", "")
            or ""
        )
        self.timeout = get_setting(config, "generation.timeout", GENERATION_TIMEOUT)
        self.model = get_setting(config, "generation.anthropic_model", ANTHROPIC_DEFAULT_MODEL)
        self.max_tokens = get_setting(config, "generation.anthropic_max_tokens", ANTHROPIC_MAX_TOKENS)

        # Anything with requests' ``post`` signature, e.g. a requests.Session
        self.http = http or requests

    @property
    def endpoint_configured(self) -> bool:
        return bool(self.endpoint_url and self.api_key)

    @property
    def api_available(self) -> bool:
        """Check if the Anthropic API key is set."""
        return bool(os.environ.get("ANTHROPIC_API_KEY"))

    def resolve_backend(self) -> str:
        """Pick the concrete backend, or raise ConfigurationError."""
        if self.backend == "endpoint":
            if not self.endpoint_configured:
                raise ConfigurationError("Generation endpoint URL or API key missing")
            return "endpoint"

        if self.backend == "anthropic":
            if not self.api_available:
                raise ConfigurationError("ANTHROPIC_API_KEY is not set")
            return "anthropic"

        if self.endpoint_configured:
            return "endpoint"
        if self.api_available:
            return "anthropic"
        raise ConfigurationError("No generation backend configured")

    def generate(self, request: GenerationRequest, profile: ExtractionProfile) -> RawModelResponse:
        """
        Run one generation call.

        Args:
            request: Prompt and feature payload
            profile: Feature profile (system prompt, endpoint function)

        Returns:
            The raw model response
        """
        backend = self.resolve_backend()
        logger.debug("Generating %s via %s backend", profile.name, backend)

        if backend == "endpoint":
            return self._call_endpoint(request, profile)
        return self._call_anthropic(request, profile)

    def _call_endpoint(self, request: GenerationRequest, profile: ExtractionProfile) -> RawModelResponse:
        """POST to the hosted generation function."""
        url = f"{self.endpoint_url.rstrip('/')}/functions/v1/{profile.function_name}"
        body: Dict[str, Any] = {
            "prompt": request.prompt,
            "systemPrompt": profile.system_prompt,
        }
        body.update(request.payload)

        try:
            response = self.http.post(
                url,
                json=body,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise NetworkError(f"Request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise NetworkError(f"Request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise NetworkError(
                f"Generation endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            envelope = response.json()
        except ValueError as e:
            raise MalformedPayloadError(f"Response body is not JSON: {e}") from e

        message = envelope.get("message") if isinstance(envelope, dict) else None
        return RawModelResponse(
            message_text=message if isinstance(message, str) else "",
            raw_envelope=envelope,
        )

    def _call_anthropic(self, request: GenerationRequest, profile: ExtractionProfile) -> RawModelResponse:
        """Call Claude using the Anthropic API."""
        try:
            import anthropic
        except ImportError as e:
            raise ConfigurationError("anthropic package not installed") from e

        client = anthropic.Anthropic(timeout=self.timeout, max_retries=0)

        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=profile.system_prompt,
                messages=[
                    {"role": "user", "content": request.prompt}
                ],
            )
        except anthropic.APITimeoutError as e:
            raise NetworkError(f"Anthropic API timed out after {self.timeout}s") from e
        except anthropic.APIStatusError as e:
            raise NetworkError(f"Anthropic API error: {e}", status_code=e.status_code) from e
        except anthropic.APIError as e:
            raise NetworkError(f"Anthropic API call failed: {e}") from e

        text = "".join(
            getattr(block, "text", "")
            for block in (response.content or [])
            if getattr(block, "type", "text") == "text"
        )
        return RawModelResponse(message_text=text, raw_envelope={"message": text})
