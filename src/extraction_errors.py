"""
Error types for InsightLane.

These never reach feature callers: the orchestrator catches them at the tier
boundary and moves on to the next tier.
"""

from typing import Optional


class InsightLaneError(Exception):
    """Base class for InsightLane errors."""


class ConfigurationError(InsightLaneError):
    """Endpoint URL, API key or SDK missing; raised before any network call."""


class NetworkError(InsightLaneError):
    """Timeout, non-2xx response or transport failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedPayloadError(InsightLaneError):
    """The response body could not be read as a JSON envelope."""
