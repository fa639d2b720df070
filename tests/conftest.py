"""
Pytest configuration and fixtures for InsightLane tests.
"""

import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from insight_types import RawModelResponse, SessionContext  # noqa: E402


NOW = datetime(2026, 3, 15, 12, 0, 0)


class FakeClient:
    """Generation client double: returns canned responses or raises."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def generate(self, request, profile):
        self.calls.append((request, profile))
        if self.error is not None:
            raise self.error
        if isinstance(self.response, str):
            return RawModelResponse(message_text=self.response, raw_envelope={"message": self.response})
        return self.response


def session(session_id, tags, days_ago=1, now=NOW):
    """SessionContext dated ``days_ago`` before ``now``."""
    return SessionContext(
        id=session_id,
        date=(now - timedelta(days=days_ago)).isoformat(),
        tags=tuple(tags),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def spec_sessions():
    """Two 'work' sessions and one 'anxiety' session inside the window."""
    return [
        session("s1", ["work"], days_ago=1),
        session("s2", ["work"], days_ago=3),
        session("s3", ["anxiety"], days_ago=5),
    ]


@pytest.fixture(autouse=True)
def reset_insightlane_logger():
    """Drop handlers added by setup_logging between tests."""
    yield
    logger = logging.getLogger("insightlane")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
