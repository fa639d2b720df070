"""
TTL cache for computed insights.

The cache is injected into feature services as a ``CacheProvider``: anything
with ``get(key)`` and ``set(key, entry)``. Freshness is checked by the caller
with ``is_fresh``. Writes are last-writer-wins.
"""

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Optional, Protocol

from insight_types import CachedInsight, parse_iso
from logging_setup import get_logger

logger = get_logger("insight_cache")


class CacheProvider(Protocol):
    """Key-value capability used by feature services."""

    def get(self, key: str) -> Optional[CachedInsight]:
        ...

    def set(self, key: str, entry: CachedInsight) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


def is_fresh(entry: Optional[CachedInsight], now: datetime, ttl: timedelta) -> bool:
    """True while ``now - computed_at < ttl``."""
    if entry is None:
        return False
    computed_at = parse_iso(entry.computed_at)
    if computed_at is None:
        return False
    return now - computed_at < ttl


class MemoryCache:
    """In-process cache, mainly for tests and one-shot CLI runs."""

    def __init__(self):
        self._entries: Dict[str, CachedInsight] = {}

    def get(self, key: str) -> Optional[CachedInsight]:
        return self._entries.get(key)

    def set(self, key: str, entry: CachedInsight) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class JsonFileCache:
    """
    Cache persisted as a single JSON file.

    A missing or corrupted file reads as empty; read and write failures are
    logged and never raised, so a broken cache only costs a recomputation.
    """

    def __init__(self, cache_path: str = ".insightlane/cache.json"):
        self.cache_path = Path(cache_path)

    def _load(self) -> Dict[str, Dict]:
        if not self.cache_path.exists():
            return {}
        try:
            with open(self.cache_path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Unreadable cache file %s: %s", self.cache_path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Dict]) -> None:
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_path, 'w') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.error("Error writing cache file %s: %s", self.cache_path, e)

    def get(self, key: str) -> Optional[CachedInsight]:
        raw = self._load().get(key)
        if not isinstance(raw, dict):
            return None
        try:
            return CachedInsight.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding malformed cache entry %r: %s", key, e)
            return None

    def set(self, key: str, entry: CachedInsight) -> None:
        data = self._load()
        data[key] = entry.to_dict()
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
