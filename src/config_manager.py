"""
Configuration management for InsightLane
"""

import copy
import json
from pathlib import Path
from typing import Dict, Any, Optional

from constants import (
    ANTHROPIC_DEFAULT_MODEL,
    ANTHROPIC_MAX_TOKENS,
    GENERATION_TIMEOUT,
    GENERATION_DEFAULT_BACKEND,
    JOURNAL_MAX_INSIGHTS,
    MOOD_MAX_INSIGHTS,
    VISION_MAX_INSIGHTS,
    MOOD_CACHE_TTL_HOURS,
    MOOD_DEFAULT_STRATEGY,
    RULE_LOOKBACK_DAYS,
    RULE_TOP_K,
)
from logging_setup import get_logger

logger = get_logger("config_manager")


class ConfigManager:
    """
    Manages InsightLane configuration

    Values are read with dot notation, e.g. ``config.get('generation.timeout')``.
    """

    DEFAULT_CONFIG = {
        "generation": {
            "backend": GENERATION_DEFAULT_BACKEND,  # "auto", "endpoint", "anthropic"
            "endpoint_url": "",
            "api_key": "",
            "timeout": GENERATION_TIMEOUT,
            "anthropic_model": ANTHROPIC_DEFAULT_MODEL,
            "anthropic_max_tokens": ANTHROPIC_MAX_TOKENS
        },
        "extraction": {
            "journal": {
                "max_insights": JOURNAL_MAX_INSIGHTS,
                "dedup_mode": "exact"
            },
            "mood": {
                "max_insights": MOOD_MAX_INSIGHTS,
                "dedup_mode": "casefold"
            },
            "vision": {
                "max_insights": VISION_MAX_INSIGHTS,
                "dedup_mode": "casefold"
            }
        },
        "mood": {
            "strategy": MOOD_DEFAULT_STRATEGY,  # "rule_based", "remote"
            "lookback_days": RULE_LOOKBACK_DAYS,
            "top_k": RULE_TOP_K,
            "cache_ttl_hours": MOOD_CACHE_TTL_HOURS
        },
        "logging": {
            "level": "INFO",
            "to_file": True
        },
        "paths": {
            "data_dir": ".insightlane",
            "cache_file": ".insightlane/cache.json",
            "vision_file": ".insightlane/vision_insights.json",
            "config_file": ".insightlane/config.json",
            "logs_dir": ".insightlane/logs"
        }
    }

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager"""
        if config_path:
            self.config_path = Path(config_path)
        else:
            # Try to find config in standard locations
            self.config_path = self._find_config_file()

        self.config = self.load()
        self.setup_directories()

    def _find_config_file(self) -> Path:
        """Find configuration file in standard locations"""
        # Check in order:
        # 1. .insightlane/config.json in current directory
        # 2. ~/.insightlane/config.json (user home)

        candidates = [
            Path.cwd() / ".insightlane" / "config.json",
            Path.home() / ".insightlane" / "config.json"
        ]

        for path in candidates:
            if path.exists():
                return path

        return Path.cwd() / ".insightlane" / "config.json"

    def load(self) -> Dict[str, Any]:
        """Load configuration from file or use defaults"""
        if not self.config_path.exists():
            # Create default config file
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                json.dump(self.DEFAULT_CONFIG, f, indent=2)
            return copy.deepcopy(self.DEFAULT_CONFIG)

        try:
            with open(self.config_path, 'r') as f:
                user_config = json.load(f)

            # Merge with defaults (user config overrides defaults)
            return self._merge_configs(self.DEFAULT_CONFIG, user_config)

        except json.JSONDecodeError:
            logger.warning("Invalid config file %s, using defaults", self.config_path)
            return copy.deepcopy(self.DEFAULT_CONFIG)

    def _merge_configs(self, default: Dict, user: Dict) -> Dict:
        """Recursively merge user config with defaults"""
        result = copy.deepcopy(default)

        for key, value in user.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def save(self):
        """Save current configuration to file"""
        with open(self.config_path, 'w') as f:
            json.dump(self.config, f, indent=2)

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation
        Example: config.get('generation.timeout')
        """
        return _walk(self.config, key_path, default)

    def set(self, key_path: str, value: Any):
        """
        Set configuration value using dot notation
        Example: config.set('mood.strategy', 'remote')
        """
        keys = key_path.split('.')
        config = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config or not isinstance(config[key], dict):
                config[key] = {}
            config = config[key]

        config[keys[-1]] = value
        self.save()

    def setup_directories(self):
        """Create necessary directories based on configuration"""
        paths = self.config.get('paths', {})

        for path_key, path_value in paths.items():
            if path_key.endswith('_dir'):
                Path(path_value).mkdir(parents=True, exist_ok=True)

    def get_path(self, path_key: str) -> Path:
        """Get a configured path as a Path object"""
        path_value = self.get(f'paths.{path_key}')
        if path_value:
            return Path(path_value)
        raise ValueError(f"Path not configured: {path_key}")


def _walk(config: Dict, key_path: str, default: Any) -> Any:
    value = config
    for key in key_path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


def get_setting(config, key_path: str, default: Any = None) -> Any:
    """
    Read a dot-notation setting from a ConfigManager or a plain nested dict.

    Missing config, missing keys and unreadable values all yield ``default``.
    """
    if config is None:
        return default
    if isinstance(config, dict):
        return _walk(config, key_path, default)
    try:
        return config.get(key_path, default)
    except Exception:
        return default
