"""
Logging setup for InsightLane.

Every module logs through a child of the ``insightlane`` logger, e.g.
``logging.getLogger("insightlane.orchestrator")``. Call ``setup_logging`` once
from an entry point; library use without it stays silent.
"""

import logging
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "insightlane"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return the ``insightlane.<name>`` logger."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure the root ``insightlane`` logger.

    Adds a console handler and, when ``log_file`` is given, a file handler.
    Calling it again only updates the level.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
    else:
        for handler in logger.handlers:
            handler.setLevel(level)

    return logger


def setup_from_config(config) -> logging.Logger:
    """Configure logging from the ``logging`` and ``paths`` config sections."""
    from config_manager import get_setting

    level = get_setting(config, "logging.level", "INFO")
    log_file = None
    if get_setting(config, "logging.to_file", False):
        logs_dir = get_setting(config, "paths.logs_dir", ".insightlane/logs")
        log_file = Path(logs_dir) / "insightlane.log"
    return setup_logging(level, log_file)
