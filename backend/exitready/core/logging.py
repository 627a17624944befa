"""
logging.py — Engine-Wide Logging Configuration

Purpose:
- Configure a standardized logging format for every engine module.
- Keep calculation traces consistent across scoring, valuation, drift and signal runs.

Scope:
- Simple console logging; the level comes from settings.LOG_LEVEL unless given.
- Uniform formatting: timestamp | level | module | message
- Engine modules only emit DEBUG traces; they never catch-and-log errors.
"""

import logging
from typing import Optional

# -----------------------------------------------------------------------------
# Log Format
# -----------------------------------------------------------------------------

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)

# Parent of every engine module logger (exitready.services.*, exitready.core.*).
ENGINE_LOGGER_NAME = "exitready"

# -----------------------------------------------------------------------------
# Root Logger Initialization
# -----------------------------------------------------------------------------

def configure_logging(level: Optional[str] = None) -> str:
    """
    Configure console logging for a script or worker run.

    Parameters:
        level (str | None): "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL";
            defaults to settings.LOG_LEVEL

    Behavior:
    - Sets the format on the root logger and the level on the engine logger,
      so DEBUG traces from the engine can be enabled without flooding the
      console with third-party debug output.
    - Should be called ONCE by the entry point (scripts/), never by the
      engine modules themselves.

    Returns:
        The level name that was applied

    Raises:
        ValueError: for an unknown level name
    """
    if level is None:
        # Imported here: config depends on modules that import this one.
        from exitready.core.config import settings
        level = settings.LOG_LEVEL

    level_name = level.strip().upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger(ENGINE_LOGGER_NAME).setLevel(numeric_level)

    logging.getLogger(__name__).info("Logging initialized with level %s", level_name)
    return level_name

# -----------------------------------------------------------------------------
# Logger Access Helper
# -----------------------------------------------------------------------------

def get_logger(name: str) -> logging.Logger:
    """
    Return a logger instance to be used in any module.

    In any module:
        from exitready.core.logging import get_logger
        logger = get_logger(__name__)
        logger.debug("something was calculated")
    """
    return logging.getLogger(name)
