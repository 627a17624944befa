"""
config.py — Centralized Engine Configuration Loader

Purpose:
- Define a single source of truth for engine settings.
- Load and validate environment variables from `.env` or OS environment.

Settings here only provide defaults for the embedding application. The
calculation functions take every tunable as an explicit argument, so they
stay pure and never read this module themselves.

This module does NOT:
- Execute any DB connections.
- Make external API calls.
- Modify runtime settings.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from exitready.core.categories import normalize_weights

# config.py is at: backend/exitready/core/config.py
# .env should be at: backend/.env
_CONFIG_DIR = Path(__file__).parent
_BACKEND_DIR = _CONFIG_DIR.parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    _ENV_FILE_PATH = str(_ENV_FILE.resolve())
else:
    # pydantic will look in CWD
    _ENV_FILE_PATH = ".env"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """
    Engine settings container.

    - LOG_LEVEL feeds configure_logging() in the embedding application.
    - Display/plan bounds are the defaults callers pass to the signal ranker
      and the action-plan builder.
    - BRI_GLOBAL_WEIGHTS is the global tier of the category weight resolver.
    """
    LOG_LEVEL: str = Field(
        "INFO",
        description="Root log level: DEBUG, INFO, WARNING, ERROR or CRITICAL",
    )

    MAX_ACTIVE_DISPLAY_SIGNALS: int = Field(
        3,
        ge=1,
        description="Number of signal groups shown as active; the rest are queued",
    )
    MAX_ACTION_PLAN_TASKS: int = Field(
        15,
        ge=1,
        description="Number of tasks kept in the active action plan",
    )

    BRI_GLOBAL_WEIGHTS: Optional[Dict[str, float]] = Field(
        None,
        description="Global BRI category weight override as JSON, e.g. {\"FINANCIAL\": 0.3, ...}",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Upper-case and validate the log level name."""
        level = str(v or "INFO").strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got {v!r}")
        return level

    @field_validator("BRI_GLOBAL_WEIGHTS")
    @classmethod
    def validate_global_weights(cls, v: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        """Reject unknown categories and negative weights at load time."""
        if v:
            normalize_weights(v)
        return v

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Singleton pattern: settings imported anywhere will reference same object.
settings = Settings()
