"""Scheduler configuration powered by Pydantic settings."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Final

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"


class Settings(BaseSettings):
    """Centralized configuration object with environment fallbacks."""

    model_config = SettingsConfigDict(env_prefix="ZONESCHEDULER_", env_file=".env", extra="allow")

    # Cadence
    schedule_granularity_ms: int = Field(default=60_000, gt=0)
    startup_delay_ms: int = Field(default=10_000, ge=0)
    misfire_grace_time_s: int = Field(default=60, ge=1)

    # Upper bound for a single ScheduleUpdater call
    updater_timeout_s: float = Field(default=30.0, gt=0)

    # Logging
    debug: bool = False
    log_level: str = Field(default="info")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        """Accept any case, reject names the logging module doesn't know."""
        if not isinstance(v, str) or not v.strip():
            return "info"
        level = v.strip().lower()
        if not isinstance(logging.getLevelName(level.upper()), int):
            raise ValueError(f"Unknown log level '{v}'")
        return level

    @computed_field  # type: ignore[prop-decorator]
    @property
    def effective_log_level(self) -> int:
        """Numeric level for ``logging``; ``debug`` overrides ``log_level``."""

        if self.debug:
            return logging.DEBUG
        return logging.getLevelName(self.log_level.upper())


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Set up root logging the same way for every entry point."""

    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.effective_log_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


SETTINGS: Final[Settings] = get_settings()
