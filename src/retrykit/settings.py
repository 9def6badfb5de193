"""Environment-based retry defaults using pydantic-settings.

Provides a type-safe default schedule for callers that do not build one by
hand. Values come from ``RETRYKIT_*`` environment variables or a ``.env``
file.

Example:
    >>> from retrykit.settings import get_settings
    >>> schedule = get_settings().build_schedule()
    >>> str(schedule)
    'limit_retries(max_retries=3, cap_delay(cap=30s, full_jitter(base=1s)))'

    # Or with environment variables:
    # RETRYKIT_STRATEGY=fibonacci
    # RETRYKIT_BASE_DELAY=0.5
    # RETRYKIT_MAX_RETRIES=10
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeFloat, NonNegativeInt, PositiveFloat, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import schedule as schedules
from .schedule import Schedule


class RetrySettings(BaseSettings):
    """Default retry configuration.

    Attributes:
        strategy: Backoff shape of the default schedule
        base_delay: Base delay in seconds
        max_delay: Upper bound on any single delay (None = uncapped)
        max_retries: Retries before giving up (None = unbounded)
        max_cumulative_delay: Total waiting budget in seconds (None = unbounded)
        log_level: Level used by ``handlers.log_retry`` via ``default_log_level``
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRYKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
    )

    strategy: Literal["constant", "exponential", "fibonacci", "full_jitter"] = "full_jitter"
    base_delay: NonNegativeFloat = Field(default=1.0, description="Base delay in seconds")
    max_delay: PositiveFloat | None = Field(default=30.0, description="Per-retry delay cap in seconds")
    max_retries: NonNegativeInt | None = 3
    max_cumulative_delay: PositiveFloat | None = Field(default=None, description="Total delay budget in seconds")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @field_validator("strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, v: str) -> str:
        """Accept any casing and dashes (e.g. ``Full-Jitter``)."""
        return v.lower().replace("-", "_") if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @computed_field
    @property
    def default_log_level(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]

    def build_schedule(self) -> Schedule:
        """Schedule described by these settings: backoff, then cap, then limits."""
        builders = {
            "constant": schedules.constant,
            "exponential": schedules.exponential_backoff,
            "fibonacci": schedules.fibonacci_backoff,
            "full_jitter": schedules.full_jitter,
        }
        schedule = builders[self.strategy](self.base_delay)
        if self.max_delay is not None:
            schedule = schedule.cap(self.max_delay)
        if self.max_cumulative_delay is not None:
            schedule = schedule.limit_by_cumulative_delay(self.max_cumulative_delay)
        if self.max_retries is not None:
            schedule = schedule.limit(self.max_retries)
        return schedule


@lru_cache(maxsize=1)
def get_settings() -> RetrySettings:
    """Get the global settings instance (cached)."""
    return RetrySettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    The next get_settings() call reloads configuration from the environment.
    """
    get_settings.cache_clear()


def default_schedule() -> Schedule:
    return get_settings().build_schedule()
