"""Tests for environment-driven retry defaults."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import timedelta

import pytest
from pydantic import ValidationError

from retrykit import RetrySettings, clear_settings_cache, default_schedule, get_settings

SECOND = timedelta(seconds=1)

ENV_VARS = (
    "RETRYKIT_STRATEGY",
    "RETRYKIT_BASE_DELAY",
    "RETRYKIT_MAX_DELAY",
    "RETRYKIT_MAX_RETRIES",
    "RETRYKIT_MAX_CUMULATIVE_DELAY",
    "RETRYKIT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


def test_defaults() -> None:
    settings = RetrySettings()
    assert settings.strategy == "full_jitter"
    assert settings.max_retries == 3
    assert settings.default_log_level == logging.WARNING
    assert str(settings.build_schedule()) == "limit_retries(max_retries=3, cap_delay(cap=30s, full_jitter(base=1s)))"


def test_default_schedule_respects_limits() -> None:
    delays = default_schedule().take(10)
    assert len(delays) == 3
    assert all(timedelta(0) <= d <= 4 * SECOND for d in delays)


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYKIT_STRATEGY", "Fibonacci")
    monkeypatch.setenv("RETRYKIT_BASE_DELAY", "0.5")
    monkeypatch.setenv("RETRYKIT_MAX_DELAY", "2")
    monkeypatch.setenv("RETRYKIT_MAX_RETRIES", "6")
    monkeypatch.setenv("RETRYKIT_LOG_LEVEL", "debug")
    clear_settings_cache()

    settings = get_settings()
    assert settings.strategy == "fibonacci"
    assert settings.default_log_level == logging.DEBUG
    assert [d.total_seconds() for d in default_schedule()] == [0.5, 0.5, 1.0, 1.5, 2.0, 2.0]


def test_settings_are_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    monkeypatch.setenv("RETRYKIT_MAX_RETRIES", "9")
    assert get_settings() is first
    clear_settings_cache()
    assert get_settings().max_retries == 9


@pytest.mark.parametrize("raw", ["full-jitter", "FULL_JITTER", "Full-Jitter"])
def test_strategy_normalization(raw: str) -> None:
    assert RetrySettings(strategy=raw).strategy == "full_jitter"


def test_cumulative_budget_and_unbounded_retries() -> None:
    settings = RetrySettings(strategy="constant", base_delay=1, max_delay=None, max_retries=None, max_cumulative_delay=2.5)
    assert str(settings.build_schedule()) == "limit_retries_by_cumulative_delay(threshold=2.5s, constant(1s))"
    assert list(settings.build_schedule()) == [SECOND, SECOND]


@pytest.mark.parametrize(
    "overrides",
    [{"strategy": "linear"}, {"base_delay": -1}, {"max_delay": 0}, {"max_retries": -2}, {"log_level": "LOUD"}],
)
def test_invalid_values_rejected(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        RetrySettings(**overrides)
