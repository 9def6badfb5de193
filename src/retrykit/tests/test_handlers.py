"""Tests for the handler factories and the logging callback."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from retrykit import CONTINUE, GIVE_UP, STOP, DelayAndRetry, Err, Ok, RetryDetails, clear_settings_cache, handlers

DETAILS = RetryDetails(1, timedelta(milliseconds=10), DelayAndRetry(timedelta(milliseconds=20)))
LAST = RetryDetails(3, timedelta(seconds=1), GIVE_UP)


class Recorder:
    """Log callback that remembers what it was shown."""

    def __init__(self) -> None:
        self.calls: list[tuple[object, RetryDetails]] = []

    def __call__(self, subject: object, details: RetryDetails) -> None:
        self.calls.append((subject, details))


@pytest.mark.asyncio
async def test_retry_on_all_errors() -> None:
    log = Recorder()
    handler = handlers.retry_on_all_errors(log)
    error = KeyError("x")
    assert await handler(error, DETAILS) == CONTINUE
    assert await handler(ValueError(), LAST) == CONTINUE
    assert log.calls[0] == (error, DETAILS)
    assert len(log.calls) == 2


@pytest.mark.asyncio
async def test_retry_on_some_errors() -> None:
    handler = handlers.retry_on_some_errors(lambda e: isinstance(e, ConnectionError))
    assert await handler(ConnectionResetError(), DETAILS) == CONTINUE
    assert await handler(PermissionError(), DETAILS) == STOP


@pytest.mark.asyncio
async def test_retry_until_successful() -> None:
    log = Recorder()
    handler = handlers.retry_until_successful(lambda n: n >= 10, log)
    assert await handler(3, DETAILS) == CONTINUE
    assert await handler(10, DETAILS) == STOP
    assert [subject for subject, _ in log.calls] == [3, 10]


@pytest.mark.asyncio
async def test_retry_on_errors_until_successful() -> None:
    handler = handlers.retry_on_errors_until_successful(lambda s: s == "done")
    assert await handler(Err(TimeoutError()), DETAILS) == CONTINUE
    assert await handler(Ok("pending"), DETAILS) == CONTINUE
    assert await handler(Ok("done"), DETAILS) == STOP


@pytest.mark.asyncio
async def test_async_log_callback_is_awaited() -> None:
    seen: list[int] = []

    async def log(subject: object, details: RetryDetails) -> None:
        seen.append(details.retries_so_far)

    handler = handlers.retry_on_all_errors(log)
    await handler(RuntimeError(), DETAILS)
    assert seen == [1]


@pytest.mark.asyncio
async def test_log_callback_errors_propagate() -> None:
    def log(subject: object, details: RetryDetails) -> None:
        raise LookupError("log sink down")

    with pytest.raises(LookupError):
        await handlers.retry_on_all_errors(log)(RuntimeError(), DETAILS)


def test_noop_returns_none() -> None:
    assert handlers.noop("anything", DETAILS) is None


def test_retry_details_views() -> None:
    assert DETAILS.attempts == 2
    assert DETAILS.next_delay == timedelta(milliseconds=20)
    assert not DETAILS.gives_up
    assert LAST.gives_up and LAST.next_delay is None


def test_log_retry_writes_one_line(caplog: pytest.LogCaptureFixture) -> None:
    log = handlers.log_retry(logging.getLogger("billing"), logging.INFO)
    with caplog.at_level(logging.INFO, logger="billing"):
        log(TimeoutError("slow"), DETAILS)
        log(TimeoutError("slow"), LAST)
    assert [r.getMessage() for r in caplog.records] == [
        "Attempt 2: TimeoutError('slow') (next retry in 20ms)",
        "Attempt 4: TimeoutError('slow') (no retries left)",
    ]
    assert {r.name for r in caplog.records} == {"billing"}


def test_log_retry_defaults(caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RETRYKIT_LOG_LEVEL", raising=False)
    clear_settings_cache()
    log = handlers.log_retry()
    with caplog.at_level(logging.WARNING, logger="retrykit.handlers"):
        log(42, DETAILS)
    assert len(caplog.records) == 1
    assert caplog.records[0].name == "retrykit.handlers"
    assert caplog.records[0].levelno == logging.WARNING
