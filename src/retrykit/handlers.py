"""Result handlers: inspect an attempt and decide what to do next.

A handler receives the subject of the latest attempt (an error, a value or an
Outcome, depending on the engine entry point) plus a RetryDetails snapshot,
and returns a HandlerDecision. It is also the place to log or record metrics;
every factory here takes a ``log`` callback and calls it before deciding.

Log callbacks may be plain functions or coroutine functions.

Example:
    >>> handler = retry_on_some_errors(
    ...     lambda e: isinstance(e, ConnectionError),
    ...     log=log_retry(logging.getLogger("billing")),
    ... )
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable
from typing import Any, Callable, TypeAlias, TypeVar

from .decisions import CONTINUE, STOP, HandlerDecision
from .duration import format_delay
from .outcome import Outcome
from .settings import get_settings
from .status import RetryDetails

A = TypeVar("A")
R = TypeVar("R")

logger = logging.getLogger("retrykit.handlers")

Action: TypeAlias = Callable[[], Awaitable[A]]
LogFn: TypeAlias = Callable[[R, RetryDetails], "Awaitable[None] | None"]

ResultHandler: TypeAlias = Callable[[R, RetryDetails], Awaitable[HandlerDecision[Action[A]]]]
ErrorHandler: TypeAlias = Callable[[Exception, RetryDetails], Awaitable[HandlerDecision[Action[A]]]]
ValueHandler: TypeAlias = Callable[[A, RetryDetails], Awaitable[HandlerDecision[Action[A]]]]
ErrorOrValueHandler: TypeAlias = Callable[[Outcome[A], RetryDetails], Awaitable[HandlerDecision[Action[A]]]]


async def _log(log: LogFn[R], subject: R, details: RetryDetails) -> None:
    if inspect.isawaitable(ret := log(subject, details)):
        await ret


def noop(subject: object, details: RetryDetails) -> None:
    """Pass as ``log`` when no logging is needed."""


def retry_on_all_errors(log: LogFn[Exception] = noop) -> ErrorHandler[Any]:
    """Always retry the same action, whatever the error."""
    async def handler(error: Exception, details: RetryDetails) -> HandlerDecision[Any]:
        await _log(log, error, details)
        return CONTINUE
    return handler


def retry_on_some_errors(
    is_worth_retrying: Callable[[Exception], bool],
    log: LogFn[Exception] = noop,
) -> ErrorHandler[Any]:
    """Retry the same action while the error is worth retrying; stop on any other error."""
    async def handler(error: Exception, details: RetryDetails) -> HandlerDecision[Any]:
        await _log(log, error, details)
        return CONTINUE if is_worth_retrying(error) else STOP
    return handler


def retry_until_successful(
    is_successful: Callable[[A], bool],
    log: LogFn[A] = noop,
) -> ValueHandler[A]:
    """Retry the same action until it returns a value satisfying ``is_successful``."""
    async def handler(value: A, details: RetryDetails) -> HandlerDecision[Any]:
        await _log(log, value, details)
        return STOP if is_successful(value) else CONTINUE
    return handler


def retry_on_errors_until_successful(
    is_successful: Callable[[A], bool],
    log: LogFn[Outcome[A]] = noop,
) -> ErrorOrValueHandler[A]:
    """Retry on every error, and on every value not satisfying ``is_successful``."""
    async def handler(outcome: Outcome[A], details: RetryDetails) -> HandlerDecision[Any]:
        await _log(log, outcome, details)
        if outcome.is_err():
            return CONTINUE
        return STOP if is_successful(outcome.unwrap()) else CONTINUE
    return handler


def log_retry(log: logging.Logger | None = None, level: int | None = None) -> LogFn[object]:
    """Log callback writing one line per inspected attempt.

    Args:
        log: Logger to write to (default: ``retrykit.handlers``)
        level: Logging level for every line (default: RETRYKIT_LOG_LEVEL)
    """
    target = log or logger
    level = get_settings().default_log_level if level is None else level

    def write(subject: object, details: RetryDetails) -> None:
        delay = details.next_delay
        step = "no retries left" if delay is None else f"next retry in {format_delay(delay)}"
        target.log(level, f"Attempt {details.attempts}: {subject!r} ({step})")

    return write
