"""Retry execution engine.

Runs an action, inspects its outcome, consults the schedule and the handler,
and either finishes or waits and tries again. The session is a small state
machine driven by an explicit step loop, so an unbounded number of retries
never grows the call stack:

    Running ──ok/err──▶ Deciding ──Continue/Adapt + retry──▶ Delaying ──▶ Running
       │                   │
       └──── settled ──────┴── Stop, or schedule exhausted ──▶ Succeeded / Failed

Precedence while deciding:
- Handler Stop always ends the session, whatever the schedule allows
- An exhausted schedule always ends the session, even on Continue or Adapt

When a session ends on an attempt that raised, that exact exception object
is re-raised; nothing is wrapped and no "retries exhausted" error exists.

Cancellation: the action and the delay both run in the caller's task.
Cancelling it cancels the in-flight action (or the sleep), no further attempt
is made, and ``asyncio.CancelledError`` propagates to the caller without
ever being shown to the handler. This holds even when the action (or the
sleep) swallows the cancellation or converts it into another exception: the
task's pending cancel request is checked after every attempt and delay.

Example:
    >>> value = await retrying_on_errors(
    ...     fetch_quote,
    ...     schedule.limit_retries(5, schedule.exponential_backoff(0.1)),
    ...     handlers.retry_on_some_errors(is_transient, log=handlers.log_retry()),
    ... )
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Iterable, Iterator
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Generic, ParamSpec, Protocol, TypeAlias, TypeVar, Union

from .backoff import Backoff
from .decisions import GIVE_UP, Adapt, Continue, DelayAndRetry, GiveUp, PolicyDecision, Stop
from .duration import DelayLike, format_delay
from .handlers import Action, ErrorHandler, ErrorOrValueHandler, ResultHandler, ValueHandler, retry_on_all_errors
from .outcome import Outcome, Result, attempt
from .policy import RetryPolicy
from .schedule import Schedule
from .status import NO_RETRIES_YET, RetryDetails, RetryStatus

T = TypeVar("T")
P = ParamSpec("P")

logger = logging.getLogger("retrykit.engine")

Sleep: TypeAlias = Callable[[float], Awaitable[object]]
ScheduleLike: TypeAlias = Union[Schedule, Backoff, RetryPolicy[Any], Iterable[DelayLike]]


# ─────────────────────────────────────────────────────────────────────────────
# Next step: a policy decision that also carries the status after retrying
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RetryAfterDelay:
    delay: timedelta
    updated_status: RetryStatus


NextStep: TypeAlias = Union[GiveUp, RetryAfterDelay]


def _next_step(decision: PolicyDecision, status: RetryStatus) -> NextStep:
    match decision:
        case DelayAndRetry(delay=d):
            return RetryAfterDelay(d, status.add_retry(d))
        case _:
            return GIVE_UP


def _details(status: RetryStatus, step: NextStep) -> RetryDetails:
    match step:
        case RetryAfterDelay(delay=d):
            return RetryDetails.of(status, DelayAndRetry(d))
        case _:
            return RetryDetails.of(status, GIVE_UP)


# ─────────────────────────────────────────────────────────────────────────────
# Schedule position
# ─────────────────────────────────────────────────────────────────────────────


class _Plan(Protocol):
    async def decide(self, subject: object, status: RetryStatus) -> PolicyDecision: ...


@dataclass(frozen=True, slots=True)
class _SchedulePlan:
    """Positional consumption of a schedule; the iterator is this session's own."""

    delays: Iterator[timedelta]

    async def decide(self, subject: object, status: RetryStatus) -> PolicyDecision:
        delay = next(self.delays, None)
        return GIVE_UP if delay is None else DelayAndRetry(delay)


@dataclass(frozen=True, slots=True)
class _PolicyPlan:
    """Outcome-aware consumption of a policy; position is the status itself."""

    policy: RetryPolicy[Any]

    async def decide(self, subject: object, status: RetryStatus) -> PolicyDecision:
        return await self.policy.decide_next_retry(subject, status)


def _plan_for(schedule: ScheduleLike) -> _Plan:
    if isinstance(schedule, RetryPolicy):
        return _PolicyPlan(schedule)
    return _SchedulePlan(iter(Schedule.of(schedule)))


# ─────────────────────────────────────────────────────────────────────────────
# Which outcomes go to the handler
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class _Inspection:
    """Selects the outcomes a handler inspects and what it is shown."""

    needs_decision: Callable[[Outcome[Any]], bool]
    subject: Callable[[Outcome[Any]], object]


_ON_ERRORS = _Inspection(Result.is_err, Result.unwrap_err)
_ON_VALUES = _Inspection(Result.is_ok, Result.unwrap)
_ON_OUTCOMES = _Inspection(lambda _: True, lambda outcome: outcome)


# ─────────────────────────────────────────────────────────────────────────────
# Session states
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class _Running(Generic[T]):
    action: Action[T]
    status: RetryStatus
    plan: _Plan


@dataclass(frozen=True, slots=True)
class _Deciding(Generic[T]):
    outcome: Outcome[T]
    action: Action[T]
    status: RetryStatus
    plan: _Plan


@dataclass(frozen=True, slots=True)
class _Delaying(Generic[T]):
    delay: timedelta
    action: Action[T]
    status: RetryStatus
    plan: _Plan


@dataclass(frozen=True, slots=True)
class _Succeeded(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class _Failed:
    error: Exception


_State: TypeAlias = Union[_Running[Any], _Deciding[Any], _Delaying[Any], _Succeeded[Any], _Failed]


def _cancel_requested() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


def _settle(outcome: Outcome[T]) -> _Succeeded[T] | _Failed:
    return _Succeeded(outcome.unwrap()) if outcome.is_ok() else _Failed(outcome.unwrap_err())


async def _step(
    state: _State,
    handler: ResultHandler[Any, Any],
    inspection: _Inspection,
    sleep: Sleep,
) -> _State:
    """Advance a non-terminal session by one transition."""
    match state:
        case _Running(action=action, status=status, plan=plan):
            outcome = await attempt(action)
            if _cancel_requested():
                # The action swallowed or converted the cancellation
                raise asyncio.CancelledError()
            if not inspection.needs_decision(outcome):
                return _settle(outcome)
            return _Deciding(outcome, action, status, plan)

        case _Deciding(outcome=outcome, action=action, status=status, plan=plan):
            subject = inspection.subject(outcome)
            step = _next_step(await plan.decide(subject, status), status)
            details = _details(status, step)
            decision = await handler(subject, details)
            logger.debug(
                f"Attempt {details.attempts} inspected: {details.next_step_if_unsuccessful}, "
                f"handler chose {type(decision).__name__}"
            )
            match decision, step:
                case Stop(), _:
                    return _settle(outcome)
                case (Continue() | Adapt()), GiveUp():
                    logger.debug(f"Schedule exhausted after {status.retries_so_far} retries")
                    return _settle(outcome)
                case Continue(), RetryAfterDelay(delay=delay, updated_status=updated):
                    return _Delaying(delay, action, updated, plan)
                case Adapt(new_action=new_action), RetryAfterDelay(delay=delay, updated_status=updated):
                    return _Delaying(delay, new_action, updated, plan)
                case _:
                    raise TypeError(f"Handler returned {decision!r}, expected Stop, Continue or Adapt")

        case _Delaying(delay=delay, action=action, status=status, plan=plan):
            logger.debug(f"Retry {status.retries_so_far} in {format_delay(delay)}")
            await sleep(delay.total_seconds())
            if _cancel_requested():
                raise asyncio.CancelledError()
            return _Running(action, status, plan)

    raise TypeError(f"Cannot step terminal state {state!r}")


async def _run_session(
    action: Action[T],
    schedule: ScheduleLike,
    handler: ResultHandler[Any, Any],
    inspection: _Inspection,
    sleep: Sleep,
) -> T:
    state: _State = _Running(action, NO_RETRIES_YET, _plan_for(schedule))
    while True:
        match state:
            case _Succeeded(value=value):
                return value
            case _Failed(error=error):
                raise error
        state = await _step(state, handler, inspection, sleep)


# ─────────────────────────────────────────────────────────────────────────────
# Entry points
# ─────────────────────────────────────────────────────────────────────────────


async def retrying_on_errors(
    action: Action[T],
    schedule: ScheduleLike,
    handler: ErrorHandler[T] | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run ``action``, retrying on raised exceptions until it succeeds or retrying stops.

    Args:
        action: Zero-argument coroutine function; called once per attempt
        schedule: Schedule, iterable of delays, Backoff, or RetryPolicy
            (a policy is shown the error of each failed attempt)
        handler: Decides per error; defaults to retrying on all errors
        sleep: Suspension used between attempts (seconds)

    Returns:
        The value of the first successful attempt

    Raises:
        Exception: The error of the attempt on which retrying stopped
    """
    return await _run_session(action, schedule, handler or retry_on_all_errors(), _ON_ERRORS, sleep)


async def retrying_on_failures(
    action: Action[T],
    schedule: ScheduleLike,
    handler: ValueHandler[T],
    *,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run ``action``, retrying while the handler finds its value unsatisfactory.

    Errors raised by the action are not retried; they propagate immediately.
    When the handler stops or the schedule runs out, the latest value is
    returned.
    """
    return await _run_session(action, schedule, handler, _ON_VALUES, sleep)


async def retrying_on_failures_and_errors(
    action: Action[T],
    schedule: ScheduleLike,
    handler: ErrorOrValueHandler[T],
    *,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run ``action``, showing every outcome (Ok value or Err exception) to the handler.

    When retrying stops, the latest value is returned or the latest error re-raised.
    """
    return await _run_session(action, schedule, handler, _ON_OUTCOMES, sleep)


def retryable(
    schedule: ScheduleLike,
    handler: ErrorHandler[Any] | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator form of ``retrying_on_errors`` for coroutine functions.

    Example:
        >>> @retryable(schedule.limit_retries(3, schedule.constant(0.5)))
        ... async def fetch(url: str) -> bytes:
        ...     ...
    """
    def decorator(fn: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await retrying_on_errors(lambda: fn(*args, **kwargs), schedule, handler, sleep=sleep)
        return wrapper
    return decorator


# The core entry point under its short name
run = retrying_on_errors
