"""Index-based retry schedules ("blueprints").

A Schedule is a lazily produced, possibly infinite sequence of delays. The
engine consumes it positionally: the i-th retry waits the i-th delay, and a
finite schedule caps the number of retries at its length.

Schedules are re-iterable. Each ``iter()`` starts a fresh generator, so one
schedule can drive any number of sessions (including concurrent ones) and
jittered delays are drawn at the moment the engine asks for them.

Example:
    >>> schedule = limit_retries_by_cumulative_delay(30, cap_delay(5, exponential_backoff(0.1)))
    >>> str(schedule)
    'limit_retries_by_cumulative_delay(threshold=30s, cap_delay(cap=5s, exponential_backoff(base=100ms)))'
    >>> [format_delay(d) for d in schedule.take(3)]
    ['100ms', '200ms', '400ms']
"""

from __future__ import annotations

import itertools
import random
from collections.abc import Callable, Iterable, Iterator
from datetime import timedelta

from .backoff import Backoff, ConstantBackoff, ExponentialBackoff, FibonacciBackoff, FullJitter
from .duration import ZERO, DelayLike, as_delay, format_delay, saturating_add
from .errors import RetryConfigError


class Schedule:
    """Re-iterable lazy sequence of delays with a composable description."""

    __slots__ = ("_factory", "_description")

    def __init__(self, factory: Callable[[], Iterator[timedelta]], description: str) -> None:
        self._factory = factory
        self._description = description

    @classmethod
    def of(cls, source: Schedule | Backoff | Iterable[DelayLike]) -> Schedule:
        """Build a schedule from a Backoff (infinite) or an iterable of delays.

        Sequences (lists, tuples) are copied and validated up front. Other
        iterables are read lazily; a one-shot iterator can only drive a single
        session.
        """
        if isinstance(source, Schedule):
            return source
        if isinstance(source, Backoff):
            return from_backoff(source)
        if isinstance(source, (str, bytes, bytearray)):
            raise RetryConfigError(f"cannot build a schedule from {type(source).__name__}; pass delays, not text")
        if isinstance(source, (list, tuple, range)):
            return delays(*source)
        if isinstance(source, Iterable):
            return cls(lambda: (as_delay(d) for d in source), f"delays(<{type(source).__name__}>)")
        raise RetryConfigError(f"cannot build a schedule from {type(source).__name__}")

    def __iter__(self) -> Iterator[timedelta]:
        return self._factory()

    def take(self, n: int) -> list[timedelta]:
        """First ``n`` delays (fewer if the schedule is shorter)."""
        return list(itertools.islice(self, n))

    # Fluent combinators
    def cap(self, cap: DelayLike) -> Schedule:
        return cap_delay(cap, self)

    def limit(self, max_retries: int) -> Schedule:
        return limit_retries(max_retries, self)

    def limit_by_cumulative_delay(self, threshold: DelayLike) -> Schedule:
        return limit_retries_by_cumulative_delay(threshold, self)

    def __str__(self) -> str:
        return self._description

    def __repr__(self) -> str:
        return f"Schedule({self._description})"


# ─────────────────────────────────────────────────────────────────────────────
# Builders
# ─────────────────────────────────────────────────────────────────────────────


def from_backoff(backoff: Backoff) -> Schedule:
    """Infinite schedule whose n-th element is ``backoff.delay(n)``, computed on demand."""
    return Schedule(lambda: (backoff.delay(n) for n in itertools.count()), str(backoff))


def delays(*values: DelayLike) -> Schedule:
    """Finite schedule of explicit delays."""
    fixed = tuple(as_delay(v) for v in values)
    return Schedule(lambda: iter(fixed), f"delays({', '.join(format_delay(d) for d in fixed)})")


def constant(delay: DelayLike) -> Schedule:
    return from_backoff(ConstantBackoff(delay))


def exponential_backoff(base: DelayLike) -> Schedule:
    return from_backoff(ExponentialBackoff(base))


def fibonacci_backoff(base: DelayLike) -> Schedule:
    return from_backoff(FibonacciBackoff(base))


def full_jitter(base: DelayLike, *, uniform: Callable[[], float] = random.random) -> Schedule:
    return from_backoff(FullJitter(base, uniform))


# ─────────────────────────────────────────────────────────────────────────────
# Combinators
# ─────────────────────────────────────────────────────────────────────────────


def cap_delay(cap: DelayLike, schedule: Schedule | Backoff | Iterable[DelayLike]) -> Schedule:
    """Set an upper bound on every individual delay."""
    limit, inner = as_delay(cap, name="cap"), Schedule.of(schedule)
    return Schedule(lambda: (min(d, limit) for d in inner), f"cap_delay(cap={format_delay(limit)}, {inner})")


def limit_retries(max_retries: int, schedule: Schedule | Backoff | Iterable[DelayLike]) -> Schedule:
    """Keep only the first ``max_retries`` delays."""
    if max_retries < 0:
        raise RetryConfigError(f"max_retries must be non-negative, got {max_retries}")
    inner = Schedule.of(schedule)
    return Schedule(lambda: itertools.islice(inner, max_retries), f"limit_retries(max_retries={max_retries}, {inner})")


def limit_retries_by_cumulative_delay(
    threshold: DelayLike, schedule: Schedule | Backoff | Iterable[DelayLike],
) -> Schedule:
    """Stop at the first delay that would push the total time spent waiting past ``threshold``.

    Always finite for a positive-delay schedule, even an infinite one:
    ``[1s, 1s, 1s]`` with a 2.5s threshold keeps ``[1s, 1s]``.
    """
    limit, inner = as_delay(threshold, name="threshold"), Schedule.of(schedule)

    def bounded() -> Iterator[timedelta]:
        total = ZERO
        for delay in inner:
            total = saturating_add(total, delay)
            if total > limit:
                return
            yield delay

    return Schedule(bounded, f"limit_retries_by_cumulative_delay(threshold={format_delay(limit)}, {inner})")
