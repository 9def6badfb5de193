"""Tests for index-based schedules and their combinators."""

from __future__ import annotations

import itertools
from datetime import timedelta

import pytest

from retrykit import MAX_DELAY, RetryConfigError, Schedule, schedule
from retrykit.backoff import ExponentialBackoff

SECOND = timedelta(seconds=1)
MS = timedelta(milliseconds=1)


def test_constant_schedule_is_infinite() -> None:
    assert schedule.constant(0.5).take(100) == [500 * MS] * 100


def test_exponential_schedule() -> None:
    assert schedule.exponential_backoff(SECOND).take(4) == [SECOND, 2 * SECOND, 4 * SECOND, 8 * SECOND]


def test_exponential_schedule_saturates() -> None:
    delays = schedule.exponential_backoff(SECOND).take(101)
    assert delays[100] == MAX_DELAY
    assert all(d > timedelta(0) for d in delays)


def test_fibonacci_schedule() -> None:
    assert schedule.fibonacci_backoff(SECOND).take(7) == [m * SECOND for m in (1, 1, 2, 3, 5, 8, 13)]


def test_schedules_are_reiterable() -> None:
    """Each iteration starts over, so one schedule can drive many sessions."""
    s = schedule.delays(1, 2, 3)
    assert list(s) == list(s) == [SECOND, 2 * SECOND, 3 * SECOND]


def test_full_jitter_draws_lazily() -> None:
    """Nothing is drawn until an element is requested, and each element draws once."""
    calls: list[int] = []

    def uniform() -> float:
        calls.append(1)
        return 0.5

    delays = iter(schedule.full_jitter(SECOND, uniform=uniform))
    assert calls == []
    assert next(delays) == 500 * MS
    assert next(delays) == SECOND
    assert len(calls) == 2


@pytest.mark.parametrize("cap", [0, 1, 3, 10])
def test_cap_delay_elementwise(cap: int) -> None:
    base = schedule.fibonacci_backoff(SECOND)
    capped = schedule.cap_delay(cap, base)
    assert capped.take(20) == [min(d, cap * SECOND) for d in base.take(20)]


def test_limit_retries_by_cumulative_delay() -> None:
    s = schedule.limit_retries_by_cumulative_delay(timedelta(milliseconds=2500), [SECOND, SECOND, SECOND])
    assert list(s) == [SECOND, SECOND]


def test_limit_retries_by_cumulative_delay_inclusive_threshold() -> None:
    s = schedule.limit_retries_by_cumulative_delay(3, schedule.constant(1))
    assert list(s) == [SECOND] * 3


def test_limit_retries_by_cumulative_delay_finite_on_infinite_input() -> None:
    s = schedule.exponential_backoff(100 * MS).limit_by_cumulative_delay(1)
    # 100 + 200 + 400 = 700ms; adding 800ms would exceed 1s
    assert list(s) == [100 * MS, 200 * MS, 400 * MS]


def test_limit_retries() -> None:
    assert schedule.constant(1).limit(3).take(10) == [SECOND] * 3
    assert list(schedule.limit_retries(0, schedule.constant(1))) == []
    with pytest.raises(RetryConfigError):
        schedule.limit_retries(-1, schedule.constant(1))


def test_schedule_of_sources() -> None:
    assert Schedule.of([1, 2]).take(5) == [SECOND, 2 * SECOND]
    assert Schedule.of(ExponentialBackoff(SECOND)).take(2) == [SECOND, 2 * SECOND]
    lazy = Schedule.of(itertools.repeat(0.1, 2))
    assert list(lazy) == [100 * MS, 100 * MS]
    s = schedule.constant(1)
    assert Schedule.of(s) is s


def test_schedule_rejects_negative_delays() -> None:
    with pytest.raises(RetryConfigError):
        schedule.delays(1, -1)


def test_descriptions_compose() -> None:
    s = schedule.limit_retries_by_cumulative_delay(30, schedule.cap_delay(5, schedule.exponential_backoff(0.1)))
    assert str(s) == "limit_retries_by_cumulative_delay(threshold=30s, cap_delay(cap=5s, exponential_backoff(base=100ms)))"
    assert str(schedule.delays(0.01, 0.02)) == "delays(10ms, 20ms)"
    assert str(schedule.full_jitter(1).limit(2)) == "limit_retries(max_retries=2, full_jitter(base=1s))"


@pytest.mark.parametrize("text", ["1s", b"1", bytearray(b"12")])
def test_schedule_rejects_text(text: object) -> None:
    with pytest.raises(RetryConfigError):
        Schedule.of(text)  # type: ignore[arg-type]
    with pytest.raises(RetryConfigError):
        schedule.cap_delay(1, text)  # type: ignore[arg-type]
