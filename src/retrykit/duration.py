"""Overflow-safe delay arithmetic.

Delays are ``datetime.timedelta`` values. Backoff math multiplies in Python's
arbitrary-precision integers (microseconds), saturates at ``MAX_DELAY`` and
only then narrows back to a ``timedelta``, so large retry indices never
overflow or wrap.

Example:
    >>> safe_multiply(timedelta(seconds=1), 2 ** 100) == MAX_DELAY
    True
    >>> format_delay(timedelta(milliseconds=250))
    '250ms'
"""

from __future__ import annotations

from datetime import timedelta
from typing import TypeAlias

from .errors import RetryConfigError

DelayLike: TypeAlias = "timedelta | int | float"

ZERO = timedelta(0)
MAX_DELAY = timedelta.max

# Largest delay expressed in whole microseconds
MAX_MICROS: int = (MAX_DELAY.days * 86_400 + MAX_DELAY.seconds) * 1_000_000 + MAX_DELAY.microseconds


def to_micros(delay: timedelta) -> int:
    """Exact integer microseconds of a delay (no float rounding)."""
    return (delay.days * 86_400 + delay.seconds) * 1_000_000 + delay.microseconds


def from_micros(micros: int) -> timedelta:
    """Narrow an arbitrary-precision microsecond count to a timedelta, saturating at MAX_DELAY."""
    return MAX_DELAY if micros >= MAX_MICROS else timedelta(microseconds=max(micros, 0))


def as_delay(value: DelayLike, *, name: str = "delay") -> timedelta:
    """Coerce seconds or a timedelta to a non-negative timedelta.

    Raises:
        RetryConfigError: If the value is negative or not a duration
    """
    if isinstance(value, bool) or not isinstance(value, (timedelta, int, float)):
        raise RetryConfigError(f"{name} must be a timedelta or seconds, got {type(value).__name__}")
    if isinstance(value, timedelta):
        delay = value
    elif value < 0:
        raise RetryConfigError(f"{name} must be non-negative, got {value}s")
    else:
        try:
            delay = timedelta(seconds=value)
        except OverflowError:
            delay = MAX_DELAY
    if delay < ZERO:
        raise RetryConfigError(f"{name} must be non-negative, got {format_delay(delay)}")
    return delay


def safe_multiply(delay: timedelta, multiplier: int) -> timedelta:
    """Multiply a delay by a non-negative integer, saturating at MAX_DELAY."""
    return from_micros(to_micros(delay) * multiplier)


def saturating_add(a: timedelta, b: timedelta) -> timedelta:
    return from_micros(to_micros(a) + to_micros(b))


def format_delay(delay: timedelta) -> str:
    """Compact human-readable delay: ``0s``, ``250us``, ``100ms``, ``2s``, ``1.5s``."""
    micros = to_micros(delay)
    sign, micros = ("-", -micros) if micros < 0 else ("", micros)
    if micros % 1_000_000 == 0:
        return f"{sign}{micros // 1_000_000}s"
    if micros >= 1_000_000:
        return f"{sign}{micros / 1_000_000:g}s"
    if micros % 1_000 == 0:
        return f"{sign}{micros // 1_000}ms"
    return f"{sign}{micros}us"
