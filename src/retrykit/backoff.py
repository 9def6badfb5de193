"""Backoff strategies: closed-form delay for a given retry index.

Provides pluggable delay calculation for retry attempts:
- ConstantBackoff: Fixed delay
- ExponentialBackoff: base * 2^n
- FibonacciBackoff: base * fib(n), with fib(0) = fib(1) = 1
- FullJitter: uniform draw from [0, base * 2^n] (AWS "full jitter")

Every strategy computes index n directly instead of accumulating state, so
arbitrarily large indices cost the same and saturate at MAX_DELAY instead of
overflowing. Indices are 0-indexed (first retry = attempt 0).
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from fractions import Fraction
from datetime import timedelta
from typing import Callable, Protocol, runtime_checkable

from .duration import MAX_MICROS, as_delay, format_delay, from_micros, safe_multiply, to_micros

# Beyond these indices any non-zero base saturates, so larger ones are clamped
_MAX_EXPONENT = MAX_MICROS.bit_length()
_MAX_FIB_INDEX = 2 * _MAX_EXPONENT  # fib(n) >= 2^(n/2) for n >= 2


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation."""

    def delay(self, attempt: int) -> timedelta:
        """Delay before retry number ``attempt`` (0-indexed)."""
        ...


def _pow2(attempt: int) -> int:
    return 1 << min(attempt, _MAX_EXPONENT)


def fib(n: int) -> int:
    """fib(0) = fib(1) = 1, fib(n) = fib(n-1) + fib(n-2); O(log n) fast doubling."""
    def doubling(k: int) -> tuple[int, int]:
        # (F(k), F(k+1)) for the standard sequence F(0) = 0, F(1) = 1
        if k == 0:
            return 0, 1
        a, b = doubling(k >> 1)
        c, d = a * (2 * b - a), a * a + b * b
        return (d, c + d) if k & 1 else (c, d)

    return doubling(n + 1)[0]


@dataclass(frozen=True, slots=True)
class ConstantBackoff:
    """Fixed delay between retries.

    Attributes:
        interval: Fixed delay (timedelta or seconds)
    """

    interval: timedelta

    def __post_init__(self) -> None:
        object.__setattr__(self, "interval", as_delay(self.interval, name="interval"))

    def delay(self, attempt: int) -> timedelta:
        return self.interval

    def __str__(self) -> str:
        return f"constant({format_delay(self.interval)})"


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Each delay is twice as long as the previous one.

    Delay = base * 2^attempt, saturating at MAX_DELAY.

    Attributes:
        base: Delay of the first retry
    """

    base: timedelta

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", as_delay(self.base, name="base"))

    def delay(self, attempt: int) -> timedelta:
        return safe_multiply(self.base, _pow2(attempt))

    def __str__(self) -> str:
        return f"exponential_backoff(base={format_delay(self.base)})"


@dataclass(frozen=True, slots=True)
class FibonacciBackoff:
    """Delays follow the fibonacci sequence: base, base, 2*base, 3*base, 5*base, ...

    Attributes:
        base: Delay of the first two retries
    """

    base: timedelta

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", as_delay(self.base, name="base"))

    def delay(self, attempt: int) -> timedelta:
        return safe_multiply(self.base, fib(min(attempt, _MAX_FIB_INDEX)))

    def __str__(self) -> str:
        return f"fibonacci_backoff(base={format_delay(self.base)})"


@dataclass(frozen=True, slots=True)
class FullJitter:
    """AWS-style full jitter backoff.

    Each delay is drawn uniformly from [0, base * 2^attempt]. The draw happens
    on every call to ``delay``, so concurrent retriers decorrelate and no two
    retries of one session share a draw.

    Reference: https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/

    Attributes:
        base: Upper bound of the first retry's delay
        uniform: Randomness source returning a float in [0, 1)
    """

    base: timedelta
    uniform: Callable[[], float] = field(default=random.random, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", as_delay(self.base, name="base"))

    def delay(self, attempt: int) -> timedelta:
        ceiling = to_micros(safe_multiply(self.base, _pow2(attempt)))
        # Exact rational product; a float product can round past the ceiling
        return from_micros(math.floor(ceiling * Fraction(self.uniform())))

    def __str__(self) -> str:
        return f"full_jitter(base={format_delay(self.base)})"

