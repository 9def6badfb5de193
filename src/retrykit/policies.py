"""Built-in retry policies.

Backoff policies reuse the closed-form strategies from ``retrykit.backoff``
and index them by ``status.retries_so_far``; limiting policies wrap another
policy and turn some of its retries into GiveUp.

Example:
    >>> from retrykit import policies
    >>> policy = policies.limit_retries_by_delay(
    ...     threshold=10,
    ...     policy=policies.cap_delay(5, policies.fibonacci_backoff(0.5)),
    ... )
"""

from __future__ import annotations

import random
from typing import Any, Callable, TypeVar

from .backoff import Backoff, ExponentialBackoff, FibonacciBackoff, FullJitter
from .decisions import GIVE_UP, DelayAndRetry, PolicyDecision
from .duration import ZERO, DelayLike, as_delay, format_delay, saturating_add
from .errors import RetryConfigError
from .policy import RetryPolicy
from .status import RetryStatus

R = TypeVar("R")


def always_give_up() -> RetryPolicy[Any]:
    """Never retry. Only really useful combined with other policies."""
    return RetryPolicy.lift(lambda _, __: GIVE_UP, "always_give_up")


def constant_delay(delay: DelayLike) -> RetryPolicy[Any]:
    """Delay by a constant amount before each retry. Never give up."""
    d = as_delay(delay)
    return RetryPolicy.lift(lambda _, __: DelayAndRetry(d), f"constant_delay({format_delay(d)})")


def from_backoff(backoff: Backoff) -> RetryPolicy[Any]:
    """Delay by ``backoff.delay(retries_so_far)``. Never give up."""
    return RetryPolicy.lift(lambda _, status: DelayAndRetry(backoff.delay(status.retries_so_far)), str(backoff))


def exponential_backoff(base: DelayLike) -> RetryPolicy[Any]:
    """Each delay is twice as long as the previous one. Never give up."""
    return from_backoff(ExponentialBackoff(base))


def fibonacci_backoff(base: DelayLike) -> RetryPolicy[Any]:
    return from_backoff(FibonacciBackoff(base))


def full_jitter(base: DelayLike, *, uniform: Callable[[], float] = random.random) -> RetryPolicy[Any]:
    """AWS "full jitter" backoff; a fresh random draw on every decision."""
    return from_backoff(FullJitter(base, uniform))


def limit_retries(max_retries: int) -> RetryPolicy[Any]:
    """Retry without delay, giving up after ``max_retries`` retries."""
    if max_retries < 0:
        raise RetryConfigError(f"max_retries must be non-negative, got {max_retries}")

    def decide(_: object, status: RetryStatus) -> PolicyDecision:
        return GIVE_UP if status.retries_so_far >= max_retries else DelayAndRetry(ZERO)

    return RetryPolicy.lift(decide, f"limit_retries(max_retries={max_retries})")


def cap_delay(cap: DelayLike, policy: RetryPolicy[R]) -> RetryPolicy[R]:
    """Set an upper bound on any individual delay produced by ``policy``."""
    limit = as_delay(cap, name="cap")
    return policy.meet(constant_delay(limit)).with_description(f"cap_delay(cap={format_delay(limit)}, {policy})")


def limit_retries_by_delay(threshold: DelayLike, policy: RetryPolicy[R]) -> RetryPolicy[R]:
    """Give up instead of retrying once ``policy`` asks for a single delay longer than ``threshold``.

    To bound the total time spent waiting, use limit_retries_by_cumulative_delay.
    """
    limit = as_delay(threshold, name="threshold")

    async def decide(result: R, status: RetryStatus) -> PolicyDecision:
        match await policy.decide_next_retry(result, status):
            case DelayAndRetry(delay=d) as decision if d <= limit:
                return decision
            case _:
                return GIVE_UP

    return RetryPolicy(decide, f"limit_retries_by_delay(threshold={format_delay(limit)}, {policy})")


def limit_retries_by_cumulative_delay(threshold: DelayLike, policy: RetryPolicy[R]) -> RetryPolicy[R]:
    """Give up once the cumulative delay, including the proposed one, reaches ``threshold``."""
    limit = as_delay(threshold, name="threshold")

    async def decide(result: R, status: RetryStatus) -> PolicyDecision:
        match await policy.decide_next_retry(result, status):
            case DelayAndRetry(delay=d) as decision if saturating_add(status.cumulative_delay, d) < limit:
                return decision
            case _:
                return GIVE_UP

    return RetryPolicy(decide, f"limit_retries_by_cumulative_delay(threshold={format_delay(limit)}, {policy})")


def dynamic(choose: Callable[[R], RetryPolicy[R]]) -> RetryPolicy[R]:
    """Pick a policy based on the latest result, then let it decide.

    Example:
        >>> policy = dynamic(lambda e: slow if isinstance(e, RateLimited) else fast)
    """
    async def decide(result: R, status: RetryStatus) -> PolicyDecision:
        return await choose(result).decide_next_retry(result, status)

    return RetryPolicy(decide, "dynamic(<function>)")


__all__ = [
    "always_give_up",
    "constant_delay",
    "from_backoff",
    "exponential_backoff",
    "fibonacci_backoff",
    "full_jitter",
    "limit_retries",
    "cap_delay",
    "limit_retries_by_delay",
    "limit_retries_by_cumulative_delay",
    "dynamic",
]

