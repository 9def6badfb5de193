"""Outcome-aware retry policies and their algebra.

A RetryPolicy looks at the latest result (an error, a value, or an Outcome,
depending on how the engine is driven) together with the session's
RetryStatus and decides whether to give up or delay and retry.

Policies compose:
- meet (``&``): the more conservative of two; give up if either does,
  otherwise wait the shorter delay
- join (``|``): the more liberal of two; give up only if both do,
  otherwise wait the longer delay
- map_delay: transform the delay of every retry

Example:
    >>> from retrykit import policies
    >>> policy = policies.exponential_backoff(0.1) & policies.constant_delay(2)
    >>> str(policy)
    'meet(exponential_backoff(base=100ms), constant_delay(2s))'
"""

from __future__ import annotations

from collections.abc import Awaitable
from datetime import timedelta
from typing import Callable, Generic, TypeVar

from .decisions import GIVE_UP, DelayAndRetry, GiveUp, PolicyDecision
from .status import RetryStatus

R = TypeVar("R")

DecideFn = Callable[[R, RetryStatus], Awaitable[PolicyDecision]]


class RetryPolicy(Generic[R]):
    """A named, possibly effectful decision function ``(result, status) -> PolicyDecision``.

    Immutable: every combinator returns a new policy whose description embeds
    the descriptions of its inputs.
    """

    __slots__ = ("_decide", "_description")

    def __init__(self, decide: DecideFn[R], description: str = "<retry policy>") -> None:
        self._decide = decide
        self._description = description

    @classmethod
    def lift(cls, decide: Callable[[R, RetryStatus], PolicyDecision], description: str = "<retry policy>") -> RetryPolicy[R]:
        """Wrap a synchronous decision function."""
        async def lifted(result: R, status: RetryStatus) -> PolicyDecision:
            return decide(result, status)
        return cls(lifted, description)

    async def decide_next_retry(self, result: R, status: RetryStatus) -> PolicyDecision:
        return await self._decide(result, status)

    @property
    def description(self) -> str:
        return self._description

    def with_description(self, description: str) -> RetryPolicy[R]:
        return RetryPolicy(self._decide, description)

    # ─────────────────────────────────────────────────────────────────
    # Algebra
    # ─────────────────────────────────────────────────────────────────

    def meet(self, other: RetryPolicy[R]) -> RetryPolicy[R]:
        """Give up if either policy gives up, otherwise delay by the shorter of the two delays."""
        async def decide(result: R, status: RetryStatus) -> PolicyDecision:
            mine = await self.decide_next_retry(result, status)
            theirs = await other.decide_next_retry(result, status)
            match mine, theirs:
                case DelayAndRetry(delay=a), DelayAndRetry(delay=b):
                    return DelayAndRetry(min(a, b))
                case _:
                    return GIVE_UP
        return RetryPolicy(decide, f"meet({self}, {other})")

    def join(self, other: RetryPolicy[R]) -> RetryPolicy[R]:
        """Give up only if both policies give up, otherwise delay by the longer of the retrying delays."""
        async def decide(result: R, status: RetryStatus) -> PolicyDecision:
            mine = await self.decide_next_retry(result, status)
            theirs = await other.decide_next_retry(result, status)
            match mine, theirs:
                case DelayAndRetry(delay=a), DelayAndRetry(delay=b):
                    return DelayAndRetry(max(a, b))
                case DelayAndRetry(), GiveUp():
                    return mine
                case GiveUp(), _:
                    return theirs
        return RetryPolicy(decide, f"join({self}, {other})")

    def map_delay(self, f: Callable[[timedelta], timedelta], name: str = "<function>") -> RetryPolicy[R]:
        """Apply ``f`` to the delay of every DelayAndRetry decision."""
        async def decide(result: R, status: RetryStatus) -> PolicyDecision:
            match await self.decide_next_retry(result, status):
                case DelayAndRetry(delay=d):
                    return DelayAndRetry(f(d))
                case decision:
                    return decision
        return RetryPolicy(decide, f"map_delay({name}, {self})")

    __and__ = meet
    __or__ = join

    def __str__(self) -> str:
        return self._description

    def __repr__(self) -> str:
        return f"RetryPolicy({self._description})"
