"""Retry session bookkeeping.

RetryStatus is the immutable progress of one session; RetryDetails is the
read-only snapshot handed to handlers (and their log callbacks) for every
inspected attempt.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from .decisions import DelayAndRetry, GiveUp, PolicyDecision
from .duration import ZERO, format_delay, saturating_add


@dataclass(frozen=True, slots=True)
class RetryStatus:
    """Progress of a retry session.

    Attributes:
        retries_so_far: Retries performed so far (attempts so far minus one)
        cumulative_delay: Total time spent waiting between attempts
    """

    retries_so_far: int = 0
    cumulative_delay: timedelta = field(default=ZERO)

    @classmethod
    def initial(cls) -> RetryStatus:
        return NO_RETRIES_YET

    def add_retry(self, delay: timedelta) -> RetryStatus:
        """Status after one more retry that waited ``delay``."""
        return RetryStatus(self.retries_so_far + 1, saturating_add(self.cumulative_delay, delay))

    def __str__(self) -> str:
        return f"RetryStatus(retries={self.retries_so_far}, cumulative_delay={format_delay(self.cumulative_delay)})"


NO_RETRIES_YET = RetryStatus()


@dataclass(frozen=True, slots=True)
class RetryDetails:
    """Information about a retry session, useful for logging.

    Attributes:
        retries_so_far: Retries that have happened so far. The number of
            attempts so far is one more than this.
        cumulative_delay: Total time spent delaying between retries so far
        next_step_if_unsuccessful: What the schedule will do next if the
            latest attempt is not deemed successful
    """

    retries_so_far: int
    cumulative_delay: timedelta
    next_step_if_unsuccessful: PolicyDecision

    @classmethod
    def of(cls, status: RetryStatus, next_step: PolicyDecision) -> RetryDetails:
        return cls(status.retries_so_far, status.cumulative_delay, next_step)

    @property
    def attempts(self) -> int:
        return self.retries_so_far + 1

    @property
    def gives_up(self) -> bool:
        """Whether an unsuccessful attempt ends the session."""
        return isinstance(self.next_step_if_unsuccessful, GiveUp)

    @property
    def next_delay(self) -> timedelta | None:
        step = self.next_step_if_unsuccessful
        return step.delay if isinstance(step, DelayAndRetry) else None
