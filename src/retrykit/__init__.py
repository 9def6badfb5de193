"""retrykit - Composable retry and backoff for asyncio.

Wrap a fallible or unsatisfactory async action and retry it until it
succeeds, a handler stops it, or a backoff schedule runs out.

Quick Start:
    >>> from retrykit import retrying_on_errors, schedule, handlers
    >>>
    >>> plan = schedule.limit_retries(5, schedule.cap_delay(2, schedule.exponential_backoff(0.1)))
    >>> value = await retrying_on_errors(
    ...     fetch_quote,
    ...     plan,
    ...     handlers.retry_on_some_errors(lambda e: isinstance(e, TimeoutError), log=handlers.log_retry()),
    ... )

Outcome-aware policies:
    >>> from retrykit import policies
    >>> policy = policies.limit_retries_by_cumulative_delay(30, policies.fibonacci_backoff(0.2))
    >>> value = await retrying_on_errors(fetch_quote, policy)

Swapping the action mid-session:
    >>> async def fall_back(error, details):
    ...     return Adapt(fetch_quote_from_mirror) if details.retries_so_far >= 2 else CONTINUE
"""

from . import handlers, policies, schedule
from .backoff import Backoff, ConstantBackoff, ExponentialBackoff, FibonacciBackoff, FullJitter
from .decisions import (
    CONTINUE,
    GIVE_UP,
    STOP,
    Adapt,
    Continue,
    DelayAndRetry,
    GiveUp,
    HandlerDecision,
    PolicyDecision,
    Stop,
)
from .duration import MAX_DELAY, as_delay, format_delay, safe_multiply
from .engine import (
    retryable,
    retrying_on_errors,
    retrying_on_failures,
    retrying_on_failures_and_errors,
    run,
)
from .errors import RetryConfigError
from .handlers import (
    ErrorHandler,
    ErrorOrValueHandler,
    ResultHandler,
    ValueHandler,
    log_retry,
    noop,
    retry_on_all_errors,
    retry_on_errors_until_successful,
    retry_on_some_errors,
    retry_until_successful,
)
from .outcome import Err, Ok, Outcome, Result
from .policy import RetryPolicy
from .schedule import Schedule
from .settings import RetrySettings, clear_settings_cache, default_schedule, get_settings
from .status import NO_RETRIES_YET, RetryDetails, RetryStatus

__version__ = "0.1.0"

__all__ = [
    # Modules
    "handlers",
    "policies",
    "schedule",
    # Engine
    "run",
    "retrying_on_errors",
    "retrying_on_failures",
    "retrying_on_failures_and_errors",
    "retryable",
    # Status
    "RetryStatus",
    "RetryDetails",
    "NO_RETRIES_YET",
    # Decisions
    "PolicyDecision",
    "GiveUp",
    "DelayAndRetry",
    "GIVE_UP",
    "HandlerDecision",
    "Stop",
    "Continue",
    "Adapt",
    "STOP",
    "CONTINUE",
    # Schedules & policies
    "Schedule",
    "RetryPolicy",
    "Backoff",
    "ConstantBackoff",
    "ExponentialBackoff",
    "FibonacciBackoff",
    "FullJitter",
    # Handlers
    "ResultHandler",
    "ErrorHandler",
    "ValueHandler",
    "ErrorOrValueHandler",
    "retry_on_all_errors",
    "retry_on_some_errors",
    "retry_until_successful",
    "retry_on_errors_until_successful",
    "noop",
    "log_retry",
    # Outcomes
    "Result",
    "Ok",
    "Err",
    "Outcome",
    # Durations
    "MAX_DELAY",
    "as_delay",
    "safe_multiply",
    "format_delay",
    # Config & errors
    "RetrySettings",
    "get_settings",
    "clear_settings_cache",
    "default_schedule",
    "RetryConfigError",
]
