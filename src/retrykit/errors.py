"""Configuration errors for retrykit.

Retry sessions never raise errors of their own: when retrying stops, the
error of the last attempt is re-raised unchanged. The only exceptions defined
here are raised eagerly while building schedules and policies.
"""

from __future__ import annotations


class RetryConfigError(ValueError):
    """Invalid schedule, policy or settings value (e.g. a negative delay)."""
