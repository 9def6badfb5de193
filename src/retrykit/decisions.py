"""Decision types produced by policies and handlers.

Two small tagged unions, matched structurally by the engine:

- PolicyDecision: what a schedule or policy wants for the next step
  (``GiveUp`` or ``DelayAndRetry(delay)``)
- HandlerDecision: what a handler wants after inspecting an attempt
  (``Stop``, ``Continue`` or ``Adapt(new_action)``)

Example:
    >>> match decision:
    ...     case DelayAndRetry(delay=d):
    ...         print(f"retrying in {d}")
    ...     case GiveUp():
    ...         print("giving up")
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Generic, TypeAlias, TypeVar, Union

from .duration import format_delay

A = TypeVar("A")


# ─────────────────────────────────────────────────────────────────────────────
# Policy decisions
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class GiveUp:
    """Stop retrying."""

    def __str__(self) -> str:
        return "GiveUp"


@dataclass(frozen=True, slots=True)
class DelayAndRetry:
    """Wait ``delay`` and then retry."""

    delay: timedelta

    def __str__(self) -> str:
        return f"DelayAndRetry({format_delay(self.delay)})"


PolicyDecision: TypeAlias = GiveUp | DelayAndRetry

GIVE_UP = GiveUp()


# ─────────────────────────────────────────────────────────────────────────────
# Handler decisions
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Stop:
    """Finished: the attempt succeeded, or its error is not worth retrying."""


@dataclass(frozen=True, slots=True)
class Continue:
    """Retry the same action, if the schedule still allows it."""


@dataclass(frozen=True, slots=True)
class Adapt(Generic[A]):
    """Switch to ``new_action`` for this and all later retries, if the schedule allows it."""

    new_action: A


HandlerDecision: TypeAlias = Union[Stop, Continue, Adapt[A]]

STOP = Stop()
CONTINUE = Continue()
