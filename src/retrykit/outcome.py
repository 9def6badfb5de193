"""Captured outcome of a single attempt.

Result is a discriminated union of success (Ok) and failure (Err). The engine
runs every attempt through ``attempt()``, which turns a raised ``Exception``
into ``Err`` and a returned value into ``Ok``. Cancellation
(``asyncio.CancelledError``, a ``BaseException``) is never captured, so it
can never reach a handler as an ordinary failure.

Example:
    >>> outcome = await attempt(fetch_user)
    >>> outcome.match(ok=lambda u: u.name, err=lambda e: f"failed: {e}")
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Callable, Generic, TypeAlias, TypeVar, cast

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type
U = TypeVar("U")


class Result(Generic[T, E]):
    """Ok(value) or Err(error). Immutable; use ``Ok()`` / ``Err()`` to construct."""

    __slots__ = ("_value", "_is_ok")
    __match_args__ = ("_value",)

    def __init__(self, value: T | E, is_ok: bool) -> None:
        self._value: T | E = value
        self._is_ok: bool = is_ok

    def is_ok(self) -> bool:
        return self._is_ok

    def is_err(self) -> bool:
        return not self._is_ok

    def unwrap(self) -> T:
        """Extract Ok value.

        Raises:
            RuntimeError: If Result is Err
        """
        if self._is_ok:
            return cast(T, self._value)
        raise RuntimeError(f"Called unwrap() on Err value: {self._value!r}")

    def unwrap_err(self) -> E:
        """Extract Err value.

        Raises:
            RuntimeError: If Result is Ok
        """
        if not self._is_ok:
            return cast(E, self._value)
        raise RuntimeError(f"Called unwrap_err() on Ok value: {self._value!r}")

    def ok(self) -> T | None:
        return cast(T, self._value) if self._is_ok else None

    def err(self) -> E | None:
        return cast(E, self._value) if not self._is_ok else None

    def get_or_raise(self: Result[T, BaseException]) -> T:
        """Return the Ok value or raise the captured exception itself (not a copy, not wrapped)."""
        if self._is_ok:
            return cast(T, self._value)
        raise cast(BaseException, self._value)

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        if self._is_ok:
            return Ok(f(cast(T, self._value)))
        return Err(cast(E, self._value))

    def match(self, *, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        """Exhaustive case analysis over both variants."""
        if self._is_ok:
            return ok(cast(T, self._value))
        return err(cast(E, self._value))

    def __bool__(self) -> bool:
        return self._is_ok

    def __repr__(self) -> str:
        return f"{'Ok' if self._is_ok else 'Err'}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self._is_ok == other._is_ok and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._is_ok, self._value))


def Ok(value: T) -> Result[T, E]:  # noqa: N802
    """Construct Ok variant (success)."""
    return Result(value, is_ok=True)


def Err(error: E) -> Result[T, E]:  # noqa: N802
    """Construct Err variant (failure)."""
    return Result(error, is_ok=False)


# What one attempt produces: its value, or the exception it raised
Outcome: TypeAlias = Result[T, Exception]


async def attempt(action: Callable[[], Awaitable[T]]) -> Outcome[T]:
    """Run ``action`` once, capturing its value or exception.

    The action runs in the caller's task, so cancelling the caller cancels the
    in-flight action rather than just abandoning it.
    """
    try:
        return Ok(await action())
    except Exception as e:
        return Err(e)
