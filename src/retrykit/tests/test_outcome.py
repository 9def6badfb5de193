"""Tests for attempt outcomes.

Validates:
- Ok/Err accessors and case analysis
- Functor identity and composition for map
- attempt() captures exceptions but never cancellation
"""

from __future__ import annotations

import asyncio
from typing import Callable

import pytest

from retrykit import Err, Ok, Outcome, Result
from retrykit.outcome import attempt


# ═════════════════════════════════════════════════════════════════════════════
# Result
# ═════════════════════════════════════════════════════════════════════════════


def test_accessors() -> None:
    ok: Result[int, Exception] = Ok(1)
    error = KeyError("k")
    err: Result[int, Exception] = Err(error)

    assert ok.is_ok() and not ok.is_err() and bool(ok)
    assert err.is_err() and not err
    assert ok.unwrap() == 1 and ok.ok() == 1 and ok.err() is None
    assert err.unwrap_err() is error and err.ok() is None
    with pytest.raises(RuntimeError):
        err.unwrap()
    with pytest.raises(RuntimeError):
        ok.unwrap_err()


def test_get_or_raise_reraises_same_object() -> None:
    error = ValueError("boom")
    with pytest.raises(ValueError) as info:
        Err(error).get_or_raise()
    assert info.value is error
    assert Ok("v").get_or_raise() == "v"


def test_functor_laws() -> None:
    """fmap id = id, fmap (f . g) = fmap f . fmap g"""
    f: Callable[[int], int] = lambda x: x + 1
    g: Callable[[int], int] = lambda x: x * 2
    assert Ok(5).map(lambda x: x) == Ok(5)
    assert Ok(5).map(lambda x: f(g(x))) == Ok(5).map(g).map(f)
    assert Err("fail").map(f) == Err("fail")


def test_match_and_repr() -> None:
    assert Ok(2).match(ok=lambda v: v * 10, err=str) == 20
    assert Err("x").match(ok=lambda v: v, err=lambda e: f"failed: {e}") == "failed: x"
    assert repr(Ok(1)) == "Ok(1)"
    assert repr(Err("no")) == "Err('no')"
    assert Ok(1) != Err(1)
    assert len({Ok(1), Ok(1), Err(1)}) == 2


# ═════════════════════════════════════════════════════════════════════════════
# attempt
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_attempt_captures_value_and_error() -> None:
    async def good() -> int:
        return 7

    error = ConnectionError("down")

    async def bad() -> int:
        raise error

    good_outcome: Outcome[int] = await attempt(good)
    assert good_outcome == Ok(7)
    outcome = await attempt(bad)
    assert outcome.unwrap_err() is error


@pytest.mark.asyncio
async def test_attempt_does_not_capture_cancellation() -> None:
    async def cancelled() -> None:
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await attempt(cancelled)


def test_outcome_is_result_with_exception_errors() -> None:
    assert Outcome[int] == Result[int, Exception]
