"""Tests for the cancellation token."""

import asyncio

import pytest

from courier.core.cancellation import CancellationToken
from courier.core.errors import DeadlineExceededError, RequestCancelledError

__all__ = []


@pytest.mark.asyncio
async def test_cancel_wakes_waiters_with_default_error() -> None:
    """cancel() should release wait() and expose a RequestCancelledError."""
    token = CancellationToken()
    waiter = asyncio.create_task(token.wait())
    await asyncio.sleep(0)

    assert token.is_cancelled() is False
    token.cancel()
    await asyncio.wait_for(waiter, timeout=1)

    assert token.is_cancelled() is True
    assert isinstance(token.error, RequestCancelledError)


@pytest.mark.asyncio
async def test_first_cancel_wins() -> None:
    """Only the first error given to cancel() should be kept."""
    token = CancellationToken()
    first = RuntimeError("first")

    token.cancel(first)
    token.cancel(RuntimeError("second"))

    assert token.error is first


@pytest.mark.asyncio
async def test_deadline_fires_by_itself() -> None:
    """A token with a timeout should fire with DeadlineExceededError."""
    token = CancellationToken(timeout=0.01)

    await asyncio.wait_for(token.wait(), timeout=1)

    assert isinstance(token.error, DeadlineExceededError)
    assert str(token.error) == "cancellation deadline exceeded"


@pytest.mark.asyncio
async def test_token_without_timeout_never_fires() -> None:
    """A plain token should keep waiting until cancelled."""
    token = CancellationToken()

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(token.wait(), timeout=0.05)

    assert token.error is None
