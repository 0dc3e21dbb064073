"""Cancellation signal raced against an in-flight request.

A :class:`CancellationToken` plays the role a request context plays in
other HTTP stacks: the caller keeps a handle, fires it whenever the result
is no longer wanted, and ``Request.execute`` gives up with the token's own
error. A token may also carry a deadline, in which case it fires by itself.
"""

from __future__ import annotations

import asyncio
import time

from courier.core.errors import DeadlineExceededError, RequestCancelledError

__all__ = ["CancellationToken"]


class CancellationToken:
    """One-shot cancellation signal for asyncio code.

    Examples:
        >>> token = CancellationToken()
        >>> request.cancellation(token)
        >>> # elsewhere, while execute() is pending
        >>> token.cancel()

    A token created without ``timeout`` and never cancelled never fires.
    """

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize the token.

        Args:
            timeout: Optional number of seconds, counted from now, after
                which the token fires with :class:`DeadlineExceededError`.
        """
        self._fired = asyncio.Event()
        self._error: BaseException | None = None
        self._deadline = None if timeout is None else time.monotonic() + timeout

    def cancel(self, error: BaseException | None = None) -> None:
        """Fire the token. Only the first call has an effect.

        Args:
            error: Error reported to waiters. Defaults to
                :class:`RequestCancelledError`.
        """
        if self._error is not None:
            return
        self._error = error if error is not None else RequestCancelledError("request cancelled")
        self._fired.set()

    def is_cancelled(self) -> bool:
        """Return True once the token has fired (or its deadline passed)."""
        self._check_deadline()
        return self._error is not None

    @property
    def error(self) -> BaseException | None:
        """The error the token fired with, or None."""
        self._check_deadline()
        return self._error

    async def wait(self) -> None:
        """Suspend until the token fires."""
        if self._deadline is None:
            await self._fired.wait()
            return
        remaining = max(0.0, self._deadline - time.monotonic())
        try:
            await asyncio.wait_for(self._fired.wait(), timeout=remaining)
        except asyncio.TimeoutError:
            # The loop clock may round up; the deadline counts as passed.
            self._expire()

    def _check_deadline(self) -> None:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._expire()

    def _expire(self) -> None:
        self.cancel(DeadlineExceededError("cancellation deadline exceeded"))
