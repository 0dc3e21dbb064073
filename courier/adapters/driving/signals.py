"""Signal handling for cancelling an in-flight request."""

import asyncio
import logging
import signal

from courier.core.cancellation import CancellationToken
from courier.core.errors import RequestCancelledError

__all__ = ["make_cancel_on_sigterm"]

logger = logging.getLogger(__name__)


def make_cancel_on_sigterm(token: CancellationToken | None = None) -> CancellationToken:
    """Create a cancellation token fired by SIGTERM or SIGINT.

    On Docker/Kubernetes, SIGTERM is sent 30s before SIGKILL, so a pending
    request gives up well before the process is killed.

    Args:
        token: Token to fire. A new one is created if omitted.

    Returns:
        The token wired to the signals.
    """
    token = token if token is not None else CancellationToken()
    loop = asyncio.get_running_loop()

    def handle_signal(sig: signal.Signals) -> None:
        """Fire the token with an error naming the signal."""
        logger.info(f"{sig.name} received, cancelling request...")
        token.cancel(RequestCancelledError(f"request cancelled by {sig.name}"))

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal, sig)

    return token
