"""aiohttp transport adapter."""

import logging
from types import TracebackType

import aiohttp
from aiohttp import ClientResponse

from courier.ports.http import HttpTransport, WireRequest

__all__ = ["AiohttpTransport"]

logger = logging.getLogger(__name__)


class AiohttpTransport(HttpTransport):
    """Transport sending requests through an ``aiohttp.ClientSession``.

    Features:
    - Safe to share across concurrent executions.
    - Context manager owning its session for proper resource cleanup.
    - Works without a session too: each request then gets a short-lived
      session and its body is read before that session closes.

    Retries and redirects follow aiohttp's own defaults.
    """

    def __init__(self, session: aiohttp.ClientSession | None = None) -> None:
        """Initialize the transport.

        Args:
            session: Optional externally managed session. It is never
                closed by this transport.
        """
        self.session = session
        self._owns_session = False

    async def __aenter__(self) -> "AiohttpTransport":
        """Enter async context manager (start session if none was given).

        Returns:
            Self for use in async with statement.
        """
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Exit async context manager (close an owned session).

        Args:
            exc_type: Exception type if raised in context.
            exc: Exception instance if raised in context.
            tb: Traceback if raised in context.
        """
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None
            self._owns_session = False

    async def send(self, request: WireRequest, /) -> ClientResponse:
        """Send one request.

        Args:
            request: Fully built request.

        Returns:
            The aiohttp response. Its body may still be unread when a
            session is held.

        Raises:
            aiohttp exceptions: Network errors, unchanged.
        """
        if self.session is not None:
            return await self._request(self.session, request)

        async with aiohttp.ClientSession() as session:
            resp = await self._request(session, request)
            await resp.read()
            return resp

    @staticmethod
    async def _request(session: aiohttp.ClientSession, request: WireRequest) -> ClientResponse:
        logger.debug(f"{request.method} {request.url}")
        return await session.request(
            request.method,
            request.url,
            headers=dict(request.headers),
            data=request.body,
        )
