"""Entry point for building requests with the default aiohttp transport."""

from courier.adapters.driven.http.client import AiohttpTransport
from courier.core.request import Request
from courier.ports.http import HttpTransport

__all__ = ["new_request"]


def new_request(url: str, transport: HttpTransport | None = None) -> Request:
    """Create a GET request against *url*.

    Args:
        url: Target URL.
        transport: Transport to send through. Defaults to an
            :class:`AiohttpTransport` opening a session per request.

    Returns:
        A request decoding responses by their Content-Type.
    """
    return Request(url, transport if transport is not None else AiohttpTransport())
