"""HTTP transport port definition (interface and DTO)."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import IO, Any, Protocol

__all__ = ["HttpTransport", "TransportResponse", "WireRequest"]


@dataclass(slots=True, frozen=True)
class WireRequest:
    """Fully built request handed to the transport.

    Decouples the executor from the HTTP library that actually sends it.

    Attributes:
        method: HTTP method, e.g. ``GET``.
        url: Absolute target URL.
        headers: One value per header name.
        body: Raw bytes, a binary file-like object, or None.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | IO[bytes] | None = None


class TransportResponse(Protocol):
    """Response returned by a transport.

    ``aiohttp.ClientResponse`` satisfies this protocol as is.
    """

    status: int

    @property
    def headers(self) -> Mapping[str, str]:
        """Response headers (case-insensitive lookup expected)."""
        ...

    async def read(self) -> bytes:
        """Read the full response body."""
        ...

    def release(self) -> Any:
        """Give the underlying connection back."""
        ...


class HttpTransport(Protocol):
    """Interface for sending one request.

    Implementations may be shared across concurrent executions and must
    not retry or follow redirects on behalf of the executor unless that is
    their own documented policy.
    """

    async def send(self, request: WireRequest, /) -> TransportResponse:
        """Send *request* and return its response.

        Raises:
            Exception: Any transport-level failure; it reaches the caller
                of ``Request.execute`` unchanged.
        """
        ...
