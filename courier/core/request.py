"""Chainable request builder and the executor racing dispatch, timeout and cancellation."""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Callable, Mapping
from typing import IO, Any

from multidict import CIMultiDict

from courier.core.cancellation import CancellationToken
from courier.core.codecs import marshal_json, marshal_xml
from courier.core.decoder import decode
from courier.core.errors import ErrorAccumulator, HTTPStatusError, RequestTimeoutError
from courier.core.formats import (
    ACCEPT_JSON,
    ACCEPT_XML,
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_XML,
    ResponseFormat,
    resolve_format,
)
from courier.ports.http import HttpTransport, TransportResponse, WireRequest

__all__ = ["Request"]

logger = logging.getLogger(__name__)

DEFAULT_METHOD = "GET"
FIRST_FAILING_HTTP_CODE = 400

Body = bytes | IO[bytes] | None


class Request:
    """Chainable description of one HTTP request, executed with :meth:`execute`.

    Configuration methods never raise: marshaling failures are recorded and
    reported when the request is executed. A request must not be
    reconfigured while an ``execute`` call is in flight.

    Example:
        >>> animal = Animal()
        >>> await Request(url, transport).bearer_token("secret").timeout(2).execute(animal)
    """

    def __init__(self, url: str, transport: HttpTransport) -> None:
        """Initialize a GET request against *url*.

        Args:
            url: Target URL, fixed for the lifetime of the request.
            transport: Transport used to send the request.
        """
        self._url = url
        self._transport = transport
        self._errors = ErrorAccumulator()

        self._method = DEFAULT_METHOD
        self._body: Body = None
        self._headers: CIMultiDict[str] = CIMultiDict()
        self._basic_auth: tuple[str, str] | None = None
        self._bearer_token = ""
        self._cancellation = CancellationToken()
        self._response_format: ResponseFormat | str = ResponseFormat.CONTENT_TYPE
        self._timeout: float | None = None

    @property
    def url(self) -> str:
        """Target URL."""
        return self._url

    @property
    def errors(self) -> list[BaseException]:
        """Errors recorded so far, oldest first."""
        return self._errors.errors

    def ok(self) -> bool:
        """Return True if no error has been recorded."""
        return self._errors.is_ok()

    # =========================================================================
    # Configuration
    # =========================================================================

    def method(self, method: str) -> Request:
        self._method = method
        return self

    def body(self, body: Body) -> Request:
        """Use raw bytes or a binary file-like object as the request body."""
        self._body = body
        return self

    def bytes_body(self, data: bytes) -> Request:
        return self.body(bytes(data))

    def marshal_body(self, value: Any, marshal: Callable[[Any], bytes]) -> Request:
        """Marshal *value* with *marshal* and use the result as the body.

        A marshaling error is recorded, not raised; the body stays unchanged.
        """
        try:
            data = marshal(value)
        except Exception as e:  # noqa: BLE001
            logger.debug(f"Body marshaling failed: {e}")
            self._errors.append(e)
            return self
        return self.bytes_body(data)

    def json_body(self, value: Any) -> Request:
        """Marshal *value* as JSON (pydantic models supported)."""
        self.marshal_body(value, marshal_json)
        return self.header("Content-Type", CONTENT_TYPE_JSON)

    def xml_body(self, value: Any) -> Request:
        """Marshal a pydantic model or single-rooted dict as XML."""
        self.marshal_body(value, marshal_xml)
        return self.header("Content-Type", CONTENT_TYPE_XML)

    def header(self, key: str, value: str) -> Request:
        """Add a header value. Only the first value per name is sent."""
        self._headers.add(key, value)
        return self

    def headers(self, headers: Mapping[str, str]) -> Request:
        for key, value in headers.items():
            self._headers.add(key, value)
        return self

    def basic_auth(self, username: str, password: str) -> Request:
        self._basic_auth = (username, password)
        return self

    def bearer_token(self, token: str) -> Request:
        self._bearer_token = token
        return self

    def cancellation(self, token: CancellationToken) -> Request:
        """Give up with the token's error as soon as *token* fires."""
        self._cancellation = token
        return self

    def response_format(self, response_format: ResponseFormat | str) -> Request:
        """Set how the response is decoded.

        Forcing JSON or XML also adds a matching Accept header.
        """
        if response_format == ResponseFormat.JSON:
            self.header("Accept", ACCEPT_JSON)
        elif response_format == ResponseFormat.XML:
            self.header("Accept", ACCEPT_XML)
        self._response_format = response_format
        return self

    def timeout(self, seconds: float) -> Request:
        """Give up after *seconds*, counted from the start of ``execute``."""
        self._timeout = seconds
        return self

    def client(self, transport: HttpTransport) -> Request:
        self._transport = transport
        return self

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute(self, *destinations: Any) -> None:
        """Perform the request and decode the response into *destinations*.

        Each destination is decoded in order; a failing destination does not
        stop the following ones.

        Args:
            *destinations: ``bytearray``, pydantic model instances, dicts or
                lists owned by the caller.

        Raises:
            MultiError: Configuration or decoding errors, joined.
            RequestTimeoutError: The configured timeout elapsed first.
            HTTPStatusError: The server answered with status >= 400.
            Exception: The cancellation token's error, or the transport's
                error, unchanged.
        """
        composite = self._errors.as_error()
        if composite is not None:
            raise composite

        response = await self._dispatch(self._build_wire_request())
        try:
            await self._decode_response(response, destinations)
        finally:
            response.release()

        composite = self._errors.as_error()
        if composite is not None:
            raise composite

    def _build_wire_request(self) -> WireRequest:
        headers: CIMultiDict[str] = CIMultiDict()
        for key, value in self._headers.items():
            if key not in headers:
                headers[key] = value

        if self._basic_auth is not None:
            username, password = self._basic_auth
            credentials = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
            headers["Authorization"] = f"Basic {credentials}"

        if self._bearer_token:
            headers["Authorization"] = f"Bearer {self._bearer_token}"

        return WireRequest(method=self._method, url=self._url, headers=headers, body=self._body)

    async def _dispatch(self, wire: WireRequest) -> TransportResponse:
        """Race the transport against the timeout and the cancellation token."""
        logger.debug(f"Dispatching {wire.method} {wire.url}")
        dispatch = asyncio.create_task(self._transport.send(wire))
        cancelled = asyncio.create_task(self._cancellation.wait())
        waiters: set[asyncio.Task[Any]] = {dispatch, cancelled}

        timer: asyncio.Task[None] | None = None
        if self._timeout is not None:
            timer = asyncio.create_task(asyncio.sleep(self._timeout))
            waiters.add(timer)

        try:
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()
            if timer is not None:
                timer.cancel()
            if not dispatch.done():
                dispatch.add_done_callback(_drop_abandoned_dispatch)

        if timer is not None and timer in done:
            logger.info(f"Request to {wire.url} timed out after {self._timeout}s")
            if dispatch in done:
                _drop_abandoned_dispatch(dispatch)
            raise RequestTimeoutError(self._timeout)

        error = self._cancellation.error
        if cancelled in done and error is not None:
            logger.info(f"Request to {wire.url} cancelled: {error}")
            if dispatch in done:
                _drop_abandoned_dispatch(dispatch)
            raise error

        try:
            return dispatch.result()
        except Exception as e:
            logger.warning(f"Transport failed for {wire.url}: {e}")
            raise

    async def _decode_response(self, response: TransportResponse, destinations: tuple[Any, ...]) -> None:
        if response.status >= FIRST_FAILING_HTTP_CODE:
            try:
                text = (await response.read()).decode("utf-8", errors="replace")
            except Exception as e:  # noqa: BLE001
                text = str(e)
            logger.info(f"Request to {self._url} failed with status {response.status}")
            raise HTTPStatusError(response.status, text)

        if not destinations:
            return

        try:
            body = await response.read()
        except Exception as e:  # noqa: BLE001
            logger.debug(f"Reading the response body from {self._url} failed: {e}")
            self._errors.append(e)
            return

        for destination in destinations:
            resolution = resolve_format(
                self._response_format,
                lambda: response.headers.get("Content-Type"),
            )
            if resolution.error is not None:
                self._errors.append(resolution.error)
            if resolution.strategy is None:
                continue
            try:
                decode(destination, resolution.strategy, body)
            except Exception as e:  # noqa: BLE001
                logger.debug(f"Decoding into {type(destination).__name__} failed: {e}")
                self._errors.append(e)


def _drop_abandoned_dispatch(dispatch: asyncio.Future[Any]) -> None:
    """Discard the outcome of a dispatch nobody waits for any more."""
    if dispatch.cancelled():
        return
    error = dispatch.exception()
    if error is not None:
        logger.debug(f"Abandoned dispatch failed: {error}")
        return
    dispatch.result().release()
