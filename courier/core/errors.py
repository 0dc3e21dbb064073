"""Error taxonomy and the per-request error accumulator."""

from __future__ import annotations

__all__ = [
    "DeadlineExceededError",
    "DestinationTypeError",
    "ErrorAccumulator",
    "HTTPStatusError",
    "MediaTypeError",
    "MultiError",
    "RequestCancelledError",
    "RequestError",
    "RequestTimeoutError",
    "UnknownResponseFormatError",
]

ERROR_SEPARATOR = ", "


class RequestError(Exception):
    """Base exception for all errors synthesized by courier."""


class MultiError(RequestError):
    """Several errors reported as one.

    The message joins the message of each constituent error in
    insertion order.
    """

    def __init__(self, errors: list[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__(ERROR_SEPARATOR.join(str(err) for err in self.errors))


class RequestTimeoutError(RequestError):
    """The configured timeout elapsed before the transport answered."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"exceeded request timeout of {timeout:g}s")
        self.timeout = timeout


class RequestCancelledError(RequestError):
    """A cancellation token fired."""


class DeadlineExceededError(RequestCancelledError):
    """A cancellation token fired because its own deadline passed."""


class HTTPStatusError(RequestError):
    """The server answered with a status code >= 400."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"request failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class UnknownResponseFormatError(RequestError):
    """The response format selector holds an unrecognized value."""

    def __init__(self, response_format: str) -> None:
        super().__init__(f"found unknown response format {response_format}")
        self.response_format = response_format


class MediaTypeError(RequestError):
    """A Content-Type header could not be parsed."""


class DestinationTypeError(RequestError):
    """A destination cannot hold the decoded response."""


class ErrorAccumulator:
    """Append-only collection of errors gathered while building a request.

    An empty accumulator means the request is still viable. Not
    thread-safe; owned by a single request.
    """

    def __init__(self) -> None:
        self._errors: list[BaseException] = []

    def append(self, err: BaseException) -> None:
        """Record one error. Never rejects, never deduplicates."""
        self._errors.append(err)

    def is_ok(self) -> bool:
        """Return True if no error has been recorded."""
        return not self._errors

    def as_error(self) -> MultiError | None:
        """Return the composite error, or None if nothing was recorded."""
        if not self._errors:
            return None
        return MultiError(self._errors)

    @property
    def errors(self) -> list[BaseException]:
        """Copy of the recorded errors, oldest first."""
        return list(self._errors)
