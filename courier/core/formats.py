"""Response format negotiation.

Decides, per destination, how a response body is decoded: forced by the
configured :class:`ResponseFormat`, or sniffed from the response
``Content-Type`` header.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from courier.core.errors import MediaTypeError, UnknownResponseFormatError

__all__ = [
    "ACCEPT_JSON",
    "ACCEPT_XML",
    "CONTENT_TYPE_JSON",
    "CONTENT_TYPE_XML",
    "DecodeStrategy",
    "FormatResolution",
    "ResponseFormat",
    "parse_media_type",
    "resolve_format",
]

ACCEPT_JSON = "application/json"
ACCEPT_XML = "text/xml, application/xml"
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_XML = "application/xml"

# RFC 7230 token characters
_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


class ResponseFormat(str, Enum):
    """Expected encoding of a response, as configured by the caller."""

    CONTENT_TYPE = "content-type"
    JSON = "json"
    XML = "xml"
    BYTES = "bytes"


class DecodeStrategy(str, Enum):
    """How a response body is written into a destination."""

    JSON = "json"
    XML = "xml"
    BYTES = "bytes"


@dataclass(slots=True, frozen=True)
class FormatResolution:
    """Outcome of resolving the response format for one destination.

    Attributes:
        strategy: Strategy to apply, or None if nothing should be decoded.
        error: Error to record for the destination, if any. A resolution may
            carry both a strategy and an error (bytes fallback after a
            malformed Content-Type).
    """

    strategy: DecodeStrategy | None
    error: BaseException | None = None


_FORCED = {
    ResponseFormat.JSON.value: DecodeStrategy.JSON,
    ResponseFormat.XML.value: DecodeStrategy.XML,
    ResponseFormat.BYTES.value: DecodeStrategy.BYTES,
}

_SNIFFED = {
    "application/json": DecodeStrategy.JSON,
    "text/xml": DecodeStrategy.XML,
    "application/xml": DecodeStrategy.XML,
}


def parse_media_type(value: str) -> tuple[str, dict[str, str]]:
    """Split a Content-Type value into its media type and parameters.

    Args:
        value: Raw header value, e.g. ``application/json; charset=utf-8``.

    Returns:
        Lower-cased ``type/subtype`` and a dict of lower-cased parameter
        names to values (quotes stripped).

    Raises:
        MediaTypeError: If the media type itself is malformed.
    """
    media, _, raw_params = value.partition(";")
    media = media.strip().lower()
    if not media:
        raise MediaTypeError("mime: no media type")

    main, slash, sub = media.partition("/")
    if not _TOKEN.fullmatch(main) or not slash:
        raise MediaTypeError("mime: expected slash after first token")
    if not sub:
        raise MediaTypeError("mime: expected token after slash")
    if not _TOKEN.fullmatch(sub):
        raise MediaTypeError("mime: unexpected content after media subtype")

    params: dict[str, str] = {}
    for chunk in raw_params.split(";"):
        key, eq, val = chunk.partition("=")
        key = key.strip().lower()
        if key and eq:
            params[key] = val.strip().strip('"')
    return media, params


def resolve_format(
    selector: ResponseFormat | str,
    content_type: Callable[[], str | None],
) -> FormatResolution:
    """Pick the decode strategy for one destination.

    Args:
        selector: Configured response format. Plain strings are accepted;
            unrecognized ones fail.
        content_type: Returns the response Content-Type header. Only called
            when the selector is ``content-type``.

    Returns:
        The resolution. Never raises.
    """
    value = selector.value if isinstance(selector, ResponseFormat) else selector

    if value in _FORCED:
        return FormatResolution(_FORCED[value])

    if value != ResponseFormat.CONTENT_TYPE.value:
        return FormatResolution(None, UnknownResponseFormatError(str(value)))

    try:
        media, _ = parse_media_type(content_type() or "")
    except MediaTypeError as e:
        return FormatResolution(DecodeStrategy.BYTES, e)
    return FormatResolution(_SNIFFED.get(media, DecodeStrategy.BYTES))
