"""Write a response body into a caller-owned destination."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from courier.core.codecs import parse_json, parse_xml
from courier.core.errors import DestinationTypeError
from courier.core.formats import DecodeStrategy

__all__ = ["decode", "is_byte_destination"]


def is_byte_destination(destination: Any) -> bool:
    """Return True if *destination* is a mutable byte-sequence handle."""
    return isinstance(destination, bytearray)


def decode(destination: Any, strategy: DecodeStrategy, body: bytes) -> None:
    """Decode *body* into *destination* according to *strategy*.

    The destination is only mutated once decoding fully succeeded.

    Args:
        destination: A ``bytearray`` for the bytes strategy; a pydantic
            model instance, ``dict`` or ``list`` for JSON and XML.
        strategy: Strategy chosen by format resolution.
        body: Full response body.

    Raises:
        DestinationTypeError: If the destination has the wrong shape.
        json.JSONDecodeError, xml.etree.ElementTree.ParseError,
        pydantic.ValidationError: Passed through from the parsers.
    """
    if strategy is DecodeStrategy.BYTES:
        if not is_byte_destination(destination):
            raise DestinationTypeError(
                f"expected bytearray destination, encountered {type(destination).__name__} "
                "when decoding into target element"
            )
        destination[:] = body
        return

    if strategy is DecodeStrategy.JSON:
        data = parse_json(body)
    else:
        data = parse_xml(body)
    _assign(destination, data)


def _assign(destination: Any, data: Any) -> None:
    if isinstance(destination, BaseModel):
        model_type = type(destination)
        if model_type.model_config.get("frozen"):
            raise DestinationTypeError(f"cannot decode into frozen model {model_type.__name__}")
        validated = model_type.model_validate(data)
        for name in model_type.model_fields:
            setattr(destination, name, getattr(validated, name))
        return

    if isinstance(destination, dict):
        if not isinstance(data, Mapping):
            raise DestinationTypeError(
                f"cannot decode {type(data).__name__} into dict destination"
            )
        destination.clear()
        destination.update(data)
        return

    if isinstance(destination, list):
        if not isinstance(data, list):
            raise DestinationTypeError(
                f"cannot decode {type(data).__name__} into list destination"
            )
        destination[:] = data
        return

    raise DestinationTypeError(
        f"unsupported destination {type(destination).__name__} for structured decode"
    )
