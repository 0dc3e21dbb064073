"""JSON and XML codecs for request and response bodies.

XML is mapped onto plain Python values so that structured destinations
(pydantic models, dicts, lists) are filled the same way for both formats:

- child elements become keys; a tag seen more than once becomes a list
- attributes become ``@name`` keys (namespace declarations are skipped)
- a leaf element becomes its stripped text, an empty one becomes None
- mixed content keeps its text under ``#text``

Limitation: namespaces are stripped from tag names and not emitted.
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from typing import Any

from pydantic import BaseModel

__all__ = ["marshal_json", "marshal_xml", "parse_json", "parse_xml"]


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


def marshal_json(value: Any) -> bytes:
    """Serialize *value* to JSON bytes.

    Raises:
        TypeError: If *value* is not JSON serializable.
    """
    if isinstance(value, BaseModel):
        return value.model_dump_json().encode("utf-8")
    return json.dumps(value).encode("utf-8")


def marshal_xml(value: Any) -> bytes:
    """Serialize a pydantic model or a single-rooted dict to XML bytes.

    A model becomes an element named after its class. A dict must have
    exactly one key, which names the root element.

    Raises:
        TypeError: If *value* is neither a model nor a dict.
        ValueError: If a dict does not have exactly one top-level key.
    """
    if isinstance(value, BaseModel):
        root_tag = type(value).__name__
        root_value: Any = value.model_dump(mode="json")
    elif isinstance(value, dict):
        if len(value) != 1:
            raise ValueError(
                f"xml: expected a dict with exactly one root key, got {len(value)} keys"
            )
        root_tag, root_value = next(iter(value.items()))
    else:
        raise TypeError(f"xml: unsupported type: {type(value).__name__}")

    return ET.tostring(_to_element(str(root_tag), root_value), encoding="utf-8")


def _to_element(tag: str, value: Any) -> ET.Element:
    element = ET.Element(tag)
    if value is None:
        pass
    elif isinstance(value, dict):
        for key, child in value.items():
            if key == "#text":
                element.text = _text(child)
            elif key.startswith("@"):
                element.set(key[1:], _text(child))
            elif isinstance(child, list):
                for item in child:
                    element.append(_to_element(key, item))
            else:
                element.append(_to_element(key, child))
    elif isinstance(value, list):
        for item in value:
            element.append(_to_element("item", item))
    else:
        element.text = _text(value)
    return element


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# ---------------------------------------------------------------------------
# Response bodies
# ---------------------------------------------------------------------------


def parse_json(body: bytes) -> Any:
    """Parse a JSON body. ``json.JSONDecodeError`` propagates unchanged."""
    return json.loads(body)


def parse_xml(body: bytes) -> Any:
    """Parse an XML body into the content of its root element.

    Raises:
        ET.ParseError: If *body* is not well-formed XML.
    """
    root = ET.fromstring(body)
    return _from_element(root)


def _strip_ns(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _from_element(element: ET.Element) -> Any:
    result: dict[str, Any] = {}

    for name, value in element.attrib.items():
        if name.startswith("xmlns") or name.startswith("{"):
            continue
        result[f"@{name}"] = value

    grouped: dict[str, list[Any]] = {}
    for child in element:
        grouped.setdefault(_strip_ns(child.tag), []).append(_from_element(child))
    for tag, values in grouped.items():
        result[tag] = values if len(values) > 1 else values[0]

    text = (element.text or "").strip()
    if text:
        if not result:
            return text
        result["#text"] = text

    return result or None
