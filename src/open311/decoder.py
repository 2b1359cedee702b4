"""Response decoding: JSON/XML bodies to one normalized shape.

Open311 servers wrap XML results differently from JSON: a service list is a
bare array in JSON but ``<services><service>...</service></services>`` in
XML, and an XML element that occurs once parses as a mapping rather than a
one-element list. Every operation declares a :class:`Shape` saying where
its payload lives in the XML tree and whether it is a sequence; the decoder
applies it so callers always see the same structure regardless of wire
format or element cardinality.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable
from xml.etree import ElementTree as ET

from open311.core.errors import DecodeError
from open311.core.types import check_format

logger = logging.getLogger(__name__)

DATE_FIELDS = ("requested_datetime", "updated_datetime", "expected_datetime")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _local_name(tag: str) -> str:
    """'{http://www.georss.org/georss}point' → 'point'"""
    return tag.rsplit("}", 1)[-1]


def _element_value(element: ET.Element) -> Any:
    """Convert an element to None, a string, or a mapping of its children.

    Repeated child tags collect into a list; a child that occurs once stays
    a scalar or mapping.
    """
    children = list(element)
    attrs = {f"@{_local_name(k)}": v for k, v in element.attrib.items()}
    text = (element.text or "").strip()

    if not children and not attrs:
        return text or None

    value: dict[str, Any] = attrs
    for child in children:
        tag = _local_name(child.tag)
        child_value = _element_value(child)
        if tag not in value:
            value[tag] = child_value
        elif isinstance(value[tag], list):
            value[tag].append(child_value)
        else:
            value[tag] = [value[tag], child_value]

    if text:
        value["#text"] = text
    return value


def parse_xml(text: str) -> dict[str, Any]:
    """Parse an XML document into ``{root_tag: value}``."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise DecodeError("xml", str(e)) from e
    return {_local_name(root.tag): _element_value(root)}


def parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise DecodeError("json", str(e)) from e


def parse(fmt: str, text: str) -> Any:
    """Parse a body according to its wire format, without any unwrapping."""
    if check_format(fmt) == "xml":
        return parse_xml(text)
    return parse_json(text)


# ---------------------------------------------------------------------------
# Cardinality normalization
# ---------------------------------------------------------------------------

def ensure_list(value: Any) -> list:
    """Always a sequence: None → [], list → itself, anything else → [value]."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def unwrap_list(value: Any, tag: str) -> list:
    """Normalize a sequence field that XML nests one level deeper.

    ``{"attribute": {...}}`` (XML) and ``[{...}]`` (JSON) both become
    ``[{...}]``.
    """
    if isinstance(value, dict) and tag in value:
        value = value[tag]
    return ensure_list(value)


def _normalize_definition(definition: dict[str, Any]) -> dict[str, Any]:
    attributes = unwrap_list(definition.get("attributes"), "attribute")
    for attribute in attributes:
        if isinstance(attribute, dict) and "values" in attribute:
            attribute["values"] = unwrap_list(attribute["values"], "value")
    definition["attributes"] = attributes
    return definition


# ---------------------------------------------------------------------------
# Per-operation shapes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Shape:
    """Where an operation's payload lives in the XML tree.

    ``path`` is followed for XML bodies only; ``many`` forces the result
    into a list for both formats; ``normalize`` runs last on either format.
    """

    name: str
    path: tuple[str, ...] = ()
    many: bool = False
    normalize: Callable[[Any], Any] | None = None


DISCOVERY = Shape("discovery")
SERVICES = Shape("services", ("services", "service"), many=True)
SERVICE_DEFINITION = Shape(
    "service_definition", ("service_definition",), normalize=_normalize_definition,
)
SERVICE_REQUESTS = Shape("service_requests", ("service_requests", "request"), many=True)
SUBMISSION = Shape("submission", ("service_requests", "request"), many=True)
TOKEN = Shape("token", ("service_requests", "request"), many=True)


def _follow(data: Any, path: tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def decode(fmt: str, body: str, shape: Shape) -> Any:
    """Parse ``body`` and reduce it to the payload described by ``shape``."""
    data = parse(fmt, body)

    if fmt == "xml" and shape.path:
        data = _follow(data, shape.path)
        if data is None and not shape.many:
            raise DecodeError("xml", f"no <{'/'.join(shape.path)}> element in {shape.name} response")

    if shape.many:
        data = ensure_list(data)
    if shape.normalize is not None:
        if not isinstance(data, dict):
            raise DecodeError(fmt, f"expected an object in {shape.name} response")
        data = shape.normalize(data)
    return data


# ---------------------------------------------------------------------------
# Date coercion
# ---------------------------------------------------------------------------

def parse_datetime(value: str) -> datetime | None:
    """Parse an ISO 8601 timestamp, keeping its UTC offset when present."""
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


def coerce_dates(requests: list) -> list:
    """Replace Open311 timestamp strings with datetimes, in place.

    Safe to run twice: values that are already datetimes are skipped.
    """
    for request in requests:
        if not isinstance(request, dict):
            continue
        for name in DATE_FIELDS:
            value = request.get(name)
            if not isinstance(value, str) or not value.strip():
                continue
            parsed = parse_datetime(value)
            if parsed is None:
                logger.warning("Unparseable %s %r on request %s",
                               name, value, request.get("service_request_id"))
                continue
            request[name] = parsed
    return requests
