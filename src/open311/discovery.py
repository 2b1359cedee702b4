"""Open311 service discovery: resolve a discovery document to a base endpoint.

Discovery flow:
  1. Wire format comes from the discovery URL's extension. Some cities (DC)
     serve XML endpoints behind a .json-looking site, so the URL suffix is
     trusted over any content type.
  2. Fetch and parse the document.
  3. Without ``cache`` the document is returned and nothing else happens.
  4. With ``cache`` the endpoints matching specification + type are
     filtered in document order, the one at ``index`` is picked, and the
     client's endpoint/format are swapped in.

See http://wiki.open311.org/Service_Discovery
"""

import logging
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import urlparse

from open311.core.errors import ConfigurationError, EndpointSelectionError
from open311.core.types import ClientConfig, DiscoveryOptions, EndpointCandidate
from open311.decoder import DISCOVERY, decode, unwrap_list
from open311.transport import Transport

logger = logging.getLogger(__name__)


def discovery_format(url: str) -> str:
    """'http://x/discovery.xml' → 'xml'; any other extension → 'json'"""
    suffix = PurePosixPath(urlparse(url).path).suffix.lower()
    return "xml" if suffix == ".xml" else "json"


def supports_json(formats: list[str]) -> bool:
    """True if any advertised MIME type is JSON."""
    for mime in formats:
        mime = mime.split(";")[0].strip().lower()
        if mime == "application/json" or mime.endswith("+json"):
            return True
    return False


def _candidate(entry: Any) -> EndpointCandidate | None:
    if not isinstance(entry, dict) or not entry.get("url"):
        return None
    formats = [f for f in unwrap_list(entry.get("formats"), "format") if isinstance(f, str)]
    return EndpointCandidate(
        url=entry["url"],
        specification=entry.get("specification"),
        type=entry.get("type"),
        formats=formats,
        changeset=entry.get("changeset"),
    )


def endpoint_candidates(document: Any) -> list[EndpointCandidate]:
    """All endpoints a discovery document lists, in document order.

    JSON documents keep them under ``endpoints``; XML documents under
    ``discovery/endpoints/endpoint``.
    """
    if isinstance(document, dict) and isinstance(document.get("discovery"), dict):
        document = document["discovery"]
    if not isinstance(document, dict):
        return []

    candidates = []
    for entry in unwrap_list(document.get("endpoints"), "endpoint"):
        candidate = _candidate(entry)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def select_endpoint(document: Any, options: DiscoveryOptions) -> EndpointCandidate:
    """Pick the ``options.index``-th endpoint matching specification and type."""
    matches = [
        c for c in endpoint_candidates(document)
        if c.specification == options.specification and c.type == options.type
    ]
    if options.index < 0 or options.index >= len(matches):
        raise EndpointSelectionError(
            options.specification, options.type, options.index, len(matches),
        )
    return matches[options.index]


async def discover(
    config: ClientConfig,
    transport: Transport,
    options: DiscoveryOptions,
) -> Any:
    """Fetch the discovery document, optionally caching the selected endpoint.

    Returns the parsed document in both cases. With ``options.cache`` the
    config's endpoint and format are updated via compare-and-set against
    the endpoint seen when discovery started; if a concurrent update won,
    this result is dropped with a warning.
    """
    if not config.discovery:
        raise ConfigurationError(
            'You must set a discovery URL in your Open311({"discovery": "<URL>"}) config'
        )

    url = config.discovery
    fmt = discovery_format(url)
    observed_endpoint = config.endpoint

    body = await transport.fetch(url)
    document = decode(fmt, body, DISCOVERY)

    if not options.cache:
        return document

    candidate = select_endpoint(document, options)
    endpoint = candidate.url if candidate.url.endswith("/") else candidate.url + "/"
    endpoint_format = "json" if supports_json(candidate.formats) else "xml"

    if config.compare_and_set(observed_endpoint, endpoint, endpoint_format):
        logger.info(
            "Discovered %s endpoint %s (%s)", options.type, endpoint, endpoint_format,
            extra={"endpoint": endpoint},
        )
    else:
        logger.warning(
            "Endpoint changed to %s while discovery was running; not caching %s",
            config.endpoint, endpoint,
        )
    return document
