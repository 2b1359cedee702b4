"""Open311 GeoReport v2 client.

    client = Open311("sf")
    services = await client.service_list()
    requests = await client.service_requests(["101", "102"])

A client is configured from a :class:`ClientConfig`, a plain mapping, a
registry city id, or (with no argument) the ``OPEN311_*`` settings. Every
operation is a coroutine that returns the normalized result or raises an
:class:`~open311.core.errors.Open311Error`.

See http://wiki.open311.org/GeoReport_v2
"""

import copy
import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

from open311 import registry
from open311.config import settings
from open311.core.errors import ConfigurationError
from open311.core.types import ClientConfig, DiscoveryOptions
from open311.decoder import (
    SERVICE_DEFINITION,
    SERVICE_REQUESTS,
    SERVICES,
    SUBMISSION,
    TOKEN,
    coerce_dates,
    decode,
)
from open311.discovery import discover
from open311.observability.tracing import trace
from open311.transport import Transport

logger = logging.getLogger(__name__)


def _build_config(options: ClientConfig | Mapping[str, Any] | str | None) -> ClientConfig:
    if options is None:
        if settings.city:
            return registry.lookup(settings.city).to_config()
        return ClientConfig(
            endpoint=settings.endpoint,
            format=settings.format,
            jurisdiction=settings.jurisdiction,
            discovery=settings.discovery,
        )
    if isinstance(options, ClientConfig):
        return replace(options)
    if isinstance(options, Mapping):
        return ClientConfig.from_mapping(options)
    if isinstance(options, str):
        return registry.lookup(options).to_config()
    raise TypeError(f"Open311 options must be a config, mapping or city id, not {type(options).__name__}")


def _is_id_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def flatten_submission(data: Mapping[str, Any], api_key: str) -> dict[str, Any]:
    """Build the POST form for a new service request.

    The nested ``attributes`` mapping becomes ``attribute[<code>]`` fields
    (``attribute[<code>][]`` for multi-valued answers). ``data`` is not
    modified.
    """
    form = copy.deepcopy(dict(data))
    attributes = form.pop("attributes", None)
    form["api_key"] = api_key

    if isinstance(attributes, Mapping):
        for code, value in attributes.items():
            if _is_id_list(value):
                form[f"attribute[{code}][]"] = list(value)
            else:
                form[f"attribute[{code}]"] = value
    return form


class Open311:
    """Client for one municipality's Open311 endpoint."""

    def __init__(
        self,
        options: ClientConfig | Mapping[str, Any] | str | None = None,
        *,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        self.config = _build_config(options)
        if api_key:
            self.config.api_key = api_key
        elif not self.config.api_key and settings.api_key:
            self.config.api_key = settings.api_key
        self._transport = Transport(self.config, timeout)
        logger.debug(
            "Open311 client for %s (%s)",
            self.config.endpoint or self.config.discovery, self.config.format,
            extra={"endpoint": self.config.endpoint},
        )

    def __repr__(self) -> str:
        return f"Open311(endpoint={self.config.endpoint!r}, format={self.config.format!r})"

    @property
    def endpoint(self) -> str | None:
        return self.config.endpoint

    @property
    def format(self) -> str:
        return self.config.format

    # -----------------------------------------------------------------------
    # Service discovery
    # -----------------------------------------------------------------------

    @trace(name="service_discovery", span_type="TOOL")
    async def service_discovery(
        self,
        options: DiscoveryOptions | Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> Any:
        """Fetch the discovery document; with ``cache=True`` adopt its endpoint.

        Options can be a :class:`DiscoveryOptions`, a mapping, or keyword
        arguments (``cache``, ``type``, ``specification``, ``index``).
        """
        if isinstance(options, DiscoveryOptions):
            values = vars(options).copy()
        else:
            values = dict(options or {})
        values.update(overrides)
        return await discover(self.config, self._transport, DiscoveryOptions(**values))

    discover = service_discovery

    # -----------------------------------------------------------------------
    # Services
    # -----------------------------------------------------------------------

    @trace(name="service_list", span_type="TOOL")
    async def service_list(self) -> list[dict[str, Any]]:
        """List the service types this endpoint accepts requests for."""
        body = await self._transport.get("services")
        return decode(self.config.format, body, SERVICES)

    @trace(name="service_definition", span_type="TOOL")
    async def service_definition(self, service_code: str) -> dict[str, Any]:
        """Attributes a service expects; ``attributes`` is always a list."""
        body = await self._transport.get(f"services/{service_code}")
        return decode(self.config.format, body, SERVICE_DEFINITION)

    # -----------------------------------------------------------------------
    # Service requests
    # -----------------------------------------------------------------------

    @trace(name="submit_request", span_type="TOOL")
    async def submit_request(self, data: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Create a service request.

        The result holds either a ``service_request_id`` or a ``token`` to
        resolve later with :meth:`token`.
        """
        self._transport.require_endpoint()
        if not self.config.api_key:
            raise ConfigurationError("Submitting a service request requires an API key")

        form = flatten_submission(data, self.config.api_key)
        body = await self._transport.post("requests", form)
        return decode(self.config.format, body, SUBMISSION)

    @trace(name="token", span_type="TOOL")
    async def token(self, token: str) -> list[dict[str, Any]]:
        """Resolve a submission token into a ``service_request_id``."""
        body = await self._transport.get(f"tokens/{token}")
        return decode(self.config.format, body, TOKEN)

    @trace(name="service_requests", span_type="TOOL")
    async def service_requests(
        self,
        service_request_id: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Status of one, several, or a filtered set of service requests.

        Accepted call shapes:
          service_requests()                      → GET requests
          service_requests("101")                 → GET requests/101
          service_requests(["101", "102"])        → GET requests?service_request_id=101,102
          service_requests({"status": "open"})    → GET requests?status=open
        plus any id form followed by a params mapping.
        """
        if isinstance(service_request_id, Mapping):
            if params is not None:
                raise TypeError("params given both positionally and as the first argument")
            params, service_request_id = service_request_id, None

        query = dict(params or {})
        if _is_id_list(service_request_id):
            path = "requests"
            if service_request_id:
                query["service_request_id"] = ",".join(str(i) for i in service_request_id)
        elif service_request_id:
            path = f"requests/{service_request_id}"
        else:
            path = "requests"

        body = await self._transport.get(path, query)
        return coerce_dates(decode(self.config.format, body, SERVICE_REQUESTS))

    service_request = service_requests
