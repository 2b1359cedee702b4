"""HTTP transport for Open311 endpoints.

Builds ``<endpoint><path>.<format>`` URLs, attaches the configured
``jurisdiction_id`` and turns error statuses into exceptions. Bodies are
returned as text; decoding happens in :mod:`open311.decoder`.
"""

import logging
import time
from typing import Any, Mapping

import httpx

from open311.config import settings
from open311.core.errors import (
    ConfigurationError,
    DiscoveryError,
    Open311HTTPError,
    Open311TransportError,
)
from open311.core.types import ClientConfig

logger = logging.getLogger(__name__)

API_ERROR = "There was an error connecting to the Open311 API: "
DISCOVERY_ERROR = "There was an error connecting to the Open311 Discovery API: "


class Transport:
    """Stateless GET/POST helpers bound to a client's live configuration."""

    def __init__(self, config: ClientConfig, timeout: float | None = None):
        self.config = config
        self.timeout = settings.http_timeout if timeout is None else timeout

    def require_endpoint(self) -> str:
        """The configured endpoint, which must end with ``/``."""
        endpoint = self.config.endpoint
        if not endpoint:
            raise ConfigurationError(
                'You must set an endpoint URL in your Open311({"endpoint": "<URL>"}) config'
            )
        if not endpoint.endswith("/"):
            raise ConfigurationError(f"Endpoint URL must end with '/': {endpoint!r}")
        return endpoint

    def url_for(self, path: str) -> str:
        return f"{self.require_endpoint()}{path}.{self.config.format}"

    def query_params(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Copy ``params`` and add the jurisdiction unless the caller set one."""
        query = dict(params or {})
        if self.config.jurisdiction and not query.get("jurisdiction_id"):
            query["jurisdiction_id"] = self.config.jurisdiction
        return query

    async def get(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        """GET an API resource. Anything but 200 is an error."""
        url = self.url_for(path)
        resp = await self._send("GET", url, params=self.query_params(params))
        if resp.status_code != 200:
            logger.warning(
                "Open311 GET %s failed with %d", url, resp.status_code,
                extra={"path": path, "status_code": resp.status_code},
            )
            raise Open311HTTPError(resp.status_code, API_ERROR + str(resp.status_code), resp.text)
        return resp.text

    async def post(
        self,
        path: str,
        form: Mapping[str, Any],
        params: Mapping[str, Any] | None = None,
    ) -> str:
        """POST a form to an API resource. A final status of 300 or more is an error."""
        url = self.url_for(path)
        resp = await self._send("POST", url, params=self.query_params(params), data=dict(form))
        if resp.status_code >= 300:
            logger.warning(
                "Open311 POST %s failed with %d", url, resp.status_code,
                extra={"path": path, "status_code": resp.status_code},
            )
            raise Open311HTTPError(
                resp.status_code,
                f"{API_ERROR}{resp.status_code}; {resp.text}",
                resp.text,
            )
        return resp.text

    async def fetch(self, url: str) -> str:
        """GET a fixed URL with no format suffix or jurisdiction (discovery documents)."""
        resp = await self._send("GET", url)
        if resp.status_code != 200:
            logger.warning(
                "Discovery fetch %s failed with %d", url, resp.status_code,
                extra={"status_code": resp.status_code},
            )
            raise DiscoveryError(resp.status_code, DISCOVERY_ERROR + str(resp.status_code), resp.text)
        return resp.text

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                if method == "GET":
                    resp = await client.get(url, **kwargs)
                else:
                    resp = await client.post(url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Open311 %s %s failed: %s", method, url, e)
            raise Open311TransportError(f"{method} {url} failed: {e}") from e

        duration_ms = round((time.monotonic() - start) * 1000)
        logger.debug(
            "%s %s -> %d (%dms)", method, url, resp.status_code, duration_ms,
            extra={"endpoint": self.config.endpoint, "status_code": resp.status_code,
                   "duration_ms": duration_ms},
        )
        return resp
