"""Domain types for the Open311 client.

All shared dataclasses live here to prevent circular imports between the
registry, the endpoint resolver and the client facade.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from open311.core.errors import ConfigurationError

GEOREPORT_V2 = "http://wiki.open311.org/GeoReport_v2"
WIRE_FORMATS = ("json", "xml")


def check_format(fmt: str) -> str:
    """Return ``fmt`` if it is a supported wire format, else raise."""
    if fmt not in WIRE_FORMATS:
        raise ConfigurationError(f"Unsupported format {fmt!r}; expected 'json' or 'xml'")
    return fmt


# ---------------------------------------------------------------------------
# Client configuration
# ---------------------------------------------------------------------------

@dataclass
class ClientConfig:
    """Connection settings owned by a single Open311 client.

    After construction only the endpoint resolver changes ``endpoint`` and
    ``format``, through :meth:`compare_and_set`.
    """

    endpoint: str | None = None
    format: str = "json"
    jurisdiction: str | None = None
    api_key: str | None = None
    discovery: str | None = None

    def __post_init__(self) -> None:
        check_format(self.format)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "ClientConfig":
        """Build a config from a loose mapping, ignoring unknown keys.

        ``apiKey`` is accepted as an alias of ``api_key``.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in options.items() if k in known and v is not None}
        if "api_key" not in values and options.get("apiKey"):
            values["api_key"] = options["apiKey"]
        return cls(**values)

    def compare_and_set(self, expected: str | None, endpoint: str, fmt: str) -> bool:
        """Swap in a new endpoint and format if the endpoint is still ``expected``.

        Returns False, leaving the config untouched, when another update got
        there first.
        """
        check_format(fmt)
        if self.endpoint != expected:
            return False
        self.endpoint = endpoint
        self.format = fmt
        return True


# ---------------------------------------------------------------------------
# Service discovery
# ---------------------------------------------------------------------------

@dataclass
class DiscoveryOptions:
    """How to pick an endpoint out of a discovery document."""

    cache: bool = False
    type: str = "production"
    specification: str = GEOREPORT_V2
    index: int = 0


@dataclass
class EndpointCandidate:
    """One entry of a discovery document's endpoint list."""

    url: str
    specification: str | None = None
    type: str | None = None
    formats: list[str] = field(default_factory=list)
    changeset: str | None = None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RegistryEntry:
    """A known municipal Open311 deployment."""

    id: str
    name: str
    endpoint: str | None = None
    discovery: str | None = None
    jurisdiction: str | None = None
    format: str = "json"

    def to_config(self) -> ClientConfig:
        return ClientConfig(
            endpoint=self.endpoint,
            format=self.format,
            jurisdiction=self.jurisdiction,
            discovery=self.discovery,
        )
