"""Core domain types and errors shared across all open311 modules."""

from open311.core.errors import (
    CityNotFoundError,
    ConfigurationError,
    DecodeError,
    DiscoveryError,
    EndpointSelectionError,
    Open311Error,
    Open311HTTPError,
    Open311TransportError,
)
from open311.core.types import (
    GEOREPORT_V2,
    ClientConfig,
    DiscoveryOptions,
    EndpointCandidate,
    RegistryEntry,
)

__all__ = [
    "GEOREPORT_V2",
    "CityNotFoundError",
    "ClientConfig",
    "ConfigurationError",
    "DecodeError",
    "DiscoveryError",
    "DiscoveryOptions",
    "EndpointCandidate",
    "EndpointSelectionError",
    "Open311Error",
    "Open311HTTPError",
    "Open311TransportError",
    "RegistryEntry",
]
