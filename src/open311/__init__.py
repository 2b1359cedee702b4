"""Open311 GeoReport v2 client for service discovery, service lists and request status."""

from open311.client import Open311
from open311.core import (
    GEOREPORT_V2,
    CityNotFoundError,
    ClientConfig,
    ConfigurationError,
    DecodeError,
    DiscoveryError,
    DiscoveryOptions,
    EndpointSelectionError,
    Open311Error,
    Open311HTTPError,
    Open311TransportError,
)

__all__ = [
    "GEOREPORT_V2",
    "CityNotFoundError",
    "ClientConfig",
    "ConfigurationError",
    "DecodeError",
    "DiscoveryError",
    "DiscoveryOptions",
    "EndpointSelectionError",
    "Open311",
    "Open311Error",
    "Open311HTTPError",
    "Open311TransportError",
]
