"""Exceptions raised by the Open311 client."""


class Open311Error(Exception):
    """Base exception for the Open311 client."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(Open311Error):
    """Raised before any network call when the client is misconfigured."""


class CityNotFoundError(ConfigurationError, LookupError):
    """Raised when a city id is not in the endpoint registry."""

    def __init__(self, city_id: str):
        self.city_id = city_id
        super().__init__(f'"{city_id}" is not in our list of prepopulatable endpoints')


class Open311HTTPError(Open311Error):
    """Raised when an Open311 endpoint answers with an error status."""

    def __init__(self, status_code: int, message: str, body: str = ""):
        self.body = body
        super().__init__(message, status_code)


class DiscoveryError(Open311HTTPError):
    """Raised when the discovery document cannot be fetched."""


class Open311TransportError(Open311Error):
    """Raised when the HTTP request itself fails (DNS, TLS, timeout)."""


class DecodeError(Open311Error, ValueError):
    """Raised when a response body is not valid JSON or XML."""

    def __init__(self, fmt: str, message: str):
        self.format = fmt
        super().__init__(f"Could not decode {fmt} response: {message}")


class EndpointSelectionError(Open311Error, LookupError):
    """Raised when discovery finds no endpoint at the requested index."""

    def __init__(self, specification: str, type_: str, index: int, matches: int):
        self.specification = specification
        self.type = type_
        self.index = index
        self.matches = matches
        super().__init__(
            f"No {type_!r} endpoint for {specification} at index {index} "
            f"({matches} matching endpoint(s))"
        )
