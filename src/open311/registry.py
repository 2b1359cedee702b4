"""Known municipal Open311 deployments.

Lets a caller write ``Open311("sf")`` instead of spelling out the endpoint,
jurisdiction and format. Entries either carry a GeoReport v2 base endpoint
or a discovery URL that the client resolves at runtime.
"""

from open311.core.errors import CityNotFoundError
from open311.core.types import RegistryEntry

CITIES: tuple[RegistryEntry, ...] = (
    RegistryEntry(
        id="baltimore",
        name="Baltimore, MD",
        endpoint="https://311.baltimorecity.gov/open311/v2/",
        jurisdiction="baltimorecity.gov",
        format="json",
    ),
    RegistryEntry(
        id="bloomington",
        name="Bloomington, IN",
        endpoint="https://bloomington.in.gov/crm/open311/v2/",
        format="json",
    ),
    RegistryEntry(
        id="boston",
        name="Boston, MA",
        endpoint="https://mayors24.cityofboston.gov/open311/v2/",
        format="json",
    ),
    RegistryEntry(
        id="chicago",
        name="Chicago, IL",
        endpoint="http://311api.cityofchicago.org/open311/v2/",
        format="json",
    ),
    RegistryEntry(
        id="dc",
        name="Washington, DC",
        discovery="http://app.311.dc.gov/CWI/Open311/discovery.json",
        jurisdiction="dc.gov",
        format="xml",
    ),
    RegistryEntry(
        id="grandrapids",
        name="Grand Rapids, MI",
        endpoint="http://grcity.spotreporters.com/open311/v2/",
        format="xml",
    ),
    RegistryEntry(
        id="sf",
        name="San Francisco, CA",
        endpoint="https://mobile311.sfgov.org/open311/v2/",
        jurisdiction="sfgov.org",
        format="xml",
    ),
    RegistryEntry(
        id="toronto",
        name="Toronto, ON",
        endpoint="https://secure.toronto.ca/webwizard/ws/",
        jurisdiction="toronto.ca",
        format="json",
    ),
)


def lookup(city_id: str) -> RegistryEntry:
    """Return the first registry entry whose id is exactly ``city_id``."""
    for city in CITIES:
        if city.id == city_id:
            return city
    raise CityNotFoundError(city_id)


def available_cities() -> list[str]:
    return [city.id for city in CITIES]
