"""Tests for service discovery and endpoint selection."""

import json

import httpx
import pytest

from open311 import (
    GEOREPORT_V2,
    ClientConfig,
    ConfigurationError,
    DecodeError,
    DiscoveryError,
    DiscoveryOptions,
    EndpointSelectionError,
)
from open311.discovery import (
    discover,
    discovery_format,
    endpoint_candidates,
    select_endpoint,
    supports_json,
)
from open311.transport import Transport

DISCOVERY_URL = "https://city.gov/open311/discovery.json"


def _discovery_doc():
    return {
        "changeset": "2011-04-05 17:48:34",
        "contact": "Open311 team, open311@city.gov",
        "key_service": "https://city.gov/open311/apikey",
        "endpoints": [
            {
                "specification": GEOREPORT_V2,
                "url": "https://city.gov/open311/v2",
                "changeset": "2010-11-23 09:01:12",
                "type": "production",
                "formats": ["text/xml"],
            },
            {
                "specification": GEOREPORT_V2,
                "url": "https://test.city.gov/open311/v2/",
                "changeset": "2010-10-23 09:01:12",
                "type": "test",
                "formats": ["text/xml", "application/json"],
            },
            {
                "specification": GEOREPORT_V2,
                "url": "https://api2.city.gov/open311/v2/",
                "changeset": "2010-10-23 09:01:12",
                "type": "production",
                "formats": ["application/json", "text/xml"],
            },
            {
                "specification": "http://wiki.open311.org/GeoReport_v3",
                "url": "https://city.gov/open311/v3/",
                "type": "production",
                "formats": ["application/json"],
            },
        ],
    }


DISCOVERY_XML = """<?xml version="1.0" encoding="utf-8"?>
<discovery>
  <changeset>2011-04-05 17:48:34</changeset>
  <contact>Open311 team</contact>
  <endpoints>
    <endpoint>
      <specification>http://wiki.open311.org/GeoReport_v2</specification>
      <url>https://xml.city.gov/open311/v2</url>
      <changeset>2010-11-23 09:01:12</changeset>
      <type>production</type>
      <formats>
        <format>text/xml</format>
      </formats>
    </endpoint>
  </endpoints>
</discovery>
"""


def _setup(discovery: str | None = DISCOVERY_URL, endpoint: str | None = None):
    config = ClientConfig(endpoint=endpoint, discovery=discovery)
    return config, Transport(config)


class TestHelpers:
    def test_format_from_url_suffix(self):
        assert discovery_format("https://city.gov/discovery.xml") == "xml"
        assert discovery_format("https://city.gov/discovery.json") == "json"
        assert discovery_format("https://city.gov/discovery.XML?x=1") == "xml"
        assert discovery_format("https://city.gov/discovery") == "json"

    def test_query_string_does_not_count(self):
        assert discovery_format("https://city.gov/discovery.json?fmt=.xml") == "json"

    def test_supports_json(self):
        assert supports_json(["text/xml", "application/json"])
        assert supports_json(["application/json; charset=utf-8"])
        assert supports_json(["application/geo+json"])
        assert not supports_json(["text/xml"])
        assert not supports_json([])

    def test_candidates_json(self):
        candidates = endpoint_candidates(_discovery_doc())
        assert [c.type for c in candidates] == ["production", "test", "production", "production"]
        assert candidates[1].formats == ["text/xml", "application/json"]

    def test_candidates_xml_single_endpoint(self):
        from open311.decoder import parse_xml

        candidates = endpoint_candidates(parse_xml(DISCOVERY_XML))
        assert len(candidates) == 1
        assert candidates[0].url == "https://xml.city.gov/open311/v2"
        assert candidates[0].formats == ["text/xml"]
        assert candidates[0].specification == GEOREPORT_V2

    def test_candidates_skip_entries_without_url(self):
        doc = {"endpoints": [{"type": "production"}, {"url": "https://a.gov/"}]}
        assert [c.url for c in endpoint_candidates(doc)] == ["https://a.gov/"]

    def test_candidates_of_garbage(self):
        assert endpoint_candidates([]) == []
        assert endpoint_candidates({}) == []


class TestSelectEndpoint:
    def test_first_match_in_document_order(self):
        candidate = select_endpoint(_discovery_doc(), DiscoveryOptions())
        assert candidate.url == "https://city.gov/open311/v2"

    def test_index(self):
        candidate = select_endpoint(_discovery_doc(), DiscoveryOptions(index=1))
        assert candidate.url == "https://api2.city.gov/open311/v2/"

    def test_type(self):
        candidate = select_endpoint(_discovery_doc(), DiscoveryOptions(type="test"))
        assert candidate.url == "https://test.city.gov/open311/v2/"

    def test_specification(self):
        options = DiscoveryOptions(specification="http://wiki.open311.org/GeoReport_v3")
        assert select_endpoint(_discovery_doc(), options).url == "https://city.gov/open311/v3/"

    @pytest.mark.parametrize("index", [2, 5, -1])
    def test_index_out_of_range(self, index):
        with pytest.raises(EndpointSelectionError) as exc_info:
            select_endpoint(_discovery_doc(), DiscoveryOptions(index=index))
        assert exc_info.value.matches == 2

    def test_no_matching_type(self):
        with pytest.raises(EndpointSelectionError, match="staging"):
            select_endpoint(_discovery_doc(), DiscoveryOptions(type="staging"))


class TestDiscover:
    @pytest.mark.asyncio
    async def test_missing_discovery_url(self, mock_http):
        config, transport = _setup(discovery=None)

        with pytest.raises(ConfigurationError, match="discovery URL"):
            await discover(config, transport, DiscoveryOptions())

        mock_http.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_uncached_returns_document_without_mutation(self, mock_http):
        mock_http.get.return_value = httpx.Response(200, text=json.dumps(_discovery_doc()))
        config, transport = _setup(endpoint="https://existing.gov/")

        document = await discover(config, transport, DiscoveryOptions())

        assert document == _discovery_doc()
        assert config.endpoint == "https://existing.gov/"
        assert config.format == "json"
        assert mock_http.get.call_args.args[0] == DISCOVERY_URL

    @pytest.mark.asyncio
    async def test_uncached_ignores_unselectable_document(self, mock_http):
        mock_http.get.return_value = httpx.Response(200, text='{"endpoints": []}')
        config, transport = _setup()

        assert await discover(config, transport, DiscoveryOptions()) == {"endpoints": []}
        assert config.endpoint is None

    @pytest.mark.asyncio
    async def test_cached_xml_only_endpoint(self, mock_http):
        mock_http.get.return_value = httpx.Response(200, text=json.dumps(_discovery_doc()))
        config, transport = _setup()

        await discover(config, transport, DiscoveryOptions(cache=True))

        assert config.endpoint == "https://city.gov/open311/v2/"
        assert config.format == "xml"

    @pytest.mark.asyncio
    async def test_cached_json_endpoint(self, mock_http):
        mock_http.get.return_value = httpx.Response(200, text=json.dumps(_discovery_doc()))
        config, transport = _setup()

        document = await discover(config, transport, DiscoveryOptions(cache=True, index=1))

        assert document == _discovery_doc()
        assert config.endpoint == "https://api2.city.gov/open311/v2/"
        assert config.format == "json"

    @pytest.mark.asyncio
    async def test_cached_index_out_of_range(self, mock_http):
        mock_http.get.return_value = httpx.Response(200, text=json.dumps(_discovery_doc()))
        config, transport = _setup()

        with pytest.raises(EndpointSelectionError):
            await discover(config, transport, DiscoveryOptions(cache=True, index=2))

        assert config.endpoint is None

    @pytest.mark.asyncio
    async def test_xml_discovery_url_parsed_as_xml(self, mock_http):
        mock_http.get.return_value = httpx.Response(200, text=DISCOVERY_XML)
        config, transport = _setup(discovery="https://xml.city.gov/discovery.xml")

        document = await discover(config, transport, DiscoveryOptions(cache=True))

        assert document["discovery"]["changeset"] == "2011-04-05 17:48:34"
        assert config.endpoint == "https://xml.city.gov/open311/v2/"
        assert config.format == "xml"

    @pytest.mark.asyncio
    async def test_xml_body_behind_json_url_is_decode_error(self, mock_http):
        mock_http.get.return_value = httpx.Response(200, text=DISCOVERY_XML)
        config, transport = _setup()

        with pytest.raises(DecodeError):
            await discover(config, transport, DiscoveryOptions())

    @pytest.mark.asyncio
    async def test_non_200(self, mock_http):
        mock_http.get.return_value = httpx.Response(503, text="down")
        config, transport = _setup()

        with pytest.raises(DiscoveryError, match="503") as exc_info:
            await discover(config, transport, DiscoveryOptions(cache=True))

        assert exc_info.value.status_code == 503
        assert config.endpoint is None

    @pytest.mark.asyncio
    async def test_concurrent_update_wins(self, mock_http):
        config, transport = _setup(endpoint="https://before.gov/")

        async def racing_get(url, **kwargs):
            # another discovery finished while this one was in flight
            config.compare_and_set("https://before.gov/", "https://winner.gov/", "json")
            return httpx.Response(200, text=json.dumps(_discovery_doc()))

        mock_http.get = racing_get

        document = await discover(config, transport, DiscoveryOptions(cache=True))

        assert document == _discovery_doc()
        assert config.endpoint == "https://winner.gov/"
        assert config.format == "json"
