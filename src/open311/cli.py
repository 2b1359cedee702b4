"""open311 CLI: query a city's Open311 endpoint from the terminal.

    open311 --city sf services
    open311 --city sf requests 101 102
    open311 --discovery http://example.gov/discovery.json discover --cache
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict, replace

from open311.client import Open311
from open311.config import settings
from open311.core.errors import Open311Error
from open311.core.types import GEOREPORT_V2
from open311.observability.logging import correlation_scope, setup_logging
from open311.observability.tracing import setup_tracing
from open311.registry import CITIES, lookup


def _pairs(values: list[str] | None) -> dict[str, str]:
    """['status=open', 'start_date=2024-01-01'] → {'status': 'open', ...}"""
    pairs = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"expected key=value, got {item!r}")
        pairs[key] = value
    return pairs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="open311", description="Open311 GeoReport v2 client")
    parser.add_argument("--city", help="registry city id (see `open311 cities`)")
    parser.add_argument("--endpoint", help="base endpoint URL, e.g. https://x.gov/open311/v2/")
    parser.add_argument("--format", choices=["json", "xml"], help="wire format")
    parser.add_argument("--jurisdiction", help="jurisdiction_id sent with every request")
    parser.add_argument("--discovery", help="service discovery document URL")
    parser.add_argument("--api-key", help="API key for submitting requests")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("cities", help="list registry city ids")

    discover = sub.add_parser("discover", help="fetch the service discovery document")
    discover.add_argument("--cache", action="store_true", help="adopt the selected endpoint")
    discover.add_argument("--type", default="production")
    discover.add_argument("--specification", default=GEOREPORT_V2)
    discover.add_argument("--index", type=int, default=0)

    sub.add_parser("services", help="list service types")

    definition = sub.add_parser("definition", help="show a service's attributes")
    definition.add_argument("service_code")

    requests = sub.add_parser("requests", help="service request status")
    requests.add_argument("ids", nargs="*", help="one or more service_request_id values")
    requests.add_argument("--param", action="append", metavar="KEY=VALUE", help="query parameter")

    token = sub.add_parser("token", help="resolve a submission token")
    token.add_argument("token")

    submit = sub.add_parser("submit", help="submit a new service request")
    submit.add_argument("service_code")
    submit.add_argument("--field", action="append", metavar="KEY=VALUE", help="request field")
    submit.add_argument("--attribute", action="append", metavar="CODE=VALUE", help="attribute answer")

    return parser


def _client(args: argparse.Namespace) -> Open311:
    if args.city:
        overrides = {"format": args.format, "jurisdiction": args.jurisdiction}
        config = replace(lookup(args.city).to_config(), **{k: v for k, v in overrides.items() if v})
        return Open311(config, api_key=args.api_key)
    if args.endpoint or args.discovery:
        return Open311(
            {
                "endpoint": args.endpoint,
                "format": args.format or settings.format,
                "jurisdiction": args.jurisdiction or settings.jurisdiction,
                "discovery": args.discovery,
            },
            api_key=args.api_key,
        )
    return Open311(api_key=args.api_key)


async def _run(args: argparse.Namespace):
    client = _client(args)

    if args.command == "discover":
        document = await client.service_discovery(
            cache=args.cache, type=args.type,
            specification=args.specification, index=args.index,
        )
        if args.cache:
            return {"endpoint": client.endpoint, "format": client.format, "document": document}
        return document
    if args.command == "services":
        return await client.service_list()
    if args.command == "definition":
        return await client.service_definition(args.service_code)
    if args.command == "requests":
        params = _pairs(args.param)
        if len(args.ids) == 1:
            return await client.service_requests(args.ids[0], params)
        return await client.service_requests(args.ids or None, params)
    if args.command == "token":
        return await client.token(args.token)
    if args.command == "submit":
        data = {"service_code": args.service_code, **_pairs(args.field)}
        attributes = _pairs(args.attribute)
        if attributes:
            data["attributes"] = attributes
        return await client.submit_request(data)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Run one Open311 command and print its result as JSON."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(json_format=settings.log_json, level=settings.log_level)
    if settings.tracing_enabled:
        setup_tracing(settings.mlflow_tracking_uri)

    if args.command == "cities":
        print(json.dumps([asdict(city) for city in CITIES], indent=2))
        return 0

    try:
        with correlation_scope():
            result = asyncio.run(_run(args))
    except (Open311Error, argparse.ArgumentTypeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
