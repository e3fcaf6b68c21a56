"""
CLI runner for geo-search.

Usage:
    python -m geosearch.run [OPTIONS] COMMAND ...

    # Text search
    python -m geosearch.run text --sector Bakery --city Middlesbrough

    # Search the area around a position
    python -m geosearch.run map --lat 54.5 --lng -1.25

    # Suggestion lookup for one field
    python -m geosearch.run suggest city midd
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import GeoSearchConfig
from .controller import GeoSearchController
from .location import StaticLocationProvider
from .models import AUTOCOMPLETE_FIELDS, Coordinates, FieldType
from .presentation import ResultView

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("geosearch")


def non_negative_float(value: str) -> float:
    """argparse type for distances in miles."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


async def run_text(config: GeoSearchConfig, args: argparse.Namespace) -> bool:
    """Run one text search and print the results."""
    controller = GeoSearchController(config)
    form = controller.text.form
    form.business_name = args.name or ""
    form.sector = args.sector or ""
    form.country = args.country or ""
    form.region = args.region or ""
    form.city = args.city or ""
    form.street = args.street or ""
    form.postcode = args.postcode or ""
    form.rewards_only = args.rewards_only
    form.campaigns_only = args.campaigns_only
    form.distance = args.distance

    await controller.search_text()
    print(controller.render())
    return controller.view() != ResultView.ERROR


async def run_map(config: GeoSearchConfig, args: argparse.Namespace) -> bool:
    """Search the box around a fixed position and print the results."""
    provider = StaticLocationProvider(Coordinates(lat=args.lat, lng=args.lng))
    controller = GeoSearchController(config, location_provider=provider)

    await controller.search_map()
    print(controller.map.location_label())
    if not controller.map.can_search:
        return False
    print(controller.render())
    return controller.view() != ResultView.ERROR


async def run_suggest(config: GeoSearchConfig, field_type: FieldType, query: str) -> bool:
    """Look up suggestions for one field, going through the debounce."""
    controller = GeoSearchController(config)
    field = controller.autocomplete[field_type]

    field.update(query)
    await field.wait_idle()
    await controller.close()

    if field.error:
        print(field.error)
        return False
    if not field.suggestions:
        print(f"No {field_type.value} suggestions for {query!r}")
        return True
    for suggestion in field.suggestions:
        marker = " (pending review)" if suggestion.pending_review else ""
        print(f"{suggestion.label}{marker}")
    return True


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="geosearch: Business finder search client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Businesses with active rewards in a city
    python -m geosearch.run text --city Middlesbrough --rewards-only

    # Map search against a local API
    python -m geosearch.run --base-url http://127.0.0.1:3001/api/v1 map --lat 54.5 --lng -1.25

    # Use a specific config file
    python -m geosearch.run --config geosearch.yaml suggest sector bak
        """,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=Path("geosearch.yaml"),
        help="Path to config file (default: geosearch.yaml)",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        help="Override the search API base URL from config",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    text = subparsers.add_parser("text", help="Structured text search")
    text.add_argument("--name", help="Business name")
    text.add_argument("--sector", help="Business sector")
    text.add_argument("--country")
    text.add_argument("--region")
    text.add_argument("--city")
    text.add_argument("--street")
    text.add_argument("--postcode")
    text.add_argument("--rewards-only", action="store_true", help="Only businesses with rewards")
    text.add_argument(
        "--campaigns-only", action="store_true", help="Only businesses with campaigns"
    )
    text.add_argument(
        "--distance", type=non_negative_float, help="Maximum distance in miles"
    )

    map_cmd = subparsers.add_parser("map", help="Search the area around a position")
    map_cmd.add_argument("--lat", type=float, required=True, help="Latitude")
    map_cmd.add_argument("--lng", type=float, required=True, help="Longitude")

    suggest = subparsers.add_parser("suggest", help="Autocomplete suggestions for a field")
    suggest.add_argument(
        "field",
        choices=[f.value for f in AUTOCOMPLETE_FIELDS],
        help="Field to complete",
    )
    suggest.add_argument("query", help="Text typed so far")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load config
    config = GeoSearchConfig.from_yaml(args.config)
    if args.base_url:
        config.gateway.base_url = args.base_url

    logger.info(f"Config loaded from {args.config}")
    logger.info(f"Search API: {config.gateway.resolve_base_url()}")

    if args.command == "text":
        success = asyncio.run(run_text(config, args))
        return 0 if success else 1

    if args.command == "map":
        success = asyncio.run(run_map(config, args))
        return 0 if success else 1

    if args.command == "suggest":
        success = asyncio.run(run_suggest(config, FieldType(args.field), args.query))
        return 0 if success else 1

    # Default: show help
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
