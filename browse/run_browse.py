from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from camcatalog import get_logger, set_verbose
from camcatalog.catalog_client import CatalogClient
from camcatalog.catalog_view import CatalogItemView, build_item_views, extract_brands, summarize_records
from camcatalog.config import PRICE_TYPES, SORT_FIELDS, SORT_ORDERS, CatalogSettings
from camcatalog.env import load_dotenv
from camcatalog.fetch_coordinator import ListingFetchCoordinator
from camcatalog.filters import FilterCriteria, initial_criteria, set_brand, set_price_range, set_search, toggle_status
from camcatalog.query import QueryDescriptor

LOGGER = get_logger()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search and list the camera catalog from the terminal.")
    parser.add_argument("--search", default="", help="Free-text search sent to the listing endpoint.")
    parser.add_argument("--brand", default="", help="Only show this brand (applied locally).")
    parser.add_argument(
        "--mechanical",
        type=int,
        action="append",
        default=[],
        help="Mechanical condition rating 1-5; repeat for several.",
    )
    parser.add_argument(
        "--cosmetic",
        type=int,
        action="append",
        default=[],
        help="Cosmetic condition rating 1-5; repeat for several.",
    )
    parser.add_argument("--min-price", default="", help="Lower price bound ('0' is a real bound).")
    parser.add_argument("--max-price", default="", help="Upper price bound.")
    parser.add_argument("--sort", choices=SORT_FIELDS, default=None, help="Sort field.")
    parser.add_argument("--order", choices=SORT_ORDERS, default=None, help="Sort order.")
    parser.add_argument("--price-type", choices=PRICE_TYPES, default=None, help="Which price to show.")
    parser.add_argument("--brands", action="store_true", help="List the brands in the result and exit.")
    parser.add_argument("--summary", action="store_true", help="Print collection totals after the list.")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of a text table.")
    parser.add_argument("--env-file", default=".env", help="Optional .env file with CATALOG_* settings.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _criteria_from_args(args: argparse.Namespace, settings: CatalogSettings) -> FilterCriteria:
    criteria = initial_criteria(
        sort_by=args.sort or settings.default_sort_by,
        sort_order=args.order or ("asc" if args.sort else settings.default_sort_order),
        price_type=args.price_type or settings.default_price_type,
    )
    criteria = set_search(criteria, args.search)
    criteria = set_brand(criteria, args.brand)
    for value in dict.fromkeys(args.mechanical):
        criteria = toggle_status(criteria, "mechanical", value)
    for value in dict.fromkeys(args.cosmetic):
        criteria = toggle_status(criteria, "cosmetic", value)
    criteria = set_price_range(criteria, "min", args.min_price)
    return set_price_range(criteria, "max", args.max_price)


def _format_line(view: CatalogItemView) -> str:
    badge = f" [{view.image.badge}]" if view.image.show_badge else ""
    image = view.image.display_url or "(no image)"
    return (
        f"{view.record.id or '-':>5}  {view.title:<32.32}  {view.price_text:>12}  "
        f"M:{view.mechanical_label:<13} C:{view.cosmetic_label:<13} {image}{badge}"
    )


def _view_payload(view: CatalogItemView) -> dict[str, Any]:
    payload = view.to_row()
    payload["has_image"] = view.image.has_image
    payload["is_default_image"] = view.image.is_default_image
    payload["attribution"] = view.image.attribution
    return payload


async def _fetch(settings: CatalogSettings, criteria: FilterCriteria) -> Any:
    client = CatalogClient(settings)
    coordinator = ListingFetchCoordinator.from_client(client)
    try:
        return await coordinator.request(QueryDescriptor.from_criteria(criteria))
    finally:
        coordinator.close()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    load_dotenv(args.env_file)
    set_verbose(args.verbose)
    settings = CatalogSettings.from_env()
    criteria = _criteria_from_args(args, settings)
    LOGGER.info("Fetching %s with %s", settings.listing_url, json.dumps(criteria.to_dict()))

    outcome = asyncio.run(_fetch(settings, criteria))
    if not outcome.ok:
        print(f"Error loading cameras: {outcome.error or outcome.status}", file=sys.stderr)
        return 1

    records = outcome.records or []
    if args.brands:
        for brand in extract_brands(records):
            print(brand)
        return 0

    views = build_item_views(records, criteria, settings)
    if args.json:
        payload: dict[str, Any] = {
            "filters": criteria.to_dict(),
            "items": [_view_payload(view) for view in views],
        }
        if args.summary:
            payload["summary"] = summarize_records(records, criteria.price_type)
        print(json.dumps(payload, indent=2))
        return 0

    if not views:
        print("No cameras match the current filters.")
    for view in views:
        print(_format_line(view))
    if args.summary:
        summary = summarize_records(records, criteria.price_type)
        print()
        for key, value in summary.items():
            print(f"{key}: {value}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
