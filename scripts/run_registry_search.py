"""
Run a business registry search from the CLI.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

from registry.errors import InvalidQueryError
from registry.jurisdictions import get_jurisdiction_store
from registry.logging_utils import configure_logging
from registry.schemas import HealthResponse, MultiSearchResponse, PersonSearchResponse, SearchEntityResponse
from registry.search import search_by_person
from registry.service import get_registry_scraper
from registry.types import MAX_LIMIT, SEARCH_TYPES, STATUS_FILTERS, SearchOptions


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search government business registries.")
    parser.add_argument("code", nargs="?", help="Jurisdiction code, e.g. fl, ny, ca.")
    parser.add_argument("query", nargs="?", help="Entity name (or officer/agent/address) to search for.")
    parser.add_argument("--limit", type=int, default=25, help=f"Maximum entities to return (1-{MAX_LIMIT}).")
    parser.add_argument("--status", choices=STATUS_FILTERS, default="all")
    parser.add_argument("--search-type", dest="search_type", choices=SEARCH_TYPES, default="name")
    parser.add_argument("--skip-cache", dest="skip_cache", action="store_true")
    parser.add_argument("--force-browser", dest="force_browser", action="store_true")
    parser.add_argument("--fetch-details", dest="fetch_details", action="store_true")
    parser.add_argument(
        "--all-tier",
        dest="all_tier",
        type=int,
        choices=(1, 2, 3, 4),
        default=None,
        help="Search every jurisdiction of the given tier; the positional code is then the query.",
    )
    parser.add_argument(
        "--person",
        action="store_true",
        help="Treat the query as a person and list the businesses they are filed on; code may be a comma list.",
    )
    parser.add_argument("--health", action="store_true", help="Print circuit and rate-limit state.")
    parser.add_argument("--list", dest="list_jurisdictions", action="store_true", help="List jurisdictions.")
    parser.add_argument("--verbose", action="store_true", help="Include debug-level search events on stderr.")
    return parser


def _list_payload() -> list[dict[str, Any]]:
    return [
        {
            "code": config.code,
            "name": config.name,
            "registry": config.registry_name,
            "tier": int(config.tier),
        }
        for config in get_jurisdiction_store().all()
    ]


async def _run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    scraper = get_registry_scraper()
    try:
        if args.health:
            print(json.dumps(HealthResponse.from_report(scraper.health()).model_dump(by_alias=True), indent=2))
            return 0

        try:
            options = SearchOptions(
                limit=args.limit,
                status=args.status,
                skip_cache=args.skip_cache,
                force_browser=args.force_browser,
                fetch_details=args.fetch_details,
                search_type=args.search_type,
            )
        except InvalidQueryError as exc:
            parser.error(str(exc))

        if args.person:
            name = args.query or args.code
            if not name:
                parser.error("a person name is required")
            codes = args.code.split(",") if args.query else None
            person = await search_by_person(scraper, name, codes, limit=args.limit, fetch_details=args.fetch_details)
            print(json.dumps(PersonSearchResponse.from_result(person).to_payload(), indent=2))
            return 0 if person.success else 1

        if args.all_tier is not None:
            query = args.query or args.code
            if not query:
                parser.error("a query is required")
            codes = [config.code for config in get_jurisdiction_store().by_tier(args.all_tier)]
            multi = await scraper.search_multiple(codes, query, options)
            print(json.dumps(MultiSearchResponse.from_result(multi).model_dump(by_alias=True), indent=2))
            return 0 if multi.succeeded else 1

        if not args.code or not args.query:
            parser.error("code and query are required")
        result = await scraper.search(args.code, args.query, options)
        print(json.dumps(SearchEntityResponse.from_result(result).to_payload(), indent=2))
        return 0 if result.success else 1
    finally:
        await scraper.close()


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    configure_logging(verbose=args.verbose)

    if args.list_jurisdictions:
        print(json.dumps(_list_payload(), indent=2))
        return 0
    return asyncio.run(_run(args, parser))


if __name__ == "__main__":
    raise SystemExit(main())
