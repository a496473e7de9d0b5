"""
Command-line interface for natura-map.

Thin wiring around the search orchestrator: progress goes to stderr, GeoJSON
to stdout (or ``--output``).
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from natura_map import __version__
from natura_map.config import get_settings
from natura_map.datasources.inaturalist.records import ResultSet
from natura_map.errors import InvalidQueryError
from natura_map.log import setup_logging
from natura_map.reference.presets import PRESETS, get_preset
from natura_map.schemas import Query, SearchStatus
from natura_map.search import SearchOrchestrator, SearchUpdate


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="natura-map",
        description="Fetch iNaturalist observations as GeoJSON for biodiversity maps",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'search' command
    search_parser = subparsers.add_parser("search", help="Search observations")
    search_parser.add_argument("--taxon-id", type=int, default=None, help="iNaturalist taxon id")
    search_parser.add_argument("--taxon-name", default=None, help="Taxon name (if no id)")
    search_parser.add_argument("--place-id", type=int, default=None, help="iNaturalist place id")
    search_parser.add_argument(
        "--from", dest="date_from", type=date.fromisoformat, default=None, help="YYYY-MM-DD"
    )
    search_parser.add_argument(
        "--to", dest="date_to", type=date.fromisoformat, default=None, help="YYYY-MM-DD"
    )
    search_parser.add_argument("--quality-grade", default=None, help="e.g. research, needs_id")
    search_parser.add_argument("--preset", default=None, help="Use a quick-select preset")
    search_parser.add_argument(
        "-o", "--output", type=Path, default=None, help="Write GeoJSON here instead of stdout"
    )

    # autocomplete commands
    taxa_parser = subparsers.add_parser("taxa", help="Suggest taxa matching a name")
    taxa_parser.add_argument("text")
    places_parser = subparsers.add_parser("places", help="Suggest places matching a name")
    places_parser.add_argument("text")

    subparsers.add_parser("presets", help="List quick-select presets")
    subparsers.add_parser("prefetch", help="Warm the cache with all presets")
    subparsers.add_parser("clear-cache", help="Delete all cached search results")
    subparsers.add_parser("info", help="Show application info")

    return parser


def _build_query(args: argparse.Namespace) -> Query:
    if args.preset:
        return get_preset(args.preset).query
    return Query(
        taxon_id=args.taxon_id,
        taxon_name=args.taxon_name,
        place_id=args.place_id,
        date_from=args.date_from,
        date_to=args.date_to,
        quality_grade=args.quality_grade,
    )


def _print_progress(snapshot: ResultSet, update: SearchUpdate) -> None:
    if update.status is SearchStatus.PROGRESS:
        print(
            f"Fetching... {update.fetched} of ~{update.total} observations",
            file=sys.stderr,
        )
    elif update.status is SearchStatus.COMPLETE:
        suffix = " (cached)" if update.cached else ""
        print(f"{len(snapshot)} observations loaded{suffix}", file=sys.stderr)
    elif update.status is SearchStatus.CANCELLED:
        print("Search cancelled", file=sys.stderr)
    else:
        print(f"Error: {update.error}", file=sys.stderr)


def cmd_search(args: argparse.Namespace) -> int:
    """Handle the 'search' command."""
    try:
        query = _build_query(args)
    except KeyError:
        print(f"Unknown preset: {args.preset}", file=sys.stderr)
        return 1

    orchestrator = SearchOrchestrator.from_settings(get_settings())
    try:
        handle = orchestrator.search(query, _print_progress)
    except InvalidQueryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    handle.wait()
    if handle.final is None or handle.final.status is not SearchStatus.COMPLETE:
        return 1

    payload = json.dumps((handle.result or ResultSet()).to_feature_collection())
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload, encoding="utf-8")
        print(f"Wrote {args.output}", file=sys.stderr)
    else:
        print(payload)
    return 0


def cmd_taxa(args: argparse.Namespace) -> int:
    """Handle the 'taxa' command."""
    orchestrator = SearchOrchestrator.from_settings(get_settings())
    for taxon in orchestrator.suggest_taxa(args.text):
        print(f"{taxon.id}\t{taxon.rank}\t{taxon.display_name}")
    return 0


def cmd_places(args: argparse.Namespace) -> int:
    """Handle the 'places' command."""
    orchestrator = SearchOrchestrator.from_settings(get_settings())
    for place in orchestrator.suggest_places(args.text):
        print(f"{place.id}\t{place.name}")
    return 0


def cmd_presets(_args: argparse.Namespace) -> int:
    """Handle the 'presets' command."""
    for preset in PRESETS:
        print(f"{preset.label}: {preset.query.describe()}")
    return 0


def cmd_prefetch(_args: argparse.Namespace) -> int:
    """Handle the 'prefetch' command."""
    from natura_map.flows.prefetch import prefetch_presets

    summary = prefetch_presets()
    return 1 if summary["failed"] else 0


def cmd_clear_cache(_args: argparse.Namespace) -> int:
    """Handle the 'clear-cache' command."""
    from natura_map.cache import ResultCache

    removed = ResultCache.from_settings(get_settings()).clear()
    print(f"Removed {removed} cached searches")
    return 0


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"API: {settings.api_base}")
    print(f"Cache: {settings.cache_dir} (TTL {settings.cache_ttl_seconds}s)")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = get_settings()
    setup_logging("DEBUG" if args.debug or settings.debug else settings.log_level)

    commands = {
        "search": cmd_search,
        "taxa": cmd_taxa,
        "places": cmd_places,
        "presets": cmd_presets,
        "prefetch": cmd_prefetch,
        "clear-cache": cmd_clear_cache,
        "info": cmd_info,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
