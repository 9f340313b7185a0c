#!/usr/bin/env python3
"""
Vehicle Lookup CLI: sync, search, cache maintenance, and API server.

USAGE:
  python -m vehicle_lookup.cli sync                           # Cache first, then refresh
  python -m vehicle_lookup.cli sync --force                   # Refresh even if records are showing
  python -m vehicle_lookup.cli sync --offline                 # Cache only

  python -m vehicle_lookup.cli search "ABC1234"               # Search all fields
  python -m vehicle_lookup.cli search "T-9" --stickers        # Stickers only
  python -m vehicle_lookup.cli search "T-9" --exact           # Exact match

  python -m vehicle_lookup.cli cache info                     # Cached record set details
  python -m vehicle_lookup.cli cache clear                    # Drop the cached record set

  python -m vehicle_lookup.cli sources                        # Endpoints in use

  python -m vehicle_lookup.cli serve                          # Start API server
  python -m vehicle_lookup.cli serve --port 8000
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys

from vehicle_lookup.config import (
    PLATE_FIELDS, STICKER_FIELDS, STUDENT_FIELDS, ID_FIELD, FATHER_FIELD, MOTHER_FIELD,
    FATHER_EMAIL_FIELD, MOTHER_EMAIL_FIELD, MOBILE_FIELD, HOME_PHONE_FIELD,
)
from vehicle_lookup.data.cache import CacheStore
from vehicle_lookup.data.connectivity import ConnectivityMonitor
from vehicle_lookup.data.schemas import Household, SearchMode
from vehicle_lookup.data.sources import SourceResolver
from vehicle_lookup.data.store import RecordStore
from vehicle_lookup.data.sync import DataSynchronizer
from vehicle_lookup.search.engine import highlight, matched_fields


def _build(args) -> DataSynchronizer:
    connectivity = ConnectivityMonitor()
    if getattr(args, "offline", False):
        connectivity.set_online(False)
    return DataSynchronizer(RecordStore(), CacheStore(), SourceResolver(), connectivity=connectivity)


def _mark(text: str, query: str, exact: bool) -> str:
    """Wrap matched segments in [brackets] for the terminal."""
    return "".join(f"[{seg}]" if hit else seg for seg, hit in highlight(text, query, exact))


def _print_household(record: dict, query: str, mode: SearchMode, exact: bool) -> None:
    household = Household.from_record(record)
    hits = set(matched_fields(record, query, mode, exact))

    def show(field: str, value: str) -> str:
        return _mark(value, query, exact) if field in hits else value

    header = " · ".join(x for x in [household.registration_year, show(ID_FIELD, household.identification)] if x)
    print(f"  {header or '(no identification)'}")
    for i, (v, plate_f, sticker_f) in enumerate(zip(household.vehicles, PLATE_FIELDS, STICKER_FIELDS), start=1):
        if v is not None:
            print(f"    Vehicle {i}: {show(plate_f, v.plate) or '-'}  sticker {show(sticker_f, v.sticker) or '-'}  {v.model}")
    for i, (s, name_f) in enumerate(zip(household.students, STUDENT_FIELDS), start=1):
        if s is not None:
            print(f"    Student {i}: {show(name_f, s.name)} ({s.grade or '?'})")
    for label, field, value in [
        ("Father", FATHER_FIELD, household.father),
        ("Mother", MOTHER_FIELD, household.mother),
        ("Email (father)", FATHER_EMAIL_FIELD, household.father_email),
        ("Email (mother)", MOTHER_EMAIL_FIELD, household.mother_email),
        ("Mobile", MOBILE_FIELD, household.mobile),
        ("Home phone", HOME_PHONE_FIELD, household.home_phone),
    ]:
        if value:
            print(f"    {label}: {show(field, value)}")


def cmd_sync(args):
    """Load cache, then refresh from the remote sources."""
    print("\n" + "=" * 70)
    print("  VEHICLE LOOKUP — SYNC")
    print("=" * 70)

    synchronizer = _build(args)
    result = asyncio.run(synchronizer.sync(force_refresh=args.force))
    source = result.source.value if result.source else "none"
    print(f"\n  Records: {len(result.records):,} (source: {source})")
    if result.error:
        print(f"  Error: {result.error}")
        sys.exit(1)


def cmd_search(args):
    """Sync (cache first) and print matching households."""
    synchronizer = _build(args)
    result = asyncio.run(synchronizer.sync())
    if result.error and not result.records:
        print(f"  Error: {result.error}")
        sys.exit(1)

    mode = SearchMode.STICKERS if args.stickers else SearchMode.ALL
    store = synchronizer.store
    matches = store.search(args.query, mode, args.exact)
    print(f"\n  Showing {len(matches):,} of {store.row_count():,} records "
          f"(source: {store.source.value if store.source else 'none'})\n")
    for record in matches[: args.limit]:
        _print_household(record, args.query, mode, args.exact)
        print()
    if len(matches) > args.limit:
        print(f"  ... {len(matches) - args.limit:,} more (use --limit)")


def cmd_cache(args):
    cache = CacheStore()
    if args.action == "clear":
        print("Cache cleared." if cache.clear() else "Could not clear cache.")
        return
    info = cache.info()
    if not info.exists:
        print("No cached records.")
        return
    print(f"  Records:     {info.count:,}")
    print(f"  Size:        {round(info.size_bytes / 1024):,} KB")
    print(f"  Version:     {info.version}")
    print(f"  Last update: {info.last_update or 'unknown'}")


def cmd_sources(args):
    resolved = SourceResolver().resolve_now()
    print(f"  Fast feed:   {resolved.fast_feed_url or '(not configured)'}")
    print(f"  Spreadsheet: {resolved.spreadsheet_url or '(not configured)'}")


def cmd_serve(args):
    """Start the API server."""
    import uvicorn
    print(f"\nStarting Vehicle Lookup API on port {args.port}...")
    uvicorn.run("vehicle_lookup.main:app", host="0.0.0.0", port=args.port, reload=args.reload,
                timeout_keep_alive=65)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Vehicle Lookup: school vehicle/family registration search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # sync subcommand
    sync_parser = subparsers.add_parser("sync", help="Refresh the cached record set")
    sync_parser.add_argument("--force", action="store_true", help="Refresh even if records are showing")
    sync_parser.add_argument("--offline", action="store_true", help="Do not touch the network")
    sync_parser.set_defaults(func=cmd_sync)

    # search subcommand
    search_parser = subparsers.add_parser("search", help="Search records")
    search_parser.add_argument("query", help="Plate, sticker, student, guardian, email or phone")
    search_parser.add_argument("--stickers", action="store_true", help="Search sticker numbers only")
    search_parser.add_argument("--exact", action="store_true", help="Whole-value match")
    search_parser.add_argument("--offline", action="store_true", help="Use cached records only")
    search_parser.add_argument("--limit", type=int, default=20, help="Max households to print (default 20)")
    search_parser.set_defaults(func=cmd_search)

    # cache subcommand
    cache_parser = subparsers.add_parser("cache", help="Inspect or clear the offline cache")
    cache_parser.add_argument("action", choices=["info", "clear"])
    cache_parser.set_defaults(func=cmd_cache)

    # sources subcommand
    sources_parser = subparsers.add_parser("sources", help="Show resolved endpoints")
    sources_parser.set_defaults(func=cmd_sources)

    # serve subcommand
    serve_parser = subparsers.add_parser("serve", help="Start API server")
    serve_parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")), help="Port (default 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()
