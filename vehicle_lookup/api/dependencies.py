"""
FastAPI dependencies: service singletons, search parameter parsing.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from fastapi import HTTPException, Query

from vehicle_lookup.data.cache import CacheStore
from vehicle_lookup.data.connectivity import ConnectivityMonitor
from vehicle_lookup.data.schemas import SearchMode
from vehicle_lookup.data.sources import SourceResolver
from vehicle_lookup.data.store import RecordStore
from vehicle_lookup.data.sync import DataSynchronizer


@dataclass
class Services:
    store: RecordStore
    cache: CacheStore
    resolver: SourceResolver
    connectivity: ConnectivityMonitor
    synchronizer: DataSynchronizer
    ready: bool = False
    background: set = field(default_factory=set)


def build_services(
    cache: Optional[CacheStore] = None,
    resolver: Optional[SourceResolver] = None,
    connectivity: Optional[ConnectivityMonitor] = None,
    loader=None,
) -> Services:
    store = RecordStore()
    cache = cache or CacheStore()
    resolver = resolver or SourceResolver()
    connectivity = connectivity or ConnectivityMonitor()
    synchronizer = DataSynchronizer(store, cache, resolver, loader=loader, connectivity=connectivity)
    return Services(store, cache, resolver, connectivity, synchronizer)


# ---------------------------------------------------------------------------
# Global singleton (set during startup)
# ---------------------------------------------------------------------------
_services: Services | None = None


def set_services(services: Services | None) -> None:
    global _services
    _services = services


def get_services() -> Services:
    if _services is None:
        raise HTTPException(503, "Server not initialized yet")
    return _services


def get_store() -> RecordStore:
    return get_services().store


# ---------------------------------------------------------------------------
# Search parsing from query params
# ---------------------------------------------------------------------------

def parse_mode(mode: Optional[str] = Query(None, description="all|stickers")) -> SearchMode:
    if mode is None:
        return SearchMode.ALL
    try:
        return SearchMode(mode)
    except ValueError:
        raise HTTPException(400, f"Invalid mode: {mode}")
