"""
DataSynchronizer: cache-first display with background refresh.

Phases of one sync:
  1. publish cached records right away (provenance "cache")
  2. stop if offline
  3. fetch: fast feed, then spreadsheet
  4. success -> normalize, save to cache, publish with the remote provenance
  5. failure -> keep whatever is showing; only report an error when nothing is

Concurrent syncs are not serialized; whichever finishes last owns the
working set.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from vehicle_lookup.data.cache import CacheStore
from vehicle_lookup.data.connectivity import ConnectivityMonitor
from vehicle_lookup.data.loader import RemoteLoader
from vehicle_lookup.data.normalize import normalize_records
from vehicle_lookup.data.schemas import Failed, Ok, Provenance, SyncResult
from vehicle_lookup.data.sources import SourceResolver
from vehicle_lookup.data.store import RecordStore
from vehicle_lookup.errors import EmptyResult, NoCacheNoNetwork, SyncError


class DataSynchronizer:
    """Only component allowed to write the working set."""

    def __init__(
        self,
        store: RecordStore,
        cache: CacheStore,
        resolver: SourceResolver,
        loader: Optional[RemoteLoader] = None,
        connectivity: Optional[ConnectivityMonitor] = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.resolver = resolver
        self.loader = loader or RemoteLoader()
        self.connectivity = connectivity or ConnectivityMonitor()

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _render_cache(self) -> bool:
        loaded = await asyncio.to_thread(self.cache.load)
        if isinstance(loaded, Ok) and loaded.value.records:
            self.store.publish(loaded.value.records, Provenance.CACHE)
            print(f"  Showing {len(loaded.value.records):,} cached records")
            return True
        return False

    async def _persist(self, records) -> None:
        saved = await asyncio.to_thread(self.cache.save, records)
        if isinstance(saved, Failed):
            # Fresh data is still shown; it just won't survive a restart
            print(f"  Warning: could not persist records to cache: {saved.reason}")

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def sync(self, force_refresh: bool = False) -> SyncResult:
        self.store.begin_sync()
        try:
            return await self._sync(force_refresh)
        finally:
            self.store.end_sync()

    async def _sync(self, force_refresh: bool) -> SyncResult:
        if force_refresh and self.store.records:
            showing = True
        else:
            showing = await self._render_cache() or bool(self.store.records)

        if not self.connectivity.is_online():
            if showing:
                print("  Offline — keeping current records")
                self.store.set_error(None)
                return self._result()
            error = str(NoCacheNoNetwork())
            print(f"  {error}")
            self.store.set_error(error)
            return self._result(error)

        try:
            sources = await self.resolver.resolve()
            fetched = await self.loader.fetch_with_fallback(sources)
            records = normalize_records(fetched.rows)
            if not records:
                raise EmptyResult(fetched.source.value)
        except SyncError as exc:
            if showing:
                print(f"  Warning: refresh failed, keeping current records: {exc}")
                self.store.set_error(None)
                return self._result()
            error = str(exc)
            self.store.set_error(error)
            return self._result(error)

        await self._persist(records)
        self.store.publish(records, fetched.source)
        print(f"  Published {len(records):,} records from {fetched.source.value}")
        await self.resolver.remember(fetched.source, fetched.url)
        return self._result()

    def _result(self, error: Optional[str] = None) -> SyncResult:
        return SyncResult(records=self.store.records, source=self.store.source, error=error)
