import asyncio

import httpx

from helpers import (
    FAST_FEED_URL, SHEET_URL, bytes_route, gviz_from_records, gviz_text, mock_client, text_route,
    workbook_from_records,
)
from vehicle_lookup.data.cache import CacheStore
from vehicle_lookup.data.connectivity import ConnectivityMonitor
from vehicle_lookup.data.loader import RemoteLoader
from vehicle_lookup.data.schemas import Ok, Provenance
from vehicle_lookup.data.sources import SourceResolver
from vehicle_lookup.data.storage import KeyValueStore
from vehicle_lookup.data.store import RecordStore
from vehicle_lookup.data.sync import DataSynchronizer
from vehicle_lookup.errors import NoCacheNoNetwork

CACHED = [{"Placa1": "OLD0001", "Adesivo1": "1"}]
FRESH = [{"Placa1": "NEW0001", "Adesivo1": "2"}, {"Placa1": "NEW0002", "Adesivo1": "3"}]


def _build(tmp_path, routes, online=True, json_url=FAST_FEED_URL, excel_url=SHEET_URL,
           cached=None, calls=None, cache_quota=None):
    store = RecordStore()
    cache = CacheStore(kv=KeyValueStore(tmp_path / "cache", quota_bytes=cache_quota))
    if cached is not None:
        assert isinstance(cache.save(cached), Ok)
    resolver = SourceResolver(json_url, excel_url, preferences=KeyValueStore(tmp_path / "prefs"))
    synchronizer = DataSynchronizer(
        store,
        cache,
        resolver,
        loader=RemoteLoader(client=mock_client(routes, calls)),
        connectivity=ConnectivityMonitor(online=online),
    )
    return synchronizer


def test_cache_survives_total_network_failure(tmp_path):
    sync = _build(tmp_path, {
        FAST_FEED_URL: httpx.ConnectError("down"),
        SHEET_URL: httpx.ConnectError("down"),
    }, cached=CACHED)
    result = asyncio.run(sync.sync())
    assert result.records == CACHED
    assert result.source == Provenance.CACHE
    assert result.error is None


def test_offline_without_cache_reports_distinct_error(tmp_path):
    calls = []
    sync = _build(tmp_path, {}, online=False, calls=calls)
    result = asyncio.run(sync.sync())
    assert result.records == []
    assert result.error == str(NoCacheNoNetwork())
    assert sync.store.error == result.error
    assert calls == []


def test_offline_with_cache_shows_cache_quietly(tmp_path):
    calls = []
    sync = _build(tmp_path, {}, online=False, cached=CACHED, calls=calls)
    result = asyncio.run(sync.sync())
    assert result.records == CACHED
    assert result.source == Provenance.CACHE
    assert result.error is None
    assert calls == []


def test_fast_feed_success_publishes_saves_and_remembers(tmp_path):
    sync = _build(tmp_path, {FAST_FEED_URL: text_route(gviz_from_records(FRESH))})
    result = asyncio.run(sync.sync())
    assert result.records == FRESH
    assert result.source == Provenance.FAST_FEED
    assert result.error is None
    assert sync.cache.load().value.records == FRESH

    # A later session with no configured URLs learns it from the override
    later = SourceResolver(None, None, preferences=KeyValueStore(tmp_path / "prefs"))
    assert later.resolve_now().fast_feed_url == FAST_FEED_URL
    assert later.resolve_now().spreadsheet_url is None


def test_empty_fast_feed_uses_spreadsheet(tmp_path):
    sync = _build(tmp_path, {
        FAST_FEED_URL: text_route(gviz_text(["Placa1"], [])),
        SHEET_URL: bytes_route(workbook_from_records(FRESH)),
    })
    result = asyncio.run(sync.sync())
    assert result.source == Provenance.SPREADSHEET
    assert result.records == FRESH


def test_chain_failure_without_cache_surfaces_error(tmp_path):
    sync = _build(tmp_path, {
        FAST_FEED_URL: text_route("nope", status=404),
        SHEET_URL: text_route("nope", status=404),
    })
    result = asyncio.run(sync.sync())
    assert result.records == []
    assert result.source is None
    assert result.error.startswith("Could not load data")


def test_network_result_supersedes_cache_render(tmp_path):
    seen = []
    store_holder = {}

    def feed(request):
        store = store_holder["store"]
        # Cache is already on screen before the network answers
        seen.append((list(store.records), store.source, store.is_loading))
        return httpx.Response(200, text=gviz_from_records(FRESH))

    sync = _build(tmp_path, {FAST_FEED_URL: feed}, cached=CACHED)
    store_holder["store"] = sync.store
    result = asyncio.run(sync.sync())

    assert seen == [(CACHED, Provenance.CACHE, False)]
    assert result.records == FRESH
    assert result.source == Provenance.FAST_FEED


def test_loading_only_while_nothing_is_showing(tmp_path):
    seen = []
    holder = {}

    def feed(request):
        seen.append(holder["store"].is_loading)
        return httpx.Response(200, text=gviz_from_records(FRESH))

    sync = _build(tmp_path, {FAST_FEED_URL: feed})
    holder["store"] = sync.store
    asyncio.run(sync.sync())
    assert seen == [True]
    assert sync.store.is_loading is False


def test_forced_refresh_keeps_fresh_records_when_network_fails(tmp_path):
    routes = {FAST_FEED_URL: text_route(gviz_from_records(FRESH))}
    sync = _build(tmp_path, routes, cached=CACHED)
    asyncio.run(sync.sync())

    routes[FAST_FEED_URL] = httpx.ConnectError("down")
    routes[SHEET_URL] = httpx.ConnectError("down")
    result = asyncio.run(sync.sync(force_refresh=True))
    assert result.records == FRESH
    assert result.source == Provenance.FAST_FEED
    assert result.error is None


def test_cache_write_failure_does_not_block_fresh_data(tmp_path):
    sync = _build(tmp_path, {FAST_FEED_URL: text_route(gviz_from_records(FRESH))}, cache_quota=10)
    result = asyncio.run(sync.sync())
    assert result.records == FRESH
    assert result.source == Provenance.FAST_FEED
    assert result.error is None
    assert sync.cache.info().exists is False


def test_concurrent_syncs_last_finisher_wins(tmp_path):
    first = [{"Placa1": "SLOW001"}]
    second = [{"Placa1": "FAST001"}]
    counter = {"n": 0}

    async def feed(request):
        counter["n"] += 1
        if counter["n"] == 1:
            await asyncio.sleep(0.05)
            return httpx.Response(200, text=gviz_from_records(first))
        return httpx.Response(200, text=gviz_from_records(second))

    sync = _build(tmp_path, {FAST_FEED_URL: feed})

    async def run_both():
        return await asyncio.gather(sync.sync(), sync.sync())

    asyncio.run(run_both())
    assert sync.store.records == first
    assert sync.store.is_syncing is False
