"""
Meta endpoints: health, sync, cache, sources, connectivity.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from vehicle_lookup.api.dependencies import Services, get_services
from vehicle_lookup.api.response_models import (
    HealthResponse, SyncResponse, CacheInfoResponse, SourcesResponse,
    ConnectivityRequest, ConnectivityResponse,
)

router = APIRouter(prefix="/api", tags=["meta"])


@router.get("/health", response_model=HealthResponse)
def health(services: Services = Depends(get_services)):
    store = services.store
    return HealthResponse(
        status="ok",
        ready=services.ready,
        records=store.row_count(),
        source=store.source.value if store.source else None,
        syncing=store.is_syncing,
        loading=store.is_loading,
        online=services.connectivity.is_online(),
        error=store.error,
    )


@router.post("/sync", response_model=SyncResponse)
async def run_sync(force: bool = False, services: Services = Depends(get_services)):
    """Run a sync now and wait for it (cache render + refresh)."""
    result = await services.synchronizer.sync(force_refresh=force)
    return SyncResponse(
        count=len(result.records),
        source=result.source.value if result.source else None,
        error=result.error,
    )


@router.get("/cache", response_model=CacheInfoResponse)
def cache_info(services: Services = Depends(get_services)):
    info = services.cache.info()
    return CacheInfoResponse(
        exists=info.exists,
        count=info.count,
        size_bytes=info.size_bytes,
        captured_at=info.captured_at,
        last_update=info.last_update,
        version=info.version,
    )


@router.delete("/cache")
def clear_cache(services: Services = Depends(get_services)):
    cleared = services.cache.clear()
    return {"status": "cleared" if cleared else "failed"}


@router.get("/sources", response_model=SourcesResponse)
def sources(services: Services = Depends(get_services)):
    resolved = services.resolver.resolve_now()
    return SourcesResponse(
        fast_feed_url=resolved.fast_feed_url,
        spreadsheet_url=resolved.spreadsheet_url,
    )


@router.get("/connectivity", response_model=ConnectivityResponse)
def get_connectivity(services: Services = Depends(get_services)):
    return ConnectivityResponse(online=services.connectivity.is_online())


@router.put("/connectivity", response_model=ConnectivityResponse)
def set_connectivity(body: ConnectivityRequest, services: Services = Depends(get_services)):
    """Flip the online flag. Does not start a sync; call /api/sync for that."""
    services.connectivity.set_online(body.online)
    return ConnectivityResponse(online=services.connectivity.is_online())
