"""
Vehicle Lookup: FastAPI app factory with background startup sync.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vehicle_lookup.api.dependencies import Services, build_services, set_services
from vehicle_lookup.api.router_meta import router as meta_router
from vehicle_lookup.api.router_search import router as search_router


def _make_lifespan(services: Services | None, initial_sync: bool):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Report ready at once; the first sync runs in the background."""
        svc = services or build_services()
        set_services(svc)

        from vehicle_lookup.config import BASE_FOLDER
        print(f"  VEHICLE_LOOKUP_DATA_DIR = {BASE_FOLDER}")
        resolved = svc.resolver.resolve_now()
        print(f"  Fast feed URL = {resolved.fast_feed_url or '(not set)'}")
        print(f"  Spreadsheet URL = {resolved.spreadsheet_url or '(not set)'}")
        print(f"  Online = {svc.connectivity.is_online()}")

        # Readiness never waits on data: a slow or failed sync must not hold it
        svc.ready = True
        if initial_sync:
            task = asyncio.create_task(svc.synchronizer.sync())
            svc.background.add(task)
            task.add_done_callback(svc.background.discard)

        print("\nVehicle Lookup ready — loading records in the background\n")
        try:
            yield
        finally:
            for task in list(svc.background):
                task.cancel()
            svc.ready = False
            set_services(None)

    return lifespan


def create_app(services: Services | None = None, initial_sync: bool = True) -> FastAPI:
    app = FastAPI(
        title="Vehicle Lookup API",
        description="Vehicle / family registration lookup by plate, sticker, student or guardian",
        version="1.0.0",
        lifespan=_make_lifespan(services, initial_sync),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(meta_router)
    app.include_router(search_router)

    return app


app = create_app()
