"""
Search endpoints: one-shot filtered listing and live (debounced) search.
"""
from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from vehicle_lookup.api.dependencies import Services, get_services, get_store, parse_mode
from vehicle_lookup.api.response_models import RecordHit, SearchResponse
from vehicle_lookup.data.normalize import normalize_record
from vehicle_lookup.data.schemas import Household, SearchMode
from vehicle_lookup.data.store import RecordStore
from vehicle_lookup.search.engine import matched_fields
from vehicle_lookup.search.query import SearchSession

router = APIRouter(prefix="/api", tags=["search"])


def _hit(record, query: str, mode: SearchMode, exact: bool) -> RecordHit:
    household = Household.from_record(record)
    return RecordHit(
        record=normalize_record(record),
        household={
            **asdict(household),
            "vehicles": [asdict(v) for v in household.present_vehicles()],
            "students": [asdict(s) for s in household.present_students()],
        },
        matched_fields=matched_fields(record, query, mode, exact),
    )


def build_response(
    store: RecordStore,
    query: str,
    mode: SearchMode,
    exact: bool,
    limit: Optional[int] = None,
    offset: int = 0,
) -> SearchResponse:
    results = store.search(query, mode, exact)
    page = results[offset:offset + limit] if limit is not None else results[offset:]
    return SearchResponse(
        query=query,
        mode=mode.value,
        exact=exact,
        total=store.row_count(),
        matched=len(results),
        source=store.source.value if store.source else None,
        results=[_hit(r, query, mode, exact) for r in page],
    )


@router.get("/records", response_model=SearchResponse)
def search_records(
    q: str = Query("", description="Plate, sticker, student, guardian, email or phone"),
    mode: SearchMode = Depends(parse_mode),
    exact: bool = Query(False),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    store: RecordStore = Depends(get_store),
):
    return build_response(store, q, mode, exact, limit, offset)


@router.websocket("/search/live")
async def live_search(websocket: WebSocket, services: Services = Depends(get_services)):
    """Client sends {"text"|"mode"|"exact"}; server pushes results after debounce."""
    await websocket.accept()
    changes: asyncio.Queue = asyncio.Queue()
    session = SearchSession(on_change=lambda _s: changes.put_nowait(None))

    async def receive() -> None:
        while True:
            message = await websocket.receive_json()
            if not isinstance(message, dict):
                await websocket.send_json({"error": "Expected a JSON object"})
                continue
            if "mode" in message:
                try:
                    session.set_mode(message["mode"])
                except (ValueError, TypeError):
                    await websocket.send_json({"error": f"Invalid mode: {message['mode']}"})
            if "exact" in message:
                session.set_exact(bool(message["exact"]))
            if "text" in message:
                session.set_text(str(message["text"] or ""))

    async def push() -> None:
        while True:
            await changes.get()
            response = build_response(
                services.store, session.debounced_text, session.mode, session.exact, limit=50,
            )
            await websocket.send_json(response.model_dump())

    tasks = [asyncio.create_task(receive()), asyncio.create_task(push())]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                raise exc
    finally:
        session.close()
        for task in tasks:
            task.cancel()
