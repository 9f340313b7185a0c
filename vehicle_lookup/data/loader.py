"""
Remote record loading: fast JSON feed first, spreadsheet export as fallback.
"""
from __future__ import annotations

import io
import json
from typing import Any, Optional

import httpx
import pandas as pd
from openpyxl import load_workbook

from vehicle_lookup.config import HTTP_TIMEOUT
from vehicle_lookup.data.normalize import display_text, normalize_frame, normalize_records
from vehicle_lookup.data.schemas import FetchResult, Provenance, Record, ResolvedSources
from vehicle_lookup.errors import (
    EmptyResult, MalformedFastFeed, RemoteFetchError, SourceChainExhausted, SourceNotConfigured,
)


# ---------------------------------------------------------------------------
# Fast feed (visualization-query JSON wrapped in a callback)
# ---------------------------------------------------------------------------

def _placeholder(index: int) -> str:
    return f"column_{index}"


def parse_fast_feed(text: str) -> list[dict[str, Any]]:
    """Unwrap `callback({...});` and turn table cols/rows into dict rows.

    Raises MalformedFastFeed on anything that is not a usable table.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise MalformedFastFeed("response does not contain a JSON object")

    try:
        data = json.loads(text[start:end + 1])
    except ValueError as exc:
        raise MalformedFastFeed(f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedFastFeed("payload is not an object")

    if data.get("status") == "error":
        errors = data.get("errors") or []
        message = None
        if errors and isinstance(errors[0], dict):
            message = errors[0].get("message")
        raise MalformedFastFeed(message or "Error loading data")

    table = data.get("table")
    if not isinstance(table, dict):
        raise MalformedFastFeed("payload has no table")

    columns = []
    for index, col in enumerate(table.get("cols") or []):
        col = col if isinstance(col, dict) else {}
        columns.append(col.get("label") or col.get("id") or _placeholder(index))

    rows = []
    for row in table.get("rows") or []:
        cells = row.get("c") if isinstance(row, dict) else None
        obj: dict[str, Any] = {}
        for index, cell in enumerate(cells or []):
            name = columns[index] if index < len(columns) else _placeholder(index)
            if isinstance(cell, dict):
                value = cell.get("v")
                if value is None:
                    value = cell.get("f")
            else:
                value = None
            obj[name] = "" if value is None else value
        rows.append(obj)
    return rows


# ---------------------------------------------------------------------------
# Spreadsheet export (.xlsx)
# ---------------------------------------------------------------------------

def _header_names(cells: list[str]) -> list[str]:
    """Header row to field names: blanks get placeholders, repeats get `.N`."""
    names: list[str] = []
    seen: dict[str, int] = {}
    for index, text in enumerate(cells):
        name = text.strip() or _placeholder(index)
        if name in seen:
            seen[name] += 1
            name = f"{name}.{seen[name]}"
        else:
            seen[name] = 0
        names.append(name)
    return names


def read_workbook(content: bytes) -> list[Record]:
    """First sheet, header row as field names, cells as their display text."""
    wb = load_workbook(io.BytesIO(content), data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = [
            [display_text(cell.value, cell.number_format, getattr(cell, "is_date", False)) for cell in row]
            for row in ws.iter_rows()
        ]
    finally:
        wb.close()

    if not rows:
        return []
    header = _header_names(rows[0])
    body = [row for row in rows[1:] if any(text.strip() for text in row)]
    df = pd.DataFrame(body, columns=header, dtype=object)
    return normalize_frame(df)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

class RemoteLoader:
    """Fetches from the configured endpoints, fast feed before spreadsheet."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = HTTP_TIMEOUT) -> None:
        self._client = client
        self.timeout = timeout

    async def _get(self, source: Provenance, url: str) -> httpx.Response:
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url)
        except httpx.HTTPError as exc:
            raise RemoteFetchError(source.value, f"request failed: {exc}") from exc

        if not response.is_success:
            raise RemoteFetchError(
                source.value, f"HTTP error {response.status_code}", status_code=response.status_code,
            )
        return response

    async def fetch_fast_feed(self, url: Optional[str]) -> FetchResult:
        if not url:
            raise SourceNotConfigured(Provenance.FAST_FEED.value)
        print("Loading records from fast feed...")
        response = await self._get(Provenance.FAST_FEED, url)
        records = normalize_records(parse_fast_feed(response.text))
        if not records:
            raise EmptyResult(Provenance.FAST_FEED.value)
        print(f"  Fast feed: {len(records):,} records")
        return FetchResult(rows=records, source=Provenance.FAST_FEED, url=url)

    async def fetch_spreadsheet(self, url: Optional[str]) -> FetchResult:
        if not url:
            raise SourceNotConfigured(Provenance.SPREADSHEET.value)
        print("Loading records from spreadsheet export (fallback)...")
        response = await self._get(Provenance.SPREADSHEET, url)
        try:
            records = read_workbook(response.content)
        except Exception as exc:
            raise RemoteFetchError(Provenance.SPREADSHEET.value, f"unreadable workbook: {exc}") from exc
        if not records:
            raise EmptyResult(Provenance.SPREADSHEET.value)
        print(f"  Spreadsheet: {len(records):,} records")
        return FetchResult(rows=records, source=Provenance.SPREADSHEET, url=url)

    async def fetch_with_fallback(self, sources: ResolvedSources) -> FetchResult:
        """Fast feed, then spreadsheet; SourceChainExhausted if both fail."""
        failures: dict[str, Exception] = {}
        try:
            return await self.fetch_fast_feed(sources.fast_feed_url)
        except Exception as exc:
            print(f"  Warning: fast feed failed, trying spreadsheet: {exc}")
            failures[Provenance.FAST_FEED.value] = exc

        try:
            return await self.fetch_spreadsheet(sources.spreadsheet_url)
        except Exception as exc:
            print(f"  Warning: spreadsheet failed too: {exc}")
            failures[Provenance.SPREADSHEET.value] = exc

        raise SourceChainExhausted(failures)
