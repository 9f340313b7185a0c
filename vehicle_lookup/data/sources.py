"""
Remote source resolution: which fast-feed / spreadsheet URLs to use.

Priority per endpoint: deploy-time config -> learned override -> None.
A URL that produced data is remembered so a later run without config
still knows where to fetch from.
"""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from vehicle_lookup.config import (
    JSON_URL, EXCEL_URL, PREFERENCES_FOLDER, PREFERENCES_JSON_URL_KEY, PREFERENCES_EXCEL_URL_KEY,
)
from vehicle_lookup.data.schemas import Failed, Ok, Provenance, ResolvedSources, Result
from vehicle_lookup.data.storage import KeyValueStore

_OVERRIDE_KEYS = {
    Provenance.FAST_FEED: PREFERENCES_JSON_URL_KEY,
    Provenance.SPREADSHEET: PREFERENCES_EXCEL_URL_KEY,
}


def _clean(url: Optional[str]) -> Optional[str]:
    if url is None:
        return None
    url = str(url).strip()
    return url or None


class SourceResolver:
    """Resolves endpoint URLs; never raises."""

    def __init__(
        self,
        json_url: Optional[str] = JSON_URL,
        excel_url: Optional[str] = EXCEL_URL,
        preferences: Optional[KeyValueStore] = None,
        folder: Path = PREFERENCES_FOLDER,
    ) -> None:
        self.configured = {
            Provenance.FAST_FEED: _clean(json_url),
            Provenance.SPREADSHEET: _clean(excel_url),
        }
        self.preferences = preferences if preferences is not None else KeyValueStore(folder)

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    def _read_override(self, kind: Provenance) -> Optional[str]:
        try:
            return _clean(self.preferences.get(_OVERRIDE_KEYS[kind]))
        except Exception as exc:
            print(f"  Warning: could not read saved {kind.value} URL: {exc}")
            return None

    def _write_override(self, kind: Provenance, url: str) -> Result:
        try:
            self.preferences.set(_OVERRIDE_KEYS[kind], url)
        except Exception as exc:
            print(f"  Warning: could not save {kind.value} URL: {exc}")
            return Failed(str(exc))
        return Ok(url)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_one(self, kind: Provenance) -> Optional[str]:
        configured = self.configured.get(kind)
        if configured:
            return configured
        return self._read_override(kind)

    def resolve_now(self) -> ResolvedSources:
        """Blocking resolution (CLI / API introspection)."""
        return ResolvedSources(
            fast_feed_url=self.resolve_one(Provenance.FAST_FEED),
            spreadsheet_url=self.resolve_one(Provenance.SPREADSHEET),
        )

    async def resolve(self) -> ResolvedSources:
        return await asyncio.to_thread(self.resolve_now)

    async def remember(self, kind: Provenance, url: Optional[str]) -> Result:
        """Persist a URL that just produced data. Failures only get logged."""
        url = _clean(url)
        if url is None or kind not in _OVERRIDE_KEYS:
            return Failed("nothing to remember")
        return await asyncio.to_thread(self._write_override, kind, url)
