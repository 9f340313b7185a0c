"""
RecordStore: the in-memory working set.

Single shared object. The synchronizer is the only writer (publish / sync
status); the API, CLI, and search run read-only against it.
"""
from __future__ import annotations

import time
from typing import Optional

from vehicle_lookup.data.schemas import Provenance, Record, SearchMode


class RecordStore:
    """Current household records plus where they came from."""

    def __init__(self) -> None:
        self.records: list[Record] = []
        self.source: Optional[Provenance] = None
        self.published_at: Optional[float] = None
        self.error: Optional[str] = None
        self._syncing = 0

    # ------------------------------------------------------------------
    # Writer side (DataSynchronizer only)
    # ------------------------------------------------------------------

    def publish(self, records: list[Record], source: Provenance) -> None:
        self.records = records
        self.source = source
        self.published_at = time.time()
        self.error = None

    def set_error(self, error: Optional[str]) -> None:
        self.error = error

    def begin_sync(self) -> None:
        self._syncing += 1

    def end_sync(self) -> None:
        self._syncing = max(0, self._syncing - 1)

    # ------------------------------------------------------------------
    # Reader side
    # ------------------------------------------------------------------

    @property
    def is_syncing(self) -> bool:
        return self._syncing > 0

    @property
    def is_loading(self) -> bool:
        """Show a spinner only while nothing is on screen yet."""
        return self.is_syncing and not self.records

    @property
    def is_loaded(self) -> bool:
        return bool(self.records)

    def row_count(self) -> int:
        return len(self.records)

    def search(self, query: str, mode: SearchMode = SearchMode.ALL, exact: bool = False) -> list[Record]:
        from vehicle_lookup.search.engine import filter_records
        return filter_records(self.records, query, mode, exact)
