"""
Search query state: raw text is debounced, mode and exactness are not.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Optional, Sequence

from vehicle_lookup.config import SEARCH_DEBOUNCE_MS
from vehicle_lookup.data.schemas import Record, SearchMode
from vehicle_lookup.search.engine import filter_records


class SearchSession:
    """Per-client query state.

    `set_text` restarts a timer on the running event loop; when it fires the
    debounced text catches up and `on_change` listeners run. Mode and
    exactness take effect immediately.
    """

    def __init__(
        self,
        delay_ms: int = SEARCH_DEBOUNCE_MS,
        on_change: Optional[Callable[["SearchSession"], None]] = None,
    ) -> None:
        self.delay = delay_ms / 1000
        self.raw_text = ""
        self.debounced_text = ""
        self.mode = SearchMode.ALL
        self.exact = False
        self._on_change = on_change
        self._timer: Optional[asyncio.TimerHandle] = None

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    def _fire(self) -> None:
        self._timer = None
        if self.debounced_text != self.raw_text:
            self.debounced_text = self.raw_text
            self._notify()

    def set_text(self, text: str) -> None:
        self.raw_text = text or ""
        if self._timer is not None:
            self._timer.cancel()
        if self.delay <= 0:
            self._fire()
            return
        self._timer = asyncio.get_running_loop().call_later(self.delay, self._fire)

    def set_mode(self, mode: SearchMode | str) -> None:
        self.mode = SearchMode(mode)
        self._notify()

    def set_exact(self, exact: bool) -> None:
        self.exact = bool(exact)
        self._notify()

    def clear(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        changed = bool(self.debounced_text)
        self.raw_text = self.debounced_text = ""
        if changed:
            self._notify()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def results(self, records: Sequence[Record]) -> Sequence[Record]:
        return filter_records(records, self.debounced_text, self.mode, self.exact)

    def close(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
