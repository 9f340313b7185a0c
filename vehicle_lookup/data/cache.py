"""
Offline cache of the last successfully synchronized record set.

Three entries live side by side: the JSON payload, the capture timestamp
(epoch ms) and the version tag. They are written and cleared together; a
reader never sees one without the others. Every public method is
best-effort: failures come back as ABSENT / Failed, never as exceptions.
"""
from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Optional

from vehicle_lookup.config import (
    CACHE_FOLDER, CACHE_KEY, CACHE_TIMESTAMP_KEY, CACHE_VERSION_KEY, CACHE_VERSION,
    CACHE_QUOTA_BYTES,
)
from vehicle_lookup.data.schemas import ABSENT, CacheEntry, CacheInfo, Failed, Ok, Record, Result
from vehicle_lookup.data.storage import KeyValueStore
from vehicle_lookup.errors import QuotaExceededError

_KEYS = (CACHE_KEY, CACHE_TIMESTAMP_KEY, CACHE_VERSION_KEY)


class CacheStore:
    """Versioned persistence for the working set."""

    def __init__(
        self,
        kv: Optional[KeyValueStore] = None,
        version: str = CACHE_VERSION,
        folder: Path = CACHE_FOLDER,
    ) -> None:
        self.kv = kv if kv is not None else KeyValueStore(folder, quota_bytes=CACHE_QUOTA_BYTES)
        self.version = version

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _write_all(self, payload: str) -> None:
        try:
            self.kv.set(CACHE_KEY, payload)
            self.kv.set(CACHE_TIMESTAMP_KEY, str(int(time.time() * 1000)))
            self.kv.set(CACHE_VERSION_KEY, self.version)
        except Exception:
            # Roll back so no partial entry survives
            self._remove_all()
            raise

    def save(self, records: list[Record]) -> Result:
        """Persist records; Ok(count) or Failed(reason)."""
        try:
            payload = json.dumps(records, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            print(f"  Warning: cache not saved, records are not serializable: {exc}")
            return Failed(str(exc))

        try:
            self._write_all(payload)
        except QuotaExceededError as exc:
            print(f"  Cache storage full ({exc}); clearing and retrying once")
            self._clear_everything()
            try:
                self._write_all(payload)
            except Exception as retry_exc:
                print(f"  Warning: cache not saved even after clearing: {retry_exc}")
                return Failed(str(retry_exc))
        except Exception as exc:
            print(f"  Warning: cache not saved: {exc}")
            return Failed(str(exc))

        print(f"  Cache saved — {len(records):,} records")
        return Ok(len(records))

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def load(self) -> Result:
        """Ok(CacheEntry), or ABSENT when missing, stale, or corrupt."""
        try:
            payload = self.kv.get(CACHE_KEY)
            if payload is None:
                print("  No cached records")
                return ABSENT

            version = self.kv.get(CACHE_VERSION_KEY)
            if version != self.version:
                print(f"  Cache version {version!r} != {self.version!r}, clearing")
                self.clear()
                return ABSENT

            records = json.loads(payload)
            if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
                raise ValueError("cached payload is not a list of records")
            timestamp = self.kv.get(CACHE_TIMESTAMP_KEY)
            captured_at = int(timestamp) if timestamp else 0
        except Exception as exc:
            print(f"  Warning: cached records unreadable ({exc}), clearing")
            self.clear()
            return ABSENT

        print(f"  Loaded {len(records):,} records from cache")
        return Ok(CacheEntry(records=records, version=version, captured_at=captured_at))

    def info(self) -> CacheInfo:
        """Describe the current entry without touching it."""
        try:
            payload = self.kv.get(CACHE_KEY)
            if payload is None:
                return CacheInfo(exists=False)
            timestamp = self.kv.get(CACHE_TIMESTAMP_KEY)
            return CacheInfo(
                exists=True,
                count=len(json.loads(payload)),
                size_bytes=len(payload.encode("utf-8")),
                captured_at=int(timestamp) if timestamp else None,
                version=self.kv.get(CACHE_VERSION_KEY),
            )
        except Exception:
            return CacheInfo(exists=False)

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------

    def _remove_all(self) -> None:
        for key in _KEYS:
            try:
                self.kv.remove(key)
            except OSError:
                pass

    def _clear_everything(self) -> None:
        """Drop every entry in the cache folder, including leftovers from older builds."""
        try:
            self.kv.clear()
        except OSError:
            self._remove_all()

    def clear(self) -> bool:
        """Remove payload, timestamp, and version together."""
        try:
            for key in _KEYS:
                self.kv.remove(key)
        except OSError as exc:
            print(f"  Warning: could not clear cache: {exc}")
            self._remove_all()
            return False
        print("  Cache cleared")
        return True
