"""
Device-local key/value storage: one small file per key.

Backs both the offline record cache and the learned endpoint overrides.
Writes go through a temp file + os.replace so a key is never half-written.
"""
from __future__ import annotations

import errno
import os
import tempfile
from pathlib import Path
from typing import Optional

from vehicle_lookup.errors import QuotaExceededError

_SUFFIX = ".val"
_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class KeyValueStore:
    """String values under a folder, with an optional total-size quota."""

    def __init__(self, folder: Path, quota_bytes: Optional[int] = None) -> None:
        self.folder = Path(folder)
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return self.folder / f"{safe}{_SUFFIX}"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def size_of(self, key: str) -> int:
        path = self._path(key)
        return path.stat().st_size if path.exists() else 0

    def used_bytes(self) -> int:
        if not self.folder.exists():
            return 0
        return sum(p.stat().st_size for p in self.folder.glob(f"*{_SUFFIX}"))

    def keys(self) -> list[str]:
        if not self.folder.exists():
            return []
        return sorted(p.name[: -len(_SUFFIX)] for p in self.folder.glob(f"*{_SUFFIX}"))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(self, key: str, value: str) -> None:
        """Write a value; raises QuotaExceededError when there is no room."""
        data = value.encode("utf-8")
        if self.quota_bytes is not None:
            projected = self.used_bytes() - self.size_of(key) + len(data)
            if projected > self.quota_bytes:
                raise QuotaExceededError(
                    errno.ENOSPC,
                    f"storing {key!r} needs {projected:,} bytes, quota is {self.quota_bytes:,}",
                )

        self.folder.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.folder, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, self._path(key))
        except OSError as exc:
            Path(tmp).unlink(missing_ok=True)
            if exc.errno in _QUOTA_ERRNOS and not isinstance(exc, QuotaExceededError):
                raise QuotaExceededError(exc.errno, str(exc)) from exc
            raise

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def clear(self) -> None:
        for key in self.keys():
            self.remove(key)
