"""
Error taxonomy for loading, caching, and synchronizing records.
"""
from __future__ import annotations


class SyncError(Exception):
    """Base class for every data-loading failure."""


class NoCacheNoNetwork(SyncError):
    """Offline with nothing cached; the user has to retry once online."""

    def __init__(self, message: str = "Offline and no cached data on this device") -> None:
        super().__init__(message)


class SourceNotConfigured(SyncError):
    """No URL is known for a remote source."""

    def __init__(self, source: str) -> None:
        super().__init__(f"URL for {source} is not configured")
        self.source = source


class RemoteFetchError(SyncError):
    """Network failure or non-2xx response from a remote source."""

    def __init__(self, source: str, detail: str, status_code: int | None = None) -> None:
        super().__init__(f"{source}: {detail}")
        self.source = source
        self.status_code = status_code


class MalformedFastFeed(SyncError):
    """The fast feed payload could not be parsed, or reported status=error."""


class EmptyResult(SyncError):
    """A source answered successfully but with zero rows."""

    def __init__(self, source: str) -> None:
        super().__init__(f"{source} returned no data")
        self.source = source


class SourceChainExhausted(SyncError):
    """Fast feed and spreadsheet both failed."""

    def __init__(self, failures: dict[str, Exception]) -> None:
        detail = "; ".join(f"{name}: {exc}" for name, exc in failures.items())
        super().__init__(f"Could not load data ({detail})")
        self.failures = failures


class CachePersistenceFailed(SyncError):
    """Writing the offline cache failed (non-fatal)."""


class QuotaExceededError(OSError):
    """Local storage has no room for the value being written."""
