"""Record loading, offline cache, source resolution, and sync."""
from .schemas import Provenance, SearchMode, SyncResult, CacheEntry, CacheInfo, ResolvedSources, Household
from .normalize import normalize, normalize_record, normalize_records
from .store import RecordStore
from .cache import CacheStore
from .sources import SourceResolver
from .sync import DataSynchronizer
