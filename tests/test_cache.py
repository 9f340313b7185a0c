import pytest

from vehicle_lookup.config import CACHE_KEY, CACHE_TIMESTAMP_KEY, CACHE_VERSION_KEY
from vehicle_lookup.data.cache import CacheStore
from vehicle_lookup.data.schemas import ABSENT, Failed, Ok
from vehicle_lookup.data.storage import KeyValueStore
from vehicle_lookup.errors import QuotaExceededError


def _cache(tmp_path, version="1.0", quota=None):
    kv = KeyValueStore(tmp_path / "cache", quota_bytes=quota)
    return CacheStore(kv=kv, version=version), kv


def test_save_then_load_roundtrip(tmp_path, households):
    cache, _ = _cache(tmp_path)
    saved = cache.save(households)
    assert saved == Ok(3)

    loaded = cache.load()
    assert isinstance(loaded, Ok)
    assert loaded.value.records == households
    assert loaded.value.version == "1.0"
    assert loaded.value.captured_at > 0


def test_load_without_entry_is_absent(tmp_path):
    cache, _ = _cache(tmp_path)
    assert cache.load() is ABSENT
    assert cache.info().exists is False


def test_version_mismatch_is_absent_and_cleared(tmp_path, households):
    old, kv = _cache(tmp_path, version="1.0")
    old.save(households)

    new = CacheStore(kv=kv, version="1.1")
    assert new.load() is ABSENT
    for key in (CACHE_KEY, CACHE_TIMESTAMP_KEY, CACHE_VERSION_KEY):
        assert kv.get(key) is None


def test_corrupt_payload_is_absent_and_cleared(tmp_path):
    cache, kv = _cache(tmp_path)
    kv.set(CACHE_KEY, "{not json")
    kv.set(CACHE_VERSION_KEY, "1.0")
    assert cache.load() is ABSENT
    assert kv.get(CACHE_KEY) is None
    assert kv.get(CACHE_VERSION_KEY) is None


def test_info_describes_without_mutating(tmp_path, households):
    old, kv = _cache(tmp_path, version="1.0")
    old.save(households)

    info = CacheStore(kv=kv, version="1.1").info()
    assert info.exists is True
    assert info.count == 3
    assert info.version == "1.0"
    assert info.size_bytes > 0
    assert info.last_update is not None
    # info never clears
    assert kv.get(CACHE_KEY) is not None


def test_clear_removes_all_three_entries(tmp_path, households):
    cache, kv = _cache(tmp_path)
    cache.save(households)
    assert cache.clear() is True
    assert kv.keys() == []


def test_quota_exhaustion_clears_once_and_retries(tmp_path):
    cache, kv = _cache(tmp_path, quota=600)
    kv.set("veiculos_cache_data", "x" * 590)

    saved = cache.save([{"Placa1": "ABC1234"}])
    assert isinstance(saved, Ok)
    assert kv.get("veiculos_cache_data") is None
    assert cache.load().value.records == [{"Placa1": "ABC1234"}]


def test_quota_failure_leaves_cache_absent_not_stale(tmp_path, households):
    cache, kv = _cache(tmp_path, quota=300)
    assert isinstance(cache.save([{"Placa1": "OLD0001"}]), Ok)

    big = [{"Pai": "y" * 400}]
    saved = cache.save(big)
    assert isinstance(saved, Failed)
    assert cache.load() is ABSENT
    assert kv.get(CACHE_KEY) is None


def test_unserializable_records_fail_without_raising(tmp_path):
    cache, _ = _cache(tmp_path)
    saved = cache.save([{"Placa1": object()}])
    assert isinstance(saved, Failed)
    assert cache.load() is ABSENT


class _FailingKeyValueStore(KeyValueStore):
    """Raises on one key so the payload is already written when it fails."""

    def __init__(self, folder, fail_key, error):
        super().__init__(folder)
        self.fail_key = fail_key
        self.error = error

    def set(self, key, value):
        if key == self.fail_key:
            raise self.error
        super().set(key, value)


@pytest.mark.parametrize("fail_key", [CACHE_TIMESTAMP_KEY, CACHE_VERSION_KEY])
def test_late_write_failure_rolls_back_every_key(tmp_path, households, fail_key):
    kv = _FailingKeyValueStore(tmp_path / "cache", fail_key, OSError("disk error"))
    cache = CacheStore(kv=kv)

    assert isinstance(cache.save(households), Failed)
    for key in (CACHE_KEY, CACHE_TIMESTAMP_KEY, CACHE_VERSION_KEY):
        assert kv.get(key) is None
    assert cache.load() is ABSENT


def test_late_quota_failure_retries_then_rolls_back(tmp_path, households):
    kv = _FailingKeyValueStore(tmp_path / "cache", CACHE_VERSION_KEY, QuotaExceededError("full"))
    kv.set("unrelated", "x")
    cache = CacheStore(kv=kv)

    assert isinstance(cache.save(households), Failed)
    assert kv.keys() == []
