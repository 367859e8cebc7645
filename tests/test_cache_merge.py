import json

from readers.collection.merge import merge_with_cache, project_identity
from readers.collection.models import IDENTITY_FIELDS, VOLATILE_FIELDS, CacheEntry, IdentityFields
from storage.metadata_cache import MetadataCache

from conftest import make_snapshot, make_token

DAY_MS = 24 * 60 * 60 * 1000
TTL = 7 * 24 * 60 * 60


def _cached(ids, *, captured_at_ms, name="Cached"):
    return CacheEntry(
        identities={
            i: IdentityFields(name=f"{name} {i}", artist="Cached Artist", image_url=f"c{i}", thumbnail_url=f"ct{i}")
            for i in ids
        },
        captured_at_ms=captured_at_ms,
    )


def test_valid_cache_overrides_identity_but_not_prices():
    fresh = make_snapshot([1, 2, 3], floor_price=0.5, fetched_at_ms=2 * DAY_MS)
    entry = _cached([1, 2], captured_at_ms=DAY_MS)

    merged = merge_with_cache(fresh, entry, now_ms=2 * DAY_MS, ttl_seconds=TTL)

    assert merged.ids == (1, 2, 3)
    assert merged.get(1).name == "Cached 1"
    assert merged.get(1).artist == "Cached Artist"
    assert merged.get(1).floor_price == 0.5
    # not in the cache: fresh identity stands
    assert merged.get(3).name == "Meme #3"


def test_cache_never_resurrects_missing_ids():
    fresh = make_snapshot([1])
    merged = merge_with_cache(fresh, _cached([1, 2, 3], captured_at_ms=0), now_ms=1, ttl_seconds=TTL)
    assert merged.ids == (1,)


def test_expired_entry_behaves_like_no_entry():
    fresh = make_snapshot([1, 2], fetched_at_ms=10 * DAY_MS)
    entry = _cached([1, 2], captured_at_ms=0)

    expired = merge_with_cache(fresh, entry, now_ms=8 * DAY_MS, ttl_seconds=TTL)
    none = merge_with_cache(fresh, None, now_ms=8 * DAY_MS, ttl_seconds=TTL)
    assert expired == none == fresh


def test_merge_is_idempotent():
    fresh = make_snapshot([1, 2, 3])
    entry = _cached([2, 3], captured_at_ms=500)
    once = merge_with_cache(fresh, entry, now_ms=1_000, ttl_seconds=TTL)
    twice = merge_with_cache(once, entry, now_ms=1_000, ttl_seconds=TTL)
    assert once == twice


def test_project_identity_keeps_only_identity_fields():
    snap = make_snapshot([4], floor_price=1.0)
    entry = project_identity(snap, captured_at_ms=77)
    assert entry.captured_at_ms == 77
    assert entry.identities[4] == make_token(4).identity()


def test_cache_round_trip_and_clear(tmp_path):
    cache = MetadataCache(tmp_path / "nested" / "cache.json")
    assert cache.load() is None

    entry = _cached([1, 2], captured_at_ms=100)
    assert cache.save(entry)
    assert cache.load() == entry

    assert cache.clear()
    assert cache.load() is None
    assert not cache.clear()


def test_stale_write_is_refused(tmp_path):
    cache = MetadataCache(tmp_path / "cache.json")
    cache.save(_cached([1], captured_at_ms=200, name="Newer"))

    assert not cache.save(_cached([1], captured_at_ms=100, name="Older"))
    assert cache.load().identities[1].name == "Newer 1"


def test_corrupt_cache_reads_as_missing(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")
    assert MetadataCache(path).load() is None

    path.write_text(json.dumps({"captured_at_ms": 1}), encoding="utf-8")
    assert MetadataCache(path).load() is None

    path.write_text(json.dumps({"captured_at_ms": 1, "tokens": [{"name": "no id"}]}), encoding="utf-8")
    assert MetadataCache(path).load() is None


def test_corrupt_cache_is_overwritten_by_next_save(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("garbage", encoding="utf-8")
    cache = MetadataCache(path)

    assert cache.save(_cached([9], captured_at_ms=5))
    assert cache.load().identities[9].name == "Cached 9"


def test_cache_file_holds_identity_fields_only(tmp_path):
    cache = MetadataCache(tmp_path / "cache.json")
    cache.save(project_identity(make_snapshot([1, 2], floor_price=3.0, total_supply=9), captured_at_ms=1))

    rows = json.loads((tmp_path / "cache.json").read_text(encoding="utf-8"))["tokens"]
    assert [r["id"] for r in rows] == [1, 2]
    for r in rows:
        assert set(r) == {"id", *IDENTITY_FIELDS}
        assert not set(r) & set(VOLATILE_FIELDS)
