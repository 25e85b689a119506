from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from rental_access.auth.cache import CacheTTL, LRUCache, role_cache_key


def _filled(clock, capacity: int = 3) -> LRUCache:
    cache = LRUCache(capacity=capacity, clock=clock)
    for i in range(capacity):
        cache.set(f"k{i}", i, 1_000)
    return cache


def test_insert_past_capacity_evicts_least_recent(clock) -> None:
    cache = _filled(clock)
    cache.set("k3", 3, 1_000)

    assert cache.size() == 3
    assert cache.get("k0") is None
    assert [cache.get(k) for k in ("k1", "k2", "k3")] == [1, 2, 3]


def test_get_refreshes_recency(clock) -> None:
    cache = _filled(clock)
    assert cache.get("k0") == 0

    cache.set("k3", 3, 1_000)

    assert cache.has("k0")
    assert not cache.has("k1")


def test_overwrite_existing_key_does_not_evict(clock) -> None:
    cache = _filled(clock)
    cache.set("k0", "new", 1_000)

    assert cache.size() == 3
    assert cache.get("k0") == "new"
    # k0 is now most recent, so k1 goes next.
    cache.set("k4", 4, 1_000)
    assert not cache.has("k1")
    assert cache.has("k0")


def test_expired_read_is_a_miss_and_removes_entry(clock) -> None:
    cache = LRUCache(clock=clock)
    cache.set("short", "v", 10)
    cache.set("long", "v", 60_000)
    assert cache.size() == 2

    clock.advance(15)

    assert cache.get("short") is None
    assert cache.size() == 1
    assert not cache.has("short")
    assert cache.has("long")


def test_entry_is_live_until_expiry_passes(clock) -> None:
    cache = LRUCache(clock=clock)
    cache.set("k", "v", 10)

    clock.advance(10)
    assert cache.get("k") == "v"
    clock.advance(1)
    assert cache.get("k") is None


def test_size_counts_lazily_expired_entries(clock) -> None:
    cache = LRUCache(clock=clock)
    cache.set("k", "v", 10)
    clock.advance(50)

    assert cache.size() == 1
    assert not cache.has("k")
    assert cache.size() == 0


def test_invalidate_by_pattern(clock) -> None:
    cache = LRUCache(clock=clock)
    for key in ("foo:1", "bar:foo", "bar:2", "baz"):
        cache.set(key, key, 1_000)

    cache.invalidate("foo")

    assert not cache.has("foo:1")
    assert not cache.has("bar:foo")
    assert cache.has("bar:2")
    assert cache.has("baz")


def test_invalidate_without_pattern_clears_everything(clock) -> None:
    cache = _filled(clock)
    cache.invalidate()
    assert cache.size() == 0


def test_delete_removes_exact_key_only(clock) -> None:
    cache = LRUCache(clock=clock)
    cache.set(role_cache_key("u1"), "agent", CacheTTL.USER_ROLE)
    cache.set(role_cache_key("u10"), "renter", CacheTTL.USER_ROLE)

    assert cache.delete("user_role:u1")
    assert not cache.delete("user_role:u1")
    assert cache.get("user_role:u10") == "renter"


def test_rejects_bad_arguments(clock) -> None:
    with pytest.raises(ValueError):
        LRUCache(capacity=0)
    with pytest.raises(ValueError):
        LRUCache(clock=clock).set("k", None, 10)


def test_concurrent_writers_respect_capacity() -> None:
    cache = LRUCache(capacity=50)

    def writer(n: int) -> None:
        for i in range(200):
            cache.set(f"w{n}:{i}", i, 60_000)
            cache.get(f"w{n}:{i // 2}")

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(writer, range(8)))

    assert cache.size() == 50
