"""
Tests for the TTL result cache and its backends.
"""

from __future__ import annotations

import threading

from conftest import FakeClock

from backend_walletrisk.cache.result_cache import MemoryTTLCache, NullCache, ResultCache, cache_key


def test_entry_expires_after_ttl():
    clock = FakeClock(1000.0)
    cache = MemoryTTLCache(ttl_sec=10, clock=clock)
    cache.set("k", "v")
    clock.advance(9)
    assert cache.get("k") == "v"
    clock.advance(1)
    assert cache.get("k") is None
    assert len(cache) == 0
    assert cache.stats["expired"] == 1


def test_oldest_inserted_entry_evicted():
    clock = FakeClock(0.0)
    cache = MemoryTTLCache(ttl_sec=100, max_entries=3, clock=clock)
    for key in ("a", "b", "c"):
        cache.set(key, key.upper())
    cache.get("a")
    cache.set("d", "D")
    # Reads do not refresh position: "a" was inserted first
    assert cache.get("a") is None
    assert [cache.get(k) for k in ("b", "c", "d")] == ["B", "C", "D"]
    assert cache.stats["evictions"] == 1


def test_reinsert_moves_to_newest():
    cache = MemoryTTLCache(ttl_sec=100, max_entries=2, clock=FakeClock(0.0))
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 3)
    cache.set("c", 4)
    assert cache.get("b") is None
    assert cache.get("a") == 3


def test_delete_and_clear():
    cache = MemoryTTLCache(ttl_sec=100, clock=FakeClock(0.0))
    cache.set("a", 1)
    cache.set("b", 2)
    cache.delete("a")
    assert cache.get("a") is None
    cache.clear()
    assert len(cache) == 0


def test_null_cache_always_misses():
    cache = NullCache()
    cache.set("a", 1)
    assert cache.get("a") is None


def test_result_cache_keys_by_network_and_address():
    clock = FakeClock(0.0)
    cache = ResultCache.in_memory(tx_ttl_sec=300, score_ttl_sec=600, clock=clock)
    cache.set_history("eth", "0xAB", ["tx"])
    assert cache.get_history("ETH", "0xab") == ["tx"]
    assert cache.get_history("polygon", "0xab") is None
    assert cache_key(" Eth ", "0xAB ") == ("eth", "0xab")
    clock.advance(300)
    assert cache.get_history("eth", "0xab") is None


def test_disabled_result_cache():
    cache = ResultCache.disabled()
    cache.set_score("eth", "0xab", object())
    assert cache.get_score("eth", "0xab") is None


def test_concurrent_writers_do_not_exceed_bound():
    cache = MemoryTTLCache(ttl_sec=100, max_entries=50, clock=FakeClock(0.0))

    def writer(offset: int) -> None:
        for i in range(200):
            cache.set((offset, i), i)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(cache) == 50
