from __future__ import annotations

from tripengine.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_miss_then_hit():
    cache = TTLCache(ttl=60, max_entries=10)
    assert cache.get("k") is None
    cache.set("k", "v")
    assert cache.get("k") == "v"
    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 50.0


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TTLCache(ttl=60, max_entries=10, clock=clock)
    cache.set("k", "v")
    clock.now += 59
    assert cache.get("k") == "v"
    clock.now += 1
    assert cache.get("k") is None
    assert len(cache) == 0


def test_oldest_entry_evicted_when_full():
    cache = TTLCache(ttl=60, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3
    assert cache.stats()["size"] == 2


def test_rewriting_a_key_refreshes_its_position():
    cache = TTLCache(ttl=60, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    cache.set("c", 3)
    assert cache.get("a") == 10
    assert cache.get("b") is None


def test_clear_resets_entries_and_counters():
    cache = TTLCache(ttl=60, max_entries=5)
    cache.set("a", 1)
    cache.get("a")
    cache.get("missing")
    cache.clear()
    assert cache.stats() == {
        "size": 0,
        "max_entries": 5,
        "hits": 0,
        "misses": 0,
        "hit_rate": 0.0,
    }
