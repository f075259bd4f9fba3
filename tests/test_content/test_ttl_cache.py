"""Tests for the in-process TTL cache."""

from mutabaah.content import TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_hit_within_ttl():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("k", {"v": 1})

    clock.now += 59.9
    assert cache.get("k") == {"v": 1}


def test_expired_entry_is_evicted_on_access():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("k", "value")

    clock.now += 60
    assert cache.get("k") is None
    assert len(cache) == 0


def test_expired_entries_stay_until_touched():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)

    clock.now += 11
    assert cache.get("a") is None
    assert len(cache) == 1


def test_set_refreshes_the_timestamp():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("k", "old")
    clock.now += 8
    cache.set("k", "new")
    clock.now += 8

    assert cache.get("k") == "new"


def test_missing_key_and_clear():
    cache = TTLCache(10)
    assert cache.get("nope") is None

    cache.set("k", 1)
    cache.clear()
    assert cache.get("k") is None
    assert cache.ttl_seconds == 10
