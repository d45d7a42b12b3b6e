"""Tests for the expiring mood cache."""

from __future__ import annotations

from mindwell.cache import DEFAULT_TTL_SECONDS, MoodCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_get_missing_key() -> None:
    cache = MoodCache()
    assert cache.get("mood_history") is None


def test_set_then_get() -> None:
    cache = MoodCache()
    cache.set("mood_history", {"labels": []})
    assert cache.get("mood_history") == {"labels": []}


def test_set_overwrites() -> None:
    cache = MoodCache()
    cache.set("k", 1)
    cache.set("k", 2)
    assert cache.get("k") == 2
    assert len(cache) == 1


def test_default_ttl_is_five_minutes() -> None:
    assert DEFAULT_TTL_SECONDS == 300
    assert MoodCache().ttl == 300


def test_entry_valid_until_expiry() -> None:
    clock = FakeClock()
    cache = MoodCache(ttl=300, clock=clock)
    cache.set("k", "v")
    clock.now += 300
    assert cache.get("k") == "v"


def test_expired_entry_is_removed() -> None:
    clock = FakeClock()
    cache = MoodCache(ttl=300, clock=clock)
    cache.set("k", "v")

    clock.now += 301
    assert cache.get("k") is None
    assert "k" not in cache
    # Still gone on a second read
    assert cache.get("k") is None


def test_per_call_ttl() -> None:
    clock = FakeClock()
    cache = MoodCache(ttl=300, clock=clock)
    cache.set("short", "v", ttl=10)
    cache.set("long", "v")
    clock.now += 11
    assert cache.get("short") is None
    assert cache.get("long") == "v"


def test_clear() -> None:
    cache = MoodCache()
    cache.set("a", 1)
    cache.set("b", 2)
    cache.clear()
    assert len(cache) == 0
    assert cache.get("a") is None
