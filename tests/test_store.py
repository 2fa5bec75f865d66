"""
Tests for the expiring report store.
"""

from datetime import timedelta

import pytest

from gets_readiness.store import ReportStore


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta.total_seconds()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> ReportStore:
    return ReportStore(clock=clock)


class TestReportStore:
    """Tests for storage and expiry."""

    def test_put_and_get(self, store):
        store.put("r_1", {"overall": 90})
        assert store.get("r_1") == {"overall": 90}
        assert "r_1" in store
        assert len(store) == 1

    def test_unknown_key(self, store):
        assert store.get("r_missing") is None
        assert "r_missing" not in store

    def test_live_until_expiry(self, store, clock):
        store.put("r_1", "report")
        clock.advance(timedelta(days=6, hours=23))
        assert store.get("r_1") == "report"

    def test_expired_entry_is_removed(self, store, clock):
        store.put("r_1", "report")
        clock.advance(timedelta(days=7))

        assert store.get("r_1") is None
        assert len(store) == 0

    def test_custom_ttl(self, store, clock):
        store.put("u_1", "upload", ttl=timedelta(hours=24))
        clock.advance(timedelta(hours=25))
        assert store.get("u_1") is None

    def test_custom_default_ttl(self, clock):
        store = ReportStore(default_ttl=timedelta(minutes=5), clock=clock)
        store.put("r_1", "report")
        clock.advance(timedelta(minutes=6))
        assert store.get("r_1") is None

    def test_put_replaces(self, store, clock):
        store.put("r_1", "old")
        clock.advance(timedelta(days=5))
        store.put("r_1", "new")
        clock.advance(timedelta(days=5))

        assert store.get("r_1") == "new"

    def test_evict_expired(self, store, clock):
        store.put("r_1", "a", ttl=timedelta(hours=1))
        store.put("r_2", "b", ttl=timedelta(hours=3))
        store.put("r_3", "c")
        clock.advance(timedelta(hours=2))

        assert store.evict_expired() == 1
        assert len(store) == 2
        assert store.evict_expired() == 0

    def test_len_counts_live_entries_only(self, store, clock):
        store.put("r_1", "a", ttl=timedelta(hours=1))
        store.put("r_2", "b")
        clock.advance(timedelta(hours=2))

        assert len(store) == 1

    def test_recent_newest_first(self, store, clock):
        for i in range(5):
            store.put(f"r_{i}", i)
            clock.advance(timedelta(seconds=1))

        assert store.recent(limit=3) == [4, 3, 2]

    def test_recent_skips_expired(self, store, clock):
        store.put("r_old", "old", ttl=timedelta(seconds=10))
        clock.advance(timedelta(seconds=5))
        store.put("r_new", "new")
        clock.advance(timedelta(seconds=10))

        assert store.recent() == ["new"]
