"""Unit tests for QueryCache."""

from __future__ import annotations

from fitteam.adapters.cache import QueryCache


class FakeMonotonic:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestQueryCache:
    """Tests for QueryCache."""

    def test_get_set(self) -> None:
        """Fresh entries are returned."""
        cache = QueryCache()
        cache.set(("trainees", "t1", "teamAccess"), ["member"])
        assert cache.get(("trainees", "t1", "teamAccess")) == ["member"]
        assert cache.get(("trainees", "t2", "teamAccess")) is None

    def test_entries_go_stale(self) -> None:
        """Entries expire once the window has passed."""
        clock = FakeMonotonic()
        cache = QueryCache(ttl_seconds=30, clock=clock)
        cache.set(("k",), 1)

        clock.now = 29.9
        assert cache.get(("k",)) == 1
        clock.now = 30.0
        assert cache.get(("k",)) is None
        assert len(cache) == 0

    def test_prefix_invalidation(self) -> None:
        """A shorter key drops everything beneath it."""
        cache = QueryCache()
        cache.set(("trainees", "t1", "teamAccess"), 1)
        cache.set(("trainees", "t1", "workouts"), 2)
        cache.set(("trainees", "t2", "workouts"), 3)
        cache.set(("trainees", "t10", "workouts"), 4)

        assert cache.invalidate(("trainees", "t1")) == 2

        assert cache.get(("trainees", "t2", "workouts")) == 3
        assert cache.get(("trainees", "t10", "workouts")) == 4

    def test_clear(self) -> None:
        """clear drops everything."""
        cache = QueryCache()
        cache.set(("a",), 1)
        cache.clear()
        assert len(cache) == 0
