"""Unit tests for TTLCache."""

from resort_core.utils.cache import TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestTTLCache:
    def test_returns_value_before_expiry(self) -> None:
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=10, clock=clock)

        cache.set("pool", False)
        clock.now = 9.9

        assert cache.get("pool") is False

    def test_expires_after_ttl(self) -> None:
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=10, clock=clock)

        cache.set("pool", True)
        clock.now = 10.0

        assert cache.get("pool") is None
        assert len(cache) == 0

    def test_invalidate_and_clear(self) -> None:
        cache = TTLCache()
        cache.set("a", 1)
        cache.set("b", 2)

        cache.invalidate("a")
        assert cache.get("a") is None
        assert cache.get("b") == 2

        cache.clear()
        assert len(cache) == 0

    def test_zero_ttl_disables_caching(self) -> None:
        cache = TTLCache(ttl_seconds=0)

        cache.set("a", 1)

        assert cache.get("a") is None
