"""Tests for the in-memory directory and per-key TTL caches."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from fundsignal.services.cache_manager import DirectoryCache, TTLCache
from fundsignal.services.errors import UpstreamUnavailable


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


class TestDirectoryCache:
    @pytest.mark.asyncio
    async def test_loads_once_within_ttl(self, clock):
        cache = DirectoryCache(ttl_seconds=7 * 86400, clock=clock)
        loader = AsyncMock(return_value={"AAPL": "0000320193"})

        first = await cache.get_map(loader)
        clock.advance(days=6)
        second = await cache.get_map(loader)

        assert first == second == {"AAPL": "0000320193"}
        assert loader.await_count == 1

    @pytest.mark.asyncio
    async def test_whole_map_replaced_after_ttl(self, clock):
        cache = DirectoryCache(ttl_seconds=7 * 86400, clock=clock)
        loader = AsyncMock(side_effect=[{"AAPL": "1", "OLD": "2"}, {"AAPL": "1", "NEW": "3"}])

        await cache.get_map(loader)
        clock.advance(days=7)
        refreshed = await cache.get_map(loader)

        assert refreshed == {"AAPL": "1", "NEW": "3"}
        assert "OLD" not in refreshed
        assert loader.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_refresh_propagates(self, clock):
        cache = DirectoryCache(ttl_seconds=60, clock=clock)
        loader = AsyncMock(side_effect=UpstreamUnavailable("SEC HTTP 503", source="sec", status_code=503))

        with pytest.raises(UpstreamUnavailable):
            await cache.get_map(loader)
        assert cache.is_fresh() is False


class TestTTLCache:
    @pytest.mark.asyncio
    async def test_hit_within_ttl(self, clock):
        cache = TTLCache(ttl_seconds=6 * 3600, clock=clock)
        loader = AsyncMock(return_value={"facts": {}})

        await cache.get_or_fetch("0000320193", loader)
        clock.advance(hours=5, minutes=59)
        await cache.get_or_fetch("0000320193", loader)

        loader.assert_awaited_once_with("0000320193")

    @pytest.mark.asyncio
    async def test_stale_entry_refetched(self, clock):
        cache = TTLCache(ttl_seconds=6 * 3600, clock=clock)
        loader = AsyncMock(side_effect=[{"v": 1}, {"v": 2}])

        await cache.get_or_fetch("k", loader)
        clock.advance(hours=6)
        assert cache.get("k") is None
        assert await cache.get_or_fetch("k", loader) == {"v": 2}

    def test_keys_expire_independently(self, clock):
        cache = TTLCache(ttl_seconds=100, clock=clock)
        cache.set("a", 1)
        clock.advance(seconds=60)
        cache.set("b", 2)
        clock.advance(seconds=50)

        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert len(cache) == 2  # stale entries are not evicted

    @pytest.mark.asyncio
    async def test_failed_fetch_not_cached(self, clock):
        cache = TTLCache(ttl_seconds=100, clock=clock)
        loader = AsyncMock(side_effect=UpstreamUnavailable("boom", source="sec"))

        with pytest.raises(UpstreamUnavailable):
            await cache.get_or_fetch("k", loader)
        assert len(cache) == 0
