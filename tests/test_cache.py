"""Content cache tests."""

import asyncio

import pytest


def make_cache(clock, max_entries=128):
    from grancamino.core.constants import CacheNamespace
    from grancamino.services.cache import ContentCache

    return ContentCache(
        windows_seconds={CacheNamespace.LISTING: 300, CacheNamespace.CONTENT: 1800},
        default_window_seconds=60,
        max_entries=max_entries,
        clock=clock,
    )


class TestContentCache:
    """Tests for windowed LRU cache."""

    @pytest.mark.asyncio(loop_scope="function")
    async def test_get_inside_window(self, clock):
        cache = make_cache(clock)

        await cache.put("content:f1:v1", {"rows": 3})
        clock.advance(1799)

        assert await cache.get("content:f1:v1") == {"rows": 3}

    @pytest.mark.asyncio(loop_scope="function")
    async def test_get_after_window_is_a_miss(self, clock):
        cache = make_cache(clock)

        await cache.put("content:f1:v1", "text")
        clock.advance(1801)

        assert await cache.get("content:f1:v1") is None
        assert len(cache) == 0
        assert cache.get_stats()["stale"] == 1

    @pytest.mark.asyncio(loop_scope="function")
    async def test_windows_are_per_key_class(self, clock):
        """A listing goes stale after 5 minutes while content stays fresh."""
        cache = make_cache(clock)

        await cache.put("listing:folder-1", ("a", "b"))
        await cache.put("content:f1:v1", "text")
        clock.advance(301)

        assert await cache.get("listing:folder-1") is None
        assert await cache.get("content:f1:v1") == "text"

    @pytest.mark.asyncio(loop_scope="function")
    async def test_unknown_key_class_uses_default_window(self, clock):
        cache = make_cache(clock)

        await cache.put("other", 1)
        clock.advance(61)

        assert cache.window_ms("other") == 60_000
        assert await cache.get("other") is None

    @pytest.mark.asyncio(loop_scope="function")
    async def test_cache_miss(self, clock):
        cache = make_cache(clock)

        assert await cache.get("content:nope:-") is None
        assert cache.get_stats()["misses"] == 1

    @pytest.mark.asyncio(loop_scope="function")
    async def test_put_overwrites_with_fresh_timestamp(self, clock):
        cache = make_cache(clock)

        await cache.put("listing:folder-1", "old")
        clock.advance(250)
        await cache.put("listing:folder-1", "new")
        clock.advance(250)

        assert await cache.get("listing:folder-1") == "new"

    @pytest.mark.asyncio(loop_scope="function")
    async def test_lru_eviction(self, clock):
        cache = make_cache(clock, max_entries=2)

        await cache.put("content:a:-", "A")
        await cache.put("content:b:-", "B")
        await cache.get("content:a:-")
        await cache.put("content:c:-", "C")

        assert await cache.get("content:b:-") is None
        assert await cache.get("content:a:-") == "A"
        assert await cache.get("content:c:-") == "C"
        assert cache.get_stats()["evictions"] == 1

    @pytest.mark.asyncio(loop_scope="function")
    async def test_concurrent_writers_last_write_wins(self, clock):
        cache = make_cache(clock)

        await asyncio.gather(*(cache.put("content:x:-", i) for i in range(20)))

        assert await cache.get("content:x:-") == 19
        assert len(cache) == 1

    @pytest.mark.asyncio(loop_scope="function")
    async def test_delete_and_clear(self, clock):
        cache = make_cache(clock)

        await cache.put("content:a:-", "A")
        await cache.put("content:b:-", "B")

        assert await cache.delete("content:a:-") is True
        assert await cache.delete("content:a:-") is False
        await cache.clear()
        assert len(cache) == 0

    def test_from_settings(self, settings):
        from grancamino.services.cache import ContentCache

        cache = ContentCache.from_settings(settings)

        assert cache.window_ms("listing:folder") == 300_000
        assert cache.window_ms("content:f:v") == 1_800_000
        assert cache.max_entries == 128

    def test_cache_key(self):
        from grancamino.core.constants import CacheNamespace, cache_key
        from grancamino.services.cache import ContentCache

        key = cache_key(CacheNamespace.CONTENT, "f1", "2025-02-20T10:00:00+00:00")

        assert key == "content:f1:2025-02-20T10:00:00+00:00"
        assert ContentCache.key_class(key) == "content"
