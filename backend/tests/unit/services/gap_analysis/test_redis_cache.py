"""
Unit tests for the gap analysis cache.

Uses an in-process fake Redis client; no Redis server is required.
"""

import fnmatch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from complygrid.services.gap_analysis.cache import GapAnalysisCache, multi_cache_key, pairwise_cache_key


class FakeRedis:
    """Minimal subset of the redis.Redis API used by the cache"""

    def __init__(self, fail: bool = False):
        self.data = {}
        self.ttls = {}
        self.fail = fail

    def ping(self):
        if self.fail:
            raise RedisConnectionError("connection refused")
        return True

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def scan_iter(self, match):
        return [k for k in self.data if fnmatch.fnmatch(k, match)]

    def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)
        return len(keys)


@pytest.mark.unit
class TestCacheKeys:
    def test_multi_key_is_order_independent(self) -> None:
        assert multi_cache_key("org-1", ["b", "a"]) == "gap-analysis:org-1:a,b"
        assert multi_cache_key("org-1", ["a", "b"]) == multi_cache_key("org-1", ["b", "a"])

    def test_pairwise_key_is_directional(self) -> None:
        assert pairwise_cache_key("s", "t") == "gap-pairwise:s:t"
        assert pairwise_cache_key("s", "t") != pairwise_cache_key("t", "s")


@pytest.mark.unit
class TestGapAnalysisCache:
    """Test cache reads, writes and degradation."""

    def setup_method(self) -> None:
        self.redis = FakeRedis()
        self.cache = GapAnalysisCache(redis_client=self.redis)

    @pytest.mark.asyncio
    async def test_set_then_get(self) -> None:
        assert await self.cache.set("gap-analysis:org:a", {"frameworks": []}) is True
        assert await self.cache.get("gap-analysis:org:a") == {"frameworks": []}
        assert self.redis.ttls["gap-analysis:org:a"] == 300

    @pytest.mark.asyncio
    async def test_miss_returns_none(self) -> None:
        assert await self.cache.get("gap-analysis:org:missing") is None

    @pytest.mark.asyncio
    async def test_invalidate_organization(self) -> None:
        await self.cache.set("gap-analysis:org-1:a", {"x": 1})
        await self.cache.set("gap-analysis:org-1:a,b", {"x": 2})
        await self.cache.set("gap-analysis:org-2:a", {"x": 3})

        deleted = await self.cache.invalidate_organization("org-1")

        assert deleted == 2
        assert await self.cache.get("gap-analysis:org-2:a") == {"x": 3}

    @pytest.mark.asyncio
    async def test_unreachable_redis_disables_cache(self) -> None:
        """
        Validates:
        - A failed ping disables the cache
        - Disabled cache reads miss and writes are skipped
        """
        cache = GapAnalysisCache(redis_client=FakeRedis(fail=True))

        assert cache.enabled is False
        assert cache.is_available() is False
        assert await cache.set("k", {"a": 1}) is False
        assert await cache.get("k") is None
