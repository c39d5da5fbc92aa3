"""
Gap Analysis Cache Layer - Redis Caching

Short-lived cache for gap analysis and pairwise comparison results. Redis
outages degrade to cache misses; they never fail a request.
"""

import json
import logging
from typing import Iterable, Optional

import redis
from redis.exceptions import RedisError

from complygrid.config import get_settings

logger = logging.getLogger(__name__)

MULTI_KEY_PREFIX = "gap-analysis"
PAIRWISE_KEY_PREFIX = "gap-pairwise"


def multi_cache_key(organization_id: str, framework_ids: Iterable[str]) -> str:
    """
    Cache key for a multi-framework analysis.

    Framework ids are sorted so the selection order does not matter.

    Example:
        >>> multi_cache_key("org-1", ["b", "a"])
        'gap-analysis:org-1:a,b'
    """
    return f"{MULTI_KEY_PREFIX}:{organization_id}:{','.join(sorted(framework_ids))}"


def pairwise_cache_key(source_id: str, target_id: str) -> str:
    """Cache key for a pairwise comparison (catalog-wide, not per tenant)."""
    return f"{PAIRWISE_KEY_PREFIX}:{source_id}:{target_id}"


class GapAnalysisCache:
    """
    Redis-backed cache for gap analysis results.

    Provides transparent caching with JSON serialization.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        """
        Initialize Redis cache connection.

        Args:
            redis_client: Pre-built client; built from settings.redis_url when omitted
        """
        settings = get_settings()
        self.default_ttl = settings.gap_analysis_cache_ttl
        try:
            self.redis_client = redis_client or redis.from_url(
                settings.redis_url,
                db=settings.redis_db,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_keepalive=True,
            )
            self.redis_client.ping()
            logger.info("Gap analysis Redis cache initialized successfully")
            self.enabled = True
        except RedisError as e:
            logger.warning(f"Failed to connect to Redis: {e}. Cache disabled.")
            self.enabled = False

    async def get(self, key: str) -> Optional[dict]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value as dict, or None if not found or cache disabled
        """
        if not self.enabled:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.debug(f"Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"Cache MISS: {key}")
            return None
        except RedisError as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None
        except json.JSONDecodeError as e:
            logger.error(f"JSON decode error for key {key}: {e}")
            return None

    async def set(self, key: str, value: dict, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache with TTL.

        Args:
            key: Cache key
            value: Value to cache (must be JSON-serializable)
            ttl: Time to live in seconds (default: gap_analysis_cache_ttl)

        Returns:
            True if successful, False otherwise
        """
        if not self.enabled:
            return False

        ttl = ttl or self.default_ttl
        try:
            self.redis_client.setex(key, ttl, json.dumps(value, default=str))
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
            return True
        except RedisError as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False
        except (TypeError, ValueError) as e:
            logger.error(f"JSON encode error for key {key}: {e}")
            return False

    async def invalidate_organization(self, organization_id: str) -> int:
        """
        Drop every cached multi-framework analysis of an organization.

        Returns:
            Number of keys deleted
        """
        if not self.enabled:
            return 0

        try:
            keys = list(self.redis_client.scan_iter(match=f"{MULTI_KEY_PREFIX}:{organization_id}:*"))
            if keys:
                deleted = self.redis_client.delete(*keys)
                logger.info(f"Invalidated {deleted} gap analysis cache entries for organization {organization_id}")
                return deleted
            return 0
        except RedisError as e:
            logger.error(f"Redis invalidation error for organization {organization_id}: {e}")
            return 0

    def is_available(self) -> bool:
        """
        Check if cache is available.

        Returns:
            True if Redis is available, False otherwise
        """
        if not self.enabled:
            return False

        try:
            self.redis_client.ping()
            return True
        except RedisError:
            return False
