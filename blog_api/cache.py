import json
import logging

import redis.asyncio as redis

from blog_api.config import settings

logger = logging.getLogger(__name__)

PUBLIC_FEED_PATTERN = "posts:public:*"


def public_feed_key(page: int) -> str:
    return f"posts:public:{page}"


def post_detail_key(post_id: int) -> str:
    return f"posts:detail:{post_id}"


class CacheManager:
    """
    Cache-aside manager backed by Redis.

    Only data that every caller may see is cached: the public feed pages and
    single-post detail. All public methods are safe to call while Redis is
    unavailable; reads miss and writes are skipped.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._hits: int = 0
        self._misses: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, cache disabled: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict | list | None:
        """Return the decoded JSON stored under *key*; None on a miss or any Redis error."""
        raw = None
        if self._redis:
            try:
                raw = await self._redis.get(key)
            except Exception as exc:
                logger.debug("Cache read failed for %r: %s", key, exc)
        if raw is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(raw)

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None:
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except Exception as exc:
            logger.debug("Cache write failed for %r: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        """Delete every key matching *pattern*, walking the keyspace with SCAN."""
        if not self._redis:
            return
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if keys:
                await self._redis.delete(*keys)
            logger.debug("Cache dropped %d key(s) for %r", len(keys), pattern)
        except Exception as exc:
            logger.debug("Cache delete failed for %r: %s", pattern, exc)

    # ------------------------------------------------------------------
    # Domain-level invalidation
    # ------------------------------------------------------------------

    async def invalidate_post(self, post_id: int) -> None:
        """
        Drop everything a change to *post_id* can make stale: its detail
        entry and every public feed page (approval, edit and deletion all
        shift pagination).
        """
        await self.delete_pattern(PUBLIC_FEED_PATTERN)
        await self.delete_pattern(post_detail_key(post_id))

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    @property
    def stats(self) -> dict:
        """Snapshot of hit/miss counters for the health endpoint."""
        total = self._hits + self._misses
        return {
            "enabled": self.enabled,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


# Module-level singleton shared across all request handlers.
cache = CacheManager()
