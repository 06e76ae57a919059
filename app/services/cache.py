"""
MindCare Redis cache.

Namespaced keys: mindcare:{namespace}:{key}
All values serialised as JSON. Disabled entirely when ENABLE_REDIS is false.

Local dev:   redis://localhost:6379/0
Production:  set REDIS_URL in .env
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from redis.asyncio import ConnectionPool, Redis

from app.core.config import settings

logger = logging.getLogger(__name__)

# ── Single connection pool shared across the whole app ────────────────────────
_pool: Optional[ConnectionPool] = None


def _get_pool() -> ConnectionPool:
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=20,
            decode_responses=True,
        )
    return _pool


def get_redis() -> Redis:
    return Redis(connection_pool=_get_pool())


# ── Generic async cache class ─────────────────────────────────────────────────

class RedisCache:
    """
    Async TTL cache backed by Redis. Every failure degrades to a miss.
    """

    def __init__(self, namespace: str, default_ttl_seconds: int = 300):
        self.ns = namespace
        self.ttl = default_ttl_seconds

    def _key(self, key: str) -> str:
        return f"mindcare:{self.ns}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        if not settings.ENABLE_REDIS:
            return None
        try:
            raw = await get_redis().get(self._key(key))
        except Exception as exc:
            logger.warning("[%s] get failed: %s", self.ns, exc)
            return None
        if raw is None:
            logger.debug("[%s] MISS %s", self.ns, key[:30])
            return None
        logger.debug("[%s] HIT  %s", self.ns, key[:30])
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        if not settings.ENABLE_REDIS:
            return
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl
        try:
            await get_redis().setex(self._key(key), ttl, json.dumps(value))
            logger.debug("[%s] SET  %s (ttl=%ds)", self.ns, key[:30], ttl)
        except Exception as exc:
            logger.warning("[%s] set failed: %s", self.ns, exc)

    async def clear(self) -> None:
        if not settings.ENABLE_REDIS:
            return
        try:
            r = get_redis()
            keys = [k async for k in r.scan_iter(match=f"mindcare:{self.ns}:*")]
            if keys:
                await r.delete(*keys)
            logger.info("[%s] Cleared %d keys", self.ns, len(keys))
        except Exception as exc:
            logger.warning("[%s] clear failed: %s", self.ns, exc)


# ── Shared instances ──────────────────────────────────────────────────────────

videos_cache = RedisCache("approved_videos", default_ttl_seconds=settings.CONTENT_CACHE_TTL_SECONDS)
articles_cache = RedisCache("approved_articles", default_ttl_seconds=settings.CONTENT_CACHE_TTL_SECONDS)
