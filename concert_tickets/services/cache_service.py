"""
Redis caching for the concert listing.

What we cache:
  - The full GET /concerts response (a small, id-ordered list)
  - Key: "concerts:list:<generation>", generation held in
    "concerts:list-generation"

Invalidation strategy:
  - Any concert create/update/delete bumps the generation
  - Any reservation create/update/delete bumps it too, since each of
    them moves a concert's available_seats
  - A list read from the database is stored under the generation seen
    before the read, so a read that overlaps a mutation lands under a
    key nobody asks for any more
  - TTL-based expiry as safety net and cleanup of old generations

Single concerts and reservations are never cached: the client refetches
them right after every mutation and must see current seat counts.

Redis problems are logged and treated as a miss; the database is always
the source of truth.
"""

import json
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
from concert_tickets.core.config import get_settings
from concert_tickets.core.logging import get_logger
from concert_tickets.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

CONCERT_LIST_PREFIX = "concerts:list:"
CONCERT_LIST_GENERATION_KEY = "concerts:list-generation"

_redis_client: Optional[redis.Redis] = None


def _concert_list_key(generation: str) -> str:
    return f"{CONCERT_LIST_PREFIX}{generation}"


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except RedisError as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_cached_concerts() -> tuple[Optional[list[dict]], Optional[str]]:
    """
    Return (concerts, generation). concerts is None on a miss; generation
    is None when the cache is unusable. Pass the generation back to
    set_cached_concerts so a list read before an invalidation can never
    be stored under the key readers use after it.
    """
    client = await get_redis()
    if not client:
        return None, None

    try:
        generation = await client.get(CONCERT_LIST_GENERATION_KEY) or "0"
        data = await client.get(_concert_list_key(generation))
    except RedisError as e:
        record_cache_operation("get", "error")
        logger.error("cache_get_error", key=CONCERT_LIST_PREFIX, error=str(e))
        return None, None

    if data is None:
        record_cache_operation("get", "miss")
        return None, generation
    record_cache_operation("get", "hit")
    return json.loads(data), generation


async def set_cached_concerts(concerts: list[dict], generation: Optional[str]) -> None:
    client = await get_redis()
    if not client or generation is None:
        return

    key = _concert_list_key(generation)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(concerts))
        record_cache_operation("set", "ok")
    except RedisError as e:
        record_cache_operation("set", "error")
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_concert_cache() -> None:
    """Move readers to a fresh generation; old entries expire by TTL."""
    client = await get_redis()
    if not client:
        return

    try:
        generation = await client.incr(CONCERT_LIST_GENERATION_KEY)
        record_cache_operation("invalidate", "ok")
        logger.debug("cache_invalidated", generation=generation)
    except RedisError as e:
        record_cache_operation("invalidate", "error")
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
