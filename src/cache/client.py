"""Redis client setup for cached filter results."""

import logging
from typing import Protocol

from redis import Redis

from src.config import settings

logger = logging.getLogger(__name__)

# One entry per category for the unfiltered result
FILTERS_CACHE_KEY = "category_{category_id}_filters"


class FilterCache(Protocol):
    """Key/value store with a time-to-live write."""

    def get(self, key: str) -> bytes | None: ...

    def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class RedisFilterCache:
    """FilterCache backed by a Redis connection."""

    def __init__(self, redis: Redis):
        self.redis = redis

    def get(self, key: str) -> bytes | None:
        return self.redis.get(key)

    def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None:
        self.redis.setex(key, ttl_seconds, value)

    def delete(self, key: str) -> None:
        self.redis.delete(key)


client = Redis.from_url(
    settings.redis_url,
    socket_timeout=settings.redis_socket_timeout,
    socket_connect_timeout=settings.redis_socket_timeout,
)

filter_cache = RedisFilterCache(client)


def filters_cache_key(category_id: int) -> str:
    """Cache key for the unfiltered result of a category."""
    return FILTERS_CACHE_KEY.format(category_id=category_id)


def invalidate_category_filters(cache: FilterCache, category_id: int) -> None:
    """Drop the cached baseline result of a category."""
    cache.delete(filters_cache_key(category_id))
    logger.info("Invalidated cached filters", extra={"category_id": category_id})
