"""Integration tests for the Redis filter cache.

These tests require a running Redis instance.
Run with: pytest tests/integration -m integration
"""

import pytest
from redis import Redis

from src.api.schemas import FacetResult, FilterOption, PriceRange
from src.cache.client import (
    RedisFilterCache,
    filters_cache_key,
    invalidate_category_filters,
)
from src.config import settings

TEST_CATEGORY_ID = 987654


@pytest.fixture(scope="module")
def redis_cache():
    """Cache bound to the configured Redis, cleaned up after the module."""
    redis = Redis.from_url(settings.redis_url)
    yield RedisFilterCache(redis)
    redis.delete(filters_cache_key(TEST_CATEGORY_ID))
    redis.close()


@pytest.mark.integration
class TestRedisFilterCache:
    """Test get / set_with_ttl / delete against Redis."""

    def test_round_trip_with_ttl(self, redis_cache: RedisFilterCache):
        key = filters_cache_key(TEST_CATEGORY_ID)
        result = FacetResult(
            price_range=PriceRange(min=100, max=900),
            brands=[FilterOption(value="AMD", label="AMD", count=4)],
        )

        redis_cache.set_with_ttl(key, result.model_dump_json().encode(), 60)

        assert FacetResult.model_validate_json(redis_cache.get(key)) == result
        assert 0 < redis_cache.redis.ttl(key) <= 60

    def test_missing_key(self, redis_cache: RedisFilterCache):
        assert redis_cache.get("category_0_filters_missing") is None

    def test_invalidate(self, redis_cache: RedisFilterCache):
        key = filters_cache_key(TEST_CATEGORY_ID)
        redis_cache.set_with_ttl(key, b"{}", 60)

        invalidate_category_filters(redis_cache, TEST_CATEGORY_ID)

        assert redis_cache.get(key) is None
