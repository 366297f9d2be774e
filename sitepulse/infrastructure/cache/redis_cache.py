"""
Redis cache for cross-entity rollup results.
"""
import json
import logging
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional, Union

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class RedisManager:
    """
    Manages the shared Redis connection.
    """

    _client: Optional[redis.Redis] = None

    @classmethod
    def get_client(cls, url: str) -> redis.Redis:
        """Get or create the Redis client."""
        if cls._client is None:
            cls._client = redis.from_url(
                url,
                encoding='utf-8',
                decode_responses=True,
            )
        return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the Redis connection."""
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None


class Cache:
    """
    High-level JSON caching interface over an injected client.
    """

    def __init__(self, client: redis.Redis, prefix: str = "sitepulse"):
        self._client = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        """Build cache key with prefix."""
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        value = await self._client.get(self._key(key))
        if value is not None:
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return None

    async def set(
        self,
        key: str,
        value: Any,
        expire: Optional[Union[int, timedelta]] = None
    ) -> None:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            expire: Expiration time in seconds or timedelta
        """
        serialized = json.dumps(value, default=str)

        if expire is not None:
            if isinstance(expire, timedelta):
                expire = int(expire.total_seconds())
            await self._client.setex(self._key(key), expire, serialized)
        else:
            await self._client.set(self._key(key), serialized)

    async def delete(self, key: str) -> None:
        """Delete key from cache."""
        await self._client.delete(self._key(key))

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        expire: Optional[Union[int, timedelta]] = None
    ) -> Any:
        """
        Get from cache or compute and set.

        Args:
            key: Cache key
            factory: Coroutine function producing the value on a miss
            expire: Expiration time

        Returns:
            Cached or computed value
        """
        value = await self.get(key)
        if value is not None:
            return value

        logger.debug(f"Cache miss for {self._key(key)}")
        value = await factory()
        if value is not None:
            await self.set(key, value, expire)
        return value
