"""
Key-value store used for rate limit state.
"""

from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as redis

from shared.logging import get_logger


class KeyValueStore(ABC):
    """String key-value store with per-key expiry."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds`` seconds."""


class RedisKeyValueStore(KeyValueStore):
    """Key-value store backed by Redis ``GET`` and ``SET ... EX``."""

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None, prefix: str = "proxy:ratelimit:"):
        self.redis_url = redis_url
        self.prefix = prefix
        self.logger = get_logger("proxy.kv_store")
        self._redis: Optional[redis.Redis] = client

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url)
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        redis_client = await self._get_redis()
        value = await redis_client.get(self._make_key(key))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        redis_client = await self._get_redis()
        await redis_client.set(self._make_key(key), value, ex=ttl_seconds)

    async def ping(self) -> bool:
        """Return True when Redis answers a PING."""
        try:
            redis_client = await self._get_redis()
            return bool(await redis_client.ping())
        except Exception as e:
            self.logger.error("Redis ping failed", error=str(e))
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
