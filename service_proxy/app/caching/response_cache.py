"""
Shared upstream response cache keyed by upstream URL.
"""

import base64
import hashlib
import json
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import redis.asyncio as redis
from fastapi import Response

from shared.logging import get_logger

FROM_CACHE_HEADER = "X-From-Cache"


@dataclass
class CachedResponse:
    """Status, headers and body of an upstream response."""

    status_code: int
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    def get_header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    def with_header(self, name: str, value: str) -> "CachedResponse":
        """Copy with ``name`` set to ``value``, replacing existing values."""
        lowered = name.lower()
        headers = [(k, v) for k, v in self.headers if k.lower() != lowered]
        headers.append((name, value))
        return CachedResponse(self.status_code, headers, self.body)

    def to_response(self, background=None) -> Response:
        response = Response(content=self.body, status_code=self.status_code, background=background)
        for key, value in self.headers:
            if key.lower() == "content-length":
                continue
            response.headers.append(key, value)
        return response

    def dumps(self) -> str:
        return json.dumps({
            "status": self.status_code,
            "headers": [list(pair) for pair in self.headers],
            "body": base64.b64encode(self.body).decode("ascii"),
        })

    @classmethod
    def loads(cls, data: str) -> "CachedResponse":
        payload = json.loads(data)
        return cls(
            status_code=int(payload["status"]),
            headers=[(str(k), str(v)) for k, v in payload["headers"]],
            body=base64.b64decode(payload["body"]),
        )


class ResponseCache:
    """Redis-backed response cache.

    Lookups and writes are best-effort: failures are logged and treated as
    a miss or a skipped write.
    """

    def __init__(self, redis_url: str, max_age: int = 60, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.max_age = max_age
        self.logger = get_logger("proxy.response_cache")
        self._redis: Optional[redis.Redis] = client

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url)
        return self._redis

    def _make_key(self, url: str) -> str:
        return f"proxy:response:{hashlib.md5(url.encode()).hexdigest()}"

    async def match(self, url: str) -> Optional[CachedResponse]:
        """Return the cached response for ``url``, if any."""
        try:
            redis_client = await self._get_redis()
            cached_data = await redis_client.get(self._make_key(url))
            if not cached_data:
                return None
            if isinstance(cached_data, bytes):
                cached_data = cached_data.decode("utf-8")
            return CachedResponse.loads(cached_data)
        except Exception as e:
            self.logger.error("Cache get error", url=url, error=str(e))
            return None

    async def put(self, url: str, response: CachedResponse) -> bool:
        """Store ``response`` under ``url`` for ``max_age`` seconds."""
        if self.max_age <= 0:
            return False
        try:
            redis_client = await self._get_redis()
            await redis_client.set(self._make_key(url), response.dumps(), ex=self.max_age)
            self.logger.debug("Cached response", url=url, ttl=self.max_age)
            return True
        except Exception as e:
            self.logger.error("Cache set error", url=url, error=str(e))
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
