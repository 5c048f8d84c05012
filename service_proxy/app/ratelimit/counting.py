"""
Counting rate limiter for the proxy service.

Each key maps to a JSON list of epoch-millisecond timestamps in the
key-value store. A check prunes entries older than the interval relative
to the request timestamp, denies when ``burst`` entries remain, and
otherwise appends the request timestamp and writes the list back.

The read and the write are separate store calls with no compare-and-swap,
so two concurrent checks on the same key can both be allowed and the later
write drops the earlier append. The limit is approximate under concurrency.
"""

import json
from dataclasses import dataclass, field
from typing import List

from shared.errors import ConfigurationError, StoreError
from shared.logging import get_logger

from ..adapters.kv_store import KeyValueStore

MIN_TTL_SECONDS = 60

logger = get_logger("proxy.rate_limiter")


class RateLimiterError(StoreError):
    """Raised when rate limit state cannot be read or written."""

    def __init__(self, message: str = "Rate limiter error", details=None):
        super().__init__(message, details)
        self.code = "RATE_LIMITER_ERROR"


class MalformedStateError(RateLimiterError):
    """Raised when the stored value is not a list of integer timestamps."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Malformed rate limit state for {key}: {reason}", {"key": key})
        self.code = "MALFORMED_STATE"


@dataclass
class RateLimitRecord:
    """Timestamps recorded for one rate limit key, oldest first."""

    key: str
    timestamps: List[int] = field(default_factory=list)

    def prune(self, now_ms: int, interval_ms: int) -> "RateLimitRecord":
        """Return a record holding only timestamps inside the window."""
        return RateLimitRecord(
            self.key,
            [ts for ts in self.timestamps if now_ms - ts < interval_ms]
        )

    def add(self, timestamp: int) -> None:
        self.timestamps.append(timestamp)

    def to_json(self) -> str:
        return json.dumps(self.timestamps)

    @classmethod
    def from_json(cls, key: str, value: str) -> "RateLimitRecord":
        try:
            timestamps = json.loads(value)
        except (TypeError, ValueError) as e:
            raise MalformedStateError(key, f"invalid JSON ({e})") from e

        if not isinstance(timestamps, list):
            raise MalformedStateError(key, "value is not an array")

        for ts in timestamps:
            if isinstance(ts, bool) or not isinstance(ts, int):
                raise MalformedStateError(key, f"non-integer timestamp {ts!r}")

        return cls(key, timestamps)


@dataclass(frozen=True)
class RateLimiterConfig:
    """Parameters bound to a single rate limit check."""

    key: str
    burst: int
    interval_seconds: int
    store: KeyValueStore
    request_timestamp: int

    def __post_init__(self):
        if isinstance(self.burst, bool) or not isinstance(self.burst, int) or self.burst <= 0:
            raise ConfigurationError(
                "Rate limit burst must be a positive integer",
                {"key": self.key, "burst": self.burst}
            )
        if self.interval_seconds <= 0:
            raise ConfigurationError(
                "Rate limit interval must be positive",
                {"key": self.key, "interval_seconds": self.interval_seconds}
            )

    @property
    def interval_ms(self) -> int:
        return int(self.interval_seconds * 1000)

    @property
    def ttl_seconds(self) -> int:
        return max(MIN_TTL_SECONDS, int(self.interval_seconds))


class RateLimiter:
    """Store-backed counting rate limiter for a single key."""

    def __init__(self, config: RateLimiterConfig):
        self.config = config

    async def is_allowed(self) -> bool:
        """Check the quota for the configured key and record the request.

        Denied checks never write to the store.

        Raises:
            RateLimiterError: if the store fails or holds malformed state.
        """
        config = self.config
        record = await self._load_record()
        window = record.prune(config.request_timestamp, config.interval_ms)

        if len(window.timestamps) >= config.burst:
            logger.warning(
                "Rate limit exceeded",
                key=config.key,
                current_count=len(window.timestamps),
                limit=config.burst
            )
            return False

        window.add(config.request_timestamp)
        await self._save_record(window)
        logger.debug(
            "Rate limit check passed",
            key=config.key,
            current_count=len(window.timestamps),
            limit=config.burst
        )
        return True

    async def _load_record(self) -> RateLimitRecord:
        key = self.config.key
        try:
            value = await self.config.store.get(key)
        except Exception as e:
            logger.error("Rate limit state read failed", key=key, error=str(e))
            raise RateLimiterError(f"Failed to read rate limit state for {key}: {e}", {"key": key}) from e

        if not value:
            return RateLimitRecord(key)

        try:
            return RateLimitRecord.from_json(key, value)
        except MalformedStateError as e:
            logger.error("Malformed rate limit state", key=key, error=e.message)
            raise

    async def _save_record(self, record: RateLimitRecord) -> None:
        try:
            await self.config.store.put(record.key, record.to_json(), ttl_seconds=self.config.ttl_seconds)
        except Exception as e:
            logger.error("Rate limit state write failed", key=record.key, error=str(e))
            raise RateLimiterError(
                f"Failed to write rate limit state for {record.key}: {e}",
                {"key": record.key}
            ) from e
