"""
Rate limiting package for the proxy.

Holds the store-backed counting limiter and the per-endpoint limit table
used to size the client and server quotas.
"""

from .counting import (
    MalformedStateError,
    RateLimiter,
    RateLimiterConfig,
    RateLimiterError,
    RateLimitRecord,
)
from .endpoint_limits import EndpointRateLimit, EndpointRateLimitTable

__all__ = [
    "MalformedStateError",
    "RateLimiter",
    "RateLimiterConfig",
    "RateLimiterError",
    "RateLimitRecord",
    "EndpointRateLimit",
    "EndpointRateLimitTable",
]
