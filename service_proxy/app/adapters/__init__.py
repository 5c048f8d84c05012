"""
Adapters package for the Proxy Service.

Contains wrappers for the proxy's external dependencies:

- KeyValueStore / RedisKeyValueStore: rate limit state
- UpstreamClient: the regional upstream HTTP API

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .kv_store import KeyValueStore, RedisKeyValueStore
from .upstream_client import UpstreamClient

__all__ = [
    "KeyValueStore",
    "RedisKeyValueStore",
    "UpstreamClient",
]
