"""
Shared fixtures for proxy service tests.
"""

import httpx
import pytest
from fakeredis import aioredis as fake_aioredis

from shared.config import get_config
from shared.test_helpers import UpstreamStub
from service_proxy.app.adapters.kv_store import RedisKeyValueStore
from service_proxy.app.adapters.upstream_client import UpstreamClient
from service_proxy.app.caching.response_cache import ResponseCache


@pytest.fixture
def fake_redis():
    """In-process Redis shared by the store and the cache."""
    return fake_aioredis.FakeRedis()


@pytest.fixture
def store(fake_redis):
    return RedisKeyValueStore("redis://localhost:6379/0", client=fake_redis)


@pytest.fixture
def cache(fake_redis):
    return ResponseCache("redis://localhost:6379/0", max_age=120, client=fake_redis)


@pytest.fixture
def upstream_stub():
    return UpstreamStub()


@pytest.fixture
def upstream(upstream_stub):
    client = httpx.AsyncClient(transport=upstream_stub.transport())
    return UpstreamClient("test-api-key", user_agent="proxy-tests/1.0", client=client)


@pytest.fixture
def config():
    return get_config(
        "proxy",
        8000,
        upstream_api_key="test-api-key",
        upstream_user_agent="proxy-tests/1.0",
        default_region="euw1",
        cache_duration_seconds=120,
        client_rate_limit_burst=5,
        client_rate_limit_interval=60,
        server_rate_limit_burst=10,
        server_rate_limit_interval=60,
        server_rate_limit_scope="url",
        rate_limits_file=None,
    )
