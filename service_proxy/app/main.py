"""
Regional API proxy service.
"""

from typing import Dict, Optional

from fastapi import Request

from shared.base_service import BaseService
from shared.config import ServiceConfig
from service_proxy.app.adapters.kv_store import KeyValueStore, RedisKeyValueStore
from service_proxy.app.adapters.upstream_client import UpstreamClient
from service_proxy.app.caching.response_cache import ResponseCache
from service_proxy.app.pipeline import RequestPipeline
from service_proxy.app.ratelimit.endpoint_limits import EndpointRateLimitTable

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


class ProxyService(BaseService):
    """Proxy service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        store: Optional[KeyValueStore] = None,
        cache: Optional[ResponseCache] = None,
        upstream: Optional[UpstreamClient] = None,
    ):
        super().__init__("proxy", 8000, config)

        self.store = store or RedisKeyValueStore(self.config.redis_url)
        self.cache = cache or ResponseCache(
            self.config.redis_url,
            max_age=self.config.cache_duration_seconds,
        )
        self.upstream = upstream or UpstreamClient(
            self.config.upstream_api_key,
            auth_header=self.config.upstream_auth_header,
            user_agent=self.config.upstream_user_agent,
            timeout=self.config.upstream_timeout_seconds,
        )

        endpoint_limits = None
        if self.config.rate_limits_file:
            endpoint_limits = EndpointRateLimitTable.from_file(self.config.rate_limits_file)

        self.pipeline = RequestPipeline(
            self.config,
            self.store,
            self.cache,
            self.upstream,
            endpoint_limits=endpoint_limits,
            metrics=self.metrics,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.upstream.close()
            await self.cache.close()
            if isinstance(self.store, RedisKeyValueStore):
                await self.store.close()

        self._setup_proxy_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.proxy_service = self

    def _setup_proxy_routes(self):
        """Forward every path not served locally to the upstream API."""

        @self.app.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
        async def proxy(request: Request, path: str):
            return await self.pipeline.handle(request)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check proxy dependencies."""
        dependencies = {}

        if isinstance(self.store, RedisKeyValueStore):
            dependencies["redis"] = "ok" if await self.store.ping() else "error"

        return dependencies


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = ProxyService(config, **kwargs)
    return service.app


if __name__ == "__main__":
    service = ProxyService()
    service.run()
