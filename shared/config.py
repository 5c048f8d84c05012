"""
Shared configuration management for the regional API proxy.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="PROXY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # External services
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Upstream API
    upstream_api_key: str = Field(default="")
    upstream_auth_header: str = Field(default="X-Riot-Token")
    upstream_user_agent: str = Field(default="riot-api-proxy/1.0.0")
    upstream_base_domain: str = Field(default="api.riotgames.com")
    upstream_scheme: str = Field(default="https")
    upstream_timeout_seconds: float = Field(default=10.0, gt=0)

    # Routing
    default_region: str = Field(default="euw1")
    client_ip_header: str = Field(default="CF-Connecting-IP")

    # Response cache
    cache_duration_seconds: int = Field(default=60, ge=0)

    # Rate limiting
    client_rate_limit_burst: int = Field(default=20, gt=0)
    client_rate_limit_interval: int = Field(default=1, gt=0)
    server_rate_limit_burst: int = Field(default=100, gt=0)
    server_rate_limit_interval: int = Field(default=120, gt=0)
    server_rate_limit_scope: str = Field(default="url", pattern="^(url|region|global)$")
    rate_limits_file: Optional[str] = Field(default=None)
    client_rate_limit_multiplier: float = Field(default=1.0, gt=0)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
