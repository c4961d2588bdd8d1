"""
Shared configuration management for the edge cache service.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="EDGE_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Key-value store ("redis://..." or "memory://")
    store_url: str = Field(default="redis://localhost:6379/0")
    store_socket_timeout: float = Field(default=2.0, gt=0)

    # Cache TTLs
    product_ttl_seconds: int = Field(default=3600, gt=0)
    product_list_ttl_seconds: int = Field(default=600, gt=0)

    # Rate limiting
    rate_limit_window_seconds: int = Field(default=60, gt=0)
    rate_limit_max_requests: int = Field(default=10, gt=0)
    rate_limit_failure_policy: str = Field(default="open", pattern="^(open|closed)$")
    # Only enable behind a proxy that overwrites X-Forwarded-For / X-Real-IP
    rate_limit_trust_proxy_headers: bool = Field(default=False)

    # Simulated latency of the backing catalog
    catalog_latency_ms: int = Field(default=0, ge=0)


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
