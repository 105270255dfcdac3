"""Settings for the Rama REST client.

Values come from keyword arguments, then `RAMA_CLIENT_*` environment variables
(nested fields use `__`, e.g. `RAMA_CLIENT_TRANSPORT__CONNECT_TIMEOUT`), then
the defaults below.
"""

from __future__ import annotations

from functools import lru_cache

import httpx
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RoutingConfig(BaseModel):
    """Redirect and URL routing configuration."""

    max_redirects: int = Field(
        default=5, ge=1, le=50, description="Maximum requests sent per operation"
    )

    rest_prefix: str = Field(
        default="rest", min_length=1, description="Path prefix of the REST entry point"
    )


class TransportConfig(BaseModel):
    """HTTP transport configuration."""

    request_timeout: float = Field(
        default=30.0, gt=0, le=600, description="Read/write timeout in seconds"
    )

    connect_timeout: float = Field(
        default=5.0, gt=0, le=120, description="Connection timeout in seconds"
    )

    def to_httpx_timeout(self) -> httpx.Timeout:
        """Build the httpx timeout object for these settings."""
        return httpx.Timeout(self.request_timeout, connect=self.connect_timeout)


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level for the rama_client loggers")

    json_format: bool = Field(default=False, description="Emit JSON structured log lines")


class ClientConfig(BaseSettings):
    """Main client configuration.

    All configuration values can be overridden using environment variables
    with the prefix RAMA_CLIENT_ (e.g., RAMA_CLIENT_ROUTING__MAX_REDIRECTS).
    """

    model_config = SettingsConfigDict(
        env_prefix="RAMA_CLIENT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:2000", description="Well-known entry point of the cluster"
    )

    # Sub-configurations
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_config() -> ClientConfig:
    """Get the process-wide configuration, read once from the environment.

    Returns:
        ClientConfig: The configuration instance read from the environment
    """
    return ClientConfig()


def reload_config() -> ClientConfig:
    """Discard the cached configuration and read the environment again.

    Returns:
        ClientConfig: The new configuration instance
    """
    get_config.cache_clear()
    return get_config()
