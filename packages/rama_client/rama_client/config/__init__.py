"""Configuration package for the Rama REST client."""

from .config import (
    ClientConfig,
    LoggingSettings,
    RoutingConfig,
    TransportConfig,
    get_config,
    reload_config,
)

__all__ = [
    "ClientConfig",
    "LoggingSettings",
    "RoutingConfig",
    "TransportConfig",
    "get_config",
    "reload_config",
]
