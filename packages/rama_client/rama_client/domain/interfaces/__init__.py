"""Domain interfaces for the Rama REST client."""

from __future__ import annotations

from .endpoint_selector import EndpointSelector

__all__ = ["EndpointSelector"]
