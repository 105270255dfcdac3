"""Endpoint selection strategies."""

from __future__ import annotations

from .random_choice import RandomEndpointSelector

__all__ = ["RandomEndpointSelector"]
