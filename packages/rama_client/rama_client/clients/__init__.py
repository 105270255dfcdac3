"""Client implementations for the Rama REST API."""

from __future__ import annotations

from .builders import DepotAppendBuilder, PStateQueryBuilder
from .routing_client import RamaClient

__all__ = ["DepotAppendBuilder", "PStateQueryBuilder", "RamaClient"]
