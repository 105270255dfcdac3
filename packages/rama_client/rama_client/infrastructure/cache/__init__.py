"""Cache infrastructure for the Rama REST client."""

from __future__ import annotations

from .topology_cache import TopologyCache, get_topology_cache

__all__ = [
    "TopologyCache",
    "get_topology_cache",
]
