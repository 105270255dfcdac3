"""Per-module cache of supervisor locations."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from functools import lru_cache
from typing import Any

from rama_client.infrastructure.logging import get_logger

logger = get_logger(__name__)


class TopologyCache:
    """Thread-safe mapping from module name to its advertised supervisors.

    This cache provides:
    - Full-replace updates, the last writer wins
    - Immutable tuples as stored values so readers never see a partial list
    - Empty and absent entries treated the same
    - Hit/miss statistics

    Entries are advisory. A stale entry costs an extra redirect, the cluster
    never serves data from the wrong node.
    """

    def __init__(self) -> None:
        """Initialize an empty topology cache."""
        self._entries: dict[str, tuple[str, ...]] = {}
        self._lock = threading.Lock()

        # Statistics
        self._hits = 0
        self._misses = 0
        self._updates = 0

    def lookup(self, module: str) -> tuple[str, ...] | None:
        """Get the cached supervisor locations of a module.

        Args:
            module: Module name

        Returns:
            Non-empty tuple of ``"host:port"`` strings, or None if nothing is known
        """
        with self._lock:
            endpoints = self._entries.get(module)
            if endpoints:
                self._hits += 1
                return endpoints
            self._misses += 1
            return None

    def update(self, module: str, endpoints: Iterable[str]) -> None:
        """Replace the cached supervisor locations of a module.

        Args:
            module: Module name
            endpoints: New ``"host:port"`` locations; empty removes the entry
        """
        new_entry = tuple(endpoints)
        with self._lock:
            self._updates += 1
            if new_entry:
                self._entries[module] = new_entry
            else:
                self._entries.pop(module, None)

        logger.debug(
            "Updated supervisor cache",
            extra={"module_name": module, "supervisors": list(new_entry)},
        )

    def invalidate(self, module: str) -> bool:
        """Drop the cached locations of a module.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            removed = self._entries.pop(module, None) is not None
        if removed:
            logger.debug("Invalidated supervisor cache entry", extra={"module_name": module})
        return removed

    def clear(self) -> None:
        """Remove every entry and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._updates = 0

    def snapshot(self) -> dict[str, tuple[str, ...]]:
        """Get a point-in-time copy of all entries."""
        with self._lock:
            return dict(self._entries)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with entry count, hits, misses, updates and hit ratio
        """
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "modules": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "updates": self._updates,
                "hit_ratio": self._hits / lookups if lookups else 0.0,
            }

    def __contains__(self, module: object) -> bool:
        with self._lock:
            return module in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@lru_cache(maxsize=1)
def get_topology_cache() -> TopologyCache:
    """Get the process-wide topology cache shared by all clients."""
    return TopologyCache()
