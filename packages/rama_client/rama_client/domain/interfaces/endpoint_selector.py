"""Abstract interface for replica selection strategies.

This module defines the contract for choosing which cached supervisor
location a request is sent to.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class EndpointSelector(ABC):
    """Abstract base class for endpoint selection strategies."""

    @abstractmethod
    def select(self, endpoints: Sequence[str], module: str) -> str | None:
        """Select one location from the cached topology of a module.

        Args:
            endpoints: Cached ``"host:port"`` locations.
            module: Name of the module for context.

        Returns:
            Selected location, or None if ``endpoints`` is empty.
        """
        pass
