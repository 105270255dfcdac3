"""Uniform random endpoint selection.

Every cached supervisor is equally valid for a module, so requests are spread
by picking one uniformly at random. The random source is injectable so tests
can seed it.
"""

from __future__ import annotations

import random
import threading
from collections.abc import Sequence

from rama_client.domain.interfaces.endpoint_selector import EndpointSelector
from rama_client.infrastructure.logging import get_logger

logger = get_logger(__name__)


class RandomEndpointSelector(EndpointSelector):
    """Thread-safe uniform random endpoint selector."""

    def __init__(self, rng: random.Random | None = None) -> None:
        """Initialize the selector.

        Args:
            rng: Random source, a fresh unseeded ``random.Random`` if not provided.
        """
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    def select(self, endpoints: Sequence[str], module: str) -> str | None:
        """Pick one of ``endpoints`` uniformly at random.

        Args:
            endpoints: Cached ``"host:port"`` locations.
            module: Name of the module for context.

        Returns:
            Selected location, or None if ``endpoints`` is empty.
        """
        if not endpoints:
            return None

        with self._lock:
            selected = self._rng.choice(endpoints)

        logger.debug(
            "Selected supervisor at random",
            extra={"module_name": module, "supervisor": selected, "candidates": len(endpoints)},
        )
        return selected
