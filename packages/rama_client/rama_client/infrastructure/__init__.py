"""Infrastructure layer: logging, caching, transport and metrics."""

from __future__ import annotations
