"""Wire data models for the Rama REST client."""

from __future__ import annotations

from .depot_models import AckLevel, DepotAppendRequest

__all__ = [
    "AckLevel",
    "DepotAppendRequest",
]
