"""Domain entities for the Rama REST client."""

from __future__ import annotations

from .endpoint import Endpoint
from .request_attempt import RequestAttempt

__all__ = [
    "Endpoint",
    "RequestAttempt",
]
