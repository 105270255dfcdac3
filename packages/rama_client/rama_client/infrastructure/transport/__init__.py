"""Transport infrastructure for the Rama REST client."""

from __future__ import annotations

from .http_transport import CONTENT_TYPE, HTTPTransport

__all__ = ["CONTENT_TYPE", "HTTPTransport"]
