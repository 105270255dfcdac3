"""Monitoring infrastructure for the Rama REST client."""

from __future__ import annotations

from .metrics import RoutingMetricsCollector

__all__ = ["RoutingMetricsCollector"]
