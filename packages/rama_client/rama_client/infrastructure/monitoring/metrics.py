"""Metrics collection for routed cluster requests."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

from rama_client.infrastructure.logging import get_logger

logger = get_logger(__name__)

requests_total = Counter(
    "rama_client_requests_total",
    "Total number of HTTP requests sent to the cluster",
    ["module", "operation", "outcome"],
)

redirects_total = Counter(
    "rama_client_redirects_total",
    "Total number of 308 redirects followed",
    ["module"],
)

topology_updates_total = Counter(
    "rama_client_topology_updates_total",
    "Total number of supervisor cache updates from redirect headers",
    ["module"],
)

operation_duration = Histogram(
    "rama_client_operation_duration_seconds",
    "Duration of a routed operation including redirects, in seconds",
    ["module", "operation", "success"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)


def _operation_kind(operation_path: str) -> str:
    # "pstate/$$p/selectOne" -> "pstate.selectOne"; keeps label cardinality bounded
    parts = [part for part in operation_path.split("/") if part]
    if len(parts) >= 2:
        return f"{parts[0]}.{parts[-1]}"
    return parts[0] if parts else "unknown"


class RoutingMetricsCollector:
    """Records per-operation routing metrics."""

    def record_response(self, module: str, operation_path: str, status_code: int) -> None:
        """Record a response received from the cluster.

        Args:
            module: Module name
            operation_path: Operation suffix of the request
            status_code: HTTP status of the response
        """
        requests_total.labels(
            module=module,
            operation=_operation_kind(operation_path),
            outcome=str(status_code),
        ).inc()

    def record_transport_failure(self, module: str, operation_path: str) -> None:
        """Record a request that never produced a response."""
        requests_total.labels(
            module=module,
            operation=_operation_kind(operation_path),
            outcome="transport_error",
        ).inc()

    def record_redirect(self, module: str, supervisors: int) -> None:
        """Record a followed redirect and the topology update it carried.

        Args:
            module: Module name
            supervisors: Number of advertised supervisor locations
        """
        redirects_total.labels(module=module).inc()
        topology_updates_total.labels(module=module).inc()

        logger.debug(
            "Redirect recorded",
            extra={"module_name": module, "supervisors": supervisors, "metric": "redirects_total"},
        )

    def record_operation(
        self, module: str, operation_path: str, duration_seconds: float, success: bool
    ) -> None:
        """Record the end of a routed operation.

        Args:
            module: Module name
            operation_path: Operation suffix of the request
            duration_seconds: Total time spent, redirects included
            success: Whether a result was returned
        """
        operation_duration.labels(
            module=module,
            operation=_operation_kind(operation_path),
            success=str(success).lower(),
        ).observe(duration_seconds)
