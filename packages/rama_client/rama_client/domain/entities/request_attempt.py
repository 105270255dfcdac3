"""RequestAttempt domain entity."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import httpx


@dataclass
class RequestAttempt:
    """State of one in-flight routed operation.

    Attributes:
        module: Logical module the operation targets
        operation_path: Operation suffix, e.g. ``"pstate/$$p/select"``
        current_url: Target URL, replaced by each redirect
        requests_sent: Number of requests sent so far
        started: Monotonic clock reading when the operation started
    """

    module: str
    operation_path: str
    current_url: httpx.URL
    requests_sent: int = 0
    started: float = field(default_factory=lambda: time.perf_counter())

    @property
    def redirects_followed(self) -> int:
        """Number of redirects followed, i.e. requests that did not end the operation."""
        return max(self.requests_sent - 1, 0)

    def has_budget(self, max_requests: int) -> bool:
        """Check whether another request may be sent."""
        return self.requests_sent < max_requests

    def record_request(self) -> int:
        """Count a request about to be sent and return its 1-based number."""
        self.requests_sent += 1
        return self.requests_sent

    def follow(self, location: httpx.URL) -> None:
        """Move the attempt to a redirect target."""
        self.current_url = location

    def elapsed(self) -> float:
        """Seconds since the attempt started, redirects included."""
        return time.perf_counter() - self.started
