"""Exception hierarchy for the Rama REST client.

Every failed operation surfaces exactly one of these errors. Each carries a
machine-readable ``error_code`` and a ``details`` dictionary with the context
(URL, status code, header name) needed to diagnose the failure.
"""

from typing import Any


class RamaClientError(Exception):
    """Base exception for all Rama client errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code for programmatic handling
            details: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class InvalidURLError(RamaClientError):
    """Raised when a base, target or redirect URL cannot be used."""

    def __init__(self, url: str, reason: str, **kwargs: Any) -> None:
        """
        Initialize invalid URL error.

        Args:
            url: The offending URL or URL fragment
            reason: Why it was rejected
            **kwargs: Additional error details
        """
        message = f"Invalid URL '{url}': {reason}"
        details = {"url": url, "reason": reason, **kwargs.pop("details", {})}
        super().__init__(message, error_code="INVALID_URL", details=details)


class TransportError(RamaClientError):
    """Raised when the HTTP request could not be sent or its response not received."""

    def __init__(self, url: str, reason: str, **kwargs: Any) -> None:
        """
        Initialize transport error.

        Args:
            url: URL that was contacted
            reason: Underlying transport failure
            **kwargs: Additional error details
        """
        message = f"HTTP request to {url} failed: {reason}"
        details = {"url": url, "reason": reason, **kwargs.pop("details", {})}
        super().__init__(message, error_code="TRANSPORT_ERROR", details=details)


class ResponseDecodeError(RamaClientError):
    """Raised when a successful response body does not match the expected type."""

    def __init__(self, url: str, expected_type: str, reason: str, **kwargs: Any) -> None:
        """
        Initialize response decode error.

        Args:
            url: URL that returned the body
            expected_type: Name of the type the caller asked for
            reason: Decoder failure description
            **kwargs: Additional error details
        """
        message = f"Failed to decode response from {url} as {expected_type}: {reason}"
        details = {
            "url": url,
            "expected_type": expected_type,
            "reason": reason,
            **kwargs.pop("details", {}),
        }
        super().__init__(message, error_code="RESPONSE_DECODE_ERROR", details=details)


class RedirectHeaderError(RamaClientError):
    """Base class for unusable headers on a redirect response."""

    header: str = ""

    def __init__(self, url: str, reason: str | None = None, **kwargs: Any) -> None:
        """
        Initialize redirect header error.

        Args:
            url: URL that returned the redirect
            reason: Optional parse failure description
            **kwargs: Additional error details
        """
        message = f"Missing {self.header} header in 308 redirect from {url}"
        if reason:
            message = f"Unusable {self.header} header in 308 redirect from {url}: {reason}"
        details = {
            "url": url,
            "header": self.header,
            "reason": reason,
            **kwargs.pop("details", {}),
        }
        super().__init__(message, error_code=kwargs.pop("error_code", None), details=details)


class MissingLocationHeaderError(RedirectHeaderError):
    """Raised when a redirect has no readable Location header."""

    header = "Location"

    def __init__(self, url: str, reason: str | None = None, **kwargs: Any) -> None:
        super().__init__(url, reason, error_code="MISSING_LOCATION_HEADER", **kwargs)


class MissingSupervisorLocationsHeaderError(RedirectHeaderError):
    """Raised when a redirect has no readable Supervisor-Locations header."""

    header = "Supervisor-Locations"

    def __init__(self, url: str, reason: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            url, reason, error_code="MISSING_SUPERVISOR_LOCATIONS_HEADER", **kwargs
        )


class InvalidSupervisorLocationsError(RedirectHeaderError):
    """Raised when Supervisor-Locations is not a JSON array of strings."""

    header = "Supervisor-Locations"

    def __init__(self, url: str, value: str, reason: str, **kwargs: Any) -> None:
        """
        Initialize invalid supervisor locations error.

        Args:
            url: URL that returned the redirect
            value: Raw header value
            reason: Parse failure description
            **kwargs: Additional error details
        """
        details = {"value": value, **kwargs.pop("details", {})}
        super().__init__(
            url,
            reason,
            error_code="INVALID_SUPERVISOR_LOCATIONS",
            details=details,
        )


class UnexpectedStatusError(RamaClientError):
    """Raised when the cluster answers with a status other than 200 or 308."""

    def __init__(self, status_code: int, url: str, body: str = "", **kwargs: Any) -> None:
        """
        Initialize unexpected status error.

        Args:
            status_code: HTTP status code received
            url: URL that was contacted
            body: Best-effort response body text
            **kwargs: Additional error details
        """
        message = f"Received unexpected status code {status_code} from {url}"
        details = {
            "status_code": status_code,
            "url": url,
            "body": body,
            **kwargs.pop("details", {}),
        }
        super().__init__(message, error_code="UNEXPECTED_STATUS", details=details)
        self.status_code = status_code
        self.url = url
        self.body = body


class MaxRedirectsExceededError(RamaClientError):
    """Raised when an operation keeps being redirected past its request budget."""

    def __init__(self, max_redirects: int, url: str, **kwargs: Any) -> None:
        """
        Initialize max redirects error.

        Args:
            max_redirects: Configured request budget
            url: Last redirect target
            **kwargs: Additional error details
        """
        message = f"Maximum redirect attempts ({max_redirects}) exceeded, last target {url}"
        details = {"max_redirects": max_redirects, "url": url, **kwargs.pop("details", {})}
        super().__init__(message, error_code="MAX_REDIRECTS_EXCEEDED", details=details)


class BuilderConsumedError(RamaClientError):
    """Raised when a builder is used again after its terminal call."""

    def __init__(self, builder: str) -> None:
        super().__init__(
            f"{builder} has already been executed and cannot be reused",
            error_code="BUILDER_CONSUMED",
            details={"builder": builder},
        )
