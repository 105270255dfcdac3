"""Routing client for the cluster's REST API."""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from rama_client.clients.builders import DepotAppendBuilder, PStateQueryBuilder
from rama_client.config import ClientConfig, get_config
from rama_client.domain.entities import Endpoint, RequestAttempt
from rama_client.domain.exceptions import (
    InvalidSupervisorLocationsError,
    InvalidURLError,
    MaxRedirectsExceededError,
    MissingLocationHeaderError,
    MissingSupervisorLocationsHeaderError,
    ResponseDecodeError,
    TransportError,
    UnexpectedStatusError,
)
from rama_client.domain.interfaces import EndpointSelector
from rama_client.domain.strategies import RandomEndpointSelector
from rama_client.infrastructure.cache import TopologyCache, get_topology_cache
from rama_client.infrastructure.logging import get_logger
from rama_client.infrastructure.monitoring import RoutingMetricsCollector
from rama_client.infrastructure.transport import HTTPTransport

logger = get_logger(__name__)

R = TypeVar("R")

LOCATION_HEADER = "Location"
SUPERVISOR_LOCATIONS_HEADER = "Supervisor-Locations"

_BODY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)
_SUPERVISOR_LOCATIONS_ADAPTER: TypeAdapter[list[str]] = TypeAdapter(list[str])
_FORBIDDEN_MODULE_CHARS = frozenset("/?#")
_FORBIDDEN_HOST_CHARS = frozenset("%[]")


def _parse_absolute_url(value: str, what: str) -> httpx.URL:
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as e:
        raise InvalidURLError(value, f"{what} is not a valid URL: {e}") from e
    if url.scheme not in ("http", "https"):
        raise InvalidURLError(value, f"{what} must use http or https")
    if not url.host:
        raise InvalidURLError(value, f"{what} has no host")
    # httpx percent-encodes what cannot sit in a host; IPv6 literals come back unbracketed
    if any(ch in _FORBIDDEN_HOST_CHARS for ch in url.host):
        raise InvalidURLError(value, f"{what} has a malformed host '{url.host}'")
    if url.port is not None and not 1 <= url.port <= 65535:
        raise InvalidURLError(value, f"{what} has port {url.port} outside 1..65535")
    return url


def _validate_module(module: str) -> str:
    name = module.strip("/")
    if not name:
        raise InvalidURLError(module, "module name is empty")
    if any(ch in _FORBIDDEN_MODULE_CHARS or ch.isspace() for ch in name):
        raise InvalidURLError(module, "module name contains '/', '?', '#' or whitespace")
    return name


def _read_header(response: httpx.Response, name: str) -> tuple[str | None, str | None]:
    """Read a header as ASCII text.

    Returns:
        ``(value, None)`` on success, ``(None, reason)`` when the header holds
        non-ASCII bytes, ``(None, None)`` when it is absent
    """
    wanted = name.lower().encode("ascii")
    for raw_name, raw_value in response.headers.raw:
        if raw_name.lower() == wanted:
            try:
                return raw_value.decode("ascii"), None
            except UnicodeDecodeError:
                return None, "header contains non-ASCII bytes"
    return None, None


def _type_name(result_type: Any) -> str:
    return getattr(result_type, "__name__", None) or repr(result_type)


class RamaClient:
    """Client that routes module operations to the supervisor serving them.

    Requests go to the well-known entry point first. The cluster answers with
    a 308 redirect carrying the supervisor URL and the module's current
    supervisor list, which is cached so later requests for the same module
    go straight to one of the advertised supervisors.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        topology_cache: TopologyCache | None = None,
        selector: EndpointSelector | None = None,
        max_redirects: int | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Entry point URL, defaults to the configured ``base_url``
            config: Client configuration, defaults to ``get_config()``
            http_client: Pre-built httpx client; not closed by this client
            topology_cache: Supervisor cache, defaults to the process-wide one
            selector: Replica selection strategy, uniform random by default
            max_redirects: Request budget per operation, overrides the config

        Raises:
            InvalidURLError: If the base URL is not an absolute http(s) URL
        """
        self._config = config or get_config()
        self._base_url = _parse_absolute_url(base_url or self._config.base_url, "base URL")
        self._rest_prefix = self._config.routing.rest_prefix.strip("/")
        self._max_redirects = (
            max_redirects if max_redirects is not None else self._config.routing.max_redirects
        )
        if self._max_redirects < 1:
            raise ValueError("max_redirects must be at least 1")
        self._transport = HTTPTransport(self._config.transport, http_client)
        self._cache = topology_cache if topology_cache is not None else get_topology_cache()
        self._selector = selector or RandomEndpointSelector()
        self._metrics = RoutingMetricsCollector()

    @classmethod
    def from_config(cls, config: ClientConfig | None = None, **kwargs: Any) -> RamaClient:
        """Create a client from a configuration object.

        Args:
            config: Client configuration, defaults to ``get_config()``
            **kwargs: Other constructor arguments

        Returns:
            A new client
        """
        config = config or get_config()
        return cls(config.base_url, config=config, **kwargs)

    @property
    def base_url(self) -> httpx.URL:
        return self._base_url

    @property
    def max_redirects(self) -> int:
        return self._max_redirects

    @property
    def topology_cache(self) -> TopologyCache:
        return self._cache

    async def __aenter__(self) -> RamaClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Release the HTTP connection pool owned by this client."""
        await self._transport.close()

    def pstate_query(self, module: str, pstate: str) -> PStateQueryBuilder:
        """Start a query against a PState, e.g. ``pstate_query("com.x.M", "$$profiles")``."""
        return PStateQueryBuilder(self, module, pstate)

    def depot_append(self, module: str, depot: str, data: Any) -> DepotAppendBuilder:
        """Start an append of ``data`` to a depot, e.g. ``depot_append("com.x.M", "*users", r)``."""
        return DepotAppendBuilder(self, module, depot, data)

    def build_url(self, module: str, operation_path: str) -> httpx.URL:
        """Build the entry-point URL of a module operation.

        Args:
            module: Module name
            operation_path: Operation suffix, e.g. ``"depot/*users/append"``

        Returns:
            ``{base}/{rest_prefix}/{module}/{operation_path}``

        Raises:
            InvalidURLError: If the module name or resulting URL is malformed
        """
        name = _validate_module(module)
        base = str(self._base_url).rstrip("/")
        suffix = operation_path.lstrip("/")
        return _parse_absolute_url(f"{base}/{self._rest_prefix}/{name}/{suffix}", "request URL")

    def _resolve_target(self, attempt: RequestAttempt) -> httpx.URL:
        """Pick the URL to contact, preferring a cached supervisor."""
        current = attempt.current_url
        supervisors = self._cache.lookup(attempt.module)
        if supervisors is None:
            logger.debug(
                "No cached supervisors, using current URL",
                extra={"module_name": attempt.module, "url": str(current)},
            )
            return current

        selected = self._selector.select(supervisors, attempt.module)
        if selected is None:
            return current

        try:
            endpoint = Endpoint.parse(selected)
            target = current.copy_with(host=endpoint.host, port=endpoint.port)
        except (ValueError, httpx.InvalidURL) as e:
            logger.warning(
                "Cannot use cached supervisor, using current URL",
                extra={
                    "module_name": attempt.module,
                    "supervisor": selected,
                    "url": str(current),
                    "error": str(e),
                },
            )
            return current

        logger.debug(
            "Using cached supervisor",
            extra={"module_name": attempt.module, "supervisor": selected, "url": str(target)},
        )
        return target

    def _follow_redirect(
        self, attempt: RequestAttempt, response: httpx.Response, target: httpx.URL
    ) -> None:
        """Validate a 308 response, then update the cache and the attempt's URL.

        Nothing is changed unless both headers parse.
        """
        url = str(target)

        location_text, reason = _read_header(response, LOCATION_HEADER)
        if location_text is None:
            logger.warning("Unusable Location header in redirect", extra={"url": url})
            raise MissingLocationHeaderError(url, reason)

        supervisors_text, reason = _read_header(response, SUPERVISOR_LOCATIONS_HEADER)
        if supervisors_text is None:
            logger.warning("Unusable Supervisor-Locations header in redirect", extra={"url": url})
            raise MissingSupervisorLocationsHeaderError(url, reason)

        try:
            supervisors = _SUPERVISOR_LOCATIONS_ADAPTER.validate_json(supervisors_text)
        except ValidationError as e:
            logger.error(
                "Failed to parse Supervisor-Locations header",
                extra={"url": url, "value": supervisors_text},
            )
            raise InvalidSupervisorLocationsError(url, supervisors_text, str(e)) from e

        try:
            location = _parse_absolute_url(location_text, "Location header")
        except InvalidURLError as e:
            logger.error(
                "Failed to parse Location header",
                extra={"url": url, "location": location_text},
            )
            e.details["header"] = LOCATION_HEADER
            raise

        self._cache.update(attempt.module, supervisors)
        self._metrics.record_redirect(attempt.module, len(supervisors))
        attempt.follow(location)

        logger.info(
            "Following redirect",
            extra={
                "module_name": attempt.module,
                "from_url": url,
                "location": str(location),
                "supervisors": supervisors,
            },
        )

    async def execute(
        self,
        module: str,
        operation_path: str,
        body: Any,
        result_type: type[R] | Any = Any,
    ) -> R:
        """Send an operation to a module, following cluster redirects.

        Args:
            module: Module name
            operation_path: Operation suffix, e.g. ``"pstate/$$p/select"``
            body: JSON-representable request body (path list or payload dict)
            result_type: Type the 200 response body is validated into

        Returns:
            The decoded response body

        Raises:
            InvalidURLError: If a URL cannot be built or a redirect target is malformed
            TransportError: If the request cannot be sent or answered
            ResponseDecodeError: If a 200 body does not match ``result_type``
            MissingLocationHeaderError: If a redirect lacks a readable Location
            MissingSupervisorLocationsHeaderError: If a redirect lacks Supervisor-Locations
            InvalidSupervisorLocationsError: If Supervisor-Locations is not a list of strings
            UnexpectedStatusError: For any status other than 200 and 308
            MaxRedirectsExceededError: If the request budget runs out
        """
        attempt = RequestAttempt(
            module=module,
            operation_path=operation_path,
            current_url=self.build_url(module, operation_path),
        )
        payload = _BODY_ADAPTER.dump_json(body)
        success = False

        try:
            while attempt.has_budget(self._max_redirects):
                number = attempt.record_request()
                target = self._resolve_target(attempt)
                logger.debug(
                    "Sending request",
                    extra={"module_name": module, "attempt": number, "url": str(target)},
                )

                try:
                    response = await self._transport.post(target, payload)
                except TransportError:
                    self._metrics.record_transport_failure(module, operation_path)
                    raise

                self._metrics.record_response(module, operation_path, response.status_code)

                if response.status_code == httpx.codes.OK:
                    result = self._decode(response, target, result_type)
                    success = True
                    return result

                if response.status_code == httpx.codes.PERMANENT_REDIRECT:
                    self._follow_redirect(attempt, response, target)
                    continue

                # No retry or supervisor failover on 5xx; the caller decides.
                error_body = self._error_body(response)
                logger.error(
                    "Received unexpected status code",
                    extra={
                        "module_name": module,
                        "status_code": response.status_code,
                        "url": str(target),
                        "body": error_body[:1024],
                    },
                )
                raise UnexpectedStatusError(
                    response.status_code,
                    str(target),
                    error_body,
                    details={"redirects_followed": attempt.redirects_followed},
                )

            logger.error(
                "Maximum redirect attempts exceeded",
                extra={
                    "module_name": module,
                    "operation_path": operation_path,
                    "max_redirects": self._max_redirects,
                },
            )
            raise MaxRedirectsExceededError(self._max_redirects, str(attempt.current_url))
        finally:
            self._metrics.record_operation(module, operation_path, attempt.elapsed(), success)

    @staticmethod
    def _decode(response: httpx.Response, target: httpx.URL, result_type: Any) -> Any:
        try:
            return TypeAdapter(result_type).validate_json(response.content)
        except ValidationError as e:
            logger.error(
                "Failed to decode OK response",
                extra={"url": str(target), "expected_type": _type_name(result_type)},
            )
            raise ResponseDecodeError(str(target), _type_name(result_type), str(e)) from e

    @staticmethod
    def _error_body(response: httpx.Response) -> str:
        try:
            return response.text
        except (UnicodeDecodeError, LookupError):
            return "Could not read error body"
