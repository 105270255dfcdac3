"""HTTP transport wrapper around httpx."""

from __future__ import annotations

import httpx

from rama_client.config import TransportConfig
from rama_client.domain.exceptions import InvalidURLError, TransportError
from rama_client.infrastructure.logging import get_logger

logger = get_logger(__name__)

CONTENT_TYPE = "text/plain"


def _is_unparsable_location(error: httpx.TransportError) -> bool:
    # httpx prepares the follow-up request of every 3xx, even when not following it,
    # and fails with RemoteProtocolError if the Location does not parse
    return isinstance(error, httpx.RemoteProtocolError) and (
        isinstance(error.__context__, httpx.InvalidURL)
        or str(error).startswith("Invalid URL in location header")
    )


class HTTPTransport:
    """Sends JSON request bodies to the cluster.

    The transport owns the ``httpx.AsyncClient`` it creates and closes it on
    :meth:`close`. A client passed in by the caller is used as-is and left open.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Timeouts for a client created by the transport
            http_client: Pre-built client to use instead, e.g. one with a mock transport
        """
        self._config = config or TransportConfig()
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def is_open(self) -> bool:
        """Check if an underlying client exists and is not closed."""
        return self._client is not None and not self._client.is_closed

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or (self._owns_client and self._client.is_closed):
            self._client = httpx.AsyncClient(timeout=self._config.to_httpx_timeout())
            self._owns_client = True
            logger.debug(
                "Created HTTP client",
                extra={
                    "request_timeout": self._config.request_timeout,
                    "connect_timeout": self._config.connect_timeout,
                },
            )
        return self._client

    async def post(self, url: httpx.URL, body: bytes) -> httpx.Response:
        """POST a JSON payload as ``text/plain``.

        Args:
            url: Fully resolved target URL
            body: Serialized JSON body

        Returns:
            The complete response; redirects are not followed here

        Raises:
            TransportError: If connecting, sending or receiving fails
            InvalidURLError: If a redirect carries a Location httpx cannot parse
        """
        client = self._get_client()
        try:
            return await client.post(
                url,
                content=body,
                headers={"Content-Type": CONTENT_TYPE},
                follow_redirects=False,
            )
        except httpx.TransportError as e:
            if _is_unparsable_location(e):
                logger.error(
                    "Redirect Location header is not a valid URL",
                    extra={"url": str(url), "error": str(e)},
                )
                raise InvalidURLError(
                    str(url),
                    f"Location header in redirect is not a valid URL: {e}",
                    details={"header": "Location"},
                ) from e
            logger.error(
                "HTTP request failed",
                extra={"url": str(url), "error_type": type(e).__name__, "error": str(e)},
            )
            raise TransportError(str(url), str(e) or type(e).__name__) from e

    async def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed HTTP client")
