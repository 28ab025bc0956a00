"""Base SmolKV API Client.

Owns the endpoint, the optional secret header and the pooled HTTP session.
Provides URL construction and a single request path that classifies
transport failures before any status-code handling runs.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from .errors import DecodeError, error_for_exception

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-SECRET-KEY"

_NO_BODY = object()

DEFAULT_TIMEOUT = httpx.Timeout(
    connect=10.0,  # 10s connect timeout
    read=30.0,  # 30s read timeout
    write=10.0,  # 10s write timeout
    pool=5.0,  # 5s pool timeout
)


def encode_json(value: Any) -> bytes:
    """Serialize a request body, reporting unserializable values as DecodeError."""
    try:
        return json.dumps(value).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise DecodeError(str(e)) from e


class SmolKVAPIClient:
    """Base API client with endpoint, authentication and HTTP plumbing."""

    def __init__(
        self,
        endpoint: str,
        secret: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    ):
        """Initialize base API client.

        Args:
            endpoint: Base URL of the SmolKV server
            secret: Optional secret sent as X-SECRET-KEY on every request
            transport: Optional httpx transport (used to inject test servers)
            timeout: Transport timeouts applied to every request
        """
        self._endpoint = endpoint.rstrip("/")
        self._secret = secret
        self._transport = transport
        self._timeout = timeout
        self._session: Optional[httpx.AsyncClient] = None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def is_authenticated(self) -> bool:
        return self._secret is not None

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP session."""
        if self._session is None or self._session.is_closed:
            headers: Dict[str, str] = {}
            if self._secret is not None:
                headers[SECRET_HEADER] = self._secret

            self._session = httpx.AsyncClient(
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._session

    def url(self, path: str) -> str:
        """Build an API URL; leading separators in ``path`` are ignored."""
        return f"{self._endpoint}/api/{path.lstrip('/')}"

    async def _send(
        self,
        method: str,
        url: str,
        *,
        stream: bool = False,
        json_body: Any = _NO_BODY,
        **kwargs,
    ) -> httpx.Response:
        """Issue one request and return the raw response.

        Args:
            method: HTTP method
            url: Absolute request URL
            stream: Leave the body unread so it can be consumed incrementally
            json_body: Value to send as a JSON body
            **kwargs: Additional arguments for ``httpx.AsyncClient.build_request``

        Raises:
            DecodeError: If ``json_body`` cannot be serialized or the response
                content encoding cannot be decoded
            TransportError: If the URL is invalid or the request fails below
                the HTTP layer
        """
        if json_body is not _NO_BODY:
            headers = kwargs.pop("headers", None) or {}
            headers["Content-Type"] = "application/json"
            kwargs["headers"] = headers
            kwargs["content"] = encode_json(json_body)

        try:
            request = self.session.build_request(method, url, **kwargs)
            response = await self.session.send(request, stream=stream)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"SmolKV API {method} {url} failed: {e!r}")
            raise error_for_exception(e) from e

        logger.debug(f"SmolKV API {method} {url} -> {response.status_code}")
        return response

    async def _status_is_success(self, method: str, path: str) -> bool:
        """Issue a request whose outcome is only success or failure."""
        response = await self._send(method, self.url(path))
        return response.is_success

    async def close(self) -> None:
        """Close the HTTP session and release pooled connections."""
        if self._session and not self._session.is_closed:
            await self._session.aclose()

    aclose = close

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(endpoint={self._endpoint!r}, authenticated={self.is_authenticated})"
