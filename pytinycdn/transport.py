"""HTTP transports for the TinyCDN query endpoint.

Two interchangeable strategies deliver a request body and return the raw
response bytes:

- :class:`HttpxTransport` keeps a pooled httpx client around and is the default.
- :class:`UrllibTransport` only needs the standard library's stream I/O and is
  meant for minimal environments.

The strategy is chosen once, when the client is constructed
(:func:`create_transport`), never per call.
"""

from __future__ import annotations

import logging
import ssl
from abc import ABC, abstractmethod
import urllib.error
import urllib.request
from collections.abc import Mapping
from typing import Any

import httpx

from .encoding import dumps
from .exceptions import CdnTransportError
from .utils import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

TRANSPORT_KINDS = ("auto", "httpx", "urllib")


def build_request_body(query: str, variables: Mapping[str, Any] | None = None) -> bytes:
    """Build the JSON request body.

    ``variables`` is left out entirely when it is missing or empty.

    Args:
        query: Query text
        variables: Optional query variables

    Returns:
        UTF-8 encoded JSON body
    """
    data: dict[str, Any] = {"query": query}
    if variables:
        data["variables"] = dict(variables)
    return dumps(data).encode("utf-8")


def build_headers(auth_token: str) -> dict[str, str]:
    """Build request headers. The token is sent verbatim, without a prefix."""
    return {
        "Content-Type": "application/json",
        "Authorization": auth_token,
    }


class Transport(ABC):
    """Base class for request delivery strategies."""

    name = "base"

    def __init__(self, verify_ssl: bool = True, timeout: float = DEFAULT_TIMEOUT):
        """Initialize the transport.

        Args:
            verify_ssl: Whether TLS certificates are verified (default: True)
            timeout: Request timeout in seconds
        """
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        if not verify_ssl:
            logger.warning(
                "TLS certificate verification is disabled for the %s transport",
                self.name,
            )

    def send_request(
        self,
        query: str,
        variables: Mapping[str, Any] | None,
        endpoint_url: str,
        auth_token: str,
    ) -> bytes:
        """Send a query to the endpoint and return the raw response body.

        Args:
            query: Query text
            variables: Optional query variables
            endpoint_url: Full endpoint URL
            auth_token: API token placed in the Authorization header

        Returns:
            Raw response bytes

        Raises:
            CdnTransportError: If no response could be obtained
        """
        body = build_request_body(query, variables)
        logger.debug(
            "POST %s via %s (%d bytes)", endpoint_url, self.name, len(body)
        )
        return self._post(endpoint_url, body, build_headers(auth_token))

    @abstractmethod
    def _post(self, url: str, body: bytes, headers: dict[str, str]) -> bytes:
        """Deliver ``body`` to ``url`` and return the raw response body."""

    def close(self) -> None:
        """Release any resources held by the transport."""


class HttpxTransport(Transport):
    """Transport backed by a reusable :class:`httpx.Client`."""

    name = "httpx"

    def __init__(self, verify_ssl: bool = True, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(verify_ssl=verify_ssl, timeout=timeout)
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                verify=self.verify_ssl,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def _post(self, url: str, body: bytes, headers: dict[str, str]) -> bytes:
        try:
            response = self._get_client().post(url, content=body, headers=headers)
        except httpx.RequestError as e:
            raise CdnTransportError(f"Network error: {e}") from e

        if response.is_error:
            logger.debug("Endpoint answered with status %d", response.status_code)
            if not response.content:
                raise CdnTransportError(
                    f"API request failed with status {response.status_code}"
                )
        return response.content

    def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None


class UrllibTransport(Transport):
    """Minimal transport using :mod:`urllib.request` stream I/O."""

    name = "urllib"

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.verify_ssl:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _post(self, url: str, body: bytes, headers: dict[str, str]) -> bytes:
        request = urllib.request.Request(url, data=body, headers=headers, method="POST")
        context = self._ssl_context() if url.startswith("https:") else None
        try:
            with urllib.request.urlopen(
                request, timeout=self.timeout, context=context
            ) as response:
                return response.read()
        except urllib.error.HTTPError as e:
            # Error statuses may still carry a JSON error envelope
            logger.debug("Endpoint answered with status %d", e.code)
            content = e.read()
            if not content:
                raise CdnTransportError(
                    f"API request failed with status {e.code}"
                ) from e
            return content
        except (urllib.error.URLError, OSError) as e:
            raise CdnTransportError(f"Network error: {e}") from e


def create_transport(
    kind: str = "auto",
    verify_ssl: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
) -> Transport:
    """Create a transport strategy.

    Args:
        kind: One of ``"auto"``, ``"httpx"`` or ``"urllib"``. ``"auto"``
            resolves to httpx.
        verify_ssl: Whether TLS certificates are verified
        timeout: Request timeout in seconds

    Returns:
        Transport instance

    Raises:
        ValueError: If the kind is unknown
    """
    if kind in ("auto", "httpx"):
        return HttpxTransport(verify_ssl=verify_ssl, timeout=timeout)
    if kind == "urllib":
        return UrllibTransport(verify_ssl=verify_ssl, timeout=timeout)
    raise ValueError(
        f"Unknown transport '{kind}', expected one of: {', '.join(TRANSPORT_KINDS)}"
    )
