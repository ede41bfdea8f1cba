"""Transport capability used by :class:`~halclient.client.executor.HttpExecutor`.

A transport performs one HTTP exchange and returns the decoded body. Any
object with the four coroutine methods of :class:`Transport` can be
injected; :class:`HttpxTransport` is the default, backed by
:class:`httpx.AsyncClient`.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

import httpx

from halclient.client.response import error_detail, extract_response_data
from halclient.exceptions import RequestFailedError
from halclient.models import HalConfiguration
from halclient.output import debug

DEFAULT_HEADERS = {"Accept": "application/hal+json, application/json"}


class Transport(Protocol):
    async def get(self, url: str, *, params: Optional[dict[str, Any]] = None) -> Any: ...

    async def post(
        self, url: str, body: Any = None, *, params: Optional[dict[str, Any]] = None
    ) -> Any: ...

    async def put(
        self, url: str, body: Any = None, *, params: Optional[dict[str, Any]] = None
    ) -> Any: ...

    async def patch(
        self, url: str, body: Any = None, *, params: Optional[dict[str, Any]] = None
    ) -> Any: ...


class HttpxTransport:
    """Asynchronous HTTP transport for HAL APIs.

    Wraps :class:`httpx.AsyncClient`, sending JSON bodies and decoding
    responses with :func:`~halclient.client.response.extract_response_data`.
    Non-2xx answers and network failures raise
    :class:`~halclient.exceptions.RequestFailedError`. The underlying
    client is created on first use or when entering the async context
    manager.

    Args:
        config: Supplies ``headers`` and the ``request`` settings (timeout,
            SSL verification, connection retries).
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests. Defaults to :class:`httpx.AsyncHTTPTransport` with
            ``retries=max_retries``.

    Example::

        async with HttpxTransport(config) as transport:
            payload = await transport.get("http://localhost:8080/api/users")
    """

    def __init__(
        self,
        config: Optional[HalConfiguration] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or HalConfiguration()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> HttpxTransport:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def get(self, url: str, *, params: Optional[dict[str, Any]] = None) -> Any:
        return await self.request("GET", url, params=params)

    async def post(self, url: str, body: Any = None, *, params: Optional[dict[str, Any]] = None) -> Any:
        return await self.request("POST", url, params=params, body=body)

    async def put(self, url: str, body: Any = None, *, params: Optional[dict[str, Any]] = None) -> Any:
        return await self.request("PUT", url, params=params, body=body)

    async def patch(self, url: str, body: Any = None, *, params: Optional[dict[str, Any]] = None) -> Any:
        return await self.request("PATCH", url, params=params, body=body)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """Send one request and return the decoded body.

        Raises:
            RequestFailedError: On a non-2xx status, a timeout or any
                other network-level error.
        """
        client = self._ensure_client()
        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = params
        if body is not None:
            kwargs["json"] = body

        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise RequestFailedError(method=method, url=url, cause=exc, detail="request timed out") from exc
        except httpx.TransportError as exc:
            raise RequestFailedError(method=method, url=url, cause=exc) from exc

        debug(f"{method} {response.url} -> HTTP {response.status_code}")
        if not response.is_success:
            raise RequestFailedError(
                method=method,
                url=url,
                status=response.status_code,
                detail=error_detail(response),
            )
        return extract_response_data(response)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            request = self._config.request
            transport = self._transport or httpx.AsyncHTTPTransport(
                retries=request.max_retries, verify=request.verify_ssl
            )
            self._client = httpx.AsyncClient(
                transport=transport,
                headers={**DEFAULT_HEADERS, **self._config.headers},
                timeout=request.timeout,
                follow_redirects=True,
            )
        return self._client
