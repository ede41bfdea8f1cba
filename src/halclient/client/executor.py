"""HTTP execution with caching and hydration.

:class:`HttpExecutor` is the only component that talks to a
:class:`~halclient.client.transport.Transport`. GET requests are routed
through :meth:`~halclient.cache.ResponseCache.get_or_compute` so that
concurrent identical requests share one transport call; writes bypass
the cache and invalidate every cached entry at or below their URL.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Union

from halclient.cache import ResponseCache, build_cache_key
from halclient.client.transport import Transport
from halclient.exceptions import HalClientError, RequestFailedError
from halclient.hal.hydrator import hydrate
from halclient.hal.registry import ResourceTypeRegistry
from halclient.models import HttpMethod
from halclient.output import debug
from halclient.url import strip_query


class HttpExecutor:
    """Perform GET/POST/PUT/PATCH requests and hydrate the responses.

    Args:
        transport: Performs the actual HTTP exchange.
        cache: Response cache for GET requests. A fresh default cache is
            created when omitted.
        registry: Resource type registry handed to the hydrator; the
            process-wide registry by default.
        timeout: Overall deadline per transport call in seconds, or
            ``None`` for no deadline.
    """

    def __init__(
        self,
        transport: Transport,
        cache: Optional[ResponseCache] = None,
        *,
        registry: Optional[ResourceTypeRegistry] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._transport = transport
        self._cache = cache if cache is not None else ResponseCache()
        self._registry = registry
        self._timeout = timeout

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    async def execute(
        self,
        method: Union[HttpMethod, str],
        url: str,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """Execute a request and return the hydrated result.

        Args:
            method: ``GET``, ``POST``, ``PUT`` or ``PATCH`` (any case).
            url: Absolute request URL.
            params: Query parameters.
            body: JSON-ready request body (ignored for GET).

        Returns:
            A typed resource or collection, or the raw payload when it is
            not HAL.

        Raises:
            UnsupportedMethodError: For any other method, before any I/O.
            RequestFailedError: When the transport fails or times out.
            HydrationError: When a HAL payload is malformed.
        """
        verb = HttpMethod.parse(method)
        params = dict(params or {})

        if verb is HttpMethod.GET:
            key = build_cache_key(verb.value, url, params)
            return await self._cache.get_or_compute(
                key,
                lambda: self._send(verb, url, params, None),
                url=url,
                transform=self._hydrate,
            )

        raw = await self._send(verb, url, params, body)
        self._cache.invalidate_prefix(strip_query(url))
        return self._hydrate(raw)

    def _hydrate(self, payload: Any) -> Any:
        return hydrate(payload, registry=self._registry)

    async def _send(self, verb: HttpMethod, url: str, params: dict[str, Any], body: Any) -> Any:
        debug(f"{verb.value} {url} params={params}")
        try:
            if verb is HttpMethod.GET:
                call = self._transport.get(url, params=params)
            else:
                call = getattr(self._transport, verb.value.lower())(url, body, params=params)
            if self._timeout is not None:
                return await asyncio.wait_for(call, self._timeout)
            return await call
        except HalClientError:
            raise
        except asyncio.TimeoutError as exc:
            raise RequestFailedError(
                method=verb.value, url=url, cause=exc, detail=f"timed out after {self._timeout}s"
            ) from exc
        except Exception as exc:
            raise RequestFailedError(method=verb.value, url=url, cause=exc) from exc
