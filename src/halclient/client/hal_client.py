"""High-level client wiring configuration, transport, cache and dispatcher.

Example::

    from halclient import HalClient, HalConfiguration

    async with HalClient(HalConfiguration(base_api_url="http://localhost:8080/api")) as hal:
        result = await hal.custom_query("users", "GET", "/search/findByActive",
                                        options={"params": {"active": True}})
        for user in result.get_embedded("users") or []:
            address = await hal.follow(user, "address")
"""

from __future__ import annotations

from typing import Any, Optional, Union

import httpx

from halclient.cache import ResponseCache
from halclient.client.executor import HttpExecutor
from halclient.client.transport import HttpxTransport, Transport
from halclient.config import get_configuration
from halclient.dispatcher import QueryDispatcher
from halclient.exceptions import LinkNotFoundError
from halclient.hal.registry import ResourceTypeRegistry
from halclient.hal.resources import HalObject
from halclient.models import HalConfiguration, HttpMethod
from halclient.url import OptionsLike


class HalClient:
    """Facade over :class:`QueryDispatcher` and :class:`HttpExecutor`.

    Components that are not injected are created from *config* and are
    closed by :meth:`aclose`; injected ones are left to their owner.

    Args:
        config: Configuration; the process-wide one from
            :func:`~halclient.config.get_configuration` when omitted.
        transport: Transport to use instead of an :class:`HttpxTransport`.
        cache: Response cache to use instead of one built from ``config.cache``.
        registry: Resource type registry for hydration.
    """

    def __init__(
        self,
        config: Optional[HalConfiguration] = None,
        *,
        transport: Optional[Transport] = None,
        cache: Optional[ResponseCache] = None,
        registry: Optional[ResourceTypeRegistry] = None,
    ) -> None:
        self._config = config or get_configuration()
        self._owned_transport = HttpxTransport(self._config) if transport is None else None
        self._transport: Transport = transport or self._owned_transport  # type: ignore[assignment]
        self._owns_cache = cache is None
        self._cache = cache if cache is not None else ResponseCache(self._config.cache)
        self._executor = HttpExecutor(
            self._transport,
            self._cache,
            registry=registry,
            timeout=self._config.request.timeout,
        )
        self._dispatcher = QueryDispatcher(self._config, self._executor)

    async def __aenter__(self) -> HalClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    @property
    def config(self) -> HalConfiguration:
        return self._config

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    async def custom_query(
        self,
        resource_name: str,
        method: Union[HttpMethod, str],
        query: str,
        body: Any = None,
        options: OptionsLike = None,
    ) -> Any:
        """See :meth:`QueryDispatcher.custom_query`."""
        return await self._dispatcher.custom_query(resource_name, method, query, body, options)

    async def execute(
        self,
        method: Union[HttpMethod, str],
        url: str,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """See :meth:`HttpExecutor.execute`."""
        return await self._executor.execute(method, url, params, body)

    async def follow(
        self,
        resource: HalObject,
        rel: str,
        *,
        params: Optional[dict[str, Any]] = None,
        **template_values: Any,
    ) -> Any:
        """GET the first link of *resource* for *rel*.

        Templated links are expanded with *template_values*; relative
        hrefs are resolved against ``base_api_url``. The response goes
        through the cache and the hydrator like any other GET.

        Raises:
            LinkNotFoundError: If *resource* has no *rel* link.
        """
        link = resource.get_link(rel)
        if link is None:
            raise LinkNotFoundError(rel)
        href = link.expand(**template_values) if link.templated else link.href
        if self._config.base_api_url:
            href = str(httpx.URL(self._config.base_api_url.rstrip("/") + "/").join(href))
        return await self._executor.execute(HttpMethod.GET, href, params)

    async def aclose(self) -> None:
        """Close the transport and cache this client created."""
        if self._owned_transport is not None:
            await self._owned_transport.aclose()
        if self._owns_cache:
            self._cache.close()
