"""HTTP client layer for halclient.

Classes:
    :class:`Transport` -- protocol of the four coroutine methods used to
    talk to a HAL API.
    :class:`HttpxTransport` -- default transport backed by :class:`httpx.AsyncClient`.
    :class:`HttpExecutor` -- runs requests through the response cache and
    the hydrator.
    :class:`HalClient` -- facade wiring configuration, transport, cache,
    executor and dispatcher.

Example::

    from halclient.client import HalClient

    async with HalClient(config) as hal:
        user = await hal.execute("GET", "http://localhost:8080/api/users/1")
"""

from halclient.client.executor import HttpExecutor
from halclient.client.hal_client import HalClient
from halclient.client.transport import HttpxTransport, Transport

__all__ = ["HalClient", "HttpExecutor", "HttpxTransport", "Transport"]
