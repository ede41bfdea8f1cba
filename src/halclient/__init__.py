"""halclient -- typed, cached access to HAL+JSON APIs.

This package converts raw ``application/hal+json`` responses into typed,
navigable resource graphs and dispatches requests against a HAL API while
coalescing in-flight and caching completed GET responses.

Typical usage::

    from halclient import HalClient, HalConfiguration

    async with HalClient(HalConfiguration(base_api_url="http://localhost:8080/api")) as hal:
        page = await hal.custom_query("users", "GET", "/search/findByActive",
                                      options={"page": 0, "size": 20})
        print(page.total_elements, [user.name for user in page])

Modules:
    hal: Classification, hydration and the resource types.
    cache: Response cache with in-flight request coalescing.
    client: Transport, executor and the :class:`HalClient` facade.
    dispatcher: The ``custom_query`` operation.
    config: XDG-aware configuration and process-wide setup.
    models: Pydantic models shared across the entire package.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes used by the CLI.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

from halclient.client import HalClient  # noqa: E402
from halclient.config import configure  # noqa: E402
from halclient.models import HalConfiguration, PagedGetOption  # noqa: E402

__all__ = ["HalClient", "HalConfiguration", "PagedGetOption", "configure", "__version__"]
