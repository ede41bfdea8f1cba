"""The ``custom_query`` operation.

:class:`QueryDispatcher` validates a query against a resource, builds the
request URL and parameters, serialises the body and hands the request to
:class:`~halclient.client.executor.HttpExecutor`. All argument checks run
before any network call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Union

from halclient.exceptions import ConfigError, MissingQueryError, MissingResourceNameError
from halclient.hal.body import resolve_values
from halclient.models import HalConfiguration, HttpMethod
from halclient.output import pretty_info
from halclient.url import OptionsLike, convert_to_params, generate_resource_url, parse_options

if TYPE_CHECKING:
    from halclient.client.executor import HttpExecutor


class QueryDispatcher:
    """Dispatch custom queries against named resources.

    Args:
        config: Supplies ``base_api_url`` and ``verbose_logs``.
        executor: Executes the built request.
    """

    def __init__(self, config: HalConfiguration, executor: HttpExecutor) -> None:
        self._config = config
        self._executor = executor

    async def custom_query(
        self,
        resource_name: str,
        method: Union[HttpMethod, str],
        query: str,
        body: Any = None,
        options: OptionsLike = None,
    ) -> Any:
        """Run *query* under *resource_name* with *method*.

        Args:
            resource_name: Resource collection name, e.g. ``"users"``.
            method: ``GET``, ``POST``, ``PUT`` or ``PATCH``.
            query: Path under the resource, e.g. ``"/search/findByName"``.
            body: Request body for POST/PUT/PATCH; see
                :func:`~halclient.hal.body.resolve_values`.
            options: :class:`~halclient.models.PagedGetOption` or an
                equivalent mapping.

        Returns:
            A hydrated resource, collection or paged collection, or the raw
            payload when the response is not HAL.

        Raises:
            MissingResourceNameError: *resource_name* is empty.
            MissingQueryError: *query* is empty.
            UnsupportedMethodError: *method* is not GET/POST/PUT/PATCH.
            ConfigError: No ``base_api_url`` is configured.
            RequestFailedError: The request failed.
            HydrationError: The response is malformed HAL.
        """
        if not resource_name or not resource_name.strip():
            raise MissingResourceNameError()
        if not query:
            raise MissingQueryError()
        verb = HttpMethod.parse(method)
        if not self._config.base_api_url:
            raise ConfigError("base_api_url is not configured")

        opts = parse_options(options)
        url = generate_resource_url(self._config.base_api_url, resource_name, query)
        params = convert_to_params(opts)
        payload = None if verb is HttpMethod.GET else resolve_values(body, opts.include)

        if self._config.verbose_logs:
            pretty_info(
                f"CUSTOM_QUERY_{verb.value} REQUEST",
                {"url": url, "params": params, "body": payload},
            )

        result = await self._executor.execute(verb, url, params, payload)

        if self._config.verbose_logs:
            pretty_info(
                f"CUSTOM_QUERY_{verb.value} RESPONSE",
                {"url": url, "params": params, "body": _loggable(result)},
            )
        return result


def _loggable(result: Any) -> Any:
    to_dict = getattr(result, "to_dict", None)
    return to_dict() if callable(to_dict) else result
