"""Query command -- run a custom query and print the hydrated result.

Example::

    halclient --base-url http://localhost:8080/api query users /search/findByName \\
        --param name=alice --page 0 --size 20 --sort name,DESC
    halclient query users /1 --method PATCH --body '{"name": "bob"}'
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import typer

from halclient.client.hal_client import HalClient
from halclient.commands.cache import cli_cache_config
from halclient.exceptions import HalClientError
from halclient.hal.resources import CollectionResource
from halclient.models import HalConfiguration
from halclient.output import error, format_response, info, warning


def _build_client(config: HalConfiguration) -> HalClient:
    """Create the client used by :func:`query_command`."""
    from halclient.cache import ResponseCache

    return HalClient(config, cache=ResponseCache(cli_cache_config(config)))


def _parse_params(pairs: Optional[list[str]]) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            error(f"Invalid --param {pair!r}, expected key=value")
            raise typer.Exit(code=2)
        if key in params:
            existing = params[key]
            params[key] = (existing if isinstance(existing, list) else [existing]) + [value]
        else:
            params[key] = value
    return params


def _parse_body(body: Optional[str]) -> Any:
    if body is None:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        error(f"--body is not valid JSON: {exc}")
        raise typer.Exit(code=2) from None


def _render(result: Any) -> Any:
    to_dict = getattr(result, "to_dict", None)
    return to_dict() if callable(to_dict) else result


async def _run(config: HalConfiguration, *args: Any) -> Any:
    client = _build_client(config)
    try:
        return await client.custom_query(*args)
    finally:
        await client.aclose()


def query_command(
    ctx: typer.Context,
    resource: str = typer.Argument(help="Resource name, e.g. users."),
    query: str = typer.Argument(help="Query path under the resource, e.g. /search/findByName."),
    method: str = typer.Option("GET", "--method", "-X", help="GET, POST, PUT or PATCH."),
    body: Optional[str] = typer.Option(None, "--body", "-d", help="JSON request body."),
    page: Optional[int] = typer.Option(None, "--page", help="Page number (0-based)."),
    size: Optional[int] = typer.Option(None, "--size", help="Page size."),
    sort: Optional[list[str]] = typer.Option(None, "--sort", help="field,ORDER (repeatable)."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Extra query parameter key=value (repeatable)."
    ),
) -> None:
    """Run a custom query against RESOURCE and print the result.

    HAL responses are hydrated and printed back as HAL documents;
    anything else is printed as received.
    """
    from halclient.config import resolve_config

    obj = ctx.obj or {}
    options = {
        "page": page,
        "size": size,
        "sort": sort or [],
        "params": _parse_params(param),
    }
    payload = _parse_body(body)

    try:
        config = resolve_config(
            cli_base_url=obj.get("base_url"),
            cli_verbose=True if obj.get("verbose") else None,
        )
        result = asyncio.run(_run(config, resource, method, query, payload, options))
    except HalClientError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if result is None:
        info("Empty response.")
        return
    if isinstance(result, CollectionResource) and result.failures:
        warning(f"{len(result.failures)} element(s) could not be hydrated and are shown as received.")
    format_response(_render(result))
