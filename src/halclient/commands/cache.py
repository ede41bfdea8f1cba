"""Cache commands -- inspect and clear the on-disk response cache.

The CLI keeps GET responses under the XDG cache directory (or
``cache.directory`` when configured) so that repeated queries can be
served without a round trip.
"""

from __future__ import annotations

import typer

from halclient.models import CacheConfig, HalConfiguration
from halclient.output import format_response, success


cache_app = typer.Typer(no_args_is_help=True)

#: TTL applied to the persistent CLI cache when ``cache.ttl_seconds`` is unset.
CLI_CACHE_TTL_SECONDS = 300.0


def cli_cache_config(config: HalConfiguration) -> CacheConfig:
    """Return ``config.cache`` adjusted for the persistent CLI cache.

    The directory defaults to the XDG cache dir and a missing TTL defaults
    to :data:`CLI_CACHE_TTL_SECONDS`, since entries outlive the process.
    """
    from halclient.config import get_cache_dir

    update: dict[str, object] = {}
    if not config.cache.directory:
        update["directory"] = str(get_cache_dir() / "responses")
    if config.cache.ttl_seconds is None:
        update["ttl_seconds"] = CLI_CACHE_TTL_SECONDS
    if not update:
        return config.cache
    return config.cache.model_copy(update=update)


def _open_cache(ctx: typer.Context):
    from halclient.cache import ResponseCache
    from halclient.config import resolve_config

    base_url = ctx.obj.get("base_url") if ctx.obj else None
    config = resolve_config(cli_base_url=base_url)
    return ResponseCache(cli_cache_config(config))


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show response cache statistics.

    Example::

        halclient cache stats
        halclient --json cache stats
    """
    cache = _open_cache(ctx)
    try:
        stats = cache.stats()
    finally:
        cache.close()
    format_response(stats)


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every cached response.

    Example::

        halclient cache clear
    """
    cache = _open_cache(ctx)
    try:
        count = len(cache)
        cache.clear()
    finally:
        cache.close()
    success(f"Cleared {count} cached response(s).")
