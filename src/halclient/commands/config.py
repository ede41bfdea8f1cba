"""Config commands -- view and modify the user configuration.

Provides the ``halclient config`` sub-command group for reading and
updating the user's config file (:class:`~halclient.models.HalConfiguration`).
Settings are persisted in the halclient config directory.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from halclient.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration.

    Prints the config directory path followed by the configuration after
    applying project config, environment variables and the global
    ``--base-url`` flag.

    Example::

        halclient config show
        halclient --json config show
    """
    from halclient.config import get_config_dir, resolve_config

    base_url = ctx.obj.get("base_url") if ctx.obj else None
    config = resolve_config(cli_base_url=base_url)
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g. cache.ttl_seconds)."),
    value: str = typer.Argument(help="Value to set; 'null' clears optional keys."),
) -> None:
    """Set a configuration value in the user config file.

    Uses dot notation for nested keys. The value is coerced to the type of
    the existing field and the result is validated against
    :class:`~halclient.models.HalConfiguration` before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        halclient config set base_api_url http://localhost:8080/api
        halclient config set verbose_logs true
        halclient config set cache.ttl_seconds 600
    """
    from halclient.config import load_config, save_config
    from halclient.models import HalConfiguration

    config = load_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = target[final_key]
    coerced: object
    if value.lower() in ("null", "none"):
        coerced = None
    elif isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, (int, float)):
        try:
            coerced = type(current)(value)
        except ValueError:
            error(f"Expected {type(current).__name__} for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    else:
        coerced = value

    target[final_key] = coerced

    try:
        new_config = HalConfiguration.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_config(new_config)
    success(f"Set {key} = {coerced}")
