"""Built-in CLI sub-commands for halclient.

This package groups all Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~halclient.commands.query` -- run a custom query against a resource.
* :mod:`~halclient.commands.config` -- view and modify the user config.
* :mod:`~halclient.commands.cache` -- inspect and clear the response cache.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``config`` and ``cache``) or a plain callback
function registered directly on the root app (``query``).
"""
