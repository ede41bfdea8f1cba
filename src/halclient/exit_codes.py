"""Numeric process exit codes used by the ``halclient`` command line.

Each constant maps to a failure stage and is referenced by the
corresponding :class:`~halclient.exceptions.HalClientError` subclass, so
shell wrappers can tell a bad invocation from a failed request or an
unparseable response without reading stderr.

Example::

    $ halclient query users /search/findByName --param name=bob
    $ echo $?
    5   # EXIT_REQUEST_FAILED -- the API answered with a non-2xx status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""A precondition failed (missing resource name, missing query, bad method)."""

EXIT_AUTH_FAILURE = 3
"""The API rejected the request with HTTP 401 or 403."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_REQUEST_FAILED = 5
"""The API returned another non-2xx status code."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_HYDRATION_ERROR = 7
"""The response was not a well-formed HAL document."""
