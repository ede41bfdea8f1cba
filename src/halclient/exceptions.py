"""Exception hierarchy for halclient.

All exceptions inherit from :class:`HalClientError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`halclient.exit_codes`.
The CLI entry point in :func:`halclient.app.main` catches ``HalClientError``
and exits with the matching code; library callers catch the specific
subclass to learn which stage failed.

Subclass hierarchy::

    HalClientError (exit 1)
    +-- ConfigError                 (exit 1)
    +-- PreconditionError           (exit 2)
    |   +-- MissingResourceNameError
    |   +-- MissingQueryError
    |   +-- UnsupportedMethodError
    |   +-- LinkNotFoundError
    +-- RequestFailedError          (exit 3/4/5/6 depending on status)
    +-- HydrationError              (exit 7)
"""

from __future__ import annotations

from typing import Any, Optional

from halclient.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HYDRATION_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_REQUEST_FAILED,
)


class HalClientError(Exception):
    """Base exception for all halclient errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(HalClientError):
    """Raised for configuration problems (invalid config file, missing base URL, re-registration)."""

    exit_code = EXIT_GENERIC_FAILURE


class PreconditionError(HalClientError):
    """Raised before any network call when a request is malformed."""

    exit_code = EXIT_INVALID_USAGE


class MissingResourceNameError(PreconditionError):
    """Raised when a query is issued without a resource name."""

    def __init__(self, message: str = "resource name should be defined"):
        super().__init__(message)


class MissingQueryError(PreconditionError):
    """Raised when a custom query is issued without a query path."""

    def __init__(self, message: str = "query should be defined"):
        super().__init__(message)


class UnsupportedMethodError(PreconditionError):
    """Raised for HTTP methods other than GET, POST, PUT and PATCH."""

    def __init__(self, method: Any):
        self.method = method
        super().__init__(f"allowed only GET/POST/PUT/PATCH http methods, got {method!r}")


class LinkNotFoundError(PreconditionError):
    """Raised when following a link relation the resource does not expose."""

    def __init__(self, rel: str):
        self.rel = rel
        super().__init__(f"resource has no '{rel}' link")


class RequestFailedError(HalClientError):
    """Raised when the transport fails or the API answers with a non-2xx status.

    The exit code is derived from ``status``: 401/403 map to an auth
    failure, 404 to not-found, no status at all (timeout, connection
    refused) to a connection error, anything else to a failed request.

    Args:
        method: HTTP method of the failed request.
        url: Absolute request URL.
        status: HTTP status code, or ``None`` for network-level failures.
        cause: The underlying exception, if any.
        detail: Optional message extracted from the response body.
    """

    def __init__(
        self,
        *,
        method: str,
        url: str,
        status: Optional[int] = None,
        cause: Optional[BaseException] = None,
        detail: str = "",
    ):
        self.method = method
        self.url = url
        self.status = status
        self.cause = cause

        if status is not None:
            message = f"{method} {url} failed with HTTP {status}"
        elif cause is not None and str(cause):
            message = f"{method} {url} failed: {cause}"
        else:
            message = f"{method} {url} failed"
        if detail:
            message = f"{message}: {detail}"

        super().__init__(message, exit_code=_exit_code_for_status(status))


class HydrationError(HalClientError):
    """Raised when a payload does not have the HAL shape it was classified as.

    Args:
        message: What was malformed.
        payload: The offending (unmodified) payload fragment.
    """

    exit_code = EXIT_HYDRATION_ERROR

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


def _exit_code_for_status(status: Optional[int]) -> int:
    if status is None:
        return EXIT_CONNECTION_ERROR
    if status in (401, 403):
        return EXIT_AUTH_FAILURE
    if status == 404:
        return EXIT_NOT_FOUND
    return EXIT_REQUEST_FAILED
