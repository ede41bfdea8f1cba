"""URL building and query-parameter serialisation.

:func:`generate_resource_url` joins the configured API root, a resource
name and a query path. :func:`convert_to_params` flattens
:class:`~halclient.models.PagedGetOption` into the parameter mapping
handed to the transport, using the Spring Data conventions HAL servers
expect (``page``, ``size``, repeated ``sort=field,ORDER``).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError

from halclient.exceptions import PreconditionError
from halclient.models import PagedGetOption

OptionsLike = Union[PagedGetOption, Mapping[str, Any], None]


def generate_resource_url(base_url: str, resource_name: str, query: Optional[str] = None) -> str:
    """Build an absolute resource URL.

    Trailing slashes on *base_url* and surrounding slashes on
    *resource_name* are normalised so exactly one separator appears
    between them. *query* is appended verbatim when it starts with ``/``,
    ``?`` or ``#``; otherwise a ``/`` is inserted first.

    Example::

        >>> generate_resource_url("http://host/api/", "users", "/search/findByName")
        'http://host/api/users/search/findByName'
    """
    url = f"{base_url.rstrip('/')}/{resource_name.strip('/')}"
    if query:
        if not query.startswith(("/", "?", "#")):
            url += "/"
        url += query
    return url


def parse_options(options: OptionsLike) -> PagedGetOption:
    """Validate *options* into a :class:`PagedGetOption`.

    Raises:
        PreconditionError: If a mapping does not validate.
    """
    if options is None:
        return PagedGetOption()
    if isinstance(options, PagedGetOption):
        return options
    try:
        return PagedGetOption.model_validate(dict(options))
    except ValidationError as exc:
        raise PreconditionError(f"Invalid query options: {exc}") from exc


def convert_to_params(options: OptionsLike) -> dict[str, Any]:
    """Serialise paging, sort and extra options into query parameters.

    Extra ``params`` come first so that explicit ``page``/``size``/``sort``
    options win on conflict. ``None`` values are dropped and booleans are
    rendered as ``true``/``false``. ``include`` is not a query parameter
    and is ignored here.

    Example::

        >>> convert_to_params({"page": 1, "size": 10, "sort": {"name": "DESC"}})
        {'page': 1, 'size': 10, 'sort': ['name,DESC']}
    """
    opts = parse_options(options)
    params: dict[str, Any] = {}

    for key, value in opts.params.items():
        if value is None:
            continue
        params[key] = _param_value(value)

    if opts.page is not None:
        params["page"] = opts.page
    if opts.size is not None:
        params["size"] = opts.size
    if opts.sort:
        params["sort"] = [f"{s.field},{s.order.value}" for s in opts.sort]

    return params


def strip_query(url: str) -> str:
    """Return *url* without its query string and fragment."""
    for sep in ("?", "#"):
        url = url.split(sep, 1)[0]
    return url


def _param_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [_param_value(v) for v in value if v is not None]
    return value
