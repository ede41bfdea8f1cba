"""Request body serialisation.

HAL servers (Spring Data REST in particular) expect associations in a
write body as URIs rather than nested objects. :func:`resolve_values`
turns whatever the caller passes as a body into plain JSON data:

* a :class:`~halclient.hal.resources.Resource` at the top level
  contributes its domain fields,
* a nested ``Resource`` becomes its ``self`` href,
* a nested collection becomes a list,
* a Pydantic model is dumped in JSON mode,
* ``None`` values are dropped unless ``Include.NULL_VALUES`` is given.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel

from halclient.hal.resources import CollectionResource, HydrationFailure, Resource
from halclient.models import Include


def resolve_values(body: Any, include: Optional[Include] = None) -> Any:
    """Convert *body* into JSON-ready data for a write request.

    Args:
        body: Mapping, list, :class:`Resource`, Pydantic model or scalar.
        include: ``Include.NULL_VALUES`` keeps ``None`` values.

    Example::

        >>> resolve_values({"name": "x", "owner": user, "note": None})
        {'name': 'x', 'owner': 'http://host/api/users/1'}
    """
    if body is None:
        return None
    keep_nulls = include == Include.NULL_VALUES
    if isinstance(body, Resource):
        return _resolve_mapping(body.fields, keep_nulls)
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json")
    return _resolve(body, keep_nulls)


def _resolve(value: Any, keep_nulls: bool) -> Any:
    if isinstance(value, Resource):
        href = value.self_href
        return href if href is not None else _resolve_mapping(value.fields, keep_nulls)
    if isinstance(value, CollectionResource):
        return [_resolve(item, keep_nulls) for item in value if not isinstance(item, HydrationFailure)]
    if isinstance(value, BaseModel):
        return _resolve(value.model_dump(mode="json"), keep_nulls)
    if isinstance(value, Mapping):
        return _resolve_mapping(value, keep_nulls)
    if isinstance(value, (list, tuple)):
        return [_resolve(item, keep_nulls) for item in value if keep_nulls or item is not None]
    return value


def _resolve_mapping(mapping: Mapping[str, Any], keep_nulls: bool) -> dict[str, Any]:
    return {
        key: _resolve(value, keep_nulls)
        for key, value in mapping.items()
        if keep_nulls or value is not None
    }
