"""Turn classified HAL payloads into typed resource graphs.

:func:`hydrate` dispatches on the :class:`~halclient.hal.classifier.ResourceShape`
of a payload and builds new objects from the classes held by the
resource type registry. The source payload is never mutated: domain
fields are deep-copied into the new instances.

Failure policy:

* A malformed top-level resource, collection or ``page`` block raises
  :class:`~halclient.exceptions.HydrationError`.
* A malformed element inside a collection is fail-fast at the item
  level: it is kept in place as a
  :class:`~halclient.hal.resources.HydrationFailure` and the remaining
  elements are still hydrated.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError

from halclient.exceptions import HydrationError
from halclient.hal.classifier import ResourceShape, classify
from halclient.hal.registry import ResourceTypeRegistry, ResourceTypes, get_registry
from halclient.hal.resources import (
    EMBEDDED,
    LINKS,
    PAGE,
    CollectionResource,
    HalObject,
    HydrationFailure,
    Resource,
)
from halclient.models import PageInfo
from halclient.output import debug

Hydrated = Union[Resource, CollectionResource, Any]


def hydrate(
    payload: Any,
    shape: Union[ResourceShape, str, None] = None,
    registry: Optional[ResourceTypeRegistry] = None,
) -> Hydrated:
    """Hydrate *payload* into a typed instance.

    Args:
        payload: Decoded JSON.
        shape: Shape to hydrate as; classified with
            :func:`~halclient.hal.classifier.classify` when omitted.
        registry: Registry supplying concrete classes; the process-wide
            one by default.

    Returns:
        A :class:`Resource`, :class:`EmbeddedResource`,
        :class:`CollectionResource` or :class:`PagedCollectionResource`;
        opaque payloads are returned unmodified.

    Raises:
        HydrationError: If the payload does not have the given shape.
    """
    shape = classify(payload) if shape is None else ResourceShape(shape)
    if shape is ResourceShape.OPAQUE:
        return payload

    types = (registry or get_registry()).types
    if shape is ResourceShape.PAGED_COLLECTION:
        return _hydrate_collection(payload, types, paged=True)
    if shape is ResourceShape.COLLECTION:
        return _hydrate_collection(payload, types, paged=False)
    if shape is ResourceShape.EMBEDDED:
        return _hydrate_resource(payload, types.embedded, types)
    return _hydrate_resource(payload, types.resource, types)


def _hydrate_resource(
    payload: Any,
    cls: type[Resource],
    types: ResourceTypes,
    parent: Optional[HalObject] = None,
    relation: Optional[str] = None,
) -> Resource:
    if not isinstance(payload, Mapping):
        raise HydrationError(f"expected a HAL object, got {type(payload).__name__}", payload)

    fields = {
        key: copy.deepcopy(value)
        for key, value in payload.items()
        if key not in (LINKS, EMBEDDED)
    }
    resource = cls(fields, payload.get(LINKS))
    if parent is not None:
        resource._attach(parent, relation)  # type: ignore[attr-defined]

    embedded = payload.get(EMBEDDED)
    if embedded is None:
        return resource
    if not isinstance(embedded, Mapping):
        raise HydrationError(f"'{EMBEDDED}' must be an object", embedded)

    for rel, value in embedded.items():
        if value is None:
            resource._set_embedded(rel, None)
        elif isinstance(value, list):
            resource._set_embedded(
                rel, [_hydrate_resource(item, types.embedded, types, resource, rel) for item in value]
            )
        else:
            resource._set_embedded(rel, _hydrate_resource(value, types.embedded, types, resource, rel))
    return resource


def _hydrate_collection(payload: Mapping[str, Any], types: ResourceTypes, *, paged: bool) -> CollectionResource:
    embedded = payload.get(EMBEDDED)
    if not isinstance(embedded, Mapping):
        raise HydrationError(f"collection '{EMBEDDED}' must be an object", embedded)

    collection: CollectionResource
    if paged:
        page = _parse_page(payload.get(PAGE))
        collection = types.paged_collection(links=payload.get(LINKS), page=page)
    else:
        collection = types.collection(links=payload.get(LINKS))

    for rel, value in embedded.items():
        items = value if isinstance(value, list) else [value]
        for item in items:
            try:
                member: Any = _hydrate_resource(item, types.embedded, types, collection, rel)
            except HydrationError as exc:
                debug(f"Skipping malformed '{rel}' element: {exc}")
                member = HydrationFailure(payload=item, error=exc, relation=rel)
            collection._append(member)
    return collection


def _parse_page(block: Any) -> PageInfo:
    if not isinstance(block, Mapping):
        raise HydrationError(f"'{PAGE}' must be an object", block)
    try:
        page = PageInfo.model_validate(dict(block))
    except ValidationError as exc:
        raise HydrationError(f"malformed '{PAGE}' block: {exc}", block) from exc
    if not page.is_consistent():
        debug(
            f"Inconsistent page block: totalPages={page.total_pages}, "
            f"expected {page.expected_total_pages()}"
        )
    return page
