"""HAL document handling for halclient.

This package turns decoded ``application/hal+json`` payloads into typed
objects and back:

* :mod:`~halclient.hal.classifier` -- decides the shape of a payload.
* :mod:`~halclient.hal.hydrator` -- builds typed instances for that shape.
* :mod:`~halclient.hal.registry` -- the write-once table of concrete
  classes the hydrator instantiates.
* :mod:`~halclient.hal.resources` -- the resource and collection types.
* :mod:`~halclient.hal.body` -- serialises request bodies.

Example::

    from halclient.hal import hydrate

    # {"_embedded": {"users": [...]}} with no _links is a collection
    users = hydrate(payload)
    for user in users:
        print(user.name, user.self_href)
"""

from halclient.hal.body import resolve_values
from halclient.hal.classifier import ResourceShape, classify
from halclient.hal.hydrator import hydrate
from halclient.hal.registry import (
    ResourceTypeRegistry,
    ResourceTypes,
    configure_resource_types,
    get_registry,
    reset_registry,
)
from halclient.hal.resources import (
    CollectionResource,
    EmbeddedResource,
    HalObject,
    HydrationFailure,
    PagedCollectionResource,
    Resource,
)

__all__ = [
    "CollectionResource",
    "EmbeddedResource",
    "HalObject",
    "HydrationFailure",
    "PagedCollectionResource",
    "Resource",
    "ResourceShape",
    "ResourceTypeRegistry",
    "ResourceTypes",
    "classify",
    "configure_resource_types",
    "get_registry",
    "hydrate",
    "reset_registry",
    "resolve_values",
]
