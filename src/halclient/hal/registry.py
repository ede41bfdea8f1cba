"""Process-wide registry of the classes the hydrator instantiates.

The hydrator only knows the four base capabilities; applications plug in
their own subclasses once at startup::

    from halclient.hal.registry import configure_resource_types

    configure_resource_types(resource=MyResource, embedded=MyEmbedded)

The registry is write-once. A second :meth:`ResourceTypeRegistry.configure`
call, or a call after hydration already fell back to the defaults, raises
:class:`~halclient.exceptions.ConfigError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from halclient.exceptions import ConfigError
from halclient.hal.resources import (
    CollectionResource,
    EmbeddedResource,
    PagedCollectionResource,
    Resource,
)


@dataclass(frozen=True)
class ResourceTypes:
    """The concrete classes used for each hydrated shape."""

    resource: type[Resource] = Resource
    collection: type[CollectionResource] = CollectionResource
    paged_collection: type[PagedCollectionResource] = PagedCollectionResource
    embedded: type[EmbeddedResource] = EmbeddedResource


_BASES = {
    "resource": Resource,
    "collection": CollectionResource,
    "paged_collection": PagedCollectionResource,
    "embedded": EmbeddedResource,
}


class ResourceTypeRegistry:
    """Write-once holder of :class:`ResourceTypes`.

    Args:
        types: Optional types to start configured with.
    """

    def __init__(self, types: Optional[ResourceTypes] = None) -> None:
        self._types = types
        self._in_use = False

    @property
    def is_configured(self) -> bool:
        return self._types is not None

    @property
    def types(self) -> ResourceTypes:
        """The active types; defaults when never configured.

        Reading marks the registry as in use, after which it can no
        longer be configured.
        """
        self._in_use = True
        if self._types is None:
            return ResourceTypes()
        return self._types

    def configure(
        self,
        types: Optional[ResourceTypes] = None,
        *,
        resource: Optional[type[Resource]] = None,
        collection: Optional[type[CollectionResource]] = None,
        paged_collection: Optional[type[PagedCollectionResource]] = None,
        embedded: Optional[type[EmbeddedResource]] = None,
    ) -> ResourceTypes:
        """Install the concrete classes. Unspecified ones keep their defaults.

        Raises:
            ConfigError: If already configured, already used, or a class
                does not derive from the matching base class.
        """
        if self._types is not None:
            raise ConfigError("Resource types are already configured")
        if self._in_use:
            raise ConfigError("Resource types cannot be configured after hydration has started")

        overrides = {
            "resource": resource,
            "collection": collection,
            "paged_collection": paged_collection,
            "embedded": embedded,
        }
        base = types or ResourceTypes()
        chosen = {
            name: overrides[name] if overrides[name] is not None else getattr(base, name)
            for name in _BASES
        }
        for name, cls in chosen.items():
            if not isinstance(cls, type) or not issubclass(cls, _BASES[name]):
                raise ConfigError(
                    f"'{name}' type must be a subclass of {_BASES[name].__name__}, got {cls!r}"
                )

        self._types = ResourceTypes(**chosen)
        return self._types


_registry: Optional[ResourceTypeRegistry] = None


def get_registry() -> ResourceTypeRegistry:
    """Return the process-wide registry, creating it lazily."""
    global _registry
    if _registry is None:
        _registry = ResourceTypeRegistry()
    return _registry


def configure_resource_types(
    types: Optional[ResourceTypes] = None, **overrides: Optional[type]
) -> ResourceTypes:
    """Configure the process-wide registry once. See :meth:`ResourceTypeRegistry.configure`."""
    return get_registry().configure(types, **overrides)  # type: ignore[arg-type]


def reset_registry() -> None:
    """Drop the process-wide registry.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _registry
    _registry = None
