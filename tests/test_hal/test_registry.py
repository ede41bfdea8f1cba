"""Tests for the write-once resource type registry."""

from __future__ import annotations

import pytest

from halclient.exceptions import ConfigError
from halclient.hal.hydrator import hydrate
from halclient.hal.registry import (
    ResourceTypeRegistry,
    ResourceTypes,
    configure_resource_types,
    get_registry,
)
from halclient.hal.resources import CollectionResource, EmbeddedResource, Resource


class Custom(Resource):
    pass


class CustomEmbedded(EmbeddedResource):
    pass


class TestRegistry:
    def test_defaults(self) -> None:
        registry = ResourceTypeRegistry()
        assert registry.is_configured is False
        assert registry.types == ResourceTypes()

    def test_configure_once(self) -> None:
        registry = ResourceTypeRegistry()
        types = registry.configure(resource=Custom)
        assert types.resource is Custom
        assert types.embedded is EmbeddedResource
        assert registry.types is types

    def test_second_configure_rejected(self) -> None:
        registry = ResourceTypeRegistry()
        registry.configure(resource=Custom)
        with pytest.raises(ConfigError, match="already configured"):
            registry.configure(embedded=CustomEmbedded)

    def test_configure_after_use_rejected(self) -> None:
        registry = ResourceTypeRegistry()
        hydrate({"_links": {}}, registry=registry)
        with pytest.raises(ConfigError, match="after hydration"):
            registry.configure(resource=Custom)

    def test_wrong_base_class_rejected(self) -> None:
        registry = ResourceTypeRegistry()
        with pytest.raises(ConfigError, match="subclass of CollectionResource"):
            registry.configure(collection=Custom)  # type: ignore[arg-type]
        assert registry.is_configured is False

    def test_configure_from_types(self) -> None:
        registry = ResourceTypeRegistry()
        types = registry.configure(ResourceTypes(resource=Custom), embedded=CustomEmbedded)
        assert types == ResourceTypes(resource=Custom, embedded=CustomEmbedded)
        assert types.collection is CollectionResource


class TestGlobalRegistry:
    def test_process_wide_configuration(self) -> None:
        configure_resource_types(resource=Custom)
        assert isinstance(hydrate({"_links": {}}), Custom)
        with pytest.raises(ConfigError):
            configure_resource_types(resource=Custom)

    def test_reset_between_tests(self) -> None:
        assert get_registry().is_configured is False
