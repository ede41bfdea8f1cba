"""Tests for the resource hydrator."""

from __future__ import annotations

import copy
import gc

import pytest

from halclient.exceptions import HydrationError
from halclient.hal.classifier import ResourceShape
from halclient.hal.hydrator import hydrate
from halclient.hal.registry import ResourceTypeRegistry
from halclient.hal.resources import (
    CollectionResource,
    EmbeddedResource,
    HydrationFailure,
    PagedCollectionResource,
    Resource,
)
from halclient.models import Link


# ------------------------------------------------------------------ #
# Resources
# ------------------------------------------------------------------ #


class TestResource:
    def test_fields_unchanged(self, user_payload) -> None:
        user = hydrate(user_payload)
        assert type(user) is Resource
        assert user.name == "alice"
        assert user["age"] == 31
        assert user.tags == ["admin", "ops"]
        assert dict(user.fields) == {"name": "alice", "age": 31, "tags": ["admin", "ops"]}

    def test_links_parsed(self, user_payload) -> None:
        user = hydrate(user_payload)
        assert user.self_href == "http://api.example.com/api/users/1"
        assert user.get_link("address") == Link(href="http://api.example.com/api/users/1/address")
        assert user.get_link("orders").templated is True
        assert user.has_link("missing") is False
        assert user.resource_id == "1"

    def test_payload_not_mutated(self, user_payload) -> None:
        before = copy.deepcopy(user_payload)
        user = hydrate(user_payload)
        user.tags.append("mutated")
        assert user_payload == before

    def test_round_trip_to_dict(self, user_payload) -> None:
        assert hydrate(user_payload).to_dict() == user_payload

    def test_embedded_children(self) -> None:
        payload = {
            "number": 7,
            "_links": {"self": {"href": "/orders/7"}},
            "_embedded": {
                "customer": {"name": "alice", "_links": {"self": {"href": "/users/1"}}},
                "items": [{"sku": "a"}, {"sku": "b"}],
            },
        }
        order = hydrate(payload)
        assert type(order) is Resource
        customer = order.get_embedded("customer")
        assert isinstance(customer, EmbeddedResource)
        assert customer.parent is order
        assert customer.relation == "customer"
        assert [item.sku for item in order.get_embedded("items")] == ["a", "b"]
        assert order.to_dict() == payload

    def test_embedded_parent_is_weak(self) -> None:
        payload = {"_links": {}, "_embedded": {"child": {"x": 1}}}
        parent = hydrate(payload)
        child = parent.get_embedded("child")
        del parent
        gc.collect()
        assert child.parent is None

    def test_explicit_embedded_shape(self) -> None:
        result = hydrate({"x": 1}, ResourceShape.EMBEDDED)
        assert isinstance(result, EmbeddedResource)
        assert result.parent is None

    def test_malformed_links_raise(self) -> None:
        with pytest.raises(HydrationError) as exc_info:
            hydrate({"_links": {"self": {"title": "no href"}}})
        assert exc_info.value.payload == {"title": "no href"}

    def test_links_not_object_raise(self) -> None:
        with pytest.raises(HydrationError):
            hydrate({"_links": ["nope"]}, ResourceShape.RESOURCE)

    def test_link_arrays_preserved(self) -> None:
        payload = {"_links": {"item": [{"href": "/a"}, {"href": "/b"}], "one": [{"href": "/c"}]}}
        resource = hydrate(payload)
        assert [link.href for link in resource.get_links("item")] == ["/a", "/b"]
        assert resource.to_dict() == payload


# ------------------------------------------------------------------ #
# Collections
# ------------------------------------------------------------------ #


class TestCollection:
    def test_order_and_values(self, collection_payload) -> None:
        users = hydrate(collection_payload)
        assert type(users) is CollectionResource
        assert [u.name for u in users] == ["alice", "bob", "carol"]
        assert all(isinstance(u, EmbeddedResource) for u in users)
        assert users[0].parent is users
        assert users[0].relation == "users"

    def test_multiple_relations_keep_document_order(self) -> None:
        payload = {"_embedded": {"a": [{"v": 1}, {"v": 2}], "b": {"v": 3}}}
        result = hydrate(payload)
        assert [item.v for item in result] == [1, 2, 3]
        assert [item.relation for item in result] == ["a", "a", "b"]

    def test_malformed_element_kept_as_failure(self) -> None:
        payload = {"_embedded": {"users": [{"name": "ok"}, "garbage", {"name": "also ok"}]}}
        users = hydrate(payload)
        assert len(users) == 3
        assert isinstance(users[1], HydrationFailure)
        assert users[1].payload == "garbage"
        assert users[1].relation == "users"
        assert users.failures == [users[1]]
        assert users[2].name == "also ok"

    def test_empty_collection(self) -> None:
        result = hydrate({"_embedded": {}})
        assert isinstance(result, CollectionResource)
        assert len(result) == 0


class TestPagedCollection:
    def test_page_block(self, paged_payload) -> None:
        page = hydrate(paged_payload)
        assert type(page) is PagedCollectionResource
        assert page.size == 2
        assert page.total_elements == 5
        assert page.total_pages == 3
        assert page.number == 0
        assert page.has_next() and page.has_last()
        assert not page.has_prev()
        assert not page.has_first()
        assert [u.name for u in page] == ["alice", "bob"]

    def test_total_pages_matches_element_count(self, paged_payload) -> None:
        page = hydrate(paged_payload)
        assert page.page.is_consistent()
        assert page.total_pages == -(-page.total_elements // page.size)

    def test_inconsistent_page_kept_verbatim(self) -> None:
        payload = {
            "_embedded": {"users": []},
            "page": {"size": 10, "totalElements": 5, "totalPages": 9, "number": 0},
        }
        page = hydrate(payload)
        assert page.total_pages == 9
        assert not page.page.is_consistent()

    def test_malformed_page_raises(self) -> None:
        payload = {"_embedded": {"users": []}, "page": {"size": -1, "number": 0}}
        with pytest.raises(HydrationError):
            hydrate(payload)

    def test_round_trip(self, paged_payload) -> None:
        assert hydrate(paged_payload).to_dict() == paged_payload


# ------------------------------------------------------------------ #
# Opaque payloads and registry use
# ------------------------------------------------------------------ #


class TestOpaqueAndRegistry:
    @pytest.mark.parametrize("payload", [None, "ok", 3, [1, 2], {"id": 1}])
    def test_opaque_returned_unmodified(self, payload) -> None:
        assert hydrate(payload) is payload

    def test_configured_types_used(self) -> None:
        class User(Resource):
            @property
            def display(self) -> str:
                return self.name.title()

        class Member(EmbeddedResource):
            pass

        registry = ResourceTypeRegistry()
        registry.configure(resource=User, embedded=Member)

        user = hydrate({"name": "alice", "_links": {}}, registry=registry)
        assert isinstance(user, User)
        assert user.display == "Alice"

        users = hydrate({"_embedded": {"users": [{"name": "bob"}]}}, registry=registry)
        assert isinstance(users[0], Member)
