"""Typed HAL resources produced by :mod:`halclient.hal.hydrator`.

Four concrete shapes exist:

* :class:`Resource` -- a single entity with domain fields, ``_links`` and
  optionally ``_embedded`` children.
* :class:`EmbeddedResource` -- a resource found under another object's
  ``_embedded`` key. It keeps a *weak* back-reference to that parent so
  that object graphs never own themselves and :meth:`Resource.to_dict`
  stays acyclic.
* :class:`CollectionResource` -- an ordered sequence of embedded
  resources plus the collection's own links.
* :class:`PagedCollectionResource` -- a collection with a
  :class:`~halclient.models.PageInfo` block.

Links are parsed into immutable :class:`~halclient.models.Link` objects
and exposed through a read-only mapping (relation -> tuple of links).
"""

from __future__ import annotations

import copy
import weakref
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional, Union

from pydantic import ValidationError

from halclient.exceptions import HydrationError
from halclient.models import Link, PageInfo
from halclient.url import strip_query

LINKS = "_links"
EMBEDDED = "_embedded"
PAGE = "page"
SELF = "self"


def parse_links(raw: Optional[Mapping[str, Any]]) -> dict[str, tuple[Link, ...]]:
    """Parse a HAL ``_links`` object into ``{rel: (Link, ...)}``.

    Each relation may hold a single link object or an array of them.
    Already-parsed :class:`Link` instances are accepted as-is.

    Raises:
        HydrationError: If ``_links`` is not an object or a link has no
            ``href``.
    """
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise HydrationError(f"'{LINKS}' must be an object, got {type(raw).__name__}", raw)

    parsed: dict[str, tuple[Link, ...]] = {}
    for rel, value in raw.items():
        items = value if isinstance(value, (list, tuple)) else [value]
        parsed[rel] = tuple(_parse_link(rel, item) for item in items)
    return parsed


def _parse_link(rel: str, item: Any) -> Link:
    if isinstance(item, Link):
        return item
    if not isinstance(item, Mapping):
        raise HydrationError(f"link '{rel}' must be an object, got {type(item).__name__}", item)
    try:
        return Link.model_validate(dict(item))
    except ValidationError as exc:
        raise HydrationError(f"link '{rel}' is malformed: {exc.errors()[0]['msg']}", item) from exc


class HalObject:
    """Link handling shared by resources and collections."""

    def __init__(self, links: Optional[Mapping[str, Any]] = None) -> None:
        self._links: Mapping[str, tuple[Link, ...]] = MappingProxyType(parse_links(links))
        self._array_rels = frozenset(
            rel for rel, value in (links or {}).items() if isinstance(value, list)
        )

    @property
    def links(self) -> Mapping[str, tuple[Link, ...]]:
        """Read-only mapping of relation name to its links."""
        return self._links

    def get_links(self, rel: str) -> tuple[Link, ...]:
        return self._links.get(rel, ())

    def get_link(self, rel: str) -> Optional[Link]:
        """Return the first link for *rel*, or ``None``."""
        links = self.get_links(rel)
        return links[0] if links else None

    def has_link(self, rel: str) -> bool:
        return bool(self.get_links(rel))

    @property
    def self_link(self) -> Optional[Link]:
        return self.get_link(SELF)

    @property
    def self_href(self) -> Optional[str]:
        """The ``self`` href with any URI template removed."""
        link = self.self_link
        return link.without_template() if link is not None else None

    def _links_to_dict(self) -> dict[str, Any]:
        rendered: dict[str, Any] = {}
        for rel, links in self._links.items():
            dumped = [link.model_dump(exclude_defaults=True) for link in links]
            if len(dumped) == 1 and rel not in self._array_rels:
                rendered[rel] = dumped[0]
            else:
                rendered[rel] = dumped
        return rendered


class Resource(HalObject):
    """A single hydrated HAL entity.

    Domain fields are readable as attributes (``user.name``), by key
    (``user["name"]``) or through :attr:`fields`. Underscore-prefixed
    names are reserved for the instance itself and only reachable by key.

    Args:
        fields: Domain fields (everything except ``_links``/``_embedded``).
        links: Raw ``_links`` object or already-parsed link mapping.
    """

    def __init__(
        self,
        fields: Optional[Mapping[str, Any]] = None,
        links: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(links)
        self._fields: dict[str, Any] = dict(fields or {})
        self._embedded: dict[str, Union[EmbeddedResource, list[EmbeddedResource], None]] = {}

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.__dict__["_fields"][name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__} has no field {name!r}") from None

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        # Field names, like a mapping; embedded children come from get_embedded.
        return iter(self._fields)

    def get(self, name: str, default: Any = None) -> Any:
        return self._fields.get(name, default)

    @property
    def fields(self) -> Mapping[str, Any]:
        """Read-only view of the domain fields."""
        return MappingProxyType(self._fields)

    @property
    def embedded(self) -> Mapping[str, Union[EmbeddedResource, list[EmbeddedResource], None]]:
        """Read-only view of ``_embedded`` children by relation."""
        return MappingProxyType(self._embedded)

    def get_embedded(self, rel: str) -> Union[EmbeddedResource, list[EmbeddedResource], None]:
        return self._embedded.get(rel)

    @property
    def resource_id(self) -> Optional[str]:
        """Last path segment of the ``self`` href (``/users/42`` -> ``"42"``)."""
        href = self.self_href
        if not href:
            return None
        return strip_query(href).rstrip("/").rsplit("/", 1)[-1] or None

    def to_dict(self) -> dict[str, Any]:
        """Render the resource back to a HAL document.

        Parent back-references of embedded children are never followed.
        """
        data = copy.deepcopy(self._fields)
        if self._links:
            data[LINKS] = self._links_to_dict()
        if self._embedded:
            data[EMBEDDED] = {
                rel: _render_embedded(value) for rel, value in self._embedded.items()
            }
        return data

    def _set_embedded(
        self, rel: str, value: Union[EmbeddedResource, list[EmbeddedResource], None]
    ) -> None:
        self._embedded[rel] = value

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()  # type: ignore[attr-defined]

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fields={self._fields!r}, links={sorted(self._links)!r})"


class EmbeddedResource(Resource):
    """A resource nested under another object's ``_embedded`` key.

    :attr:`parent` is a weak, non-owning reference: it becomes ``None``
    once the containing object is garbage collected.
    """

    def __init__(
        self,
        fields: Optional[Mapping[str, Any]] = None,
        links: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(fields, links)
        self._parent_ref: Optional[weakref.ReferenceType[HalObject]] = None
        self._relation: Optional[str] = None

    @property
    def parent(self) -> Optional[HalObject]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def relation(self) -> Optional[str]:
        """The ``_embedded`` key this resource was found under."""
        return self._relation

    def _attach(self, parent: HalObject, relation: str) -> None:
        self._parent_ref = weakref.ref(parent)
        self._relation = relation


@dataclass(frozen=True)
class HydrationFailure:
    """A collection element that could not be hydrated.

    Kept at the element's position so a single bad item does not abort
    an otherwise valid collection.
    """

    payload: Any
    error: HydrationError
    relation: Optional[str] = None


Member = Union[Resource, HydrationFailure]


class CollectionResource(HalObject):
    """An ordered collection of embedded resources.

    Behaves as a read-only sequence. Order follows the source payload
    (relations in document order, elements in array order); nothing is
    deduplicated.
    """

    def __init__(
        self,
        resources: tuple[Member, ...] | list[Member] = (),
        links: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(links)
        self._resources: list[Member] = list(resources)

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[Member]:
        return iter(self._resources)

    def __getitem__(self, index: int) -> Member:
        return self._resources[index]

    @property
    def resources(self) -> list[Member]:
        return list(self._resources)

    @property
    def failures(self) -> list[HydrationFailure]:
        """Elements that failed hydration, in order."""
        return [item for item in self._resources if isinstance(item, HydrationFailure)]

    def _append(self, member: Member) -> None:
        self._resources.append(member)

    def to_dict(self) -> dict[str, Any]:
        grouped: dict[str, list[Any]] = {}
        for item in self._resources:
            if isinstance(item, HydrationFailure):
                grouped.setdefault(item.relation or "items", []).append(copy.deepcopy(item.payload))
            else:
                rel = getattr(item, "relation", None) or "items"
                grouped.setdefault(rel, []).append(item.to_dict())
        data: dict[str, Any] = {EMBEDDED: grouped}
        if self._links:
            data[LINKS] = self._links_to_dict()
        return data

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()  # type: ignore[attr-defined]

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(len={len(self._resources)}, links={sorted(self._links)!r})"


class PagedCollectionResource(CollectionResource):
    """A collection carrying Spring-style paging metadata.

    Args:
        resources: Initial members.
        links: Raw ``_links`` object.
        page: :class:`PageInfo` or raw ``page`` block. When omitted, a single
            page holding *resources* is assumed.
    """

    def __init__(
        self,
        resources: tuple[Member, ...] | list[Member] = (),
        links: Optional[Mapping[str, Any]] = None,
        page: PageInfo | Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(resources, links)
        if page is None:
            count = len(self._resources)
            page = PageInfo(size=count, total_elements=count, total_pages=1 if count else 0, number=0)
        elif not isinstance(page, PageInfo):
            try:
                page = PageInfo.model_validate(dict(page))
            except ValidationError as exc:
                raise HydrationError(f"malformed '{PAGE}' block: {exc}", page) from exc
        self._page: PageInfo = page

    @property
    def page(self) -> PageInfo:
        return self._page

    @property
    def size(self) -> int:
        return self._page.size

    @property
    def total_elements(self) -> int:
        return self._page.total_elements

    @property
    def total_pages(self) -> int:
        return self._page.total_pages

    @property
    def number(self) -> int:
        return self._page.number

    def has_first(self) -> bool:
        return self.has_link("first")

    def has_last(self) -> bool:
        return self.has_link("last")

    def has_next(self) -> bool:
        return self.has_link("next")

    def has_prev(self) -> bool:
        return self.has_link("prev")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data[PAGE] = self._page.model_dump(by_alias=True)
        return data

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(len={len(self._resources)}, number={self.number}, "
            f"total_pages={self.total_pages})"
        )


def _render_embedded(value: Union[EmbeddedResource, list[EmbeddedResource], None]) -> Any:
    if value is None:
        return None
    if isinstance(value, list):
        return [item.to_dict() for item in value]
    return value.to_dict()
