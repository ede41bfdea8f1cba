"""Classify decoded JSON into HAL shapes.

:func:`classify` is the single place where a payload's structure is
inspected; :mod:`halclient.hal.hydrator` dispatches on the returned
:class:`ResourceShape` and never re-checks the raw keys itself.

Rules, first match wins:

1. ``page`` block and ``_embedded`` object -> ``PAGED_COLLECTION``
2. ``_embedded`` object of arrays/objects, no ``_links`` -> ``COLLECTION``
3. ``_links`` present (even empty) -> ``RESOURCE``
4. anything else -> ``OPAQUE``

A payload with both ``_links`` and ``_embedded`` but no ``page`` block
is therefore a resource with embedded children.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any

from halclient.hal.resources import EMBEDDED, LINKS, PAGE

PAGE_KEYS = ("size", "totalElements", "totalPages", "number")


class ResourceShape(str, enum.Enum):
    RESOURCE = "resource"
    EMBEDDED = "embedded"
    COLLECTION = "collection"
    PAGED_COLLECTION = "paged_collection"
    OPAQUE = "opaque"


def classify(payload: Any, *, embedded: bool = False) -> ResourceShape:
    """Return the HAL shape of *payload*.

    Args:
        payload: A decoded JSON value.
        embedded: ``True`` when *payload* was found under a parent's
            ``_embedded`` key; any object then classifies as ``EMBEDDED``.
    """
    if not isinstance(payload, Mapping):
        return ResourceShape.OPAQUE
    if embedded:
        return ResourceShape.EMBEDDED

    embedded_block = payload.get(EMBEDDED)
    has_embedded = isinstance(embedded_block, Mapping)

    if has_embedded and _has_page_block(payload):
        return ResourceShape.PAGED_COLLECTION
    if has_embedded and LINKS not in payload and _is_relation_map(embedded_block):
        return ResourceShape.COLLECTION
    if LINKS in payload:
        return ResourceShape.RESOURCE
    return ResourceShape.OPAQUE


def _has_page_block(payload: Mapping[str, Any]) -> bool:
    page = payload.get(PAGE)
    return isinstance(page, Mapping) and any(key in page for key in PAGE_KEYS)


def _is_relation_map(block: Mapping[str, Any]) -> bool:
    return all(isinstance(value, (list, Mapping)) for value in block.values())
