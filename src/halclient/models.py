"""Canonical Pydantic models shared across all halclient modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory
and accepted by :class:`~halclient.client.hal_client.HalClient`:
    :class:`CacheConfig`, :class:`RequestConfig` and :class:`HalConfiguration`.

**HAL value models** -- parsed out of HAL documents or passed in by callers:
    :class:`HttpMethod`, :class:`Link`, :class:`PageInfo`, :class:`SortOrder`,
    :class:`Sort`, :class:`Include` and :class:`PagedGetOption`.

All models use Pydantic v2. :class:`Link` preserves unknown attributes in
``model_extra`` because HAL allows arbitrary link properties.
"""

from __future__ import annotations

import enum
import re
from typing import Any, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator

from halclient.exceptions import UnsupportedMethodError


# --- Configuration ---


class CacheConfig(BaseModel):
    """Response cache policy.

    GET results are kept until explicitly cleared unless ``ttl_seconds`` or
    ``max_entries`` bound them. With ``enabled=False`` nothing is stored but
    concurrent identical requests are still coalesced.
    """

    enabled: bool = Field(default=True, description="Store completed GET responses")
    ttl_seconds: Optional[float] = Field(
        default=None, gt=0, description="Entry lifetime in seconds; None keeps entries forever"
    )
    max_entries: Optional[int] = Field(
        default=None, ge=1, description="Evict the oldest entries beyond this count"
    )
    directory: Optional[str] = Field(
        default=None, description="Cache directory; None uses a private temporary directory"
    )


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call."""

    timeout: Optional[float] = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(
        default=0, ge=0, description="Connection retries performed by the httpx transport"
    )


class HalConfiguration(BaseModel):
    """Process configuration for a HAL API.

    Loaded by :func:`~halclient.config.resolve_config` or built directly
    and handed to :func:`~halclient.config.configure` or
    :class:`~halclient.client.hal_client.HalClient`.

    Example::

        HalConfiguration(base_api_url="http://localhost:8080/api", verbose_logs=True)
    """

    base_api_url: Optional[str] = Field(
        default=None, description="Root URL every resource name is appended to"
    )
    verbose_logs: bool = Field(default=False, description="Log every request/response pair")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")
    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)


# --- HAL values ---


class HttpMethod(str, enum.Enum):
    """HTTP methods a custom query may use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"

    @classmethod
    def parse(cls, value: Any) -> HttpMethod:
        """Normalise *value* to a member, case-insensitively.

        Raises:
            UnsupportedMethodError: For ``None``, non-strings and any other verb.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise UnsupportedMethodError(value)


_TEMPLATE_RE = re.compile(r"\{([+#./;?&]?)([^}]*)\}")

# operator -> (prefix, separator, emits name=value)
_TEMPLATE_OPERATORS = {
    "": ("", ",", False),
    "+": ("", ",", False),
    "#": ("#", ",", False),
    ".": (".", ".", False),
    "/": ("/", "/", False),
    ";": (";", ";", True),
    "?": ("?", "&", True),
    "&": ("&", "&", True),
}
_RESERVED = ":/?#[]@!$&'()*+,;="


class Link(BaseModel):
    """A HAL link object.

    Only ``href`` is required. Unknown attributes are kept in
    ``model_extra``. Links are immutable once parsed.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    href: str
    templated: bool = False
    title: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    profile: Optional[str] = None
    deprecation: Optional[str] = None
    hreflang: Optional[str] = None

    def without_template(self) -> str:
        """Return ``href`` with every ``{...}`` template expression removed."""
        return _TEMPLATE_RE.sub("", self.href)

    def expand(self, **values: Any) -> str:
        """Expand the URI template in ``href`` with *values*.

        Handles the RFC 6570 level 3 expressions: simple ``{var}``,
        reserved ``{+var}``, fragment ``{#var}``, label ``{.var}``, path
        segment ``{/var}``, path parameter ``{;var}`` and the form-style
        ``{?a,b}`` / ``{&a,b}`` HAL servers emit for paging and search
        parameters. Variables without a value are dropped, and an
        expression with no values expands to nothing. Non-templated links
        are returned unchanged.
        """
        if not self.templated:
            return self.href

        def _replace(match: re.Match[str]) -> str:
            operator, names = match.group(1), match.group(2)
            present = [
                (name, values[name])
                for name in (n.strip() for n in names.split(","))
                if name and values.get(name) is not None
            ]
            if not present:
                return ""
            prefix, separator, named = _TEMPLATE_OPERATORS[operator]
            safe = _RESERVED if operator in ("+", "#") else ""
            parts = []
            for name, value in present:
                encoded = quote(str(value), safe=safe)
                if not named:
                    parts.append(encoded)
                elif encoded or operator != ";":
                    parts.append(f"{name}={encoded}")
                else:
                    parts.append(name)
            return prefix + separator.join(parts)

        return _TEMPLATE_RE.sub(_replace, self.href)


class PageInfo(BaseModel):
    """The ``page`` block of a paged collection.

    Field names follow Python conventions; the HAL wire names
    (``totalElements``, ``totalPages``) are accepted as aliases and used
    when dumping ``by_alias``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    size: int = Field(ge=0)
    total_elements: int = Field(alias="totalElements", ge=0)
    total_pages: int = Field(alias="totalPages", ge=0)
    number: int = Field(ge=0, description="Current page, 0-based")

    def expected_total_pages(self) -> Optional[int]:
        """``ceil(total_elements / size)``, or ``None`` when ``size`` is 0."""
        if self.size <= 0:
            return None
        return -(-self.total_elements // self.size)

    def is_consistent(self) -> bool:
        """Whether ``total_pages`` agrees with ``total_elements`` and ``size``."""
        expected = self.expected_total_pages()
        return expected is None or expected == self.total_pages


class SortOrder(str, enum.Enum):
    """Sort direction for paged queries."""

    ASC = "ASC"
    DESC = "DESC"


class Sort(BaseModel):
    """A single sort criterion, serialised as ``field,ORDER``."""

    field: str
    order: SortOrder = SortOrder.ASC


class Include(str, enum.Enum):
    """Body serialisation switches."""

    NULL_VALUES = "NULL_VALUES"


class PagedGetOption(BaseModel):
    """Options turned into query parameters by :func:`~halclient.url.convert_to_params`.

    ``sort`` accepts a list of :class:`Sort` (or dicts, or ``"field,ORDER"``
    strings) as well as a ``{field: order}`` mapping. ``params`` holds any
    extra query parameters. ``include`` only affects request bodies.

    Example::

        PagedGetOption(page=0, size=20, sort={"name": "DESC"}, params={"active": True})
    """

    page: Optional[int] = Field(default=None, ge=0)
    size: Optional[int] = Field(default=None, ge=1)
    sort: list[Sort] = Field(default_factory=list)
    params: dict[str, Any] = Field(default_factory=dict)
    include: Optional[Include] = None

    @field_validator("sort", mode="before")
    @classmethod
    def _coerce_sort(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, dict):
            return [
                {"field": field, "order": order.upper() if isinstance(order, str) else order}
                for field, order in value.items()
            ]
        if isinstance(value, (list, tuple)):
            items = []
            for item in value:
                if isinstance(item, str):
                    field, _, order = item.partition(",")
                    items.append({"field": field, "order": (order or "ASC").upper()})
                else:
                    items.append(item)
            return items
        return value
