"""Response cache with in-flight request coalescing.

Completed GET payloads are persisted with :mod:`diskcache`; computations
that have not finished yet are tracked as :class:`asyncio.Task` objects so
that concurrent identical requests share a single transport call.

Cache keys are SHA-256 hashes of the canonical JSON form of
``method``, ``url``, ``params`` and ``body`` (see :func:`build_cache_key`),
so identical requests always resolve to the same entry regardless of
mapping key order.

The stored value is the *raw* decoded payload. The optional ``transform``
given to :meth:`ResponseCache.get_or_compute` (hydration, for the
executor) runs once per computation and once per cache hit, so every
hit gets a fresh object graph while concurrent callers of one computation
share the identical object.

See Also:
    :class:`~halclient.models.CacheConfig` -- the Pydantic model that
    controls ``enabled``, ``ttl_seconds``, ``max_entries`` and ``directory``.
"""

from __future__ import annotations

import asyncio
import functools
import hashlib
import json
import shutil
import time
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Callable, Optional

import diskcache

from halclient.models import CacheConfig
from halclient.output import debug
from halclient.url import strip_query


@dataclass(frozen=True)
class CacheEntry:
    """A stored response: the request URL, raw payload and creation time."""

    url: str
    value: Any
    created_at: float


def build_cache_key(
    method: str,
    url: str,
    params: Optional[dict[str, Any]] = None,
    body: Any = None,
) -> str:
    """Generate a cache key from method, URL, params and body.

    Example::

        >>> build_cache_key("get", "http://h/a", {"b": 1, "a": 2}) == \\
        ...     build_cache_key("GET", "http://h/a", {"a": 2, "b": 1})
        True
    """
    raw = json.dumps(
        {"method": method.upper(), "url": url, "params": params or {}, "body": body},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(raw.encode()).hexdigest()


class ResponseCache:
    """Keyed store of in-flight and completed GET outcomes.

    Failures and cancelled computations are never stored; their pending
    entry is dropped so the next caller re-issues the request.

    Args:
        config: Cache policy. Defaults to an enabled, unbounded cache in a
            private temporary directory.

    Example::

        cache = ResponseCache(CacheConfig(ttl_seconds=300))
        key = build_cache_key("GET", url)
        payload = await cache.get_or_compute(key, lambda: transport.get(url), url=url)
    """

    def __init__(self, config: Optional[CacheConfig] = None) -> None:
        self._config = config or CacheConfig()
        self._store: Optional[diskcache.Cache] = None
        if self._config.enabled:
            self._store = diskcache.Cache(self._config.directory)
        # diskcache creates a temporary directory when none is configured.
        self._owns_directory = self._config.directory is None
        self._pending: dict[str, tuple[asyncio.Task[Any], str]] = {}
        self._hits = 0
        self._misses = 0
        self._coalesced = 0

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def directory(self) -> Optional[str]:
        return self._store.directory if self._store is not None else None

    # ------------------------------------------------------------------ #
    # Lookup / compute
    # ------------------------------------------------------------------ #

    async def get_or_compute(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        *,
        url: str = "",
        transform: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """Return the value for *key*, computing it at most once at a time.

        A stored entry is returned (through *transform*) without awaiting.
        Otherwise the caller joins the pending computation for *key* or
        registers a new one. Lookup and registration happen without any
        suspension in between, so two callers can never both start a
        computation for the same key.

        Args:
            key: Cache key, usually from :func:`build_cache_key`.
            factory: Zero-argument coroutine function producing the raw value.
            url: Request URL, used by :meth:`invalidate_prefix`.
            transform: Applied to the raw value before it is returned.

        Raises:
            Whatever *factory* or *transform* raised, or
            :class:`asyncio.CancelledError` if the computation was cancelled.
        """
        entry = self._lookup(key)
        if entry is not None:
            self._hits += 1
            debug(f"Cache hit: {entry.url or key}")
            return transform(entry.value) if transform is not None else entry.value

        pending = self._pending.get(key)
        if pending is None:
            self._misses += 1
            task = asyncio.ensure_future(self._compute(key, url, factory, transform))
            self._pending[key] = (task, url)
            task.add_done_callback(functools.partial(self._on_done, key))
        else:
            self._coalesced += 1
            task = pending[0]
            debug(f"Joining in-flight request: {url or key}")

        # Shielded so that one caller's cancellation leaves the others running.
        return await asyncio.shield(task)

    def get(self, key: str) -> Any:
        """Return the stored raw value for *key*, or ``None``."""
        entry = self._lookup(key)
        return entry.value if entry is not None else None

    def in_flight(self, key: str) -> bool:
        """Whether a computation for *key* is currently pending."""
        return key in self._pending

    # ------------------------------------------------------------------ #
    # Invalidation
    # ------------------------------------------------------------------ #

    def cancel(self, key: str) -> bool:
        """Cancel the pending computation for *key*.

        Every caller waiting on it receives :class:`asyncio.CancelledError`.

        Returns:
            ``True`` if a computation was pending.
        """
        pending = self._pending.pop(key, None)
        if pending is None:
            return False
        pending[0].cancel()
        return True

    def invalidate(self, key: str) -> None:
        """Drop the stored entry for *key*.

        A computation still in flight keeps running for its current
        callers but its result will not be stored.
        """
        self._pending.pop(key, None)
        if self._store is not None:
            self._store.delete(key)

    def invalidate_prefix(self, url: str) -> int:
        """Drop every entry whose URL is *url* or lies below it.

        Query strings are ignored and matching stops at path boundaries:
        ``/users/1`` matches ``/users/1`` and ``/users/1/address`` but not
        ``/users/10``.

        Returns:
            The number of stored entries removed.
        """
        prefix = strip_query(url).rstrip("/")

        for key, (_, pending_url) in list(self._pending.items()):
            if _url_matches(pending_url, prefix):
                del self._pending[key]

        if self._store is None:
            return 0
        removed = 0
        for key in list(self._store):
            entry = self._store.get(key)
            if isinstance(entry, CacheEntry) and _url_matches(entry.url, prefix):
                self._store.delete(key)
                removed += 1
        if removed:
            debug(f"Invalidated {removed} cached response(s) under {prefix}")
        return removed

    def clear(self) -> None:
        """Remove all stored entries. Pending computations are not stored."""
        self._pending.clear()
        if self._store is not None:
            self._store.clear()

    # ------------------------------------------------------------------ #
    # Introspection / lifecycle
    # ------------------------------------------------------------------ #

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``enabled``, ``size``, ``in_flight``, ``hits``,
            ``misses``, ``coalesced`` and, when enabled, ``directory``,
            ``ttl_seconds`` and ``max_entries``.
        """
        stats: dict[str, Any] = {
            "enabled": self._store is not None,
            "size": len(self),
            "in_flight": len(self._pending),
            "hits": self._hits,
            "misses": self._misses,
            "coalesced": self._coalesced,
        }
        if self._store is not None:
            stats["directory"] = self._store.directory
            stats["ttl_seconds"] = self._config.ttl_seconds
            stats["max_entries"] = self._config.max_entries
        return stats

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources.

        A private temporary directory created for an unconfigured cache is
        removed as well.
        """
        if self._store is None:
            return
        self._store.close()
        if self._owns_directory:
            shutil.rmtree(self._store.directory, ignore_errors=True)

    def __len__(self) -> int:
        if self._store is None:
            return 0
        self._store.expire()
        return len(self._store)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        if self._store is None:
            return None
        entry = self._store.get(key)
        return entry if isinstance(entry, CacheEntry) else None

    async def _compute(
        self,
        key: str,
        url: str,
        factory: Callable[[], Awaitable[Any]],
        transform: Optional[Callable[[Any], Any]],
    ) -> Any:
        raw = await factory()
        value = transform(raw) if transform is not None else raw
        # Invalidated or cancelled while running -> do not store.
        pending = self._pending.get(key)
        if pending is not None and pending[0] is asyncio.current_task():
            self._put(key, url, raw)
        return value

    def _put(self, key: str, url: str, raw: Any) -> None:
        if self._store is None:
            return
        self._store.set(key, CacheEntry(url, raw, time.time()), expire=self._config.ttl_seconds)
        max_entries = self._config.max_entries
        if max_entries is None:
            return
        self._store.expire()
        while len(self._store) > max_entries:
            oldest, _ = self._store.peekitem(last=False)
            self._store.delete(oldest)
            debug(f"Evicted oldest cache entry {oldest}")

    def _on_done(self, key: str, task: asyncio.Task[Any]) -> None:
        pending = self._pending.get(key)
        if pending is not None and pending[0] is task:
            del self._pending[key]
        if not task.cancelled():
            # Marks the exception as retrieved; callers still get it via shield.
            task.exception()


def _url_matches(url: str, prefix: str) -> bool:
    path = strip_query(url).rstrip("/")
    return path == prefix or path.startswith(prefix + "/")
