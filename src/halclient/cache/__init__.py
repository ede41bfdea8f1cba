"""Response caching for halclient.

This package provides :class:`ResponseCache`, which coalesces concurrent
identical GET requests into one in-flight computation and persists
completed payloads to disk using :mod:`diskcache`.

The cache is consumed by :class:`~halclient.client.executor.HttpExecutor`
and is controlled by the ``cache`` section of the configuration
(:class:`~halclient.models.CacheConfig`).
"""

from halclient.cache.cache import CacheEntry, ResponseCache, build_cache_key

__all__ = ["CacheEntry", "ResponseCache", "build_cache_key"]
