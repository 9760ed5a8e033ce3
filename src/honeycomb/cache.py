"""
Metadata cache for the Honeycomb API client

Catalog lookups (datasets, columns, boards, SLOs, triggers, markers,
recipients and auth) change rarely, so their responses are kept in one
cachetools.TTLCache per resource type. Query results are never cached.
"""

import copy
import time
from typing import Any, Callable, Dict, Hashable, Optional

from cachetools import TTLCache

from src.logging import get_logger

from .config import CacheConfig

logger = get_logger('CACHE')


class MetadataCache:
    """
    Per-resource TTL caches keyed by (environment, resource id).

    Cached values are deep-copied on the way in and out, so callers may
    mutate what they get back.
    """

    def __init__(self, config: Optional[CacheConfig] = None, timer: Callable[[], float] = time.monotonic):
        self.config = config or CacheConfig()
        self._timer = timer
        self._caches: Dict[str, TTLCache] = {}
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def _cache_for(self, resource: str) -> TTLCache:
        cache = self._caches.get(resource)
        if cache is None:
            cache = TTLCache(
                maxsize=self.config.max_size,
                ttl=self.config.ttl_for(resource),
                timer=self._timer,
            )
            self._caches[resource] = cache
        return cache

    def get(self, environment: str, resource: str, resource_id: Optional[Hashable] = None) -> Any:
        """Cached value, or None on a miss (None responses are never stored)."""
        if not self.enabled:
            return None
        value = self._cache_for(resource).get((environment, resource_id))
        if value is None:
            self.misses += 1
            return None
        self.hits += 1
        logger.debug(f"cache hit | env:{environment} | resource:{resource} | id:{resource_id}")
        return copy.deepcopy(value)

    def set(self, environment: str, resource: str, value: Any, resource_id: Optional[Hashable] = None):
        if not self.enabled or value is None:
            return
        self._cache_for(resource)[(environment, resource_id)] = copy.deepcopy(value)

    def remove(self, environment: str, resource: str, resource_id: Optional[Hashable] = None):
        cache = self._caches.get(resource)
        if cache is not None:
            cache.pop((environment, resource_id), None)

    def clear(self, resource: Optional[str] = None):
        """Drop one resource type, or everything when resource is None."""
        if resource is None:
            for cache in self._caches.values():
                cache.clear()
        elif resource in self._caches:
            self._caches[resource].clear()

    def status(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "max_size": self.config.max_size,
            "entries": {resource: len(cache) for resource, cache in self._caches.items()},
            "hits": self.hits,
            "misses": self.misses,
        }
