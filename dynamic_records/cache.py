"""
Listing cache.

Listings are cached under tuple keys such as ``("custom-entity-types",)`` or
``("custom-entities", type_id)`` and refreshed by explicit re-fetch after a
mutation invalidates them. Invalidating a key also drops every longer key
that starts with it, so ``("custom-entities",)`` clears all entity listings.
"""

from __future__ import annotations

from typing import Any, Dict, Hashable, Optional, Tuple

import structlog

logger = structlog.get_logger()

CacheKey = Tuple[Hashable, ...]

ENTITY_TYPES_KEY: CacheKey = ("custom-entity-types",)
ENTITIES_KEY: CacheKey = ("custom-entities",)


def entities_key(type_id: str) -> CacheKey:
    """Cache key of one type's entity listing."""
    return ENTITIES_KEY + (type_id,)


class ListingCache:
    """In-process cache of fetched listings."""

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, Any] = {}

    def get(self, key: CacheKey) -> Optional[Any]:
        return self._entries.get(key)

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = value

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def invalidate(self, prefix: CacheKey) -> int:
        """Drop every entry whose key starts with ``prefix``.

        Returns:
            Number of entries dropped
        """
        stale = [key for key in self._entries if key[: len(prefix)] == prefix]
        for key in stale:
            del self._entries[key]
        logger.debug("cache_invalidated", prefix=list(prefix), dropped=len(stale))
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
