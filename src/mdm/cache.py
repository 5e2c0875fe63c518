"""
Golden-record lookup cache.

Wraps a GoldenRecordLookup and memoizes found golden records per
(identifier value, entity type). Absent results are never cached, so a
golden record created after a miss is found by the next lookup. Cached
hits go stale on merge; the owner invalidates them then.
"""

import logging
from collections import OrderedDict
from collections.abc import Iterable

from src.mdm.collaborators import GoldenRecordLookup
from src.mdm.models import ExternalIdentifier, GoldenRecordHandle

logger = logging.getLogger(__name__)

_CacheKey = tuple[str, str]


class GoldenRecordLookupCache:
    """Memoizing GoldenRecordLookup with explicit invalidation."""

    def __init__(self, lookup: GoldenRecordLookup, max_size: int = 10_000):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self._lookup = lookup
        self._max_size = max_size
        self._entries: OrderedDict[_CacheKey, GoldenRecordHandle] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    async def lookup_by_external_id(
        self, value: str, entity_type: str
    ) -> GoldenRecordHandle | None:
        """Return the cached golden record, loading it on a miss."""
        key = (entity_type, value)
        if key in self._entries:
            self.hits += 1
            return self._entries[key]

        self.misses += 1
        # Failures propagate and are not cached
        handle = await self._lookup.lookup_by_external_id(value, entity_type)
        if handle is None:
            return None

        self._entries[key] = handle
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)
        return handle

    def invalidate(self, entity_type: str | None = None) -> int:
        """
        Drop cached entries.

        Args:
            entity_type: Only drop entries for this entity type; all if None

        Returns:
            Number of entries dropped
        """
        if entity_type is None:
            dropped = len(self._entries)
            self._entries.clear()
        else:
            keys = [key for key in self._entries if key[0] == entity_type]
            for key in keys:
                del self._entries[key]
            dropped = len(keys)

        logger.debug("Invalidated %d golden record lookups", dropped)
        return dropped

    def on_golden_record_changed(
        self, entity_type: str, identifiers: Iterable[ExternalIdentifier]
    ) -> None:
        """Invalidation trigger for golden-record create and merge."""
        for identifier in identifiers:
            self._entries.pop((entity_type, identifier.value), None)
