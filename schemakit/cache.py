"""
Cache of compiled validators.
Entries are keyed by (value kind, schema fragment key) and bucketed per kind so
that keyword registration changes can drop exactly the kinds they affect.
"""
import logging
from typing import Any, Dict, Iterable, Optional

from schemakit.node_type import NodeType
from schemakit.validators import Validator

logger = logging.getLogger(__name__)


class ValidatorCache:
    """In-memory validator cache with per-kind invalidation. Not thread-safe on its own."""

    def __init__(self):
        self._buckets: Dict[NodeType, Dict[str, Validator]] = {kind: {} for kind in NodeType}
        self.hits = 0
        self.misses = 0

    def get(self, kind: NodeType, key: str) -> Optional[Validator]:
        """
        Get a cached validator.

        Args:
            kind: Value kind of the instance
            key: Structural key of the schema fragment

        Returns:
            Cached validator or None if missing
        """
        validator = self._buckets[kind].get(key)
        if validator is None:
            self.misses += 1
            logger.debug(f"Cache miss: {kind} {key}")
            return None

        self.hits += 1
        logger.debug(f"Cache hit: {kind} {key}")
        return validator

    def put(self, kind: NodeType, key: str, validator: Validator):
        """
        Store a validator in the cache.

        Args:
            kind: Value kind of the instance
            key: Structural key of the schema fragment
            validator: Compiled validator
        """
        self._buckets[kind][key] = validator
        logger.debug(f"Cache set: {kind} {key}")

    def invalidate(self, kinds: Iterable[NodeType]) -> int:
        """
        Drop every entry for the given value kinds.

        Args:
            kinds: Value kinds to invalidate

        Returns:
            Number of entries removed
        """
        removed = 0
        for kind in set(kinds):
            bucket = self._buckets[NodeType(kind)]
            removed += len(bucket)
            bucket.clear()

        if removed:
            logger.debug(f"Cache invalidated: {removed} entries removed")
        return removed

    def clear(self):
        """Clear all cache entries."""
        count = len(self)
        for bucket in self._buckets.values():
            bucket.clear()
        logger.info(f"Cache cleared: {count} entries removed")

    def contains(self, kind: NodeType, key: str) -> bool:
        return key in self._buckets[kind]

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics with per-kind entry counts."""
        return {
            "total_entries": len(self),
            "entries_by_kind": {str(kind): len(bucket) for kind, bucket in self._buckets.items()},
            "hits": self.hits,
            "misses": self.misses,
        }

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())
