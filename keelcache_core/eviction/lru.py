"""KeelCache LRU Policy - Least Recently Used Eviction.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import List, Optional

from keelcache_core.eviction.policy import EvictionPolicy


class LRUPolicy(EvictionPolicy):
    """Least Recently Used eviction policy.

    Evicts the key that has not been touched for the longest time.
    Uses an OrderedDict for O(1) operations; keys never touched since
    insertion keep their insertion order, so ties go to the earliest
    inserted key.

    Example:
        policy = LRUPolicy(max_size=1000)
        policy.on_insert("key1")
        policy.on_access("key1")
        victim = policy.select_victim()
    """

    def __init__(self, max_size: int = 10000):
        """Initialize LRU policy.

        Args:
            max_size: Maximum entries
        """
        super().__init__(max_size)
        self._order: OrderedDict[str, None] = OrderedDict()

    def on_access(self, key: str) -> None:
        """Record key access (move to end).

        Args:
            key: Accessed key
        """
        self._stats.accesses += 1
        if key in self._order:
            self._order.move_to_end(key)

    def on_insert(self, key: str) -> None:
        """Record key insertion.

        Args:
            key: Inserted key
        """
        self._order[key] = None
        self._order.move_to_end(key)
        self._stats.current_size = len(self._order)

    def on_remove(self, key: str, evicted: bool = False) -> None:
        """Record key removal.

        Args:
            key: Removed key
            evicted: Whether removal was an eviction
        """
        if key in self._order:
            del self._order[key]
            self._stats.current_size = len(self._order)

    def select_victim(self, exclude: Optional[str] = None) -> Optional[str]:
        """Choose LRU key to evict.

        Returns:
            Oldest key or None
        """
        # First key is LRU (oldest)
        key = self._first(self._order, exclude)
        if key is not None:
            self._stats.evictions += 1
        return key

    def candidates(self) -> List[str]:
        return list(self._order)

    def clear(self) -> None:
        """Clear all tracked keys."""
        self._order.clear()
        self._stats.current_size = 0

    def contains(self, key: str) -> bool:
        return key in self._order

    def size(self) -> int:
        return len(self._order)

    def peek_lru(self) -> Optional[str]:
        """Peek at LRU key without evicting.

        Returns:
            LRU key or None
        """
        if not self._order:
            return None
        return next(iter(self._order))

    def peek_mru(self) -> Optional[str]:
        """Peek at MRU key.

        Returns:
            MRU key or None
        """
        if not self._order:
            return None
        return next(reversed(self._order))

    def __repr__(self) -> str:
        return f"LRUPolicy(size={len(self._order)}, max={self.max_size})"


__all__ = ["LRUPolicy"]
