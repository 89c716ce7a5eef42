"""KeelCache LFU Policy - Least Frequently Used Eviction.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List, Optional

from keelcache_core.eviction.policy import EvictionPolicy


class LFUPolicy(EvictionPolicy):
    """Least Frequently Used eviction policy.

    Evicts the key with the lowest access frequency.

    Implementation:
    - Tracks frequency count per key (insert counts as 1)
    - Groups keys by frequency in ordered buckets
    - Evicts from the lowest frequency bucket
    - Ties broken by recency: the least recently touched key in the
      bucket goes first
    - Overwrites keep the frequency and only refresh recency

    Example:
        policy = LFUPolicy(max_size=1000)
        policy.on_insert("key1")
        policy.on_access("key1")  # freq=2
        policy.on_access("key1")  # freq=3
        victim = policy.select_victim()
    """

    def __init__(self, max_size: int = 10000):
        """Initialize LFU policy.

        Args:
            max_size: Maximum entries
        """
        super().__init__(max_size)

        # Key -> frequency count
        self._frequency: Dict[str, int] = {}

        # Frequency -> keys, least recently touched first
        self._buckets: Dict[int, OrderedDict[str, None]] = {}

        # Minimum frequency (for O(1) eviction)
        self._min_freq = 0

    def _bucket_remove(self, key: str, freq: int) -> None:
        bucket = self._buckets[freq]
        del bucket[key]
        if not bucket:
            del self._buckets[freq]
            if self._min_freq == freq:
                self._min_freq = min(self._buckets) if self._buckets else 0

    def _bucket_add(self, key: str, freq: int) -> None:
        self._buckets.setdefault(freq, OrderedDict())[key] = None
        if self._min_freq == 0 or freq < self._min_freq:
            self._min_freq = freq

    def on_access(self, key: str) -> None:
        """Record key access (increase frequency).

        Args:
            key: Accessed key
        """
        self._stats.accesses += 1

        freq = self._frequency.get(key)
        if freq is None:
            return

        self._bucket_remove(key, freq)
        self._frequency[key] = freq + 1
        self._bucket_add(key, freq + 1)
        self._stats.promotions += 1

    def on_update(self, key: str) -> None:
        """Record overwrite: frequency persists, recency refreshed.

        Args:
            key: Overwritten key
        """
        freq = self._frequency.get(key)
        if freq is None:
            return
        self._buckets[freq].move_to_end(key)

    def on_insert(self, key: str) -> None:
        """Record key insertion (frequency=1).

        Args:
            key: Inserted key
        """
        if key in self._frequency:
            self.on_update(key)
            return
        self._frequency[key] = 1
        self._bucket_add(key, 1)
        self._min_freq = 1
        self._stats.current_size = len(self._frequency)

    def on_remove(self, key: str, evicted: bool = False) -> None:
        """Record key removal.

        Args:
            key: Removed key
            evicted: Whether removal was an eviction
        """
        freq = self._frequency.pop(key, None)
        if freq is None:
            return
        self._bucket_remove(key, freq)
        self._stats.current_size = len(self._frequency)

    def select_victim(self, exclude: Optional[str] = None) -> Optional[str]:
        """Choose LFU key to evict.

        Returns:
            Least frequent, least recently touched key or None
        """
        if not self._frequency:
            return None

        key = self._first(self._buckets.get(self._min_freq, ()), exclude)
        if key is None:
            # Only the excluded key sits at the minimum; scan upward
            key = self._first(self.candidates(), exclude)

        if key is not None:
            self._stats.evictions += 1
        return key

    def candidates(self) -> List[str]:
        order: List[str] = []
        for freq in sorted(self._buckets):
            order.extend(self._buckets[freq])
        return order

    def clear(self) -> None:
        """Clear all tracked keys."""
        self._frequency.clear()
        self._buckets.clear()
        self._min_freq = 0
        self._stats.current_size = 0

    def contains(self, key: str) -> bool:
        return key in self._frequency

    def size(self) -> int:
        return len(self._frequency)

    def get_frequency(self, key: str) -> int:
        """Get access frequency for key.

        Args:
            key: Key to check

        Returns:
            Frequency count or 0
        """
        return self._frequency.get(key, 0)

    def get_min_frequency(self) -> int:
        """Get minimum frequency."""
        return self._min_freq

    def __repr__(self) -> str:
        return f"LFUPolicy(size={len(self._frequency)}, min_freq={self._min_freq})"


__all__ = ["LFUPolicy"]
