"""KeelCache FIFO Policy - First In First Out Eviction.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import List, Optional

from keelcache_core.eviction.policy import EvictionPolicy


class FIFOPolicy(EvictionPolicy):
    """First In First Out eviction policy.

    Evicts the oldest inserted key regardless of how often or how recently
    it was read. Overwriting a key keeps its original position.

    Example:
        policy = FIFOPolicy(max_size=1000)
        policy.on_insert("key1")
        policy.on_insert("key2")
        policy.select_victim()  # "key1"
    """

    def __init__(self, max_size: int = 10000):
        super().__init__(max_size)
        self._queue: OrderedDict[str, None] = OrderedDict()

    def on_access(self, key: str) -> None:
        self._stats.accesses += 1

    def on_update(self, key: str) -> None:
        pass

    def on_insert(self, key: str) -> None:
        if key not in self._queue:
            self._queue[key] = None
            self._stats.current_size = len(self._queue)

    def on_remove(self, key: str, evicted: bool = False) -> None:
        if key in self._queue:
            del self._queue[key]
            self._stats.current_size = len(self._queue)

    def select_victim(self, exclude: Optional[str] = None) -> Optional[str]:
        key = self._first(self._queue, exclude)
        if key is not None:
            self._stats.evictions += 1
        return key

    def candidates(self) -> List[str]:
        return list(self._queue)

    def clear(self) -> None:
        self._queue.clear()
        self._stats.current_size = 0

    def contains(self, key: str) -> bool:
        return key in self._queue

    def size(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return f"FIFOPolicy(size={len(self._queue)}, max={self.max_size})"


__all__ = ["FIFOPolicy"]
