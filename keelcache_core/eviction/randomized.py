"""KeelCache Random Policy - Seeded Random Eviction.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import random
from typing import Dict, List, Optional

from keelcache_core.eviction.policy import EvictionPolicy


class RandomPolicy(EvictionPolicy):
    """Random eviction policy.

    Picks a victim uniformly among tracked keys. Keys live in a list with
    an index map so removal is O(1) (swap with the last slot and pop).
    Given the same seed and the same sequence of calls, victims are
    identical between runs.

    Example:
        policy = RandomPolicy(max_size=1000, seed=42)
        policy.on_insert("key1")
        policy.on_insert("key2")
        victim = policy.select_victim()
    """

    def __init__(self, max_size: int = 10000, seed: Optional[int] = None):
        """Initialize random policy.

        Args:
            max_size: Maximum entries
            seed: Random seed, None for OS entropy
        """
        super().__init__(max_size)
        self.seed = seed
        self._rng = random.Random(seed)
        self._keys: List[str] = []
        self._index: Dict[str, int] = {}

    def on_access(self, key: str) -> None:
        self._stats.accesses += 1

    def on_update(self, key: str) -> None:
        pass

    def on_insert(self, key: str) -> None:
        if key in self._index:
            return
        self._index[key] = len(self._keys)
        self._keys.append(key)
        self._stats.current_size = len(self._keys)

    def on_remove(self, key: str, evicted: bool = False) -> None:
        idx = self._index.pop(key, None)
        if idx is None:
            return
        self._swap_pop(self._keys, idx, self._index)
        self._stats.current_size = len(self._keys)

    @staticmethod
    def _swap_pop(keys: List[str], idx: int, index: Optional[Dict[str, int]] = None) -> str:
        """Remove ``keys[idx]`` by moving the last key into its slot."""
        key = keys[idx]
        last = keys.pop()
        if idx < len(keys):
            keys[idx] = last
            if index is not None:
                index[last] = idx
        return key

    @staticmethod
    def _draw(rng: random.Random, keys: List[str], exclude: Optional[str]) -> Optional[str]:
        if not keys or (len(keys) == 1 and keys[0] == exclude):
            return None
        while True:
            key = keys[rng.randrange(len(keys))]
            if key != exclude:
                return key

    def select_victim(self, exclude: Optional[str] = None) -> Optional[str]:
        """Choose a random key to evict.

        Args:
            exclude: Key that must not be chosen

        Returns:
            Victim key or None
        """
        key = self._draw(self._rng, self._keys, exclude)
        if key is not None:
            self._stats.evictions += 1
        return key

    def candidates(self) -> List[str]:
        """Simulate successive evictions without consuming randomness.

        Returns:
            Keys in the order they would be evicted
        """
        rng = random.Random()
        rng.setstate(self._rng.getstate())
        keys = list(self._keys)
        order: List[str] = []
        while keys:
            idx = rng.randrange(len(keys))
            order.append(self._swap_pop(keys, idx))
        return order

    def clear(self) -> None:
        self._keys.clear()
        self._index.clear()
        self._stats.current_size = 0

    def contains(self, key: str) -> bool:
        return key in self._index

    def size(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"RandomPolicy(size={len(self._keys)}, seed={self.seed})"


__all__ = ["RandomPolicy"]
