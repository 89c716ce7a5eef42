"""KeelCache ARC Policy - Adaptive Replacement Cache.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List, Optional

from keelcache_core.eviction.policy import EvictionPolicy


class ARCPolicy(EvictionPolicy):
    """Adaptive Replacement Cache eviction policy.

    ARC balances between recency (LRU) and frequency (LFU).
    It maintains four lists:
    - T1: Live keys seen once (LRU order, newest at end)
    - T2: Live keys seen at least twice (LRU order, newest at end)
    - B1: Ghost keys recently evicted from T1
    - B2: Ghost keys recently evicted from T2

    Ghost lists hold keys only and are each capped at ``max_size``.

    Adaptation of the T1 target ``p``:
    - Re-insert of a B1 ghost: p += max(1, |B2| // |B1|), capped at max_size
    - Re-insert of a B2 ghost: p -= max(1, |B1| // |B2|), floored at 0
    Either way the returning key is admitted straight into T2.

    Victim: LRU end of T1 while |T1| > p (or T2 is empty), otherwise LRU
    end of T2. Deleted or expired keys are forgotten, not ghosted.

    Reference:
        "ARC: A Self-Tuning, Low Overhead Replacement Cache"
        by Nimrod Megiddo and Dharmendra S. Modha

    Example:
        policy = ARCPolicy(max_size=1000)
        policy.on_insert("key1")
        policy.on_access("key1")
        victim = policy.select_victim()
    """

    def __init__(self, max_size: int = 10000):
        """Initialize ARC policy.

        Args:
            max_size: Capacity; bounds p and each ghost list
        """
        super().__init__(max_size)

        self._t1: OrderedDict[str, None] = OrderedDict()
        self._t2: OrderedDict[str, None] = OrderedDict()
        self._b1: OrderedDict[str, None] = OrderedDict()
        self._b2: OrderedDict[str, None] = OrderedDict()

        # Target size for T1 (adaptation parameter)
        self._p = 0

    @property
    def target(self) -> int:
        """Current T1 target size."""
        return self._p

    def _remember(self, ghosts: OrderedDict, key: str) -> None:
        ghosts[key] = None
        ghosts.move_to_end(key)
        while len(ghosts) > self.max_size:
            ghosts.popitem(last=False)
        self._stats.demotions += 1

    def on_access(self, key: str) -> None:
        """Record key access.

        Args:
            key: Accessed key
        """
        self._stats.accesses += 1

        # Recent hit: promote to T2
        if key in self._t1:
            del self._t1[key]
            self._t2[key] = None
            self._stats.promotions += 1
            return

        # Frequent hit: refresh in T2
        if key in self._t2:
            self._t2.move_to_end(key)

    def on_insert(self, key: str) -> None:
        """Record key insertion.

        Args:
            key: Inserted key
        """
        if key in self._t1 or key in self._t2:
            self.on_access(key)
            return

        if key in self._b1:
            delta = max(1, len(self._b2) // max(1, len(self._b1)))
            self._p = min(self._p + delta, self.max_size)
            del self._b1[key]
            self._t2[key] = None
        elif key in self._b2:
            delta = max(1, len(self._b1) // max(1, len(self._b2)))
            self._p = max(self._p - delta, 0)
            del self._b2[key]
            self._t2[key] = None
        else:
            self._t1[key] = None

        self._stats.current_size = self.size()

    def on_remove(self, key: str, evicted: bool = False) -> None:
        """Record key removal.

        Args:
            key: Removed key
            evicted: Evicted keys move to the matching ghost list
        """
        if key in self._t1:
            del self._t1[key]
            if evicted:
                self._remember(self._b1, key)
        elif key in self._t2:
            del self._t2[key]
            if evicted:
                self._remember(self._b2, key)
        elif not evicted:
            self._b1.pop(key, None)
            self._b2.pop(key, None)

        self._stats.current_size = self.size()

    @staticmethod
    def _pick(t1: OrderedDict, t2: OrderedDict, p: int, exclude: Optional[str]) -> Optional[str]:
        lru_t1 = EvictionPolicy._first(t1, exclude)
        lru_t2 = EvictionPolicy._first(t2, exclude)
        if lru_t1 is not None and (len(t1) > p or lru_t2 is None):
            return lru_t1
        return lru_t2

    def select_victim(self, exclude: Optional[str] = None) -> Optional[str]:
        """Choose key to evict.

        Returns:
            Key to evict or None
        """
        key = self._pick(self._t1, self._t2, self._p, exclude)
        if key is not None:
            self._stats.evictions += 1
        return key

    def candidates(self) -> List[str]:
        t1 = OrderedDict(self._t1)
        t2 = OrderedDict(self._t2)
        order: List[str] = []
        while t1 or t2:
            key = self._pick(t1, t2, self._p, None)
            if key in t1:
                del t1[key]
            else:
                del t2[key]
            order.append(key)
        return order

    def clear(self) -> None:
        """Clear all tracked keys."""
        self._t1.clear()
        self._t2.clear()
        self._b1.clear()
        self._b2.clear()
        self._p = 0
        self._stats.current_size = 0

    def contains(self, key: str) -> bool:
        """Check if key is live (T1 or T2)."""
        return key in self._t1 or key in self._t2

    def in_ghosts(self, key: str) -> bool:
        """Check if key is remembered in B1 or B2."""
        return key in self._b1 or key in self._b2

    def size(self) -> int:
        return len(self._t1) + len(self._t2)

    def get_stats_detailed(self) -> Dict[str, int]:
        """Get detailed ARC statistics.

        Returns:
            Dict with list sizes and target
        """
        return {
            "t1_size": len(self._t1),
            "t2_size": len(self._t2),
            "b1_size": len(self._b1),
            "b2_size": len(self._b2),
            "p_target": self._p,
        }

    def __repr__(self) -> str:
        return (
            f"ARCPolicy(T1={len(self._t1)}, T2={len(self._t2)}, "
            f"B1={len(self._b1)}, B2={len(self._b2)}, p={self._p})"
        )


__all__ = ["ARCPolicy"]
