"""KeelCache Eviction Policy - Abstract Eviction Interface.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)


class EvictionPolicyType(Enum):
    """Available eviction algorithms."""

    LRU = "lru"
    LFU = "lfu"
    FIFO = "fifo"
    RANDOM = "random"
    ARC = "arc"


@dataclass
class EvictionStats:
    """Eviction policy statistics.

    Attributes:
        evictions: Number of victims selected
        accesses: Number of accesses tracked
        promotions: Number of promotions
        demotions: Number of demotions (ARC ghost moves)
        current_size: Current tracked entries
        max_size: Capacity the policy was built for
    """

    evictions: int = 0
    accesses: int = 0
    promotions: int = 0
    demotions: int = 0
    current_size: int = 0
    max_size: int = 0

    @property
    def eviction_rate(self) -> float:
        """Get eviction rate."""
        return self.evictions / self.accesses if self.accesses > 0 else 0.0


class EvictionPolicy(ABC):
    """Abstract base for eviction policies.

    A policy only sees keys. The entry store notifies it of every insert,
    access, overwrite and removal, and asks it for a victim while the store
    is over capacity. Policies hold no lock of their own; the owning store
    serializes every call.

    Implementations:
    - LRU: Least Recently Used
    - LFU: Least Frequently Used
    - FIFO: First In First Out
    - Random: Seeded uniform sampling
    - ARC: Adaptive Replacement Cache

    Example:
        policy = LRUPolicy(max_size=1000)
        policy.on_insert("key1")
        policy.on_access("key1")
        victim = policy.select_victim()
    """

    def __init__(self, max_size: int = 10000):
        """Initialize policy.

        Args:
            max_size: Capacity of the owning store
        """
        self.max_size = max_size
        self._stats = EvictionStats(max_size=max_size)

    @abstractmethod
    def on_insert(self, key: str) -> None:
        """Record key insertion.

        Args:
            key: Inserted key
        """
        pass

    @abstractmethod
    def on_access(self, key: str) -> None:
        """Record key access.

        Args:
            key: Accessed key
        """
        pass

    def on_update(self, key: str) -> None:
        """Record overwrite of an existing key.

        Counts as an access unless the policy says otherwise.

        Args:
            key: Overwritten key
        """
        self.on_access(key)

    @abstractmethod
    def on_remove(self, key: str, evicted: bool = False) -> None:
        """Record key removal.

        Args:
            key: Removed key
            evicted: True when the removal was a capacity eviction
        """
        pass

    @abstractmethod
    def select_victim(self, exclude: Optional[str] = None) -> Optional[str]:
        """Choose key to evict.

        Args:
            exclude: Key that must not be chosen

        Returns:
            Key to evict or None
        """
        pass

    @abstractmethod
    def candidates(self) -> List[str]:
        """Get the full eviction order.

        Returns:
            Tracked keys, next victim first
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all tracked keys."""
        pass

    @abstractmethod
    def contains(self, key: str) -> bool:
        """Check if key is tracked."""
        pass

    @abstractmethod
    def size(self) -> int:
        """Get number of tracked keys."""
        pass

    def get_stats(self) -> EvictionStats:
        """Get eviction statistics.

        Returns:
            EvictionStats instance
        """
        self._stats.current_size = self.size()
        return self._stats

    @staticmethod
    def _first(keys, exclude: Optional[str]) -> Optional[str]:
        """First key of an ordered iterable that is not ``exclude``."""
        for key in keys:
            if key != exclude:
                return key
        return None

    def __len__(self) -> int:
        """Get tracked key count."""
        return self.size()

    def __contains__(self, key: str) -> bool:
        """Check if key tracked."""
        return self.contains(key)


def create_policy(
    policy: "EvictionPolicyType | str",
    max_size: int,
    seed: Optional[int] = None,
) -> EvictionPolicy:
    """Build an eviction policy by type.

    Args:
        policy: Policy type or its name
        max_size: Capacity of the owning store
        seed: Seed for the random policy

    Returns:
        EvictionPolicy instance
    """
    from keelcache_core.eviction.arc import ARCPolicy
    from keelcache_core.eviction.fifo import FIFOPolicy
    from keelcache_core.eviction.lfu import LFUPolicy
    from keelcache_core.eviction.lru import LRUPolicy
    from keelcache_core.eviction.randomized import RandomPolicy

    if isinstance(policy, str):
        policy = EvictionPolicyType(policy.lower())

    if policy is EvictionPolicyType.LRU:
        return LRUPolicy(max_size)
    if policy is EvictionPolicyType.LFU:
        return LFUPolicy(max_size)
    if policy is EvictionPolicyType.FIFO:
        return FIFOPolicy(max_size)
    if policy is EvictionPolicyType.RANDOM:
        return RandomPolicy(max_size, seed=seed)
    return ARCPolicy(max_size)


__all__ = ["EvictionPolicy", "EvictionPolicyType", "EvictionStats", "create_policy"]
