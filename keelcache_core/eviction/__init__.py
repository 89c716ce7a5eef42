"""Eviction module - Cache eviction policies."""

from keelcache_core.eviction.policy import (
    EvictionPolicy,
    EvictionPolicyType,
    EvictionStats,
    create_policy,
)
from keelcache_core.eviction.lru import LRUPolicy
from keelcache_core.eviction.lfu import LFUPolicy
from keelcache_core.eviction.fifo import FIFOPolicy
from keelcache_core.eviction.randomized import RandomPolicy
from keelcache_core.eviction.arc import ARCPolicy

__all__ = [
    "EvictionPolicy",
    "EvictionPolicyType",
    "EvictionStats",
    "create_policy",
    "LRUPolicy",
    "LFUPolicy",
    "FIFOPolicy",
    "RandomPolicy",
    "ARCPolicy",
]
