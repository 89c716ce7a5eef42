"""Cache module - Core caching functionality.

This module provides the main cache interface, the bounded entry store
and entry management.
"""

from keelcache_core.cache.entry import (
    CacheEntry,
    EntryState,
    EntryMetadata,
)
from keelcache_core.cache.store import (
    EntryStore,
    RemovalListener,
    EVICTED,
    EXPIRED,
    DELETED,
)
from keelcache_core.cache.cache import (
    Cache,
    CacheConfig,
)

__all__ = [
    "CacheEntry",
    "EntryState",
    "EntryMetadata",
    "EntryStore",
    "RemovalListener",
    "EVICTED",
    "EXPIRED",
    "DELETED",
    "Cache",
    "CacheConfig",
]
