"""KeelCache - In-Process Cache Engine.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

A bounded, thread-safe in-process cache with:
- Multiple eviction policies (LRU, LFU, FIFO, Random, ARC)
- Per-entry TTL with lazy and background expiration
- Cache-aside, read-through, write-through and write-behind strategies
- Size-cost capacity with pluggable sizers
- Cache statistics and monitoring

Architecture:
    ┌─────────────────────────────────────────────────────────────────┐
    │                        KeelCache Engine                         │
    ├─────────────────────────────────────────────────────────────────┤
    │  ┌─────────────┐  ┌─────────────┐  ┌─────────────┐             │
    │  │   Cache     │  │   Config    │  │   Metrics   │   FACADE    │
    │  │  get/put    │  │  validate   │  │  hit rate   │   LAYER     │
    │  └──────┬──────┘  └─────────────┘  └─────────────┘             │
    │         │                                                       │
    │  ┌──────┴────────────────────────────────────────┐             │
    │  │              Strategies                        │             │
    │  │  ┌───────┐ ┌────────────┐ ┌───────┐ ┌───────┐ │  STRATEGY   │
    │  │  │ Aside │ │ReadThrough │ │WThru  │ │WBehind│ │  LAYER      │
    │  │  └───────┘ └────────────┘ └───────┘ └───────┘ │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │              Entry Store                       │             │
    │  │   ┌────────┐  ┌────────────┐  ┌────────┐     │   STORE     │
    │  │   │ Entry  │  │ Expiration │  │ Sizer  │     │   LAYER     │
    │  │   └────────┘  └────────────┘  └────────┘     │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │              Eviction Policies                 │             │
    │  │  ┌─────┐ ┌─────┐ ┌──────┐ ┌────────┐ ┌─────┐  │  EVICTION   │
    │  │  │ LRU │ │ LFU │ │ FIFO │ │ Random │ │ ARC │  │  LAYER      │
    │  │  └─────┘ └─────┘ └──────┘ └────────┘ └─────┘  │             │
    │  └──────────────────────────────────────────────┘             │
    └─────────────────────────────────────────────────────────────────┘

Example Usage:
    from keelcache_core import Cache, CacheConfig, StrategyType

    # Simple cache-aside cache
    cache = Cache(CacheConfig(capacity=1000, eviction_policy="lfu"))
    cache.put("user:1", {"name": "John"}, ttl=300)
    user = cache.get("user:1")

    # Read-through with a loader
    users = Cache(
        CacheConfig(strategy=StrategyType.READ_THROUGH, source_timeout=2.0),
        loader=lambda key: fetch_from_database(key),
    )
    user = users.get("user:2")

    # Write-behind with a writer
    with Cache(
        CacheConfig(strategy="write_behind", write_retry_limit=5),
        writer=save_to_database,
        on_write_error=lambda key, value, error: alert(error),
    ) as sessions:
        sessions.put("session:1", session)

    # Cache decorator
    @cache.cached(ttl=60)
    def get_expensive_data(id: str):
        return fetch_from_database(id)
"""

__version__ = "1.0.0"
__author__ = "BlackRoad OS"

from keelcache_core.errors import (
    CacheError,
    ConfigurationError,
    CapacityExceededError,
    NotFoundError,
    SourceError,
    SourceLoadError,
    SourceWriteError,
    SourceTimeoutError,
    QueueFullError,
)
from keelcache_core.cache.entry import (
    CacheEntry,
    EntryState,
    EntryMetadata,
)
from keelcache_core.cache.store import EntryStore
from keelcache_core.cache.cache import (
    Cache,
    CacheConfig,
)
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
from keelcache_core.expiration.manager import (
    ExpirationManager,
    ExpirySweeper,
)
from keelcache_core.strategy.modes import StrategyType
from keelcache_core.strategy.base import (
    Strategy,
    CacheAsideStrategy,
    SourceCaller,
)
from keelcache_core.strategy.read_through import ReadThroughStrategy
from keelcache_core.strategy.write_through import WriteThroughStrategy
from keelcache_core.strategy.write_behind import WriteBehindStrategy
from keelcache_core.protocol.sizer import (
    Sizer,
    UnitSizer,
    GetSizeOfSizer,
    EncodedSizer,
    JSONSizer,
    PickleSizer,
    MsgPackSizer,
    get_sizer,
)
from keelcache_core.metrics.collector import (
    MetricsCollector,
    CacheMetrics,
)

__all__ = [
    # Errors
    "CacheError",
    "ConfigurationError",
    "CapacityExceededError",
    "NotFoundError",
    "SourceError",
    "SourceLoadError",
    "SourceWriteError",
    "SourceTimeoutError",
    "QueueFullError",
    # Cache
    "Cache",
    "CacheConfig",
    "CacheEntry",
    "EntryState",
    "EntryMetadata",
    "EntryStore",
    # Eviction
    "EvictionPolicy",
    "EvictionPolicyType",
    "EvictionStats",
    "create_policy",
    "LRUPolicy",
    "LFUPolicy",
    "FIFOPolicy",
    "RandomPolicy",
    "ARCPolicy",
    # Expiration
    "ExpirationManager",
    "ExpirySweeper",
    # Strategy
    "StrategyType",
    "Strategy",
    "CacheAsideStrategy",
    "SourceCaller",
    "ReadThroughStrategy",
    "WriteThroughStrategy",
    "WriteBehindStrategy",
    # Protocol
    "Sizer",
    "UnitSizer",
    "GetSizeOfSizer",
    "EncodedSizer",
    "JSONSizer",
    "PickleSizer",
    "MsgPackSizer",
    "get_sizer",
    # Metrics
    "MetricsCollector",
    "CacheMetrics",
]
