"""Strategy module - Read/write consistency strategies."""

from keelcache_core.strategy.modes import StrategyType
from keelcache_core.strategy.base import (
    Loader,
    Writer,
    SourceCaller,
    KeyLocks,
    Strategy,
    CacheAsideStrategy,
)
from keelcache_core.strategy.read_through import ReadThroughStrategy
from keelcache_core.strategy.write_through import WriteThroughStrategy
from keelcache_core.strategy.write_behind import (
    WriteBehindStrategy,
    PendingWrite,
    WriteErrorCallback,
)
from keelcache_core.strategy.backoff import calculate_backoff_delay

__all__ = [
    "Loader",
    "Writer",
    "StrategyType",
    "SourceCaller",
    "KeyLocks",
    "Strategy",
    "CacheAsideStrategy",
    "ReadThroughStrategy",
    "WriteThroughStrategy",
    "WriteBehindStrategy",
    "PendingWrite",
    "WriteErrorCallback",
    "calculate_backoff_delay",
]
