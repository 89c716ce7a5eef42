"""KeelCache Cache - Main Cache Implementation.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import fnmatch
import functools
import logging
import threading
import time
from dataclasses import asdict, dataclass, fields
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
)

from keelcache_core.cache.store import DELETED, EVICTED, EXPIRED, EntryStore
from keelcache_core.errors import ConfigurationError, NotFoundError
from keelcache_core.eviction.policy import EvictionPolicy, EvictionPolicyType, create_policy
from keelcache_core.expiration.manager import ExpirationManager, ExpirySweeper
from keelcache_core.metrics.collector import CacheMetrics, MetricsCollector, Timer
from keelcache_core.protocol.sizer import SIZER_NAMES, Sizer, get_sizer
from keelcache_core.strategy.modes import StrategyType

if TYPE_CHECKING:
    from keelcache_core.strategy.base import Loader, Strategy, Writer
    from keelcache_core.strategy.write_behind import WriteErrorCallback

logger = logging.getLogger(__name__)

_MISSING = object()

# Accepted alternative spellings for CacheConfig.from_dict
_CONFIG_ALIASES = {
    "evictionPolicy": "eviction_policy",
    "defaultTTL": "default_ttl",
    "writeBehindQueueDepth": "write_behind_queue_depth",
    "writeRetryLimit": "write_retry_limit",
    "sourceTimeout": "source_timeout",
    "sweepInterval": "sweep_interval",
    "randomSeed": "random_seed",
    "negativeTTL": "negative_ttl",
}


@dataclass
class CacheConfig:
    """Cache configuration.

    Attributes:
        name: Cache name (used in thread names and logs)
        capacity: Maximum aggregate size cost (entry count with the unit sizer)
        eviction_policy: Eviction algorithm
        default_ttl: TTL in seconds when put() passes none
        strategy: Read/write strategy
        write_behind_queue_depth: Maximum queued write-behind writes
        write_retry_limit: Write-behind retries after the first attempt
        retry_base_delay: Delay before the first write-behind retry
        retry_max_delay: Upper bound for write-behind retry delays
        source_timeout: Default loader/writer timeout in seconds
        sweep_interval: Seconds between background expiry sweeps, None to
            rely on lazy expiry only
        random_seed: Seed for the random eviction policy
        negative_ttl: Seconds to remember loader NotFoundError (read-through)
        sizer: Cost function name: unit, getsizeof, json, pickle, msgpack
    """

    name: str = "cache"
    capacity: int = 10000
    eviction_policy: EvictionPolicyType = EvictionPolicyType.LRU
    default_ttl: Optional[float] = None
    strategy: StrategyType = StrategyType.ASIDE
    write_behind_queue_depth: int = 1000
    write_retry_limit: int = 3
    retry_base_delay: float = 0.05
    retry_max_delay: float = 2.0
    source_timeout: Optional[float] = None
    sweep_interval: Optional[float] = None
    random_seed: Optional[int] = None
    negative_ttl: Optional[float] = None
    sizer: str = "unit"

    def __post_init__(self):
        try:
            if isinstance(self.eviction_policy, str):
                self.eviction_policy = EvictionPolicyType(self.eviction_policy.lower())
            if isinstance(self.strategy, str):
                self.strategy = StrategyType(self.strategy.lower())
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    def validate(self) -> "CacheConfig":
        """Check value ranges.

        Returns:
            Self for chaining

        Raises:
            ConfigurationError: Listing every invalid field
        """
        problems = []
        if self.capacity <= 0:
            problems.append(f"capacity must be positive, got {self.capacity}")
        for name in ("default_ttl", "source_timeout", "sweep_interval", "negative_ttl"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                problems.append(f"{name} must be positive, got {value}")
        if self.write_behind_queue_depth <= 0:
            problems.append(
                f"write_behind_queue_depth must be positive, got {self.write_behind_queue_depth}"
            )
        if self.write_retry_limit < 0:
            problems.append(f"write_retry_limit must be >= 0, got {self.write_retry_limit}")
        if self.retry_base_delay < 0 or self.retry_max_delay < self.retry_base_delay:
            problems.append("retry delays must satisfy 0 <= retry_base_delay <= retry_max_delay")
        if self.sizer not in SIZER_NAMES:
            problems.append(f"sizer must be one of {', '.join(SIZER_NAMES)}, got {self.sizer!r}")

        if problems:
            raise ConfigurationError(
                "Invalid cache configuration: " + "; ".join(problems),
                {"problems": problems},
            )
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        """Create from dictionary.

        Accepts field names and their camelCase spellings.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        unknown = []
        for key, value in data.items():
            name = _CONFIG_ALIASES.get(key, key)
            if name in known:
                kwargs[name] = value
            else:
                unknown.append(key)
        if unknown:
            raise ConfigurationError(
                f"Unknown cache configuration keys: {', '.join(sorted(unknown))}",
                {"unknown": unknown},
            )
        return cls(**kwargs).validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["eviction_policy"] = self.eviction_policy.value
        data["strategy"] = self.strategy.value
        return data


class Cache:
    """Bounded in-process cache.

    Features:
    - Eviction policies: LRU, LFU, FIFO, Random, ARC
    - Lazy and background TTL expiration
    - Cache-aside, read-through, write-through and write-behind strategies
    - Size-cost capacity with pluggable sizers
    - Metrics and removal callbacks
    - Thread-safe operations

    Example:
        cache = Cache(CacheConfig(capacity=1000))

        # Cache-aside
        cache.put("key", "value", ttl=300)
        value = cache.get("key")

        # Read-through
        users = Cache(
            CacheConfig(strategy=StrategyType.READ_THROUGH),
            loader=lambda key: db.fetch_user(key),
        )
        user = users.get("user:1")

        # Decorator
        @cache.cached(ttl=60)
        def expensive_operation(id):
            return compute(id)
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        loader: Optional["Loader"] = None,
        writer: Optional["Writer"] = None,
        on_write_error: Optional["WriteErrorCallback"] = None,
        policy: Optional[EvictionPolicy] = None,
        sizer: Optional[Sizer] = None,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize cache.

        Args:
            config: Cache configuration
            loader: Source for missed keys
            writer: Sink for puts (write-through/write-behind)
            on_write_error: Called when a write-behind write gives up
            policy: Eviction policy overriding config.eviction_policy
            sizer: Sizer overriding config.sizer
            metrics: Metrics collector
            clock: Time source in seconds
        """
        self.config = (config or CacheConfig()).validate()
        self.metrics = metrics or MetricsCollector()

        self._policy = policy or create_policy(
            self.config.eviction_policy,
            self.config.capacity,
            seed=self.config.random_seed,
        )
        self._store = EntryStore(
            capacity=self.config.capacity,
            policy=self._policy,
            expiration=ExpirationManager(),
            sizer=sizer or get_sizer(self.config.sizer),
            default_ttl=self.config.default_ttl,
            clock=clock,
            listener=self._on_removal,
        )
        self._strategy = self._build_strategy(loader, writer, on_write_error)

        self._sweeper: Optional[ExpirySweeper] = None
        if self.config.sweep_interval is not None:
            self._sweeper = ExpirySweeper(
                self._store.sweep_expired,
                interval=self.config.sweep_interval,
                name=self.config.name,
            )

        # Callbacks
        self._on_evict: Optional[Callable[[str, Any], None]] = None
        self._on_expire: Optional[Callable[[str, Any], None]] = None

    def _build_strategy(
        self,
        loader: Optional["Loader"],
        writer: Optional["Writer"],
        on_write_error: Optional["WriteErrorCallback"],
    ) -> "Strategy":
        # Import here to avoid circular imports
        from keelcache_core.strategy.base import CacheAsideStrategy, SourceCaller
        from keelcache_core.strategy.read_through import ReadThroughStrategy
        from keelcache_core.strategy.write_behind import WriteBehindStrategy
        from keelcache_core.strategy.write_through import WriteThroughStrategy

        cfg = self.config
        caller = SourceCaller(default_timeout=cfg.source_timeout, name=cfg.name)

        if cfg.strategy is StrategyType.READ_THROUGH:
            if loader is None:
                raise ConfigurationError("READ_THROUGH strategy requires a loader")
            return ReadThroughStrategy(
                self._store,
                loader,
                metrics=self.metrics,
                caller=caller,
                negative_ttl=cfg.negative_ttl,
            )

        if cfg.strategy is StrategyType.WRITE_THROUGH:
            if writer is None:
                raise ConfigurationError("WRITE_THROUGH strategy requires a writer")
            return WriteThroughStrategy(
                self._store, writer, metrics=self.metrics, loader=loader, caller=caller
            )

        if cfg.strategy is StrategyType.WRITE_BEHIND:
            if writer is None:
                raise ConfigurationError("WRITE_BEHIND strategy requires a writer")
            return WriteBehindStrategy(
                self._store,
                writer,
                metrics=self.metrics,
                loader=loader,
                caller=caller,
                queue_depth=cfg.write_behind_queue_depth,
                retry_limit=cfg.write_retry_limit,
                retry_base_delay=cfg.retry_base_delay,
                retry_max_delay=cfg.retry_max_delay,
                on_error=on_write_error,
                name=cfg.name,
            )

        if loader is not None or writer is not None:
            logger.warning(f"Cache {cfg.name}: loader/writer ignored by the ASIDE strategy")
        return CacheAsideStrategy(self._store, metrics=self.metrics, caller=caller)

    @property
    def strategy(self) -> "Strategy":
        return self._strategy

    @property
    def policy(self) -> EvictionPolicy:
        return self._policy

    @property
    def store(self) -> EntryStore:
        return self._store

    @property
    def capacity(self) -> int:
        return self._store.capacity

    def start(self) -> None:
        """Start cache background tasks."""
        if self._sweeper is not None:
            self._sweeper.start()
        self._strategy.start()
        logger.info(f"Cache {self.config.name} started")

    def stop(self, flush: bool = True, timeout: Optional[float] = None) -> None:
        """Stop cache background tasks.

        Args:
            flush: Let pending write-behind writes finish first
            timeout: Seconds to wait for the flush
        """
        if self._sweeper is not None:
            self._sweeper.stop()
        self._strategy.close(flush=flush, timeout=timeout)
        logger.info(f"Cache {self.config.name} stopped")

    def get(self, key: str, default: Any = _MISSING, timeout: Optional[float] = None) -> Any:
        """Get value from cache.

        Args:
            key: Cache key
            default: Returned on a miss instead of raising
            timeout: Loader timeout in seconds

        Returns:
            Cached or loaded value, or default

        Raises:
            NotFoundError: Miss with no loader and no default
            SourceLoadError: Loader failed
            SourceTimeoutError: Loader timed out
        """
        with Timer(self.metrics):
            try:
                return self._strategy.get(key, timeout=timeout)
            except NotFoundError:
                if default is _MISSING:
                    raise
                return default

    def put(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        size_cost: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> List[str]:
        """Put value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: TTL in seconds
            size_cost: Explicit cost instead of the sizer's
            timeout: Writer timeout (write-through)

        Returns:
            Keys evicted to make room

        Raises:
            CapacityExceededError: Value alone exceeds capacity
            SourceWriteError: Write-through writer failed
            SourceTimeoutError: Write-through writer timed out
            QueueFullError: Write-behind backlog saturated
        """
        with Timer(self.metrics):
            return self._strategy.put(key, value, ttl=ttl, size_cost=size_cost, timeout=timeout)

    def delete(self, key: str) -> bool:
        """Delete key from cache.

        Returns:
            True if deleted, False if absent
        """
        with Timer(self.metrics):
            return self._strategy.delete(key)

    def exists(self, key: str) -> bool:
        """Check for a live entry without counting a hit or miss."""
        return self._store.contains(key)

    def is_expired(self, key: str, now: Optional[float] = None) -> bool:
        return self._store.is_expired(key, now)

    def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Get multiple values.

        Args:
            keys: Keys to look up

        Returns:
            Dict of key -> value for keys found
        """
        result = {}
        for key in keys:
            try:
                result[key] = self.get(key)
            except NotFoundError:
                continue
        return result

    def put_many(self, items: Dict[str, Any], ttl: Optional[float] = None) -> List[str]:
        """Put multiple values.

        Returns:
            All keys evicted along the way
        """
        evicted: List[str] = []
        for key, value in items.items():
            evicted.extend(self.put(key, value, ttl=ttl))
        return evicted

    def delete_many(self, keys: Iterable[str]) -> int:
        """Delete multiple keys.

        Returns:
            Number deleted
        """
        return sum(1 for key in keys if self.delete(key))

    def get_or_set(
        self,
        key: str,
        default_factory: Callable[[], Any],
        ttl: Optional[float] = None,
    ) -> Any:
        """Cache-aside helper: get, or compute and store on a miss.

        Args:
            key: Cache key
            default_factory: Computes the value on a miss
            ttl: TTL for a computed value

        Returns:
            Cached or computed value
        """
        try:
            return self.get(key)
        except NotFoundError:
            value = default_factory()
            self.put(key, value, ttl=ttl)
            return value

    def cached(
        self,
        ttl: Optional[float] = None,
        key_builder: Optional[Callable[..., str]] = None,
    ):
        """Decorator to cache function results.

        Args:
            ttl: Cache TTL
            key_builder: Function to build cache key

        Returns:
            Decorator function
        """
        def decorator(func: Callable) -> Callable:
            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                if key_builder:
                    cache_key = key_builder(*args, **kwargs)
                else:
                    key_parts = [func.__name__]
                    key_parts.extend(str(a) for a in args)
                    key_parts.extend(f"{k}={v}" for k, v in sorted(kwargs.items()))
                    cache_key = ":".join(key_parts)

                return self.get_or_set(cache_key, lambda: func(*args, **kwargs), ttl=ttl)

            def cache_clear():
                """Clear cached results."""
                self.delete_many(self.keys(f"{func.__name__}:*") + self.keys(func.__name__))

            wrapper.cache_clear = cache_clear
            wrapper.cache = self
            return wrapper

        return decorator

    def keys(self, pattern: Optional[str] = None) -> List[str]:
        """Get live keys.

        Args:
            pattern: Optional glob pattern

        Returns:
            List of keys
        """
        keys = self._store.keys()
        if pattern is None:
            return keys
        return [k for k in keys if fnmatch.fnmatch(k, pattern)]

    def clear(self) -> int:
        """Clear all entries without firing callbacks.

        Returns:
            Number of entries cleared
        """
        return self._store.clear()

    def sweep_expired(
        self,
        now: Optional[float] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> List[str]:
        """Purge expired entries now.

        Returns:
            Keys purged
        """
        return self._store.sweep_expired(now=now, stop_event=stop_event)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for pending write-behind writes.

        Returns:
            True if nothing is left pending
        """
        flush = getattr(self._strategy, "flush", None)
        return flush(timeout) if flush is not None else True

    def dirty_keys(self) -> List[str]:
        """Get keys whose write-behind write has not succeeded yet."""
        return self._store.dirty_keys()

    def eviction_candidates(self) -> List[str]:
        """Get the current eviction order, next victim first."""
        with self._store.lock:
            return self._policy.candidates()

    def size(self) -> int:
        """Get entry count."""
        return len(self._store)

    def size_used(self) -> int:
        """Get aggregate size cost of entries."""
        return self._store.size_used()

    def _on_removal(self, key: str, value: Any, reason: str) -> None:
        if reason == EVICTED:
            self.metrics.record_eviction()
            logger.debug(f"Cache {self.config.name}: evicted {key!r}")
            if self._on_evict:
                self._on_evict(key, value)
        elif reason == EXPIRED:
            self.metrics.record_expiration()
            logger.debug(f"Cache {self.config.name}: expired {key!r}")
            if self._on_expire:
                self._on_expire(key, value)
        elif reason != DELETED:
            logger.warning(f"Unknown removal reason {reason!r} for {key!r}")

    def on_evict(self, callback: Callable[[str, Any], None]) -> "Cache":
        """Set eviction callback.

        Args:
            callback: Function(key, value)

        Returns:
            Self for chaining
        """
        self._on_evict = callback
        return self

    def on_expire(self, callback: Callable[[str, Any], None]) -> "Cache":
        """Set expiration callback.

        Args:
            callback: Function(key, value)

        Returns:
            Self for chaining
        """
        self._on_expire = callback
        return self

    def get_stats(self) -> CacheMetrics:
        """Get cache statistics.

        Returns:
            CacheMetrics snapshot
        """
        self.metrics.set_entry_count(len(self._store))
        self.metrics.set_size_used(self._store.size_used())
        return self.metrics.get_metrics()

    def reset_stats(self) -> None:
        """Reset statistics."""
        self.metrics.reset()

    def __contains__(self, key: str) -> bool:
        return self.exists(key)

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.put(key, value)

    def __delitem__(self, key: str) -> None:
        if not self.delete(key):
            raise KeyError(key)

    def __enter__(self) -> "Cache":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def __repr__(self) -> str:
        return (
            f"Cache(name={self.config.name!r}, entries={len(self._store)}, "
            f"policy={self.config.eviction_policy.name}, strategy={self.config.strategy.name})"
        )


__all__ = ["Cache", "CacheConfig"]
