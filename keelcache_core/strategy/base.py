"""KeelCache Strategy - Read/Write Strategy Interface.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from keelcache_core.cache.store import EntryStore
from keelcache_core.errors import NotFoundError, SourceLoadError, SourceTimeoutError
from keelcache_core.metrics.collector import MetricsCollector
from keelcache_core.strategy.modes import StrategyType

logger = logging.getLogger(__name__)

# loader(key) -> value, raising on failure
Loader = Callable[[str], Any]

# writer(key, value), raising on failure
Writer = Callable[[str, Any], None]


class SourceCaller:
    """Runs loader/writer calls, optionally bounded by a timeout.

    Without a timeout the call runs on the calling thread. With one it runs
    on a small thread pool and the caller stops waiting once the timeout
    elapses; the abandoned call cannot be interrupted and finishes in the
    background with its result discarded.
    """

    def __init__(
        self,
        default_timeout: Optional[float] = None,
        max_workers: int = 4,
        name: str = "cache",
    ):
        """Initialize caller.

        Args:
            default_timeout: Timeout used when a call passes none
            max_workers: Pool size for timed calls
            name: Owner name for pool threads
        """
        self.default_timeout = default_timeout
        self.max_workers = max_workers
        self.name = name
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix=f"Cache-{self.name}-source",
                )
            return self._executor

    def call(
        self,
        key: str,
        func: Callable[..., Any],
        *args: Any,
        timeout: Optional[float] = None,
    ) -> Any:
        """Call ``func(*args)`` on behalf of ``key``.

        Raises:
            SourceTimeoutError: If the call outlives the timeout
            Exception: Whatever the source itself raises
        """
        timeout = timeout if timeout is not None else self.default_timeout
        if timeout is None:
            return func(*args)

        future = self._pool().submit(func, *args)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError:
            if future.done() and not future.cancelled():
                # Finished after the wait gave up
                return future.result()
            future.cancel()
            raise SourceTimeoutError(key, timeout) from None

    def shutdown(self) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None


class KeyLocks:
    """Per-key re-entrant locks, created on demand and dropped when idle."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, List[Any]] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            slot = self._locks.get(key)
            if slot is None:
                slot = self._locks[key] = [threading.RLock(), 0]
            slot[1] += 1

        slot[0].acquire()
        try:
            yield
        finally:
            slot[0].release()
            with self._guard:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class Strategy(ABC):
    """Base read/write strategy.

    Each read walks CHECK_CACHE -> HIT: return | MISS -> LOAD_SOURCE ->
    POPULATE_CACHE -> return. Without a loader the walk stops at the miss
    with NotFoundError. Loader calls happen outside the store lock; calls
    for the same key are serialized so concurrent misses load once.

    Subclasses override ``put``/``delete`` for their write behavior.
    """

    strategy_type: StrategyType = StrategyType.ASIDE

    def __init__(
        self,
        store: EntryStore,
        metrics: Optional[MetricsCollector] = None,
        loader: Optional[Loader] = None,
        caller: Optional[SourceCaller] = None,
        load_ttl: Optional[float] = None,
    ):
        """Initialize strategy.

        Args:
            store: Entry store
            metrics: Metrics collector
            loader: Source for missed keys
            caller: Runs source calls with timeouts
            load_ttl: TTL for loaded values (store default if None)
        """
        self.store = store
        self.metrics = metrics or MetricsCollector()
        self.loader = loader
        self.load_ttl = load_ttl
        self._caller = caller or SourceCaller()
        self._key_locks = KeyLocks()

    def get(self, key: str, timeout: Optional[float] = None) -> Any:
        """Get value, loading it on a miss when a loader is configured.

        Args:
            key: Cache key
            timeout: Loader timeout in seconds

        Returns:
            Cached or loaded value

        Raises:
            NotFoundError: Miss with nothing to load from
            SourceLoadError: Loader raised
            SourceTimeoutError: Loader timed out
        """
        value, found = self.store.get(key)
        if found:
            self.metrics.record_hit()
            return value

        self.metrics.record_miss()
        if self.loader is None:
            raise NotFoundError(key)
        return self._load(key, timeout)

    def _load(self, key: str, timeout: Optional[float]) -> Any:
        with self._key_locks.hold(key):
            # Another caller may have loaded it while we waited
            value, found = self.store.get(key)
            if found:
                return value

            value = self._call_loader(key, timeout)
            self.store.put(key, value, ttl=self.load_ttl)
            self.metrics.record_set()
            return value

    def _call_loader(self, key: str, timeout: Optional[float]) -> Any:
        try:
            value = self._caller.call(key, self.loader, key, timeout=timeout)
        except SourceTimeoutError:
            self.metrics.record_load_failure()
            logger.error(f"Loader timed out for {key!r}")
            raise
        except NotFoundError:
            self.metrics.record_load_failure()
            raise
        except Exception as e:
            self.metrics.record_load_failure()
            logger.error(f"Loader failed for {key!r}: {e}")
            raise SourceLoadError(key, e) from e

        self.metrics.record_load()
        return value

    def put(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        size_cost: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> List[str]:
        """Store a value.

        Args:
            key: Cache key
            value: Value
            ttl: TTL in seconds
            size_cost: Explicit cost
            timeout: Writer timeout, for strategies that write

        Returns:
            Keys evicted to make room
        """
        with self._key_locks.hold(key):
            evicted = self.store.put(key, value, ttl=ttl, size_cost=size_cost)
        self.metrics.record_set()
        return evicted

    def delete(self, key: str) -> bool:
        """Remove key from the cache.

        Returns:
            True if an entry was removed
        """
        with self._key_locks.hold(key):
            removed = self.store.delete(key)
        if removed:
            self.metrics.record_delete()
        return removed

    def start(self) -> None:
        """Start background work, if any."""

    def close(self, flush: bool = True, timeout: Optional[float] = None) -> None:
        """Release resources."""
        self._caller.shutdown()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(store={self.store!r})"


class CacheAsideStrategy(Strategy):
    """Cache-aside: the caller loads on a miss and puts the result.

    Pure delegation to the entry store.

    Example:
        try:
            user = strategy.get("user:1")
        except NotFoundError:
            user = db.fetch_user(1)
            strategy.put("user:1", user)
    """

    strategy_type = StrategyType.ASIDE

    def __init__(
        self,
        store: EntryStore,
        metrics: Optional[MetricsCollector] = None,
        caller: Optional[SourceCaller] = None,
    ):
        super().__init__(store, metrics, loader=None, caller=caller)


__all__ = [
    "Loader",
    "Writer",
    "StrategyType",
    "SourceCaller",
    "KeyLocks",
    "Strategy",
    "CacheAsideStrategy",
]
