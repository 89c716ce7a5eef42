"""KeelCache Read-Through Strategy - Load on Miss.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, List, Optional

from keelcache_core.cache.store import EntryStore
from keelcache_core.errors import NotFoundError
from keelcache_core.metrics.collector import MetricsCollector
from keelcache_core.strategy.base import Loader, SourceCaller, Strategy
from keelcache_core.strategy.modes import StrategyType

logger = logging.getLogger(__name__)


class ReadThroughStrategy(Strategy):
    """Read-through: misses are filled from the loader automatically.

    Loader errors surface as SourceLoadError and nothing is cached. With
    ``negative_ttl`` set, a loader that raises NotFoundError is remembered
    for that many seconds and repeat lookups fail fast without calling it.
    Remembered misses are capped at the store capacity, oldest dropped
    first.

    Example:
        strategy = ReadThroughStrategy(store, loader=db.fetch)
        strategy.get("user:1")  # miss -> db.fetch("user:1") -> cached
        strategy.get("user:1")  # hit
    """

    strategy_type = StrategyType.READ_THROUGH

    def __init__(
        self,
        store: EntryStore,
        loader: Loader,
        metrics: Optional[MetricsCollector] = None,
        caller: Optional[SourceCaller] = None,
        load_ttl: Optional[float] = None,
        negative_ttl: Optional[float] = None,
    ):
        """Initialize read-through strategy.

        Args:
            store: Entry store
            loader: Source for missed keys
            metrics: Metrics collector
            caller: Runs source calls with timeouts
            load_ttl: TTL for loaded values
            negative_ttl: Seconds to remember loader NotFoundError
        """
        if loader is None:
            raise ValueError("ReadThroughStrategy requires a loader")
        super().__init__(store, metrics, loader=loader, caller=caller, load_ttl=load_ttl)
        self.negative_ttl = negative_ttl
        self._negative: OrderedDict[str, float] = OrderedDict()

    def _known_missing(self, key: str) -> bool:
        with self.store.lock:
            expires_at = self._negative.get(key)
            if expires_at is None:
                return False
            if self.store.now() >= expires_at:
                del self._negative[key]
                return False
            return True

    def _forget_missing(self, key: str) -> None:
        with self.store.lock:
            self._negative.pop(key, None)

    def _remember_missing(self, key: str) -> None:
        with self.store.lock:
            self._negative[key] = self.store.now() + self.negative_ttl
            self._negative.move_to_end(key)
            while len(self._negative) > self.store.capacity:
                self._negative.popitem(last=False)

    def get(self, key: str, timeout: Optional[float] = None) -> Any:
        if self.negative_ttl is not None and self._known_missing(key):
            self.metrics.record_miss()
            raise NotFoundError(key)
        return super().get(key, timeout)

    def _call_loader(self, key: str, timeout: Optional[float]) -> Any:
        try:
            return super()._call_loader(key, timeout)
        except NotFoundError:
            if self.negative_ttl is not None:
                self._remember_missing(key)
                logger.debug(f"Remembering missing key {key!r} for {self.negative_ttl}s")
            raise

    def put(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        size_cost: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> List[str]:
        self._forget_missing(key)
        return super().put(key, value, ttl=ttl, size_cost=size_cost, timeout=timeout)

    def delete(self, key: str) -> bool:
        self._forget_missing(key)
        return super().delete(key)


__all__ = ["ReadThroughStrategy"]
