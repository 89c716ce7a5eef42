"""Tests for Cache class.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import time
import threading
import pytest

from keelcache_core.cache.cache import Cache, CacheConfig
from keelcache_core.errors import (
    ConfigurationError,
    NotFoundError,
    SourceLoadError,
    SourceWriteError,
)
from keelcache_core.eviction.arc import ARCPolicy
from keelcache_core.eviction.policy import EvictionPolicyType
from keelcache_core.strategy.base import CacheAsideStrategy
from keelcache_core.strategy.modes import StrategyType
from keelcache_core.strategy.read_through import ReadThroughStrategy
from keelcache_core.strategy.write_behind import WriteBehindStrategy
from keelcache_core.strategy.write_through import WriteThroughStrategy


class TestCache:
    """Tests for Cache class."""

    def test_basic_operations(self):
        """Test get/put/delete."""
        cache = Cache()

        # Put and get
        cache.put("key1", "value1")
        assert cache.get("key1") == "value1"

        # Delete
        assert cache.delete("key1")
        assert not cache.delete("key1")
        with pytest.raises(NotFoundError):
            cache.get("key1")

    def test_ttl_expiration(self, clock):
        """Test TTL expiration."""
        cache = Cache(clock=clock)

        cache.put("key", "value", ttl=0.1)
        assert cache.get("key") == "value"

        clock.advance(0.2)
        assert cache.get("key", default=None) is None

    def test_default_value(self):
        """Test default value on miss."""
        cache = Cache()

        assert cache.get("missing", default="default") == "default"

    def test_exists(self):
        """Test exists method."""
        cache = Cache()

        assert not cache.exists("key")
        cache.put("key", "value")
        assert cache.exists("key")
        assert cache.get_stats().hits == 0

    def test_clear(self):
        """Test clear method."""
        cache = Cache()

        cache.put("key1", "value1")
        cache.put("key2", "value2")

        count = cache.clear()
        assert count == 2
        assert cache.size() == 0

    def test_keys_pattern(self):
        """Test keys with pattern."""
        cache = Cache()

        cache.put("user:1", "alice")
        cache.put("user:2", "bob")
        cache.put("session:1", "xyz")

        user_keys = cache.keys("user:*")
        assert len(user_keys) == 2
        assert "user:1" in user_keys
        assert "user:2" in user_keys

    def test_get_many(self):
        """Test get_many."""
        cache = Cache()

        cache.put("key1", "value1")
        cache.put("key2", "value2")

        result = cache.get_many(["key1", "key2", "key3"])
        assert result == {"key1": "value1", "key2": "value2"}

    def test_put_many(self):
        """Test put_many returns evicted keys."""
        cache = Cache(CacheConfig(capacity=2))

        evicted = cache.put_many({"key1": "value1", "key2": "value2", "key3": "value3"})
        assert evicted == ["key1"]
        assert cache.get("key3") == "value3"

    def test_delete_many(self):
        """Test delete_many counts removed keys."""
        cache = Cache()
        cache.put("key1", 1)
        cache.put("key2", 2)

        assert cache.delete_many(["key1", "key2", "key3"]) == 2
        assert len(cache) == 0

    def test_get_or_set(self):
        """Test get_or_set."""
        cache = Cache()
        called = [0]

        def factory():
            called[0] += 1
            return "computed"

        # First call computes
        result = cache.get_or_set("key", factory)
        assert result == "computed"
        assert called[0] == 1

        # Second call uses cache
        result = cache.get_or_set("key", factory)
        assert result == "computed"
        assert called[0] == 1

    def test_capacity_eviction(self):
        """Test eviction at capacity."""
        cache = Cache(CacheConfig(capacity=3))

        cache.put("key1", "value1")
        cache.put("key2", "value2")
        cache.put("key3", "value3")
        evicted = cache.put("key4", "value4")  # Should evict key1

        assert evicted == ["key1"]
        assert cache.size() == 3
        assert cache.get("key1", default=None) is None  # Evicted
        assert cache.get_stats().evictions == 1

    def test_evict_callback(self):
        """Test on_evict receives evicted entries."""
        evicted = []
        cache = Cache(CacheConfig(capacity=1)).on_evict(
            lambda key, value: evicted.append((key, value))
        )

        cache.put("a", 1)
        cache.put("b", 2)

        assert evicted == [("a", 1)]

    def test_size_costs(self):
        """Test explicit costs count against capacity."""
        cache = Cache(CacheConfig(capacity=10))

        cache.put("a", "x", size_cost=6)
        cache.put("b", "y", size_cost=4)
        assert cache.size_used() == 10

        cache.put("c", "z", size_cost=5)
        assert cache.size_used() <= 10
        assert "a" not in cache

    def test_eviction_candidates(self):
        """Test eviction order is exposed."""
        cache = Cache(CacheConfig(capacity=3))
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")

        assert cache.eviction_candidates() == ["b", "a"]

    def test_stats(self):
        """Test statistics."""
        cache = Cache()

        cache.put("key", "value")
        cache.get("key")
        cache.get("key")
        cache.get("missing", default=None)

        stats = cache.get_stats()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.sets == 1
        assert stats.entry_count == 1
        assert stats.size_used == 1

    def test_thread_safety(self):
        """Test thread safety."""
        cache = Cache()
        errors = []

        def worker(n):
            try:
                for i in range(100):
                    key = f"key-{n}-{i}"
                    cache.put(key, i)
                    cache.get(key)
                    cache.delete(key)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors

    def test_cached_decorator(self):
        """Test cached decorator."""
        cache = Cache()
        calls = [0]

        @cache.cached(ttl=60)
        def expensive(n):
            calls[0] += 1
            return n * 2

        assert expensive(2) == 4
        assert expensive(2) == 4
        assert calls[0] == 1

        expensive.cache_clear()
        assert expensive(2) == 4
        assert calls[0] == 2

    def test_mapping_protocol(self):
        """Test dict-style access."""
        cache = Cache()

        cache["key"] = "value"
        assert cache["key"] == "value"
        assert "key" in cache
        assert list(cache) == ["key"]

        del cache["key"]
        with pytest.raises(KeyError):
            cache["key"]
        with pytest.raises(KeyError):
            del cache["key"]

    def test_context_manager(self):
        """Test context manager."""
        with Cache() as cache:
            cache.put("key", "value")
            assert cache.get("key") == "value"


class TestCacheStrategies:
    """Tests for strategy selection through the facade."""

    def test_strategy_selection(self):
        """Test each configured strategy builds its class."""
        assert isinstance(Cache().strategy, CacheAsideStrategy)
        assert isinstance(
            Cache(CacheConfig(strategy="read_through"), loader=str).strategy,
            ReadThroughStrategy,
        )
        writer = lambda key, value: None  # noqa: E731
        assert isinstance(
            Cache(CacheConfig(strategy=StrategyType.WRITE_THROUGH), writer=writer).strategy,
            WriteThroughStrategy,
        )
        assert isinstance(
            Cache(CacheConfig(strategy=StrategyType.WRITE_BEHIND), writer=writer).strategy,
            WriteBehindStrategy,
        )

    @pytest.mark.parametrize(
        "strategy", [StrategyType.READ_THROUGH, StrategyType.WRITE_THROUGH, StrategyType.WRITE_BEHIND]
    )
    def test_missing_source_rejected(self, strategy):
        """Test strategies needing a source fail without one."""
        with pytest.raises(ConfigurationError):
            Cache(CacheConfig(strategy=strategy))

    def test_read_through(self):
        """Test read-through loads once."""
        calls = []

        def loader(key):
            calls.append(key)
            return {"id": key}

        cache = Cache(CacheConfig(strategy=StrategyType.READ_THROUGH), loader=loader)

        assert cache.get("user:1") == {"id": "user:1"}
        assert cache.get("user:1") == {"id": "user:1"}
        assert calls == ["user:1"]

        stats = cache.get_stats()
        assert (stats.misses, stats.hits, stats.loads) == (1, 1, 1)

    def test_read_through_failure(self):
        """Test loader errors propagate even with a default."""
        def loader(key):
            raise RuntimeError("db down")

        cache = Cache(CacheConfig(strategy=StrategyType.READ_THROUGH), loader=loader)

        with pytest.raises(SourceLoadError):
            cache.get("key", default="fallback")
        assert len(cache) == 0

    def test_write_through_failure(self):
        """Test a failed write leaves the cache unchanged."""
        def writer(key, value):
            raise IOError("disk full")

        cache = Cache(CacheConfig(strategy=StrategyType.WRITE_THROUGH), writer=writer)

        with pytest.raises(SourceWriteError):
            cache.put("key", "value")
        assert "key" not in cache

    def test_write_behind_error_callback(self):
        """Test write-behind exhaustion reaches the error callback once."""
        attempts = []
        errors = []

        def writer(key, value):
            attempts.append(key)
            raise IOError("unreachable")

        config = CacheConfig(
            strategy=StrategyType.WRITE_BEHIND,
            write_retry_limit=2,
            retry_base_delay=0.001,
            retry_max_delay=0.01,
        )
        with Cache(
            config,
            writer=writer,
            on_write_error=lambda key, value, error: errors.append(key),
        ) as cache:
            start = time.time()
            cache.put("key", "value")
            assert time.time() - start < 0.5
            assert cache.flush(timeout=2.0)

            assert attempts == ["key"] * 3
            assert errors == ["key"]
            assert cache.dirty_keys() == ["key"]

    def test_flush_without_write_behind(self):
        """Test flush is a no-op for other strategies."""
        assert Cache().flush() is True


class TestCacheConfig:
    """Tests for cache configuration."""

    def test_defaults(self):
        """Test default configuration is valid."""
        config = CacheConfig().validate()

        assert config.eviction_policy is EvictionPolicyType.LRU
        assert config.strategy is StrategyType.ASIDE

    def test_string_enums(self):
        """Test enums can be given by value."""
        config = CacheConfig(eviction_policy="ARC", strategy="write_through")

        assert config.eviction_policy is EvictionPolicyType.ARC
        assert config.strategy is StrategyType.WRITE_THROUGH

    def test_arc_policy_built(self):
        """Test the configured policy is used."""
        cache = Cache(CacheConfig(eviction_policy="arc", capacity=5))

        assert isinstance(cache.policy, ARCPolicy)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"capacity": 0},
            {"default_ttl": -1},
            {"write_behind_queue_depth": 0},
            {"write_retry_limit": -1},
            {"retry_base_delay": 1.0, "retry_max_delay": 0.5},
            {"sizer": "bogus"},
        ],
    )
    def test_invalid_values(self, kwargs):
        """Test invalid values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            CacheConfig(**kwargs).validate()

    def test_unknown_policy(self):
        """Test unknown policy names raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            CacheConfig(eviction_policy="mru")

    def test_from_dict(self):
        """Test building from a dict with camelCase keys."""
        config = CacheConfig.from_dict({
            "capacity": 50,
            "evictionPolicy": "lfu",
            "defaultTTL": 30,
            "writeRetryLimit": 5,
        })

        assert config.capacity == 50
        assert config.eviction_policy is EvictionPolicyType.LFU
        assert config.default_ttl == 30
        assert config.write_retry_limit == 5
        assert CacheConfig.from_dict(config.to_dict()) == config

    def test_from_dict_unknown_key(self):
        """Test unknown keys are rejected."""
        with pytest.raises(ConfigurationError):
            CacheConfig.from_dict({"max_size": 10})


class TestCacheStats:
    """Tests for cache statistics."""

    def test_hit_rate(self):
        """Test hit rate calculation."""
        cache = Cache()

        cache.put("key", "value")
        cache.get("key")  # hit
        cache.get("key")  # hit
        cache.get("missing", default=None)  # miss

        stats = cache.get_stats()
        assert stats.hit_rate == pytest.approx(2/3, rel=0.01)

    def test_reset_stats(self):
        """Test stats reset."""
        cache = Cache()

        cache.put("key", "value")
        cache.get("key")

        cache.reset_stats()
        stats = cache.get_stats()

        assert stats.hits == 0
        assert stats.misses == 0
        assert stats.sets == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
