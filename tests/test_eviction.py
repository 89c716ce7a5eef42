"""Tests for eviction policies.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pytest

from keelcache_core.eviction.lru import LRUPolicy
from keelcache_core.eviction.lfu import LFUPolicy
from keelcache_core.eviction.fifo import FIFOPolicy
from keelcache_core.eviction.randomized import RandomPolicy
from keelcache_core.eviction.arc import ARCPolicy
from keelcache_core.eviction.policy import EvictionPolicyType, create_policy


class TestLRUPolicy:
    """Tests for LRU eviction policy."""

    def test_basic_eviction(self):
        """Test basic LRU eviction."""
        policy = LRUPolicy(max_size=3)

        policy.on_insert("key1")
        policy.on_insert("key2")
        policy.on_insert("key3")

        # key1 is LRU
        assert policy.select_victim() == "key1"

    def test_access_updates_order(self):
        """Test that access updates recency."""
        policy = LRUPolicy(max_size=3)

        policy.on_insert("key1")
        policy.on_insert("key2")
        policy.on_insert("key3")

        # Access key1, making key2 the LRU
        policy.on_access("key1")

        assert policy.select_victim() == "key2"
        assert policy.candidates() == ["key2", "key3", "key1"]

    def test_exclude_skips_key(self):
        """Test that the excluded key is never chosen."""
        policy = LRUPolicy(max_size=3)

        policy.on_insert("key1")
        policy.on_insert("key2")

        assert policy.select_victim(exclude="key1") == "key2"
        assert policy.select_victim(exclude="key2") == "key1"

    def test_remove_untracks_key(self):
        """Test key removal."""
        policy = LRUPolicy(max_size=3)

        policy.on_insert("key1")
        policy.on_insert("key2")

        policy.on_remove("key1")

        assert not policy.contains("key1")
        assert policy.contains("key2")

    def test_clear(self):
        """Test clearing policy."""
        policy = LRUPolicy()

        policy.on_insert("key1")
        policy.on_insert("key2")

        policy.clear()
        assert policy.size() == 0
        assert policy.select_victim() is None


class TestLFUPolicy:
    """Tests for LFU eviction policy."""

    def test_basic_eviction(self):
        """Test basic LFU eviction."""
        policy = LFUPolicy(max_size=3)

        policy.on_insert("key1")  # freq=1
        policy.on_insert("key2")  # freq=1
        policy.on_access("key2")  # freq=2

        # key1 has lower frequency
        assert policy.select_victim() == "key1"

    def test_frequency_tracking(self):
        """Test frequency tracking."""
        policy = LFUPolicy()

        policy.on_insert("key1")
        assert policy.get_frequency("key1") == 1

        policy.on_access("key1")
        assert policy.get_frequency("key1") == 2

        policy.on_access("key1")
        assert policy.get_frequency("key1") == 3

    def test_tie_breaks_on_recency(self):
        """Test that equal frequencies evict the least recently touched."""
        policy = LFUPolicy()

        policy.on_insert("key1")
        policy.on_insert("key2")
        policy.on_access("key1")
        policy.on_access("key2")

        assert policy.select_victim() == "key1"

    def test_update_keeps_frequency(self):
        """Test that overwrite refreshes recency without counting."""
        policy = LFUPolicy()

        policy.on_insert("key1")
        policy.on_insert("key2")
        policy.on_update("key1")

        assert policy.get_frequency("key1") == 1
        assert policy.select_victim() == "key2"

    def test_exclude_only_minimum(self):
        """Test fallback when only the excluded key has minimum frequency."""
        policy = LFUPolicy()

        policy.on_insert("key1")
        policy.on_access("key1")
        policy.on_insert("key2")

        assert policy.select_victim(exclude="key2") == "key1"

    def test_remove_resets_min_frequency(self):
        """Test that removing the only minimum key moves the minimum up."""
        policy = LFUPolicy()

        policy.on_insert("key1")
        policy.on_access("key1")
        policy.on_insert("key2")
        policy.on_remove("key2")

        assert policy.select_victim() == "key1"
        assert policy.candidates() == ["key1"]


class TestFIFOPolicy:
    """Tests for FIFO eviction policy."""

    def test_access_does_not_reorder(self):
        """Test that reads and overwrites keep insertion order."""
        policy = FIFOPolicy()

        policy.on_insert("key1")
        policy.on_insert("key2")
        policy.on_access("key1")
        policy.on_update("key1")

        assert policy.select_victim() == "key1"
        assert policy.candidates() == ["key1", "key2"]


class TestRandomPolicy:
    """Tests for random eviction policy."""

    def _filled(self, seed):
        policy = RandomPolicy(seed=seed)
        for i in range(20):
            policy.on_insert(f"key{i}")
        return policy

    def test_seeded_is_deterministic(self):
        """Test that equal seeds pick equal victims."""
        a = self._filled(42)
        b = self._filled(42)

        assert [a.select_victim() for _ in range(5)] == [b.select_victim() for _ in range(5)]

    def test_candidates_predict_victim(self):
        """Test that candidates() does not consume randomness."""
        policy = self._filled(7)

        order = policy.candidates()
        assert sorted(order) == sorted(f"key{i}" for i in range(20))
        assert policy.select_victim() == order[0]

    def test_exclude_single_key(self):
        """Test that a lone excluded key yields no victim."""
        policy = RandomPolicy(seed=1)
        policy.on_insert("key1")

        assert policy.select_victim(exclude="key1") is None

    def test_remove(self):
        """Test swap-pop removal keeps tracking consistent."""
        policy = self._filled(3)

        policy.on_remove("key0")
        policy.on_remove("key19")

        assert policy.size() == 18
        assert not policy.contains("key0")
        assert "key19" not in policy.candidates()


class TestARCPolicy:
    """Tests for ARC eviction policy."""

    def test_basic_operations(self):
        """Test basic ARC operations."""
        policy = ARCPolicy(max_size=4)

        policy.on_insert("key1")
        policy.on_insert("key2")

        assert policy.contains("key1")
        assert policy.contains("key2")

    def test_promotion_to_t2(self):
        """Test promotion from T1 to T2 on second access."""
        policy = ARCPolicy(max_size=4)

        policy.on_insert("key1")  # Goes to T1

        # Access promotes to T2
        policy.on_access("key1")

        # Should be in T2 now
        stats = policy.get_stats_detailed()
        assert stats["t2_size"] == 1
        assert stats["t1_size"] == 0

    def test_eviction_from_t1(self):
        """Test eviction from T1 feeds ghost list B1."""
        policy = ARCPolicy(max_size=2)

        policy.on_insert("key1")
        policy.on_insert("key2")
        policy.on_insert("key3")

        victim = policy.select_victim(exclude="key3")
        assert victim == "key1"
        policy.on_remove(victim, evicted=True)

        assert policy.size() == 2
        assert policy.in_ghosts("key1")
        assert policy.get_stats_detailed()["b1_size"] == 1

    def test_b1_ghost_hit_grows_target(self):
        """Test that re-inserting a B1 ghost raises p and lands in T2."""
        policy = ARCPolicy(max_size=2)

        policy.on_insert("key1")
        policy.on_remove("key1", evicted=True)
        assert policy.target == 0

        policy.on_insert("key1")

        assert policy.target == 1
        assert not policy.in_ghosts("key1")
        assert policy.get_stats_detailed()["t2_size"] == 1

    def test_b2_ghost_hit_shrinks_target(self):
        """Test that re-inserting a B2 ghost lowers p."""
        policy = ARCPolicy(max_size=4)

        # Grow p to 1 through a B1 hit
        policy.on_insert("key1")
        policy.on_remove("key1", evicted=True)
        policy.on_insert("key1")
        assert policy.target == 1

        # key1 now in T2; evict it to B2 and bring it back
        policy.on_remove("key1", evicted=True)
        policy.on_insert("key1")

        assert policy.target == 0
        assert policy.get_stats_detailed()["b2_size"] == 0

    def test_victim_prefers_t2_when_t1_within_target(self):
        """Test that T2 supplies the victim once |T1| <= p."""
        policy = ARCPolicy(max_size=2)

        policy.on_insert("a")
        policy.on_remove("a", evicted=True)
        policy.on_insert("a")  # p=1, a in T2
        policy.on_insert("b")  # T1=[b]

        assert policy.select_victim() == "a"
        assert policy.candidates() == ["a", "b"]

    def test_delete_forgets_ghost(self):
        """Test that a non-eviction removal drops ghost memory."""
        policy = ARCPolicy(max_size=2)

        policy.on_insert("key1")
        policy.on_remove("key1", evicted=True)
        policy.on_remove("key1")

        assert not policy.in_ghosts("key1")

    def test_ghost_lists_bounded(self):
        """Test that each ghost list holds at most max_size keys."""
        policy = ARCPolicy(max_size=2)

        for i in range(5):
            policy.on_insert(f"key{i}")
            policy.on_remove(f"key{i}", evicted=True)

        assert policy.get_stats_detailed()["b1_size"] == 2


class TestCreatePolicy:
    """Tests for policy factory."""

    @pytest.mark.parametrize(
        "name,cls",
        [
            ("lru", LRUPolicy),
            ("LFU", LFUPolicy),
            ("fifo", FIFOPolicy),
            ("random", RandomPolicy),
            (EvictionPolicyType.ARC, ARCPolicy),
        ],
    )
    def test_create_by_name(self, name, cls):
        """Test factory accepts names and enum members."""
        assert isinstance(create_policy(name, 10), cls)

    def test_unknown_name(self):
        """Test unknown names are rejected."""
        with pytest.raises(ValueError):
            create_policy("mru", 10)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
