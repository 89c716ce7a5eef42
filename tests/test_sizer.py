"""Tests for sizers.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pickle
import sys

import pytest

from keelcache_core.cache.cache import Cache, CacheConfig
from keelcache_core.protocol.sizer import (
    SIZER_NAMES,
    GetSizeOfSizer,
    JSONSizer,
    MsgPackSizer,
    PickleSizer,
    UnitSizer,
    get_sizer,
)


class TestSizers:
    """Tests for sizers."""

    def test_unit(self):
        """Test every value costs one."""
        sizer = UnitSizer()

        assert sizer("x" * 1000) == 1
        assert sizer(None) == 1

    def test_getsizeof(self):
        """Test shallow object size."""
        value = "x" * 1000

        assert GetSizeOfSizer().size_of(value) == sys.getsizeof(value)

    def test_json(self):
        """Test JSON-encoded length."""
        sizer = JSONSizer()

        assert sizer.size_of({"a": 1}) == 8
        assert sizer.size_of({"when": {1, 2}}) > 0  # stringified, not rejected

    def test_pickle(self):
        """Test pickled length for non-JSON types."""
        value = {"when": (1, 2), "set": {3}}

        assert PickleSizer().size_of(value) == len(pickle.dumps(value, pickle.HIGHEST_PROTOCOL))

    def test_msgpack(self):
        """Test msgpack-encoded length when installed."""
        msgpack = pytest.importorskip("msgpack")

        value = {"a": [1, 2]}
        assert MsgPackSizer().size_of(value) == len(msgpack.packb(value, use_bin_type=True))

    def test_get_sizer(self):
        """Test lookup by name."""
        assert isinstance(get_sizer(None), UnitSizer)
        assert isinstance(get_sizer("unit"), UnitSizer)
        assert isinstance(get_sizer("getsizeof"), GetSizeOfSizer)
        assert isinstance(get_sizer("json"), JSONSizer)
        assert isinstance(get_sizer("pickle"), PickleSizer)
        assert set(SIZER_NAMES) == {"unit", "getsizeof", "json", "pickle", "msgpack"}

        with pytest.raises(KeyError):
            get_sizer("bogus")

    def test_configured_sizer_charges_capacity(self):
        """Test the cache uses the configured sizer for costs."""
        cache = Cache(CacheConfig(capacity=20, sizer="json"))

        cache.put("a", "x" * 8)   # '"xxxxxxxx"' = 10 bytes
        cache.put("b", "y" * 8)
        assert cache.size_used() == 20

        evicted = cache.put("c", "z")
        assert evicted == ["a"]
        assert cache.size_used() <= 20


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
