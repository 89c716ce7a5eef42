"""KeelCache Sizer - Entry Cost Estimation.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import json
import pickle
import sys
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class Sizer(ABC):
    """Computes the capacity cost of a value.

    Implementations:
    - UnitSizer: every entry costs 1 (capacity is an entry count)
    - GetSizeOfSizer: shallow in-memory size
    - JSONSizer, PickleSizer, MsgPackSizer: length of the encoded value
    """

    name = "sizer"

    @abstractmethod
    def size_of(self, value: Any) -> int:
        """Get cost of a value.

        Args:
            value: Value to measure

        Returns:
            Non-negative cost
        """
        pass

    def __call__(self, value: Any) -> int:
        return self.size_of(value)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class UnitSizer(Sizer):
    """Every value costs 1."""

    name = "unit"

    def size_of(self, value: Any) -> int:
        return 1


class GetSizeOfSizer(Sizer):
    """Shallow object size from ``sys.getsizeof``."""

    name = "getsizeof"

    def size_of(self, value: Any) -> int:
        return sys.getsizeof(value)


class EncodedSizer(Sizer):
    """Cost is the byte length of the encoded value.

    Example:
        JSONSizer().size_of({"a": 1})  # 8
    """

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Encode value to bytes.

        Args:
            value: Value to encode

        Returns:
            Encoded bytes
        """
        pass

    def size_of(self, value: Any) -> int:
        return len(self.encode(value))


class JSONSizer(EncodedSizer):
    """JSON encoding; non-JSON types are stringified."""

    name = "json"

    def encode(self, value: Any) -> bytes:
        return json.dumps(value, default=str).encode("utf-8")


class PickleSizer(EncodedSizer):
    """Pickle encoding, for any picklable object."""

    name = "pickle"

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL):
        self.protocol = protocol

    def encode(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=self.protocol)


class MsgPackSizer(EncodedSizer):
    """MessagePack encoding.

    Requires the msgpack package (``keelcache[msgpack]``).
    """

    name = "msgpack"

    def encode(self, value: Any) -> bytes:
        try:
            import msgpack
        except ImportError:
            raise ImportError("msgpack package not installed")
        return msgpack.packb(value, use_bin_type=True)


_SIZERS: Dict[str, type] = {
    cls.name: cls
    for cls in (UnitSizer, GetSizeOfSizer, JSONSizer, PickleSizer, MsgPackSizer)
}

SIZER_NAMES = tuple(_SIZERS)


def get_sizer(name: Optional[str] = None) -> Sizer:
    """Get sizer by name.

    Args:
        name: One of SIZER_NAMES; None for unit

    Returns:
        Sizer instance

    Raises:
        KeyError: If name not found
    """
    name = name or UnitSizer.name
    if name not in _SIZERS:
        raise KeyError(f"Unknown sizer: {name}")
    return _SIZERS[name]()


__all__ = [
    "Sizer",
    "UnitSizer",
    "GetSizeOfSizer",
    "EncodedSizer",
    "JSONSizer",
    "PickleSizer",
    "MsgPackSizer",
    "get_sizer",
    "SIZER_NAMES",
]
