"""Protocol module - Entry sizing."""

from keelcache_core.protocol.sizer import (
    Sizer,
    UnitSizer,
    GetSizeOfSizer,
    EncodedSizer,
    JSONSizer,
    PickleSizer,
    MsgPackSizer,
    get_sizer,
    SIZER_NAMES,
)

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
