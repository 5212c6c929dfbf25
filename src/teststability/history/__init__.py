"""Test outcome histories and their stored form."""

from teststability.history.codec import (
    BufferCodec,
    SerializedHistory,
    deserialize,
    serialize,
)
from teststability.history.errors import (
    CapacityMismatch,
    FormatError,
    HistoryError,
)
from teststability.history.result import Result
from teststability.history.ring_buffer import RingBuffer
from teststability.history.store import HistoryStore, StabilityData

__all__ = [
    "BufferCodec",
    "CapacityMismatch",
    "FormatError",
    "HistoryError",
    "HistoryStore",
    "Result",
    "RingBuffer",
    "SerializedHistory",
    "StabilityData",
    "deserialize",
    "serialize",
]
