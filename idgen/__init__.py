"""Time-ordered 64-bit ID generation on top of a shared Redis counter store."""

from idgen.core.exceptions import (
    BitWidthOverflowError,
    ConfigurationError,
    CounterRecycledError,
    IDGenError,
    InsufficientIDsError,
)
from idgen.database.counter_store import CounterStore, RedisCounterStore
from idgen.services.generator import IDGenerator
from idgen.utils.id_layout import DecodedID, compose_id, decompose_id

__all__ = [
    "BitWidthOverflowError",
    "ConfigurationError",
    "CounterRecycledError",
    "CounterStore",
    "DecodedID",
    "IDGenError",
    "IDGenerator",
    "InsufficientIDsError",
    "RedisCounterStore",
    "compose_id",
    "decompose_id",
]
