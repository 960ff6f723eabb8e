"""Infrastructure adapters for storage, simulated latency, and logging."""

from portfolio_app.infrastructure.latency import LatencySimulator, OperationKind
from portfolio_app.infrastructure.storage import (
    DurableStore,
    KeyValueStore,
    MemoryKeyValueStore,
    SqliteKeyValueStore,
    StorageFault,
    StorageQuotaExceededError,
    StorageReadError,
    StorageWriteError,
    build_key_value_store,
)

__all__ = [
    "DurableStore",
    "KeyValueStore",
    "LatencySimulator",
    "MemoryKeyValueStore",
    "OperationKind",
    "SqliteKeyValueStore",
    "StorageFault",
    "StorageQuotaExceededError",
    "StorageReadError",
    "StorageWriteError",
    "build_key_value_store",
]
