"""Lesson-completion progress tracking.

Provides:
- Key-value storage backends (memory, SQLite)
- ProgressStore with load/save, completion toggles and snapshots
"""

from mathtutor.progress.storage import (
    KeyValueStorage,
    MemoryStorage,
    SqliteStorage,
    StorageError,
)
from mathtutor.progress.store import (
    DEFAULT_TOTAL_NODES,
    STORAGE_KEY,
    ProgressRecord,
    ProgressStore,
    StoreResult,
)

__all__ = [
    "DEFAULT_TOTAL_NODES",
    "STORAGE_KEY",
    "KeyValueStorage",
    "MemoryStorage",
    "ProgressRecord",
    "ProgressStore",
    "SqliteStorage",
    "StorageError",
    "StoreResult",
]
