"""Storage infrastructure implementations."""

from treqy.infrastructure.storage.local_objects import (
    LocalObjectStorage,
    get_object_storage,
    reset_object_storage,
)
from treqy.infrastructure.storage.sqlite import (
    SQLiteCatalogStore,
    SQLitePendingMaterialStore,
    SQLiteSubmissionStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteSubmissionStore",
    "SQLitePendingMaterialStore",
    "SQLiteCatalogStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Object storage
    "LocalObjectStorage",
    "get_object_storage",
    "reset_object_storage",
]
