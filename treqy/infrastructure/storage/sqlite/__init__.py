"""SQLite storage implementations."""

from treqy.infrastructure.storage.sqlite.catalog_store import SQLiteCatalogStore
from treqy.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from treqy.infrastructure.storage.sqlite.pending_material_store import (
    SQLitePendingMaterialStore,
)
from treqy.infrastructure.storage.sqlite.submission_store import SQLiteSubmissionStore

# Singleton instances
_submission_store: SQLiteSubmissionStore | None = None
_pending_material_store: SQLitePendingMaterialStore | None = None
_catalog_store: SQLiteCatalogStore | None = None


async def get_submission_store() -> SQLiteSubmissionStore:
    """Get singleton submission store instance."""
    global _submission_store
    if _submission_store is None:
        _submission_store = SQLiteSubmissionStore()
    return _submission_store


async def get_pending_material_store() -> SQLitePendingMaterialStore:
    """Get singleton pending material store instance."""
    global _pending_material_store
    if _pending_material_store is None:
        _pending_material_store = SQLitePendingMaterialStore()
    return _pending_material_store


async def get_catalog_store() -> SQLiteCatalogStore:
    """Get singleton catalog store instance."""
    global _catalog_store
    if _catalog_store is None:
        _catalog_store = SQLiteCatalogStore()
    return _catalog_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Stores
    "SQLiteSubmissionStore",
    "SQLitePendingMaterialStore",
    "SQLiteCatalogStore",
    # Singletons
    "get_submission_store",
    "get_pending_material_store",
    "get_catalog_store",
]
