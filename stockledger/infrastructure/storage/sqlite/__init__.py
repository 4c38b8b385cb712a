"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
    translate_errors,
)
from stockledger.infrastructure.storage.sqlite.ledger_store import SQLiteLedgerStore
from stockledger.infrastructure.storage.sqlite.material_store import SQLiteMaterialStore
from stockledger.infrastructure.storage.sqlite.stock_store import SQLiteStockStore

# Singleton instances
_material_store: SQLiteMaterialStore | None = None
_ledger_store: SQLiteLedgerStore | None = None
_stock_store: SQLiteStockStore | None = None


async def get_material_store() -> SQLiteMaterialStore:
    """Get singleton material store instance."""
    global _material_store
    if _material_store is None:
        _material_store = SQLiteMaterialStore()
    return _material_store


async def get_ledger_store() -> SQLiteLedgerStore:
    """Get singleton ledger store instance."""
    global _ledger_store
    if _ledger_store is None:
        _ledger_store = SQLiteLedgerStore()
    return _ledger_store


async def get_stock_store() -> SQLiteStockStore:
    """Get singleton stock store instance."""
    global _stock_store
    if _stock_store is None:
        _stock_store = SQLiteStockStore()
    return _stock_store


def reset_stores() -> None:
    """Drop store singletons (for testing)."""
    global _material_store, _ledger_store, _stock_store
    _material_store = None
    _ledger_store = None
    _stock_store = None


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "translate_errors",
    # Store classes
    "SQLiteMaterialStore",
    "SQLiteLedgerStore",
    "SQLiteStockStore",
    # Factory functions
    "get_material_store",
    "get_ledger_store",
    "get_stock_store",
    "reset_stores",
]
