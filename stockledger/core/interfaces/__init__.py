"""Core interfaces (ports) for dependency injection."""

from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.interfaces.material_store import IMaterialStore
from stockledger.core.interfaces.stock_store import IStockStore

__all__ = [
    "IMaterialStore",
    "ILedgerStore",
    "IStockStore",
]
