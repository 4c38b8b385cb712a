"""Abstract interface for ledger entry storage."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from stockledger.core.entities.query import TransactionFilter, TransactionPage
from stockledger.core.entities.transaction import LedgerEntry


class ILedgerStore(ABC):
    """Interface for append-only ledger persistence."""

    @abstractmethod
    async def append(self, entry: LedgerEntry) -> LedgerEntry:
        """Insert an entry and assign its ID."""
        pass

    @abstractmethod
    async def get_entry(self, entry_id: int) -> LedgerEntry | None:
        """Get an entry by ID."""
        pass

    @abstractmethod
    async def query_entries(self, filter: TransactionFilter) -> TransactionPage:
        """One page of matching entries plus the total match count."""
        pass

    @abstractmethod
    def iter_entries(self, filter: TransactionFilter) -> AsyncIterator[LedgerEntry]:
        """Stream every matching entry, ignoring pagination."""
        pass

    @abstractmethod
    async def count_for_material(self, material_id: str) -> int:
        """Number of entries (any status) referencing a material."""
        pass

    @abstractmethod
    async def balance_of(self, material_id: str) -> float:
        """Sum of signed quantities of completed entries for a material."""
        pass
