"""
Ledger service.

Append-only record of stock movements. Validates and normalises entries,
assigns transaction numbers and exposes paged and streamed queries.
"""

import math
import uuid
from collections.abc import AsyncIterator
from datetime import UTC, datetime

from stockledger.config import get_logger
from stockledger.core.entities.query import MAX_PAGE_SIZE, TransactionFilter, TransactionPage
from stockledger.core.entities.transaction import LedgerEntry, TransactionType
from stockledger.core.exceptions import TransactionNotFoundError, ValidationError
from stockledger.core.interfaces.ledger_store import ILedgerStore

logger = get_logger(__name__)

TRANSACTION_NO_PREFIXES = {
    TransactionType.IN: "IN",
    TransactionType.OUT: "OUT",
    TransactionType.ADJUSTMENT: "ADJ",
    TransactionType.TRANSFER: "TRF",
    TransactionType.RETURN: "RET",
}

# Types whose delta sign is fixed: +1 adds stock, -1 removes it.
REQUIRED_SIGN = {
    TransactionType.IN: 1,
    TransactionType.RETURN: 1,
    TransactionType.OUT: -1,
}


def generate_transaction_no(type: TransactionType, now: datetime | None = None) -> str:
    """Build a transaction number like IN-20240115-3F2A9C1B."""
    now = now or datetime.now(UTC)
    suffix = uuid.uuid4().hex[:8].upper()
    return f"{TRANSACTION_NO_PREFIXES[type]}-{now:%Y%m%d}-{suffix}"


class Ledger:
    """Service over the ledger store. Entries are never deleted."""

    def __init__(self, ledger_store: ILedgerStore):
        self._store = ledger_store

    def prepare(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Validate an entry and fill in derived fields.

        Sets the timestamp when absent, computes total_value as
        |quantity| * unit_price and assigns a transaction number when the
        entry has none. A blank reference falls back to that number.

        Raises:
            ValidationError: Zero or non-finite delta, negative price, or a
                delta sign that contradicts the entry type.
        """
        if not math.isfinite(entry.quantity) or entry.quantity == 0:
            raise ValidationError("quantity", "Must be a non-zero number", entry.quantity)
        if not math.isfinite(entry.unit_price) or entry.unit_price < 0:
            raise ValidationError("unit_price", "Must not be negative", entry.unit_price)

        sign = REQUIRED_SIGN.get(entry.type)
        if sign is not None and (entry.quantity > 0) != (sign > 0):
            direction = "positive" if sign > 0 else "negative"
            raise ValidationError(
                "quantity",
                f"{entry.type.value} entries must have a {direction} quantity",
                entry.quantity,
            )

        timestamp = entry.timestamp or datetime.now(UTC)
        transaction_no = entry.transaction_no.strip() or generate_transaction_no(
            entry.type, timestamp
        )
        reference = entry.reference.strip() or transaction_no
        return entry.model_copy(
            update={
                "timestamp": timestamp,
                "transaction_no": transaction_no,
                "reference": reference,
                "total_value": abs(entry.quantity) * entry.unit_price,
            }
        )

    async def append(self, entry: LedgerEntry) -> LedgerEntry:
        """Store an entry. Does not check that the material exists."""
        saved = await self._store.append(self.prepare(entry))
        logger.info(
            "ledger_entry_appended",
            entry_id=saved.id,
            type=saved.type.value,
            material_id=saved.material_id,
            quantity=saved.quantity,
            transaction_no=saved.transaction_no,
            status=saved.status.value,
        )
        return saved

    async def get(self, entry_id: int) -> LedgerEntry:
        entry = await self._store.get_entry(entry_id)
        if entry is None:
            raise TransactionNotFoundError(entry_id)
        return entry

    async def query(self, filter: TransactionFilter) -> TransactionPage:
        """Page through entries, newest first unless told otherwise."""
        if filter.page < 1:
            raise ValidationError("page", "Must be at least 1", filter.page)
        if not 1 <= filter.page_size <= MAX_PAGE_SIZE:
            raise ValidationError(
                "page_size", f"Must be between 1 and {MAX_PAGE_SIZE}", filter.page_size
            )
        self._check_range(filter)
        return await self._store.query_entries(filter)

    async def stream(self, filter: TransactionFilter) -> AsyncIterator[LedgerEntry]:
        """Iterate every matching entry once, in store-sized batches."""
        self._check_range(filter)
        async for entry in self._store.iter_entries(filter):
            yield entry

    async def balance_of(self, material_id: str) -> float:
        return await self._store.balance_of(material_id)

    async def count_for_material(self, material_id: str) -> int:
        return await self._store.count_for_material(material_id)

    @staticmethod
    def _check_range(filter: TransactionFilter) -> None:
        if filter.start and filter.end and filter.start > filter.end:
            raise ValidationError("start", "Start must not be after end", filter.start)
