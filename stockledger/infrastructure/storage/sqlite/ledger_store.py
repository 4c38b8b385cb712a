"""SQLite implementation of ledger entry storage."""

from collections.abc import AsyncIterator

import aiosqlite

from stockledger.config import get_logger, get_settings
from stockledger.core.entities.query import (
    SortOrder,
    TransactionFilter,
    TransactionPage,
    TransactionSortField,
)
from stockledger.core.entities.transaction import LedgerEntry, TransactionStatus
from stockledger.core.exceptions import ConflictError
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    translate_errors,
)
from stockledger.infrastructure.storage.sqlite.rows import (
    ENTRY_COLUMNS,
    entry_params,
    row_to_entry,
    to_db_timestamp,
)

logger = get_logger(__name__)

SORT_COLUMNS = {
    TransactionSortField.TIMESTAMP: "timestamp",
    TransactionSortField.QUANTITY: "quantity",
    TransactionSortField.TOTAL_VALUE: "total_value",
}

INSERT_ENTRY_SQL = (
    f"INSERT INTO ledger_entries ({', '.join(ENTRY_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in ENTRY_COLUMNS)})"
)


async def insert_entry(conn: aiosqlite.Connection, entry: LedgerEntry) -> int:
    """Insert an entry inside the caller's transaction and return its ID."""
    try:
        cursor = await conn.execute(INSERT_ENTRY_SQL, entry_params(entry))
    except aiosqlite.IntegrityError as e:
        if "transaction_no" not in str(e):
            raise
        raise ConflictError(
            f"Transaction number already exists: {entry.transaction_no}",
            details={"transaction_no": entry.transaction_no},
        ) from e
    return cursor.lastrowid


def build_entry_where(filter: TransactionFilter) -> tuple[list[str], list]:
    """WHERE conditions and parameters for a ledger filter."""
    conditions: list[str] = []
    params: list = []

    if filter.material_id:
        conditions.append("material_id = ?")
        params.append(filter.material_id)
    if filter.type:
        conditions.append("type = ?")
        params.append(filter.type.value)
    if filter.types:
        conditions.append(f"type IN ({', '.join('?' for _ in filter.types)})")
        params.extend(t.value for t in filter.types)
    if filter.status:
        conditions.append("status = ?")
        params.append(filter.status.value)
    if filter.user_id:
        conditions.append("user_id = ?")
        params.append(filter.user_id)
    if filter.start:
        conditions.append("timestamp >= ?")
        params.append(to_db_timestamp(filter.start))
    if filter.end:
        conditions.append("timestamp <= ?")
        params.append(to_db_timestamp(filter.end))

    return conditions, params


def _where(conditions: list[str]) -> str:
    return f"WHERE {' AND '.join(conditions)}" if conditions else ""


def _order_by(filter: TransactionFilter) -> str:
    column = SORT_COLUMNS[filter.sort_by]
    direction = "DESC" if filter.sort_order == SortOrder.DESC else "ASC"
    return f"ORDER BY {column} {direction}, id {direction}"


class SQLiteLedgerStore(ILedgerStore):
    """SQLite implementation of append-only ledger storage."""

    def __init__(self, batch_size: int | None = None):
        self._batch_size = batch_size or get_settings().storage.stream_batch_size

    async def append(self, entry: LedgerEntry) -> LedgerEntry:
        """Insert an entry on its own. Stock moves go through SQLiteStockStore."""
        with translate_errors("append_entry"):
            async with get_transaction() as conn:
                entry_id = await insert_entry(conn, entry)
        return entry.model_copy(update={"id": entry_id})

    async def get_entry(self, entry_id: int) -> LedgerEntry | None:
        """Get an entry by ID."""
        with translate_errors("get_entry"):
            async with get_connection() as conn:
                cursor = await conn.execute(
                    "SELECT * FROM ledger_entries WHERE id = ?", (entry_id,)
                )
                row = await cursor.fetchone()
        return row_to_entry(row) if row else None

    async def query_entries(self, filter: TransactionFilter) -> TransactionPage:
        """One page of matching entries with the total count."""
        conditions, params = build_entry_where(filter)
        where = _where(conditions)
        offset = (filter.page - 1) * filter.page_size

        with translate_errors("query_entries"):
            async with get_connection() as conn:
                cursor = await conn.execute(
                    f"SELECT COUNT(*) FROM ledger_entries {where}", params
                )
                total = (await cursor.fetchone())[0]

                cursor = await conn.execute(
                    f"SELECT * FROM ledger_entries {where} {_order_by(filter)} LIMIT ? OFFSET ?",
                    [*params, filter.page_size, offset],
                )
                rows = await cursor.fetchall()

        return TransactionPage(
            items=[row_to_entry(row) for row in rows],
            total=total,
            page=filter.page,
            page_size=filter.page_size,
        )

    async def iter_entries(self, filter: TransactionFilter) -> AsyncIterator[LedgerEntry]:
        """
        Stream all matching entries in batches.

        The stream is bounded by the highest entry ID at start, so entries
        appended while iterating are not picked up. Each batch continues
        after the last (sort value, id) read, so a status change on an entry
        that was already read does not shift later entries out of the stream.
        """
        with translate_errors("iter_entries"):
            async with get_connection() as conn:
                cursor = await conn.execute("SELECT COALESCE(MAX(id), 0) FROM ledger_entries")
                max_id = (await cursor.fetchone())[0]

        conditions, params = build_entry_where(filter)
        conditions.append("id <= ?")
        params.append(max_id)

        column = SORT_COLUMNS[filter.sort_by]
        after = "<" if filter.sort_order == SortOrder.DESC else ">"
        first_sql = f"SELECT * FROM ledger_entries {_where(conditions)} {_order_by(filter)} LIMIT ?"
        next_sql = (
            "SELECT * FROM ledger_entries "
            f"{_where([*conditions, f'({column}, id) {after} (?, ?)'])} "
            f"{_order_by(filter)} LIMIT ?"
        )

        last: tuple | None = None
        while True:
            if last is None:
                sql, args = first_sql, [*params, self._batch_size]
            else:
                sql, args = next_sql, [*params, *last, self._batch_size]

            with translate_errors("iter_entries"):
                async with get_connection() as conn:
                    cursor = await conn.execute(sql, args)
                    rows = await cursor.fetchall()

            for row in rows:
                yield row_to_entry(row)

            if len(rows) < self._batch_size:
                break
            last = (rows[-1][column], rows[-1]["id"])

    async def count_for_material(self, material_id: str) -> int:
        with translate_errors("count_entries"):
            async with get_connection() as conn:
                cursor = await conn.execute(
                    "SELECT COUNT(*) FROM ledger_entries WHERE material_id = ?",
                    (material_id,),
                )
                row = await cursor.fetchone()
        return row[0]

    async def balance_of(self, material_id: str) -> float:
        with translate_errors("ledger_balance"):
            async with get_connection() as conn:
                cursor = await conn.execute(
                    """
                    SELECT COALESCE(SUM(quantity), 0) FROM ledger_entries
                    WHERE material_id = ? AND status = ?
                    """,
                    (material_id, TransactionStatus.COMPLETED.value),
                )
                row = await cursor.fetchone()
        return float(row[0])
