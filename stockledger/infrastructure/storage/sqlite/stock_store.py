"""
SQLite implementation of the atomic stock write path.

Each call runs in one immediate transaction: the version-guarded material
update and the ledger insert (or status change) commit together or not at
all.
"""

from datetime import UTC, datetime
from typing import Any

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.material import Material
from stockledger.core.entities.transaction import Actor, LedgerEntry, TransactionStatus
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    ConflictError,
    MaterialNotFoundError,
    TransactionNotFoundError,
)
from stockledger.core.interfaces.stock_store import IStockStore
from stockledger.infrastructure.storage.sqlite.connection import get_transaction, translate_errors
from stockledger.infrastructure.storage.sqlite.ledger_store import insert_entry
from stockledger.infrastructure.storage.sqlite.rows import (
    row_to_entry,
    row_to_material,
    to_db_timestamp,
)

logger = get_logger(__name__)


async def _bump_material(
    conn: aiosqlite.Connection,
    material_id: str,
    expected_version: int,
    quantity: float,
    unit_price: float | None,
    updated_by: str,
    now: datetime,
) -> None:
    """Version-guarded quantity write. Raises when the guard fails."""
    if unit_price is None:
        cursor = await conn.execute(
            """
            UPDATE materials
            SET quantity = ?, updated_by = ?, updated_at = ?, version = version + 1
            WHERE id = ? AND version = ?
            """,
            (quantity, updated_by, to_db_timestamp(now), material_id, expected_version),
        )
    else:
        cursor = await conn.execute(
            """
            UPDATE materials
            SET quantity = ?, unit_price = ?, updated_by = ?, updated_at = ?,
                version = version + 1
            WHERE id = ? AND version = ?
            """,
            (quantity, unit_price, updated_by, to_db_timestamp(now), material_id, expected_version),
        )

    if cursor.rowcount == 0:
        cursor = await conn.execute("SELECT 1 FROM materials WHERE id = ?", (material_id,))
        if await cursor.fetchone() is None:
            raise MaterialNotFoundError(material_id)
        raise ConcurrencyConflictError(material_id, expected_version)


async def _transition_entry(
    conn: aiosqlite.Connection,
    entry_id: int,
    material_id: str | None,
    expected: TransactionStatus,
    action: str,
    fields: dict[str, Any],
) -> None:
    """
    Set `fields` on an entry that is still in the `expected` status.

    Raises TransactionNotFoundError for an unknown entry and ConflictError
    when the entry has already left `expected`.
    """
    assignments = ", ".join(f"{column} = ?" for column in fields)
    conditions = "id = ? AND status = ?"
    params: list[Any] = [*fields.values(), entry_id, expected.value]
    if material_id is not None:
        conditions += " AND material_id = ?"
        params.append(material_id)

    cursor = await conn.execute(
        f"UPDATE ledger_entries SET {assignments} WHERE {conditions}", params
    )
    if cursor.rowcount:
        return

    cursor = await conn.execute("SELECT status FROM ledger_entries WHERE id = ?", (entry_id,))
    row = await cursor.fetchone()
    if row is None:
        raise TransactionNotFoundError(entry_id)
    raise ConflictError(
        f"Only {expected.value} transactions can be {action} (status: {row['status']})",
        details={"transaction_id": entry_id, "status": row["status"]},
    )


async def _fetch_material(conn: aiosqlite.Connection, material_id: str) -> Material:
    cursor = await conn.execute("SELECT * FROM materials WHERE id = ?", (material_id,))
    return row_to_material(await cursor.fetchone())


async def _fetch_entry(conn: aiosqlite.Connection, entry_id: int) -> LedgerEntry:
    cursor = await conn.execute("SELECT * FROM ledger_entries WHERE id = ?", (entry_id,))
    return row_to_entry(await cursor.fetchone())


class SQLiteStockStore(IStockStore):
    """SQLite implementation of combined material + ledger writes."""

    async def apply_movement(
        self,
        material_id: str,
        expected_version: int,
        new_quantity: float,
        unit_price: float,
        entry: LedgerEntry,
    ) -> tuple[Material, LedgerEntry]:
        """Write the new quantity/price and insert the entry atomically."""
        now = datetime.now(UTC)
        with translate_errors("apply_movement"):
            async with get_transaction() as conn:
                await _bump_material(
                    conn,
                    material_id,
                    expected_version,
                    new_quantity,
                    unit_price,
                    entry.user.id,
                    now,
                )
                entry_id = await insert_entry(conn, entry)
                saved = await _fetch_entry(conn, entry_id)
                material = await _fetch_material(conn, material_id)

        logger.debug(
            "stock_movement_committed",
            material_id=material_id,
            entry_id=saved.id,
            version=material.version,
        )
        return material, saved

    async def apply_cancellation(
        self,
        entry_id: int,
        material_id: str,
        expected_version: int,
        new_quantity: float,
        cancelled_by: Actor,
        cancelled_at: datetime,
        reason: str | None = None,
    ) -> tuple[Material, LedgerEntry]:
        """Write the reversed quantity and mark the entry cancelled atomically."""
        with translate_errors("apply_cancellation"):
            async with get_transaction() as conn:
                await _transition_entry(
                    conn,
                    entry_id,
                    material_id,
                    TransactionStatus.COMPLETED,
                    "cancelled",
                    {
                        "status": TransactionStatus.CANCELLED.value,
                        "cancelled_at": to_db_timestamp(cancelled_at),
                        "cancelled_by_id": cancelled_by.id,
                        "cancelled_by_name": cancelled_by.name,
                        "cancellation_reason": reason,
                    },
                )
                await _bump_material(
                    conn,
                    material_id,
                    expected_version,
                    new_quantity,
                    None,
                    cancelled_by.id,
                    cancelled_at,
                )
                saved = await _fetch_entry(conn, entry_id)
                material = await _fetch_material(conn, material_id)

        logger.debug(
            "stock_cancellation_committed",
            material_id=material_id,
            entry_id=entry_id,
            version=material.version,
        )
        return material, saved

    async def apply_approval(
        self,
        entry_id: int,
        material_id: str,
        expected_version: int,
        new_quantity: float,
        unit_price: float | None,
        approved_by: Actor,
        approved_at: datetime,
    ) -> tuple[Material, LedgerEntry]:
        """Apply a pending entry's stock effect and mark it completed atomically."""
        with translate_errors("apply_approval"):
            async with get_transaction() as conn:
                await _transition_entry(
                    conn,
                    entry_id,
                    material_id,
                    TransactionStatus.PENDING,
                    "approved",
                    {
                        "status": TransactionStatus.COMPLETED.value,
                        "balance_after": new_quantity,
                        "approved_at": to_db_timestamp(approved_at),
                        "approved_by_id": approved_by.id,
                        "approved_by_name": approved_by.name,
                    },
                )
                await _bump_material(
                    conn,
                    material_id,
                    expected_version,
                    new_quantity,
                    unit_price,
                    approved_by.id,
                    approved_at,
                )
                saved = await _fetch_entry(conn, entry_id)
                material = await _fetch_material(conn, material_id)

        logger.debug(
            "stock_approval_committed",
            material_id=material_id,
            entry_id=entry_id,
            version=material.version,
        )
        return material, saved

    async def reject_pending(
        self,
        entry_id: int,
        rejected_by: Actor,
        rejected_at: datetime,
        reason: str | None = None,
    ) -> LedgerEntry:
        """Mark a pending entry cancelled. Stock is untouched."""
        with translate_errors("reject_pending"):
            async with get_transaction() as conn:
                await _transition_entry(
                    conn,
                    entry_id,
                    None,
                    TransactionStatus.PENDING,
                    "rejected",
                    {
                        "status": TransactionStatus.CANCELLED.value,
                        "cancelled_at": to_db_timestamp(rejected_at),
                        "cancelled_by_id": rejected_by.id,
                        "cancelled_by_name": rejected_by.name,
                        "cancellation_reason": reason,
                    },
                )
                return await _fetch_entry(conn, entry_id)
