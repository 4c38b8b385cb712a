"""
Abstract interface for atomic stock writes.

A stock write changes a material's quantity and the ledger together. Both
sides commit in one unit or neither does.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from stockledger.core.entities.material import Material
from stockledger.core.entities.transaction import Actor, LedgerEntry


class IStockStore(ABC):
    """Interface for the combined material + ledger write path."""

    @abstractmethod
    async def apply_movement(
        self,
        material_id: str,
        expected_version: int,
        new_quantity: float,
        unit_price: float,
        entry: LedgerEntry,
    ) -> tuple[Material, LedgerEntry]:
        """
        Set the material quantity/price and append `entry` atomically.

        Raises ConcurrencyConflictError if the material version moved.
        """

    @abstractmethod
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
        """
        Set the material quantity and mark a completed entry cancelled.

        Raises ConcurrencyConflictError if the material version moved and
        ConflictError if the entry is no longer completed.
        """

    @abstractmethod
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
        """
        Set the material quantity (and price, when given) and mark a pending
        entry completed.

        Raises ConcurrencyConflictError if the material version moved and
        ConflictError if the entry is no longer pending.
        """

    @abstractmethod
    async def reject_pending(
        self,
        entry_id: int,
        rejected_by: Actor,
        rejected_at: datetime,
        reason: str | None = None,
    ) -> LedgerEntry:
        """Mark a pending entry cancelled without touching stock."""
