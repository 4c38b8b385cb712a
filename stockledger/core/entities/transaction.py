"""Ledger entry (stock transaction) domain entities."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class TransactionType(str, Enum):
    """Kinds of stock change recorded in the ledger."""

    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"
    RETURN = "return"


class TransactionStatus(str, Enum):
    """Ledger entry status. Only completed entries affect stock."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Actor(BaseModel):
    """Caller identity used for attribution. Resolved outside the core."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class ProjectInfo(BaseModel):
    """Project the stock was received for or issued to."""

    name: str | None = None
    code: str | None = None
    manager: str | None = None


class SupplierInfo(BaseModel):
    """Supplier document backing a receipt."""

    name: str | None = None
    invoice: str | None = None
    invoice_date: date | None = None


class LedgerEntry(BaseModel):
    """
    An immutable fact about a quantity change on one material.

    `quantity` is a signed delta (never zero): positive entries add stock,
    negative ones remove it. `total_value` is |quantity| * unit_price and is
    fixed when the entry is written.

    `transaction_no` is assigned by the ledger and unique across entries;
    `reference` is the caller's document number and may repeat.
    """

    id: int | None = None
    transaction_no: str = ""
    reference: str = ""
    type: TransactionType
    material_id: str
    quantity: float
    unit_price: float = 0.0
    total_value: float = 0.0
    balance_after: float | None = None
    description: str | None = None
    reason: str | None = None
    notes: str | None = None
    project: ProjectInfo | None = None
    supplier: SupplierInfo | None = None
    user: Actor
    timestamp: datetime | None = None
    status: TransactionStatus = TransactionStatus.COMPLETED
    cancelled_at: datetime | None = None
    cancelled_by: Actor | None = None
    cancellation_reason: str | None = None
    approved_at: datetime | None = None
    approved_by: Actor | None = None

    @property
    def stock_effect(self) -> float:
        """Contribution of this entry to the material quantity."""
        if self.status == TransactionStatus.COMPLETED:
            return self.quantity
        return 0.0

    @property
    def direction(self) -> str:
        return "in" if self.quantity > 0 else "out"

    @property
    def is_cancellable(self) -> bool:
        return self.status == TransactionStatus.COMPLETED

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING
