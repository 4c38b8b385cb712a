"""Filter, sort and page value objects shared by stores and services."""

import math
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from stockledger.core.entities.material import (
    Material,
    MaterialCategory,
    MaterialStatus,
    StockLevel,
)
from stockledger.core.entities.transaction import (
    LedgerEntry,
    TransactionStatus,
    TransactionType,
)

MAX_PAGE_SIZE = 100


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class MaterialSortField(str, Enum):
    NAME = "name"
    CODE = "code"
    QUANTITY = "quantity"
    UNIT_PRICE = "unit_price"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class TransactionSortField(str, Enum):
    TIMESTAMP = "timestamp"
    QUANTITY = "quantity"
    TOTAL_VALUE = "total_value"


class MaterialFilter(BaseModel):
    """Material listing criteria."""

    search: str | None = None
    category: MaterialCategory | None = None
    status: MaterialStatus | None = None
    stock_level: StockLevel | None = None
    sort_by: MaterialSortField = MaterialSortField.NAME
    sort_order: SortOrder = SortOrder.ASC
    page: int = 1
    page_size: int = 50


class TransactionFilter(BaseModel):
    """Ledger query criteria. Date bounds are inclusive."""

    material_id: str | None = None
    type: TransactionType | None = None
    types: list[TransactionType] | None = None
    status: TransactionStatus | None = None
    user_id: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    sort_by: TransactionSortField = TransactionSortField.TIMESTAMP
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    page_size: int = 20

    @field_validator("start", "end")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Naive bounds are taken as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class _Page(BaseModel):
    total: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


class MaterialPage(_Page):
    """One page of materials with the total match count."""

    items: list[Material] = Field(default_factory=list)


class TransactionPage(_Page):
    """One page of ledger entries with the total match count."""

    items: list[LedgerEntry] = Field(default_factory=list)
