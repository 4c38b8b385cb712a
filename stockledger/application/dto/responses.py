"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class MaterialResponse(BaseModel):
    """Material response DTO with derived stock fields."""

    id: str
    code: str
    name: str
    description: str | None = None
    category: str
    subcategory: str | None = None
    unit: str
    quantity: float
    min_stock: float
    max_stock: float
    unit_price: float
    total_value: float
    stock_level: str
    is_low_stock: bool
    status: str
    supplier: dict[str, Any] = Field(default_factory=dict)
    location: dict[str, Any] = Field(default_factory=dict)
    specifications: dict[str, str] = Field(default_factory=dict)
    barcode: str | None = None
    notes: str | None = None
    created_by: str | None = None
    updated_by: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class MaterialListResponse(BaseModel):
    """One page of materials."""

    items: list[MaterialResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool


class TransactionResponse(BaseModel):
    """Ledger entry response DTO."""

    id: int
    transaction_no: str = ""
    reference: str
    type: str
    material_id: str
    quantity: float
    unit_price: float
    total_value: float
    balance_after: float | None = None
    description: str | None = None
    reason: str | None = None
    notes: str | None = None
    project: dict[str, Any] | None = None
    supplier: dict[str, Any] | None = None
    user_id: str
    user_name: str
    timestamp: datetime
    status: str
    cancelled_at: datetime | None = None
    cancelled_by_id: str | None = None
    cancelled_by_name: str | None = None
    cancellation_reason: str | None = None
    approved_at: datetime | None = None
    approved_by_id: str | None = None
    approved_by_name: str | None = None


class TransactionListResponse(BaseModel):
    """One page of ledger entries."""

    items: list[TransactionResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool


class StockMovementResponse(BaseModel):
    """Response for any stock-changing operation."""

    material: MaterialResponse
    transaction: TransactionResponse
    previous_quantity: float
    new_quantity: float
    low_stock_warning: bool = False


class CreateMaterialResponse(BaseModel):
    """Response for material creation."""

    material: MaterialResponse
    initial_transaction: TransactionResponse | None = None


class DeleteMaterialResponse(BaseModel):
    """Response for material deletion."""

    material_id: str
    mode: str = Field(..., description="'hard' if removed, 'soft' if deactivated")
    message: str


class BalanceCheckResponse(BaseModel):
    """Material quantity reconciled against its ledger."""

    material_id: str
    material_quantity: float
    ledger_balance: float
    difference: float
    consistent: bool


class ReportResponse(BaseModel):
    """Generated report envelope."""

    report_type: str
    generated_at: datetime
    data: dict[str, Any]


class ComponentHealthResponse(BaseModel):
    """Health of one backing component."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ComponentHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. MATERIAL_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
