"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Business rules (positive quantities, known categories, price bounds) are
enforced by the core services so every violation surfaces as the same
typed ValidationError.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SupplierContactRequest(BaseModel):
    """Preferred supplier on a material card."""

    name: str | None = None
    contact: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class StorageLocationRequest(BaseModel):
    """Storage location on a material card."""

    warehouse: str | None = Field(default=None, examples=["Ana Depo"])
    shelf: str | None = None
    position: str | None = None


class ProjectInfoRequest(BaseModel):
    """Project a movement belongs to."""

    name: str | None = None
    code: str | None = None
    manager: str | None = None


class SupplierInfoRequest(BaseModel):
    """Supplier document backing a receipt."""

    name: str | None = None
    invoice: str | None = Field(default=None, description="Supplier invoice number")
    invoice_date: date | None = None


class CreateMaterialRequest(BaseModel):
    """Request to register a material, optionally with opening stock."""

    code: str = Field(..., description="Unique material code", examples=["OTO001"])
    name: str = Field(..., description="Material name", examples=["PLC CPU 1214C"])
    description: str | None = None
    category: str = Field(
        ...,
        description="One of: otomasyon, pano, elektrik, mekanik",
        examples=["otomasyon"],
    )
    subcategory: str | None = None
    unit: str = Field(
        ...,
        description="One of: adet, metre, kg, litre, paket, kutu",
        examples=["adet"],
    )
    quantity: float = Field(
        default=0.0,
        description="Opening stock, booked as an INITIAL_STOCK receipt",
    )
    min_stock: float = Field(default=10.0, description="Reorder threshold")
    max_stock: float = Field(default=1000.0, description="Overstock threshold")
    unit_price: float = Field(default=0.0, description="Current unit price")
    supplier: SupplierContactRequest | None = None
    location: StorageLocationRequest | None = None
    specifications: dict[str, str] = Field(default_factory=dict)
    barcode: str | None = None
    notes: str | None = None

    def to_draft(self) -> dict[str, Any]:
        """Material fields for the registry, without the opening stock."""
        return self.model_dump(exclude={"quantity"}, exclude_none=True)


class UpdateMaterialRequest(BaseModel):
    """
    Partial material update.

    Only the fields present in the body are applied. Unknown or read-only
    fields (quantity, version, ...) are passed through so the registry can
    reject them explicitly.
    """

    model_config = ConfigDict(extra="allow")

    material_id: str | None = Field(default=None, description="Set from the URL path")
    expected_version: int | None = Field(
        default=None,
        description="Fail with a conflict if the material version differs",
    )
    code: str | None = None
    name: str | None = None
    description: str | None = None
    category: str | None = None
    subcategory: str | None = None
    unit: str | None = None
    min_stock: float | None = None
    max_stock: float | None = None
    unit_price: float | None = None
    status: str | None = Field(default=None, examples=["active", "inactive"])
    supplier: SupplierContactRequest | None = None
    location: StorageLocationRequest | None = None
    specifications: dict[str, str] | None = None
    barcode: str | None = None
    notes: str | None = None

    def to_changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"material_id", "expected_version"})


class DeleteMaterialRequest(BaseModel):
    """Request to delete a material."""

    material_id: str
    mode: str = Field(
        default="auto",
        description="soft (deactivate), hard (remove, only without history) or auto",
    )


class ReceiveStockRequest(BaseModel):
    """Request to receive stock (IN movement)."""

    material_id: str = Field(..., description="Material ID")
    quantity: float = Field(..., description="Quantity to receive")
    unit_price: float | None = Field(
        default=None,
        description="Receipt price; defaults to the material's current price",
    )
    reference: str | None = Field(default=None, description="Delivery note or PO reference")
    description: str | None = None
    notes: str | None = Field(default=None, description="Additional notes")
    project: ProjectInfoRequest | None = None
    supplier: SupplierInfoRequest | None = None


class IssueStockRequest(BaseModel):
    """Request to issue stock (OUT movement)."""

    material_id: str = Field(..., description="Material ID")
    quantity: float = Field(..., description="Quantity to issue")
    reference: str | None = Field(default=None, description="Work order or request reference")
    description: str | None = None
    notes: str | None = Field(default=None, description="Additional notes")
    project: ProjectInfoRequest | None = None


class AdjustStockRequest(BaseModel):
    """Request to correct stock by a signed delta."""

    material_id: str = Field(..., description="Material ID")
    quantity: float = Field(..., description="Signed delta; negative reduces stock")
    reason: str | None = Field(default=None, description="Why the correction is needed")
    reference: str | None = None
    notes: str | None = None


class ReturnStockRequest(BaseModel):
    """Request to take issued stock back in."""

    material_id: str = Field(..., description="Material ID")
    quantity: float = Field(..., description="Quantity returned")
    reference: str | None = Field(default=None, description="Return slip reference")
    description: str | None = None
    notes: str | None = None
    project: ProjectInfoRequest | None = None


class CancelTransactionRequest(BaseModel):
    """Request to cancel a completed transaction."""

    transaction_id: int
    reason: str | None = Field(default=None, description="Why the transaction is cancelled")


class PendingTransactionRequest(BaseModel):
    """Request to record a movement that waits for approval."""

    type: str = Field(..., description="in, out or return", examples=["out"])
    material_id: str = Field(..., description="Material ID")
    quantity: float = Field(..., description="Quantity to move once approved")
    unit_price: float | None = Field(
        default=None,
        description="Receipt price (type 'in' only); defaults to the current price",
    )
    reference: str | None = Field(default=None, description="Document reference")
    description: str | None = None
    notes: str | None = None
    project: ProjectInfoRequest | None = None
    supplier: SupplierInfoRequest | None = None


class ReviewTransactionRequest(BaseModel):
    """Request to approve or reject a pending transaction."""

    transaction_id: int
    reason: str | None = Field(default=None, description="Why a pending entry is rejected")


class ReportRequest(BaseModel):
    """Parameters for a report. Each report reads the fields it needs."""

    report_type: str = Field(
        ...,
        description=(
            "stock_valuation, transaction_report, abc_analysis, cost_analysis, "
            "stock_alerts, transaction_trends, overview, top_materials or user_activity"
        ),
    )
    category: str | None = None
    status: str | None = Field(default="active", description="Material status; 'all' for any")
    stock_level: str | None = None
    window_days: int | None = Field(default=None, description="Look-back window in days")
    group_by: str | None = None
    limit: int | None = None
    material_id: str | None = None
    type: str | None = None
    transaction_status: str | None = None
    user_id: str | None = None
    start: str | None = Field(default=None, description="ISO date or datetime, inclusive")
    end: str | None = Field(default=None, description="ISO date or datetime, inclusive")
    sort_by: str = "timestamp"
    sort_order: str = "desc"
