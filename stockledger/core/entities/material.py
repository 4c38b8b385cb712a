"""
Material domain entity.

A stock-keeping material whose quantity is driven by the ledger. The
derived fields (total value, stock level) are computed on read.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class MaterialCategory(str, Enum):
    """Closed set of material categories."""

    OTOMASYON = "otomasyon"
    PANO = "pano"
    ELEKTRIK = "elektrik"
    MEKANIK = "mekanik"


class MaterialUnit(str, Enum):
    """Closed set of units of measure."""

    ADET = "adet"
    METRE = "metre"
    KG = "kg"
    LITRE = "litre"
    PAKET = "paket"
    KUTU = "kutu"


class MaterialStatus(str, Enum):
    """Lifecycle status of a material."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONTINUED = "discontinued"


class StockLevel(str, Enum):
    """Stock level bucket derived from quantity and thresholds."""

    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    NORMAL = "normal"
    OVERSTOCK = "overstock"


DEFAULT_WAREHOUSE = "Ana Depo"


class SupplierContact(BaseModel):
    """Preferred supplier details kept on the material card."""

    name: str | None = None
    contact: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class StorageLocation(BaseModel):
    """Where the material is kept."""

    warehouse: str | None = DEFAULT_WAREHOUSE
    shelf: str | None = None
    position: str | None = None


def normalize_code(code: str) -> str:
    """Codes are compared and stored stripped and upper-cased."""
    return code.strip().upper()


def classify_stock_level(quantity: float, min_stock: float, max_stock: float) -> StockLevel:
    """Bucket a quantity against its reorder thresholds."""
    if quantity <= 0:
        return StockLevel.OUT_OF_STOCK
    if quantity <= min_stock:
        return StockLevel.LOW_STOCK
    if quantity >= max_stock:
        return StockLevel.OVERSTOCK
    return StockLevel.NORMAL


class Material(BaseModel):
    """
    A material tracked in stock.

    `quantity` is owned by the stock mutator; `version` increments on every
    write and backs the optimistic concurrency check.
    """

    id: str | None = None
    code: str
    name: str
    description: str | None = None
    category: MaterialCategory
    subcategory: str | None = None
    unit: MaterialUnit
    quantity: float = 0.0
    min_stock: float = 10.0
    max_stock: float = 1000.0
    unit_price: float = 0.0
    status: MaterialStatus = MaterialStatus.ACTIVE
    supplier: SupplierContact = Field(default_factory=SupplierContact)
    location: StorageLocation = Field(default_factory=StorageLocation)
    specifications: dict[str, str] = Field(default_factory=dict)
    barcode: str | None = None
    notes: str | None = None
    created_by: str | None = None
    updated_by: str | None = None
    version: int = 1
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def normalize_material_code(self) -> "Material":
        """Keep the code in canonical form."""
        self.code = normalize_code(self.code)
        return self

    @property
    def total_value(self) -> float:
        """Stock value = quantity * unit_price."""
        return self.quantity * self.unit_price

    @property
    def stock_level(self) -> StockLevel:
        return classify_stock_level(self.quantity, self.min_stock, self.max_stock)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock
