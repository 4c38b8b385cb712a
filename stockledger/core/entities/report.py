"""Report structures produced by the analytics engine."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from stockledger.core.entities.material import (
    MaterialCategory,
    MaterialStatus,
    MaterialUnit,
    StockLevel,
)
from stockledger.core.entities.transaction import LedgerEntry, TransactionType


class AbcClass(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class CostGroupBy(str, Enum):
    CATEGORY = "category"
    SUPPLIER = "supplier"
    MATERIAL = "material"


class TrendGroupBy(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


# --- Stock valuation ---


class ValuationLine(BaseModel):
    material_id: str
    code: str
    name: str
    category: MaterialCategory
    unit: MaterialUnit
    status: MaterialStatus
    quantity: float
    unit_price: float
    total_value: float
    min_stock: float
    max_stock: float
    stock_level: StockLevel


class ValuationTotals(BaseModel):
    total_materials: int = 0
    total_value: float = 0.0
    total_quantity: float = 0.0
    stock_level_counts: dict[StockLevel, int] = Field(default_factory=dict)


class StockValuationReport(BaseModel):
    lines: list[ValuationLine] = Field(default_factory=list)
    totals: ValuationTotals = Field(default_factory=ValuationTotals)
    filters: dict[str, str | None] = Field(default_factory=dict)
    generated_at: datetime


# --- Transaction report ---


class TransactionTotals(BaseModel):
    total_transactions: int = 0
    total_value: float = 0.0
    total_quantity: float = 0.0
    count_by_type: dict[str, int] = Field(default_factory=dict)
    value_by_type: dict[str, float] = Field(default_factory=dict)
    in_value: float = 0.0
    out_value: float = 0.0


class TransactionReport(BaseModel):
    entries: list[LedgerEntry] = Field(default_factory=list)
    totals: TransactionTotals = Field(default_factory=TransactionTotals)
    generated_at: datetime


# --- ABC analysis ---


class AbcLine(BaseModel):
    material_id: str
    code: str | None = None
    name: str | None = None
    category: MaterialCategory | None = None
    current_quantity: float | None = None
    total_value: float
    total_quantity: float
    transaction_count: int
    rank: int
    value_percentage: float
    cumulative_percentage: float
    classification: AbcClass


class AbcClassSummary(BaseModel):
    count: int = 0
    percentage: float = 0.0
    total_value: float = 0.0


class AbcAnalysisReport(BaseModel):
    lines: list[AbcLine] = Field(default_factory=list)
    summary: dict[AbcClass, AbcClassSummary] = Field(default_factory=dict)
    window_days: int
    window_start: datetime
    window_end: datetime
    total_value: float = 0.0
    generated_at: datetime


# --- Cost analysis ---


class CostGroup(BaseModel):
    key: str
    label: str
    total_cost: float = 0.0
    total_revenue: float = 0.0
    in_transactions: int = 0
    out_transactions: int = 0
    total_quantity_in: float = 0.0
    total_quantity_out: float = 0.0
    net_value: float = 0.0
    margin: float = 0.0


class CostTotals(BaseModel):
    total_cost: float = 0.0
    total_revenue: float = 0.0
    total_transactions: int = 0
    net_value: float = 0.0
    overall_margin: float = 0.0


class CostAnalysisReport(BaseModel):
    groups: list[CostGroup] = Field(default_factory=list)
    totals: CostTotals = Field(default_factory=CostTotals)
    group_by: CostGroupBy
    window_days: int
    window_start: datetime
    window_end: datetime
    generated_at: datetime


# --- Alerts, trends, overview ---


class StockAlertItem(BaseModel):
    material_id: str
    code: str
    name: str
    category: MaterialCategory
    quantity: float
    min_stock: float
    max_stock: float
    unit_price: float
    updated_at: datetime


class StockAlertsReport(BaseModel):
    low_stock: list[StockAlertItem] = Field(default_factory=list)
    out_of_stock: list[StockAlertItem] = Field(default_factory=list)
    overstock: list[StockAlertItem] = Field(default_factory=list)
    counts: dict[StockLevel, int] = Field(default_factory=dict)
    generated_at: datetime


class TrendBucket(BaseModel):
    period_start: date
    type: str
    count: int = 0
    total_value: float = 0.0
    total_quantity: float = 0.0


class TransactionTrendsReport(BaseModel):
    buckets: list[TrendBucket] = Field(default_factory=list)
    group_by: TrendGroupBy
    window_days: int
    window_start: datetime
    window_end: datetime
    generated_at: datetime


class CategorySummary(BaseModel):
    category: MaterialCategory
    count: int = 0
    total_value: float = 0.0


class OverviewReport(BaseModel):
    total_materials: int = 0
    low_stock_materials: int = 0
    out_of_stock_materials: int = 0
    total_stock_value: float = 0.0
    today_transactions: int = 0
    month_in_value: float = 0.0
    month_out_value: float = 0.0
    top_materials_by_value: list[ValuationLine] = Field(default_factory=list)
    materials_by_category: list[CategorySummary] = Field(default_factory=list)
    generated_at: datetime


# --- Activity ---


class TopMaterialLine(BaseModel):
    material_id: str
    code: str | None = None
    name: str | None = None
    category: MaterialCategory | None = None
    current_quantity: float | None = None
    unit_price: float | None = None
    transaction_count: int = 0
    total_value: float = 0.0
    total_quantity: float = 0.0


class TopMaterialsReport(BaseModel):
    lines: list[TopMaterialLine] = Field(default_factory=list)
    type: TransactionType | None = None
    limit: int
    window_days: int
    window_start: datetime
    window_end: datetime
    generated_at: datetime


class UserActivityLine(BaseModel):
    user_id: str
    user_name: str
    transaction_count: int = 0
    total_value: float = 0.0
    count_by_type: dict[str, int] = Field(default_factory=dict)
    last_activity: datetime | None = None


class UserActivityReport(BaseModel):
    lines: list[UserActivityLine] = Field(default_factory=list)
    active_users: int = 0
    window_days: int
    window_start: datetime
    window_end: datetime
    generated_at: datetime
