"""Core domain entities."""

from stockledger.core.entities.material import (
    Material,
    MaterialCategory,
    MaterialStatus,
    MaterialUnit,
    StockLevel,
    StorageLocation,
    SupplierContact,
    classify_stock_level,
    normalize_code,
)
from stockledger.core.entities.query import (
    MaterialFilter,
    MaterialPage,
    MaterialSortField,
    SortOrder,
    TransactionFilter,
    TransactionPage,
    TransactionSortField,
)
from stockledger.core.entities.report import (
    AbcAnalysisReport,
    AbcClass,
    AbcLine,
    CostAnalysisReport,
    CostGroup,
    CostGroupBy,
    OverviewReport,
    StockAlertsReport,
    StockValuationReport,
    TopMaterialsReport,
    TransactionReport,
    TransactionTrendsReport,
    TrendGroupBy,
    UserActivityReport,
    ValuationLine,
)
from stockledger.core.entities.transaction import (
    Actor,
    LedgerEntry,
    ProjectInfo,
    SupplierInfo,
    TransactionStatus,
    TransactionType,
)

__all__ = [
    # Material
    "Material",
    "MaterialCategory",
    "MaterialStatus",
    "MaterialUnit",
    "StockLevel",
    "StorageLocation",
    "SupplierContact",
    "classify_stock_level",
    "normalize_code",
    # Ledger
    "Actor",
    "LedgerEntry",
    "ProjectInfo",
    "SupplierInfo",
    "TransactionStatus",
    "TransactionType",
    # Queries
    "MaterialFilter",
    "MaterialPage",
    "MaterialSortField",
    "SortOrder",
    "TransactionFilter",
    "TransactionPage",
    "TransactionSortField",
    # Reports
    "AbcAnalysisReport",
    "AbcClass",
    "AbcLine",
    "CostAnalysisReport",
    "CostGroup",
    "CostGroupBy",
    "OverviewReport",
    "StockAlertsReport",
    "StockValuationReport",
    "TopMaterialsReport",
    "TransactionReport",
    "TransactionTrendsReport",
    "TrendGroupBy",
    "UserActivityReport",
    "ValuationLine",
]
