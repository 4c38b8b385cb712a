"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from stockledger.application.dto.requests import (
    AdjustStockRequest,
    CancelTransactionRequest,
    CreateMaterialRequest,
    DeleteMaterialRequest,
    IssueStockRequest,
    PendingTransactionRequest,
    ProjectInfoRequest,
    ReceiveStockRequest,
    ReportRequest,
    ReturnStockRequest,
    ReviewTransactionRequest,
    StorageLocationRequest,
    SupplierContactRequest,
    SupplierInfoRequest,
    UpdateMaterialRequest,
)
from stockledger.application.dto.responses import (
    BalanceCheckResponse,
    ComponentHealthResponse,
    CreateMaterialResponse,
    DeleteMaterialResponse,
    ErrorResponse,
    HealthResponse,
    MaterialListResponse,
    MaterialResponse,
    ReportResponse,
    StockMovementResponse,
    TransactionListResponse,
    TransactionResponse,
)

__all__ = [
    # Requests
    "CreateMaterialRequest",
    "UpdateMaterialRequest",
    "DeleteMaterialRequest",
    "ReceiveStockRequest",
    "IssueStockRequest",
    "AdjustStockRequest",
    "ReturnStockRequest",
    "CancelTransactionRequest",
    "PendingTransactionRequest",
    "ReviewTransactionRequest",
    "ReportRequest",
    "SupplierContactRequest",
    "StorageLocationRequest",
    "ProjectInfoRequest",
    "SupplierInfoRequest",
    # Responses
    "MaterialResponse",
    "MaterialListResponse",
    "TransactionResponse",
    "TransactionListResponse",
    "StockMovementResponse",
    "CreateMaterialResponse",
    "DeleteMaterialResponse",
    "BalanceCheckResponse",
    "ReportResponse",
    "ComponentHealthResponse",
    "HealthResponse",
    "ErrorResponse",
]
