"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers.
"""

from stockledger.application.services import (
    build_stock_policy,
    get_analytics_engine,
    get_ledger,
    get_material_registry,
    get_stock_mutator,
    reset_services,
)
from stockledger.application.use_cases import (
    AdjustStockUseCase,
    CancelTransactionUseCase,
    CreateMaterialUseCase,
    DeleteMaterialUseCase,
    GenerateReportUseCase,
    IssueStockUseCase,
    ReceiveStockUseCase,
    ReturnStockUseCase,
    UpdateMaterialUseCase,
)

__all__ = [
    # Service factories
    "build_stock_policy",
    "get_material_registry",
    "get_ledger",
    "get_stock_mutator",
    "get_analytics_engine",
    "reset_services",
    # Use cases
    "CreateMaterialUseCase",
    "UpdateMaterialUseCase",
    "DeleteMaterialUseCase",
    "ReceiveStockUseCase",
    "IssueStockUseCase",
    "AdjustStockUseCase",
    "ReturnStockUseCase",
    "CancelTransactionUseCase",
    "GenerateReportUseCase",
]
