"""
Dependency injection container for FastAPI.

Provides service and use case instances to route handlers.
"""

from functools import lru_cache

from fastapi import Header

from stockledger.application.services import (
    get_analytics_engine,
    get_ledger,
    get_material_registry,
    get_stock_mutator,
)
from stockledger.application.use_cases import (
    AdjustStockUseCase,
    ApproveTransactionUseCase,
    CancelTransactionUseCase,
    CreateMaterialUseCase,
    DeleteMaterialUseCase,
    GenerateReportUseCase,
    IssueStockUseCase,
    ReceiveStockUseCase,
    RejectTransactionUseCase,
    ReturnStockUseCase,
    SubmitPendingTransactionUseCase,
    UpdateMaterialUseCase,
)
from stockledger.config import Settings, get_settings
from stockledger.core.entities.transaction import Actor
from stockledger.core.services import AnalyticsEngine, Ledger, MaterialRegistry, StockMutator

ANONYMOUS_ACTOR_ID = "anonymous"
ANONYMOUS_ACTOR_NAME = "Anonymous"


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Caller identity
def get_actor(
    x_user_id: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
) -> Actor:
    """Resolve the acting user from the X-User-Id / X-User-Name headers."""
    user_id = (x_user_id or "").strip() or ANONYMOUS_ACTOR_ID
    user_name = (x_user_name or "").strip() or (
        user_id if user_id != ANONYMOUS_ACTOR_ID else ANONYMOUS_ACTOR_NAME
    )
    return Actor(id=user_id, name=user_name)


# Service dependencies
async def get_registry() -> MaterialRegistry:
    """Get material registry."""
    return await get_material_registry()


async def get_ledger_service() -> Ledger:
    """Get ledger service."""
    return await get_ledger()


async def get_mutator() -> StockMutator:
    """Get stock mutator."""
    return await get_stock_mutator()


async def get_analytics() -> AnalyticsEngine:
    """Get analytics engine."""
    return await get_analytics_engine()


# Material use case dependencies
def get_create_material_use_case() -> CreateMaterialUseCase:
    """Get create material use case."""
    return CreateMaterialUseCase()


def get_update_material_use_case() -> UpdateMaterialUseCase:
    """Get update material use case."""
    return UpdateMaterialUseCase()


def get_delete_material_use_case() -> DeleteMaterialUseCase:
    """Get delete material use case."""
    return DeleteMaterialUseCase()


# Stock use case dependencies
def get_receive_stock_use_case() -> ReceiveStockUseCase:
    """Get receive stock use case."""
    return ReceiveStockUseCase()


def get_issue_stock_use_case() -> IssueStockUseCase:
    """Get issue stock use case."""
    return IssueStockUseCase()


def get_adjust_stock_use_case() -> AdjustStockUseCase:
    """Get adjust stock use case."""
    return AdjustStockUseCase()


def get_return_stock_use_case() -> ReturnStockUseCase:
    """Get return stock use case."""
    return ReturnStockUseCase()


def get_cancel_transaction_use_case() -> CancelTransactionUseCase:
    """Get cancel transaction use case."""
    return CancelTransactionUseCase()


def get_submit_pending_use_case() -> SubmitPendingTransactionUseCase:
    """Get submit pending transaction use case."""
    return SubmitPendingTransactionUseCase()


def get_approve_transaction_use_case() -> ApproveTransactionUseCase:
    """Get approve transaction use case."""
    return ApproveTransactionUseCase()


def get_reject_transaction_use_case() -> RejectTransactionUseCase:
    """Get reject transaction use case."""
    return RejectTransactionUseCase()


# Report use case dependency
def get_generate_report_use_case() -> GenerateReportUseCase:
    """Get generate report use case."""
    return GenerateReportUseCase()
