"""Application use cases."""

from stockledger.application.use_cases.adjust_stock import AdjustStockUseCase
from stockledger.application.use_cases.cancel_transaction import CancelTransactionUseCase
from stockledger.application.use_cases.create_material import CreateMaterialUseCase
from stockledger.application.use_cases.delete_material import (
    DeleteMaterialResult,
    DeleteMaterialUseCase,
)
from stockledger.application.use_cases.generate_report import (
    GenerateReportUseCase,
    ReportResult,
    ReportType,
)
from stockledger.application.use_cases.issue_stock import IssueStockUseCase
from stockledger.application.use_cases.receive_stock import ReceiveStockUseCase
from stockledger.application.use_cases.return_stock import ReturnStockUseCase
from stockledger.application.use_cases.review_transaction import (
    ApproveTransactionUseCase,
    RejectTransactionUseCase,
    SubmitPendingTransactionUseCase,
)
from stockledger.application.use_cases.update_material import UpdateMaterialUseCase

__all__ = [
    # Materials
    "CreateMaterialUseCase",
    "UpdateMaterialUseCase",
    "DeleteMaterialUseCase",
    "DeleteMaterialResult",
    # Stock
    "ReceiveStockUseCase",
    "IssueStockUseCase",
    "AdjustStockUseCase",
    "ReturnStockUseCase",
    "CancelTransactionUseCase",
    "SubmitPendingTransactionUseCase",
    "ApproveTransactionUseCase",
    "RejectTransactionUseCase",
    # Reports
    "GenerateReportUseCase",
    "ReportResult",
    "ReportType",
]
