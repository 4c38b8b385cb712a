"""Tests for the stock movement use cases."""

from unittest.mock import AsyncMock

import pytest

from stockledger.application.dto.requests import (
    AdjustStockRequest,
    CancelTransactionRequest,
    IssueStockRequest,
    PendingTransactionRequest,
    ReceiveStockRequest,
    ReturnStockRequest,
    ReviewTransactionRequest,
    SupplierInfoRequest,
)
from stockledger.application.use_cases import (
    AdjustStockUseCase,
    ApproveTransactionUseCase,
    CancelTransactionUseCase,
    IssueStockUseCase,
    ReceiveStockUseCase,
    RejectTransactionUseCase,
    ReturnStockUseCase,
    SubmitPendingTransactionUseCase,
)
from stockledger.core.entities.transaction import (
    ProjectInfo,
    SupplierInfo,
    TransactionStatus,
    TransactionType,
)
from stockledger.core.exceptions import InsufficientStockError, ValidationError


@pytest.fixture
def mock_mutator(movement_result):
    mutator = AsyncMock()
    mutator.receive.return_value = movement_result
    mutator.issue.return_value = movement_result
    mutator.adjust.return_value = movement_result
    mutator.return_stock.return_value = movement_result
    mutator.cancel.return_value = movement_result
    mutator.approve.return_value = movement_result
    return mutator


class TestReceiveStock:
    async def test_passes_receipt_details(self, mock_mutator, actor):
        use_case = ReceiveStockUseCase(mutator=mock_mutator)
        request = ReceiveStockRequest(
            material_id="mat-1",
            quantity=10,
            unit_price=100,
            reference="IRS-2024-001",
            project={"name": "Fabrika Otomasyonu", "code": "PRJ-7"},
            supplier={"name": "Siemens", "invoice": "FT-123"},
        )

        await use_case.execute(request, actor)

        args, kwargs = mock_mutator.receive.call_args
        assert args == ("mat-1", 10, actor)
        assert kwargs["reference"] == "IRS-2024-001"
        assert kwargs["unit_price"] == 100
        assert kwargs["project"] == ProjectInfo(name="Fabrika Otomasyonu", code="PRJ-7")
        assert kwargs["supplier"] == SupplierInfo(name="Siemens", invoice="FT-123")

    async def test_optional_blocks_omitted(self, mock_mutator, actor):
        use_case = ReceiveStockUseCase(mutator=mock_mutator)
        await use_case.execute(ReceiveStockRequest(material_id="mat-1", quantity=1), actor)
        kwargs = mock_mutator.receive.call_args.kwargs
        assert kwargs["project"] is None
        assert kwargs["supplier"] is None
        assert kwargs["unit_price"] is None

    async def test_to_response(self, mock_mutator, movement_result, actor):
        use_case = ReceiveStockUseCase(mutator=mock_mutator)
        response = use_case.to_response(movement_result)
        assert response.previous_quantity == 15
        assert response.new_quantity == 25
        assert response.material.quantity == 25
        assert response.material.stock_level == "normal"
        assert response.transaction.id == 1
        assert response.transaction.type == "in"
        assert response.transaction.user_id == actor.id
        assert response.low_stock_warning is False


class TestIssueStock:
    async def test_delegates(self, mock_mutator, actor):
        use_case = IssueStockUseCase(mutator=mock_mutator)
        request = IssueStockRequest(
            material_id="mat-1", quantity=12, reference="IS-1", project={"name": "Hat 2"}
        )
        await use_case.execute(request, actor)
        args, kwargs = mock_mutator.issue.call_args
        assert args == ("mat-1", 12, actor)
        assert kwargs["project"].name == "Hat 2"

    async def test_errors_propagate(self, mock_mutator, actor):
        mock_mutator.issue.side_effect = InsufficientStockError("mat-1", 16, 15)
        use_case = IssueStockUseCase(mutator=mock_mutator)
        with pytest.raises(InsufficientStockError):
            await use_case.execute(
                IssueStockRequest(material_id="mat-1", quantity=16, reference="IS-2"), actor
            )


class TestAdjustStock:
    async def test_delegates_reason(self, mock_mutator, actor):
        use_case = AdjustStockUseCase(mutator=mock_mutator)
        request = AdjustStockRequest(material_id="mat-1", quantity=-2, reason="sayım farkı")
        await use_case.execute(request, actor)
        args, kwargs = mock_mutator.adjust.call_args
        assert args == ("mat-1", -2, actor)
        assert kwargs["reason"] == "sayım farkı"


class TestReturnStock:
    async def test_delegates(self, mock_mutator, actor):
        use_case = ReturnStockUseCase(mutator=mock_mutator)
        await use_case.execute(
            ReturnStockRequest(material_id="mat-1", quantity=3, reference="RET-1"), actor
        )
        args, kwargs = mock_mutator.return_stock.call_args
        assert args == ("mat-1", 3, actor)
        assert kwargs["reference"] == "RET-1"


class TestCancelTransaction:
    async def test_delegates(self, mock_mutator, actor):
        use_case = CancelTransactionUseCase(mutator=mock_mutator)
        await use_case.execute(CancelTransactionRequest(transaction_id=1, reason="hatalı"), actor)
        mock_mutator.cancel.assert_awaited_once_with(1, actor, reason="hatalı")


class TestPendingTransactions:
    async def test_submit_parses_type(self, mock_mutator, stock_entry, actor):
        mock_mutator.submit_pending.return_value = stock_entry.model_copy(
            update={"status": TransactionStatus.PENDING}
        )
        use_case = SubmitPendingTransactionUseCase(mutator=mock_mutator)
        entry = await use_case.execute(
            PendingTransactionRequest(
                type="in",
                material_id="mat-1",
                quantity=10,
                unit_price=120,
                reference="IRS-9",
                supplier=SupplierInfoRequest(name="Schneider", invoice="FT-9"),
            ),
            actor,
        )
        assert use_case.to_response(entry).status == "pending"

        args, kwargs = mock_mutator.submit_pending.call_args
        assert args == (TransactionType.IN, "mat-1", 10, actor)
        assert kwargs["unit_price"] == 120
        assert isinstance(kwargs["supplier"], SupplierInfo)
        assert kwargs["project"] is None

    async def test_submit_unknown_type(self, mock_mutator, actor):
        use_case = SubmitPendingTransactionUseCase(mutator=mock_mutator)
        with pytest.raises(ValidationError):
            await use_case.execute(
                PendingTransactionRequest(type="gift", material_id="mat-1", quantity=1), actor
            )
        mock_mutator.submit_pending.assert_not_called()

    async def test_approve_delegates(self, mock_mutator, movement_result, actor):
        use_case = ApproveTransactionUseCase(mutator=mock_mutator)
        result = await use_case.execute(ReviewTransactionRequest(transaction_id=4), actor)
        assert result is movement_result
        mock_mutator.approve.assert_awaited_once_with(4, actor)

    async def test_reject_delegates_reason(self, mock_mutator, stock_entry, actor):
        mock_mutator.reject.return_value = stock_entry
        use_case = RejectTransactionUseCase(mutator=mock_mutator)
        await use_case.execute(ReviewTransactionRequest(transaction_id=4, reason="fazla"), actor)
        mock_mutator.reject.assert_awaited_once_with(4, actor, reason="fazla")
