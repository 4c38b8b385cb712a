"""API tests for stock transaction endpoints with a mocked mutator."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from stockledger.api.dependencies import (
    get_adjust_stock_use_case,
    get_approve_transaction_use_case,
    get_cancel_transaction_use_case,
    get_issue_stock_use_case,
    get_ledger_service,
    get_receive_stock_use_case,
    get_reject_transaction_use_case,
    get_return_stock_use_case,
    get_submit_pending_use_case,
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
from stockledger.core.entities.query import TransactionPage
from stockledger.core.entities.transaction import TransactionStatus, TransactionType
from stockledger.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    NegativeStockResultError,
    StoreTimeoutError,
    TransactionNotFoundError,
    ValidationError,
)


@pytest.fixture
def mock_mutator(movement_result):
    mutator = AsyncMock()
    for name in ("receive", "issue", "adjust", "return_stock", "cancel"):
        getattr(mutator, name).return_value = movement_result
    return mutator


@pytest.fixture
def tx_overrides(overrides, mock_mutator):
    overrides[get_receive_stock_use_case] = lambda: ReceiveStockUseCase(mutator=mock_mutator)
    overrides[get_issue_stock_use_case] = lambda: IssueStockUseCase(mutator=mock_mutator)
    overrides[get_adjust_stock_use_case] = lambda: AdjustStockUseCase(mutator=mock_mutator)
    overrides[get_return_stock_use_case] = lambda: ReturnStockUseCase(mutator=mock_mutator)
    overrides[get_cancel_transaction_use_case] = lambda: CancelTransactionUseCase(
        mutator=mock_mutator
    )
    return overrides


class TestMovements:
    async def test_receive(self, client: AsyncClient, tx_overrides, mock_mutator, actor_headers):
        response = await client.post(
            "/api/transactions/receive",
            json={
                "material_id": "mat-1",
                "quantity": 10,
                "unit_price": 100,
                "reference": "IRS-2024-001",
                "supplier": {"name": "Schneider", "invoice": "FT-1"},
            },
            headers=actor_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["previous_quantity"] == 15
        assert data["new_quantity"] == 25
        assert data["transaction"]["user_id"] == "u-1"
        assert data["material"]["version"] == 3

        args, kwargs = mock_mutator.receive.call_args
        assert args[:2] == ("mat-1", 10)
        assert args[2].name == "Depo Sorumlusu"
        assert kwargs["supplier"].invoice == "FT-1"

    async def test_anonymous_actor(self, client: AsyncClient, tx_overrides, mock_mutator):
        await client.post("/api/transactions/issue", json={"material_id": "mat-1", "quantity": 1})
        actor = mock_mutator.issue.call_args[0][2]
        assert actor.id == "anonymous"

    async def test_insufficient_stock_is_422(self, client: AsyncClient, tx_overrides, mock_mutator):
        mock_mutator.issue.side_effect = InsufficientStockError("mat-1", 20, 15)
        response = await client.post(
            "/api/transactions/issue", json={"material_id": "mat-1", "quantity": 20}
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "INSUFFICIENT_STOCK"
        assert "15" in body["message"]

    async def test_negative_adjustment_is_422(self, client: AsyncClient, tx_overrides, mock_mutator):
        mock_mutator.adjust.side_effect = NegativeStockResultError("mat-1", 15, -20)
        response = await client.post(
            "/api/transactions/adjust",
            json={"material_id": "mat-1", "quantity": -20, "reason": "sayım"},
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "NEGATIVE_STOCK_RESULT"

    async def test_zero_quantity_is_400(self, client: AsyncClient, tx_overrides, mock_mutator):
        mock_mutator.receive.side_effect = ValidationError("quantity", "must be positive", 0)
        response = await client.post(
            "/api/transactions/receive", json={"material_id": "mat-1", "quantity": 0}
        )
        assert response.status_code == 400

    async def test_missing_quantity_is_422(self, client: AsyncClient, tx_overrides):
        response = await client.post("/api/transactions/receive", json={"material_id": "mat-1"})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_store_timeout_is_503(self, client: AsyncClient, tx_overrides, mock_mutator):
        mock_mutator.return_stock.side_effect = StoreTimeoutError("apply_movement", 5.0)
        response = await client.post(
            "/api/transactions/return", json={"material_id": "mat-1", "quantity": 2}
        )
        assert response.status_code == 503
        assert response.json()["error_code"] == "STORE_TIMEOUT"


class TestCancel:
    async def test_cancel_with_reason(self, client: AsyncClient, tx_overrides, mock_mutator):
        response = await client.post("/api/transactions/1/cancel", json={"reason": "hatalı giriş"})
        assert response.status_code == 200
        args, kwargs = mock_mutator.cancel.call_args
        assert args[0] == 1
        assert kwargs["reason"] == "hatalı giriş"

    async def test_cancel_without_body(self, client: AsyncClient, tx_overrides, mock_mutator):
        response = await client.post("/api/transactions/1/cancel")
        assert response.status_code == 200
        assert mock_mutator.cancel.call_args.kwargs["reason"] is None

    async def test_already_cancelled_is_409(self, client: AsyncClient, tx_overrides, mock_mutator):
        mock_mutator.cancel.side_effect = ConflictError("Transaction 1 is already cancelled")
        response = await client.post("/api/transactions/1/cancel")
        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"

    async def test_unknown_is_404(self, client: AsyncClient, tx_overrides, mock_mutator):
        mock_mutator.cancel.side_effect = TransactionNotFoundError(42)
        response = await client.post("/api/transactions/42/cancel")
        assert response.status_code == 404


class TestPending:
    @pytest.fixture
    def pending_entry(self, stock_entry):
        return stock_entry.model_copy(
            update={
                "transaction_no": "OUT-20240301-0000ABCD",
                "type": TransactionType.OUT,
                "quantity": -10,
                "balance_after": None,
                "status": TransactionStatus.PENDING,
            }
        )

    @pytest.fixture
    def review_overrides(self, tx_overrides, mock_mutator, pending_entry):
        mock_mutator.submit_pending.return_value = pending_entry
        mock_mutator.reject.return_value = pending_entry.model_copy(
            update={"status": TransactionStatus.CANCELLED}
        )
        tx_overrides[get_submit_pending_use_case] = lambda: SubmitPendingTransactionUseCase(
            mutator=mock_mutator
        )
        tx_overrides[get_approve_transaction_use_case] = lambda: ApproveTransactionUseCase(
            mutator=mock_mutator
        )
        tx_overrides[get_reject_transaction_use_case] = lambda: RejectTransactionUseCase(
            mutator=mock_mutator
        )
        return tx_overrides

    async def test_submit(self, client: AsyncClient, review_overrides, mock_mutator, actor_headers):
        response = await client.post(
            "/api/transactions/pending",
            json={"type": "out", "material_id": "mat-1", "quantity": 10, "reference": "IS-9"},
            headers=actor_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["transaction_no"] == "OUT-20240301-0000ABCD"

        args, kwargs = mock_mutator.submit_pending.call_args
        assert args[:3] == (TransactionType.OUT, "mat-1", 10)
        assert kwargs["reference"] == "IS-9"

    async def test_submit_unknown_type_is_400(self, client: AsyncClient, review_overrides, mock_mutator):
        response = await client.post(
            "/api/transactions/pending",
            json={"type": "gift", "material_id": "mat-1", "quantity": 1, "reference": "X"},
        )
        assert response.status_code == 400
        mock_mutator.submit_pending.assert_not_called()

    async def test_approve(self, client: AsyncClient, review_overrides, mock_mutator, actor_headers):
        mock_mutator.approve.return_value = mock_mutator.receive.return_value
        response = await client.post("/api/transactions/1/approve", headers=actor_headers)
        assert response.status_code == 200
        assert response.json()["new_quantity"] == 25
        args = mock_mutator.approve.call_args[0]
        assert args[0] == 1
        assert args[1].id == "u-1"

    async def test_approve_non_pending_is_409(self, client: AsyncClient, review_overrides, mock_mutator):
        mock_mutator.approve.side_effect = ConflictError(
            "Only pending transactions can be approved (status: completed)"
        )
        response = await client.post("/api/transactions/1/approve")
        assert response.status_code == 409

    async def test_approve_insufficient_is_422(self, client: AsyncClient, review_overrides, mock_mutator):
        mock_mutator.approve.side_effect = InsufficientStockError("mat-1", 20, 15)
        response = await client.post("/api/transactions/1/approve")
        assert response.status_code == 422
        assert response.json()["error_code"] == "INSUFFICIENT_STOCK"

    async def test_reject_with_reason(self, client: AsyncClient, review_overrides, mock_mutator):
        response = await client.post("/api/transactions/1/reject", json={"reason": "gereksiz"})
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert mock_mutator.reject.call_args.kwargs["reason"] == "gereksiz"


class TestQueries:
    @pytest.fixture
    def ledger(self, overrides, stock_entry):
        ledger = AsyncMock()
        ledger.get.return_value = stock_entry
        ledger.query.return_value = TransactionPage(items=[stock_entry], total=1)
        overrides[get_ledger_service] = lambda: ledger
        return ledger

    async def test_list_filters(self, client: AsyncClient, ledger):
        response = await client.get(
            "/api/transactions",
            params={
                "material_id": "mat-1",
                "type": "in",
                "status": "completed",
                "start": "2024-03-01T00:00:00+00:00",
            },
        )
        assert response.status_code == 200
        assert response.json()["total"] == 1

        sent = ledger.query.call_args[0][0]
        assert sent.type == TransactionType.IN
        assert sent.status == TransactionStatus.COMPLETED
        assert sent.start == datetime(2024, 3, 1, tzinfo=UTC)

    async def test_get_single(self, client: AsyncClient, ledger):
        response = await client.get("/api/transactions/1")
        assert response.status_code == 200
        data = response.json()
        assert data["reference"] == "IRS-2024-001"
        assert data["status"] == "completed"

    async def test_get_missing(self, client: AsyncClient, ledger):
        ledger.get.side_effect = TransactionNotFoundError(9)
        response = await client.get("/api/transactions/9")
        assert response.status_code == 404
        assert response.json()["error_code"] == "TRANSACTION_NOT_FOUND"
