"""Stock transaction endpoints."""

from datetime import datetime

from fastapi import APIRouter, Body, Depends, Query, status

from stockledger.api.dependencies import (
    get_actor,
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
from stockledger.application.dto.mappers import to_transaction_response
from stockledger.application.dto.requests import (
    AdjustStockRequest,
    CancelTransactionRequest,
    IssueStockRequest,
    PendingTransactionRequest,
    ReceiveStockRequest,
    ReturnStockRequest,
    ReviewTransactionRequest,
)
from stockledger.application.dto.responses import (
    ErrorResponse,
    StockMovementResponse,
    TransactionListResponse,
    TransactionResponse,
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
from stockledger.core.entities.query import SortOrder, TransactionFilter, TransactionSortField
from stockledger.core.entities.transaction import Actor, TransactionStatus, TransactionType
from stockledger.core.services import Ledger

router = APIRouter(prefix="/api/transactions", tags=["transactions"])

MOVEMENT_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post(
    "/receive",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses=MOVEMENT_ERRORS,
)
async def receive_stock(
    request: ReceiveStockRequest,
    actor: Actor = Depends(get_actor),
    use_case: ReceiveStockUseCase = Depends(get_receive_stock_use_case),
) -> StockMovementResponse:
    """Receive stock (IN movement). The receipt price becomes the unit price."""
    result = await use_case.execute(request, actor)
    return use_case.to_response(result)


@router.post(
    "/issue",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses=MOVEMENT_ERRORS,
)
async def issue_stock(
    request: IssueStockRequest,
    actor: Actor = Depends(get_actor),
    use_case: IssueStockUseCase = Depends(get_issue_stock_use_case),
) -> StockMovementResponse:
    """Issue stock (OUT movement) with balance check."""
    result = await use_case.execute(request, actor)
    return use_case.to_response(result)


@router.post(
    "/adjust",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses=MOVEMENT_ERRORS,
)
async def adjust_stock(
    request: AdjustStockRequest,
    actor: Actor = Depends(get_actor),
    use_case: AdjustStockUseCase = Depends(get_adjust_stock_use_case),
) -> StockMovementResponse:
    """Correct stock by a signed delta."""
    result = await use_case.execute(request, actor)
    return use_case.to_response(result)


@router.post(
    "/return",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses=MOVEMENT_ERRORS,
)
async def return_stock(
    request: ReturnStockRequest,
    actor: Actor = Depends(get_actor),
    use_case: ReturnStockUseCase = Depends(get_return_stock_use_case),
) -> StockMovementResponse:
    """Take previously issued stock back in."""
    result = await use_case.execute(request, actor)
    return use_case.to_response(result)


@router.post(
    "/{transaction_id}/cancel",
    response_model=StockMovementResponse,
    responses=MOVEMENT_ERRORS,
)
async def cancel_transaction(
    transaction_id: int,
    reason: str | None = Body(default=None, embed=True),
    actor: Actor = Depends(get_actor),
    use_case: CancelTransactionUseCase = Depends(get_cancel_transaction_use_case),
) -> StockMovementResponse:
    """Cancel a completed transaction and reverse its stock effect."""
    result = await use_case.execute(
        CancelTransactionRequest(transaction_id=transaction_id, reason=reason), actor
    )
    return use_case.to_response(result)


@router.post(
    "/pending",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=MOVEMENT_ERRORS,
)
async def submit_pending(
    request: PendingTransactionRequest,
    actor: Actor = Depends(get_actor),
    use_case: SubmitPendingTransactionUseCase = Depends(get_submit_pending_use_case),
) -> TransactionResponse:
    """Record a receipt, issue or return that changes stock only once approved."""
    entry = await use_case.execute(request, actor)
    return use_case.to_response(entry)


@router.post(
    "/{transaction_id}/approve",
    response_model=StockMovementResponse,
    responses=MOVEMENT_ERRORS,
)
async def approve_transaction(
    transaction_id: int,
    actor: Actor = Depends(get_actor),
    use_case: ApproveTransactionUseCase = Depends(get_approve_transaction_use_case),
) -> StockMovementResponse:
    """Approve a pending transaction and apply its stock effect."""
    result = await use_case.execute(ReviewTransactionRequest(transaction_id=transaction_id), actor)
    return use_case.to_response(result)


@router.post(
    "/{transaction_id}/reject",
    response_model=TransactionResponse,
    responses=MOVEMENT_ERRORS,
)
async def reject_transaction(
    transaction_id: int,
    reason: str | None = Body(default=None, embed=True),
    actor: Actor = Depends(get_actor),
    use_case: RejectTransactionUseCase = Depends(get_reject_transaction_use_case),
) -> TransactionResponse:
    """Reject a pending transaction without touching stock."""
    entry = await use_case.execute(
        ReviewTransactionRequest(transaction_id=transaction_id, reason=reason), actor
    )
    return use_case.to_response(entry)


@router.get("", response_model=TransactionListResponse, responses={400: {"model": ErrorResponse}})
async def list_transactions(
    material_id: str | None = None,
    type: TransactionType | None = None,
    transaction_status: TransactionStatus | None = Query(default=None, alias="status"),
    user_id: str | None = None,
    start: datetime | None = Query(default=None, description="Inclusive lower bound"),
    end: datetime | None = Query(default=None, description="Inclusive upper bound"),
    sort_by: TransactionSortField = TransactionSortField.TIMESTAMP,
    sort_order: SortOrder = SortOrder.DESC,
    page: int = 1,
    page_size: int = 20,
    ledger: Ledger = Depends(get_ledger_service),
) -> TransactionListResponse:
    """Query the ledger with filters, sorting and pagination."""
    result = await ledger.query(
        TransactionFilter(
            material_id=material_id,
            type=type,
            status=transaction_status,
            user_id=user_id,
            start=start,
            end=end,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            page_size=page_size,
        )
    )
    return TransactionListResponse(
        items=[to_transaction_response(e) for e in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_prev=result.has_prev,
    )


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_transaction(
    transaction_id: int,
    ledger: Ledger = Depends(get_ledger_service),
) -> TransactionResponse:
    """Get a single ledger entry."""
    return to_transaction_response(await ledger.get(transaction_id))
