"""Pending transaction use cases: submit, approve and reject."""

from stockledger.application.dto.mappers import to_movement_response, to_transaction_response
from stockledger.application.dto.requests import (
    PendingTransactionRequest,
    ReviewTransactionRequest,
)
from stockledger.application.dto.responses import StockMovementResponse, TransactionResponse
from stockledger.config import get_logger
from stockledger.core.entities.transaction import (
    Actor,
    LedgerEntry,
    ProjectInfo,
    SupplierInfo,
    TransactionType,
)
from stockledger.core.exceptions import ValidationError
from stockledger.core.services.stock_mutator import StockMovementResult, StockMutator

logger = get_logger(__name__)


class _MutatorUseCase:
    def __init__(self, mutator: StockMutator | None = None):
        self._mutator = mutator

    async def _get_mutator(self) -> StockMutator:
        if self._mutator is None:
            from stockledger.application.services import get_stock_mutator

            self._mutator = await get_stock_mutator()
        return self._mutator


class SubmitPendingTransactionUseCase(_MutatorUseCase):
    """Record a receipt, issue or return for later approval."""

    async def execute(self, request: PendingTransactionRequest, actor: Actor) -> LedgerEntry:
        try:
            type = TransactionType(request.type)
        except ValueError as e:
            raise ValidationError("type", "Must be one of: in, out, return", request.type) from e

        logger.info(
            "submit_pending_started",
            type=type.value,
            material_id=request.material_id,
            quantity=request.quantity,
            user_id=actor.id,
        )

        mutator = await self._get_mutator()
        entry = await mutator.submit_pending(
            type,
            request.material_id,
            request.quantity,
            actor,
            reference=request.reference,
            unit_price=request.unit_price,
            description=request.description,
            notes=request.notes,
            project=ProjectInfo(**request.project.model_dump()) if request.project else None,
            supplier=SupplierInfo(**request.supplier.model_dump()) if request.supplier else None,
        )

        logger.info(
            "submit_pending_complete",
            transaction_id=entry.id,
            transaction_no=entry.transaction_no,
        )
        return entry

    def to_response(self, entry: LedgerEntry) -> TransactionResponse:
        return to_transaction_response(entry)


class ApproveTransactionUseCase(_MutatorUseCase):
    """
    Approve a pending transaction.

    The stock effect is applied in the same commit as the status change.
    """

    async def execute(
        self, request: ReviewTransactionRequest, actor: Actor
    ) -> StockMovementResult:
        logger.info(
            "approve_transaction_started",
            transaction_id=request.transaction_id,
            user_id=actor.id,
        )

        mutator = await self._get_mutator()
        result = await mutator.approve(request.transaction_id, actor)

        logger.info(
            "approve_transaction_complete",
            transaction_id=request.transaction_id,
            material_id=result.material.id,
            new_qty=result.new_quantity,
        )
        return result

    def to_response(self, result: StockMovementResult) -> StockMovementResponse:
        return to_movement_response(result)


class RejectTransactionUseCase(_MutatorUseCase):
    """Reject a pending transaction. Stock is not touched."""

    async def execute(self, request: ReviewTransactionRequest, actor: Actor) -> LedgerEntry:
        mutator = await self._get_mutator()
        return await mutator.reject(request.transaction_id, actor, reason=request.reason)

    def to_response(self, entry: LedgerEntry) -> TransactionResponse:
        return to_transaction_response(entry)
