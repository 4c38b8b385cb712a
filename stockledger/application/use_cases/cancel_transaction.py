"""Cancel Transaction Use Case: reverse a completed entry."""

from stockledger.application.dto.mappers import to_movement_response
from stockledger.application.dto.requests import CancelTransactionRequest
from stockledger.application.dto.responses import StockMovementResponse
from stockledger.config import get_logger
from stockledger.core.entities.transaction import Actor
from stockledger.core.services.stock_mutator import StockMovementResult, StockMutator

logger = get_logger(__name__)


class CancelTransactionUseCase:
    """
    Cancel a completed transaction.

    The entry is kept and marked cancelled; its stock effect is reversed in
    the same commit. Cancelling twice is a conflict.
    """

    def __init__(self, mutator: StockMutator | None = None):
        self._mutator = mutator

    async def _get_mutator(self) -> StockMutator:
        if self._mutator is None:
            from stockledger.application.services import get_stock_mutator

            self._mutator = await get_stock_mutator()
        return self._mutator

    async def execute(
        self, request: CancelTransactionRequest, actor: Actor
    ) -> StockMovementResult:
        logger.info(
            "cancel_transaction_started",
            transaction_id=request.transaction_id,
            user_id=actor.id,
        )

        mutator = await self._get_mutator()
        result = await mutator.cancel(request.transaction_id, actor, reason=request.reason)

        logger.info(
            "cancel_transaction_complete",
            transaction_id=request.transaction_id,
            material_id=result.material.id,
            new_qty=result.new_quantity,
        )
        return result

    def to_response(self, result: StockMovementResult) -> StockMovementResponse:
        return to_movement_response(result)
