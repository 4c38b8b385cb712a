"""Adjust Stock Use Case: signed correction with a mandatory reason."""

from stockledger.application.dto.mappers import to_movement_response
from stockledger.application.dto.requests import AdjustStockRequest
from stockledger.application.dto.responses import StockMovementResponse
from stockledger.config import get_logger
from stockledger.core.entities.transaction import Actor
from stockledger.core.services.stock_mutator import StockMovementResult, StockMutator

logger = get_logger(__name__)


class AdjustStockUseCase:
    """Correct a material's quantity by a signed delta."""

    def __init__(self, mutator: StockMutator | None = None):
        self._mutator = mutator

    async def _get_mutator(self) -> StockMutator:
        if self._mutator is None:
            from stockledger.application.services import get_stock_mutator

            self._mutator = await get_stock_mutator()
        return self._mutator

    async def execute(self, request: AdjustStockRequest, actor: Actor) -> StockMovementResult:
        logger.info(
            "adjust_stock_started",
            material_id=request.material_id,
            delta=request.quantity,
            user_id=actor.id,
        )

        mutator = await self._get_mutator()
        result = await mutator.adjust(
            request.material_id,
            request.quantity,
            actor,
            reason=request.reason,
            reference=request.reference,
            notes=request.notes,
        )

        logger.info(
            "adjust_stock_complete",
            transaction_id=result.entry.id,
            previous_qty=result.previous_quantity,
            new_qty=result.new_quantity,
        )
        return result

    def to_response(self, result: StockMovementResult) -> StockMovementResponse:
        return to_movement_response(result)
