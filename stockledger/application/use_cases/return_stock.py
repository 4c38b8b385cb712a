"""Return Stock Use Case: issued material coming back into stock."""

from stockledger.application.dto.mappers import to_movement_response
from stockledger.application.dto.requests import ReturnStockRequest
from stockledger.application.dto.responses import StockMovementResponse
from stockledger.config import get_logger
from stockledger.core.entities.transaction import Actor, ProjectInfo
from stockledger.core.services.stock_mutator import StockMovementResult, StockMutator

logger = get_logger(__name__)


class ReturnStockUseCase:
    """Book a return (RETURN movement) at the current unit price."""

    def __init__(self, mutator: StockMutator | None = None):
        self._mutator = mutator

    async def _get_mutator(self) -> StockMutator:
        if self._mutator is None:
            from stockledger.application.services import get_stock_mutator

            self._mutator = await get_stock_mutator()
        return self._mutator

    async def execute(self, request: ReturnStockRequest, actor: Actor) -> StockMovementResult:
        logger.info(
            "return_stock_started",
            material_id=request.material_id,
            quantity=request.quantity,
            user_id=actor.id,
        )

        mutator = await self._get_mutator()
        result = await mutator.return_stock(
            request.material_id,
            request.quantity,
            actor,
            reference=request.reference,
            description=request.description,
            notes=request.notes,
            project=ProjectInfo(**request.project.model_dump()) if request.project else None,
        )

        logger.info(
            "return_stock_complete",
            transaction_id=result.entry.id,
            new_qty=result.new_quantity,
        )
        return result

    def to_response(self, result: StockMovementResult) -> StockMovementResponse:
        return to_movement_response(result)
