"""Receive Stock Use Case: IN movement at the receipt price."""

from stockledger.application.dto.mappers import to_movement_response
from stockledger.application.dto.requests import ReceiveStockRequest
from stockledger.application.dto.responses import StockMovementResponse
from stockledger.config import get_logger
from stockledger.core.entities.transaction import Actor, ProjectInfo, SupplierInfo
from stockledger.core.services.stock_mutator import StockMovementResult, StockMutator

logger = get_logger(__name__)


class ReceiveStockUseCase:
    """Receive stock (IN movement). The receipt price becomes the unit price."""

    def __init__(self, mutator: StockMutator | None = None):
        self._mutator = mutator

    async def _get_mutator(self) -> StockMutator:
        if self._mutator is None:
            from stockledger.application.services import get_stock_mutator

            self._mutator = await get_stock_mutator()
        return self._mutator

    async def execute(self, request: ReceiveStockRequest, actor: Actor) -> StockMovementResult:
        """Execute receive stock use case."""
        logger.info(
            "receive_stock_started",
            material_id=request.material_id,
            quantity=request.quantity,
            user_id=actor.id,
        )

        mutator = await self._get_mutator()
        result = await mutator.receive(
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
            "receive_stock_complete",
            transaction_id=result.entry.id,
            new_qty=result.new_quantity,
            unit_price=result.material.unit_price,
        )
        return result

    def to_response(self, result: StockMovementResult) -> StockMovementResponse:
        """Convert result to API response."""
        return to_movement_response(result)
