"""Create Material Use Case: register a material with optional opening stock."""

from stockledger.application.dto.mappers import to_material_response, to_transaction_response
from stockledger.application.dto.requests import CreateMaterialRequest
from stockledger.application.dto.responses import CreateMaterialResponse
from stockledger.config import get_logger
from stockledger.core.entities.transaction import Actor
from stockledger.core.services.stock_mutator import MaterialCreationResult, StockMutator

logger = get_logger(__name__)


class CreateMaterialUseCase:
    """
    Register a material.

    A positive opening quantity is booked as an INITIAL_STOCK receipt so
    the quantity is backed by the ledger from the start.
    """

    def __init__(self, mutator: StockMutator | None = None):
        self._mutator = mutator

    async def _get_mutator(self) -> StockMutator:
        if self._mutator is None:
            from stockledger.application.services import get_stock_mutator

            self._mutator = await get_stock_mutator()
        return self._mutator

    async def execute(
        self, request: CreateMaterialRequest, actor: Actor
    ) -> MaterialCreationResult:
        logger.info(
            "create_material_started",
            code=request.code,
            initial_quantity=request.quantity,
            user_id=actor.id,
        )

        mutator = await self._get_mutator()
        result = await mutator.create_material(
            request.to_draft(), actor, initial_quantity=request.quantity
        )

        logger.info(
            "create_material_complete",
            material_id=result.material.id,
            code=result.material.code,
            quantity=result.material.quantity,
        )
        return result

    def to_response(self, result: MaterialCreationResult) -> CreateMaterialResponse:
        receipt = result.initial_receipt
        return CreateMaterialResponse(
            material=to_material_response(result.material),
            initial_transaction=to_transaction_response(receipt.entry) if receipt else None,
        )
