"""Delete Material Use Case: soft, hard or automatic removal."""

from dataclasses import dataclass

from stockledger.application.dto.requests import DeleteMaterialRequest
from stockledger.application.dto.responses import DeleteMaterialResponse
from stockledger.config import get_logger
from stockledger.core.entities.transaction import Actor
from stockledger.core.exceptions import ValidationError
from stockledger.core.services.material_registry import DeleteMode, MaterialRegistry

logger = get_logger(__name__)


@dataclass
class DeleteMaterialResult:
    """Which delete was applied to which material."""

    material_id: str
    mode: DeleteMode


class DeleteMaterialUseCase:
    """
    Delete a material.

    Hard deletes are refused for materials with ledger history; auto mode
    falls back to deactivating them instead.
    """

    def __init__(self, registry: MaterialRegistry | None = None):
        self._registry = registry

    async def _get_registry(self) -> MaterialRegistry:
        if self._registry is None:
            from stockledger.application.services import get_material_registry

            self._registry = await get_material_registry()
        return self._registry

    async def execute(self, request: DeleteMaterialRequest, actor: Actor) -> DeleteMaterialResult:
        try:
            mode = DeleteMode(request.mode)
        except ValueError as e:
            raise ValidationError("mode", "Must be one of: soft, hard, auto", request.mode) from e

        logger.info(
            "delete_material_started",
            material_id=request.material_id,
            mode=mode.value,
            user_id=actor.id,
        )

        registry = await self._get_registry()
        applied = await registry.delete(request.material_id, actor, mode)

        logger.info("delete_material_complete", material_id=request.material_id, mode=applied.value)
        return DeleteMaterialResult(material_id=request.material_id, mode=applied)

    def to_response(self, result: DeleteMaterialResult) -> DeleteMaterialResponse:
        if result.mode == DeleteMode.HARD:
            message = "Material deleted"
        else:
            message = "Material deactivated"
        return DeleteMaterialResponse(
            material_id=result.material_id,
            mode=result.mode.value,
            message=message,
        )
