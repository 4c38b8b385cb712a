"""Update Material Use Case: partial, version-checked update."""

from stockledger.application.dto.mappers import to_material_response
from stockledger.application.dto.requests import UpdateMaterialRequest
from stockledger.application.dto.responses import MaterialResponse
from stockledger.config import get_logger
from stockledger.core.entities.material import Material
from stockledger.core.entities.transaction import Actor
from stockledger.core.exceptions import ValidationError
from stockledger.core.services.material_registry import MaterialRegistry

logger = get_logger(__name__)


class UpdateMaterialUseCase:
    """Update descriptive material fields. Quantity is never writable here."""

    def __init__(self, registry: MaterialRegistry | None = None):
        self._registry = registry

    async def _get_registry(self) -> MaterialRegistry:
        if self._registry is None:
            from stockledger.application.services import get_material_registry

            self._registry = await get_material_registry()
        return self._registry

    async def execute(self, request: UpdateMaterialRequest, actor: Actor) -> Material:
        if not request.material_id:
            raise ValidationError("material_id", "Material ID is required")
        material_id = request.material_id
        changes = request.to_changes()
        logger.info(
            "update_material_started",
            material_id=material_id,
            fields=sorted(changes),
            user_id=actor.id,
        )

        registry = await self._get_registry()
        material = await registry.update(
            material_id, changes, actor, expected_version=request.expected_version
        )

        logger.info("update_material_complete", material_id=material_id, version=material.version)
        return material

    def to_response(self, result: Material) -> MaterialResponse:
        return to_material_response(result)
