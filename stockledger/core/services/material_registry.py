"""
Material registry service.

Owns the material catalogue: creation, descriptive updates, lookup,
listing and removal. Never touches `quantity`; stock moves only through
the stock mutator.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from stockledger.config import get_logger
from stockledger.core.entities.material import Material, MaterialStatus, normalize_code
from stockledger.core.entities.query import MAX_PAGE_SIZE, MaterialFilter, MaterialPage
from stockledger.core.entities.transaction import Actor
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    ConflictError,
    DuplicateCodeError,
    MaterialNotFoundError,
    ValidationError,
)
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.interfaces.material_store import IMaterialStore

logger = get_logger(__name__)

# Fields the registry owns itself; callers may never set them.
PROTECTED_FIELDS = frozenset(
    {"id", "quantity", "version", "created_at", "created_by", "updated_at", "updated_by"}
)
EDITABLE_FIELDS = frozenset(Material.model_fields) - PROTECTED_FIELDS


class DeleteMode(str, Enum):
    """How a material is removed."""

    SOFT = "soft"
    HARD = "hard"
    AUTO = "auto"


def check_fields(values: Mapping[str, Any]) -> None:
    """Reject protected and unknown keys in a create/update mapping."""
    for field in values:
        if field in PROTECTED_FIELDS:
            if field == "quantity":
                raise ValidationError(
                    field,
                    "Quantity can only change through stock transactions",
                    values[field],
                )
            raise ValidationError(field, "Field is read-only", values[field])
        if field not in EDITABLE_FIELDS:
            raise ValidationError(field, "Unknown field", values[field])


def validate_material(material: Material) -> Material:
    """Business rules a material must satisfy before it is stored."""
    if not material.code:
        raise ValidationError("code", "Code is required", material.code)
    if not material.name or not material.name.strip():
        raise ValidationError("name", "Name is required", material.name)
    if material.min_stock < 0:
        raise ValidationError("min_stock", "Must not be negative", material.min_stock)
    if material.max_stock < material.min_stock:
        raise ValidationError(
            "max_stock",
            f"Must be greater than or equal to min_stock ({material.min_stock})",
            material.max_stock,
        )
    if material.unit_price < 0:
        raise ValidationError("unit_price", "Must not be negative", material.unit_price)
    return material


def build_material(values: Mapping[str, Any]) -> Material:
    """Build and validate a Material, mapping pydantic errors to ours."""
    try:
        material = Material.model_validate(dict(values))
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "material"
        raise ValidationError(field, error["msg"], error.get("input")) from e
    return validate_material(material)


class MaterialRegistry:
    """
    Service for the material catalogue.

    Codes are unique after normalisation. Updates are version-checked and
    never retried here; a ConcurrencyConflictError goes back to the caller.
    """

    def __init__(self, material_store: IMaterialStore, ledger_store: ILedgerStore):
        self._materials = material_store
        self._ledger = ledger_store

    async def create(self, draft: Mapping[str, Any], actor: Actor) -> Material:
        """
        Register a new material with zero stock.

        Args:
            draft: Material fields (code, name, category, unit, ...).
            actor: Who is creating it.

        Returns:
            The stored material with its ID.

        Raises:
            ValidationError: Invalid or protected fields.
            DuplicateCodeError: Code already used by another material.
        """
        check_fields(draft)
        now = datetime.now(UTC)
        material = build_material(
            {
                **draft,
                "quantity": 0.0,
                "created_by": actor.id,
                "updated_by": actor.id,
                "created_at": now,
                "updated_at": now,
            }
        )

        existing = await self._materials.get_by_code(material.code)
        if existing is not None:
            raise DuplicateCodeError(material.code, existing.id)

        created = await self._materials.create_material(material)
        logger.info(
            "material_created",
            material_id=created.id,
            code=created.code,
            category=created.category.value,
            user_id=actor.id,
        )
        return created

    async def get(self, material_id: str) -> Material:
        material = await self._materials.get_material(material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material

    async def get_by_code(self, code: str) -> Material:
        """Case-insensitive lookup by material code."""
        material = await self._materials.get_by_code(normalize_code(code))
        if material is None:
            raise MaterialNotFoundError(code)
        return material

    async def list(self, filter: MaterialFilter) -> MaterialPage:
        if filter.page < 1:
            raise ValidationError("page", "Must be at least 1", filter.page)
        if not 1 <= filter.page_size <= MAX_PAGE_SIZE:
            raise ValidationError(
                "page_size", f"Must be between 1 and {MAX_PAGE_SIZE}", filter.page_size
            )
        return await self._materials.list_materials(filter)

    async def update(
        self,
        material_id: str,
        changes: Mapping[str, Any],
        actor: Actor,
        expected_version: int | None = None,
    ) -> Material:
        """
        Apply a partial update of descriptive fields.

        Raises:
            ValidationError: Protected, unknown or invalid fields.
            DuplicateCodeError: New code belongs to another material.
            ConcurrencyConflictError: Material changed since it was read.
        """
        check_fields(changes)
        current = await self.get(material_id)
        if expected_version is not None and expected_version != current.version:
            raise ConcurrencyConflictError(material_id, expected_version)

        merged = build_material(
            {
                **current.model_dump(),
                **changes,
                "updated_by": actor.id,
                "updated_at": datetime.now(UTC),
            }
        )

        if merged.code != current.code:
            existing = await self._materials.get_by_code(merged.code)
            if existing is not None and existing.id != material_id:
                raise DuplicateCodeError(merged.code, existing.id)

        updated = await self._materials.update_material(merged, current.version)
        logger.info(
            "material_updated",
            material_id=material_id,
            fields=sorted(changes),
            version=updated.version,
            user_id=actor.id,
        )
        return updated

    async def soft_delete(self, material_id: str, actor: Actor) -> Material:
        """Mark a material inactive. History and stock are kept."""
        current = await self.get(material_id)
        if current.status == MaterialStatus.INACTIVE:
            return current

        current.status = MaterialStatus.INACTIVE
        current.updated_by = actor.id
        current.updated_at = datetime.now(UTC)
        updated = await self._materials.update_material(current, current.version)
        logger.info("material_deactivated", material_id=material_id, user_id=actor.id)
        return updated

    async def hard_delete(self, material_id: str) -> None:
        """
        Remove a material that has never been transacted.

        Raises:
            MaterialNotFoundError: Material does not exist.
            ConflictError: Ledger entries reference the material.
        """
        await self.get(material_id)
        if not await self._materials.delete_if_unused(material_id):
            count = await self._ledger.count_for_material(material_id)
            raise ConflictError(
                "Material has transaction history and cannot be deleted",
                details={"material_id": material_id, "transaction_count": count},
            )
        logger.info("material_deleted", material_id=material_id)

    async def delete(
        self, material_id: str, actor: Actor, mode: DeleteMode = DeleteMode.AUTO
    ) -> DeleteMode:
        """
        Delete a material and report which kind of delete happened.

        AUTO removes the record when it has no history, otherwise
        deactivates it.
        """
        if mode == DeleteMode.SOFT:
            await self.soft_delete(material_id, actor)
            return DeleteMode.SOFT
        if mode == DeleteMode.HARD:
            await self.hard_delete(material_id)
            return DeleteMode.HARD

        if await self._ledger.count_for_material(material_id) == 0:
            try:
                await self.hard_delete(material_id)
                return DeleteMode.HARD
            except ConflictError:
                # An entry landed between the count and the delete
                pass
        await self.soft_delete(material_id, actor)
        return DeleteMode.SOFT
