"""
Abstract interface for material storage.

Defines the contract for material CRUD and listing. Quantity is never
written through this interface; see IStockStore.
"""

from abc import ABC, abstractmethod

from stockledger.core.entities.material import Material, MaterialStatus
from stockledger.core.entities.query import MaterialFilter, MaterialPage


class IMaterialStore(ABC):
    """
    Abstract interface for material storage.

    Implementations must treat `code` as unique and bump `version` on every
    successful write.
    """

    @abstractmethod
    async def create_material(self, material: Material) -> Material:
        """Create a new material record and assign its ID."""

    @abstractmethod
    async def get_material(self, material_id: str) -> Material | None:
        """Get material by ID."""

    @abstractmethod
    async def get_by_code(self, code: str) -> Material | None:
        """Get material by its normalized code."""

    @abstractmethod
    async def list_materials(self, filter: MaterialFilter) -> MaterialPage:
        """List materials with filtering, sorting and pagination."""

    @abstractmethod
    async def snapshot(
        self, status: MaterialStatus | None = None
    ) -> list[Material]:
        """Return every material (optionally by status) as of now."""

    @abstractmethod
    async def update_material(
        self, material: Material, expected_version: int
    ) -> Material:
        """
        Persist descriptive fields of a material.

        Raises ConcurrencyConflictError when the stored version differs from
        `expected_version`. Never writes `quantity`.
        """

    @abstractmethod
    async def delete_if_unused(self, material_id: str) -> bool:
        """
        Delete a material that has no ledger entries.

        Returns False (and deletes nothing) when any entry references it.
        """
