"""
SQLite implementation of material storage.

Handles the material catalogue: CRUD, filtered listing and the
history-guarded delete. Quantity is only written by SQLiteStockStore.
"""

import uuid

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.material import Material, MaterialStatus, StockLevel
from stockledger.core.entities.query import (
    MaterialFilter,
    MaterialPage,
    MaterialSortField,
    SortOrder,
)
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    DuplicateCodeError,
    MaterialNotFoundError,
)
from stockledger.core.interfaces.material_store import IMaterialStore
from stockledger.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    translate_errors,
)
from stockledger.infrastructure.storage.sqlite.rows import (
    MATERIAL_COLUMNS,
    material_params,
    row_to_material,
)

logger = get_logger(__name__)

# Mirrors classify_stock_level(): out <= 0 < low <= min < normal < max <= over
STOCK_LEVEL_SQL = {
    StockLevel.OUT_OF_STOCK: "quantity <= 0",
    StockLevel.LOW_STOCK: "quantity > 0 AND quantity <= min_stock",
    StockLevel.OVERSTOCK: "quantity > 0 AND quantity > min_stock AND quantity >= max_stock",
    StockLevel.NORMAL: "quantity > 0 AND quantity > min_stock AND quantity < max_stock",
}

SORT_COLUMNS = {
    MaterialSortField.NAME: "name",
    MaterialSortField.CODE: "code",
    MaterialSortField.QUANTITY: "quantity",
    MaterialSortField.UNIT_PRICE: "unit_price",
    MaterialSortField.CREATED_AT: "created_at",
    MaterialSortField.UPDATED_AT: "updated_at",
}

# Descriptive columns an update may touch
UPDATE_COLUMNS = tuple(
    c for c in MATERIAL_COLUMNS if c not in ("id", "quantity", "version", "created_at", "created_by")
)


def _generate_id() -> str:
    """Generate a new UUID text ID."""
    return str(uuid.uuid4())


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _is_code_conflict(error: aiosqlite.IntegrityError) -> bool:
    return "materials.code" in str(error)


def build_material_where(filter: MaterialFilter) -> tuple[str, list]:
    """WHERE clause and parameters for a material filter."""
    conditions: list[str] = []
    params: list = []

    if filter.search and filter.search.strip():
        pattern = f"%{_escape_like(filter.search.strip().lower())}%"
        conditions.append(
            "(LOWER(code) LIKE ? ESCAPE '\\' OR LOWER(name) LIKE ? ESCAPE '\\' "
            "OR LOWER(COALESCE(description, '')) LIKE ? ESCAPE '\\')"
        )
        params.extend([pattern, pattern, pattern])
    if filter.category:
        conditions.append("category = ?")
        params.append(filter.category.value)
    if filter.status:
        conditions.append("status = ?")
        params.append(filter.status.value)
    if filter.stock_level:
        conditions.append(f"({STOCK_LEVEL_SQL[filter.stock_level]})")

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where, params


class SQLiteMaterialStore(IMaterialStore):
    """SQLite implementation of material storage."""

    async def create_material(self, material: Material) -> Material:
        """Create a new material record."""
        if not material.id:
            material.id = _generate_id()
        material.version = 1
        placeholders = ", ".join("?" for _ in MATERIAL_COLUMNS)

        with translate_errors("create_material"):
            try:
                async with get_transaction() as conn:
                    await conn.execute(
                        f"INSERT INTO materials ({', '.join(MATERIAL_COLUMNS)}) "
                        f"VALUES ({placeholders})",
                        material_params(material),
                    )
            except aiosqlite.IntegrityError as e:
                if _is_code_conflict(e):
                    raise DuplicateCodeError(material.code) from e
                raise

        logger.debug("material_row_inserted", material_id=material.id, code=material.code)
        return material

    async def get_material(self, material_id: str) -> Material | None:
        """Get material by ID."""
        with translate_errors("get_material"):
            async with get_connection() as conn:
                cursor = await conn.execute(
                    "SELECT * FROM materials WHERE id = ?", (material_id,)
                )
                row = await cursor.fetchone()
        return row_to_material(row) if row else None

    async def get_by_code(self, code: str) -> Material | None:
        """Get material by its normalized code."""
        with translate_errors("get_material_by_code"):
            async with get_connection() as conn:
                cursor = await conn.execute(
                    "SELECT * FROM materials WHERE code = ?", (code,)
                )
                row = await cursor.fetchone()
        return row_to_material(row) if row else None

    async def list_materials(self, filter: MaterialFilter) -> MaterialPage:
        """List materials with filtering, sorting and pagination."""
        where, params = build_material_where(filter)
        column = SORT_COLUMNS[filter.sort_by]
        direction = "DESC" if filter.sort_order == SortOrder.DESC else "ASC"
        offset = (filter.page - 1) * filter.page_size

        with translate_errors("list_materials"):
            async with get_connection() as conn:
                cursor = await conn.execute(f"SELECT COUNT(*) FROM materials {where}", params)
                total = (await cursor.fetchone())[0]

                cursor = await conn.execute(
                    f"""
                    SELECT * FROM materials {where}
                    ORDER BY {column} {direction}, code ASC
                    LIMIT ? OFFSET ?
                    """,
                    [*params, filter.page_size, offset],
                )
                rows = await cursor.fetchall()

        return MaterialPage(
            items=[row_to_material(row) for row in rows],
            total=total,
            page=filter.page,
            page_size=filter.page_size,
        )

    async def snapshot(self, status: MaterialStatus | None = None) -> list[Material]:
        """All materials, optionally restricted to one status."""
        with translate_errors("material_snapshot"):
            async with get_connection() as conn:
                if status:
                    cursor = await conn.execute(
                        "SELECT * FROM materials WHERE status = ? ORDER BY name, code",
                        (status.value,),
                    )
                else:
                    cursor = await conn.execute("SELECT * FROM materials ORDER BY name, code")
                rows = await cursor.fetchall()
        return [row_to_material(row) for row in rows]

    async def update_material(self, material: Material, expected_version: int) -> Material:
        """Update descriptive fields if the stored version still matches."""
        values = dict(zip(MATERIAL_COLUMNS, material_params(material), strict=True))
        assignments = ", ".join(f"{c} = ?" for c in UPDATE_COLUMNS)

        with translate_errors("update_material"):
            try:
                async with get_transaction() as conn:
                    cursor = await conn.execute(
                        f"""
                        UPDATE materials
                        SET {assignments}, version = version + 1
                        WHERE id = ? AND version = ?
                        """,
                        [*(values[c] for c in UPDATE_COLUMNS), material.id, expected_version],
                    )
                    if cursor.rowcount == 0:
                        cursor = await conn.execute(
                            "SELECT 1 FROM materials WHERE id = ?", (material.id,)
                        )
                        if await cursor.fetchone() is None:
                            raise MaterialNotFoundError(material.id or "")
                        raise ConcurrencyConflictError(material.id or "", expected_version)

                    cursor = await conn.execute(
                        "SELECT * FROM materials WHERE id = ?", (material.id,)
                    )
                    row = await cursor.fetchone()
            except aiosqlite.IntegrityError as e:
                if _is_code_conflict(e):
                    raise DuplicateCodeError(material.code) from e
                raise

        return row_to_material(row)

    async def delete_if_unused(self, material_id: str) -> bool:
        """Delete a material only when no ledger entry references it."""
        with translate_errors("delete_material"):
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    DELETE FROM materials
                    WHERE id = ?
                      AND NOT EXISTS (
                          SELECT 1 FROM ledger_entries WHERE material_id = ?
                      )
                    """,
                    (material_id, material_id),
                )
                deleted = cursor.rowcount > 0
        return deleted

    async def count_materials(self, status: MaterialStatus | None = None) -> int:
        with translate_errors("count_materials"):
            async with get_connection() as conn:
                if status:
                    cursor = await conn.execute(
                        "SELECT COUNT(*) FROM materials WHERE status = ?", (status.value,)
                    )
                else:
                    cursor = await conn.execute("SELECT COUNT(*) FROM materials")
                row = await cursor.fetchone()
        return row[0]

