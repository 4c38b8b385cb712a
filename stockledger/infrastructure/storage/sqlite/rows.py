"""Row <-> entity mapping for the SQLite stores."""

import json
from datetime import UTC, datetime

import aiosqlite

from stockledger.core.entities.material import (
    Material,
    MaterialCategory,
    MaterialStatus,
    MaterialUnit,
    StorageLocation,
    SupplierContact,
)
from stockledger.core.entities.transaction import (
    Actor,
    LedgerEntry,
    ProjectInfo,
    SupplierInfo,
    TransactionStatus,
    TransactionType,
)

MATERIAL_COLUMNS = (
    "id",
    "code",
    "name",
    "description",
    "category",
    "subcategory",
    "unit",
    "quantity",
    "min_stock",
    "max_stock",
    "unit_price",
    "status",
    "supplier_json",
    "location_json",
    "specifications_json",
    "barcode",
    "notes",
    "created_by",
    "updated_by",
    "version",
    "created_at",
    "updated_at",
)

ENTRY_COLUMNS = (
    "transaction_no",
    "reference",
    "type",
    "material_id",
    "quantity",
    "unit_price",
    "total_value",
    "balance_after",
    "description",
    "reason",
    "notes",
    "project_json",
    "supplier_json",
    "user_id",
    "user_name",
    "timestamp",
    "status",
    "cancelled_at",
    "cancelled_by_id",
    "cancelled_by_name",
    "cancellation_reason",
    "approved_at",
    "approved_by_id",
    "approved_by_name",
)


def to_db_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with fixed precision so text order is time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_db_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def material_params(material: Material) -> tuple:
    """Values in MATERIAL_COLUMNS order."""
    return (
        material.id,
        material.code,
        material.name,
        material.description,
        material.category.value,
        material.subcategory,
        material.unit.value,
        material.quantity,
        material.min_stock,
        material.max_stock,
        material.unit_price,
        material.status.value,
        material.supplier.model_dump_json(),
        material.location.model_dump_json(),
        json.dumps(material.specifications),
        material.barcode,
        material.notes,
        material.created_by,
        material.updated_by,
        material.version,
        to_db_timestamp(material.created_at),
        to_db_timestamp(material.updated_at),
    )


def row_to_material(row: aiosqlite.Row) -> Material:
    return Material(
        id=row["id"],
        code=row["code"],
        name=row["name"],
        description=row["description"],
        category=MaterialCategory(row["category"]),
        subcategory=row["subcategory"],
        unit=MaterialUnit(row["unit"]),
        quantity=row["quantity"],
        min_stock=row["min_stock"],
        max_stock=row["max_stock"],
        unit_price=row["unit_price"],
        status=MaterialStatus(row["status"]),
        supplier=SupplierContact.model_validate_json(row["supplier_json"] or "{}"),
        location=StorageLocation.model_validate_json(row["location_json"] or "{}"),
        specifications=json.loads(row["specifications_json"] or "{}"),
        barcode=row["barcode"],
        notes=row["notes"],
        created_by=row["created_by"],
        updated_by=row["updated_by"],
        version=row["version"],
        created_at=from_db_timestamp(row["created_at"]),
        updated_at=from_db_timestamp(row["updated_at"]),
    )


def entry_params(entry: LedgerEntry) -> tuple:
    """Values in ENTRY_COLUMNS order."""
    return (
        entry.transaction_no or None,
        entry.reference,
        entry.type.value,
        entry.material_id,
        entry.quantity,
        entry.unit_price,
        entry.total_value,
        entry.balance_after,
        entry.description,
        entry.reason,
        entry.notes,
        entry.project.model_dump_json() if entry.project else None,
        entry.supplier.model_dump_json() if entry.supplier else None,
        entry.user.id,
        entry.user.name,
        to_db_timestamp(entry.timestamp or datetime.now(UTC)),
        entry.status.value,
        to_db_timestamp(entry.cancelled_at) if entry.cancelled_at else None,
        entry.cancelled_by.id if entry.cancelled_by else None,
        entry.cancelled_by.name if entry.cancelled_by else None,
        entry.cancellation_reason,
        to_db_timestamp(entry.approved_at) if entry.approved_at else None,
        entry.approved_by.id if entry.approved_by else None,
        entry.approved_by.name if entry.approved_by else None,
    )


def row_to_entry(row: aiosqlite.Row) -> LedgerEntry:
    cancelled_by = None
    if row["cancelled_by_id"]:
        cancelled_by = Actor(id=row["cancelled_by_id"], name=row["cancelled_by_name"] or "")
    approved_by = None
    if row["approved_by_id"]:
        approved_by = Actor(id=row["approved_by_id"], name=row["approved_by_name"] or "")

    return LedgerEntry(
        id=row["id"],
        transaction_no=row["transaction_no"] or "",
        reference=row["reference"],
        type=TransactionType(row["type"]),
        material_id=row["material_id"],
        quantity=row["quantity"],
        unit_price=row["unit_price"],
        total_value=row["total_value"],
        balance_after=row["balance_after"],
        description=row["description"],
        reason=row["reason"],
        notes=row["notes"],
        project=ProjectInfo.model_validate_json(row["project_json"]) if row["project_json"] else None,
        supplier=(
            SupplierInfo.model_validate_json(row["supplier_json"]) if row["supplier_json"] else None
        ),
        user=Actor(id=row["user_id"], name=row["user_name"]),
        timestamp=from_db_timestamp(row["timestamp"]),
        status=TransactionStatus(row["status"]),
        cancelled_at=from_db_timestamp(row["cancelled_at"]),
        cancelled_by=cancelled_by,
        cancellation_reason=row["cancellation_reason"],
        approved_at=from_db_timestamp(row["approved_at"]),
        approved_by=approved_by,
    )
