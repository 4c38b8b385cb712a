"""Entity -> response DTO conversion shared by the use cases."""

from stockledger.application.dto.responses import (
    MaterialResponse,
    StockMovementResponse,
    TransactionResponse,
)
from stockledger.core.entities.material import Material
from stockledger.core.entities.transaction import LedgerEntry
from stockledger.core.services.stock_mutator import StockMovementResult


def to_material_response(material: Material) -> MaterialResponse:
    return MaterialResponse(
        id=material.id or "",
        code=material.code,
        name=material.name,
        description=material.description,
        category=material.category.value,
        subcategory=material.subcategory,
        unit=material.unit.value,
        quantity=material.quantity,
        min_stock=material.min_stock,
        max_stock=material.max_stock,
        unit_price=material.unit_price,
        total_value=material.total_value,
        stock_level=material.stock_level.value,
        is_low_stock=material.is_low_stock,
        status=material.status.value,
        supplier=material.supplier.model_dump(),
        location=material.location.model_dump(),
        specifications=material.specifications,
        barcode=material.barcode,
        notes=material.notes,
        created_by=material.created_by,
        updated_by=material.updated_by,
        version=material.version,
        created_at=material.created_at,
        updated_at=material.updated_at,
    )


def to_transaction_response(entry: LedgerEntry) -> TransactionResponse:
    return TransactionResponse(
        id=entry.id,  # type: ignore[arg-type]
        transaction_no=entry.transaction_no,
        reference=entry.reference,
        type=entry.type.value,
        material_id=entry.material_id,
        quantity=entry.quantity,
        unit_price=entry.unit_price,
        total_value=entry.total_value,
        balance_after=entry.balance_after,
        description=entry.description,
        reason=entry.reason,
        notes=entry.notes,
        project=entry.project.model_dump(mode="json") if entry.project else None,
        supplier=entry.supplier.model_dump(mode="json") if entry.supplier else None,
        user_id=entry.user.id,
        user_name=entry.user.name,
        timestamp=entry.timestamp,  # type: ignore[arg-type]
        status=entry.status.value,
        cancelled_at=entry.cancelled_at,
        cancelled_by_id=entry.cancelled_by.id if entry.cancelled_by else None,
        cancelled_by_name=entry.cancelled_by.name if entry.cancelled_by else None,
        cancellation_reason=entry.cancellation_reason,
        approved_at=entry.approved_at,
        approved_by_id=entry.approved_by.id if entry.approved_by else None,
        approved_by_name=entry.approved_by.name if entry.approved_by else None,
    )


def to_movement_response(result: StockMovementResult) -> StockMovementResponse:
    return StockMovementResponse(
        material=to_material_response(result.material),
        transaction=to_transaction_response(result.entry),
        previous_quantity=result.previous_quantity,
        new_quantity=result.new_quantity,
        low_stock_warning=result.low_stock_warning,
    )
