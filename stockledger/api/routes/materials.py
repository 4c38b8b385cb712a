"""Material card endpoints."""

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_actor,
    get_create_material_use_case,
    get_delete_material_use_case,
    get_ledger_service,
    get_mutator,
    get_registry,
    get_update_material_use_case,
)
from stockledger.application.dto.mappers import to_material_response, to_transaction_response
from stockledger.application.dto.requests import (
    CreateMaterialRequest,
    DeleteMaterialRequest,
    UpdateMaterialRequest,
)
from stockledger.application.dto.responses import (
    BalanceCheckResponse,
    CreateMaterialResponse,
    DeleteMaterialResponse,
    ErrorResponse,
    MaterialListResponse,
    MaterialResponse,
    TransactionListResponse,
)
from stockledger.application.use_cases import (
    CreateMaterialUseCase,
    DeleteMaterialUseCase,
    UpdateMaterialUseCase,
)
from stockledger.core.entities.material import MaterialCategory, MaterialStatus, StockLevel
from stockledger.core.entities.query import (
    MaterialFilter,
    MaterialSortField,
    SortOrder,
    TransactionFilter,
    TransactionSortField,
)
from stockledger.core.entities.transaction import Actor, TransactionStatus, TransactionType
from stockledger.core.services import Ledger, MaterialRegistry, StockMutator

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.post(
    "",
    response_model=CreateMaterialResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_material(
    request: CreateMaterialRequest,
    actor: Actor = Depends(get_actor),
    use_case: CreateMaterialUseCase = Depends(get_create_material_use_case),
) -> CreateMaterialResponse:
    """Register a material card, booking any opening quantity as a receipt."""
    result = await use_case.execute(request, actor)
    return use_case.to_response(result)


@router.get("", response_model=MaterialListResponse)
async def list_materials(
    search: str | None = Query(default=None, description="Matches code, name or description"),
    category: MaterialCategory | None = None,
    material_status: MaterialStatus | None = Query(default=None, alias="status"),
    stock_level: StockLevel | None = None,
    sort_by: MaterialSortField = MaterialSortField.NAME,
    sort_order: SortOrder = SortOrder.ASC,
    page: int = 1,
    page_size: int = 50,
    registry: MaterialRegistry = Depends(get_registry),
) -> MaterialListResponse:
    """List materials with filters, sorting and pagination."""
    result = await registry.list(
        MaterialFilter(
            search=search,
            category=category,
            status=material_status,
            stock_level=stock_level,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            page_size=page_size,
        )
    )
    return MaterialListResponse(
        items=[to_material_response(m) for m in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_prev=result.has_prev,
    )


@router.get(
    "/code/{code}",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_material_by_code(
    code: str,
    registry: MaterialRegistry = Depends(get_registry),
) -> MaterialResponse:
    """Look up a material by its code (case-insensitive)."""
    return to_material_response(await registry.get_by_code(code))


@router.get(
    "/{material_id}",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_material(
    material_id: str,
    registry: MaterialRegistry = Depends(get_registry),
) -> MaterialResponse:
    """Get a material by ID."""
    return to_material_response(await registry.get(material_id))


@router.patch(
    "/{material_id}",
    response_model=MaterialResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_material(
    material_id: str,
    request: UpdateMaterialRequest,
    actor: Actor = Depends(get_actor),
    use_case: UpdateMaterialUseCase = Depends(get_update_material_use_case),
) -> MaterialResponse:
    """Update descriptive fields. Quantity changes go through transactions."""
    request = request.model_copy(update={"material_id": material_id})
    result = await use_case.execute(request, actor)
    return use_case.to_response(result)


@router.delete(
    "/{material_id}",
    response_model=DeleteMaterialResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_material(
    material_id: str,
    mode: str = Query(default="auto", description="soft, hard or auto"),
    actor: Actor = Depends(get_actor),
    use_case: DeleteMaterialUseCase = Depends(get_delete_material_use_case),
) -> DeleteMaterialResponse:
    """Delete a material, or deactivate it when it has ledger history."""
    result = await use_case.execute(
        DeleteMaterialRequest(material_id=material_id, mode=mode), actor
    )
    return use_case.to_response(result)


@router.get(
    "/{material_id}/balance",
    response_model=BalanceCheckResponse,
    responses={404: {"model": ErrorResponse}},
)
async def check_balance(
    material_id: str,
    mutator: StockMutator = Depends(get_mutator),
) -> BalanceCheckResponse:
    """Reconcile the material quantity against its completed ledger entries."""
    check = await mutator.verify_balance(material_id)
    return BalanceCheckResponse(
        material_id=check.material_id,
        material_quantity=check.material_quantity,
        ledger_balance=check.ledger_balance,
        difference=check.difference,
        consistent=check.consistent,
    )


@router.get(
    "/{material_id}/transactions",
    response_model=TransactionListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def material_transactions(
    material_id: str,
    type: TransactionType | None = None,
    transaction_status: TransactionStatus | None = Query(default=None, alias="status"),
    page: int = 1,
    page_size: int = 20,
    registry: MaterialRegistry = Depends(get_registry),
    ledger: Ledger = Depends(get_ledger_service),
) -> TransactionListResponse:
    """Ledger history of one material, newest first."""
    await registry.get(material_id)
    result = await ledger.query(
        TransactionFilter(
            material_id=material_id,
            type=type,
            status=transaction_status,
            sort_by=TransactionSortField.TIMESTAMP,
            sort_order=SortOrder.DESC,
            page=page,
            page_size=page_size,
        )
    )
    return TransactionListResponse(
        items=[to_transaction_response(e) for e in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_prev=result.has_prev,
    )
