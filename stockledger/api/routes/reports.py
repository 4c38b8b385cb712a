"""Report endpoints. Each report is computed from committed data."""

from fastapi import APIRouter, Depends, Query

from stockledger.api.dependencies import get_generate_report_use_case
from stockledger.application.dto.requests import ReportRequest
from stockledger.application.dto.responses import ErrorResponse, ReportResponse
from stockledger.application.use_cases import GenerateReportUseCase, ReportType

router = APIRouter(
    prefix="/api/reports",
    tags=["reports"],
    responses={400: {"model": ErrorResponse}},
)


async def _run(use_case: GenerateReportUseCase, request: ReportRequest) -> ReportResponse:
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get("/stock-valuation", response_model=ReportResponse)
async def stock_valuation(
    category: str | None = None,
    status: str = Query(default="active", description="Material status, or 'all'"),
    stock_level: str | None = None,
    use_case: GenerateReportUseCase = Depends(get_generate_report_use_case),
) -> ReportResponse:
    """Stock value per category and material."""
    return await _run(
        use_case,
        ReportRequest(
            report_type=ReportType.STOCK_VALUATION.value,
            category=category,
            status=status,
            stock_level=stock_level,
        ),
    )


@router.get("/transactions", response_model=ReportResponse)
async def transaction_report(
    material_id: str | None = None,
    type: str | None = None,
    status: str | None = None,
    user_id: str | None = None,
    start: str | None = Query(default=None, description="ISO date or datetime"),
    end: str | None = Query(default=None, description="ISO date or datetime"),
    sort_by: str = "timestamp",
    sort_order: str = "desc",
    use_case: GenerateReportUseCase = Depends(get_generate_report_use_case),
) -> ReportResponse:
    """Totals per transaction type and material over the matching entries."""
    return await _run(
        use_case,
        ReportRequest(
            report_type=ReportType.TRANSACTION_REPORT.value,
            material_id=material_id,
            type=type,
            transaction_status=status,
            user_id=user_id,
            start=start,
            end=end,
            sort_by=sort_by,
            sort_order=sort_order,
        ),
    )


@router.get("/abc-analysis", response_model=ReportResponse)
async def abc_analysis(
    window_days: int | None = None,
    use_case: GenerateReportUseCase = Depends(get_generate_report_use_case),
) -> ReportResponse:
    """A/B/C classification by issued value."""
    return await _run(
        use_case,
        ReportRequest(report_type=ReportType.ABC_ANALYSIS.value, window_days=window_days),
    )


@router.get("/cost-analysis", response_model=ReportResponse)
async def cost_analysis(
    window_days: int | None = None,
    group_by: str = Query(default="category", description="category, supplier or material"),
    use_case: GenerateReportUseCase = Depends(get_generate_report_use_case),
) -> ReportResponse:
    """Receipt cost against issue revenue, grouped."""
    return await _run(
        use_case,
        ReportRequest(
            report_type=ReportType.COST_ANALYSIS.value,
            window_days=window_days,
            group_by=group_by,
        ),
    )


@router.get("/stock-alerts", response_model=ReportResponse)
async def stock_alerts(
    limit: int | None = None,
    use_case: GenerateReportUseCase = Depends(get_generate_report_use_case),
) -> ReportResponse:
    """Active materials at or below their reorder threshold."""
    return await _run(
        use_case,
        ReportRequest(report_type=ReportType.STOCK_ALERTS.value, limit=limit),
    )


@router.get("/trends", response_model=ReportResponse)
async def transaction_trends(
    window_days: int | None = None,
    group_by: str = Query(default="day", description="day, week or month"),
    use_case: GenerateReportUseCase = Depends(get_generate_report_use_case),
) -> ReportResponse:
    """In/out volume and value per period."""
    return await _run(
        use_case,
        ReportRequest(
            report_type=ReportType.TRANSACTION_TRENDS.value,
            window_days=window_days,
            group_by=group_by,
        ),
    )


@router.get("/overview", response_model=ReportResponse)
async def overview(
    use_case: GenerateReportUseCase = Depends(get_generate_report_use_case),
) -> ReportResponse:
    """Dashboard counts, value and this month's movement."""
    return await _run(use_case, ReportRequest(report_type=ReportType.OVERVIEW.value))


@router.get("/top-materials", response_model=ReportResponse)
async def top_materials(
    window_days: int | None = None,
    limit: int | None = Query(default=None, description="1 to 50, default 10"),
    type: str | None = Query(default=None, description="Count only this transaction type"),
    use_case: GenerateReportUseCase = Depends(get_generate_report_use_case),
) -> ReportResponse:
    """Materials with the most completed movements in the window."""
    return await _run(
        use_case,
        ReportRequest(
            report_type=ReportType.TOP_MATERIALS.value,
            window_days=window_days,
            limit=limit,
            type=type,
        ),
    )


@router.get("/user-activity", response_model=ReportResponse)
async def user_activity(
    window_days: int | None = None,
    limit: int | None = Query(default=None, description="1 to 50, default 10"),
    use_case: GenerateReportUseCase = Depends(get_generate_report_use_case),
) -> ReportResponse:
    """Completed movements per user in the window."""
    return await _run(
        use_case,
        ReportRequest(
            report_type=ReportType.USER_ACTIVITY.value,
            window_days=window_days,
            limit=limit,
        ),
    )
