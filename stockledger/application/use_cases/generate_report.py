"""Generate Report Use Case: one entry point for every analytics report."""

from dataclasses import dataclass
from datetime import UTC, datetime, time
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel

from stockledger.application.dto.requests import ReportRequest
from stockledger.application.dto.responses import ReportResponse
from stockledger.config import get_logger
from stockledger.core.entities.material import MaterialCategory, MaterialStatus, StockLevel
from stockledger.core.entities.query import (
    SortOrder,
    TransactionFilter,
    TransactionSortField,
)
from stockledger.core.entities.report import CostGroupBy, TrendGroupBy
from stockledger.core.entities.transaction import TransactionStatus, TransactionType
from stockledger.core.exceptions import ValidationError
from stockledger.core.services.analytics_engine import AnalyticsEngine

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)


class ReportType(str, Enum):
    STOCK_VALUATION = "stock_valuation"
    TRANSACTION_REPORT = "transaction_report"
    ABC_ANALYSIS = "abc_analysis"
    COST_ANALYSIS = "cost_analysis"
    STOCK_ALERTS = "stock_alerts"
    TRANSACTION_TRENDS = "transaction_trends"
    OVERVIEW = "overview"
    TOP_MATERIALS = "top_materials"
    USER_ACTIVITY = "user_activity"


@dataclass
class ReportResult:
    """A generated report and its kind."""

    report_type: ReportType
    report: BaseModel


def parse_enum(enum_cls: type[E], field: str, value: str | None) -> E | None:
    """Parse an optional enum value, raising ValidationError on unknown input."""
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(field, f"Must be one of: {allowed}", value) from e


def parse_bound(field: str, value: str | None, *, end: bool = False) -> datetime | None:
    """
    Parse an ISO date or datetime bound.

    A bare date as an end bound covers the whole day.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(field, "Must be an ISO date or datetime", value) from e
    if end and len(value) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class GenerateReportUseCase:
    """Build a report from the analytics engine."""

    def __init__(self, engine: AnalyticsEngine | None = None):
        self._engine = engine

    async def _get_engine(self) -> AnalyticsEngine:
        if self._engine is None:
            from stockledger.application.services import get_analytics_engine

            self._engine = await get_analytics_engine()
        return self._engine

    async def execute(self, request: ReportRequest) -> ReportResult:
        report_type = parse_enum(ReportType, "report_type", request.report_type)
        if report_type is None:
            raise ValidationError("report_type", "Report type is required")

        logger.info("generate_report_started", report_type=report_type.value)
        engine = await self._get_engine()

        if report_type == ReportType.STOCK_VALUATION:
            status = None if request.status == "all" else request.status
            report = await engine.stock_valuation(
                category=parse_enum(MaterialCategory, "category", request.category),
                status=parse_enum(MaterialStatus, "status", status),
                stock_level=parse_enum(StockLevel, "stock_level", request.stock_level),
            )
        elif report_type == ReportType.TRANSACTION_REPORT:
            report = await engine.transaction_report(self._transaction_filter(request))
        elif report_type == ReportType.ABC_ANALYSIS:
            report = await engine.abc_analysis(request.window_days)
        elif report_type == ReportType.COST_ANALYSIS:
            report = await engine.cost_analysis(
                request.window_days,
                parse_enum(CostGroupBy, "group_by", request.group_by) or CostGroupBy.CATEGORY,
            )
        elif report_type == ReportType.STOCK_ALERTS:
            report = await engine.stock_alerts(request.limit)
        elif report_type == ReportType.TRANSACTION_TRENDS:
            report = await engine.transaction_trends(
                request.window_days,
                parse_enum(TrendGroupBy, "group_by", request.group_by) or TrendGroupBy.DAY,
            )
        elif report_type == ReportType.TOP_MATERIALS:
            report = await engine.top_materials(
                request.window_days,
                request.limit,
                parse_enum(TransactionType, "type", request.type),
            )
        elif report_type == ReportType.USER_ACTIVITY:
            report = await engine.user_activity(request.window_days, request.limit)
        else:
            report = await engine.overview()

        logger.info("generate_report_complete", report_type=report_type.value)
        return ReportResult(report_type=report_type, report=report)

    def to_response(self, result: ReportResult) -> ReportResponse:
        return ReportResponse(
            report_type=result.report_type.value,
            generated_at=result.report.generated_at,  # type: ignore[attr-defined]
            data=result.report.model_dump(mode="json"),
        )

    @staticmethod
    def _transaction_filter(request: ReportRequest) -> TransactionFilter:
        return TransactionFilter(
            material_id=request.material_id,
            type=parse_enum(TransactionType, "type", request.type),
            status=parse_enum(TransactionStatus, "transaction_status", request.transaction_status),
            user_id=request.user_id,
            start=parse_bound("start", request.start),
            end=parse_bound("end", request.end, end=True),
            sort_by=parse_enum(TransactionSortField, "sort_by", request.sort_by)
            or TransactionSortField.TIMESTAMP,
            sort_order=parse_enum(SortOrder, "sort_order", request.sort_order) or SortOrder.DESC,
        )
