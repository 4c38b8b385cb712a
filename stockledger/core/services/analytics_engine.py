"""
Analytics engine.

Read-only reports over a material snapshot and ledger entries. The report
builders are plain functions that take an explicit `as_of` so results are
deterministic; AnalyticsEngine loads the inputs and calls them.

Only completed entries count towards any aggregate.
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta

from stockledger.config import get_logger
from stockledger.core.entities.material import (
    Material,
    MaterialCategory,
    MaterialStatus,
    StockLevel,
)
from stockledger.core.entities.query import SortOrder, TransactionFilter
from stockledger.core.entities.report import (
    AbcAnalysisReport,
    AbcClass,
    AbcClassSummary,
    AbcLine,
    CategorySummary,
    CostAnalysisReport,
    CostGroup,
    CostGroupBy,
    CostTotals,
    OverviewReport,
    StockAlertItem,
    StockAlertsReport,
    StockValuationReport,
    TopMaterialLine,
    TopMaterialsReport,
    TransactionReport,
    TransactionTotals,
    TransactionTrendsReport,
    TrendBucket,
    TrendGroupBy,
    UserActivityLine,
    UserActivityReport,
    ValuationLine,
    ValuationTotals,
)
from stockledger.core.entities.transaction import (
    LedgerEntry,
    TransactionStatus,
    TransactionType,
)
from stockledger.core.exceptions import ValidationError
from stockledger.core.interfaces.material_store import IMaterialStore
from stockledger.core.services.ledger import Ledger

logger = get_logger(__name__)

MIN_WINDOW_DAYS = 1
MAX_WINDOW_DAYS = 3650
ABC_A_LIMIT = 80.0
ABC_B_LIMIT = 95.0
UNASSIGNED = "unassigned"
TOP_MATERIALS = 5
ACTIVITY_LIMIT = 10
MAX_ACTIVITY_LIMIT = 50

MOVEMENT_TYPES = (TransactionType.IN, TransactionType.OUT)


def validate_window(window_days: int) -> int:
    if not MIN_WINDOW_DAYS <= window_days <= MAX_WINDOW_DAYS:
        raise ValidationError(
            "window_days",
            f"Must be between {MIN_WINDOW_DAYS} and {MAX_WINDOW_DAYS}",
            window_days,
        )
    return window_days


def _completed(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    return [e for e in entries if e.status == TransactionStatus.COMPLETED]


def _in_window(entry: LedgerEntry, start: datetime, end: datetime) -> bool:
    return entry.timestamp is not None and start <= entry.timestamp <= end


def _valuation_line(material: Material) -> ValuationLine:
    return ValuationLine(
        material_id=material.id or "",
        code=material.code,
        name=material.name,
        category=material.category,
        unit=material.unit,
        status=material.status,
        quantity=material.quantity,
        unit_price=material.unit_price,
        total_value=material.total_value,
        min_stock=material.min_stock,
        max_stock=material.max_stock,
        stock_level=material.stock_level,
    )


def stock_valuation(
    materials: Iterable[Material],
    *,
    generated_at: datetime,
    category: MaterialCategory | None = None,
    status: MaterialStatus | None = MaterialStatus.ACTIVE,
    stock_level: StockLevel | None = None,
) -> StockValuationReport:
    """Value every matching material. `status=None` means all statuses."""
    selected = [
        m
        for m in materials
        if (category is None or m.category == category)
        and (status is None or m.status == status)
        and (stock_level is None or m.stock_level == stock_level)
    ]
    selected.sort(key=lambda m: (m.name, m.code))

    counts = {level: 0 for level in StockLevel}
    for m in selected:
        counts[m.stock_level] += 1

    return StockValuationReport(
        lines=[_valuation_line(m) for m in selected],
        totals=ValuationTotals(
            total_materials=len(selected),
            total_value=sum(m.total_value for m in selected),
            total_quantity=sum(m.quantity for m in selected),
            stock_level_counts=counts,
        ),
        filters={
            "category": category.value if category else None,
            "status": status.value if status else None,
            "stock_level": stock_level.value if stock_level else None,
        },
        generated_at=generated_at,
    )


def transaction_report(
    entries: Iterable[LedgerEntry], *, generated_at: datetime
) -> TransactionReport:
    """List entries with totals over the completed ones."""
    listed = list(entries)
    totals = TransactionTotals()
    for entry in _completed(listed):
        kind = entry.type.value
        totals.total_transactions += 1
        totals.total_value += entry.total_value
        totals.total_quantity += abs(entry.quantity)
        totals.count_by_type[kind] = totals.count_by_type.get(kind, 0) + 1
        totals.value_by_type[kind] = totals.value_by_type.get(kind, 0.0) + entry.total_value
        if entry.type == TransactionType.IN:
            totals.in_value += entry.total_value
        elif entry.type == TransactionType.OUT:
            totals.out_value += entry.total_value

    return TransactionReport(entries=listed, totals=totals, generated_at=generated_at)


def abc_analysis(
    entries: Iterable[LedgerEntry],
    materials: dict[str, Material],
    *,
    window_days: int,
    as_of: datetime,
) -> AbcAnalysisReport:
    """
    Pareto classification of materials by transacted value.

    Sums the value of completed in/out entries per material inside
    [as_of - window_days, as_of]. Entries are expected oldest first; ties in
    value keep first-seen order. A while the cumulative share is <= 80%,
    B while <= 95%, C after that. A zero grand total puts everything in C.
    """
    validate_window(window_days)
    start = as_of - timedelta(days=window_days)

    values: dict[str, float] = {}
    quantities: dict[str, float] = {}
    counts: dict[str, int] = {}
    for entry in _completed(entries):
        if entry.type not in MOVEMENT_TYPES or not _in_window(entry, start, as_of):
            continue
        key = entry.material_id
        values[key] = values.get(key, 0.0) + entry.total_value
        quantities[key] = quantities.get(key, 0.0) + abs(entry.quantity)
        counts[key] = counts.get(key, 0) + 1

    grand_total = sum(values.values())
    ranked = sorted(values.items(), key=lambda item: item[1], reverse=True)

    lines: list[AbcLine] = []
    cumulative_value = 0.0
    for rank, (material_id, value) in enumerate(ranked, start=1):
        cumulative_value += value
        if grand_total > 0:
            share = value / grand_total * 100
            cumulative = round(cumulative_value / grand_total * 100, 9)
            if cumulative <= ABC_A_LIMIT:
                classification = AbcClass.A
            elif cumulative <= ABC_B_LIMIT:
                classification = AbcClass.B
            else:
                classification = AbcClass.C
        else:
            share = cumulative = 0.0
            classification = AbcClass.C

        material = materials.get(material_id)
        lines.append(
            AbcLine(
                material_id=material_id,
                code=material.code if material else None,
                name=material.name if material else None,
                category=material.category if material else None,
                current_quantity=material.quantity if material else None,
                total_value=value,
                total_quantity=quantities[material_id],
                transaction_count=counts[material_id],
                rank=rank,
                value_percentage=share,
                cumulative_percentage=cumulative,
                classification=classification,
            )
        )

    summary = {cls: AbcClassSummary() for cls in AbcClass}
    for line in lines:
        bucket = summary[line.classification]
        bucket.count += 1
        bucket.total_value += line.total_value
    for bucket in summary.values():
        bucket.percentage = bucket.count / len(lines) * 100 if lines else 0.0

    return AbcAnalysisReport(
        lines=lines,
        summary=summary,
        window_days=window_days,
        window_start=start,
        window_end=as_of,
        total_value=grand_total,
        generated_at=as_of,
    )


def _margin(net_value: float, revenue: float) -> float:
    return net_value / revenue * 100 if revenue != 0 else 0.0


def _cost_key(
    entry: LedgerEntry, material: Material | None, group_by: CostGroupBy
) -> tuple[str, str]:
    if group_by == CostGroupBy.MATERIAL:
        label = f"{material.code} - {material.name}" if material else entry.material_id
        return entry.material_id, label
    if material is None:
        return UNASSIGNED, UNASSIGNED
    if group_by == CostGroupBy.CATEGORY:
        return material.category.value, material.category.value
    supplier = material.supplier.name
    if not supplier:
        return UNASSIGNED, UNASSIGNED
    return supplier, supplier


def cost_analysis(
    entries: Iterable[LedgerEntry],
    materials: dict[str, Material],
    *,
    window_days: int,
    as_of: datetime,
    group_by: CostGroupBy = CostGroupBy.CATEGORY,
) -> CostAnalysisReport:
    """
    Cost (receipts) against revenue (issues) per group.

    Margin is net / revenue * 100, and exactly 0 when there is no revenue.
    Groups are ordered by cost, highest first.
    """
    validate_window(window_days)
    start = as_of - timedelta(days=window_days)

    groups: dict[str, CostGroup] = {}
    for entry in _completed(entries):
        if entry.type not in MOVEMENT_TYPES or not _in_window(entry, start, as_of):
            continue
        key, label = _cost_key(entry, materials.get(entry.material_id), group_by)
        group = groups.setdefault(key, CostGroup(key=key, label=label))
        if entry.type == TransactionType.IN:
            group.total_cost += entry.total_value
            group.in_transactions += 1
            group.total_quantity_in += abs(entry.quantity)
        else:
            group.total_revenue += entry.total_value
            group.out_transactions += 1
            group.total_quantity_out += abs(entry.quantity)

    for group in groups.values():
        group.net_value = group.total_revenue - group.total_cost
        group.margin = _margin(group.net_value, group.total_revenue)

    ordered = sorted(groups.values(), key=lambda g: g.total_cost, reverse=True)
    total_cost = sum(g.total_cost for g in ordered)
    total_revenue = sum(g.total_revenue for g in ordered)
    totals = CostTotals(
        total_cost=total_cost,
        total_revenue=total_revenue,
        total_transactions=sum(g.in_transactions + g.out_transactions for g in ordered),
        net_value=total_revenue - total_cost,
        overall_margin=_margin(total_revenue - total_cost, total_revenue),
    )

    return CostAnalysisReport(
        groups=ordered,
        totals=totals,
        group_by=group_by,
        window_days=window_days,
        window_start=start,
        window_end=as_of,
        generated_at=as_of,
    )


def _alert_item(material: Material) -> StockAlertItem:
    return StockAlertItem(
        material_id=material.id or "",
        code=material.code,
        name=material.name,
        category=material.category,
        quantity=material.quantity,
        min_stock=material.min_stock,
        max_stock=material.max_stock,
        unit_price=material.unit_price,
        updated_at=material.updated_at,
    )


def stock_alerts(
    materials: Iterable[Material], *, limit: int, generated_at: datetime
) -> StockAlertsReport:
    """Active materials that are low, out of stock or overstocked."""
    if limit < 1:
        raise ValidationError("limit", "Must be at least 1", limit)

    active = [m for m in materials if m.status == MaterialStatus.ACTIVE]
    low = sorted(
        (m for m in active if m.stock_level == StockLevel.LOW_STOCK),
        key=lambda m: m.quantity,
    )
    out = sorted(
        (m for m in active if m.stock_level == StockLevel.OUT_OF_STOCK),
        key=lambda m: m.updated_at,
    )
    over = sorted(
        (m for m in active if m.stock_level == StockLevel.OVERSTOCK),
        key=lambda m: m.quantity,
        reverse=True,
    )

    return StockAlertsReport(
        low_stock=[_alert_item(m) for m in low[:limit]],
        out_of_stock=[_alert_item(m) for m in out[:limit]],
        overstock=[_alert_item(m) for m in over[:limit]],
        counts={
            StockLevel.LOW_STOCK: len(low),
            StockLevel.OUT_OF_STOCK: len(out),
            StockLevel.OVERSTOCK: len(over),
        },
        generated_at=generated_at,
    )


def period_start(day: date, group_by: TrendGroupBy) -> date:
    """First day of the day/ISO week/month containing `day`."""
    if group_by == TrendGroupBy.WEEK:
        return day - timedelta(days=day.weekday())
    if group_by == TrendGroupBy.MONTH:
        return day.replace(day=1)
    return day


def transaction_trends(
    entries: Iterable[LedgerEntry],
    *,
    window_days: int,
    as_of: datetime,
    group_by: TrendGroupBy = TrendGroupBy.DAY,
) -> TransactionTrendsReport:
    """Entry counts and values per period and type."""
    validate_window(window_days)
    start = as_of - timedelta(days=window_days)

    buckets: dict[tuple[date, str], TrendBucket] = {}
    for entry in _completed(entries):
        if not _in_window(entry, start, as_of):
            continue
        period = period_start(entry.timestamp.astimezone(UTC).date(), group_by)
        key = (period, entry.type.value)
        bucket = buckets.setdefault(key, TrendBucket(period_start=period, type=key[1]))
        bucket.count += 1
        bucket.total_value += entry.total_value
        bucket.total_quantity += abs(entry.quantity)

    return TransactionTrendsReport(
        buckets=[buckets[key] for key in sorted(buckets)],
        group_by=group_by,
        window_days=window_days,
        window_start=start,
        window_end=as_of,
        generated_at=as_of,
    )


def overview(
    materials: Iterable[Material],
    month_entries: Iterable[LedgerEntry],
    *,
    as_of: datetime,
) -> OverviewReport:
    """Dashboard summary. `month_entries` covers the current calendar month."""
    active = [m for m in materials if m.status == MaterialStatus.ACTIVE]
    today = as_of.astimezone(UTC).date()
    month_start = datetime(today.year, today.month, 1, tzinfo=UTC)

    report = OverviewReport(
        total_materials=len(active),
        low_stock_materials=sum(1 for m in active if m.stock_level == StockLevel.LOW_STOCK),
        out_of_stock_materials=sum(
            1 for m in active if m.stock_level == StockLevel.OUT_OF_STOCK
        ),
        total_stock_value=sum(m.total_value for m in active),
        generated_at=as_of,
    )

    for entry in _completed(month_entries):
        if not _in_window(entry, month_start, as_of):
            continue
        if entry.timestamp.astimezone(UTC).date() == today:
            report.today_transactions += 1
        if entry.type == TransactionType.IN:
            report.month_in_value += entry.total_value
        elif entry.type == TransactionType.OUT:
            report.month_out_value += entry.total_value

    by_value = sorted(active, key=lambda m: m.total_value, reverse=True)
    report.top_materials_by_value = [_valuation_line(m) for m in by_value[:TOP_MATERIALS]]

    categories: dict[MaterialCategory, CategorySummary] = {}
    for m in active:
        summary = categories.setdefault(m.category, CategorySummary(category=m.category))
        summary.count += 1
        summary.total_value += m.total_value
    report.materials_by_category = sorted(
        categories.values(), key=lambda c: c.total_value, reverse=True
    )
    return report


def validate_activity_limit(limit: int) -> int:
    if not 1 <= limit <= MAX_ACTIVITY_LIMIT:
        raise ValidationError("limit", f"Must be between 1 and {MAX_ACTIVITY_LIMIT}", limit)
    return limit


def top_materials(
    entries: Iterable[LedgerEntry],
    materials: dict[str, Material],
    *,
    window_days: int,
    as_of: datetime,
    limit: int = ACTIVITY_LIMIT,
    type: TransactionType | None = None,
) -> TopMaterialsReport:
    """
    Materials with the most completed entries in the window.

    Ordered by entry count, then value; remaining ties keep first-seen order.
    `type` restricts the count to one kind of movement.
    """
    validate_window(window_days)
    validate_activity_limit(limit)
    start = as_of - timedelta(days=window_days)

    lines: dict[str, TopMaterialLine] = {}
    for entry in _completed(entries):
        if (type is not None and entry.type != type) or not _in_window(entry, start, as_of):
            continue
        line = lines.get(entry.material_id)
        if line is None:
            material = materials.get(entry.material_id)
            line = lines[entry.material_id] = TopMaterialLine(
                material_id=entry.material_id,
                code=material.code if material else None,
                name=material.name if material else None,
                category=material.category if material else None,
                current_quantity=material.quantity if material else None,
                unit_price=material.unit_price if material else None,
            )
        line.transaction_count += 1
        line.total_value += entry.total_value
        line.total_quantity += abs(entry.quantity)

    ranked = sorted(lines.values(), key=lambda line: (-line.transaction_count, -line.total_value))
    return TopMaterialsReport(
        lines=ranked[:limit],
        type=type,
        limit=limit,
        window_days=window_days,
        window_start=start,
        window_end=as_of,
        generated_at=as_of,
    )


def user_activity(
    entries: Iterable[LedgerEntry],
    *,
    window_days: int,
    as_of: datetime,
    limit: int = ACTIVITY_LIMIT,
) -> UserActivityReport:
    """
    Completed entries per attributing user in the window.

    The display name is the one on the user's latest entry. `active_users`
    counts every user seen, not only the listed ones.
    """
    validate_window(window_days)
    validate_activity_limit(limit)
    start = as_of - timedelta(days=window_days)

    lines: dict[str, UserActivityLine] = {}
    for entry in _completed(entries):
        if not _in_window(entry, start, as_of):
            continue
        line = lines.setdefault(
            entry.user.id, UserActivityLine(user_id=entry.user.id, user_name=entry.user.name)
        )
        kind = entry.type.value
        line.transaction_count += 1
        line.total_value += entry.total_value
        line.count_by_type[kind] = line.count_by_type.get(kind, 0) + 1
        if line.last_activity is None or entry.timestamp >= line.last_activity:
            line.last_activity = entry.timestamp
            line.user_name = entry.user.name

    ranked = sorted(lines.values(), key=lambda line: (-line.transaction_count, -line.total_value))
    return UserActivityReport(
        lines=ranked[:limit],
        active_users=len(lines),
        window_days=window_days,
        window_start=start,
        window_end=as_of,
        generated_at=as_of,
    )


class AnalyticsEngine:
    """
    Loads snapshots and entries and builds reports.

    Never writes. Report windows are closed intervals ending at `as_of`
    (now when omitted).
    """

    def __init__(
        self,
        material_store: IMaterialStore,
        ledger: Ledger,
        default_window_days: int = 90,
        alert_limit: int = 20,
    ):
        self._materials = material_store
        self._ledger = ledger
        self._default_window_days = default_window_days
        self._alert_limit = alert_limit

    async def stock_valuation(
        self,
        category: MaterialCategory | None = None,
        status: MaterialStatus | None = MaterialStatus.ACTIVE,
        stock_level: StockLevel | None = None,
        as_of: datetime | None = None,
    ) -> StockValuationReport:
        materials = await self._materials.snapshot(status)
        return stock_valuation(
            materials,
            generated_at=as_of or datetime.now(UTC),
            category=category,
            status=status,
            stock_level=stock_level,
        )

    async def transaction_report(
        self, filter: TransactionFilter, as_of: datetime | None = None
    ) -> TransactionReport:
        entries = [entry async for entry in self._ledger.stream(filter)]
        return transaction_report(entries, generated_at=as_of or datetime.now(UTC))

    async def abc_analysis(
        self, window_days: int | None = None, as_of: datetime | None = None
    ) -> AbcAnalysisReport:
        window_days = validate_window(
            self._default_window_days if window_days is None else window_days
        )
        as_of = as_of or datetime.now(UTC)
        entries = await self._window_entries(window_days, as_of, MOVEMENT_TYPES)
        report = abc_analysis(
            entries, await self._materials_by_id(), window_days=window_days, as_of=as_of
        )
        logger.info(
            "abc_analysis_generated",
            window_days=window_days,
            materials=len(report.lines),
            total_value=report.total_value,
        )
        return report

    async def cost_analysis(
        self,
        window_days: int | None = None,
        group_by: CostGroupBy = CostGroupBy.CATEGORY,
        as_of: datetime | None = None,
    ) -> CostAnalysisReport:
        window_days = validate_window(
            self._default_window_days if window_days is None else window_days
        )
        as_of = as_of or datetime.now(UTC)
        entries = await self._window_entries(window_days, as_of, MOVEMENT_TYPES)
        return cost_analysis(
            entries,
            await self._materials_by_id(),
            window_days=window_days,
            as_of=as_of,
            group_by=group_by,
        )

    async def stock_alerts(
        self, limit: int | None = None, as_of: datetime | None = None
    ) -> StockAlertsReport:
        materials = await self._materials.snapshot(MaterialStatus.ACTIVE)
        return stock_alerts(
            materials,
            limit=self._alert_limit if limit is None else limit,
            generated_at=as_of or datetime.now(UTC),
        )

    async def transaction_trends(
        self,
        window_days: int | None = None,
        group_by: TrendGroupBy = TrendGroupBy.DAY,
        as_of: datetime | None = None,
    ) -> TransactionTrendsReport:
        window_days = validate_window(
            self._default_window_days if window_days is None else window_days
        )
        as_of = as_of or datetime.now(UTC)
        entries = await self._window_entries(window_days, as_of)
        return transaction_trends(
            entries, window_days=window_days, as_of=as_of, group_by=group_by
        )

    async def overview(self, as_of: datetime | None = None) -> OverviewReport:
        as_of = as_of or datetime.now(UTC)
        today = as_of.astimezone(UTC).date()
        month_start = datetime(today.year, today.month, 1, tzinfo=UTC)
        filter = TransactionFilter(
            status=TransactionStatus.COMPLETED,
            start=month_start,
            end=as_of,
            sort_order=SortOrder.ASC,
        )
        entries = [entry async for entry in self._ledger.stream(filter)]
        materials = await self._materials.snapshot(MaterialStatus.ACTIVE)
        return overview(materials, entries, as_of=as_of)

    async def top_materials(
        self,
        window_days: int | None = None,
        limit: int | None = None,
        type: TransactionType | None = None,
        as_of: datetime | None = None,
    ) -> TopMaterialsReport:
        window_days = validate_window(
            self._default_window_days if window_days is None else window_days
        )
        limit = validate_activity_limit(ACTIVITY_LIMIT if limit is None else limit)
        as_of = as_of or datetime.now(UTC)
        entries = await self._window_entries(window_days, as_of, (type,) if type else None)
        return top_materials(
            entries,
            await self._materials_by_id(),
            window_days=window_days,
            as_of=as_of,
            limit=limit,
            type=type,
        )

    async def user_activity(
        self,
        window_days: int | None = None,
        limit: int | None = None,
        as_of: datetime | None = None,
    ) -> UserActivityReport:
        window_days = validate_window(
            self._default_window_days if window_days is None else window_days
        )
        limit = validate_activity_limit(ACTIVITY_LIMIT if limit is None else limit)
        as_of = as_of or datetime.now(UTC)
        entries = await self._window_entries(window_days, as_of)
        return user_activity(entries, window_days=window_days, as_of=as_of, limit=limit)

    async def _materials_by_id(self) -> dict[str, Material]:
        return {m.id: m for m in await self._materials.snapshot() if m.id}

    async def _window_entries(
        self,
        window_days: int,
        as_of: datetime,
        types: tuple[TransactionType, ...] | None = None,
    ) -> list[LedgerEntry]:
        filter = TransactionFilter(
            types=list(types) if types else None,
            status=TransactionStatus.COMPLETED,
            start=as_of - timedelta(days=window_days),
            end=as_of,
            sort_order=SortOrder.ASC,
        )
        return [entry async for entry in self._ledger.stream(filter)]
