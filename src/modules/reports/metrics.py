"""Summary figures and chart series derived from already-filtered report rows."""

from collections.abc import Sequence
from decimal import Decimal

from src.modules.reports.schemas import (
    AllocationSlice,
    CollectionStatus,
    IncomeChartPoint,
    ReportFilters,
    ReportRow,
    ReportTableRow,
    SummaryMetrics,
)
from src.shared.utils.money import round_money

# Above this many rows the income chart is grouped by program instead of batch.
INCOME_CHART_MAX_BARS = 10

ALLOCATION_LABELS = (
    ("program_running_expense", "Program Expenses (55%)"),
    ("department_development", "Department Development (5%)"),
    ("research_allocation", "Research Allocation (5%)"),
    ("university_income", "University Income (35%)"),
)


def collection_rate(expected: Decimal, collected: Decimal) -> float:
    """collected / expected, 0 when nothing was expected."""
    if not expected:
        return 0.0
    return float(collected / expected)


def classify_collection_rate(rate: float) -> CollectionStatus:
    """>= 90% good, >= 70% borderline, anything else poor."""
    if rate >= 0.9:
        return CollectionStatus.SUCCESS
    if rate >= 0.7:
        return CollectionStatus.WARNING
    return CollectionStatus.DESTRUCTIVE


def badge_variant(status: str) -> str:
    """UI badge variant for a collection band."""
    return {
        CollectionStatus.SUCCESS: "default",
        CollectionStatus.WARNING: "secondary",
        CollectionStatus.DESTRUCTIVE: "destructive",
    }.get(status, "outline")


def _total(rows: Sequence[ReportRow], field: str) -> Decimal:
    return sum((getattr(r, field) for r in rows), Decimal("0"))


def summarize(rows: Sequence[ReportRow]) -> SummaryMetrics:
    """
    Sum every amount over the rows passed in.

    Callers pass the filtered set shown in the table, never the unfiltered one.
    """
    total_income = _total(rows, "total_income")
    total_collected = _total(rows, "actual_collected")
    rate = collection_rate(total_income, total_collected)
    return SummaryMetrics(
        total_income=round_money(total_income),
        total_collected=round_money(total_collected),
        collection_rate=rate,
        collection_status=classify_collection_rate(rate),
        running_expense=round_money(_total(rows, "program_running_expense")),
        department_development=round_money(_total(rows, "department_development")),
        research_allocation=round_money(_total(rows, "research_allocation")),
        university_income=round_money(_total(rows, "university_income")),
    )


def to_table_row(row: ReportRow) -> ReportTableRow:
    rate = collection_rate(row.total_income, row.actual_collected)
    status = classify_collection_rate(rate)
    return ReportTableRow(
        **row.model_dump(),
        collection_rate=rate,
        collection_status=status,
        badge_variant=badge_variant(status),
    )


def income_chart_data(rows: Sequence[ReportRow]) -> list[IncomeChartPoint]:
    """Expected vs collected per batch, or per program when there are too many batches."""
    if len(rows) <= INCOME_CHART_MAX_BARS:
        return [
            IncomeChartPoint(
                name=r.batch_id,
                total_income=r.total_income,
                actual_collected=r.actual_collected,
            )
            for r in rows
        ]
    by_program: dict[str, list[Decimal]] = {}
    for r in rows:
        totals = by_program.setdefault(r.program_code, [Decimal("0"), Decimal("0")])
        totals[0] += r.total_income
        totals[1] += r.actual_collected
    return [
        IncomeChartPoint(
            name=program,
            total_income=round_money(expected),
            actual_collected=round_money(collected),
        )
        for program, (expected, collected) in by_program.items()
    ]


def allocation_chart_data(rows: Sequence[ReportRow]) -> list[AllocationSlice]:
    """Four fund-allocation buckets; empty when there is nothing to show."""
    if not rows:
        return []
    return [
        AllocationSlice(name=label, value=round_money(_total(rows, field)))
        for field, label in ALLOCATION_LABELS
    ]


def filter_description(filters: ReportFilters) -> str:
    parts = []
    if filters.program_code.lower() != "all":
        parts.append(f"Program: {filters.program_code}")
    if filters.batch_id.lower() != "all":
        parts.append(f"Batch: {filters.batch_id}")
    if filters.academic_period.lower() != "all":
        parts.append(f"Period: {filters.academic_period}")
    if not parts:
        return f"All batches and programs for {filters.fiscal_year}"
    return f"{' | '.join(parts)} | {filters.fiscal_year}"
