"""Service for the financial report (batch-wise income and fund allocation)."""

import logging
from collections.abc import Sequence

from pydantic import ValidationError as PydanticValidationError

from src.core.backend import BackendClient
from src.core.config import settings
from src.core.tabular import SortDirection, SortState, TableQuery, run_table_query
from src.modules.reports.export import (
    ExportDocument,
    build_export_filename,
    flatten_rows,
    resolve_columns,
)
from src.modules.reports.metrics import (
    allocation_chart_data,
    filter_description,
    income_chart_data,
    summarize,
    to_table_row,
)
from src.modules.reports.schemas import (
    AcademicPeriod,
    Batch,
    FinancialReportResponse,
    ReferenceDataResponse,
    ReportFilters,
    ReportRow,
)
from src.shared.schemas.base import PaginatedResponse

logger = logging.getLogger(__name__)

REPORT_RPC = "get_financial_report"
SEARCH_FIELDS = ("batch_id", "program_code", "academic_period")
SORTABLE_FIELDS = (
    "batch_id",
    "program_code",
    "academic_period",
    "total_income",
    "actual_collected",
    "program_running_expense",
    "department_development",
    "research_allocation",
    "university_income",
)
DEFAULT_SORT = SortState(field="batch_id")


def _validate_rows(model, items: Sequence[dict], source: str) -> list:
    """Validate backend records one by one; a record that cannot be read is skipped."""
    rows = []
    for item in items:
        try:
            rows.append(model.model_validate(item))
        except PydanticValidationError as e:
            logger.warning("Skipping malformed %s record: %s", source, e.errors()[:1])
    return rows


def sort_state(sort_field: str | None, sort_direction: str | None) -> SortState:
    """Sort from query params; unknown fields fall back to batch id ascending."""
    if not sort_field or sort_field not in SORTABLE_FIELDS:
        return DEFAULT_SORT
    direction = SortDirection.DESC if sort_direction == SortDirection.DESC else SortDirection.ASC
    return SortState(field=sort_field, direction=direction)


class ReportsService:
    """Fetch report rows from the backend and derive the report page / exports."""

    def __init__(self, backend: BackendClient):
        self.backend = backend

    async def fetch_rows(self, filters: ReportFilters) -> list[ReportRow]:
        """
        All rows of the fiscal year matching the categorical filters.

        The RPC computes the allocation split; filters are applied by the backend
        and again locally so the table and the summary always see the same set.
        """
        items = await self.backend.rpc(
            REPORT_RPC,
            {"fiscal_year": filters.fiscal_year},
            eq=filters.backend_filters(),
        )
        rows = _validate_rows(ReportRow, items, REPORT_RPC)
        logger.info(
            "Fetched %s report rows for %s",
            len(rows),
            filters.fiscal_year,
            extra={"rpc": REPORT_RPC, "row_count": len(rows)},
        )
        return rows

    async def reference_data(self) -> ReferenceDataResponse:
        """Batches, distinct program codes (first-seen order) and academic periods."""
        batch_items = await self.backend.select("batch", order="batch_id.asc")
        period_items = await self.backend.select("academic_period", order="start_date.desc")
        batches = _validate_rows(Batch, batch_items, "batch")
        programs = list(dict.fromkeys(b.program_code for b in batches if b.program_code))
        return ReferenceDataResponse(
            batches=batches,
            programs=programs,
            academic_periods=_validate_rows(AcademicPeriod, period_items, "academic_period"),
        )

    def _query(self, filters: ReportFilters, search: str, sort: SortState, page: int) -> TableQuery:
        return TableQuery(
            search=search,
            search_fields=SEARCH_FIELDS,
            equals={
                "batch_id": filters.batch_id,
                "program_code": filters.program_code,
                "academic_period": filters.academic_period,
            },
            sort=sort,
            page=page,
            page_size=settings.report_page_size,
        )

    async def filtered_rows(
        self, filters: ReportFilters, search: str = "", sort: SortState | None = None
    ) -> list[ReportRow]:
        rows = await self.fetch_rows(filters)
        ordered, _ = run_table_query(rows, self._query(filters, search, sort or DEFAULT_SORT, 1))
        return ordered

    async def financial_report(
        self,
        filters: ReportFilters,
        search: str = "",
        sort: SortState | None = None,
        page: int = 1,
    ) -> FinancialReportResponse:
        sort = sort or DEFAULT_SORT
        rows = await self.fetch_rows(filters)
        ordered, table_page = run_table_query(rows, self._query(filters, search, sort, page))
        return FinancialReportResponse(
            fiscal_year=filters.fiscal_year,
            filter_description=filter_description(filters),
            record_count=len(ordered),
            summary=summarize(ordered),
            income_chart=income_chart_data(ordered),
            allocation_chart=allocation_chart_data(ordered),
            table=PaginatedResponse.create(
                items=[to_table_row(r) for r in table_page.items],
                total=table_page.total,
                page=table_page.page,
                limit=table_page.limit,
            ),
            sort_field=sort.field,
            sort_direction=sort.direction.value,
        )

    async def build_export_document(
        self,
        filters: ReportFilters,
        columns: Sequence[str] | None = None,
        search: str = "",
        sort: SortState | None = None,
    ) -> ExportDocument:
        """The filtered rows in table order, flattened to the selected columns."""
        selected = resolve_columns(columns)
        rows = await self.filtered_rows(filters, search, sort)
        return ExportDocument(
            columns=selected,
            records=flatten_rows(rows, selected),
            summary=summarize(rows),
            filters=filters,
            filename=build_export_filename(settings.export_filename_prefix, filters),
        )
