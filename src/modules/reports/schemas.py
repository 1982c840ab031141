"""Schemas for the financial report (batch-wise income and fund allocation)."""

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import ConfigDict, field_validator

from src.shared.schemas.base import BaseSchema, PaginatedResponse
from src.shared.utils.money import to_money


class CollectionStatus(StrEnum):
    """Collection-rate band."""

    SUCCESS = "success"
    WARNING = "warning"
    DESTRUCTIVE = "destructive"


class ExportFormat(StrEnum):
    CSV = "csv"
    EXCEL = "excel"
    PDF = "pdf"


def _text(v: Any) -> str:
    if v is None:
        return ""
    return v if isinstance(v, str) else str(v)


class ReportRow(BaseSchema):
    """
    One row returned by the get_financial_report RPC.

    The backend returns loosely typed JSON: missing or malformed text fields
    become "", missing or malformed amounts become 0.
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, frozen=True)

    batch_id: str = ""
    program_code: str = ""
    academic_period: str = ""
    total_income: Decimal = Decimal("0")  # expected income
    actual_collected: Decimal = Decimal("0")
    program_running_expense: Decimal = Decimal("0")  # 55%
    department_development: Decimal = Decimal("0")  # 5%
    research_allocation: Decimal = Decimal("0")  # 5%
    university_income: Decimal = Decimal("0")  # 35%

    @field_validator("batch_id", "program_code", "academic_period", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator(
        "total_income",
        "actual_collected",
        "program_running_expense",
        "department_development",
        "research_allocation",
        "university_income",
        mode="before",
    )
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_money(v)


class ReportFilters(BaseSchema):
    """Filter state of the report page. "all" disables a filter."""

    fiscal_year: int
    batch_id: str = "all"
    program_code: str = "all"
    academic_period: str = "all"

    @field_validator("fiscal_year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        if v < 2000 or v > 2100:
            raise ValueError("Fiscal year must be between 2000 and 2100")
        return v

    @field_validator("batch_id", "program_code", "academic_period", mode="before")
    @classmethod
    def default_all(cls, v: Any) -> str:
        if v is None or (isinstance(v, str) and not v.strip()):
            return "all"
        return str(v).strip()

    def backend_filters(self) -> dict[str, str]:
        """Equality filters to send with the RPC (only the active ones)."""
        return {
            name: value
            for name, value in (
                ("batch_id", self.batch_id),
                ("program_code", self.program_code),
                ("academic_period", self.academic_period),
            )
            if value.lower() != "all"
        }


class Batch(BaseSchema):
    id: str
    batch_id: str = ""
    program_code: str = ""
    intake_session: str | None = None
    number_of_students: int | None = None

    @field_validator("id", "batch_id", "program_code", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)


class AcademicPeriod(BaseSchema):
    id: str
    name: str = ""
    batch_id: str = ""
    semester_number: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None

    @field_validator("id", "name", "batch_id", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)


class ReferenceDataResponse(BaseSchema):
    """Options for the filter controls."""

    batches: list[Batch]
    programs: list[str]
    academic_periods: list[AcademicPeriod]


class SummaryMetrics(BaseSchema):
    """Totals over the filtered rows."""

    total_income: Decimal
    total_collected: Decimal
    collection_rate: float  # 0-1, 0 when no expected income
    collection_status: CollectionStatus
    running_expense: Decimal
    department_development: Decimal
    research_allocation: Decimal
    university_income: Decimal


class ReportTableRow(ReportRow):
    """Table row with its own collection rate and badge."""

    collection_rate: float = 0.0
    collection_status: CollectionStatus = CollectionStatus.DESTRUCTIVE
    badge_variant: str = "destructive"


class IncomeChartPoint(BaseSchema):
    name: str
    total_income: Decimal
    actual_collected: Decimal


class AllocationSlice(BaseSchema):
    name: str
    value: Decimal


class FinancialReportResponse(BaseSchema):
    """Everything the report page shows for one filter state."""

    fiscal_year: int
    filter_description: str
    record_count: int  # rows after all filters (not just the page)
    summary: SummaryMetrics
    income_chart: list[IncomeChartPoint]
    allocation_chart: list[AllocationSlice]
    table: PaginatedResponse[ReportTableRow]
    sort_field: str
    sort_direction: str
