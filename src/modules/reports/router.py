"""API for the financial report."""

from fastapi import APIRouter, Depends, Query, Response

from src.core.backend import BackendClient, get_backend
from src.core.config import settings
from src.core.pdf import pdf_service
from src.modules.reports.export import ExportService, build_export_service, content_disposition
from src.modules.reports.schemas import (
    ExportFormat,
    FinancialReportResponse,
    ReferenceDataResponse,
    ReportFilters,
)
from src.modules.reports.service import ReportsService, sort_state
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/reports", tags=["Reports"])


def get_export_service() -> ExportService:
    return build_export_service(settings, pdf_service)


def report_filters(
    fiscal_year: int = Query(..., ge=2000, le=2100, description="Fiscal year, e.g. 2025."),
    batch_id: str = Query("all", description="Batch ID or 'all'."),
    program_code: str = Query("all", description="Program code or 'all'."),
    academic_period: str = Query("all", description="Academic period name or 'all'."),
) -> ReportFilters:
    return ReportFilters(
        fiscal_year=fiscal_year,
        batch_id=batch_id,
        program_code=program_code,
        academic_period=academic_period,
    )


@router.get(
    "/reference",
    response_model=ApiResponse[ReferenceDataResponse],
)
async def get_reference_data(backend: BackendClient = Depends(get_backend)):
    """Batches, programs and academic periods for the filter controls."""
    service = ReportsService(backend)
    return ApiResponse(data=await service.reference_data())


@router.get(
    "/financial",
    response_model=ApiResponse[FinancialReportResponse],
)
async def get_financial_report(
    filters: ReportFilters = Depends(report_filters),
    search: str = Query("", description="Search in batch ID, program code and academic period."),
    sort_field: str | None = Query(None, description="Column to sort by (default batch_id)."),
    sort_direction: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, description="Page number; out-of-range pages are clamped."),
    backend: BackendClient = Depends(get_backend),
):
    """
    Financial report for one fiscal year: summary, charts and one table page.

    Summary and charts cover every row matching the filters and search, not just the page.
    """
    service = ReportsService(backend)
    data = await service.financial_report(
        filters, search=search, sort=sort_state(sort_field, sort_direction), page=page
    )
    return ApiResponse(
        data=data,
        message=f"{data.record_count} record{'' if data.record_count == 1 else 's'} found",
    )


@router.get("/financial/export")
async def export_financial_report(
    filters: ReportFilters = Depends(report_filters),
    format: ExportFormat = Query(ExportFormat.PDF, description="csv, excel or pdf."),
    columns: list[str] | None = Query(None, description="Columns to include (default all)."),
    search: str = Query(""),
    sort_field: str | None = Query(None),
    sort_direction: str = Query("asc", pattern="^(asc|desc)$"),
    backend: BackendClient = Depends(get_backend),
    export_service: ExportService = Depends(get_export_service),
):
    """
    Download the filtered report.

    When the requested format cannot be produced the CSV is returned instead;
    X-Export-Format tells which format was delivered.
    """
    service = ReportsService(backend)
    document = await service.build_export_document(
        filters, columns=columns, search=search, sort=sort_state(sort_field, sort_direction)
    )
    result = export_service.export(document, format)
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={
            "Content-Disposition": content_disposition(result.filename),
            "X-Export-Format": result.format.value,
            "X-Export-Requested-Format": result.requested_format.value,
            "X-Export-Fallback": "true" if result.fallback_used else "false",
            "X-Record-Count": str(result.record_count),
        },
    )
