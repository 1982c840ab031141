"""
Report downloads: column selection, flattening and the per-format writers.

Writers are passed to ExportService explicitly, one per format. When the
requested format fails the service falls back to CSV and reports both
outcomes; only when CSV fails too is the export an error.
"""

import csv
import logging
import unicodedata
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from io import StringIO
from typing import Any, Protocol
from urllib.parse import quote

from src.core.config import Settings
from src.core.exceptions import ExportError, ValidationError
from src.core.pdf import PageGeometry, PDFService, TableColumn, layout_table
from src.modules.reports.excel_export import export_financial_report
from src.modules.reports.schemas import ExportFormat, ReportFilters, ReportRow, SummaryMetrics
from src.shared.utils.money import format_currency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportColumn:
    key: str
    title: str
    is_money: bool = False
    pdf_proportion: float = 0.11


EXPORT_COLUMNS: tuple[ExportColumn, ...] = (
    ExportColumn("batch_id", "Batch ID", pdf_proportion=0.15),
    ExportColumn("program_code", "Program Code", pdf_proportion=0.12),
    ExportColumn("academic_period", "Academic Period", pdf_proportion=0.18),
    ExportColumn("total_income", "Total Income", is_money=True, pdf_proportion=0.09),
    ExportColumn("actual_collected", "Actual Collected", is_money=True, pdf_proportion=0.09),
    ExportColumn("program_running_expense", "Program Expenses", is_money=True, pdf_proportion=0.12),
    ExportColumn("department_development", "Department Development", is_money=True, pdf_proportion=0.10),
    ExportColumn("research_allocation", "Research Allocation", is_money=True, pdf_proportion=0.09),
    ExportColumn("university_income", "University Income", is_money=True, pdf_proportion=0.09),
)
COLUMNS_BY_KEY = {c.key: c for c in EXPORT_COLUMNS}


def resolve_columns(keys: Sequence[str] | None = None) -> list[ExportColumn]:
    """Selected columns in catalogue order; nothing selected means all of them."""
    if not keys:
        return list(EXPORT_COLUMNS)
    unknown = [k for k in keys if k not in COLUMNS_BY_KEY]
    if unknown:
        raise ValidationError(f"Unknown export columns: {', '.join(unknown)}", field="columns")
    wanted = set(keys)
    return [c for c in EXPORT_COLUMNS if c.key in wanted]


def flatten_rows(rows: Sequence[ReportRow], columns: Sequence[ExportColumn]) -> list[dict[str, Any]]:
    """One flat record per row, keyed by column title."""
    return [{c.title: getattr(row, c.key) for c in columns} for row in rows]


def build_export_filename(prefix: str, filters: ReportFilters) -> str:
    """prefix_YEAR[_PROGRAM][_BATCH][_PERIOD]; filters set to "all" are left out."""
    parts = [prefix, str(filters.fiscal_year)]
    for value in (filters.program_code, filters.batch_id, filters.academic_period):
        if value.lower() != "all":
            parts.append(value.replace(" ", "_").replace("/", "-"))
    return "_".join(parts)


def ascii_filename(filename: str) -> str:
    """Latin-1 safe fallback name: accents folded, other non-ASCII characters and quotes dropped."""
    folded = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    return folded.replace('"', "").replace("\\", "") or "report"


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII filename plus the full UTF-8 name (RFC 5987)."""
    return f"attachment; filename=\"{ascii_filename(filename)}\"; filename*=UTF-8''{quote(filename)}"


def pdf_filter_text(filters: ReportFilters) -> str:
    parts = [
        f"{label}: {value}"
        for label, value in (
            ("Program", filters.program_code),
            ("Batch", filters.batch_id),
            ("Period", filters.academic_period),
        )
        if value.lower() != "all"
    ]
    return ", ".join(parts) or "All batches and programs"


@dataclass
class ExportDocument:
    """Everything a writer needs; records are already flattened."""

    columns: list[ExportColumn]
    records: list[dict[str, Any]]
    summary: SummaryMetrics
    filters: ReportFilters
    filename: str
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def headers(self) -> list[str]:
        return [c.title for c in self.columns]


class ExportWriter(Protocol):
    format: ExportFormat
    media_type: str
    extension: str

    def write(self, document: ExportDocument) -> bytes: ...


def _csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


class CsvWriter:
    format = ExportFormat.CSV
    media_type = "text/csv; charset=utf-8"
    extension = "csv"

    def write(self, document: ExportDocument) -> bytes:
        out = StringIO()
        writer = csv.writer(out)
        writer.writerow(document.headers)
        for record in document.records:
            writer.writerow([_csv_value(record.get(h)) for h in document.headers])
        return out.getvalue().encode("utf-8")


class ExcelWriter:
    format = ExportFormat.EXCEL
    media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    extension = "xlsx"

    def __init__(self, currency: str = "BDT", title: str = "Financial Report", author: str = ""):
        self.currency = currency
        self.title = title
        self.author = author

    def write(self, document: ExportDocument) -> bytes:
        return export_financial_report(
            headers=document.headers,
            records=document.records,
            money_headers={c.title for c in document.columns if c.is_money},
            currency=self.currency,
            title=self.title,
            author=self.author,
        )


class PdfWriter:
    format = ExportFormat.PDF
    media_type = "application/pdf"
    extension = "pdf"
    template_name = "financial_report.html"

    def __init__(
        self,
        pdf_service: PDFService,
        institution: str,
        institution_short_name: str,
        program: str,
        title: str,
        currency: str = "BDT",
        geometry: PageGeometry | None = None,
    ):
        self.pdf_service = pdf_service
        self.institution = institution
        self.institution_short_name = institution_short_name
        self.program = program
        self.title = title
        self.currency = currency
        self.geometry = geometry or PageGeometry()

    def _money(self, value: Any) -> str:
        return format_currency(value, self.currency)

    def _cells(self, document: ExportDocument) -> list[list[str]]:
        return [
            [
                self._money(record.get(c.title)) if c.is_money else _csv_value(record.get(c.title))
                for c in document.columns
            ]
            for record in document.records
        ]

    def build_context(self, document: ExportDocument) -> dict:
        s = document.summary
        return {
            "institution": self.institution,
            "logo_text": self.institution_short_name,
            "program": self.program,
            "title": self.title,
            "fiscal_year": document.filters.fiscal_year,
            "filter_text": pdf_filter_text(document.filters),
            "summary_cells": [
                ("Total Expected Income", self._money(s.total_income)),
                ("Total Collected", self._money(s.total_collected)),
                ("Collection Rate", f"{s.collection_rate * 100:.2f}%"),
                ("Program Expenses", self._money(s.running_expense)),
            ],
            "allocation_cells": [
                ("Department Development", self._money(s.department_development)),
                ("Research Allocation", self._money(s.research_allocation)),
                ("University Income", self._money(s.university_income)),
            ],
            "generated_on": f"{document.generated_at:%B} {document.generated_at.day}, {document.generated_at:%Y}",
            "record_count": len(document.records),
        }

    def write(self, document: ExportDocument) -> bytes:
        columns = [
            TableColumn(
                key=c.key,
                title=c.title,
                proportion=c.pdf_proportion,
                align="right" if c.is_money else "left",
            )
            for c in document.columns
        ]
        layout = layout_table(columns, self._cells(document), self.geometry)
        return self.pdf_service.generate_table_pdf(
            self.template_name, self.build_context(document), layout, self.geometry
        )


@dataclass
class ExportNotice:
    """User-facing outcome message (shown as a toast by the UI)."""

    level: str  # "success" | "error"
    title: str
    description: str = ""


@dataclass
class ExportResult:
    content: bytes
    format: ExportFormat
    requested_format: ExportFormat
    media_type: str
    filename: str
    record_count: int
    notices: list[ExportNotice] = field(default_factory=list)

    @property
    def fallback_used(self) -> bool:
        return self.format != self.requested_format


def _plural(n: int) -> str:
    return f"{n} record{'' if n == 1 else 's'}"


class ExportService:
    """Run the requested writer, falling back to CSV when it fails."""

    def __init__(
        self,
        writers: Mapping[ExportFormat, ExportWriter],
        fallback: ExportFormat = ExportFormat.CSV,
    ):
        self.writers = dict(writers)
        self.fallback = fallback

    def _result(
        self, writer: ExportWriter, content: bytes, document: ExportDocument, requested: ExportFormat
    ) -> ExportResult:
        return ExportResult(
            content=content,
            format=writer.format,
            requested_format=requested,
            media_type=writer.media_type,
            filename=f"{document.filename}.{writer.extension}",
            record_count=len(document.records),
        )

    def export(self, document: ExportDocument, preferred: ExportFormat) -> ExportResult:
        if not document.records:
            raise ValidationError("No data available to download")
        writer = self.writers.get(preferred)
        if writer is None:
            raise ValidationError(f"Unsupported export format: {preferred}", field="format")

        label = preferred.value.upper()
        try:
            content = writer.write(document)
        except Exception as e:
            logger.exception("Error generating %s report", preferred.value, extra={"export_format": preferred.value})
            first_error = str(e) or e.__class__.__name__
        else:
            result = self._result(writer, content, document, preferred)
            result.notices.append(
                ExportNotice(
                    "success",
                    "Report downloaded successfully",
                    f"Your {label} report has been generated with {_plural(result.record_count)}.",
                )
            )
            return result

        fallback_writer = self.writers.get(self.fallback)
        if preferred == self.fallback or fallback_writer is None:
            raise ExportError("Failed to generate report", errors={preferred.value: first_error})

        fallback_label = self.fallback.value.upper()
        try:
            content = fallback_writer.write(document)
        except Exception as e:
            logger.exception("%s fallback failed after %s error", fallback_label, label)
            raise ExportError(
                "All export methods failed",
                errors={preferred.value: first_error, self.fallback.value: str(e) or e.__class__.__name__},
            ) from e

        logger.warning(
            "%s export failed, delivered %s instead (%s rows)",
            label,
            fallback_label,
            len(document.records),
            extra={"export_format": self.fallback.value, "row_count": len(document.records)},
        )
        result = self._result(fallback_writer, content, document, preferred)
        result.notices.append(ExportNotice("error", f"{label} generation failed", first_error))
        result.notices.append(
            ExportNotice(
                "success",
                f"{fallback_label} downloaded instead",
                f"{label} failed, but we exported your data as {fallback_label}",
            )
        )
        return result


def build_export_service(settings: Settings, pdf_service: PDFService) -> ExportService:
    """The three writers configured from settings."""
    return ExportService(
        {
            ExportFormat.CSV: CsvWriter(),
            ExportFormat.EXCEL: ExcelWriter(
                currency=settings.currency,
                title=f"{settings.institution_name} - {settings.program_name} Financial Report",
                author=f"{settings.program_name} Administration",
            ),
            ExportFormat.PDF: PdfWriter(
                pdf_service=pdf_service,
                institution=settings.institution_name,
                institution_short_name=settings.institution_short_name,
                program=settings.program_name,
                title=settings.report_title,
                currency=settings.currency,
            ),
        }
    )
