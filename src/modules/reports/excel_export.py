"""Export report data to Excel (XLSX)."""

from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font

SHEET_TITLE = "Financial Report"


def _cell_value(v: Any) -> Any:
    """Convert value for Excel (Decimal -> float, date stays)."""
    if v is None:
        return None
    if isinstance(v, Decimal):
        return float(v)
    return v


def _write_table(ws: Any, rows: list[list[Any]], start_row: int = 1) -> None:
    """Write list of rows to sheet starting at start_row."""
    for i, row in enumerate(rows, start=start_row):
        for j, val in enumerate(row, start=1):
            ws.cell(row=i, column=j, value=_cell_value(val))


def column_width(header: str) -> float:
    """Width heuristic: one and a half characters per header character, at least 12."""
    return max(len(header) * 1.5, 12)


def export_financial_report(
    headers: list[str],
    records: list[dict[str, Any]],
    money_headers: set[str],
    currency: str = "BDT",
    title: str = "Financial Report",
    author: str = "",
) -> bytes:
    """
    One sheet: bold header row, one row per record.

    Money columns stay numeric and get a currency number format so they can
    still be summed in the spreadsheet.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    wb.properties.title = title
    wb.properties.subject = "Financial Report"
    wb.properties.creator = author or title
    wb.properties.created = datetime.now()

    _write_table(ws, [headers], 1)
    for c in range(1, len(headers) + 1):
        ws.cell(1, c).font = Font(bold=True)

    money_format = f'"{currency}" #,##0.00'
    row = 2
    for record in records:
        _write_table(ws, [[record.get(h) for h in headers]], row)
        for c, h in enumerate(headers, start=1):
            if h in money_headers:
                ws.cell(row, c).number_format = money_format
        row += 1

    for c, h in enumerate(headers, start=1):
        ws.column_dimensions[ws.cell(1, c).column_letter].width = column_width(h)

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
