"""
Page layout for tabular PDF exports.

Everything is measured in millimetres. Rows are wrapped to their column
width, each row is as tall as its tallest cell, and a new page is started
(with the header row repeated) when the next row would run past the bottom
of the page content area.
"""

import textwrap
from collections.abc import Sequence
from dataclasses import dataclass, field

MM_PER_PT = 0.3527
# Average glyph width of the body font as a fraction of the font size.
CHAR_WIDTH_EM = 0.5
CELL_PADDING_X = 2.0

MIN_ROW_HEIGHT = 8.0
ROW_PADDING_Y = 4.0
MIN_HEADER_HEIGHT = 10.0
HEADER_PADDING_Y = 6.0


@dataclass(frozen=True)
class PageGeometry:
    """A4 landscape by default."""

    width: float = 297.0
    height: float = 210.0
    margin: float = 10.0
    bottom_margin: float = 15.0
    # Summary blocks sit above the table on the first page.
    first_page_table_top: float = 120.0

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def content_bottom(self) -> float:
        return self.height - self.bottom_margin


@dataclass(frozen=True)
class TableColumn:
    key: str
    title: str
    proportion: float = 0.11
    align: str = "left"  # "left" | "right"


@dataclass
class LaidOutRow:
    cells: list[list[str]]  # wrapped lines per cell
    height: float


@dataclass
class LaidOutPage:
    number: int
    table_top: float
    rows: list[LaidOutRow] = field(default_factory=list)

    @property
    def table_bottom(self) -> float:
        return self.table_top + sum(r.height for r in self.rows)


@dataclass
class TableLayout:
    columns: list[TableColumn]
    widths: list[float]
    header: LaidOutRow
    pages: list[LaidOutPage]

    @property
    def row_count(self) -> int:
        return sum(len(p.rows) for p in self.pages)


def column_widths(columns: Sequence[TableColumn], content_width: float) -> list[float]:
    """Split the content width in proportion to each column's share."""
    total = sum(c.proportion for c in columns)
    if total <= 0:
        return [content_width / len(columns) for _ in columns] if columns else []
    return [content_width * c.proportion / total for c in columns]


def line_height(font_size: float) -> float:
    return font_size * MM_PER_PT


def wrap_text(text: str, width: float, font_size: float) -> list[str]:
    """Greedy word wrap using an average glyph width; never returns an empty list."""
    usable = max(width - 2 * CELL_PADDING_X, 1.0)
    chars = max(int(usable / (font_size * MM_PER_PT * CHAR_WIDTH_EM)), 1)
    lines: list[str] = []
    for paragraph in (text or "").splitlines() or [""]:
        lines.extend(textwrap.wrap(paragraph, width=chars, break_long_words=True) or [""])
    return lines


def _lay_out_cells(values: Sequence[str], widths: Sequence[float], font_size: float) -> list[list[str]]:
    return [wrap_text(str(v), w, font_size) for v, w in zip(values, widths)]


def _height(cells: list[list[str]], font_size: float, minimum: float, padding: float) -> float:
    tallest = max((len(lines) for lines in cells), default=1)
    return max(minimum, tallest * line_height(font_size) + padding)


def layout_table(
    columns: Sequence[TableColumn],
    rows: Sequence[Sequence[str]],
    geometry: PageGeometry | None = None,
    font_size: float = 8.0,
) -> TableLayout:
    """
    Assign every row to a page.

    rows are already formatted cell strings in column order. A row taller than
    a whole page still gets a page of its own rather than looping forever.
    """
    geometry = geometry or PageGeometry()
    widths = column_widths(columns, geometry.content_width)

    header_cells = _lay_out_cells([c.title for c in columns], widths, font_size)
    header = LaidOutRow(
        cells=header_cells,
        height=_height(header_cells, font_size, MIN_HEADER_HEIGHT, HEADER_PADDING_Y),
    )

    page = LaidOutPage(number=1, table_top=geometry.first_page_table_top)
    pages = [page]
    y = page.table_top + header.height
    for values in rows:
        cells = _lay_out_cells(values, widths, font_size)
        row = LaidOutRow(cells=cells, height=_height(cells, font_size, MIN_ROW_HEIGHT, ROW_PADDING_Y))
        if y + row.height > geometry.content_bottom and page.rows:
            page = LaidOutPage(number=page.number + 1, table_top=geometry.margin)
            pages.append(page)
            y = page.table_top + header.height
        page.rows.append(row)
        y += row.height

    return TableLayout(columns=list(columns), widths=widths, header=header, pages=pages)
