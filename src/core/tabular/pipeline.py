"""
Filter -> sort -> paginate over small in-memory row collections.

Rows can be pydantic models, dataclasses or plain dicts; fields are read by
name. Nothing here raises on odd input: missing text is treated as "" for
sorting and as non-matching for filters, missing numbers as 0.
"""

import math
import unicodedata
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any, Generic, Iterable, Mapping, Sequence, TypeVar

T = TypeVar("T")

# Filter value meaning "constraint disabled".
ALL = "all"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortState:
    """Current sort column and direction of a table."""

    field: str
    direction: SortDirection = SortDirection.ASC

    def toggle(self, field: str) -> "SortState":
        """
        Header click: same column flips direction, another column starts ascending.

        Clients use it to compute the sort_field / sort_direction they send next.
        """
        if field == self.field:
            flipped = SortDirection.DESC if self.direction == SortDirection.ASC else SortDirection.ASC
            return SortState(field=field, direction=flipped)
        return SortState(field=field, direction=SortDirection.ASC)


@dataclass
class TableQuery:
    """Everything a table view needs to turn the base rows into one page."""

    search: str = ""
    search_fields: Sequence[str] = ()
    equals: Mapping[str, Any] = field(default_factory=dict)
    sort: SortState | None = None
    page: int = 1
    page_size: int = 10


@dataclass
class TablePage(Generic[T]):
    """One page of the filtered, sorted rows."""

    items: list[T]
    total: int
    page: int
    limit: int
    pages: int


def field_value(row: Any, name: str) -> Any:
    """Read a field from a mapping or an object; None when absent."""
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def is_active_constraint(value: Any) -> bool:
    """An equality constraint is active unless it is None, "" or the "all" sentinel."""
    if value is None:
        return False
    if isinstance(value, str) and (value == "" or value.lower() == ALL):
        return False
    return True


def matches_search(row: Any, term: str, fields: Iterable[str]) -> bool:
    """Case-insensitive substring match on any of the text fields."""
    needle = term.strip().casefold()
    if not needle:
        return True
    for name in fields:
        value = field_value(row, name)
        if isinstance(value, str) and needle in value.casefold():
            return True
    return False


def _same(value: Any, expected: Any) -> bool:
    if isinstance(value, bool) or isinstance(expected, bool):
        return value is expected or value == expected
    if isinstance(value, (int, float, Decimal)) and isinstance(expected, str):
        return str(value) == expected
    return value == expected


def matches_equals(row: Any, equals: Mapping[str, Any]) -> bool:
    """Exact match on every active constraint; a missing field never matches."""
    for name, expected in equals.items():
        if not is_active_constraint(expected):
            continue
        value = field_value(row, name)
        if value is None or not _same(value, expected):
            return False
    return True


def filter_rows(
    rows: Iterable[T],
    search: str = "",
    search_fields: Sequence[str] = (),
    equals: Mapping[str, Any] | None = None,
) -> list[T]:
    """Conjunction of the search predicate and all equality predicates."""
    equals = equals or {}
    return [
        row
        for row in rows
        if matches_search(row, search or "", search_fields) and matches_equals(row, equals)
    ]


def collation_key(value: str) -> tuple[str, str]:
    """
    Sort key approximating locale collation.

    Primary: accents stripped and case folded ("Émile" sorts with "emile").
    Secondary: the original string, so the order is total and deterministic.
    """
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), value)


def _numeric(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal(int(bool(value)))
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except ArithmeticError:
        return Decimal("0")
    return number if number.is_finite() else Decimal("0")


def _is_text_field(rows: Sequence[Any], name: str) -> bool:
    return any(isinstance(field_value(row, name), str) for row in rows)


def sort_rows(rows: Iterable[T], sort: SortState | None) -> list[T]:
    """Stable sort by one field; text uses collation, numbers use numeric order."""
    result = list(rows)
    if sort is None or not result:
        return result
    reverse = sort.direction == SortDirection.DESC
    if _is_text_field(result, sort.field):
        def text_key(row: Any) -> tuple[str, str]:
            value = field_value(row, sort.field)
            return collation_key(value if isinstance(value, str) else "")

        result.sort(key=text_key, reverse=reverse)
    else:
        result.sort(key=lambda row: _numeric(field_value(row, sort.field)), reverse=reverse)
    return result


def page_count(total: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return math.ceil(total / page_size)


def clamp_page(page: int, pages: int) -> int:
    """Keep the page index within [1, max(pages, 1)]."""
    return min(max(page, 1), max(pages, 1))


def paginate(rows: Sequence[T], page: int = 1, page_size: int = 10) -> TablePage[T]:
    """Slice a fixed-size window; an out-of-range page is clamped, not an error."""
    total = len(rows)
    pages = page_count(total, page_size)
    current = clamp_page(page, pages)
    start = (current - 1) * page_size
    items = list(rows[start:start + page_size]) if page_size > 0 else []
    return TablePage(items=items, total=total, page=current, limit=page_size, pages=pages)


def run_table_query(rows: Iterable[T], query: TableQuery) -> tuple[list[T], TablePage[T]]:
    """
    Apply the whole pipeline.

    Returns the full filtered+sorted list (for summaries and exports) and the
    visible page of it.
    """
    filtered = filter_rows(rows, query.search, query.search_fields, query.equals)
    ordered = sort_rows(filtered, query.sort)
    return ordered, paginate(ordered, query.page, query.page_size)
