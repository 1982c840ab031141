from src.core.tabular.pipeline import (
    ALL,
    SortDirection,
    SortState,
    TablePage,
    TableQuery,
    filter_rows,
    paginate,
    run_table_query,
    sort_rows,
)

__all__ = [
    "ALL",
    "SortDirection",
    "SortState",
    "TablePage",
    "TableQuery",
    "filter_rows",
    "paginate",
    "run_table_query",
    "sort_rows",
]
