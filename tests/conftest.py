from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from src.core.backend import get_backend
from src.core.exceptions import BackendError
from src.main import app


class FakeBackend:
    """
    In-memory stand-in for BackendClient.

    Tables hold rows exactly as the backend would return them (embedded
    relations included); eq / in filters are applied on top-level columns.
    rpc results are keyed by function name. Every call is recorded.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {}
        self.rpc_results: dict[str, list[dict]] = {}
        self.failures: dict[tuple[str, str], str] = {}
        self.calls: list[tuple[str, str, dict]] = []
        self._next_id = 1

    def fail(self, method: str, target: str, reason: str = "connection refused") -> None:
        self.failures[(method, target)] = reason

    def _check(self, method: str, target: str, **kwargs: Any) -> None:
        self.calls.append((method, target, kwargs))
        reason = self.failures.get((method, target))
        if reason:
            raise BackendError(f"Error calling {target}", reason)

    @staticmethod
    def _matches(row: dict, eq: dict | None, in_: dict | None) -> bool:
        for column, value in (eq or {}).items():
            if str(row.get(column)) != str(value):
                return False
        for column, values in (in_ or {}).items():
            if str(row.get(column)) not in {str(v) for v in values}:
                return False
        return True

    async def rpc(self, function: str, args=None, eq=None) -> list[dict]:
        self._check("rpc", function, args=args, eq=eq)
        return [r for r in self.rpc_results.get(function, []) if self._matches(r, eq, None)]

    async def select(self, table, columns="*", eq=None, in_=None, order=None, limit=None) -> list[dict]:
        self._check("select", table, columns=columns, eq=eq, in_=in_, order=order)
        rows = [r for r in self.tables.get(table, []) if self._matches(r, eq, in_)]
        return rows[:limit] if limit is not None else rows

    async def insert(self, table, values) -> list[dict]:
        self._check("insert", table, values=dict(values))
        row = {"id": f"new-{self._next_id}", **values}
        self._next_id += 1
        self.tables.setdefault(table, []).append(row)
        return [row]

    async def update(self, table, values, eq) -> list[dict]:
        self._check("update", table, values=dict(values), eq=eq)
        updated = []
        for row in self.tables.get(table, []):
            if self._matches(row, eq, None):
                row.update(values)
                updated.append(row)
        return updated

    async def delete(self, table, eq) -> None:
        self._check("delete", table, eq=eq)
        self.tables[table] = [r for r in self.tables.get(table, []) if not self._matches(r, eq, None)]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def client(backend: FakeBackend) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with the backend dependency replaced by the fake."""

    async def override_get_backend():
        yield backend

    app.dependency_overrides[get_backend] = override_get_backend

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
