"""Async client for the PostgREST API of the backend (tables and RPC functions)."""

import logging
from typing import Any, Mapping, Sequence

import httpx

from src.core.exceptions import BackendError

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_filter_params(
    eq: Mapping[str, Any] | None = None,
    in_: Mapping[str, Sequence[Any]] | None = None,
) -> list[tuple[str, str]]:
    """
    Translate filters to PostgREST query params.

    eq={"batch_id": "B1"} -> batch_id=eq.B1
    in_={"id": [1, 2]}     -> id=in.(1,2)
    """
    params: list[tuple[str, str]] = []
    for column, value in (eq or {}).items():
        if value is None:
            params.append((column, "is.null"))
        else:
            params.append((column, f"eq.{_format_value(value)}"))
    for column, values in (in_ or {}).items():
        joined = ",".join(_format_value(v) for v in values)
        params.append((column, f"in.({joined})"))
    return params


def _error_reason(response: httpx.Response) -> str:
    """Backend errors come back as {"message": ..., "code": ...}; fall back to body text."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("code") or payload)
    return str(payload)


class BackendClient:
    """Thin request/response wrapper; every failure surfaces as BackendError."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(
        self,
        context: str,
        method: str,
        path: str,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._http.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error("%s: request failed: %s", context, e)
            raise BackendError(context, str(e) or e.__class__.__name__) from e
        if response.status_code >= 400:
            reason = _error_reason(response)
            logger.error("%s: backend returned %s: %s", context, response.status_code, reason)
            raise BackendError(context, reason, status_code=response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(context, "Backend returned invalid JSON") from e

    async def rpc(
        self,
        function: str,
        args: Mapping[str, Any] | None = None,
        eq: Mapping[str, Any] | None = None,
    ) -> list[dict]:
        """Call a set-returning function; eq filters apply to its result rows."""
        data = await self._request(
            f"Error calling {function}",
            "POST",
            f"/rpc/{function}",
            params=build_filter_params(eq=eq),
            json=dict(args or {}),
        )
        logger.debug("rpc %s returned %s rows", function, len(data or []), extra={"rpc": function})
        return _as_rows(data)

    async def select(
        self,
        table: str,
        columns: str = "*",
        eq: Mapping[str, Any] | None = None,
        in_: Mapping[str, Sequence[Any]] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """
        Read rows from a table.

        columns uses PostgREST select syntax, including embedded relations
        such as "id,batch_courses(id,batch_id)". order is "column.asc" / "column.desc".
        """
        params = [("select", columns)] + build_filter_params(eq=eq, in_=in_)
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))
        data = await self._request(f"Error fetching {table}", "GET", f"/{table}", params=params)
        return _as_rows(data)

    async def insert(self, table: str, values: Mapping[str, Any]) -> list[dict]:
        data = await self._request(
            f"Error creating {table}",
            "POST",
            f"/{table}",
            json=dict(values),
            headers={"Prefer": "return=representation"},
        )
        return _as_rows(data)

    async def update(
        self, table: str, values: Mapping[str, Any], eq: Mapping[str, Any]
    ) -> list[dict]:
        if not eq:
            raise ValueError("update requires at least one filter")
        data = await self._request(
            f"Error updating {table}",
            "PATCH",
            f"/{table}",
            params=build_filter_params(eq=eq),
            json=dict(values),
            headers={"Prefer": "return=representation"},
        )
        return _as_rows(data)

    async def delete(self, table: str, eq: Mapping[str, Any]) -> None:
        if not eq:
            raise ValueError("delete requires at least one filter")
        await self._request(
            f"Error deleting {table}", "DELETE", f"/{table}", params=build_filter_params(eq=eq)
        )


def _as_rows(data: Any) -> list[dict]:
    """Normalise a response body to a list of dict rows."""
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [row for row in data if isinstance(row, dict)]
    return []
