"""Shared helpers for record store service modules.

This module centralizes the most repeated patterns:
- escaping literals embedded in DbExplorerSP SQL
- running a read query
- projecting positional rows onto their column names

It is internal to trackhub and may change at any time.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from trackhub._constants import QUERY_SERVICE
from trackhub.exceptions import DecodeError
from trackhub.models.service import QueryResult

if TYPE_CHECKING:
    from trackhub.gateway import SankhyaGateway


def sql_literal(value: str) -> str:
    """Quote *value* as a SQL string literal (trimmed, quotes doubled)."""
    return "'" + value.strip().replace("'", "''") + "'"


def in_clause(values: Iterable[str]) -> str:
    """Comma-separated literals for an ``IN (...)`` list, sorted for stable SQL."""
    return ",".join(sql_literal(v) for v in sorted(values))


def parse_query_result(body: Any) -> QueryResult:
    """Read ``fieldsMetadata`` and ``rows`` out of a query response body."""
    if not isinstance(body, dict):
        raise DecodeError("Query response body is not an object", service=QUERY_SERVICE)

    metadata = body.get("fieldsMetadata") or []
    rows = body.get("rows") or []
    if not isinstance(metadata, list) or not isinstance(rows, list):
        raise DecodeError("Query response has malformed fieldsMetadata/rows", service=QUERY_SERVICE)

    columns: list[str] = []
    for item in metadata:
        name = item.get("name") if isinstance(item, dict) else None
        if not isinstance(name, str):
            raise DecodeError(f"Query column without a name: {item!r}", service=QUERY_SERVICE)
        columns.append(name)

    parsed_rows: list[tuple[Any, ...]] = []
    for row in rows:
        if not isinstance(row, list):
            raise DecodeError(f"Query row is not an array: {row!r}", service=QUERY_SERVICE)
        parsed_rows.append(tuple(row))

    return QueryResult(columns=tuple(columns), rows=tuple(parsed_rows))


def project_rows(columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> list[dict[str, Any]]:
    """Turn positional *rows* into dicts keyed by *columns*.

    Raises :class:`DecodeError` when a row's length differs from the
    column count.
    """
    projected: list[dict[str, Any]] = []
    for index, row in enumerate(rows):
        if len(row) != len(columns):
            raise DecodeError(
                f"Row {index} has {len(row)} values for {len(columns)} columns",
                service=QUERY_SERVICE,
            )
        projected.append(dict(zip(columns, row, strict=True)))
    return projected


async def execute_query(gateway: SankhyaGateway, sql: str) -> list[dict[str, Any]]:
    """Run *sql* through DbExplorerSP and return one dict per row."""
    body = await gateway.request(QUERY_SERVICE, {"sql": sql, "params": {}})
    result = parse_query_result(body)
    return project_rows(result.columns, result.rows)


def as_key(value: Any) -> str | None:
    """Normalize an identifier or key column value to a string."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
