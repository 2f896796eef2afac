"""SQL text builders for the engine actions issued by the accessor.

Table and column names coming from the row mapper are quoted through the
dialect's identifier preparer. Projection columns, predicates, grouping and
ordering fragments are caller supplied SQL and are passed through verbatim;
their values are bound through positional placeholders in the driver's
paramstyle (``?`` for SQLite).
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Sequence

Quote = Callable[[str], str]

_LIMIT_PATTERN = re.compile(r"\s*\d+\s*(,\s*\d+\s*)?")


def _placeholders(count: int, marker: str) -> str:
    return ", ".join([marker] * count)


def count_sql(table: str, column: str, *, quote: Quote) -> str:
    return f"SELECT COUNT({quote(column)}) FROM {quote(table)}"


def insert_sql(
    table: str,
    columns: Sequence[str],
    *,
    quote: Quote,
    marker: str = "?",
    verb: str = "INSERT",
) -> str:
    """Build an ``INSERT`` for ``columns``; no columns inserts a row of defaults."""

    if not columns:
        return f"{verb} INTO {quote(table)} DEFAULT VALUES"
    names = ", ".join(quote(column) for column in columns)
    return (
        f"{verb} INTO {quote(table)} ({names}) "
        f"VALUES ({_placeholders(len(columns), marker)})"
    )


def replace_sql(
    table: str, columns: Sequence[str], *, quote: Quote, marker: str = "?"
) -> str:
    # SQLite conflict resolution: the conflicting row is deleted before the insert.
    return insert_sql(table, columns, quote=quote, marker=marker, verb="INSERT OR REPLACE")


def update_sql(
    table: str,
    columns: Sequence[str],
    where_clause: str | None,
    *,
    quote: Quote,
    marker: str = "?",
) -> str:
    if not columns:
        raise ValueError(f"empty column set for UPDATE on {table!r}")
    assignments = ", ".join(f"{quote(column)} = {marker}" for column in columns)
    sql = f"UPDATE {quote(table)} SET {assignments}"
    if where_clause:
        sql += f" WHERE {where_clause}"
    return sql


def delete_sql(table: str, where_clause: str | None, *, quote: Quote) -> str:
    sql = f"DELETE FROM {quote(table)}"
    if where_clause:
        sql += f" WHERE {where_clause}"
    return sql


def select_sql(
    table: str,
    *,
    quote: Quote,
    columns: Iterable[str] | None = None,
    selection: str | None = None,
    group_by: str | None = None,
    having: str | None = None,
    order_by: str | None = None,
    limit: str | int | None = None,
) -> str:
    """Build a ``SELECT`` the way a query builder composes its clauses.

    ``having`` is only accepted together with ``group_by`` and ``limit`` must be
    either ``"N"`` or ``"OFFSET, N"``.
    """

    if having and not group_by:
        raise ValueError("HAVING clauses are only permitted when using a GROUP BY clause")
    limit_text = str(limit) if limit is not None else None
    if limit_text and not _LIMIT_PATTERN.fullmatch(limit_text):
        raise ValueError(f"invalid LIMIT clause: {limit_text!r}")

    projection = ", ".join(columns) if columns else "*"
    parts = [f"SELECT {projection} FROM {quote(table)}"]
    if selection:
        parts.append(f"WHERE {selection}")
    if group_by:
        parts.append(f"GROUP BY {group_by}")
    if having:
        parts.append(f"HAVING {having}")
    if order_by:
        parts.append(f"ORDER BY {order_by}")
    if limit_text:
        parts.append(f"LIMIT {limit_text.strip()}")
    return " ".join(parts)
