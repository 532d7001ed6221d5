from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from psycopg2 import sql

"""Single-row INSERT ... RETURNING id helper.

Rows are inserted one at a time: each import row commits on its own, so a failure
never takes earlier rows with it. Column names come from the record dataclasses
and are quoted with psycopg2.sql.Identifier.
"""

__all__ = [
    "InsertMetrics",
    "insert_returning_id",
]


@dataclass(frozen=True)
class InsertMetrics:
    """Timing of a single INSERT statement."""
    table: str
    elapsed_seconds: float


def insert_returning_id(
    cursor: Any,
    table: str,
    row: Mapping[str, Any],
    metrics_callback: Callable[[InsertMetrics], None] | None = None,
) -> Any:
    """INSERT ``row`` into ``table`` and return the generated id.

    Exceptions raised by the driver propagate unchanged; callers translate them.
    """
    if not row:
        raise ValueError(f"nothing to insert into {table}")
    columns = list(row)
    query = sql.SQL("INSERT INTO {table} ({cols}) VALUES ({vals}) RETURNING id").format(
        table=sql.Identifier(table),
        cols=sql.SQL(", ").join(sql.Identifier(c) for c in columns),
        vals=sql.SQL(", ").join(sql.Placeholder() for _ in columns),
    )
    start = time.perf_counter()
    try:
        cursor.execute(query, [row[c] for c in columns])
        returned = cursor.fetchone()
    finally:
        if metrics_callback is not None:
            metrics_callback(InsertMetrics(table=table, elapsed_seconds=time.perf_counter() - start))
    if returned is None:
        raise RuntimeError(f"INSERT INTO {table} returned no id")
    return returned[0]
