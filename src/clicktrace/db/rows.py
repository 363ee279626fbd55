"""Statement execution and single-column row scanning."""

import asyncio
import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from clicktrace.db.types import BuiltQuery
from clicktrace.errors import QueryError, ScanError

logger = logging.getLogger(__name__)


async def execute_query(
    engine: AsyncEngine,
    query: BuiltQuery,
    timeout: float | None = None,
) -> list[Any]:
    """Execute a statement and return all rows.

    The result is fully fetched inside the connection scope, so the cursor
    and connection are released before this returns, on success or error.

    Raises:
        QueryError: Connecting or executing failed, or the statement timed out.
    """
    logger.debug("db.statement=%s db.args=%s", query.sql, list(query.args))
    try:
        async with engine.connect() as conn:
            execution = conn.execute(text(query.sql), query.params)
            if timeout is not None:
                result = await asyncio.wait_for(execution, timeout=timeout)
            else:
                result = await execution
            return list(result.fetchall())
    except asyncio.TimeoutError as e:
        raise QueryError(f"statement timed out after {timeout}s", query.sql, e) from e
    except (SQLAlchemyError, OSError) as e:
        raise QueryError(f"statement failed: {e}", query.sql, e) from e


def scan_column(
    rows: list[Any],
    column: str,
    expected: type | tuple[type, ...],
) -> list[Any]:
    """Take the first column of every row, checking its type.

    Raises:
        ScanError: A row has no columns or the value is not of ``expected``.
    """
    values: list[Any] = []
    for row in rows:
        if len(row) < 1:
            raise ScanError(f"row has no {column} column", column)
        value = row[0]
        if not isinstance(value, expected):
            raise ScanError(
                f"column {column} has unexpected type {type(value).__name__}",
                column,
                value,
            )
        values.append(value)
    return values


async def fetch_column(
    engine: AsyncEngine,
    query: BuiltQuery,
    column: str,
    expected: type | tuple[type, ...] = str,
    timeout: float | None = None,
) -> list[Any]:
    """Execute ``query`` and scan its single column into a list."""
    rows = await execute_query(engine, query, timeout=timeout)
    return scan_column(rows, column, expected)
