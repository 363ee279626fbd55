"""Tests for statement execution and row scanning."""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from clicktrace.db.rows import execute_query, fetch_column, scan_column
from clicktrace.db.types import BuiltQuery
from clicktrace.errors import QueryError, ScanError
from helpers import FakeEngine

QUERY = BuiltQuery(sql="SELECT service FROM ops WHERE service = :arg0", args=("api",))


class TestExecuteQuery:
    """Execution, error wrapping and resource release."""

    @pytest.mark.asyncio
    async def test_returns_all_rows_and_releases_connection(self) -> None:
        engine = FakeEngine([("a",), ("b",)])
        rows = await execute_query(engine, QUERY)
        assert rows == [("a",), ("b",)]
        assert engine.statements == [(QUERY.sql, {"arg0": "api"})]
        assert engine.open_connections == 0

    @pytest.mark.asyncio
    async def test_driver_error_becomes_query_error(self) -> None:
        cause = OperationalError("SELECT", {}, Exception("connection reset"))
        engine = FakeEngine(cause)
        with pytest.raises(QueryError) as exc_info:
            await execute_query(engine, QUERY)
        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.statement == QUERY.sql
        assert engine.open_connections == 0

    @pytest.mark.asyncio
    async def test_transport_error_becomes_query_error(self) -> None:
        engine = FakeEngine(ConnectionRefusedError("refused"))
        with pytest.raises(QueryError):
            await execute_query(engine, QUERY)

    @pytest.mark.asyncio
    async def test_timeout_becomes_query_error(self) -> None:
        async def slow():
            await asyncio.sleep(1)
            return [("late",)]

        engine = FakeEngine(slow)
        with pytest.raises(QueryError) as exc_info:
            await execute_query(engine, QUERY, timeout=0.01)
        assert isinstance(exc_info.value.cause, asyncio.TimeoutError)
        assert engine.open_connections == 0


class TestScanColumn:
    """Column type checks."""

    def test_strings(self) -> None:
        assert scan_column([("a",), ("b",)], "service", str) == ["a", "b"]

    def test_wrong_type(self) -> None:
        with pytest.raises(ScanError) as exc_info:
            scan_column([("a",), (42,)], "service", str)
        assert exc_info.value.column == "service"
        assert exc_info.value.value == 42

    def test_empty_row(self) -> None:
        with pytest.raises(ScanError):
            scan_column([()], "service", str)

    def test_multiple_types(self) -> None:
        assert scan_column([("x",), (b"y",)], "model", (str, bytes)) == ["x", b"y"]


@pytest.mark.asyncio
async def test_fetch_column_no_partial_results() -> None:
    engine = FakeEngine([("ok",), (None,)])
    with pytest.raises(ScanError):
        await fetch_column(engine, QUERY, column="service")
