"""Shared test doubles and span factories."""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any

from clicktrace.contracts import KeyValue, Process, Span, TraceID


class FakeResult:
    """Buffered result exposing fetchall()."""

    def __init__(self, rows: list[tuple[Any, ...]]) -> None:
        self._rows = rows

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self._rows)


class FakeConnection:
    """Connection that answers statements from the engine's queued responses."""

    def __init__(self, engine: "FakeEngine") -> None:
        self.engine = engine

    async def execute(self, statement: Any, params: dict[str, Any] | None = None) -> FakeResult:
        self.engine.statements.append((str(statement), dict(params or {})))
        if not self.engine.responses:
            raise AssertionError(f"unexpected statement: {statement}")
        response = self.engine.responses.pop(0)
        if callable(response):
            response = await response()
        if isinstance(response, BaseException):
            raise response
        return FakeResult(response)


class FakeEngine:
    """Stand-in for AsyncEngine: records statements, replays canned rows.

    Each queued response is a list of row tuples, an exception to raise, or an
    async callable producing either. Running out of responses fails the
    statement, so tests can assert that no further statement was issued.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses: list[Any] = list(responses)
        self.statements: list[tuple[str, dict[str, Any]]] = []
        self.open_connections = 0

    @asynccontextmanager
    async def connect(self):
        self.open_connections += 1
        try:
            yield FakeConnection(self)
        finally:
            self.open_connections -= 1


T1 = TraceID(0, 1)
T2 = TraceID(0, 2)
T3 = TraceID(0xABCDEF, 0x1234)


def make_span(
    trace_id: TraceID,
    span_id: int,
    service: str = "api",
    operation: str = "GET /users",
    start: datetime | None = None,
    duration: timedelta = timedelta(milliseconds=5),
    tags: list[KeyValue] | None = None,
) -> Span:
    """Build a span with sensible defaults."""
    return Span(
        trace_id=trace_id,
        span_id=span_id,
        operation_name=operation,
        start_time=start or datetime(2024, 3, 1, 12, 0, 0, 123456, tzinfo=timezone.utc),
        duration=duration,
        tags=tags or [],
        process=Process(service_name=service),
    )
