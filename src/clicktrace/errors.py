"""Error taxonomy for the trace read path.

Every error raised by the reader derives from ``TraceReaderError``. Nothing is
retried internally and no partial results accompany an error.
"""

from typing import Any

from clicktrace.contracts.ids import TraceID


class TraceReaderError(Exception):
    """Base class for all read path errors."""


class ConfigurationError(TraceReaderError):
    """Raised when a table required by the operation was not configured."""

    def __init__(self, table_role: str) -> None:
        super().__init__(f"no {table_role} table supplied")
        self.table_role = table_role


class QueryError(TraceReaderError):
    """Raised when executing a statement fails (including statement timeouts)."""

    def __init__(self, message: str, statement: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.statement = statement
        self.cause = cause


class ScanError(TraceReaderError):
    """Raised when a result column does not have the expected shape."""

    def __init__(self, message: str, column: str, value: Any = None) -> None:
        super().__init__(message)
        self.column = column
        self.value = value


class DecodeError(TraceReaderError):
    """Raised when a stored span payload matches neither supported encoding."""

    def __init__(self, message: str, prefix: bytes = b"") -> None:
        super().__init__(message)
        self.prefix = prefix


class TraceNotFound(TraceReaderError):
    """Raised by single-trace lookup when no span exists for the trace id."""

    def __init__(self, trace_id: TraceID) -> None:
        super().__init__(f"trace not found: {trace_id}")
        self.trace_id = trace_id
