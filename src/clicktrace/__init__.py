"""Read path of a ClickHouse-backed trace storage backend."""

from clicktrace.contracts import Operation, Span, Trace, TraceID, TraceQueryParameters
from clicktrace.db.repos import SpanReader, TraceReader

__all__ = ["Operation", "Span", "SpanReader", "Trace", "TraceID", "TraceQueryParameters", "TraceReader"]
