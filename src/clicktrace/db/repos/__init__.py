"""Reader classes for trace storage."""

from clicktrace.db.repos.base import SpanReader
from clicktrace.db.repos.trace_reader import TraceReader

__all__ = ["SpanReader", "TraceReader"]
