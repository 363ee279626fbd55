"""Domain contracts: identifiers, spans, traces and query parameters."""

from clicktrace.contracts.enums import SpanRefType, ValueType
from clicktrace.contracts.ids import TraceID, span_id_from_string, span_id_to_string
from clicktrace.contracts.models import (
    KeyValue,
    Log,
    Operation,
    OperationQueryParameters,
    Process,
    Span,
    SpanRef,
    Trace,
    TraceQueryParameters,
)

__all__ = [
    "KeyValue",
    "Log",
    "Operation",
    "OperationQueryParameters",
    "Process",
    "Span",
    "SpanRef",
    "SpanRefType",
    "Trace",
    "TraceID",
    "TraceQueryParameters",
    "ValueType",
    "span_id_from_string",
    "span_id_to_string",
]
