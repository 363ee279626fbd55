"""Statement builders for the index, span and operations tables."""

from clicktrace.db.queries.find_trace_ids import PREDICATE_BUILDERS, build_find_trace_ids_query, encode_tag
from clicktrace.db.queries.spans import build_get_traces_query, build_operations_query, build_services_query

__all__ = [
    "PREDICATE_BUILDERS",
    "build_find_trace_ids_query",
    "build_get_traces_query",
    "build_operations_query",
    "build_services_query",
    "encode_tag",
]
