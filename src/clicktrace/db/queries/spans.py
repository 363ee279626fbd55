"""Span table batch fetch and operations table enumeration statements."""

from collections.abc import Sequence

from clicktrace.contracts.ids import TraceID
from clicktrace.db.types import BuiltQuery

TRACE_ID_BIND_PREFIX = "trace_id_"


def build_get_traces_query(spans_table: str, trace_ids: Sequence[TraceID]) -> BuiltQuery:
    """Select every stored payload for ``trace_ids`` in a single statement.

    The statement has exactly one placeholder per trace id.
    """
    if not trace_ids:
        raise ValueError("at least one trace id is required")
    placeholders = ", ".join(
        BuiltQuery.placeholder(TRACE_ID_BIND_PREFIX, i) for i in range(len(trace_ids))
    )
    return BuiltQuery(
        sql=f"SELECT model FROM {spans_table} WHERE traceID IN ({placeholders})",
        args=tuple(str(trace_id) for trace_id in trace_ids),
        bind_prefix=TRACE_ID_BIND_PREFIX,
    )


def build_services_query(operations_table: str) -> BuiltQuery:
    return BuiltQuery(sql=f"SELECT service FROM {operations_table} GROUP BY service")


def build_operations_query(operations_table: str, service: str) -> BuiltQuery:
    return BuiltQuery(
        sql=f"SELECT operation FROM {operations_table} WHERE service = :arg0 GROUP BY operation",
        args=(service,),
    )
