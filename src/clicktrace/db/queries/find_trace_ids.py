"""Index table search statement for trace id lookup."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from clicktrace.contracts.models import TraceQueryParameters
from clicktrace.db.types import BuiltQuery

BIND_PREFIX = "arg"

# Bound as text and converted server side with toDateTime64(..., 6, 'UTC').
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

# Sorting by service first is required for early termination of the primary
# key scan on an index table ordered by (service, timestamp).
ORDER_BY = "ORDER BY service DESC, timestamp DESC"


@dataclass
class PredicateAccumulator:
    """WHERE clauses and their positional arguments, built in order."""

    clauses: list[str] = field(default_factory=list)
    args: list[Any] = field(default_factory=list)

    def add(self, template: str, value: Any) -> None:
        """Append a clause; ``{}`` in the template becomes the next placeholder."""
        self.clauses.append(template.format(BuiltQuery.placeholder(BIND_PREFIX, len(self.args))))
        self.args.append(value)


PredicateBuilder = Callable[[TraceQueryParameters, PredicateAccumulator], None]


def format_timestamp(value: datetime) -> str:
    """Render a datetime in UTC for toDateTime64. Naive values are UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def duration_micros(value: timedelta) -> int:
    return value // timedelta(microseconds=1)


def encode_tag(key: str, value: str) -> str:
    """Tags are stored as a flat array of ``key=value`` strings.

    A value containing ``=`` can collide with a different key/value pair,
    e.g. ("a", "b=c") and ("a=b", "c") both encode to "a=b=c".
    """
    return f"{key}={value}"


def service_predicate(params: TraceQueryParameters, acc: PredicateAccumulator) -> None:
    acc.add("service = {}", params.service_name)


def operation_predicate(params: TraceQueryParameters, acc: PredicateAccumulator) -> None:
    if params.operation_name:
        acc.add("operation = {}", params.operation_name)


def start_time_min_predicate(params: TraceQueryParameters, acc: PredicateAccumulator) -> None:
    if params.start_time_min is not None:
        acc.add("timestamp >= toDateTime64({}, 6, 'UTC')", format_timestamp(params.start_time_min))


def start_time_max_predicate(params: TraceQueryParameters, acc: PredicateAccumulator) -> None:
    if params.start_time_max is not None:
        acc.add("timestamp <= toDateTime64({}, 6, 'UTC')", format_timestamp(params.start_time_max))


def duration_min_predicate(params: TraceQueryParameters, acc: PredicateAccumulator) -> None:
    if params.duration_min:
        acc.add("durationUs >= {}", duration_micros(params.duration_min))


def duration_max_predicate(params: TraceQueryParameters, acc: PredicateAccumulator) -> None:
    if params.duration_max:
        acc.add("durationUs <= {}", duration_micros(params.duration_max))


def tag_predicates(params: TraceQueryParameters, acc: PredicateAccumulator) -> None:
    for key, value in params.tags.items():
        acc.add("has(tags, {})", encode_tag(key, value))


PREDICATE_BUILDERS: tuple[PredicateBuilder, ...] = (
    service_predicate,
    operation_predicate,
    start_time_min_predicate,
    start_time_max_predicate,
    duration_min_predicate,
    duration_max_predicate,
    tag_predicates,
)


def build_find_trace_ids_query(index_table: str, params: TraceQueryParameters) -> BuiltQuery:
    """Build the trace id search over the index table.

    Clauses appear in the order of ``PREDICATE_BUILDERS``; the statement always
    ends with the fixed ordering and a bound row limit.
    """
    acc = PredicateAccumulator()
    for builder in PREDICATE_BUILDERS:
        builder(params, acc)

    limit = BuiltQuery.placeholder(BIND_PREFIX, len(acc.args))
    sql = (
        f"SELECT DISTINCT traceID FROM {index_table} "
        f"WHERE {' AND '.join(acc.clauses)} "
        f"{ORDER_BY} LIMIT {limit}"
    )
    return BuiltQuery(sql=sql, args=(*acc.args, params.num_traces), bind_prefix=BIND_PREFIX)
