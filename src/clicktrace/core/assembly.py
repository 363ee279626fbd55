"""Grouping of decoded spans into traces."""

from collections.abc import Iterable, Sequence

from clicktrace.contracts.ids import TraceID
from clicktrace.contracts.models import Span, Trace


def assemble_traces(requested: Sequence[TraceID], spans: Iterable[Span]) -> list[Trace]:
    """Group spans by trace id and order the traces like ``requested``.

    Spans keep their scan order inside each trace. Requested ids with no
    spans are omitted, as are spans whose trace id was not requested.
    """
    grouped: dict[TraceID, list[Span]] = {}
    for span in spans:
        grouped.setdefault(span.trace_id, []).append(span)

    traces: list[Trace] = []
    seen: set[TraceID] = set()
    for trace_id in requested:
        if trace_id in seen or trace_id not in grouped:
            continue
        seen.add(trace_id)
        traces.append(Trace(trace_id=trace_id, spans=grouped[trace_id]))
    return traces
