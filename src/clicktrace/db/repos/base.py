"""Storage reader contract for trace queries."""

from abc import ABC, abstractmethod

from clicktrace.contracts.ids import TraceID
from clicktrace.contracts.models import Operation, OperationQueryParameters, Trace, TraceQueryParameters


class SpanReader(ABC):
    """Read side of a tracing storage backend.

    Invariants:
    - Operations either return complete results or raise; never both
    - A returned Trace always holds at least one span
    - Results are built per call; readers hold no mutable state between calls
    """

    @abstractmethod
    async def get_trace(self, trace_id: TraceID) -> Trace:
        """Get the trace with the given id.

        Raises:
            TraceNotFound: No span is stored for the trace id.
        """
        raise NotImplementedError

    @abstractmethod
    async def find_trace_ids(self, params: TraceQueryParameters) -> list[TraceID]:
        """Get ids of traces matching the query, most recent first."""
        raise NotImplementedError

    @abstractmethod
    async def find_traces(self, params: TraceQueryParameters) -> list[Trace]:
        """Get the traces matching the query, in ``find_trace_ids`` order."""
        raise NotImplementedError

    @abstractmethod
    async def get_services(self) -> list[str]:
        """Get the names of all services with recorded operations."""
        raise NotImplementedError

    @abstractmethod
    async def get_operations(self, params: OperationQueryParameters) -> list[Operation]:
        """Get the operations of a service; empty when it has none."""
        raise NotImplementedError
