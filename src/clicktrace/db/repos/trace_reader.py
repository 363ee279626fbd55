"""ClickHouse trace reader over the index, span and operations tables."""

import logging
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncEngine

from clicktrace.codec.payload import decode_span
from clicktrace.contracts.ids import TraceID
from clicktrace.contracts.models import Operation, OperationQueryParameters, Trace, TraceQueryParameters
from clicktrace.core.assembly import assemble_traces
from clicktrace.db.engine import get_async_engine
from clicktrace.db.queries import (
    build_find_trace_ids_query,
    build_get_traces_query,
    build_operations_query,
    build_services_query,
)
from clicktrace.db.repos.base import SpanReader
from clicktrace.db.rows import fetch_column
from clicktrace.errors import ConfigurationError, ScanError, TraceNotFound
from clicktrace.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class TraceReader(SpanReader):
    """Reader for traces stored in ClickHouse.

    Holds only the engine and table names, all fixed at construction. An
    empty operations or index table name is reported as ConfigurationError by
    the operations that need it, not here.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        operations_table: str,
        index_table: str,
        spans_table: str,
        query_timeout_seconds: float | None = None,
    ) -> None:
        self._engine = engine
        self._operations_table = operations_table
        self._index_table = index_table
        self._spans_table = spans_table
        self._timeout = query_timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings | None = None, engine: AsyncEngine | None = None) -> "TraceReader":
        """Build a reader over the primary tables named in settings."""
        settings = settings or get_settings()
        return cls(
            engine or get_async_engine(),
            operations_table=settings.operations_table,
            index_table=settings.index_table,
            spans_table=settings.spans_table,
            query_timeout_seconds=settings.query_timeout_seconds,
        )

    @classmethod
    def for_archive(
        cls,
        engine: AsyncEngine,
        archive_spans_table: str,
        query_timeout_seconds: float | None = None,
    ) -> "TraceReader":
        """Build a reader over the archive span table.

        The archive has no index or operations table, so only ``get_trace``
        is usable; searches and enumeration raise ConfigurationError.
        """
        return cls(
            engine,
            operations_table="",
            index_table="",
            spans_table=archive_spans_table,
            query_timeout_seconds=query_timeout_seconds,
        )

    async def _get_traces(self, trace_ids: Sequence[TraceID]) -> list[Trace]:
        """Fetch full traces for ``trace_ids`` with one IN-list statement."""
        if not trace_ids:
            return []

        query = build_get_traces_query(self._spans_table, trace_ids)
        payloads = await fetch_column(
            self._engine, query, column="model", expected=(str, bytes), timeout=self._timeout
        )
        spans = [decode_span(payload) for payload in payloads]
        traces = assemble_traces(trace_ids, spans)
        logger.debug(f"Fetched {len(spans)} spans into {len(traces)} of {len(trace_ids)} requested traces")
        return traces

    async def get_trace(self, trace_id: TraceID) -> Trace:
        traces = await self._get_traces([trace_id])
        if not traces:
            raise TraceNotFound(trace_id)
        return traces[0]

    async def get_services(self) -> list[str]:
        if not self._operations_table:
            raise ConfigurationError("operations")

        query = build_services_query(self._operations_table)
        return await fetch_column(self._engine, query, column="service", timeout=self._timeout)

    async def get_operations(self, params: OperationQueryParameters) -> list[Operation]:
        if not self._operations_table:
            raise ConfigurationError("operations")

        query = build_operations_query(self._operations_table, params.service_name)
        names = await fetch_column(self._engine, query, column="operation", timeout=self._timeout)
        return [Operation(service=params.service_name, name=name) for name in names]

    async def find_traces(self, params: TraceQueryParameters) -> list[Trace]:
        trace_ids = await self.find_trace_ids(params)
        return await self._get_traces(trace_ids)

    async def find_trace_ids(self, params: TraceQueryParameters) -> list[TraceID]:
        if not self._index_table:
            raise ConfigurationError("index")

        query = build_find_trace_ids_query(self._index_table, params)
        values = await fetch_column(self._engine, query, column="traceID", timeout=self._timeout)

        trace_ids: list[TraceID] = []
        for value in values:
            try:
                trace_ids.append(TraceID.from_string(value))
            except ValueError as e:
                raise ScanError(f"column traceID is not a valid trace id: {value!r}", "traceID", value) from e
        logger.debug(f"Found {len(trace_ids)} trace ids for service {params.service_name}")
        return trace_ids
