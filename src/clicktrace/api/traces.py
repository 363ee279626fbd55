"""Read-only trace query API routes."""

import json
import logging
from datetime import datetime, timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from clicktrace.contracts.ids import TraceID
from clicktrace.contracts.models import Operation, OperationQueryParameters, Trace, TraceQueryParameters
from clicktrace.db.repos import SpanReader, TraceReader
from clicktrace.errors import ConfigurationError, TraceNotFound, TraceReaderError
from clicktrace.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["traces"])

_reader: SpanReader | None = None


def get_reader() -> SpanReader:
    """Get the span reader (singleton built from settings)."""
    global _reader
    if _reader is None:
        _reader = TraceReader.from_settings()
    return _reader


def set_reader(reader: SpanReader | None) -> None:
    """Set the span reader (for testing)."""
    global _reader
    _reader = reader


class ServicesResponse(BaseModel):
    """Service names with recorded operations."""

    data: list[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class OperationsResponse(BaseModel):
    """Operations recorded for a service."""

    data: list[Operation] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class TracesResponse(BaseModel):
    """Traces rendered in the JSON span payload shape."""

    data: list[dict[str, Any]] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


def _to_http_error(error: TraceReaderError) -> HTTPException:
    if isinstance(error, TraceNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ConfigurationError):
        return HTTPException(status_code=status.HTTP_501_NOT_IMPLEMENTED, detail=str(error))
    logger.error(f"Trace query failed: {error}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


def _render(traces: list[Trace]) -> TracesResponse:
    return TracesResponse(data=[trace.model_dump(mode="json") for trace in traces])


def _parse_tags(raw: str | None) -> dict[str, str]:
    if not raw:
        return {}
    try:
        tags = json.loads(raw)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"tags is not valid JSON: {e}") from e
    if not isinstance(tags, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="tags must be a JSON object")
    if any(isinstance(v, (dict, list)) for v in tags.values()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="tag values must be JSON scalars")
    # Non-string scalars are matched in their JSON spelling (true, 1.5, null).
    return {str(k): v if isinstance(v, str) else json.dumps(v) for k, v in tags.items()}


@router.get("/services", response_model=ServicesResponse)
async def list_services(reader: SpanReader = Depends(get_reader)) -> ServicesResponse:
    """List services."""
    try:
        services = await reader.get_services()
    except TraceReaderError as e:
        raise _to_http_error(e) from e
    return ServicesResponse(data=services)


@router.get("/services/{service}/operations", response_model=OperationsResponse)
async def list_operations(service: str, reader: SpanReader = Depends(get_reader)) -> OperationsResponse:
    """List operations of a service."""
    try:
        operations = await reader.get_operations(OperationQueryParameters(service_name=service))
    except TraceReaderError as e:
        raise _to_http_error(e) from e
    return OperationsResponse(data=operations)


@router.get("/traces/{trace_id}", response_model=TracesResponse)
async def get_trace(trace_id: str, reader: SpanReader = Depends(get_reader)) -> TracesResponse:
    """Get one trace by its hex id."""
    try:
        parsed = TraceID.from_string(trace_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    try:
        trace = await reader.get_trace(parsed)
    except TraceReaderError as e:
        raise _to_http_error(e) from e
    return _render([trace])


@router.get("/traces", response_model=TracesResponse)
async def find_traces(
    service: str = Query(min_length=1),
    operation: str = "",
    start: datetime | None = None,
    end: datetime | None = None,
    min_duration: int | None = Query(default=None, alias="minDuration", ge=0),
    max_duration: int | None = Query(default=None, alias="maxDuration", ge=0),
    tags: str | None = None,
    limit: int | None = Query(default=None, ge=0),
    reader: SpanReader = Depends(get_reader),
) -> TracesResponse:
    """Search traces. Durations are in microseconds, tags a JSON object.

    A missing or zero limit uses the configured default.
    """
    params = TraceQueryParameters(
        service_name=service,
        operation_name=operation,
        tags=_parse_tags(tags),
        start_time_min=start,
        start_time_max=end,
        duration_min=timedelta(microseconds=min_duration) if min_duration else None,
        duration_max=timedelta(microseconds=max_duration) if max_duration else None,
        num_traces=limit or get_settings().default_num_traces,
    )
    try:
        traces = await reader.find_traces(params)
    except TraceReaderError as e:
        raise _to_http_error(e) from e
    return _render(traces)
