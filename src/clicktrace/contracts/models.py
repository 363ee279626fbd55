"""Pydantic v2 models for spans, traces and query parameters."""

import base64
import re
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field, PlainSerializer, model_validator

from clicktrace.contracts.enums import SpanRefType, ValueType
from clicktrace.contracts.ids import SpanIDField, TraceIDField

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def _trim_fraction(value: Any) -> Any:
    """RFC 3339 strings may carry nanoseconds; keep microseconds."""
    if isinstance(value, str):
        return _FRACTION_RE.sub(r"\1", value, count=1)
    return value


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_nanoseconds(value: Any) -> Any:
    """Durations are stored as integer nanoseconds."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return timedelta(microseconds=value // 1000)
    return value


def _parse_base64(value: Any) -> Any:
    if isinstance(value, str):
        return base64.b64decode(value, validate=True)
    return value


def _base64_text(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _duration_nanoseconds(value: timedelta) -> int:
    return (value // timedelta(microseconds=1)) * 1000


Timestamp = Annotated[datetime, BeforeValidator(_trim_fraction), AfterValidator(_ensure_utc)]
Base64Bytes = Annotated[
    bytes,
    BeforeValidator(_parse_base64),
    PlainSerializer(_base64_text, return_type=str, when_used="json"),
]
Nanoseconds = Annotated[
    timedelta,
    BeforeValidator(_parse_nanoseconds),
    PlainSerializer(_duration_nanoseconds, return_type=int, when_used="json"),
]


class PayloadModel(BaseModel):
    """Base for the span payload models."""

    model_config = {
        "extra": "ignore",
        "frozen": True,
        "arbitrary_types_allowed": True,
    }

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """Legacy writers emit null for empty lists; fall back to defaults."""
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class KeyValue(PayloadModel):
    """A typed tag or log field."""

    key: str
    v_type: ValueType = ValueType.STRING
    v_str: str = ""
    v_bool: bool = False
    v_int64: int = 0
    v_float64: float = 0.0
    v_binary: Base64Bytes = b""

    @property
    def value(self) -> str | bool | int | float | bytes:
        """The value selected by ``v_type``."""
        if self.v_type == ValueType.BOOL:
            return self.v_bool
        if self.v_type == ValueType.INT64:
            return self.v_int64
        if self.v_type == ValueType.FLOAT64:
            return self.v_float64
        if self.v_type == ValueType.BINARY:
            return self.v_binary
        return self.v_str


class Log(PayloadModel):
    """A timestamped set of fields attached to a span."""

    timestamp: Timestamp
    fields: list[KeyValue] = Field(default_factory=list)


class SpanRef(PayloadModel):
    """Reference from one span to another."""

    trace_id: TraceIDField
    span_id: SpanIDField
    ref_type: SpanRefType = SpanRefType.CHILD_OF


class Process(PayloadModel):
    """The emitting process of a span."""

    service_name: str = ""
    tags: list[KeyValue] = Field(default_factory=list)


class Span(PayloadModel):
    """A single decoded span.

    Identity is the (trace_id, span_id) pair; the read path only groups by
    trace_id.
    """

    trace_id: TraceIDField
    span_id: SpanIDField
    operation_name: str = ""
    references: list[SpanRef] = Field(default_factory=list)
    flags: int = 0
    start_time: Timestamp
    duration: Nanoseconds = timedelta(0)
    tags: list[KeyValue] = Field(default_factory=list)
    logs: list[Log] = Field(default_factory=list)
    process: Process | None = None
    process_id: str = ""
    warnings: list[str] = Field(default_factory=list)

    @property
    def service_name(self) -> str:
        return self.process.service_name if self.process else ""


class Trace(BaseModel):
    """Spans sharing one trace id, in scan order. Never empty."""

    trace_id: TraceIDField
    spans: list[Span] = Field(min_length=1)

    model_config = {"extra": "forbid", "arbitrary_types_allowed": True}


class Operation(BaseModel):
    """A (service, operation name) pair from the operations table."""

    service: str
    name: str

    model_config = {"extra": "forbid", "frozen": True}


class OperationQueryParameters(BaseModel):
    """Parameters for listing operations of a service."""

    service_name: str

    model_config = {"extra": "forbid"}


class TraceQueryParameters(BaseModel):
    """Structured search filter for the index table.

    Unset (None) or zero bounds are unbounded. ``service_name`` is expected to
    be non-empty; that is checked by callers, not here.
    """

    service_name: str
    operation_name: str = ""
    tags: dict[str, str] = Field(default_factory=dict)
    start_time_min: datetime | None = None
    start_time_max: datetime | None = None
    duration_min: timedelta | None = None
    duration_max: timedelta | None = None
    num_traces: int = Field(default=20, ge=0)

    model_config = {"extra": "forbid"}
