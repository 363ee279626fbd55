"""Trace and span identifiers."""

import base64
import binascii
import re
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer, PlainValidator

_HEX_RE = re.compile(r"[0-9a-fA-F]{1,32}")
_UINT64_MASK = (1 << 64) - 1


class TraceID:
    """128-bit trace identifier made of two unsigned 64-bit halves.

    The canonical string form is 32 lowercase hex digits. An id parsed from
    text keeps that text, so ids read from storage are bound back exactly as
    stored. Equality and hashing use the numeric value only. The binary form
    is 16 big-endian bytes, high half first.
    """

    __slots__ = ("high", "low", "_text")

    def __init__(self, high: int, low: int, text: str | None = None) -> None:
        if not 0 <= high <= _UINT64_MASK or not 0 <= low <= _UINT64_MASK:
            raise ValueError("trace id halves must be unsigned 64-bit integers")
        object.__setattr__(self, "high", high)
        object.__setattr__(self, "low", low)
        object.__setattr__(self, "_text", text)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("TraceID is immutable")

    @classmethod
    def from_string(cls, value: str) -> "TraceID":
        """Parse a hex trace id of up to 32 digits, keeping ``value`` as its text."""
        if not _HEX_RE.fullmatch(value):
            raise ValueError(f"invalid trace id: {value!r}")
        number = int(value, 16)
        return cls(number >> 64, number & _UINT64_MASK, text=value)

    @classmethod
    def from_bytes(cls, data: bytes) -> "TraceID":
        """Parse the 16-byte big-endian form (shorter input is left-padded)."""
        if len(data) > 16:
            raise ValueError(f"trace id must be at most 16 bytes, got {len(data)}")
        number = int.from_bytes(data, "big")
        return cls(number >> 64, number & _UINT64_MASK)

    def to_bytes(self) -> bytes:
        return self.high.to_bytes(8, "big") + self.low.to_bytes(8, "big")

    def __str__(self) -> str:
        if self._text is not None:
            return self._text
        return f"{self.high:016x}{self.low:016x}"

    def __repr__(self) -> str:
        return f"TraceID('{self}')"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TraceID):
            return NotImplemented
        return self.high == other.high and self.low == other.low

    def __hash__(self) -> int:
        return hash((self.high, self.low))


def span_id_from_string(value: str) -> int:
    """Parse a hex span id of up to 16 digits."""
    if not re.fullmatch(r"[0-9a-fA-F]{1,16}", value):
        raise ValueError(f"invalid span id: {value!r}")
    return int(value, 16)


def span_id_to_string(span_id: int) -> str:
    return f"{span_id:016x}"


def _b64decode(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 id: {value!r}") from e


def _parse_trace_id(value: Any) -> TraceID:
    """Accept TraceID instances, base64 of the binary form, or raw bytes."""
    if isinstance(value, TraceID):
        return value
    if isinstance(value, (bytes, bytearray)):
        return TraceID.from_bytes(bytes(value))
    if isinstance(value, str):
        return TraceID.from_bytes(_b64decode(value))
    raise ValueError(f"cannot interpret {type(value).__name__} as a trace id")


def _parse_span_id(value: Any) -> Any:
    """Accept ints, base64 of the 8-byte big-endian form, or raw bytes."""
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value)
    elif isinstance(value, str):
        value = _b64decode(value)
    else:
        return value
    if len(value) > 8:
        raise ValueError(f"span id must be at most 8 bytes, got {len(value)}")
    return int.from_bytes(value, "big")


def _trace_id_json(value: TraceID) -> str:
    return base64.b64encode(value.to_bytes()).decode("ascii")


def _span_id_json(value: int) -> str:
    return base64.b64encode(value.to_bytes(8, "big")).decode("ascii")


# Field types for pydantic models: base64 of the big-endian bytes in JSON,
# TraceID / int in Python.
TraceIDField = Annotated[
    TraceID,
    PlainValidator(_parse_trace_id),
    PlainSerializer(_trace_id_json, return_type=str, when_used="json"),
]
SpanIDField = Annotated[
    int,
    BeforeValidator(_parse_span_id),
    PlainSerializer(_span_id_json, return_type=str, when_used="json"),
]
