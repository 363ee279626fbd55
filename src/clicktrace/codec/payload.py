"""Stored span payload decoding with format sniffing.

Two encodings co-exist in the span table after a storage-format migration:
the JSON rendering of a span and the protobuf binary encoding. No version
flag is stored. A payload whose first byte is ``{`` is decoded as JSON,
anything else as protobuf. This couples the read path to these two formats:
it holds only because a serialized ``Span`` message starts with the tag of
field 1 (``0x0a``) or another low field tag, never with ``0x7b``.
"""

from google.protobuf.message import DecodeError as ProtobufDecodeError
from pydantic import ValidationError

from clicktrace.codec.proto import SpanMessage, span_from_message, span_to_message
from clicktrace.contracts.models import Span
from clicktrace.errors import DecodeError

JSON_MARKER = ord("{")

_PREFIX_LEN = 16


def _as_bytes(payload: str | bytes) -> bytes:
    if isinstance(payload, str):
        # Drivers that decode String columns as text use surrogateescape for
        # invalid UTF-8, which this reverses.
        return payload.encode("utf-8", "surrogateescape")
    return bytes(payload)


def is_json_payload(data: bytes) -> bool:
    return bool(data) and data[0] == JSON_MARKER


def decode_json(data: bytes) -> Span:
    """Decode a JSON span payload."""
    try:
        return Span.model_validate_json(data)
    except ValidationError as e:
        raise DecodeError(f"invalid JSON span payload: {e.error_count()} error(s)", data[:_PREFIX_LEN]) from e


def decode_protobuf(data: bytes) -> Span:
    """Decode a protobuf span payload."""
    try:
        message = SpanMessage.FromString(data)
        return span_from_message(message)
    except (ProtobufDecodeError, ValidationError, ValueError) as e:
        raise DecodeError(f"invalid protobuf span payload: {e}", data[:_PREFIX_LEN]) from e


def decode_span(payload: str | bytes) -> Span:
    """Decode one stored payload, choosing the format from its first byte.

    Raises:
        DecodeError: The payload is empty or not valid in the sniffed format.
    """
    data = _as_bytes(payload)
    if not data:
        raise DecodeError("empty span payload")
    if is_json_payload(data):
        return decode_json(data)
    return decode_protobuf(data)


def encode_json(span: Span) -> bytes:
    """Encode a span as a JSON payload."""
    return span.model_dump_json().encode("utf-8")


def encode_protobuf(span: Span) -> bytes:
    """Encode a span as a protobuf payload."""
    return span_to_message(span).SerializeToString()
