"""Tests for stored span payload decoding."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from clicktrace.codec import decode_span, encode_json, encode_protobuf
from clicktrace.codec.payload import decode_json, decode_protobuf, is_json_payload
from clicktrace.codec.proto import SpanMessage
from clicktrace.contracts import KeyValue, Log, Process, Span, SpanRef, SpanRefType, TraceID, ValueType
from clicktrace.errors import DecodeError


@pytest.fixture
def full_span() -> Span:
    """Span with every field populated."""
    trace_id = TraceID(0x1122334455667788, 0x99AABBCCDDEEFF00)
    return Span(
        trace_id=trace_id,
        span_id=0x0102030405060708,
        operation_name="GET /users/{id}",
        references=[
            SpanRef(trace_id=trace_id, span_id=0x0A, ref_type=SpanRefType.CHILD_OF),
            SpanRef(trace_id=TraceID(0, 9), span_id=0x0B, ref_type=SpanRefType.FOLLOWS_FROM),
        ],
        flags=1,
        start_time=datetime(2024, 3, 1, 12, 30, 45, 654321, tzinfo=timezone.utc),
        duration=timedelta(seconds=2, microseconds=500),
        tags=[
            KeyValue(key="http.method", v_str="GET"),
            KeyValue(key="error", v_type=ValueType.BOOL, v_bool=True),
            KeyValue(key="http.status_code", v_type=ValueType.INT64, v_int64=503),
            KeyValue(key="ratio", v_type=ValueType.FLOAT64, v_float64=0.25),
            KeyValue(key="blob", v_type=ValueType.BINARY, v_binary=b"\x00\xff{"),
        ],
        logs=[
            Log(
                timestamp=datetime(2024, 3, 1, 12, 30, 46, tzinfo=timezone.utc),
                fields=[KeyValue(key="event", v_str="retry")],
            )
        ],
        process=Process(service_name="api", tags=[KeyValue(key="hostname", v_str="api-1")]),
        process_id="p1",
        warnings=["clock skew adjusted"],
    )


class TestRoundTrip:
    """Encoding then decoding yields the same span."""

    def test_protobuf_round_trip(self, full_span: Span) -> None:
        assert decode_span(encode_protobuf(full_span)) == full_span

    def test_json_round_trip(self, full_span: Span) -> None:
        assert decode_span(encode_json(full_span)) == full_span

    def test_minimal_span_round_trip(self) -> None:
        span = Span(trace_id=TraceID(0, 1), span_id=2, start_time=datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert decode_span(encode_protobuf(span)) == span
        assert decode_span(encode_json(span)) == span

    def test_pre_epoch_start_time(self) -> None:
        span = Span(
            trace_id=TraceID(0, 1),
            span_id=2,
            start_time=datetime(1969, 12, 31, 23, 59, 59, 500000, tzinfo=timezone.utc),
        )
        assert decode_span(encode_protobuf(span)) == span


class TestFormatSniffing:
    """The first byte selects the decoder."""

    def test_json_starts_with_brace(self, full_span: Span) -> None:
        assert is_json_payload(encode_json(full_span))

    def test_protobuf_does_not_start_with_brace(self, full_span: Span) -> None:
        data = encode_protobuf(full_span)
        assert data[0] == 0x0A
        assert not is_json_payload(data)

    def test_text_payload_from_driver(self, full_span: Span) -> None:
        """Drivers returning str for String columns are handled."""
        payload = encode_json(full_span).decode("utf-8")
        assert decode_span(payload) == full_span

    def test_binary_payload_decoded_with_surrogateescape(self, full_span: Span) -> None:
        payload = encode_protobuf(full_span).decode("utf-8", "surrogateescape")
        assert decode_span(payload) == full_span

    def test_legacy_json_document(self) -> None:
        payload = json.dumps(
            {
                "trace_id": "AAAAAAAAAAAAAAAAAAAAAQ==",
                "span_id": "AAAAAAAAAAI=",
                "operation_name": "db.query",
                "references": [],
                "flags": 0,
                "start_time": "2024-03-01T12:00:00.000000001Z",
                "duration": 2000,
                "tags": [{"key": "db.type", "v_type": 0, "v_str": "clickhouse"}],
                "logs": None,
                "warnings": None,
                "process": {"service_name": "web", "tags": []},
            }
        )
        span = decode_span(payload)
        assert span.trace_id == TraceID(0, 1)
        assert span.span_id == 2
        assert span.service_name == "web"
        assert span.duration == timedelta(microseconds=2)
        assert span.tags[0].value == "clickhouse"


class TestDecodeErrors:
    """Payloads that cannot be decoded."""

    def test_empty_payload(self) -> None:
        with pytest.raises(DecodeError):
            decode_span(b"")

    def test_broken_json(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_span(b'{"trace_id": ')
        assert exc_info.value.prefix.startswith(b"{")

    def test_json_missing_required_fields(self) -> None:
        with pytest.raises(DecodeError):
            decode_json(b'{"operation_name": "x"}')

    def test_truncated_protobuf(self, full_span: Span) -> None:
        with pytest.raises(DecodeError):
            decode_protobuf(encode_protobuf(full_span)[:-3])

    def test_protobuf_with_oversized_trace_id(self) -> None:
        message = SpanMessage(trace_id=b"\x01" * 17, span_id=b"\x01")
        with pytest.raises(DecodeError):
            decode_span(message.SerializeToString())

    def test_protobuf_with_oversized_span_id(self) -> None:
        message = SpanMessage(trace_id=b"\x01" * 16, span_id=b"\x01" * 9)
        with pytest.raises(DecodeError):
            decode_span(message.SerializeToString())

    def test_protobuf_reference_with_oversized_span_id(self) -> None:
        message = SpanMessage(trace_id=b"\x01" * 16, span_id=b"\x01")
        message.references.add(trace_id=b"\x01" * 16, span_id=b"\x02" * 9)
        with pytest.raises(DecodeError):
            decode_span(message.SerializeToString())
