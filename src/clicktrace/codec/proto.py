"""Binary (protocol buffers) span payload format.

The message layout is declared here as a descriptor instead of a generated
``_pb2`` module. Field numbers and types match the ``jaeger.api_v2`` model
so payloads written by existing collectors decode unchanged.
"""

from datetime import datetime, timedelta, timezone

from google.protobuf import descriptor_pb2, descriptor_pool, duration_pb2, message_factory, timestamp_pb2
from google.protobuf.message import Message

from clicktrace.contracts.enums import SpanRefType, ValueType
from clicktrace.contracts.ids import TraceID
from clicktrace.contracts.models import KeyValue, Log, Process, Span, SpanRef

PACKAGE = "jaeger.api_v2"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_F = descriptor_pb2.FieldDescriptorProto

# (name, number, type, label, type_name)
_MESSAGES: dict[str, list[tuple[str, int, int, int, str]]] = {
    "KeyValue": [
        ("key", 1, _F.TYPE_STRING, _F.LABEL_OPTIONAL, ""),
        ("v_type", 2, _F.TYPE_ENUM, _F.LABEL_OPTIONAL, f".{PACKAGE}.ValueType"),
        ("v_str", 3, _F.TYPE_STRING, _F.LABEL_OPTIONAL, ""),
        ("v_bool", 4, _F.TYPE_BOOL, _F.LABEL_OPTIONAL, ""),
        ("v_int64", 5, _F.TYPE_INT64, _F.LABEL_OPTIONAL, ""),
        ("v_float64", 6, _F.TYPE_DOUBLE, _F.LABEL_OPTIONAL, ""),
        ("v_binary", 7, _F.TYPE_BYTES, _F.LABEL_OPTIONAL, ""),
    ],
    "Log": [
        ("timestamp", 1, _F.TYPE_MESSAGE, _F.LABEL_OPTIONAL, ".google.protobuf.Timestamp"),
        ("fields", 2, _F.TYPE_MESSAGE, _F.LABEL_REPEATED, f".{PACKAGE}.KeyValue"),
    ],
    "SpanRef": [
        ("trace_id", 1, _F.TYPE_BYTES, _F.LABEL_OPTIONAL, ""),
        ("span_id", 2, _F.TYPE_BYTES, _F.LABEL_OPTIONAL, ""),
        ("ref_type", 3, _F.TYPE_ENUM, _F.LABEL_OPTIONAL, f".{PACKAGE}.SpanRefType"),
    ],
    "Process": [
        ("service_name", 1, _F.TYPE_STRING, _F.LABEL_OPTIONAL, ""),
        ("tags", 2, _F.TYPE_MESSAGE, _F.LABEL_REPEATED, f".{PACKAGE}.KeyValue"),
    ],
    "Span": [
        ("trace_id", 1, _F.TYPE_BYTES, _F.LABEL_OPTIONAL, ""),
        ("span_id", 2, _F.TYPE_BYTES, _F.LABEL_OPTIONAL, ""),
        ("operation_name", 3, _F.TYPE_STRING, _F.LABEL_OPTIONAL, ""),
        ("references", 4, _F.TYPE_MESSAGE, _F.LABEL_REPEATED, f".{PACKAGE}.SpanRef"),
        ("flags", 5, _F.TYPE_UINT32, _F.LABEL_OPTIONAL, ""),
        ("start_time", 6, _F.TYPE_MESSAGE, _F.LABEL_OPTIONAL, ".google.protobuf.Timestamp"),
        ("duration", 7, _F.TYPE_MESSAGE, _F.LABEL_OPTIONAL, ".google.protobuf.Duration"),
        ("tags", 8, _F.TYPE_MESSAGE, _F.LABEL_REPEATED, f".{PACKAGE}.KeyValue"),
        ("logs", 9, _F.TYPE_MESSAGE, _F.LABEL_REPEATED, f".{PACKAGE}.Log"),
        ("process", 10, _F.TYPE_MESSAGE, _F.LABEL_OPTIONAL, f".{PACKAGE}.Process"),
        ("process_id", 11, _F.TYPE_STRING, _F.LABEL_OPTIONAL, ""),
        ("warnings", 12, _F.TYPE_STRING, _F.LABEL_REPEATED, ""),
    ],
}

_ENUMS = {"ValueType": ValueType, "SpanRefType": SpanRefType}


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="clicktrace/model.proto",
        package=PACKAGE,
        syntax="proto3",
        dependency=["google/protobuf/timestamp.proto", "google/protobuf/duration.proto"],
    )
    for enum_name, enum_cls in _ENUMS.items():
        enum_proto = file_proto.enum_type.add(name=enum_name)
        for member in enum_cls:
            enum_proto.value.add(name=member.name, number=member.value)
    for message_name, fields in _MESSAGES.items():
        message_proto = file_proto.message_type.add(name=message_name)
        for name, number, field_type, label, type_name in fields:
            field = message_proto.field.add(name=name, number=number, type=field_type, label=label)
            if type_name:
                field.type_name = type_name
    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(timestamp_pb2.DESCRIPTOR.serialized_pb)
_pool.AddSerializedFile(duration_pb2.DESCRIPTOR.serialized_pb)
_pool.AddSerializedFile(_build_file().SerializeToString())

SpanMessage = message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.Span"))


def _set_timestamp(target: Message, value: datetime) -> None:
    delta = value - _EPOCH
    target.seconds = delta.days * 86400 + delta.seconds
    target.nanos = delta.microseconds * 1000


def _get_timestamp(source: Message) -> datetime:
    return _EPOCH + timedelta(seconds=source.seconds, microseconds=source.nanos // 1000)


def _set_duration(target: Message, value: timedelta) -> None:
    micros = value // timedelta(microseconds=1)
    seconds, rest = divmod(micros, 1_000_000)
    if seconds < 0 and rest:
        # Duration keeps seconds and nanos on the same sign.
        seconds, rest = seconds + 1, rest - 1_000_000
    target.seconds = seconds
    target.nanos = rest * 1000


def _get_duration(source: Message) -> timedelta:
    return timedelta(seconds=source.seconds, microseconds=int(source.nanos / 1000))


def _fill_key_values(target, values: list[KeyValue]) -> None:
    for kv in values:
        item = target.add()
        item.key = kv.key
        item.v_type = int(kv.v_type)
        item.v_str = kv.v_str
        item.v_bool = kv.v_bool
        item.v_int64 = kv.v_int64
        item.v_float64 = kv.v_float64
        item.v_binary = kv.v_binary


def _read_key_values(source) -> list[KeyValue]:
    return [
        KeyValue(
            key=item.key,
            v_type=ValueType(item.v_type),
            v_str=item.v_str,
            v_bool=item.v_bool,
            v_int64=item.v_int64,
            v_float64=item.v_float64,
            v_binary=item.v_binary,
        )
        for item in source
    ]


def span_to_message(span: Span) -> Message:
    """Convert a Span to its protobuf message."""
    message = SpanMessage()
    message.trace_id = span.trace_id.to_bytes()
    message.span_id = span.span_id.to_bytes(8, "big")
    message.operation_name = span.operation_name
    for ref in span.references:
        item = message.references.add()
        item.trace_id = ref.trace_id.to_bytes()
        item.span_id = ref.span_id.to_bytes(8, "big")
        item.ref_type = int(ref.ref_type)
    message.flags = span.flags
    _set_timestamp(message.start_time, span.start_time)
    _set_duration(message.duration, span.duration)
    _fill_key_values(message.tags, span.tags)
    for log in span.logs:
        item = message.logs.add()
        _set_timestamp(item.timestamp, log.timestamp)
        _fill_key_values(item.fields, log.fields)
    if span.process is not None:
        message.process.SetInParent()
        message.process.service_name = span.process.service_name
        _fill_key_values(message.process.tags, span.process.tags)
    message.process_id = span.process_id
    message.warnings.extend(span.warnings)
    return message


def span_from_message(message: Message) -> Span:
    """Convert a protobuf message to a Span."""
    process = None
    if message.HasField("process"):
        process = Process(
            service_name=message.process.service_name,
            tags=_read_key_values(message.process.tags),
        )
    return Span(
        trace_id=TraceID.from_bytes(message.trace_id),
        span_id=message.span_id,
        operation_name=message.operation_name,
        references=[
            SpanRef(
                trace_id=TraceID.from_bytes(ref.trace_id),
                span_id=ref.span_id,
                ref_type=SpanRefType(ref.ref_type),
            )
            for ref in message.references
        ],
        flags=message.flags,
        start_time=_get_timestamp(message.start_time),
        duration=_get_duration(message.duration),
        tags=_read_key_values(message.tags),
        logs=[
            Log(timestamp=_get_timestamp(log.timestamp), fields=_read_key_values(log.fields))
            for log in message.logs
        ],
        process=process,
        process_id=message.process_id,
        warnings=list(message.warnings),
    )
