"""Span payload codecs."""

from clicktrace.codec.payload import decode_span, encode_json, encode_protobuf

__all__ = ["decode_span", "encode_json", "encode_protobuf"]
