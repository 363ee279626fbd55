"""Enum definitions shared by the span payload formats."""

from enum import IntEnum


class ValueType(IntEnum):
    """Type tag of a KeyValue; numbering matches the binary payload."""

    STRING = 0
    BOOL = 1
    INT64 = 2
    FLOAT64 = 3
    BINARY = 4


class SpanRefType(IntEnum):
    """Kind of reference between spans."""

    CHILD_OF = 0
    FOLLOWS_FROM = 1
