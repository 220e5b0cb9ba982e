"""Tagged-variant representation of document values.

Every document handed over by a store is converted into a tree of ``Value``
objects before analysis, so the extractor and inferencer dispatch on
``Value.kind`` instead of probing Python types.
"""

import datetime
import decimal
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from bson import Binary, Decimal128, ObjectId

from schemascout.core.exceptions import MalformedDocumentError

# Containers nested deeper than this are kept as opaque payloads
MAX_CONVERSION_DEPTH = 100

# MongoDB Extended JSON wrappers that stand for a single scalar
_EXTENDED_JSON_KINDS = {
    "$oid": "IDENTIFIER",
    "$binary": "BINARY",
    "$date": "STRING",
    "$numberLong": "INT",
    "$numberInt": "INT",
    "$numberDouble": "FLOAT",
    "$numberDecimal": "FLOAT",
}


class ValueKind(str, Enum):
    """Kinds of values a document tree can hold."""
    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    IDENTIFIER = "identifier"
    SEQUENCE = "sequence"
    MAP = "map"
    BINARY = "binary"


@dataclass(frozen=True)
class Value:
    """One node of a document tree.

    ``data`` holds the Python payload: a list of Values for SEQUENCE, a
    dict of str -> Value for MAP, the scalar itself otherwise.
    """
    kind: ValueKind
    data: Any = None

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    @classmethod
    def null(cls) -> "Value":
        return cls(ValueKind.NULL)

    @classmethod
    def map(cls, entries: dict[str, "Value"]) -> "Value":
        return cls(ValueKind.MAP, entries)

    @classmethod
    def opaque(cls, payload: Any) -> "Value":
        """Wrap a payload that must never be recursed into."""
        return cls(ValueKind.BINARY, payload)

    @classmethod
    def from_python(cls, obj: Any, depth: int = 0) -> "Value":
        """Convert a Python/BSON object into a Value tree.

        Raises:
            MalformedDocumentError: If a mapping has non-string keys
        """
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return cls.null()
        # bool is a subclass of int, check it first
        if isinstance(obj, bool):
            return cls(ValueKind.BOOL, obj)
        if isinstance(obj, int):
            return cls(ValueKind.INT, obj)
        if isinstance(obj, float):
            return cls(ValueKind.FLOAT, obj)
        if isinstance(obj, (decimal.Decimal, Decimal128)):
            return cls(ValueKind.FLOAT, float(str(obj)))
        if isinstance(obj, str):
            return cls(ValueKind.STRING, obj)
        if isinstance(obj, ObjectId):
            return cls(ValueKind.IDENTIFIER, obj)
        # Binary subclasses bytes
        if isinstance(obj, (bytes, bytearray, memoryview, Binary)):
            return cls(ValueKind.BINARY, obj)
        if isinstance(obj, (datetime.datetime, datetime.date)):
            return cls(ValueKind.STRING, obj.isoformat())
        if isinstance(obj, uuid.UUID):
            return cls(ValueKind.STRING, str(obj))

        if isinstance(obj, (list, tuple)):
            if depth >= MAX_CONVERSION_DEPTH:
                return cls.opaque(obj)
            return cls(ValueKind.SEQUENCE, [cls.from_python(item, depth + 1) for item in obj])

        if isinstance(obj, Mapping):
            wrapped = _from_extended_json(obj)
            if wrapped is not None:
                return wrapped
            if depth >= MAX_CONVERSION_DEPTH:
                return cls.opaque(obj)
            entries: dict[str, Value] = {}
            for key, item in obj.items():
                if not isinstance(key, str):
                    raise MalformedDocumentError(
                        f"Document keys must be strings, got {type(key).__name__}: {key!r}"
                    )
                entries[key] = cls.from_python(item, depth + 1)
            return cls(ValueKind.MAP, entries)

        # Regex, Code, Timestamp, MinKey and anything else unknown
        return cls.opaque(obj)


def _from_extended_json(obj: Mapping) -> Value | None:
    """Unwrap a single-key Extended JSON wrapper like {"$oid": "..."}."""
    if len(obj) != 1:
        return None
    key = next(iter(obj))
    kind_name = _EXTENDED_JSON_KINDS.get(key)
    if kind_name is None:
        return None

    raw = obj[key]
    kind = ValueKind[kind_name]
    if kind is ValueKind.IDENTIFIER:
        return Value(kind, str(raw))
    if kind is ValueKind.BINARY:
        return Value.opaque(raw)
    if kind is ValueKind.STRING:
        # {"$date": {"$numberLong": "..."}} is the canonical form
        if isinstance(raw, Mapping):
            raw = next(iter(raw.values()), "")
        return Value(kind, str(raw))
    try:
        if kind is ValueKind.INT:
            return Value(kind, int(raw))
        return Value(kind, float(raw))
    except (TypeError, ValueError):
        raise MalformedDocumentError(f"Invalid Extended JSON value for {key}: {raw!r}")
