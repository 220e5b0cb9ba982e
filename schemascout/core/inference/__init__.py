"""Classification of single leaf values into semantic types."""

import re
from typing import Optional

from schemascout.models.schema import SemanticType
from schemascout.models.value import Value, ValueKind

# Signed 32-bit range; wider integers (e.g. epoch millis) are reported as float
INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# Canonical textual encoding of a MongoDB ObjectId
OBJECT_ID_PATTERN = re.compile(r"[0-9a-fA-F]{24}")


class TypeInferencer:
    """Maps one leaf value to a SemanticType.

    Null values return None: they mark a field nullable but never fix its
    type. Non-empty maps are not leaves; the resolver synthesizes nested
    types for them.
    """

    def __init__(self, detect_identifier_strings: bool = True):
        self.detect_identifier_strings = detect_identifier_strings

    def infer(self, value: Value) -> Optional[SemanticType]:
        kind = value.kind

        if kind is ValueKind.NULL:
            return None
        if kind is ValueKind.BOOL:
            return SemanticType.BOOLEAN
        if kind is ValueKind.INT:
            if INT32_MIN <= value.data <= INT32_MAX:
                return SemanticType.INTEGER
            return SemanticType.FLOAT
        if kind is ValueKind.FLOAT:
            return SemanticType.FLOAT
        if kind is ValueKind.IDENTIFIER:
            return SemanticType.IDENTIFIER
        if kind is ValueKind.STRING:
            if self.is_identifier_string(value.data):
                return SemanticType.IDENTIFIER
            return SemanticType.TEXT
        if kind is ValueKind.MAP:
            if value.data:
                raise ValueError(
                    "Non-empty objects are synthesized as nested types, not classified as leaves"
                )
            return SemanticType.OPAQUE

        # BINARY payloads, empty arrays and arrays nested in arrays
        return SemanticType.OPAQUE

    def is_identifier_string(self, text: str) -> bool:
        """Check if a string is the textual form of a store identifier."""
        return self.detect_identifier_strings and bool(OBJECT_ID_PATTERN.fullmatch(text))
