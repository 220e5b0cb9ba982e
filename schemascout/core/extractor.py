"""Field-path extraction from a single document."""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from schemascout.config.loader import ExtractionConfig
from schemascout.core.exceptions import MalformedDocumentError
from schemascout.models.value import Value, ValueKind

logger = logging.getLogger(__name__)

ARRAY_MARKER = "[]"


@dataclass
class ObjectSample:
    """One object instance (document root, embedded object or array element)."""
    path: str
    value: Value  # MAP with reserved keys removed
    fields: list["FieldSample"] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.fields


@dataclass
class FieldSample:
    """Observation of one key inside one object instance.

    For arrays, ``leaves`` and ``objects`` hold the sampled non-null
    elements; for scalars at most one of them holds the value itself.
    """
    key: str
    path: str  # Canonical path, "tags[]" for arrays
    value: Value
    is_array: bool = False
    leaves: list[Value] = field(default_factory=list)
    objects: list[ObjectSample] = field(default_factory=list)

    @property
    def is_null(self) -> bool:
        return self.value.is_null

    @property
    def unknown_elements(self) -> bool:
        """Array with no element type to learn from (empty or all null)."""
        return self.is_array and not self.leaves and not self.objects


@dataclass
class ExtractedDocument:
    root: ObjectSample
    paths: set[str] = field(default_factory=set)

    def iter_fields(self) -> Iterator[FieldSample]:
        """Depth-first walk over every field sample."""
        stack = [self.root]
        while stack:
            obj = stack.pop()
            for sample in obj.fields:
                yield sample
                stack.extend(reversed(sample.objects))

    def values_by_path(self) -> dict[str, list[Value]]:
        """Leaf values grouped by canonical path (nulls included)."""
        result: dict[str, list[Value]] = {}
        for sample in self.iter_fields():
            values = result.setdefault(sample.path, [])
            if sample.is_null:
                values.append(sample.value)
            else:
                values.extend(sample.leaves)
        return result


def logical_path(path: str) -> str:
    """Strip array markers: ``items[].sku`` -> ``items.sku``."""
    return path.replace(ARRAY_MARKER, "")


class FieldPathExtractor:
    """Walks one document and emits canonical field paths and leaf values."""

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()

    def extract(self, document: Value) -> ExtractedDocument:
        """Extract all field paths of one document.

        Raises:
            MalformedDocumentError: If the document is not an object
        """
        if document.kind is not ValueKind.MAP:
            raise MalformedDocumentError(
                f"Expected a document object, got {document.kind.value}"
            )
        paths: set[str] = set()
        root = self._walk_object(document, "", 0, paths)
        return ExtractedDocument(root=root, paths=paths)

    def is_excluded(self, key: str) -> bool:
        return key.startswith(self.config.excluded_prefixes)

    def _walk_object(self, value: Value, path: str, depth: int, paths: set[str]) -> ObjectSample:
        visible = {k: v for k, v in value.data.items() if not self.is_excluded(k)}
        sample = ObjectSample(path=path, value=Value.map(visible))
        for key, child in visible.items():
            child_path = f"{path}.{key}" if path else key
            sample.fields.append(self._walk_field(key, child, child_path, depth + 1, paths))
        return sample

    def _walk_field(self, key: str, value: Value, path: str, depth: int, paths: set[str]) -> FieldSample:
        if value.kind is ValueKind.SEQUENCE:
            array_path = path + ARRAY_MARKER
            paths.add(array_path)
            sample = FieldSample(key=key, path=array_path, value=value, is_array=True)
            for element in value.data[:self.config.array_sample_size]:
                self._collect(sample, element, array_path, depth, paths)
            return sample

        paths.add(path)
        sample = FieldSample(key=key, path=path, value=value)
        self._collect(sample, value, path, depth, paths)
        return sample

    def _collect(self, sample: FieldSample, value: Value, path: str, depth: int, paths: set[str]) -> None:
        if value.is_null:
            return
        if value.kind is ValueKind.MAP:
            if depth < self.config.max_depth:
                sample.objects.append(self._walk_object(value, path, depth, paths))
                return
            logger.debug(f"Depth limit {self.config.max_depth} reached at {path}; treating as opaque")
            value = Value.opaque(value.data)
        # Binary payloads and arrays nested in arrays stay leaves
        sample.leaves.append(value)
