"""Mutable per-run state of schema inference."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from schemascout.core.lattice import resolve_type
from schemascout.models.result import NamingCollision
from schemascout.models.schema import SemanticType

logger = logging.getLogger(__name__)


@dataclass
class FieldStats:
    """Running observations of one field within one type context."""
    name: str
    path: str  # Logical path (array markers stripped)
    kinds: set[SemanticType] = field(default_factory=set)
    present: int = 0  # Context observations with the key present
    non_null: int = 0  # ... and a non-null value
    array_observations: int = 0
    scalar_observations: int = 0
    nested_type: Optional[str] = None

    @property
    def is_array(self) -> bool:
        return self.array_observations > 0

    @property
    def has_array_conflict(self) -> bool:
        """Seen both as a scalar and as an array."""
        return self.array_observations > 0 and self.scalar_observations > 0

    @property
    def resolved_type(self) -> Optional[SemanticType]:
        return resolve_type(self.kinds)


@dataclass
class TypeContext:
    """Field map of one type: the top-level entity or a nested type."""
    name: str
    path: str  # Logical path of the source field, "" for the top level
    parent: Optional[str] = None
    fields: dict[str, FieldStats] = field(default_factory=dict)
    observations: int = 0  # Object instances merged into this context
    populated: bool = False  # At least one non-empty instance seen

    def field_stats(self, name: str, path: str) -> FieldStats:
        """Get or create the stats for a field."""
        stats = self.fields.get(name)
        if stats is None:
            stats = FieldStats(name=name, path=path)
            self.fields[name] = stats
        return stats


class SchemaAccumulator:
    """State of one introspection run.

    Created fresh per collection and owned by a single run; merges into it
    must be applied by one writer in batch order.
    """

    def __init__(self, collection: str, type_name: str):
        self.collection = collection
        self.root = TypeContext(name=type_name, path="")
        self.nested: dict[str, TypeContext] = {}
        self.seen_paths: set[str] = set()
        self.documents_merged = 0
        self.documents_skipped = 0
        self.collisions: list[NamingCollision] = []
        # Empty object instances per logical path; they own no nested type
        self.empty_instances: dict[str, int] = {}
        self._reported_collisions: set[tuple[str, str]] = set()

    @property
    def type_name(self) -> str:
        return self.root.name

    @property
    def unique_path_count(self) -> int:
        return len(self.seen_paths)

    def record_paths(self, paths: Iterable[str]) -> int:
        """Add field paths; return how many were not seen before."""
        before = len(self.seen_paths)
        self.seen_paths.update(paths)
        return len(self.seen_paths) - before

    def record_empty_instance(self, path: str) -> None:
        self.empty_instances[path] = self.empty_instances.get(path, 0) + 1

    def observations_of(self, context: TypeContext) -> int:
        """Object instances seen for a context, empty ones included."""
        if context is self.root:
            return context.observations
        return context.observations + self.empty_instances.get(context.path, 0)

    def claim_nested(self, name: str, path: str, parent: str) -> Optional[TypeContext]:
        """Get or register the nested type context for a field.

        Only populated objects claim a name. Returns None when ``name`` is
        already registered for a different logical path: a naming collision.
        The first-seen registration wins and the collision is recorded once
        per path.
        """
        context = self.nested.get(name)
        if context is None:
            context = TypeContext(name=name, path=path, parent=parent)
            self.nested[name] = context
            return context
        if context.path == path:
            return context

        key = (name, path)
        if key not in self._reported_collisions:
            self._reported_collisions.add(key)
            self.collisions.append(NamingCollision(
                type_name=name,
                first_path=context.path,
                colliding_path=path,
            ))
            logger.warning(
                f"Nested type name collision in {self.collection}: '{name}' is synthesized by "
                f"both '{context.path}' and '{path}'; keeping the definition from '{context.path}'"
            )
        return None

    def populated_nested(self) -> list[TypeContext]:
        """Nested contexts with at least one non-empty instance, sorted by name."""
        return [self.nested[name] for name in sorted(self.nested) if self.nested[name].populated]
