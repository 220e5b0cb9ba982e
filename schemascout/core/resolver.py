"""Merging of field observations and synthesis of nested types.

Observations are merged into a ``SchemaAccumulator`` one document at a time.
Types widen through the kind sets kept per field (see ``core.lattice``);
nullability and array-ness are decided only when the schemas are built, from
the occurrence counts gathered over the whole run.

Nested objects become nested types named after their parent type plus the
PascalCased field name. Every instance of the same field, whether a plain
object or an element of an array of objects, merges into one registry entry,
so child field maps are unioned recursively under the same rules.
"""

import logging
from typing import Optional

from schemascout.core.accumulator import FieldStats, SchemaAccumulator, TypeContext
from schemascout.core.extractor import ExtractedDocument, FieldSample, ObjectSample, logical_path
from schemascout.core.inference import TypeInferencer
from schemascout.core.utils.naming import nested_type_name
from schemascout.models.schema import EntitySchema, FieldDefinition, SemanticType

logger = logging.getLogger(__name__)


class SchemaResolver:
    """Applies per-document observations to an accumulator and builds schemas.

    Not safe for concurrent use on the same accumulator.
    """

    def __init__(self, inferencer: Optional[TypeInferencer] = None, identifier_field: str = "_id"):
        self.inferencer = inferencer or TypeInferencer()
        self.identifier_field = identifier_field

    def merge_document(self, accumulator: SchemaAccumulator, document: ExtractedDocument) -> int:
        """Merge one extracted document; return the number of new field paths."""
        self._merge_object(accumulator, accumulator.root, document.root)
        accumulator.documents_merged += 1
        return accumulator.record_paths(document.paths)

    def _merge_object(self, accumulator: SchemaAccumulator, context: TypeContext, obj: ObjectSample) -> None:
        context.observations += 1
        if not obj.is_empty:
            context.populated = True
        for sample in obj.fields:
            self._merge_field(accumulator, context, sample)

    def _merge_field(self, accumulator: SchemaAccumulator, context: TypeContext, sample: FieldSample) -> None:
        stats = context.field_stats(sample.key, logical_path(sample.path))
        stats.present += 1
        if sample.is_null:
            return

        stats.non_null += 1
        if sample.is_array:
            stats.array_observations += 1
        else:
            stats.scalar_observations += 1

        for leaf in sample.leaves:
            kind = self.inferencer.infer(leaf)
            if kind is not None:
                stats.kinds.add(kind)

        for obj in sample.objects:
            self._merge_nested(accumulator, context, stats, obj)

    def _merge_nested(
        self,
        accumulator: SchemaAccumulator,
        context: TypeContext,
        stats: FieldStats,
        obj: ObjectSample,
    ) -> None:
        if obj.is_empty:
            # Opaque unless some instance of the field is populated; claims no name
            stats.kinds.add(self.inferencer.infer(obj.value))
            accumulator.record_empty_instance(stats.path)
            return

        type_name = nested_type_name(context.name, stats.name)
        stats.kinds.add(SemanticType.NESTED)
        stats.nested_type = type_name

        child = accumulator.claim_nested(type_name, stats.path, parent=context.name)
        if child is None:
            # Naming collision: the first-seen definition is kept as is
            return
        self._merge_object(accumulator, child, obj)

    def build_schemas(self, accumulator: SchemaAccumulator) -> tuple[EntitySchema, list[EntitySchema]]:
        """Build the top-level schema and the populated nested schemas."""
        entity = EntitySchema(
            name=accumulator.type_name,
            fields=self._build_fields(accumulator, accumulator.root),
            description=(
                f"Collection: {accumulator.collection} (sampled {accumulator.documents_merged} documents, "
                f"{len(accumulator.root.fields)} fields)"
            ),
        )

        nested = []
        for context in accumulator.populated_nested():
            nested.append(EntitySchema(
                name=context.name,
                fields=self._build_fields(accumulator, context),
                description=f"Nested type from {context.parent}.{context.path.rsplit('.', 1)[-1]}",
                is_nested=True,
                source_path=context.path,
            ))
        return entity, nested

    def _build_fields(self, accumulator: SchemaAccumulator, context: TypeContext) -> list[FieldDefinition]:
        definitions = []
        for name in self._field_order(context):
            stats = context.fields[name]
            field_type = stats.resolved_type or SemanticType.OPAQUE
            nested_type = None
            if field_type is SemanticType.NESTED:
                target = accumulator.nested.get(stats.nested_type)
                if target is not None and target.populated:
                    nested_type = stats.nested_type
                else:
                    # No populated definition was registered under this name
                    field_type = SemanticType.OPAQUE

            # Nullable unless present and non-null in every observation of the context
            nullable = stats.non_null < accumulator.observations_of(context) or stats.has_array_conflict
            definitions.append(FieldDefinition(
                name=name,
                type=field_type,
                is_array=stats.is_array,
                is_nullable=nullable,
                nested_type=nested_type,
                occurrences=stats.present,
            ))
        return definitions

    def _field_order(self, context: TypeContext) -> list[str]:
        """Identifier first, then by name; independent of arrival order."""
        names = sorted(context.fields)
        if self.identifier_field in context.fields:
            names.remove(self.identifier_field)
            names.insert(0, self.identifier_field)
        return names


def minimal_schema(collection: str, type_name: str, identifier_field: str = "_id") -> EntitySchema:
    """Schema for a collection with no documents: a single identifier field."""
    return EntitySchema(
        name=type_name,
        fields=[FieldDefinition(
            name=identifier_field,
            type=SemanticType.IDENTIFIER,
            is_array=False,
            is_nullable=False,
        )],
        description=f"Collection: {collection} (empty, minimal schema)",
    )
