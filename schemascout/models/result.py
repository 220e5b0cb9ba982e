from typing import Optional, Any
from pydantic import BaseModel, Field

from schemascout.models.metadata import RunMetrics
from schemascout.models.schema import EntitySchema


class NamingCollision(BaseModel):
    """Two distinct field paths synthesized the same nested type name."""

    type_name: str = Field(description="The contested nested type name")
    first_path: str = Field(description="Logical path that registered the type first (kept)")
    colliding_path: str = Field(description="Logical path whose objects were not merged")


class IntrospectionResult(BaseModel):
    """Final hand-off artifact of one introspection run."""

    collection: str = Field(description="Name of the introspected collection")
    entity: EntitySchema = Field(description="Top-level schema")
    nested_types: list[EntitySchema] = Field(
        default_factory=list,
        description="Synthesized nested schemas, sorted by name"
    )
    metrics: RunMetrics = Field(description="Sampling metrics for this run")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal conditions worth surfacing to the caller"
    )
    collisions: list[NamingCollision] = Field(default_factory=list)

    @property
    def entities(self) -> list[EntitySchema]:
        """Top-level entity followed by all nested types."""
        return [self.entity, *self.nested_types]

    def get_entity(self, name: str) -> Optional[EntitySchema]:
        """Get an entity (top-level or nested) by name."""
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def to_output_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        result = {
            "_collection": self.collection,
            "_metrics": self.metrics.to_summary_dict(),
            "entities": [e.to_dict() for e in self.entities],
        }

        if self.warnings:
            result["_warnings"] = list(self.warnings)

        if self.collisions:
            result["_collisions"] = [c.model_dump() for c in self.collisions]

        return result
