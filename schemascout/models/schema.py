"""Inferred schema models handed to output consumers."""

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class SemanticType(str, Enum):
    """Semantic type tag of an inferred field."""
    IDENTIFIER = "identifier"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    OPAQUE = "opaque"   # fallback when nothing more specific survives a merge
    NESTED = "nested"   # reference to a synthesized EntitySchema


class FieldDefinition(BaseModel):
    """Final merged definition of one field."""

    name: str = Field(description="Field name as found in the documents")
    type: SemanticType = Field(description="Semantic type tag (element type for arrays)")
    is_array: bool = Field(default=False, description="Whether the field holds an array")
    is_nullable: bool = Field(default=True, description="Whether the field may be absent or null")
    nested_type: Optional[str] = Field(
        default=None,
        description="Name of the nested EntitySchema when type is nested"
    )
    occurrences: int = Field(
        default=0,
        description="Observations of the parent context in which the field was present"
    )


class EntitySchema(BaseModel):
    """A named, ordered collection of field definitions."""

    name: str = Field(description="Type name")
    fields: list[FieldDefinition] = Field(default_factory=list)
    description: Optional[str] = Field(default=None)
    is_nested: bool = Field(default=False, description="True for synthesized nested types")
    source_path: Optional[str] = Field(
        default=None,
        description="Logical field path a nested type was synthesized from"
    )

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        """Get a field definition by name."""
        for field in self.fields:
            if field.name == name:
                return field
        return None

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EntitySchema":
        return cls.model_validate(data)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "EntitySchema":
        return cls.from_dict(json.loads(json_str))
