"""Tests for data models."""

from datetime import datetime, timedelta

from schemascout.models.metadata import RunMetrics, StopReason
from schemascout.models.result import IntrospectionResult, NamingCollision
from schemascout.models.schema import EntitySchema, FieldDefinition, SemanticType


def make_entity():
    return EntitySchema(
        name="User",
        fields=[
            FieldDefinition(name="_id", type=SemanticType.IDENTIFIER, is_nullable=False, occurrences=3),
            FieldDefinition(name="address", type=SemanticType.NESTED, nested_type="UserAddress"),
        ],
        description="Collection: users",
    )


class TestSemanticType:
    def test_enum_values(self):
        """Test that all expected type tags exist."""
        assert [t.value for t in SemanticType] == [
            "identifier", "text", "integer", "float", "boolean", "opaque", "nested",
        ]

    def test_enum_from_string(self):
        assert SemanticType("nested") is SemanticType.NESTED


class TestEntitySchema:
    """Tests for EntitySchema model."""

    def test_field_defaults(self):
        field = FieldDefinition(name="x", type=SemanticType.TEXT)

        assert field.is_array is False
        assert field.is_nullable is True
        assert field.nested_type is None

    def test_get_field(self):
        entity = make_entity()

        assert entity.get_field("address").nested_type == "UserAddress"
        assert entity.get_field("missing") is None
        assert entity.field_names == ["_id", "address"]

    def test_json_serialization(self):
        """Test schema serializes with plain type tags and reloads."""
        entity = make_entity()
        data = entity.to_dict()

        assert data["fields"][0]["type"] == "identifier"
        assert EntitySchema.from_json(entity.to_json()) == entity


class TestRunMetrics:
    """Tests for RunMetrics."""

    def test_derived_values(self):
        started = datetime(2024, 1, 1, 12, 0, 0)
        metrics = RunMetrics(
            collection="users",
            started_at=started,
            completed_at=started + timedelta(milliseconds=1500),
            total_count=1000,
            total_sampled=250,
            documents_skipped=5,
        )

        assert metrics.duration_ms == 1500
        assert metrics.sampled_fraction == 0.25
        assert metrics.documents_merged == 245

    def test_incomplete_run(self):
        metrics = RunMetrics(collection="users", started_at=datetime.now())

        assert metrics.duration_ms == 0
        assert metrics.sampled_fraction == 0.0
        summary = metrics.to_summary_dict()
        assert summary["stop_reason"] is None
        assert "completed_at" not in summary

    def test_summary_dict(self):
        started = datetime(2024, 1, 1)
        metrics = RunMetrics(
            collection="users",
            started_at=started,
            completed_at=started,
            batch_count=4,
            stop_reason=StopReason.CONVERGED,
            converged=True,
        )
        summary = metrics.to_summary_dict()

        assert summary["_type"] == "run_summary"
        assert summary["stop_reason"] == "converged"
        assert summary["batch_count"] == 4
        assert summary["duration_ms"] == 0


class TestIntrospectionResult:
    """Tests for the result hand-off."""

    def make_result(self, **kwargs):
        return IntrospectionResult(
            collection="users",
            entity=make_entity(),
            nested_types=[EntitySchema(name="UserAddress", is_nested=True, source_path="address")],
            metrics=RunMetrics(collection="users", started_at=datetime(2024, 1, 1)),
            **kwargs,
        )

    def test_entities(self):
        result = self.make_result()

        assert [e.name for e in result.entities] == ["User", "UserAddress"]
        assert result.get_entity("UserAddress").is_nested
        assert result.get_entity("Nope") is None

    def test_output_dict_minimal(self):
        output = self.make_result().to_output_dict()

        assert output["_collection"] == "users"
        assert output["_metrics"]["collection"] == "users"
        assert len(output["entities"]) == 2
        assert "_warnings" not in output
        assert "_collisions" not in output

    def test_output_dict_with_warnings_and_collisions(self):
        result = self.make_result(
            warnings=["stopped early"],
            collisions=[NamingCollision(type_name="UserAB", first_path="a.b", colliding_path="a_b")],
        )
        output = result.to_output_dict()

        assert output["_warnings"] == ["stopped early"]
        assert output["_collisions"] == [
            {"type_name": "UserAB", "first_path": "a.b", "colliding_path": "a_b"}
        ]
