"""Tests for the schema, field and condition model."""

import json

import pytest

from xlsx_schema_compiler.models import SchemaEntity, SchemaStatus
from xlsx_schema_compiler.schema import Condition, Schema, SchemaField, check_document
from xlsx_schema_compiler.utils.exceptions import ErrorCode, SchemaDocumentError
from xlsx_schema_compiler.value_converters import FontStyle


class TestSchemaField:
    """Tests for field property rendering."""

    def test_scalar_property(self) -> None:
        field = SchemaField(
            name="G5",
            description="Weight",
            type="number",
            unit="kg",
            unit_system="postfix",
            examples=[3.5],
        )
        prop = field.to_property()

        assert prop["type"] == "number"
        assert prop["title"] == "Weight"
        assert prop["readOnly"] is False
        assert prop["examples"] == [3.5]
        assert json.loads(prop["$comment"]) == {
            "term": "G5",
            "hidden": False,
            "unit": "kg",
            "unitSystem": "postfix",
        }

    def test_array_property(self) -> None:
        field = SchemaField(
            name="G6", type="string", enum=["a", "b"], is_array=True, examples=["a", "b"]
        )
        prop = field.to_property()
        assert prop["type"] == "array"
        assert prop["items"] == {"type": "string", "enum": ["a", "b"]}
        assert prop["examples"] == [["a", "b"]]

    def test_reference_property(self) -> None:
        prop = SchemaField(name="G7", type="#abc", is_ref=True).to_property()
        assert prop["$ref"] == "#abc"
        assert "type" not in prop

    def test_unresolved_reference_has_no_type(self) -> None:
        prop = SchemaField(name="G7", type=None, is_ref=True).to_property()
        assert "$ref" not in prop
        assert "type" not in prop

    def test_font_accessors(self) -> None:
        field = SchemaField(font=FontStyle(bold=True, color="#ff0000", size="12px"))
        assert (field.text_bold, field.text_color, field.text_size) == (
            True,
            "#ff0000",
            "12px",
        )
        assert SchemaField().text_bold is None

    def test_fields_compare_by_identity(self) -> None:
        assert SchemaField(name="G5") != SchemaField(name="G5")


class TestCondition:
    def test_add_field_deduplicates(self) -> None:
        driver = SchemaField(name="G5")
        dependent = SchemaField(name="G6")
        condition = Condition(field=driver, value="Yes")

        condition.add_field(dependent, invert=False)
        condition.add_field(dependent, invert=False)
        condition.add_field(dependent, invert=True)

        assert condition.then_fields == [dependent]
        assert condition.else_fields == [dependent]

    def test_equal(self) -> None:
        condition = Condition(field=SchemaField(name="G5"), value="Yes")
        assert condition.equal("G5", "Yes")
        assert not condition.equal("G5", "No")
        assert not condition.equal("G6", "Yes")

    def test_to_document(self) -> None:
        condition = Condition(field=SchemaField(name="G5"), value="Yes")
        condition.add_field(SchemaField(name="G6"), invert=False)
        assert condition.to_document() == {
            "if": {"properties": {"G5": {"const": "Yes"}}},
            "then": {"properties": {"G6": {}}},
        }


class TestSchema:
    """Tests for document building and identifiers."""

    def make_schema(self, **kwargs) -> Schema:
        schema = Schema(name="Sensor", worksheet="Sensor", **kwargs)
        schema.update(
            [
                SchemaField(name="G5", type="number", required=True),
                SchemaField(name="G6", type="string"),
            ],
            [],
        )
        return schema

    def test_build_document(self) -> None:
        schema = self.make_schema(entity=SchemaEntity.VC, description="Readings")
        document = schema.document
        assert document["title"] == "Sensor"
        assert document["description"] == "Readings"
        assert document["type"] == "object"
        assert list(document["properties"]) == ["G5", "G6"]
        assert document["required"] == ["G5"]
        assert json.loads(document["$comment"]) == {"entity": "VC"}
        assert "allOf" not in document
        check_document(document)

    def test_update_iri_is_stable(self) -> None:
        first = self.make_schema()
        second = self.make_schema()
        assert first.update_iri() == second.update_iri()
        assert first.iri == f"#{first.id}"
        assert first.document["$id"] == first.iri

    def test_update_iri_depends_on_worksheet(self) -> None:
        first = self.make_schema()
        second = self.make_schema()
        second.worksheet = "Other"
        assert first.update_iri() != second.update_iri()

    def test_summary(self) -> None:
        schema = self.make_schema()
        schema.update_iri()
        summary = schema.summary()
        assert summary.iri == schema.iri
        assert summary.status == SchemaStatus.DRAFT
        assert summary.version == ""


class TestCheckDocument:
    def test_invalid_document(self) -> None:
        with pytest.raises(SchemaDocumentError) as exc_info:
            check_document({"type": "object", "required": "G5"}, worksheet="Sensor")
        error = exc_info.value
        assert error.error_code == ErrorCode.INVALID_SCHEMA_DOCUMENT
        assert error.worksheet == "Sensor"
        assert "required" in error.message
