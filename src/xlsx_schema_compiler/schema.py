"""Schema, field and condition model produced by the compiler.

Entities carry no error lists of their own: readers return
``(entity, errors)`` pairs and the result aggregator keeps each error's
target, so errors are looked up per entity instead of stored on it.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import Any

from jsonschema import Draft7Validator, SchemaError

from xlsx_schema_compiler.models import (
    SchemaCategory,
    SchemaEntity,
    SchemaStatus,
    SchemaSummary,
)
from xlsx_schema_compiler.utils.exceptions import SchemaDocumentError
from xlsx_schema_compiler.value_converters import FontStyle

# Namespace for content-derived schema identifiers.
SCHEMA_NAMESPACE = uuid.UUID("6f1c2f5e-3b7a-5d0e-9c4b-2a8e7d1f0b93")


@dataclass(eq=False)
class SchemaField:
    """One question row of a schema worksheet.

    ``name`` is the address of the answer cell (``G11``), which keeps field
    identity stable even when question texts repeat.
    """

    name: str = ""
    description: str = ""
    required: bool = False
    is_array: bool = False
    read_only: bool = False
    hidden: bool = False
    type: str | None = None
    format: str | None = None
    pattern: str | None = None
    unit: str | None = None
    unit_system: str | None = None
    custom_type: str | None = None
    is_ref: bool = False
    enum: list[str] | None = None
    font: FontStyle | None = None
    examples: list[Any] | None = None
    path: str | None = None

    @property
    def text_bold(self) -> bool | None:
        return self.font.bold if self.font else None

    @property
    def text_color(self) -> str | None:
        return self.font.color if self.font else None

    @property
    def text_size(self) -> str | None:
        return self.font.size if self.font else None

    def to_property(self) -> dict[str, Any]:
        """JSON-Schema property definition for this field."""
        item: dict[str, Any]
        if self.is_ref and self.type:
            item = {"$ref": self.type}
        else:
            item = {}
            if self.type:
                item["type"] = self.type
            for key, value in (
                ("format", self.format),
                ("pattern", self.pattern),
                ("enum", self.enum),
            ):
                if value is not None:
                    item[key] = value

        prop: dict[str, Any] = (
            {"type": "array", "items": item} if self.is_array else dict(item)
        )
        prop["title"] = self.description or self.name
        prop["description"] = self.description
        prop["readOnly"] = self.read_only
        extras: dict[str, Any] = {
            "term": self.name,
            "hidden": self.hidden,
            "unit": self.unit,
            "unitSystem": self.unit_system,
            "customType": self.custom_type,
            "font": self.font.to_dict() if self.font else None,
        }
        prop["$comment"] = json.dumps(
            {k: v for k, v in extras.items() if v is not None}, sort_keys=True
        )
        if self.examples:
            prop["examples"] = [self.examples if self.is_array else self.examples[0]]
        return prop

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "required": self.required,
            "isArray": self.is_array,
            "readOnly": self.read_only,
            "hidden": self.hidden,
            "type": self.type,
            "format": self.format,
            "pattern": self.pattern,
            "unit": self.unit,
            "unitSystem": self.unit_system,
            "customType": self.custom_type,
            "isRef": self.is_ref,
            "enum": self.enum,
            "font": self.font.to_dict() if self.font else None,
            "examples": self.examples,
        }


@dataclass(eq=False)
class Condition:
    """Visibility rule: dependents show when ``field`` equals ``value``.

    Dependents added with ``invert=True`` show in the opposite case.
    """

    field: SchemaField
    value: Any
    dependents: list[tuple[SchemaField, bool]] = field(default_factory=list)

    def equal(self, field_name: str, value: Any) -> bool:
        return self.field.name == field_name and self.value == value

    def add_field(self, dependent: SchemaField, invert: bool) -> None:
        for existing, existing_invert in self.dependents:
            if existing is dependent and existing_invert == invert:
                return
        self.dependents.append((dependent, invert))

    @property
    def then_fields(self) -> list[SchemaField]:
        return [f for f, invert in self.dependents if not invert]

    @property
    def else_fields(self) -> list[SchemaField]:
        return [f for f, invert in self.dependents if invert]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ifCondition": {"field": self.field.name, "fieldValue": self.value},
            "thenFields": [f.name for f in self.then_fields],
            "elseFields": [f.name for f in self.else_fields],
        }

    def to_document(self) -> dict[str, Any]:
        rule: dict[str, Any] = {
            "if": {"properties": {self.field.name: {"const": self.value}}}
        }
        if self.then_fields:
            rule["then"] = {"properties": {f.name: {} for f in self.then_fields}}
        if self.else_fields:
            rule["else"] = {"properties": {f.name: {} for f in self.else_fields}}
        return rule


@dataclass(eq=False)
class Schema:
    """A schema compiled from one worksheet."""

    name: str | None = None
    description: str | None = None
    entity: SchemaEntity | None = None
    fields: list[SchemaField] = field(default_factory=list)
    conditions: list[Condition] = field(default_factory=list)
    category: SchemaCategory = SchemaCategory.POLICY
    message_id: str | None = None
    id: str | None = None
    iri: str | None = None
    version: str = ""
    status: SchemaStatus = SchemaStatus.DRAFT
    worksheet: str | None = None
    document: dict[str, Any] = field(default_factory=dict)

    def update(self, fields: list[SchemaField], conditions: list[Condition]) -> None:
        self.fields = list(fields)
        self.conditions = list(conditions)
        self.document = self.build_document()

    def build_document(self) -> dict[str, Any]:
        """Build the JSON-Schema document for the current fields."""
        document: dict[str, Any] = {
            "title": self.name,
            "description": self.description or "",
            "type": "object",
            "properties": {f.name: f.to_property() for f in self.fields},
            "required": [f.name for f in self.fields if f.required],
            "additionalProperties": False,
        }
        if self.entity is not None:
            document["$comment"] = json.dumps({"entity": self.entity.value})
        if self.conditions:
            document["allOf"] = [c.to_document() for c in self.conditions]
        if self.iri:
            document["$id"] = self.iri
        return document

    def update_iri(self) -> str:
        """Derive ``id`` and ``iri`` from the schema's current shape.

        The identifier depends only on the worksheet name and the document,
        so compiling the same workbook twice gives the same identifiers.
        """
        shape = dict(self.document or self.build_document())
        shape.pop("$id", None)
        canonical = json.dumps(
            {"worksheet": self.worksheet, "document": shape},
            sort_keys=True,
            default=str,
        )
        self.id = str(uuid.uuid5(SCHEMA_NAMESPACE, canonical))
        self.iri = f"#{self.id}"
        self.document["$id"] = self.iri
        return self.iri

    def update_refs(self, schemas: list[Schema]) -> None:
        """Rebuild the document and embed every sub-schema it references."""
        by_iri = {s.iri: s for s in schemas if s.iri}
        self.document = self.build_document()
        defs: dict[str, Any] = {}
        pending = [f.type for f in self.fields if f.is_ref and f.type in by_iri]
        while pending:
            iri = pending.pop()
            if iri in defs or iri == self.iri or iri is None:
                continue
            sub = by_iri[iri]
            defs[iri] = sub.build_document()
            pending.extend(f.type for f in sub.fields if f.is_ref and f.type in by_iri)
        if defs:
            self.document["$defs"] = defs

    def summary(self) -> SchemaSummary:
        return SchemaSummary(
            id=self.id,
            iri=self.iri,
            name=self.name,
            description=self.description,
            version=self.version,
            status=self.status,
        )


def check_document(document: dict[str, Any], worksheet: str | None = None) -> None:
    """Check a built document against the JSON Schema Draft 7 metaschema.

    Raises:
        SchemaDocumentError: If the document is not a valid JSON Schema.
    """
    try:
        Draft7Validator.check_schema(document)
    except SchemaError as e:
        path = ".".join(str(p) for p in e.absolute_path) or "(root)"
        raise SchemaDocumentError(
            f"Invalid schema document at {path}: {e.message}",
            errors=[e.message],
            worksheet=worksheet,
        ) from e
