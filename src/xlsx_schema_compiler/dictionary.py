"""Header vocabulary and the field-type registry.

The registry is an explicit, immutable value handed to the readers through
``ParserConfig``. Each entry carries a ``ParamKind`` tag that selects its
parameter-extraction rule, so dispatch never inspects type names at runtime.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class Dictionary(str, Enum):
    """Labels recognised in schema worksheets."""

    SCHEMA_NAME = "Schema"
    SCHEMA_DESCRIPTION = "Description"
    SCHEMA_TYPE = "Schema Type"
    SCHEMA_TOOL = "Tool"
    SCHEMA_TOOL_ID = "Tool Id"
    REQUIRED_FIELD = "Required Field"
    FIELD_TYPE = "Field Type"
    PARAMETER = "Parameter"
    VISIBILITY = "Visibility"
    QUESTION = "Question"
    ALLOW_MULTIPLE_ANSWERS = "Allow Multiple Answers"
    ANSWER = "Answer"
    AUTO_CALCULATE = "Auto-Calculate"


SCHEMA_HEADERS: tuple[Dictionary, ...] = (
    Dictionary.SCHEMA_NAME,
    Dictionary.SCHEMA_DESCRIPTION,
    Dictionary.SCHEMA_TYPE,
    Dictionary.SCHEMA_TOOL,
    Dictionary.SCHEMA_TOOL_ID,
)

FIELD_HEADERS: tuple[Dictionary, ...] = (
    Dictionary.REQUIRED_FIELD,
    Dictionary.FIELD_TYPE,
    Dictionary.PARAMETER,
    Dictionary.VISIBILITY,
    Dictionary.QUESTION,
    Dictionary.ALLOW_MULTIPLE_ANSWERS,
    Dictionary.ANSWER,
)

REQUIRED_FIELD_HEADERS: tuple[Dictionary, ...] = (
    Dictionary.REQUIRED_FIELD,
    Dictionary.FIELD_TYPE,
    Dictionary.QUESTION,
    Dictionary.ALLOW_MULTIPLE_ANSWERS,
    Dictionary.ANSWER,
)


class ParamKind(str, Enum):
    """Parameter-extraction rule attached to a field type."""

    NONE = "none"
    PREFIX = "prefix"
    POSTFIX = "postfix"
    ENUM = "enum"
    HELP_TEXT = "help_text"


@dataclass(frozen=True)
class FieldTypeSpec:
    """Type metadata copied onto a field whose type label is recognised."""

    name: str
    type: str | None
    format: str | None = None
    pattern: str | None = None
    unit: str | None = None
    unit_system: str | None = None
    custom_type: str | None = None
    hidden: bool = False
    read_only: bool = False
    is_ref: bool = False
    param_kind: ParamKind = ParamKind.NONE


DEFAULT_FIELD_TYPES: tuple[FieldTypeSpec, ...] = (
    FieldTypeSpec(name="Number", type="number"),
    FieldTypeSpec(name="Integer", type="integer"),
    FieldTypeSpec(name="String", type="string"),
    FieldTypeSpec(name="Boolean", type="boolean"),
    FieldTypeSpec(name="Date", type="string", format="date"),
    FieldTypeSpec(name="Time", type="string", format="time"),
    FieldTypeSpec(name="DateTime", type="string", format="date-time"),
    FieldTypeSpec(name="Duration", type="string", format="duration"),
    FieldTypeSpec(name="URL", type="string", format="url"),
    FieldTypeSpec(name="URI", type="string", format="uri"),
    FieldTypeSpec(name="Email", type="string", format="email"),
    FieldTypeSpec(name="Image", type="string", pattern="^ipfs://.+"),
    FieldTypeSpec(name="Account", type="string", custom_type="hederaAccount"),
    FieldTypeSpec(
        name="Prefix",
        type="number",
        unit_system="prefix",
        param_kind=ParamKind.PREFIX,
    ),
    FieldTypeSpec(
        name="Postfix",
        type="number",
        unit_system="postfix",
        param_kind=ParamKind.POSTFIX,
    ),
    FieldTypeSpec(
        name="Enum",
        type="string",
        custom_type="enum",
        param_kind=ParamKind.ENUM,
    ),
    FieldTypeSpec(
        name="Help Text",
        type="null",
        read_only=True,
        param_kind=ParamKind.HELP_TEXT,
    ),
    FieldTypeSpec(name="GeoJSON", type="#GeoJSON", custom_type="geo", is_ref=True),
    FieldTypeSpec(
        name="SentinelHUB",
        type="#SentinelHUB",
        custom_type="sentinel",
        is_ref=True,
    ),
    FieldTypeSpec(
        name=Dictionary.AUTO_CALCULATE.value,
        type="number",
        read_only=True,
    ),
)

# Reference types that resolve to built-in definitions rather than sheets.
BUILTIN_REF_TYPES: frozenset[str] = frozenset({"#GeoJSON", "#SentinelHUB"})


@dataclass(frozen=True)
class FieldTypeRegistry:
    """Immutable lookup table of known field types."""

    entries: Mapping[str, FieldTypeSpec] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_specs(cls, specs: Iterable[FieldTypeSpec]) -> FieldTypeRegistry:
        return cls(entries=MappingProxyType({spec.name: spec for spec in specs}))

    @classmethod
    def default(cls) -> FieldTypeRegistry:
        return cls.from_specs(DEFAULT_FIELD_TYPES)

    def find_by_name(self, name: object) -> FieldTypeSpec | None:
        """Return the registry entry for a type label, if any."""
        if not isinstance(name, str):
            return None
        return self.entries.get(name.strip())

    def __contains__(self, name: object) -> bool:
        return self.find_by_name(name) is not None

    def __iter__(self) -> Iterator[FieldTypeSpec]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)
