"""Pydantic models and enums shared by the compiler and its output."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from xlsx_schema_compiler.utils.exceptions import CompilerError, ErrorCode


class SchemaEntity(str, Enum):
    """Entity category declared in a worksheet's ``Schema Type`` row."""

    NONE = "NONE"
    VC = "VC"
    EVC = "EVC"


class SchemaCategory(str, Enum):
    """Whether a worksheet describes a policy schema or a tool reference."""

    POLICY = "POLICY"
    TOOL = "TOOL"


class SchemaStatus(str, Enum):
    """Publication status of a compiled schema."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class XlsxError(BaseModel):
    """A single error collected while compiling a workbook.

    Errors are never raised past the sheet parser; they are recorded here
    with as much location context as is known. ``target`` points at the
    field, schema or condition the error belongs to and is never serialized.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: str = Field(default="error", description="Error kind")
    code: str | None = Field(default=None, description="Machine-readable code")
    text: str = Field(..., description="Human-readable summary")
    message: str | None = Field(default=None, description="Underlying detail")
    worksheet: str | None = Field(default=None, description="Worksheet name")
    cell: str | None = Field(default=None, description="Cell address, e.g. 'G11'")
    row: int | None = Field(default=None, description="1-based row number")
    col: int | None = Field(default=None, description="1-based column number")
    target: Any = Field(default=None, exclude=True)

    @classmethod
    def from_exception(
        cls,
        text: str,
        error: BaseException,
        *,
        worksheet: str | None = None,
        cell: str | None = None,
        row: int | None = None,
        col: int | None = None,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    ) -> "XlsxError":
        """Create an error record from a caught exception.

        Args:
            text: Summary shown to the user (e.g. "Failed to parse field.").
            error: The exception that was caught.
            worksheet: Worksheet name, when known.
            cell: Cell address, when known.
            row: Row number, when known.
            col: Column number, when known.
            code: Code used when the exception carries none of its own.

        Returns:
            XlsxError instance.
        """
        if isinstance(error, CompilerError):
            code = error.error_code
            message = error.message
        else:
            message = str(error)
        return cls(
            code=code.value,
            text=text,
            message=message,
            worksheet=worksheet,
            cell=cell,
            row=row,
            col=col,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SchemaSummary(BaseModel):
    """Summary projection of a compiled schema."""

    id: str | None = Field(default=None, description="Stable content identifier")
    iri: str | None = Field(default=None, description="Schema IRI ('#<id>')")
    name: str | None = Field(default=None, description="Schema name")
    description: str | None = Field(default=None, description="Schema description")
    version: str = Field(default="", description="Schema version")
    status: SchemaStatus = Field(default=SchemaStatus.DRAFT, description="Status")


class ToolIdentity(BaseModel):
    """Identity triple of a policy tool referenced by a workbook."""

    model_config = ConfigDict(populate_by_name=True)

    uuid: str | None = Field(default=None, description="Tool UUID")
    name: str | None = Field(default=None, description="Tool name")
    message_id: str | None = Field(
        default=None,
        alias="messageId",
        description="Message identifier of the published tool",
    )


class CompileResultResponse(BaseModel):
    """Serialized output of a workbook compilation."""

    schemas: list[SchemaSummary] = Field(default_factory=list)
    tools: list[ToolIdentity] = Field(default_factory=list)
    errors: list[XlsxError] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemas": [s.model_dump(mode="json") for s in self.schemas],
            "tools": [t.model_dump(by_alias=True) for t in self.tools],
            "errors": [e.to_dict() for e in self.errors],
        }
