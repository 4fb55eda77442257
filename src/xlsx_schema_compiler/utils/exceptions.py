"""Centralized exception classes for the xlsx schema compiler.

This module provides a hierarchy of custom exceptions with error codes and
structured error details. Readers raise these exceptions; the sheet parser
and the top-level driver convert them into ``XlsxError`` records so that a
single broken cell never aborts the whole workbook.

Exception Hierarchy:
    CompilerError (base)
    ├── DocumentError
    │   ├── WorkbookReadError
    │   └── FileTooLargeError
    ├── HeaderError
    │   ├── InvalidHeadersError
    │   └── SchemaDocumentError
    ├── FieldError
    │   ├── UnknownFieldTypeError
    │   └── FieldParamsError
    ├── ConditionError
    │   ├── FormulaParseError
    │   └── FieldNotFoundError
    └── ResolutionError
        └── SubSchemaNotFoundError

Error Codes:
    All errors have a unique error code (e.g., "E3001") that is carried into
    the serialized error list of a parse result.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used by the compiler.

    Error codes are grouped by category:
    - E1xxx: Document errors
    - E2xxx: Header/sheet errors
    - E3xxx: Field errors
    - E4xxx: Condition errors
    - E5xxx: Reference resolution errors
    - E9xxx: Internal/unexpected errors
    """

    # Document errors (E1xxx)
    FILE_READ_ERROR = "E1001"
    FILE_TOO_LARGE = "E1002"
    FILE_PARSE_FAILED = "E1003"

    # Header/sheet errors (E2xxx)
    INVALID_HEADERS = "E2001"
    SHEET_PARSE_FAILED = "E2002"
    INVALID_SCHEMA_DOCUMENT = "E2003"

    # Field errors (E3xxx)
    UNKNOWN_FIELD_TYPE = "E3001"
    FIELD_PARSE_FAILED = "E3002"
    PARAMS_PARSE_FAILED = "E3003"

    # Condition errors (E4xxx)
    CONDITION_PARSE_FAILED = "E4001"
    CONDITION_FIELD_NOT_FOUND = "E4002"

    # Resolution errors (E5xxx)
    SUB_SCHEMA_NOT_FOUND = "E5001"
    TOOL_UPDATE_FAILED = "E5002"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"


class CompilerError(Exception):
    """Base exception for all xlsx schema compiler errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Document Errors (E1xxx)
# =============================================================================


class DocumentError(CompilerError):
    """Base class for whole-document errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FILE_READ_ERROR,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path information.

        Args:
            message: Error message.
            error_code: Error code.
            file_path: Path to the problematic file, when known.
            details: Additional details.
        """
        details = details or {}
        if file_path:
            details["file_path"] = file_path
        super().__init__(message, error_code, details)
        self.file_path = file_path


class WorkbookReadError(DocumentError):
    """Raised when the raw bytes cannot be loaded as a workbook."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_READ_ERROR,
            file_path=file_path,
            details=details,
        )


class FileTooLargeError(DocumentError):
    """Raised when a document exceeds the maximum allowed size."""

    def __init__(
        self,
        file_size: int,
        max_size: int,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            file_size: Actual document size in bytes.
            max_size: Maximum allowed size in bytes.
            file_path: Optional file path.
            details: Additional details.
        """
        details = details or {}
        details["file_size_bytes"] = file_size
        details["max_size_bytes"] = max_size
        message = (
            f"File size ({file_size} bytes) exceeds maximum "
            f"allowed size ({max_size} bytes)"
        )
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_TOO_LARGE,
            file_path=file_path,
            details=details,
        )
        self.file_size = file_size
        self.max_size = max_size


# =============================================================================
# Header Errors (E2xxx)
# =============================================================================


class HeaderError(CompilerError):
    """Base class for worksheet structure errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.SHEET_PARSE_FAILED,
        worksheet: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if worksheet:
            details["worksheet"] = worksheet
        super().__init__(message, error_code, details)
        self.worksheet = worksheet


class InvalidHeadersError(HeaderError):
    """Raised when a required header is missing from a worksheet."""

    def __init__(
        self,
        header: str,
        worksheet: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the missing header title.

        Args:
            header: Title of the first missing header.
            worksheet: Worksheet name.
            details: Additional details.
        """
        details = details or {}
        details["header"] = header
        super().__init__(
            message=f'Invalid headers. Header "{header}" not set.',
            error_code=ErrorCode.INVALID_HEADERS,
            worksheet=worksheet,
            details=details,
        )
        self.header = header


class SchemaDocumentError(HeaderError):
    """Raised when a built schema document is not a valid JSON Schema."""

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        worksheet: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if errors:
            details["validation_errors"] = errors
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_SCHEMA_DOCUMENT,
            worksheet=worksheet,
            details=details,
        )
        self.errors = errors or []


# =============================================================================
# Field Errors (E3xxx)
# =============================================================================


class FieldError(CompilerError):
    """Base class for errors scoped to a single field row."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FIELD_PARSE_FAILED,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the field name.

        Args:
            message: Error message.
            error_code: Error code.
            field: Name (answer cell address) of the affected field.
            details: Additional details.
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, error_code, details)
        self.field = field


class UnknownFieldTypeError(FieldError):
    """Raised when a field row has no field type."""

    def __init__(
        self,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message="Unknown field type.",
            error_code=ErrorCode.UNKNOWN_FIELD_TYPE,
            field=field,
            details=details,
        )


class FieldParamsError(FieldError):
    """Raised when type-specific parameters of a field are malformed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.PARAMS_PARSE_FAILED,
            field=field,
            details=details,
        )


# =============================================================================
# Condition Errors (E4xxx)
# =============================================================================


class ConditionError(CompilerError):
    """Base class for visibility condition errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONDITION_PARSE_FAILED,
        formula: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if formula:
            details["formula"] = formula
        super().__init__(message, error_code, details)
        self.formula = formula


class FormulaParseError(ConditionError):
    """Raised when a visibility formula falls outside the supported grammar."""

    def __init__(
        self,
        formula: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Failed to parse formulae: {formula}.",
            error_code=ErrorCode.CONDITION_PARSE_FAILED,
            formula=formula,
            details=details,
        )


class FieldNotFoundError(ConditionError):
    """Raised when a condition references a field missing from the sheet."""

    def __init__(
        self,
        field: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["field"] = field
        super().__init__(
            message=f"Field ({field}) not found.",
            error_code=ErrorCode.CONDITION_FIELD_NOT_FOUND,
            details=details,
        )
        self.field = field


# =============================================================================
# Resolution Errors (E5xxx)
# =============================================================================


class ResolutionError(CompilerError):
    """Base class for cross-sheet reference resolution errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.SUB_SCHEMA_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


class SubSchemaNotFoundError(ResolutionError):
    """Raised when a reference-typed field cannot be resolved."""

    def __init__(
        self,
        reference: str | None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["reference"] = reference
        super().__init__(
            message=f"Sub-schema ({reference}) not found.",
            error_code=ErrorCode.SUB_SCHEMA_NOT_FOUND,
            details=details,
        )
        self.reference = reference
