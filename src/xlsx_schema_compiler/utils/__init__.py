"""Utilities package for the xlsx schema compiler.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from xlsx_schema_compiler.utils.exceptions import (
    CompilerError,
    ConditionError,
    DocumentError,
    ErrorCode,
    FieldError,
    HeaderError,
    ResolutionError,
)
from xlsx_schema_compiler.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_parse_id,
    set_parse_id,
)

__all__ = [
    # Exceptions
    "CompilerError",
    "ConditionError",
    "DocumentError",
    "ErrorCode",
    "FieldError",
    "HeaderError",
    "ResolutionError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_parse_id",
    "set_parse_id",
]
