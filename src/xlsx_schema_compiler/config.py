"""Configuration management for the xlsx schema compiler.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
XSC_ prefix, or via a .env file in the working directory.

Environment Variables:
    XSC_MAX_FILE_SIZE_MB: Maximum workbook size in MB (default: 20)
    XSC_ARRAY_DELIMITER: Delimiter for multi-value answers (default: ,)
    XSC_TRUTHY_VALUES: Comma-separated truthy keywords (default: true,yes,y,1,+)
    XSC_HELP_TEXT_COLOR: Default help-text color (default: #000000)
    XSC_HELP_TEXT_SIZE: Default help-text size (default: 18px)
    XSC_CHECK_DOCUMENTS: Check built schema documents with jsonschema
        (default: true)
    XSC_LOG_LEVEL: Logging level (default: INFO)
    XSC_DEBUG: Enable debug mode (default: false)

Settings are read once per process; the parser itself only ever sees the
frozen ``ParserConfig`` built from them, so two parses never share state.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from xlsx_schema_compiler.dictionary import FieldTypeRegistry
from xlsx_schema_compiler.value_converters import (
    DEFAULT_FONT_COLOR,
    DEFAULT_FONT_SIZE,
    DEFAULT_TRUTHY_VALUES,
)


@dataclass(frozen=True)
class ParserConfig:
    """Immutable configuration handed to every reader of a single parse."""

    field_types: FieldTypeRegistry = field(default_factory=FieldTypeRegistry.default)
    truthy_values: frozenset[str] = DEFAULT_TRUTHY_VALUES
    array_delimiter: str = ","
    help_text_color: str = DEFAULT_FONT_COLOR
    help_text_size: str = DEFAULT_FONT_SIZE
    check_documents: bool = True
    max_file_size_bytes: int = 20 * 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example .env file:
        XSC_LOG_LEVEL=DEBUG
        XSC_ARRAY_DELIMITER=;
    """

    model_config = SettingsConfigDict(
        env_prefix="XSC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Document Settings
    # =========================================================================

    max_file_size_mb: int = 20
    """Maximum workbook size in megabytes."""

    # =========================================================================
    # Parsing Settings
    # =========================================================================

    array_delimiter: str = ","
    """Delimiter used to split answers of fields that allow multiple answers."""

    truthy_values: str = "true,yes,y,1,+"
    """Comma-separated keywords read as true in boolean columns."""

    help_text_color: str = DEFAULT_FONT_COLOR
    """Fallback color for help-text fields without styling."""

    help_text_size: str = DEFAULT_FONT_SIZE
    """Fallback size for help-text fields without styling."""

    check_documents: bool = True
    """Check each built schema document against the JSON Schema metaschema."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional logging."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        """Validate file size is positive and reasonable."""
        if not 1 <= v <= 500:
            raise ValueError(f"max_file_size_mb must be between 1 and 500, got {v}")
        return v

    @field_validator("array_delimiter")
    @classmethod
    def validate_array_delimiter(cls, v: str) -> str:
        if not v:
            raise ValueError("array_delimiter must be a non-empty string")
        return v

    @field_validator("truthy_values")
    @classmethod
    def validate_truthy_values(cls, v: str) -> str:
        if not any(item.strip() for item in v.split(",")):
            raise ValueError("truthy_values must name at least one keyword")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def truthy_values_set(self) -> frozenset[str]:
        """Get truthy keywords as a lower-cased set."""
        return frozenset(
            item.strip().lower() for item in self.truthy_values.split(",") if item.strip()
        )

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_parser_config(
        self, field_types: FieldTypeRegistry | None = None
    ) -> ParserConfig:
        """Build the frozen configuration used by a single parse.

        Args:
            field_types: Optional registry overriding the built-in field types.

        Returns:
            ParserConfig instance.
        """
        return ParserConfig(
            field_types=(
                field_types if field_types is not None else FieldTypeRegistry.default()
            ),
            truthy_values=self.truthy_values_set,
            array_delimiter=self.array_delimiter,
            help_text_color=self.help_text_color,
            help_text_size=self.help_text_size,
            check_documents=self.check_documents,
            max_file_size_bytes=self.max_file_size_bytes,
        )

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a plain dictionary for logging."""
        return {
            "max_file_size_mb": self.max_file_size_mb,
            "array_delimiter": self.array_delimiter,
            "truthy_values": self.truthy_values,
            "help_text_color": self.help_text_color,
            "help_text_size": self.help_text_size,
            "check_documents": self.check_documents,
            "log_level": self.log_level,
            "debug": self.debug,
        }


# Create the global settings instance
settings = Settings()
