"""Tests for configuration management module."""

import logging
import os
from dataclasses import FrozenInstanceError
from unittest.mock import patch

import pytest

from xlsx_schema_compiler.config import ParserConfig, Settings
from xlsx_schema_compiler.dictionary import FieldTypeRegistry, FieldTypeSpec


class TestSettings:
    """Tests for the Settings class."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.max_file_size_mb == 20
        assert settings.array_delimiter == ","
        assert settings.truthy_values == "true,yes,y,1,+"
        assert settings.help_text_color == "#000000"
        assert settings.help_text_size == "18px"
        assert settings.check_documents is True
        assert settings.log_level == "INFO"
        assert settings.debug is False

    def test_environment_variable_prefix(self) -> None:
        """Test that environment variables use XSC_ prefix."""
        env_vars = {
            "XSC_MAX_FILE_SIZE_MB": "5",
            "XSC_ARRAY_DELIMITER": ";",
            "XSC_LOG_LEVEL": "debug",
            "XSC_CHECK_DOCUMENTS": "false",
        }
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        assert settings.max_file_size_mb == 5
        assert settings.array_delimiter == ";"
        assert settings.log_level == "DEBUG"
        assert settings.check_documents is False

    def test_invalid_log_level(self) -> None:
        with patch.dict(os.environ, {"XSC_LOG_LEVEL": "LOUD"}, clear=True):
            with pytest.raises(ValueError, match="Invalid log level"):
                Settings(_env_file=None)

    def test_file_size_bounds(self) -> None:
        with patch.dict(os.environ, {"XSC_MAX_FILE_SIZE_MB": "0"}, clear=True):
            with pytest.raises(ValueError, match="between 1 and 500"):
                Settings(_env_file=None)

    def test_empty_truthy_values_rejected(self) -> None:
        with patch.dict(os.environ, {"XSC_TRUTHY_VALUES": " , "}, clear=True):
            with pytest.raises(ValueError, match="at least one keyword"):
                Settings(_env_file=None)

    def test_computed_properties(self) -> None:
        with patch.dict(os.environ, {"XSC_TRUTHY_VALUES": "Ja, Oui"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.max_file_size_bytes == 20 * 1024 * 1024
        assert settings.truthy_values_set == frozenset({"ja", "oui"})
        assert settings.log_level_int == logging.INFO

    def test_to_parser_config(self) -> None:
        with patch.dict(os.environ, {"XSC_ARRAY_DELIMITER": "|"}, clear=True):
            settings = Settings(_env_file=None)

        config = settings.to_parser_config()
        assert isinstance(config, ParserConfig)
        assert config.array_delimiter == "|"
        assert config.truthy_values == frozenset({"true", "yes", "y", "1", "+"})
        assert "Number" in config.field_types

    def test_to_parser_config_with_custom_registry(self) -> None:
        registry = FieldTypeRegistry.from_specs([FieldTypeSpec(name="Text", type="string")])
        with patch.dict(os.environ, {}, clear=True):
            config = Settings(_env_file=None).to_parser_config(field_types=registry)

        assert config.field_types is registry
        assert "Number" not in config.field_types

    def test_to_parser_config_keeps_empty_registry(self) -> None:
        registry = FieldTypeRegistry.from_specs([])
        with patch.dict(os.environ, {}, clear=True):
            config = Settings(_env_file=None).to_parser_config(field_types=registry)

        assert config.field_types is registry
        assert len(config.field_types) == 0

    def test_to_safe_dict(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            data = Settings(_env_file=None).to_safe_dict()

        assert data["log_level"] == "INFO"
        assert data["max_file_size_mb"] == 20


class TestParserConfig:
    def test_is_immutable(self) -> None:
        config = ParserConfig()
        with pytest.raises(FrozenInstanceError):
            config.array_delimiter = ";"  # type: ignore[misc]

    def test_instances_do_not_share_registries_by_mutation(self) -> None:
        first = ParserConfig()
        second = ParserConfig(
            field_types=FieldTypeRegistry.from_specs([FieldTypeSpec(name="Text", type="string")])
        )
        assert "Number" in first.field_types
        assert "Number" not in second.field_types
