"""Extraction of one schema field from a row of the field table."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from xlsx_schema_compiler.config import ParserConfig
from xlsx_schema_compiler.dictionary import Dictionary, FieldTypeSpec, ParamKind
from xlsx_schema_compiler.header_table import Table
from xlsx_schema_compiler.models import XlsxError
from xlsx_schema_compiler.schema import SchemaField
from xlsx_schema_compiler.services.result import LinkCache
from xlsx_schema_compiler.utils.exceptions import (
    ErrorCode,
    FieldParamsError,
    UnknownFieldTypeError,
)
from xlsx_schema_compiler.utils.logging import get_logger
from xlsx_schema_compiler.value_converters import (
    FontStyle,
    xlsx_to_array,
    xlsx_to_boolean,
    xlsx_to_font,
    xlsx_to_unit,
)
from xlsx_schema_compiler.workbook import Worksheet, cell_text

logger = get_logger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")


@dataclass
class FieldReadResult:
    """A field read from one row (None for skipped rows) and its errors."""

    field: SchemaField | None
    errors: list[XlsxError] = field(default_factory=list)


@dataclass
class _RowContext:
    worksheet: Worksheet
    table: Table
    row: int
    param: str

    def cell(self, header: Dictionary):
        return self.worksheet.get_cell(self.table.get_col(header), self.row)


class FieldReader:
    """Reads field rows of a single worksheet.

    Parameter extraction is selected by the ``ParamKind`` of the matched
    registry entry. A non-empty ``Parameter`` cell always replaces the value
    derived from cell formatting.
    """

    def __init__(self, config: ParserConfig, links: LinkCache) -> None:
        self._config = config
        self._links = links
        self._param_rules: dict[ParamKind, Callable[[SchemaField, _RowContext], None]] = {
            ParamKind.PREFIX: self._read_unit,
            ParamKind.POSTFIX: self._read_unit,
            ParamKind.ENUM: self._read_enum,
            ParamKind.HELP_TEXT: self._read_help_text,
        }

    def read(self, worksheet: Worksheet, table: Table, row: int) -> FieldReadResult:
        answer_col = table.get_col(Dictionary.ANSWER)
        type_col = table.get_col(Dictionary.FIELD_TYPE)
        schema_field = SchemaField()
        errors: list[XlsxError] = []
        try:
            type_label = worksheet.get_text(type_col, row)
            description = worksheet.get_text(table.get_col(Dictionary.QUESTION), row)
            answer = worksheet.get_value(answer_col, row)
            if not (type_label or description or cell_text(answer)):
                return FieldReadResult(None)

            schema_field.name = worksheet.get_path(answer_col, row) or ""
            schema_field.path = worksheet.get_full_path(answer_col, row)
            schema_field.description = description
            schema_field.required = xlsx_to_boolean(
                worksheet.get_value(table.get_col(Dictionary.REQUIRED_FIELD), row),
                self._config.truthy_values,
            )
            schema_field.is_array = xlsx_to_boolean(
                worksheet.get_value(
                    table.get_col(Dictionary.ALLOW_MULTIPLE_ANSWERS), row
                ),
                self._config.truthy_values,
            )

            field_type = self._config.field_types.find_by_name(type_label)
            if field_type is not None:
                self._apply_type(schema_field, field_type)
                errors.extend(
                    self._read_params(worksheet, table, schema_field, field_type, row)
                )
            elif type_label:
                hyperlink = worksheet.get_cell(type_col, row).get_link()
                schema_field.type = self._links.add(type_label, hyperlink)
                schema_field.is_ref = True
            else:
                exc = UnknownFieldTypeError(field=schema_field.name)
                errors.append(
                    XlsxError(
                        code=exc.error_code.value,
                        text=exc.message,
                        message=exc.message,
                        worksheet=worksheet.name,
                        cell=worksheet.get_path(type_col, row),
                        row=row,
                        col=type_col,
                        target=schema_field,
                    )
                )

            if not schema_field.is_ref:
                # Auto-calculated answers are formulas; no example is recorded.
                if type_label != Dictionary.AUTO_CALCULATE.value and cell_text(answer):
                    schema_field.examples = xlsx_to_array(
                        answer, schema_field.is_array, self._config.array_delimiter
                    )

            return FieldReadResult(schema_field, errors)
        except Exception as e:
            logger.error("Failed to parse field", row=row, error=str(e))
            error = XlsxError.from_exception(
                "Failed to parse field.",
                e,
                worksheet=worksheet.name,
                row=row,
                code=ErrorCode.FIELD_PARSE_FAILED,
            )
            error.target = schema_field
            errors.append(error)
            return FieldReadResult(None, errors)

    @staticmethod
    def _apply_type(schema_field: SchemaField, field_type: FieldTypeSpec) -> None:
        schema_field.type = field_type.type
        schema_field.format = field_type.format
        schema_field.pattern = field_type.pattern
        schema_field.unit = field_type.unit
        schema_field.unit_system = field_type.unit_system
        schema_field.custom_type = field_type.custom_type
        schema_field.hidden = field_type.hidden
        schema_field.read_only = field_type.read_only
        schema_field.is_ref = field_type.is_ref

    def _read_params(
        self,
        worksheet: Worksheet,
        table: Table,
        schema_field: SchemaField,
        field_type: FieldTypeSpec,
        row: int,
    ) -> list[XlsxError]:
        rule = self._param_rules.get(field_type.param_kind)
        if rule is None:
            return []
        try:
            context = _RowContext(
                worksheet=worksheet,
                table=table,
                row=row,
                param=worksheet.get_text(table.get_col(Dictionary.PARAMETER), row),
            )
            rule(schema_field, context)
            return []
        except Exception as e:
            logger.warning(
                "Failed to parse field params",
                field=schema_field.name,
                kind=field_type.param_kind.value,
                error=str(e),
            )
            params_error = FieldParamsError(str(e), field=schema_field.name)
            error = XlsxError.from_exception(
                "Failed to parse params.",
                params_error,
                worksheet=worksheet.name,
                row=row,
            )
            error.target = schema_field
            return [error]

    def _read_unit(self, schema_field: SchemaField, ctx: _RowContext) -> None:
        schema_field.unit = xlsx_to_unit(ctx.cell(Dictionary.ANSWER).get_format())
        if ctx.param:
            schema_field.unit = ctx.param

    def _read_enum(self, schema_field: SchemaField, ctx: _RowContext) -> None:
        schema_field.enum = ctx.cell(Dictionary.ANSWER).get_list() or None
        if ctx.param:
            values = [v.strip() for v in _LINE_BREAK.split(ctx.param) if v.strip()]
            schema_field.enum = values or None

    def _read_help_text(self, schema_field: SchemaField, ctx: _RowContext) -> None:
        default = FontStyle(
            color=self._config.help_text_color, size=self._config.help_text_size
        )
        schema_field.font = xlsx_to_font(
            ctx.cell(Dictionary.QUESTION).get_font(), default
        )
        if ctx.param:
            schema_field.font = xlsx_to_font(ctx.param, default)
