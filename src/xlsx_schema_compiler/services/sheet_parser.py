"""Per-worksheet compilation into a schema or a tool stub."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from xlsx_schema_compiler.config import ParserConfig
from xlsx_schema_compiler.dictionary import Dictionary
from xlsx_schema_compiler.header_table import Table
from xlsx_schema_compiler.models import SchemaCategory, XlsxError
from xlsx_schema_compiler.schema import Condition, Schema, SchemaField, check_document
from xlsx_schema_compiler.services.condition_reader import ConditionReader
from xlsx_schema_compiler.services.field_reader import FieldReader
from xlsx_schema_compiler.services.result import LinkCache
from xlsx_schema_compiler.utils.exceptions import ErrorCode, InvalidHeadersError
from xlsx_schema_compiler.utils.logging import LogContext, get_logger
from xlsx_schema_compiler.value_converters import xlsx_to_entity
from xlsx_schema_compiler.workbook import INVALID_INDEX, Worksheet

logger = get_logger(__name__)


class SheetParseState(str, Enum):
    """Stages a worksheet goes through, in order."""

    SCAN_SCHEMA_HEADERS = "scan_schema_headers"
    SCAN_FIELD_HEADERS = "scan_field_headers"
    VALIDATE_HEADERS = "validate_headers"
    READ_SCHEMA_METADATA = "read_schema_metadata"
    CLASSIFY = "classify"
    READ_FIELDS = "read_fields"
    READ_CONDITIONS = "read_conditions"
    FINALIZE = "finalize"


@dataclass
class SheetParseResult:
    """Schema built from a worksheet plus the errors recorded on the way.

    The schema may be incomplete whenever ``errors`` is non-empty.
    """

    schema: Schema
    errors: list[XlsxError] = field(default_factory=list)
    state: SheetParseState = SheetParseState.SCAN_SCHEMA_HEADERS


class SheetParser:
    """Builds one ``Schema`` per worksheet.

    Nothing raised while parsing escapes ``parse``: exceptions become a
    single ``Failed to parse sheet.`` error and the partial schema is
    returned.
    """

    def __init__(self, config: ParserConfig, links: LinkCache) -> None:
        self._config = config
        self._field_reader = FieldReader(config, links)
        self._condition_reader = ConditionReader(config)

    def parse(self, worksheet: Worksheet) -> SheetParseResult:
        schema = Schema(
            name=worksheet.name,
            category=SchemaCategory.POLICY,
            worksheet=worksheet.name,
        )
        result = SheetParseResult(schema=schema)
        with LogContext(worksheet=worksheet.name):
            try:
                self._parse(worksheet, result)
            except Exception as e:
                logger.exception("Failed to parse sheet", state=result.state.value)
                error = XlsxError.from_exception(
                    "Failed to parse sheet.",
                    e,
                    worksheet=worksheet.name,
                    code=ErrorCode.SHEET_PARSE_FAILED,
                )
                error.target = schema
                result.errors.append(error)
        return result

    def _parse(self, worksheet: Worksheet, result: SheetParseResult) -> None:
        schema = result.schema
        sheet_range = worksheet.get_range()
        table = Table(sheet_range.s)
        start_col = sheet_range.s.c
        end_col = sheet_range.e.c
        start_row = sheet_range.s.r

        result.state = SheetParseState.SCAN_SCHEMA_HEADERS
        header_row = INVALID_INDEX
        for row in range(start_row, sheet_range.e.r + 1):
            title = worksheet.get_text(start_col, row)
            if row == start_row and table.is_name(title):
                table.set_row(Dictionary.SCHEMA_NAME, row)
            if table.is_schema_header(title):
                table.set_row(title, row)
            if table.is_field_header(title):
                header_row = row
                break

        result.state = SheetParseState.SCAN_FIELD_HEADERS
        if header_row != INVALID_INDEX:
            for col in range(start_col, end_col + 1):
                value = worksheet.get_text(col, header_row)
                if table.is_field_header(value):
                    table.set_col(value, col)

        result.state = SheetParseState.VALIDATE_HEADERS
        error_header = table.get_error_header()
        if error_header is not None:
            exc = InvalidHeadersError(error_header.title, worksheet=worksheet.name)
            logger.warning("Invalid headers", header=error_header.title)
            result.errors.append(
                XlsxError(
                    code=exc.error_code.value,
                    text=exc.message,
                    message=exc.message,
                    worksheet=worksheet.name,
                    target=schema,
                )
            )
            return
        table.set_end(end_col, header_row)

        result.state = SheetParseState.READ_SCHEMA_METADATA
        self._read_metadata(worksheet, table, schema)

        result.state = SheetParseState.CLASSIFY
        tool_name = self._metadata(worksheet, table, Dictionary.SCHEMA_TOOL)
        message_id = self._metadata(worksheet, table, Dictionary.SCHEMA_TOOL_ID)
        if tool_name or message_id:
            schema.category = SchemaCategory.TOOL
            schema.message_id = message_id or tool_name
            logger.info("Tool reference found", tool=tool_name, message_id=message_id)
            return

        result.state = SheetParseState.READ_FIELDS
        fields: list[SchemaField] = []
        field_cache: dict[str, SchemaField] = {}
        for row in range(table.end.r + 1, sheet_range.e.r + 1):
            read = self._field_reader.read(worksheet, table, row)
            result.errors.extend(read.errors)
            if read.field is not None:
                fields.append(read.field)
                field_cache[read.field.name] = read.field

        result.state = SheetParseState.READ_CONDITIONS
        conditions: list[Condition] = []
        for row in range(table.end.r + 1, sheet_range.e.r + 1):
            read_condition = self._condition_reader.read(
                worksheet, table, field_cache, conditions, row
            )
            result.errors.extend(read_condition.errors)
            if read_condition.condition is not None and read_condition.is_new:
                conditions.append(read_condition.condition)

        result.state = SheetParseState.FINALIZE
        schema.update(fields, conditions)
        if self._config.check_documents:
            check_document(schema.document, worksheet=worksheet.name)
        schema.update_iri()
        logger.info(
            "Worksheet parsed",
            schema=schema.name,
            fields=len(fields),
            conditions=len(conditions),
            errors=len(result.errors),
        )

    def _read_metadata(self, worksheet: Worksheet, table: Table, schema: Schema) -> None:
        start_col = table.start.c
        name_row = table.get_row(Dictionary.SCHEMA_NAME)
        if name_row != INVALID_INDEX:
            name = worksheet.get_text(start_col, name_row)
            if name == Dictionary.SCHEMA_NAME.value:
                # Labelled form: "Schema | <name>".
                name = worksheet.get_text(start_col + 1, name_row)
            schema.name = name
        if table.get_row(Dictionary.SCHEMA_DESCRIPTION) != INVALID_INDEX:
            schema.description = self._metadata(
                worksheet, table, Dictionary.SCHEMA_DESCRIPTION
            )
        if table.get_row(Dictionary.SCHEMA_TYPE) != INVALID_INDEX:
            schema.entity = xlsx_to_entity(
                self._metadata(worksheet, table, Dictionary.SCHEMA_TYPE)
            )

    @staticmethod
    def _metadata(worksheet: Worksheet, table: Table, header: Dictionary) -> str:
        """Value written next to a schema-level label, or ``""``."""
        row = table.get_row(header)
        if row == INVALID_INDEX:
            return ""
        return worksheet.get_text(table.start.c + 1, row)
