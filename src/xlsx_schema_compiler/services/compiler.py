"""Workbook-to-schema compilation driver.

Worksheets are parsed strictly in order, then tool stubs are resolved and
reference-typed fields are linked to the schemas they name. Failures that
concern a single row or sheet are recorded and parsing goes on; only a
failure of the whole document (unreadable bytes, oversize buffer) aborts
the parse.
"""

import asyncio
import uuid
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from xlsx_schema_compiler.config import ParserConfig
from xlsx_schema_compiler.models import SchemaCategory, ToolIdentity, XlsxError
from xlsx_schema_compiler.services.result import XlsxResult
from xlsx_schema_compiler.services.sheet_parser import SheetParser
from xlsx_schema_compiler.utils.exceptions import ErrorCode, FileTooLargeError
from xlsx_schema_compiler.utils.logging import (
    LogContext,
    ProgressTracker,
    get_logger,
    timed_operation,
)
from xlsx_schema_compiler.workbook import Workbook

logger = get_logger(__name__)

# message_id -> (tool identity, the tool's schemas) or None when unknown.
ToolResolver = Callable[[str], tuple[ToolIdentity, Iterable[Any]] | None]


class XlsxToJson:
    """Compiles an ``.xlsx`` workbook into JSON-Schema documents.

    Each call to ``parse`` is independent: the configuration is immutable
    and all mutable state lives in the returned ``XlsxResult``.

    Example:
        >>> compiler = XlsxToJson()
        >>> result = compiler.parse(Path("policy.xlsx").read_bytes())
        >>> [s.name for s in result.schemas]
    """

    def __init__(self, config: ParserConfig | None = None) -> None:
        self.config = config or ParserConfig()

    def parse(
        self,
        buffer: bytes,
        tool_resolver: ToolResolver | None = None,
        result: XlsxResult | None = None,
    ) -> XlsxResult:
        """Parse workbook bytes.

        Args:
            buffer: Raw ``.xlsx`` content.
            tool_resolver: Optional lookup for tools referenced by tool
                worksheets.
            result: Optional result to fill; it is cleared first.

        Returns:
            The populated result. Never raises for malformed input.
        """
        result = result if result is not None else XlsxResult()
        result.clear()
        with LogContext(parse_id=str(uuid.uuid4())):
            try:
                self._check_size(len(buffer))
                workbook = Workbook().read(buffer)
            except Exception as e:
                self._fail(result, e)
                return result
            return self._compile(workbook, result, tool_resolver)

    async def aparse(
        self,
        buffer: bytes,
        tool_resolver: ToolResolver | None = None,
        result: XlsxResult | None = None,
    ) -> XlsxResult:
        """Async variant of ``parse``; the workbook is loaded in a thread."""
        result = result if result is not None else XlsxResult()
        result.clear()
        with LogContext(parse_id=str(uuid.uuid4())):
            try:
                self._check_size(len(buffer))
                workbook = await asyncio.to_thread(Workbook().read, buffer)
            except Exception as e:
                self._fail(result, e)
                return result
            return self._compile(workbook, result, tool_resolver)

    def parse_file(
        self,
        file_path: str | Path,
        tool_resolver: ToolResolver | None = None,
    ) -> XlsxResult:
        """Parse a workbook stored on disk."""
        path = Path(file_path)
        result = XlsxResult()
        with LogContext(parse_id=str(uuid.uuid4())):
            logger.info("Parsing workbook", file_path=str(path))
            try:
                if path.exists():
                    self._check_size(path.stat().st_size, file_path=str(path))
                workbook = Workbook().read_path(path)
            except Exception as e:
                self._fail(result, e)
                return result
            return self._compile(workbook, result, tool_resolver)

    def _check_size(self, size: int, file_path: str | None = None) -> None:
        if size > self.config.max_file_size_bytes:
            raise FileTooLargeError(
                size, self.config.max_file_size_bytes, file_path=file_path
            )

    def _compile(
        self,
        workbook: Workbook,
        result: XlsxResult,
        tool_resolver: ToolResolver | None,
    ) -> XlsxResult:
        try:
            with timed_operation(logger, "parse_workbook") as metrics:
                self._parse_sheets(workbook, result)
                self._resolve_tools(result, tool_resolver)
                result.update_schemas()
                metrics.sheets_processed = len(workbook.book.worksheets)
                metrics.schemas_built = len(result.schemas)
                metrics.tools_found = len(result.get_tool_ids())
                metrics.errors_recorded = len(result.errors)
        except Exception as e:
            self._fail(result, e)
            return result

        logger.log_parse_result(
            schemas=len(result.schemas),
            tools=len(result.get_tool_ids()),
            errors=len(result.errors),
            duration_seconds=metrics.duration_seconds,
        )
        return result

    def _parse_sheets(self, workbook: Workbook, result: XlsxResult) -> None:
        parser = SheetParser(self.config, result.links)
        tracker = ProgressTracker(
            logger, "Parsing worksheets", total=len(workbook.book.worksheets)
        )
        for worksheet in workbook.get_worksheets():
            parsed = parser.parse(worksheet)
            for error in parsed.errors:
                result.add_error(error)
            schema = parsed.schema
            if schema.category == SchemaCategory.TOOL:
                result.add_tool(worksheet.name, schema.name, schema.message_id or "")
            else:
                result.add_schema(worksheet.name, schema.name, schema)
            tracker.update(details=worksheet.name)
        tracker.complete()

    @staticmethod
    def _resolve_tools(
        result: XlsxResult, tool_resolver: ToolResolver | None
    ) -> None:
        if tool_resolver is None:
            return
        for tool in result.get_tool_ids():
            if tool.message_id is None:
                continue
            resolved = tool_resolver(tool.message_id)
            if resolved is None:
                logger.warning("Tool not resolved", message_id=tool.message_id)
                continue
            identity, schemas = resolved
            result.update_tool(identity, schemas)

    @staticmethod
    def _fail(result: XlsxResult, exc: Exception) -> None:
        logger.error("Failed to parse file", error=str(exc))
        result.clear()
        result.add_error(
            XlsxError.from_exception(
                "Failed to parse file.", exc, code=ErrorCode.FILE_PARSE_FAILED
            )
        )
