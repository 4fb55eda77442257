"""Shared fixtures: policy workbooks built in memory with openpyxl."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from io import BytesIO
from typing import Any

import pytest
from openpyxl import Workbook as OpenpyxlWorkbook

from xlsx_schema_compiler.config import ParserConfig
from xlsx_schema_compiler.services.result import LinkCache
from xlsx_schema_compiler.utils.logging import clear_context
from xlsx_schema_compiler.workbook import Workbook, Worksheet

FIELD_HEADER_ROW = [
    "Required Field",
    "Field Type",
    "Parameter",
    "Visibility",
    "Question",
    "Allow Multiple Answers",
    "Answer",
]

# Rows are lists of cell values starting at column A; None leaves a cell empty.
SheetRows = Sequence[Sequence[Any]]


def policy_sheet(
    name: str,
    fields: SheetRows,
    description: str = "",
    schema_type: str | None = "Verifiable Credentials",
) -> list[list[Any]]:
    """Rows of a schema worksheet: name, metadata, field headers, fields.

    With the default metadata the field header sits on row 4, so the
    first field row is row 5 and its answer cell is ``G5``.
    """
    rows: list[list[Any]] = [[name], ["Description", description]]
    if schema_type is not None:
        rows.append(["Schema Type", schema_type])
    rows.append(list(FIELD_HEADER_ROW))
    rows.extend(list(r) for r in fields)
    return rows


def tool_sheet(name: str, tool: str, message_id: str) -> list[list[Any]]:
    return [
        [name],
        ["Tool", tool],
        ["Tool Id", message_id],
        list(FIELD_HEADER_ROW),
    ]


def build_workbook(sheets: dict[str, SheetRows]) -> OpenpyxlWorkbook:
    book = OpenpyxlWorkbook()
    book.remove(book.active)
    for title, rows in sheets.items():
        sheet = book.create_sheet(title)
        for r, row in enumerate(rows, start=1):
            for c, value in enumerate(row, start=1):
                if value is not None:
                    sheet.cell(row=r, column=c, value=value)
    return book


def to_bytes(book: OpenpyxlWorkbook) -> bytes:
    buffer = BytesIO()
    book.save(buffer)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def _clear_log_context():
    clear_context()
    yield
    clear_context()


@pytest.fixture
def config() -> ParserConfig:
    return ParserConfig()


@pytest.fixture
def links() -> LinkCache:
    return LinkCache()


@pytest.fixture
def make_workbook() -> Callable[..., bytes]:
    """Build workbook bytes from ``{sheet title: rows}``.

    An optional ``customize(book)`` callback runs before saving, for
    formatting, hyperlinks and data validations.
    """

    def _make(
        sheets: dict[str, SheetRows],
        customize: Callable[[OpenpyxlWorkbook], None] | None = None,
    ) -> bytes:
        book = build_workbook(sheets)
        if customize is not None:
            customize(book)
        return to_bytes(book)

    return _make


@pytest.fixture
def load_sheet(make_workbook) -> Callable[..., Worksheet]:
    """Build a workbook and return one of its sheets, reloaded from bytes."""

    def _load(
        sheets: dict[str, SheetRows],
        title: str | None = None,
        customize: Callable[[OpenpyxlWorkbook], None] | None = None,
    ) -> Worksheet:
        workbook = Workbook().read(make_workbook(sheets, customize))
        for worksheet in workbook.get_worksheets():
            if title is None or worksheet.name == title:
                return worksheet
        raise KeyError(title)

    return _load


@pytest.fixture
def sensor_rows() -> list[list[Any]]:
    """A sensor schema with a driver question and two dependent fields."""
    return policy_sheet(
        "Sensor",
        [
            ["Yes", "Number", None, None, "Temperature", "No", 21.5],
            ["No", "String", None, None, "Calibrated?", "No", "Yes"],
            ["No", "Date", None, '=EXACT(G6,"Yes")', "Calibration date", "No", "2024-01-01"],
            ["No", "String", None, '=NOT(EXACT(G6,"Yes"))', "Reason", "No", "n/a"],
        ],
        description="Sensor readings",
    )


@pytest.fixture
def policy_rows() -> Callable[..., list[list[Any]]]:
    return policy_sheet


@pytest.fixture
def tool_rows() -> Callable[..., list[list[Any]]]:
    return tool_sheet
