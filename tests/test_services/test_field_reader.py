"""Tests for reading field rows."""

from __future__ import annotations

import pytest
from openpyxl.styles import Font
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.hyperlink import Hyperlink as OpenpyxlHyperlink

from xlsx_schema_compiler.header_table import Table
from xlsx_schema_compiler.services.field_reader import FieldReader
from xlsx_schema_compiler.utils.exceptions import ErrorCode
from xlsx_schema_compiler.workbook import Worksheet

HEADER_ROW = 4
FIRST_ROW = 5


def field_table(ws: Worksheet) -> Table:
    table = Table(ws.get_range().s)
    for col in range(1, ws.get_range().e.c + 1):
        title = ws.get_text(col, HEADER_ROW)
        if table.is_field_header(title):
            table.set_col(title, col)
    table.set_end(ws.get_range().e.c, HEADER_ROW)
    return table


@pytest.fixture
def read_row(load_sheet, policy_rows, config, links):
    """Read one field row of a single-sheet workbook."""

    def _read(fields, row=FIRST_ROW, customize=None, extra_sheets=None):
        sheets = {"Sensor": policy_rows("Sensor", fields)}
        sheets.update(extra_sheets or {})
        ws = load_sheet(sheets, "Sensor", customize)
        return FieldReader(config, links).read(ws, field_table(ws), row)

    return _read


class TestFieldReader:
    """Tests for FieldReader.read."""

    def test_simple_field(self, read_row) -> None:
        result = read_row([["Yes", "Number", None, None, "Temperature", "No", 21.5]])

        field = result.field
        assert result.errors == []
        assert field.name == "G5"
        assert field.path in ("Sensor!G5", "'Sensor'!G5")
        assert field.description == "Temperature"
        assert field.required is True
        assert field.is_array is False
        assert field.type == "number"
        assert field.examples == [21.5]

    def test_format_from_registry(self, read_row) -> None:
        field = read_row([["No", "Date", None, None, "When", "No", "2024-01-01"]]).field
        assert (field.type, field.format) == ("string", "date")
        assert field.required is False

    def test_blank_row_is_skipped(self, read_row) -> None:
        result = read_row(
            [[None] * 7, ["No", "String", None, None, "Name", "No", "x"]],
            row=FIRST_ROW,
        )
        assert result.field is None
        assert result.errors == []

    def test_multiple_answers(self, read_row) -> None:
        field = read_row([["No", "String", None, None, "Tags", "Yes", "a, b,,c"]]).field
        assert field.is_array is True
        assert field.examples == ["a", "b", "c"]

    def test_missing_type_records_error(self, read_row) -> None:
        result = read_row([["No", None, None, None, "Orphan", "No", "x"]])

        assert result.field is not None
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.text == "Unknown field type."
        assert error.code == ErrorCode.UNKNOWN_FIELD_TYPE.value
        assert (error.worksheet, error.cell, error.row, error.col) == ("Sensor", "B5", 5, 2)
        assert error.target is result.field

    def test_unknown_label_becomes_reference(self, read_row, links) -> None:
        def customize(book) -> None:
            book["Sensor"]["B5"].hyperlink = OpenpyxlHyperlink(
                ref="B5", location="Address!A1"
            )

        result = read_row(
            [["No", "Address", None, None, "Home", "No", None]],
            customize=customize,
            extra_sheets={"Address": [["Address"]]},
        )

        field = result.field
        assert result.errors == []
        assert field.is_ref is True
        assert field.type == "link_0"
        assert field.examples is None
        link = links.get("link_0")
        assert (link.name, link.worksheet) == ("Address", "Address")

    def test_builtin_reference(self, read_row) -> None:
        field = read_row([["No", "GeoJSON", None, None, "Area", "No", None]]).field
        assert field.is_ref is True
        assert field.type == "#GeoJSON"

    def test_auto_calculate_has_no_example(self, read_row) -> None:
        field = read_row(
            [["No", "Auto-Calculate", None, None, "Total", "No", "=1+2"]]
        ).field
        assert field.read_only is True
        assert field.examples is None


class TestFieldParameters:
    """Tests for parameter extraction by field type."""

    def test_unit_from_number_format(self, read_row) -> None:
        def customize(book) -> None:
            book["Sensor"]["G5"].number_format = '0.0" kg"'

        field = read_row(
            [["No", "Postfix", None, None, "Weight", "No", 3.5]], customize=customize
        ).field
        assert field.unit == "kg"
        assert field.unit_system == "postfix"

    def test_unit_parameter_overrides_format(self, read_row) -> None:
        def customize(book) -> None:
            book["Sensor"]["G5"].number_format = '"$"0.00'

        field = read_row(
            [["No", "Prefix", "€", None, "Price", "No", 3.5]], customize=customize
        ).field
        assert field.unit == "€"
        assert field.unit_system == "prefix"

    def test_enum_from_parameter(self, read_row) -> None:
        field = read_row(
            [["No", "Enum", "Low\nMedium\r\nHigh", None, "Level", "No", "Low"]]
        ).field
        assert field.enum == ["Low", "Medium", "High"]
        assert field.custom_type == "enum"

    def test_enum_from_validation_list(self, read_row) -> None:
        def customize(book) -> None:
            dv = DataValidation(type="list", formula1='"Red,Green"')
            book["Sensor"].add_data_validation(dv)
            dv.add("G5")

        field = read_row(
            [["No", "Enum", None, None, "Color", "No", "Red"]], customize=customize
        ).field
        assert field.enum == ["Red", "Green"]

    def test_bad_validation_list_records_params_error(self, read_row) -> None:
        def customize(book) -> None:
            dv = DataValidation(type="list", formula1="Missing")
            book["Sensor"].add_data_validation(dv)
            dv.add("G5")

        result = read_row(
            [["No", "Enum", None, None, "Color", "No", "Red"]], customize=customize
        )
        assert result.field is not None
        assert result.field.type == "string"
        assert [e.text for e in result.errors] == ["Failed to parse params."]
        assert result.errors[0].code == ErrorCode.PARAMS_PARSE_FAILED.value
        assert result.errors[0].target is result.field

    def test_help_text_font_from_question_cell(self, read_row) -> None:
        def customize(book) -> None:
            book["Sensor"]["E5"].font = Font(b=True, color="FF0000FF", sz=12)

        field = read_row(
            [["No", "Help Text", None, None, "Read carefully", "No", None]],
            customize=customize,
        ).field
        assert field.type == "null"
        assert (field.text_bold, field.text_color, field.text_size) == (
            True,
            "#0000ff",
            "12px",
        )

    def test_help_text_parameter_overrides_font(self, read_row) -> None:
        field = read_row(
            [["No", "Help Text", "bold: yes; size: 20px", None, "Note", "No", None]]
        ).field
        assert (field.text_bold, field.text_color, field.text_size) == (
            True,
            "#000000",
            "20px",
        )
