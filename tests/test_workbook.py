"""Tests for the openpyxl workbook adapter."""

from pathlib import Path

import pytest
from openpyxl.styles import Font
from openpyxl.workbook.defined_name import DefinedName
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.hyperlink import Hyperlink as OpenpyxlHyperlink

from xlsx_schema_compiler.utils.exceptions import ErrorCode, WorkbookReadError
from xlsx_schema_compiler.workbook import Workbook, cell_text


class TestCellText:
    def test_rendering(self) -> None:
        assert cell_text(None) == ""
        assert cell_text(True) == "TRUE"
        assert cell_text(3.0) == "3"
        assert cell_text(3.5) == "3.5"
        assert cell_text("  x ") == "x"


class TestWorkbookRead:
    def test_garbage_bytes(self) -> None:
        with pytest.raises(WorkbookReadError) as exc_info:
            Workbook().read(b"not a workbook")
        assert exc_info.value.error_code == ErrorCode.FILE_READ_ERROR

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(WorkbookReadError):
            Workbook().read_path(tmp_path / "missing.xlsx")

    def test_worksheets_in_order(self, make_workbook) -> None:
        data = make_workbook({"First": [["a"]], "Second": [["b"]]})
        names = [ws.name for ws in Workbook().read(data).get_worksheets()]
        assert names == ["First", "Second"]


class TestWorksheet:
    """Tests for cell addressing and reading."""

    def test_range_is_inclusive(self, load_sheet) -> None:
        ws = load_sheet({"S": [["a", None, "c"], [None], ["x"]]})
        sheet_range = ws.get_range()
        assert (sheet_range.s.c, sheet_range.s.r) == (1, 1)
        assert (sheet_range.e.c, sheet_range.e.r) == (3, 3)
        assert ws.in_range(3, 3)
        assert not ws.in_range(4, 1)
        assert ws.out_column_range(-1)

    def test_cells_outside_range_are_empty(self, load_sheet) -> None:
        ws = load_sheet({"S": [["a"]]})
        cell = ws.get_cell(5, 5)
        assert cell.get_value() is None
        assert not cell.is_formula()
        assert not cell.is_value()
        assert ws.get_text(-1, 1) == ""

    def test_paths(self, load_sheet) -> None:
        ws = load_sheet({"My Sheet": [["a"]]})
        assert ws.get_path(7, 11) == "G11"
        assert ws.get_path(-1, 11) is None
        assert ws.get_full_path(1, 1) == "'My Sheet'!A1"

    def test_formula_detection(self, load_sheet) -> None:
        ws = load_sheet({"S": [['=EXACT(A2,"Yes")'], ["Yes"]]})
        formula = ws.get_cell(1, 1)
        assert formula.is_formula()
        assert formula.get_formula() == 'EXACT(A2,"Yes")'
        assert ws.get_cell(1, 2).is_value()

    def test_number_format_and_font(self, load_sheet) -> None:
        def customize(book) -> None:
            cell = book["S"]["A1"]
            cell.number_format = '0.00" kg"'
            cell.font = Font(b=True)

        ws = load_sheet({"S": [[1.5]]}, customize=customize)
        cell = ws.get_cell(1, 1)
        assert cell.get_format() == '0.00" kg"'
        assert cell.get_font().b

    def test_internal_hyperlink(self, load_sheet) -> None:
        def customize(book) -> None:
            book["S"]["A1"].hyperlink = OpenpyxlHyperlink(
                ref="A1", location="'Other Sheet'!A1"
            )

        ws = load_sheet({"S": [["Address"]], "Other Sheet": [["x"]]}, "S", customize)
        link = ws.get_cell(1, 1).get_link()
        assert link is not None
        assert link.worksheet == "Other Sheet"

    def test_no_hyperlink(self, load_sheet) -> None:
        ws = load_sheet({"S": [["Address"]]})
        assert ws.get_cell(1, 1).get_link() is None


class TestValidationLists:
    """Tests for list data-validation resolution."""

    def test_inline_list(self, load_sheet) -> None:
        def customize(book) -> None:
            dv = DataValidation(type="list", formula1='"Low, Medium,High"')
            book["S"].add_data_validation(dv)
            dv.add("A1")

        ws = load_sheet({"S": [["Low"]]}, customize=customize)
        assert ws.get_cell(1, 1).get_list() == ["Low", "Medium", "High"]

    def test_range_on_other_sheet(self, load_sheet) -> None:
        def customize(book) -> None:
            dv = DataValidation(type="list", formula1="Lists!$A$1:$A$3")
            book["S"].add_data_validation(dv)
            dv.add("A1")

        ws = load_sheet(
            {"S": [["Red"]], "Lists": [["Red"], ["Green"], [None]]},
            "S",
            customize,
        )
        assert ws.get_cell(1, 1).get_list() == ["Red", "Green"]

    def test_defined_name(self, load_sheet) -> None:
        def customize(book) -> None:
            book.defined_names["Colors"] = DefinedName(
                "Colors", attr_text="Lists!$A$1:$A$2"
            )
            dv = DataValidation(type="list", formula1="Colors")
            book["S"].add_data_validation(dv)
            dv.add("A1")

        ws = load_sheet(
            {"S": [["Red"]], "Lists": [["Red"], ["Blue"]]}, "S", customize
        )
        assert ws.get_cell(1, 1).get_list() == ["Red", "Blue"]

    def test_unknown_reference(self, load_sheet) -> None:
        def customize(book) -> None:
            dv = DataValidation(type="list", formula1="Nowhere")
            book["S"].add_data_validation(dv)
            dv.add("A1")

        ws = load_sheet({"S": [["Red"]]}, customize=customize)
        with pytest.raises(ValueError, match="Unknown list reference"):
            ws.get_cell(1, 1).get_list()

    def test_cell_without_validation(self, load_sheet) -> None:
        ws = load_sheet({"S": [["Red"]]})
        assert ws.get_cell(1, 1).get_list() is None
