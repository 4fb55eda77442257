"""Thin cell-addressed view over an openpyxl workbook.

The compiler reads worksheets through this module only. Coordinates are
1-based ``(column, row)`` pairs as in openpyxl; the sentinel ``-1`` (or any
coordinate outside the populated range) reads as an empty cell.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.cell import Cell as OpenpyxlCell
from openpyxl.utils import get_column_letter, quote_sheetname
from openpyxl.workbook.workbook import Workbook as OpenpyxlWorkbook
from openpyxl.worksheet.worksheet import Worksheet as OpenpyxlWorksheet

from xlsx_schema_compiler.utils.exceptions import WorkbookReadError
from xlsx_schema_compiler.utils.logging import get_logger

logger = get_logger(__name__)

INVALID_INDEX = -1


@dataclass(frozen=True)
class CellPosition:
    """A (column, row) coordinate."""

    c: int
    r: int


@dataclass(frozen=True)
class CellRange:
    """Bounding range of populated cells, inclusive on both ends."""

    s: CellPosition
    e: CellPosition


@dataclass(frozen=True)
class Hyperlink:
    """Hyperlink attached to a cell.

    ``worksheet`` is set for links into the same workbook (``Sheet!A1``);
    ``target`` holds the raw external target, if any.
    """

    worksheet: str | None = None
    target: str | None = None

    @classmethod
    def from_openpyxl(cls, link: Any) -> Hyperlink | None:
        if link is None:
            return None
        location = getattr(link, "location", None)
        target = getattr(link, "target", None)
        reference = location or (target[1:] if target and target.startswith("#") else None)
        worksheet = _sheet_from_reference(reference) if reference else None
        if worksheet is None and target is None:
            return None
        return cls(worksheet=worksheet, target=target)


def _sheet_from_reference(reference: str) -> str | None:
    """Return the sheet part of ``'My Sheet'!A1`` style references."""
    sheet, sep, _ = reference.rpartition("!")
    if not sep:
        # A bare sheet name is also a valid link target.
        sheet = reference
    sheet = sheet.strip()
    if sheet.startswith("'") and sheet.endswith("'") and len(sheet) >= 2:
        sheet = sheet[1:-1].replace("''", "'")
    return sheet or None


def cell_text(value: Any) -> str:
    """Render a cell value as trimmed text; empty cells become ``""``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class Cell:
    """Read-only view over one worksheet cell."""

    def __init__(self, worksheet: Worksheet, cell: OpenpyxlCell | None) -> None:
        self._worksheet = worksheet
        self._cell = cell

    @property
    def raw(self) -> Any:
        if self._cell is None:
            return None
        value = self._cell.value
        # ArrayFormula and DataTableFormula keep their text in ``text``.
        return getattr(value, "text", value)

    def is_formula(self) -> bool:
        if self._cell is None:
            return False
        value = self.raw
        return self._cell.data_type == "f" or (
            isinstance(value, str) and value.startswith("=")
        )

    def is_value(self) -> bool:
        return not self.is_formula() and cell_text(self.raw) != ""

    def get_formula(self) -> str:
        """Formula text without the leading ``=``."""
        value = self.raw
        if not isinstance(value, str):
            return ""
        return value[1:] if value.startswith("=") else value

    def get_value(self) -> Any:
        return self.raw

    def get_link(self) -> Hyperlink | None:
        if self._cell is None:
            return None
        return Hyperlink.from_openpyxl(self._cell.hyperlink)

    def get_format(self) -> str | None:
        if self._cell is None:
            return None
        return self._cell.number_format

    def get_font(self) -> Any:
        if self._cell is None:
            return None
        return self._cell.font

    def get_list(self) -> list[str] | None:
        """Values of a list data-validation covering this cell, if any."""
        if self._cell is None:
            return None
        return self._worksheet.validation_list(self._cell.coordinate)


class Worksheet:
    """Cell-addressed worksheet exposing only what the compiler reads."""

    def __init__(self, workbook: Workbook, sheet: OpenpyxlWorksheet) -> None:
        self._workbook = workbook
        self._sheet = sheet
        self._range = CellRange(
            s=CellPosition(c=sheet.min_column, r=sheet.min_row),
            e=CellPosition(c=sheet.max_column, r=sheet.max_row),
        )

    @property
    def name(self) -> str:
        return self._sheet.title

    def get_range(self) -> CellRange:
        return self._range

    def in_range(self, col: int, row: int) -> bool:
        return (
            self._range.s.c <= col <= self._range.e.c
            and self._range.s.r <= row <= self._range.e.r
        )

    def out_column_range(self, col: int) -> bool:
        return not self._range.s.c <= col <= self._range.e.c

    def get_cell(self, col: int, row: int) -> Cell:
        if not self.in_range(col, row):
            return Cell(self, None)
        return Cell(self, self._sheet.cell(row=row, column=col))

    def get_value(self, col: int, row: int) -> Any:
        return self.get_cell(col, row).get_value()

    def get_text(self, col: int, row: int) -> str:
        return cell_text(self.get_value(col, row))

    def get_path(self, col: int, row: int) -> str | None:
        """Cell address such as ``G11``; None for invalid coordinates."""
        if col < 1 or row < 1:
            return None
        return f"{get_column_letter(col)}{row}"

    def get_full_path(self, col: int, row: int) -> str | None:
        path = self.get_path(col, row)
        if path is None:
            return None
        return f"{quote_sheetname(self.name)}!{path}"

    def validation_list(self, coordinate: str) -> list[str] | None:
        for validation in self._sheet.data_validations.dataValidation:
            if validation.type != "list" or coordinate not in validation.sqref:
                continue
            return self._workbook.resolve_list(validation.formula1, self.name)
        return None


class Workbook:
    """A loaded workbook; one instance per parse."""

    def __init__(self) -> None:
        self._book: OpenpyxlWorkbook | None = None

    def read(self, buffer: bytes) -> Workbook:
        """Load a workbook from raw bytes.

        Raises:
            WorkbookReadError: If the bytes are not a readable workbook.
        """
        try:
            self._book = load_workbook(filename=BytesIO(buffer), data_only=False)
        except Exception as exc:
            raise WorkbookReadError(
                f"Unable to read workbook: {exc}",
                details={"exception_type": type(exc).__name__},
            ) from exc
        logger.debug("Workbook loaded", sheets=len(self._book.sheetnames))
        return self

    def read_path(self, file_path: Path) -> Workbook:
        if not file_path.exists():
            raise WorkbookReadError(
                f"Workbook not found: {file_path}", file_path=str(file_path)
            )
        return self.read(file_path.read_bytes())

    @property
    def book(self) -> OpenpyxlWorkbook:
        if self._book is None:
            raise WorkbookReadError("Workbook has not been read")
        return self._book

    def get_worksheets(self) -> Iterator[Worksheet]:
        for sheet in self.book.worksheets:
            yield Worksheet(self, sheet)

    def resolve_list(self, formula: str | None, sheet_name: str) -> list[str]:
        """Expand a data-validation ``formula1`` into its list of values.

        Inline lists (``"Low,Medium,High"``), cell ranges (``$A$1:$A$3``,
        ``Lists!$A$1:$A$3``) and workbook-level defined names are supported.

        Raises:
            ValueError: If the formula references something that does not
                exist in the workbook.
        """
        if not formula:
            return []
        text = formula.strip()
        if text.startswith("="):
            text = text[1:]
        if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
            return [item.strip() for item in text[1:-1].split(",") if item.strip()]

        if "!" not in text and ":" not in text and not text.startswith("$"):
            defined = self.book.defined_names.get(text)
            if defined is None:
                raise ValueError(f"Unknown list reference: {formula}")
            text = defined.attr_text

        sheet_part, sep, ref = text.rpartition("!")
        target = _sheet_from_reference(sheet_part) if sep else sheet_name
        if target not in self.book.sheetnames:
            raise ValueError(f"Unknown list reference: {formula}")
        cells = self.book[target][ref.replace("$", "")]
        if isinstance(cells, OpenpyxlCell):
            rows: Any = ((cells,),)
        elif cells and not isinstance(cells[0], tuple):
            rows = (cells,)
        else:
            rows = cells
        return [cell_text(c.value) for row in rows for c in row if cell_text(c.value)]
