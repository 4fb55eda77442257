"""Location of schema-level rows and field-table columns in a worksheet."""

from __future__ import annotations

from dataclasses import dataclass

from xlsx_schema_compiler.dictionary import (
    FIELD_HEADERS,
    REQUIRED_FIELD_HEADERS,
    SCHEMA_HEADERS,
    Dictionary,
)
from xlsx_schema_compiler.workbook import INVALID_INDEX, CellPosition


@dataclass
class Header:
    """A header label and where it was found."""

    title: str
    required: bool = False
    row: int = INVALID_INDEX
    col: int = INVALID_INDEX

    @property
    def is_set(self) -> bool:
        return self.row != INVALID_INDEX or self.col != INVALID_INDEX


class Table:
    """Maps header labels to the rows and columns where they were found.

    Schema headers (``Schema``, ``Description``, ...) are row labels in the
    first column; field headers (``Answer``, ``Field Type``, ...) are column
    labels on the field-header row. Lookups of labels that were not found
    return ``INVALID_INDEX``.
    """

    def __init__(self, start: CellPosition) -> None:
        self.start = start
        self.end = CellPosition(c=start.c, r=start.r)
        self._schema_headers = {h.value: Header(h.value) for h in SCHEMA_HEADERS}
        self._field_headers = {
            h.value: Header(h.value, required=h in REQUIRED_FIELD_HEADERS)
            for h in FIELD_HEADERS
        }

    @staticmethod
    def _label(title: object) -> str:
        if isinstance(title, Dictionary):
            return title.value
        return title.strip() if isinstance(title, str) else ""

    def is_name(self, title: object) -> bool:
        """True for a first-row title that is a schema name, not a label."""
        label = self._label(title)
        return bool(label) and not (
            self.is_schema_header(label) or self.is_field_header(label)
        )

    def is_schema_header(self, title: object) -> bool:
        return self._label(title) in self._schema_headers

    def is_field_header(self, title: object) -> bool:
        return self._label(title) in self._field_headers

    def set_row(self, title: object, row: int) -> None:
        header = self._schema_headers.get(self._label(title))
        if header is not None:
            header.row = row

    def set_col(self, title: object, col: int) -> None:
        header = self._field_headers.get(self._label(title))
        if header is not None:
            header.col = col

    def get_row(self, title: object) -> int:
        header = self._schema_headers.get(self._label(title))
        return header.row if header is not None else INVALID_INDEX

    def get_col(self, title: object) -> int:
        header = self._field_headers.get(self._label(title))
        return header.col if header is not None else INVALID_INDEX

    def set_end(self, col: int, row: int) -> None:
        self.end = CellPosition(c=col, r=row)

    def get_error_header(self) -> Header | None:
        """Return the first required field header that was not found."""
        for header in self._field_headers.values():
            if header.required and not header.is_set:
                return header
        return None
