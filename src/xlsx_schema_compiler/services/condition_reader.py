"""Visibility conditions read from the ``Visibility`` column.

Only a narrow formula grammar is interpreted::

    TRUE | FALSE
    EXACT(<ref>, <literal>) | EXACT(<literal>, <ref>)
    NOT(EXACT(...))

Keywords are case-sensitive. Any other formula is rejected as a whole.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from openpyxl.formula.tokenizer import Token, Tokenizer, TokenizerError

from xlsx_schema_compiler.config import ParserConfig
from xlsx_schema_compiler.dictionary import Dictionary
from xlsx_schema_compiler.header_table import Table
from xlsx_schema_compiler.models import XlsxError
from xlsx_schema_compiler.schema import Condition, SchemaField
from xlsx_schema_compiler.utils.exceptions import (
    FieldNotFoundError,
    FormulaParseError,
)
from xlsx_schema_compiler.utils.logging import get_logger
from xlsx_schema_compiler.value_converters import xlsx_to_boolean
from xlsx_schema_compiler.workbook import Worksheet

logger = get_logger(__name__)

CONST = "const"
FORMULA = "formula"


@dataclass(frozen=True)
class ParsedCondition:
    """Result of parsing one visibility cell."""

    type: str
    value: Any = None
    field: str | None = None
    invert: bool = False


@dataclass
class ConditionReadResult:
    """Condition touched by a row, whether it is new, and row errors."""

    condition: Condition | None = None
    is_new: bool = False
    errors: list[XlsxError] = field(default_factory=list)


def parse_condition(formula: str | bool | None) -> ParsedCondition | None:
    """Parse a visibility value or formula.

    Args:
        formula: A boolean cell value or formula text (leading ``=`` optional).

    Returns:
        ParsedCondition, or None for empty input.

    Raises:
        FormulaParseError: If the formula is outside the supported grammar.
    """
    if formula is None or formula == "":
        return None
    if formula is True:
        return ParsedCondition(type=CONST, value=True)
    if formula is False:
        return ParsedCondition(type=CONST, value=False)

    text = str(formula).strip()
    body = text[1:] if text.startswith("=") else text
    if body == "TRUE":
        return ParsedCondition(type=CONST, value=True)
    if body == "FALSE":
        return ParsedCondition(type=CONST, value=False)

    try:
        tokens = [
            t for t in Tokenizer(f"={body}").items if t.type != Token.WSPACE
        ]
    except TokenizerError as e:
        raise FormulaParseError(body) from e

    parsed, pos = _parse_call(tokens, 0, invert=False, formula=body)
    if pos != len(tokens):
        raise FormulaParseError(body)
    return parsed


def _parse_call(
    tokens: list[Token], pos: int, *, invert: bool, formula: str
) -> tuple[ParsedCondition, int]:
    if pos >= len(tokens):
        raise FormulaParseError(formula)
    token = tokens[pos]
    if token.type != Token.FUNC or token.subtype != Token.OPEN:
        raise FormulaParseError(formula)

    name = token.value[:-1]
    if name == "NOT" and not invert:
        inner, pos = _parse_call(tokens, pos + 1, invert=True, formula=formula)
        return inner, _expect_close(tokens, pos, formula)
    if name != "EXACT":
        raise FormulaParseError(formula)

    # Arguments alternate strictly: operand, separator, operand.
    args: list[Token] = []
    expect_operand = True
    pos += 1
    while pos < len(tokens) and not _is_close(tokens[pos]):
        token = tokens[pos]
        if expect_operand:
            if token.type != Token.OPERAND:
                raise FormulaParseError(formula)
            args.append(token)
        elif token.type != Token.SEP or token.subtype != Token.ARG:
            raise FormulaParseError(formula)
        expect_operand = not expect_operand
        pos += 1
    if expect_operand:
        raise FormulaParseError(formula)
    pos = _expect_close(tokens, pos, formula)

    if len(args) != 2:
        raise FormulaParseError(formula)
    refs = [a for a in args if a.subtype == Token.RANGE]
    literals = [a for a in args if a.subtype in (Token.TEXT, Token.NUMBER)]
    if len(refs) != 1 or len(literals) != 1 or "!" in refs[0].value:
        raise FormulaParseError(formula)

    return (
        ParsedCondition(
            type=FORMULA,
            field=refs[0].value.replace("$", ""),
            value=_literal(literals[0]),
            invert=invert,
        ),
        pos,
    )


def _is_close(token: Token) -> bool:
    return token.type == Token.FUNC and token.subtype == Token.CLOSE


def _expect_close(tokens: list[Token], pos: int, formula: str) -> int:
    if pos >= len(tokens) or not _is_close(tokens[pos]):
        raise FormulaParseError(formula)
    return pos + 1


def _literal(token: Token) -> str:
    # Answers are compared as text, so numeric literals keep their text form.
    if token.subtype == Token.TEXT:
        return token.value[1:-1].replace('""', '"')
    return token.value


class ConditionReader:
    """Reads the visibility cell of field rows into shared conditions."""

    def __init__(self, config: ParserConfig) -> None:
        self._config = config

    def read(
        self,
        worksheet: Worksheet,
        table: Table,
        fields: dict[str, SchemaField],
        conditions: list[Condition],
        row: int,
    ) -> ConditionReadResult:
        visibility_col = table.get_col(Dictionary.VISIBILITY)
        if worksheet.out_column_range(visibility_col):
            return ConditionReadResult()

        name = worksheet.get_path(table.get_col(Dictionary.ANSWER), row)
        target = fields.get(name) if name else None
        if target is None:
            return ConditionReadResult()

        cell = worksheet.get_cell(visibility_col, row)
        try:
            if cell.is_formula():
                parsed = parse_condition(cell.get_formula())
            elif cell.is_value():
                parsed = parse_condition(
                    xlsx_to_boolean(cell.get_value(), self._config.truthy_values)
                )
            else:
                parsed = None

            if parsed is None:
                return ConditionReadResult()

            if parsed.type == CONST:
                target.hidden = target.hidden or not parsed.value
                return ConditionReadResult()

            condition = next(
                (c for c in conditions if c.equal(parsed.field, parsed.value)), None
            )
            is_new = condition is None
            if condition is None:
                driver = fields.get(parsed.field) if parsed.field else None
                if driver is None:
                    raise FieldNotFoundError(parsed.field or "")
                condition = Condition(field=driver, value=parsed.value)
            condition.add_field(target, parsed.invert)
            return ConditionReadResult(condition=condition, is_new=is_new)
        except Exception as e:
            logger.warning(
                "Failed to parse condition",
                field=target.name,
                row=row,
                error=str(e),
            )
            error = XlsxError.from_exception(
                "Failed to parse condition.",
                e,
                worksheet=worksheet.name,
                cell=worksheet.get_path(visibility_col, row),
                row=row,
                col=visibility_col,
            )
            error.target = target
            return ConditionReadResult(errors=[error])
