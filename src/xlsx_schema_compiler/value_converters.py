"""Conversions from raw cell content to typed schema values.

Every converter is total: unrecognised input degrades to a neutral default
instead of raising, so callers always get a well-typed value back.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from xlsx_schema_compiler.models import SchemaEntity

DEFAULT_TRUTHY_VALUES: frozenset[str] = frozenset({"true", "yes", "y", "1", "+"})

DEFAULT_FONT_COLOR = "#000000"
DEFAULT_FONT_SIZE = "18px"

ENTITY_LABELS: dict[str, SchemaEntity] = {
    "verifiable credentials": SchemaEntity.VC,
    "verifiable credential": SchemaEntity.VC,
    "vc": SchemaEntity.VC,
    "encrypted verifiable credential": SchemaEntity.EVC,
    "encrypted verifiable credentials": SchemaEntity.EVC,
    "evc": SchemaEntity.EVC,
    "sub-schema": SchemaEntity.NONE,
    "sub schema": SchemaEntity.NONE,
    "none": SchemaEntity.NONE,
}

_QUOTED_LITERAL = re.compile(r'"([^"]*)"')
_CURRENCY_TOKEN = re.compile(r"\[\$([^\]-]*)(?:-[0-9A-Fa-f]+)?\]")
_ESCAPED_CHAR = re.compile(r"\\(.)")
_HEX_COLOR = re.compile(r"^#?(?:[0-9A-Fa-f]{2})?([0-9A-Fa-f]{6})$")
_SIZE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(px|pt)?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class FontStyle:
    """Display styling for help-text fields."""

    bold: bool = False
    color: str = DEFAULT_FONT_COLOR
    size: str = DEFAULT_FONT_SIZE

    def to_dict(self) -> dict[str, Any]:
        return {"bold": self.bold, "color": self.color, "size": self.size}


def xlsx_to_boolean(
    value: Any, truthy_values: Iterable[str] = DEFAULT_TRUTHY_VALUES
) -> bool:
    """Coerce a cell value to a boolean.

    Booleans pass through and numbers are true when non-zero. Text is
    compared case-insensitively against ``truthy_values``; anything else,
    including ``None``, is false.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {v.lower() for v in truthy_values}
    return False


def xlsx_to_array(value: Any, is_array: bool, delimiter: str = ",") -> list[Any]:
    """Convert an answer cell into a list of example values.

    In scalar mode the value is wrapped as-is (text is trimmed). In array
    mode text is split on ``delimiter``, each item trimmed and empty items
    dropped; non-text values become a single-item list.
    """
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if not is_array:
            return [text]
        return [item.strip() for item in text.split(delimiter) if item.strip()]
    return [value]


def xlsx_to_entity(label: Any) -> SchemaEntity | None:
    """Map a schema-type label to a ``SchemaEntity``; unknown labels give None."""
    if not isinstance(label, str):
        return None
    return ENTITY_LABELS.get(label.strip().lower())


def xlsx_to_unit(number_format: Any) -> str | None:
    """Extract the unit text embedded in a number-format string.

    Handles quoted literals (``0.00" kg"``), locale currency tokens
    (``[$€-407] #,##0``) and backslash-escaped characters (``\\$#,##0``).
    Returns None for formats without a unit, such as ``General``.
    """
    if not isinstance(number_format, str) or not number_format:
        return None
    # Only the positive section of a multi-section format carries the unit.
    section = number_format.split(";", 1)[0]

    parts = [m.strip() for m in _QUOTED_LITERAL.findall(section)]
    parts += [m.strip() for m in _CURRENCY_TOKEN.findall(section)]
    if not parts:
        unquoted = _QUOTED_LITERAL.sub("", section)
        parts = [m.strip() for m in _ESCAPED_CHAR.findall(unquoted)]

    unit = "".join(p for p in parts if p)
    return unit or None


def xlsx_to_font(value: Any, default: FontStyle | None = None) -> FontStyle:
    """Build a ``FontStyle`` from cell styling or a font-encoding string.

    Accepts a ``FontStyle``, any object with openpyxl ``Font`` attributes
    (``b``, ``color``, ``sz``), a JSON object string, or a
    ``bold: true; color: #ff0000; size: 14px`` encoding. Missing or
    unreadable parts fall back to ``default``.
    """
    base = default or FontStyle()
    if isinstance(value, FontStyle):
        return value
    if isinstance(value, str):
        return _font_from_text(value, base)
    if isinstance(value, dict):
        return _font_from_mapping(value, base)
    if value is not None and hasattr(value, "b"):
        color = getattr(value, "color", None)
        return FontStyle(
            bold=bool(getattr(value, "b", False)),
            color=_normalize_color(getattr(color, "rgb", None), base.color),
            size=_normalize_size(getattr(value, "sz", None), base.size),
        )
    return base


def _font_from_text(text: str, base: FontStyle) -> FontStyle:
    text = text.strip()
    if not text:
        return base
    if text.startswith("{"):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return base
        return _font_from_mapping(parsed, base) if isinstance(parsed, dict) else base

    data: dict[str, str] = {}
    for part in re.split(r"[;\r\n]+", text):
        key, sep, raw = part.partition(":")
        if sep:
            data[key.strip()] = raw.strip()
    return _font_from_mapping(data, base)


def _font_from_mapping(data: dict[str, Any], base: FontStyle) -> FontStyle:
    # Accept both plain keys and the textBold/textColor/textSize spelling.
    values = {str(k).lower().removeprefix("text"): v for k, v in data.items()}
    bold = values.get("bold", base.bold)
    return FontStyle(
        bold=xlsx_to_boolean(bold),
        color=_normalize_color(values.get("color"), base.color),
        size=_normalize_size(values.get("size"), base.size),
    )


def _normalize_color(value: Any, fallback: str = DEFAULT_FONT_COLOR) -> str:
    if not isinstance(value, str):
        return fallback
    match = _HEX_COLOR.match(value.strip())
    if not match:
        return fallback
    return f"#{match.group(1).lower()}"


def _normalize_size(value: Any, fallback: str = DEFAULT_FONT_SIZE) -> str:
    if isinstance(value, bool) or value is None:
        return fallback
    if isinstance(value, (int, float)):
        return f"{value:g}px"
    match = _SIZE.match(str(value))
    if not match:
        return fallback
    return f"{match.group(1)}px"
