"""Cell and range helpers shared by every tool group.

Range strings accept ``"A1"``, ``"A1:C10"``, ``"$A$1:$C$10"``, an optional
``"Sheet!"`` prefix, whole columns / rows (``"A:C"``, ``"2:5"``) and the
keyword ``"auto"`` (the sheet's used range).
"""

from __future__ import annotations

import datetime
import decimal
import json
import re
from typing import Any

from openpyxl.utils.cell import (
    coordinate_from_string,
    column_index_from_string,
    get_column_letter,
    range_boundaries,
)
from openpyxl.utils.exceptions import CellCoordinatesException

from excel_bridge.exceptions import InvalidRangeError

# Colour names accepted in addition to hex strings.
NAMED_COLORS: dict[str, str] = {
    "black": "000000",
    "white": "FFFFFF",
    "red": "FF0000",
    "green": "00FF00",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "orange": "FFA500",
    "gray": "808080",
    "grey": "808080",
    "purple": "800080",
}


def split_cell(cell: str) -> tuple[int, int]:
    """``"AB12"`` → ``(12, 28)`` as (row, column)."""
    try:
        col_str, row = coordinate_from_string(cell.strip().replace("$", "").upper())
        return row, column_index_from_string(col_str)
    except (CellCoordinatesException, ValueError) as exc:
        raise InvalidRangeError(cell, str(exc)) from exc


def strip_sheet(range_str: str) -> str:
    """Drop a leading ``Sheet!`` / ``'My Sheet'!`` qualifier."""
    if "!" in range_str:
        return range_str.rsplit("!", 1)[1]
    return range_str


def parse_range(range_str: str, ws: Any = None) -> tuple[int, int, int, int]:
    """Parse a range → ``(min_row, max_row, min_col, max_col)``.

    Open-ended ranges (whole rows / columns) need *ws* to close them.
    """
    text = strip_sheet(range_str.strip())
    if text.lower() == "auto":
        if ws is None:
            raise InvalidRangeError(range_str, "'auto' needs a worksheet")
        return ws.min_row, ws.max_row, ws.min_column, ws.max_column

    try:
        min_col, min_row, max_col, max_row = range_boundaries(text.upper())
    except ValueError as exc:
        raise InvalidRangeError(range_str, str(exc)) from exc

    if None in (min_col, min_row, max_col, max_row):
        if ws is None:
            raise InvalidRangeError(range_str, "open-ended range needs a worksheet")
        min_col = min_col or 1
        min_row = min_row or 1
        max_col = max_col or ws.max_column
        max_row = max_row or ws.max_row

    if min_row > max_row:
        min_row, max_row = max_row, min_row
    if min_col > max_col:
        min_col, max_col = max_col, min_col
    return min_row, max_row, min_col, max_col


def to_range_string(min_row: int, max_row: int, min_col: int, max_col: int) -> str:
    start = f"{get_column_letter(min_col)}{min_row}"
    end = f"{get_column_letter(max_col)}{max_row}"
    return start if start == end else f"{start}:{end}"


def normalize_range(range_str: str, ws: Any = None) -> str:
    """Canonical ``"A1:C10"`` form of *range_str*."""
    return to_range_string(*parse_range(range_str, ws))


def cell_to_value(value: Any) -> Any:
    """Convert a cell value to a JSON-safe Python type."""
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, (int, float, bool, str)) or value is None:
        return value
    return str(value)


def to_cell_input(value: Any) -> Any:
    """Coerce a JSON argument into something openpyxl can store."""
    if isinstance(value, (dict, list)):
        # Nested structures have no cell representation.
        return json.dumps(value, ensure_ascii=False)
    return value


def normalize_color(color: str) -> str:
    """``'#ff0000'`` / ``'F00'`` / ``'red'`` → ``'FFFF0000'`` (ARGB)."""
    text = color.strip()
    named = NAMED_COLORS.get(text.lower())
    if named is not None:
        return f"FF{named}"

    hex_color = text.lstrip("#").upper()
    if len(hex_color) == 3:
        hex_color = "".join(c * 2 for c in hex_color)
    if len(hex_color) == 6:
        hex_color = f"FF{hex_color}"
    if len(hex_color) != 8:
        raise ValueError(f"Invalid hex color: {color!r}")
    try:
        int(hex_color, 16)
    except ValueError as exc:
        raise ValueError(f"Invalid hex color: {color!r}") from exc
    return hex_color


_INT_RE = re.compile(r"^[+-]?(0|[1-9]\d*)$")
_FLOAT_RE = re.compile(r"^[+-]?(?:(?:0|[1-9]\d*)(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


def coerce_scalar(text: str) -> Any:
    """Best-effort typing for text read from CSV: int, float, then str.

    Zero-padded codes such as ``"007"`` stay text.
    """
    stripped = text.strip()
    if stripped == "":
        return None
    if _INT_RE.match(stripped):
        return int(stripped)
    if _FLOAT_RE.match(stripped):
        return float(stripped)
    return text
