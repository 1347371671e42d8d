"""Data tools — formulas, sorting, filtering, find / replace and structural edits."""

from __future__ import annotations

import asyncio
import re
from typing import Any

from openpyxl.utils.cell import absolute_coordinate, column_index_from_string, quote_sheetname
from openpyxl.workbook.defined_name import DefinedName
from openpyxl.worksheet.cell_range import CellRange

from excel_bridge.engine.cells import normalize_range, parse_range, split_cell
from excel_bridge.exceptions import WorkbookError
from excel_bridge.protocol.params.data import (
    ColumnsDeleteParams,
    ColumnsInsertParams,
    DataFilterParams,
    DataSortParams,
    FindReplaceParams,
    FormulaApplyParams,
    NamedRangeCreateParams,
    RangeMergeParams,
    RangeUnmergeParams,
    RowsDeleteParams,
    RowsInsertParams,
    SortColumn,
)
from excel_bridge.tools.base import BaseToolGroup
from excel_bridge.tools.manifest import (
    ParamSpec,
    ToolGroupManifest,
    ToolSpec,
    string_param,
    string_params,
)


# ---------------------------------------------------------------------------
# Sorting helpers
# ---------------------------------------------------------------------------


def _sort_value(value: Any) -> tuple[int, Any]:
    # Excel order: numbers, then text, then booleans.
    if isinstance(value, bool):
        return 2, value
    if isinstance(value, (int, float)):
        return 0, value
    return 1, str(value).casefold()


def sort_rows(rows: list[list[Any]], keys: list[SortColumn], ascending: bool = True) -> list[list[Any]]:
    """Stable multi-key sort.  Blank cells go last in either direction."""
    ordered = list(rows)
    for key in reversed(keys):
        idx = key.column_index
        asc = ascending if key.ascending is None else key.ascending
        filled = [r for r in ordered if r[idx] is not None and r[idx] != ""]
        blank = [r for r in ordered if r[idx] is None or r[idx] == ""]
        filled.sort(key=lambda r: _sort_value(r[idx]), reverse=not asc)
        ordered = filled + blank
    return ordered


# ---------------------------------------------------------------------------
# Filter helpers
# ---------------------------------------------------------------------------


def _filter_column_offset(key: str, headers: list[Any], min_col: int, width: int) -> int:
    """Header text, zero-based offset or column letter → offset inside the range."""
    for offset, header in enumerate(headers):
        if header is not None and str(header) == key:
            return offset
    if key.isdigit():
        offset = int(key)
    elif key.isalpha():
        offset = column_index_from_string(key.upper()) - min_col
    else:
        raise ValueError(f"Filter column '{key}' is not a header, column letter or index")
    if not 0 <= offset < width:
        raise ValueError(f"Filter column '{key}' is outside the filtered range")
    return offset


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value)


def _filter_values(raw: Any) -> list[str]:
    values = raw if isinstance(raw, list) else [raw]
    return [_cell_text(v) for v in values]


class DataToolGroup(BaseToolGroup):
    GROUP_ID = "data"
    VERSION = "1.0.0"

    # ------------------------------------------------------------------
    # Formulas
    # ------------------------------------------------------------------

    async def _tool_formula_apply(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = FormulaApplyParams.model_validate(arguments)

        def _apply() -> dict[str, Any]:
            formula = p.formula if p.formula.startswith("=") else f"={p.formula}"
            row, col = split_cell(p.cell)
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                ws.cell(row=row, column=col, value=formula)
                return {"success": True, "cell": p.cell.upper(), "formula": formula}

        return await asyncio.to_thread(_apply)

    # ------------------------------------------------------------------
    # Sorting & filtering
    # ------------------------------------------------------------------

    async def _tool_data_sort(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = DataSortParams.model_validate(arguments)

        def _sort() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                min_row, max_row, min_col, max_col = parse_range(p.range, ws)
                width = max_col - min_col + 1
                for key in p.sort_by:
                    if key.column_index >= width:
                        raise ValueError(
                            f"column_index {key.column_index} is outside the range {p.range} ({width} columns)"
                        )

                first = min_row + 1 if p.has_header else min_row
                rows = [
                    [c.value for c in row]
                    for row in ws.iter_rows(min_row=first, max_row=max_row, min_col=min_col, max_col=max_col)
                ]
                for r_offset, values in enumerate(sort_rows(rows, p.sort_by, p.ascending)):
                    for c_offset, value in enumerate(values):
                        ws.cell(row=first + r_offset, column=min_col + c_offset, value=value)

                return {"success": True, "rows_sorted": len(rows)}

        return await asyncio.to_thread(_sort)

    async def _tool_data_filter(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = DataFilterParams.model_validate(arguments)

        def _filter() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                min_row, max_row, min_col, max_col = parse_range(p.range, ws)
                ref = normalize_range(p.range, ws)
                ws.auto_filter.ref = ref
                ws.auto_filter.filterColumn = []

                hidden = 0
                if p.filters:
                    width = max_col - min_col + 1
                    headers = [
                        ws.cell(row=min_row, column=min_col + i).value for i in range(width)
                    ]
                    criteria: dict[int, list[str]] = {}
                    for key, raw in p.filters.items():
                        offset = _filter_column_offset(str(key), headers, min_col, width)
                        criteria[offset] = _filter_values(raw)
                    for offset, values in criteria.items():
                        ws.auto_filter.add_filter_column(offset, values)

                    # The first row of the range is the header row.
                    for r in range(min_row + 1, max_row + 1):
                        visible = all(
                            _cell_text(ws.cell(row=r, column=min_col + off).value) in values
                            for off, values in criteria.items()
                        )
                        ws.row_dimensions[r].hidden = not visible
                        hidden += 0 if visible else 1

                return {"success": True, "range": ref, "rows_hidden": hidden}

        return await asyncio.to_thread(_filter)

    async def _tool_find_replace(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = FindReplaceParams.model_validate(arguments)

        def _find_replace() -> dict[str, Any]:
            pattern = re.compile(re.escape(p.find_text), 0 if p.match_case else re.IGNORECASE)
            needle = p.find_text if p.match_case else p.find_text.casefold()

            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                if p.range:
                    min_row, max_row, min_col, max_col = parse_range(p.range, ws)
                    cells = ws.iter_rows(min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col)
                else:
                    cells = ws.iter_rows()

                replacements = 0
                for row in cells:
                    for cell in row:
                        if cell.value is None:
                            continue
                        if p.match_entire_cell:
                            text = str(cell.value)
                            if (text if p.match_case else text.casefold()) == needle:
                                cell.value = p.replace_text
                                replacements += 1
                        elif isinstance(cell.value, str) and pattern.search(cell.value):
                            cell.value = pattern.sub(lambda _m: p.replace_text, cell.value)
                            replacements += 1

                return {"success": True, "replacements": replacements}

        return await asyncio.to_thread(_find_replace)

    # ------------------------------------------------------------------
    # Merging & names
    # ------------------------------------------------------------------

    async def _tool_range_merge(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = RangeMergeParams.model_validate(arguments)

        def _merge() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                target = normalize_range(p.range, ws)
                ws.merge_cells(target)
                return {"success": True, "range": target}

        return await asyncio.to_thread(_merge)

    async def _tool_range_unmerge(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = RangeUnmergeParams.model_validate(arguments)

        def _unmerge() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                target = CellRange(normalize_range(p.range, ws))
                # Unmerge every merged block that touches the range.
                unmerged = [
                    mr.coord for mr in list(ws.merged_cells.ranges) if not mr.isdisjoint(target)
                ]
                for coord in unmerged:
                    ws.unmerge_cells(coord)
                return {"success": True, "unmerged": unmerged}

        return await asyncio.to_thread(_unmerge)

    async def _tool_named_range_create(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = NamedRangeCreateParams.model_validate(arguments)

        def _add() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                if p.name in wb.defined_names:
                    raise WorkbookError(f"Named range '{p.name}' already exists.")
                attr_text = f"{quote_sheetname(ws.title)}!{absolute_coordinate(normalize_range(p.range, ws))}"
                wb.defined_names.add(DefinedName(name=p.name, attr_text=attr_text))
                return {"success": True, "name": p.name, "refers_to": attr_text}

        return await asyncio.to_thread(_add)

    # ------------------------------------------------------------------
    # Rows & columns
    # ------------------------------------------------------------------

    def _row_column_edit(self, p: Any, operation: str) -> dict[str, Any]:
        with self.store.edit(p.filepath) as wb:
            ws = self.store.sheet(wb, p.sheet_name)
            getattr(ws, operation)(p.position, p.count)
            return {"success": True, "position": p.position, "count": p.count}

    async def _tool_rows_insert(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = RowsInsertParams.model_validate(arguments)
        return await asyncio.to_thread(self._row_column_edit, p, "insert_rows")

    async def _tool_rows_delete(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = RowsDeleteParams.model_validate(arguments)
        return await asyncio.to_thread(self._row_column_edit, p, "delete_rows")

    async def _tool_columns_insert(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = ColumnsInsertParams.model_validate(arguments)
        return await asyncio.to_thread(self._row_column_edit, p, "insert_cols")

    async def _tool_columns_delete(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = ColumnsDeleteParams.model_validate(arguments)
        return await asyncio.to_thread(self._row_column_edit, p, "delete_cols")

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    def get_manifest(self) -> ToolGroupManifest:
        sheet_range = string_params(("filepath", "sheet_name", "range"))
        row_column = (
            string_param("filepath"),
            string_param("sheet_name"),
            ParamSpec("position", "integer", "Position to insert/delete (1-based)"),
            ParamSpec("count", "integer", "Number of rows/columns (default: 1)", required=False, default=1),
        )
        return ToolGroupManifest(
            group_id=self.GROUP_ID,
            version=self.VERSION,
            description="Formulas, sorting, filtering and structural edits.",
            tools=[
                ToolSpec(
                    name="formula-apply",
                    description="Apply a formula to a cell",
                    params=string_params(("filepath", "sheet_name", "cell", "formula")),
                ),
                ToolSpec(
                    name="data-sort",
                    description="Sort data by one or multiple columns",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("range", description="Range to sort"),
                        ParamSpec(
                            "sort_by",
                            "array",
                            "Array of sort columns: {column_index (0-based), ascending}",
                            items="object",
                        ),
                        ParamSpec("ascending", "boolean", "Sort ascending (default: true)", required=False, default=True),
                        ParamSpec("has_header", "boolean", "Keep the first row in place (default: false)", required=False),
                    ),
                ),
                ToolSpec(
                    name="data-filter",
                    description="Apply filters to a data range",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("range", description="Range to apply filters"),
                        ParamSpec("filters", "object", "Filter criteria: column → value or list of values", required=False),
                    ),
                ),
                ToolSpec(
                    name="find-replace",
                    description="Find and replace text in worksheet",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("find_text", description="Text to find"),
                        string_param("replace_text", description="Text to replace with"),
                        string_param("range", description="Range to search (optional)", required=False),
                        ParamSpec("match_case", "boolean", "Match case (default: false)", required=False),
                        ParamSpec("match_entire_cell", "boolean", "Match entire cell (default: false)", required=False),
                    ),
                ),
                ToolSpec(name="range-merge", description="Merge cells in a range", params=sheet_range),
                ToolSpec(name="range-unmerge", description="Unmerge cells in a range", params=sheet_range),
                ToolSpec(
                    name="named-range-create",
                    description="Create a named range for easy reference",
                    params=string_params(("filepath", "name", "sheet_name", "range")),
                ),
                ToolSpec(name="rows-insert", description="Insert rows at specified position", params=row_column),
                ToolSpec(name="rows-delete", description="Delete rows at specified position", params=row_column),
                ToolSpec(name="columns-insert", description="Insert columns at specified position", params=row_column),
                ToolSpec(name="columns-delete", description="Delete columns at specified position", params=row_column),
            ],
        )
