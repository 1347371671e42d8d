"""Feature tools — tables, charts, pivot summaries, validation and annotations."""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from typing import Any

from openpyxl.chart import (
    AreaChart,
    BarChart,
    DoughnutChart,
    LineChart,
    PieChart,
    RadarChart,
    Reference,
    ScatterChart,
    Series,
)
from openpyxl.comments import Comment
from openpyxl.drawing.image import Image
from openpyxl.styles import Protection
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.table import Table, TableStyleInfo

from excel_bridge.engine.cells import normalize_range, parse_range, split_cell, to_range_string
from excel_bridge.engine.pivot import ValueField, build_pivot, records_from_rows
from excel_bridge.exceptions import WorkbookError
from excel_bridge.protocol.params.features import (
    ChartCreateParams,
    CommentAddParams,
    HyperlinkAddParams,
    ImageAddParams,
    PivotCreateParams,
    ProtectionAddParams,
    TableCreateParams,
    ValidationAddParams,
    ValidationCriteria,
)
from excel_bridge.tools.base import BaseToolGroup
from excel_bridge.tools.manifest import (
    ParamSpec,
    ToolGroupManifest,
    ToolSpec,
    string_param,
    string_params,
)

# chart_type → (class, BarChart.type)
CHART_TYPES: dict[str, tuple[type, str | None]] = {
    "column": (BarChart, "col"),
    "bar": (BarChart, "bar"),
    "line": (LineChart, None),
    "pie": (PieChart, None),
    "area": (AreaChart, None),
    "scatter": (ScatterChart, None),
    "doughnut": (DoughnutChart, None),
    "radar": (RadarChart, None),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _next_table_name(wb: Any) -> str:
    existing = {name.lower() for ws in wb.worksheets for name in ws.tables}
    n = sum(len(ws.tables) for ws in wb.worksheets) + 1
    while f"table{n}" in existing:
        n += 1
    return f"Table{n}"


def _stringify_headers(ws: Any, row: int, min_col: int, max_col: int) -> None:
    """Table headings must be unique, non-empty strings."""
    seen: set[str] = set()
    for offset, col in enumerate(range(min_col, max_col + 1), start=1):
        cell = ws.cell(row=row, column=col)
        name = str(cell.value) if cell.value not in (None, "") else f"Column{offset}"
        base, n = name, 2
        while name.lower() in seen:
            name = f"{base}{n}"
            n += 1
        seen.add(name.lower())
        cell.value = name


def _date_formula(value: date | datetime) -> str:
    return f"DATE({value.year},{value.month},{value.day})"


def _bounds(lo: Any, hi: Any) -> tuple[str, Any, Any]:
    """Operator and formulas for a min / max pair."""
    if lo is not None and hi is not None:
        return "between", lo, hi
    if lo is not None:
        return "greaterThanOrEqual", lo, None
    if hi is not None:
        return "lessThanOrEqual", hi, None
    raise ValueError("Validation needs at least one bound")


def build_validation(validation_type: str, criteria: ValidationCriteria) -> DataValidation:
    """Translate validation criteria into an openpyxl ``DataValidation``."""
    kwargs: dict[str, Any] = {"type": validation_type, "allow_blank": criteria.allow_blank}

    if validation_type == "list":
        if criteria.values:
            kwargs["formula1"] = '"' + ",".join(criteria.values) + '"'
        elif criteria.formula:
            kwargs["formula1"] = criteria.formula.lstrip("=")
        else:
            raise ValueError("list validation needs criteria.values or criteria.formula")
    elif validation_type == "custom":
        if not criteria.formula:
            raise ValueError("custom validation needs criteria.formula")
        kwargs["formula1"] = criteria.formula.lstrip("=")
    elif validation_type == "date":
        operator, lo, hi = _bounds(criteria.start_date, criteria.end_date)
        kwargs["operator"] = operator
        kwargs["formula1"] = _date_formula(lo)
        if hi is not None:
            kwargs["formula2"] = _date_formula(hi)
    else:
        # whole, decimal, time, textLength
        operator, lo, hi = _bounds(criteria.min_value, criteria.max_value)
        if validation_type in ("whole", "textLength"):
            lo = int(lo)
            hi = int(hi) if hi is not None else None
        kwargs["operator"] = operator
        kwargs["formula1"] = str(lo)
        if hi is not None:
            kwargs["formula2"] = str(hi)

    dv = DataValidation(**kwargs)
    if criteria.error_message:
        dv.error = criteria.error_message
        dv.errorTitle = criteria.error_title
        dv.showErrorMessage = True
    if criteria.input_message:
        dv.prompt = criteria.input_message
        dv.promptTitle = criteria.input_title
        dv.showInputMessage = True
    return dv


class FeaturesToolGroup(BaseToolGroup):
    GROUP_ID = "features"
    VERSION = "1.0.0"

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    async def _tool_table_create(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = TableCreateParams.model_validate(arguments)

        def _create() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                min_row, max_row, min_col, max_col = parse_range(p.range, ws)
                ref = to_range_string(min_row, max_row, min_col, max_col)
                name = p.table_name or _next_table_name(wb)

                if p.has_headers:
                    _stringify_headers(ws, min_row, min_col, max_col)
                table = Table(displayName=name, ref=ref, headerRowCount=1 if p.has_headers else 0)
                table.tableStyleInfo = TableStyleInfo(
                    name=p.style,
                    showFirstColumn=False,
                    showLastColumn=False,
                    showRowStripes=True,
                    showColumnStripes=False,
                )
                ws.add_table(table)
                return {"success": True, "table_name": name, "range": ref}

        return await asyncio.to_thread(_create)

    # ------------------------------------------------------------------
    # Charts
    # ------------------------------------------------------------------

    async def _tool_chart_create(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = ChartCreateParams.model_validate(arguments)

        def _create_chart() -> dict[str, Any]:
            chart_type = p.chart_type.strip().lower()
            if chart_type not in CHART_TYPES:
                raise ValueError(
                    f"Unsupported chart type '{p.chart_type}'. Supported: {', '.join(CHART_TYPES)}"
                )
            chart_cls, bar_type = CHART_TYPES[chart_type]
            split_cell(p.target_cell)

            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                min_row, max_row, min_col, max_col = parse_range(p.data_range, ws)

                chart = chart_cls()
                if bar_type is not None:
                    chart.type = bar_type
                if p.title:
                    chart.title = p.title

                # First row holds series titles, first column the categories.
                has_categories = max_col > min_col
                first_data_col = min_col + 1 if has_categories else min_col
                if isinstance(chart, ScatterChart):
                    x_ref = Reference(ws, min_col=min_col, min_row=min_row + 1, max_row=max_row)
                    for col in range(first_data_col, max_col + 1):
                        y_ref = Reference(ws, min_col=col, min_row=min_row, max_row=max_row)
                        chart.series.append(Series(y_ref, x_ref, title_from_data=True))
                else:
                    data_ref = Reference(
                        ws, min_col=first_data_col, max_col=max_col, min_row=min_row, max_row=max_row
                    )
                    chart.add_data(data_ref, titles_from_data=max_row > min_row)
                    if has_categories:
                        chart.set_categories(
                            Reference(ws, min_col=min_col, min_row=min_row + 1, max_row=max_row)
                        )

                chart.width = self.settings.workbook.chart_width
                chart.height = self.settings.workbook.chart_height
                ws.add_chart(chart, p.target_cell.upper())
                return {
                    "success": True,
                    "chart_type": chart_type,
                    "target_cell": p.target_cell.upper(),
                    "series": len(chart.series),
                }

        return await asyncio.to_thread(_create_chart)

    # ------------------------------------------------------------------
    # Pivot summaries
    # ------------------------------------------------------------------

    async def _tool_pivot_create(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = PivotCreateParams.model_validate(arguments)

        def _create_pivot() -> dict[str, Any]:
            start_row, start_col = split_cell(p.target_cell)
            with self.store.edit(p.filepath) as wb:
                source = self.store.sheet(wb, p.source_sheet)
                min_row, max_row, min_col, max_col = parse_range(p.source_range, source)
                rows = [
                    [c.value for c in row]
                    for row in source.iter_rows(min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col)
                ]
                headers, records = records_from_rows(rows)
                summary = build_pivot(
                    headers,
                    records,
                    rows=p.rows,
                    columns=p.columns or (),
                    values=[ValueField(v.field, v.function) for v in p.values or ()],
                    filters=p.filters or (),
                )

                target = self.store.sheet(wb, p.target_sheet, create=True)
                for r_offset, values in enumerate(summary.rows):
                    for c_offset, value in enumerate(values):
                        target.cell(row=start_row + r_offset, column=start_col + c_offset, value=value)

                return {
                    "success": True,
                    "target_sheet": p.target_sheet,
                    "range": to_range_string(
                        start_row,
                        start_row + summary.height - 1,
                        start_col,
                        start_col + max(summary.width, 1) - 1,
                    ),
                    "rows_written": summary.height,
                    "columns_written": summary.width,
                }

        return await asyncio.to_thread(_create_pivot)

    # ------------------------------------------------------------------
    # Validation & protection
    # ------------------------------------------------------------------

    async def _tool_validation_add(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = ValidationAddParams.model_validate(arguments)

        def _add_dv() -> dict[str, Any]:
            dv = build_validation(p.validation_type, p.criteria)
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                target = normalize_range(p.range, ws)
                dv.add(target)
                ws.add_data_validation(dv)
                return {"success": True, "validation_type": p.validation_type, "range": target}

        return await asyncio.to_thread(_add_dv)

    async def _tool_protection_add(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = ProtectionAddParams.model_validate(arguments)

        def _protect() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                if p.range:
                    min_row, max_row, min_col, max_col = parse_range(p.range, ws)
                    for row in ws.iter_rows(min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col):
                        for cell in row:
                            cell.protection = Protection(locked=True)
                    return {"success": True, "scope": "range", "range": normalize_range(p.range, ws)}

                ws.protection.sheet = True
                # These flags mark an action as blocked while protected.
                ws.protection.formatCells = not p.allow_formatting
                ws.protection.sort = not p.allow_sorting
                if p.password:
                    ws.protection.set_password(p.password)
                return {"success": True, "scope": "sheet", "password_set": bool(p.password)}

        return await asyncio.to_thread(_protect)

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    async def _tool_comment_add(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = CommentAddParams.model_validate(arguments)

        def _add_comment() -> dict[str, Any]:
            row, col = split_cell(p.cell)
            author = p.author or self.settings.workbook.comment_author
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                ws.cell(row=row, column=col).comment = Comment(p.text, author)
                return {"success": True, "cell": p.cell.upper(), "author": author}

        return await asyncio.to_thread(_add_comment)

    async def _tool_hyperlink_add(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = HyperlinkAddParams.model_validate(arguments)

        def _add_link() -> dict[str, Any]:
            row, col = split_cell(p.cell)
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                cell = ws.cell(row=row, column=col)
                cell.hyperlink = p.url
                if p.display_text:
                    cell.value = p.display_text
                elif cell.value is None:
                    cell.value = p.url
                cell.style = "Hyperlink"
                return {"success": True, "cell": p.cell.upper(), "url": p.url}

        return await asyncio.to_thread(_add_link)

    async def _tool_image_add(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = ImageAddParams.model_validate(arguments)

        def _insert_img() -> dict[str, Any]:
            source = Path(p.image_path).expanduser()
            if not source.is_file():
                raise WorkbookError(f"Image file not found: {p.image_path}", context={"path": p.image_path})
            split_cell(p.cell)

            # Keep the bytes in memory so later saves do not depend on the file.
            img = Image(BytesIO(source.read_bytes()))
            max_width = self.settings.workbook.image_max_width
            if max_width and img.width > max_width:
                img.height = round(img.height * max_width / img.width)
                img.width = max_width

            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                ws.add_image(img, p.cell.upper())
                return {
                    "success": True,
                    "cell": p.cell.upper(),
                    "width": img.width,
                    "height": img.height,
                }

        return await asyncio.to_thread(_insert_img)

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    def get_manifest(self) -> ToolGroupManifest:
        return ToolGroupManifest(
            group_id=self.GROUP_ID,
            version=self.VERSION,
            description="Tables, charts, pivot summaries, validation and annotations.",
            tools=[
                ToolSpec(
                    name="table-create",
                    description="Create an Excel table with auto-filters",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("range", description="Range for the table"),
                        string_param("table_name", description="Name for the table", required=False),
                        ParamSpec("has_headers", "boolean", "Table has headers (default: true)",
                                  required=False, default=True),
                        string_param("style", description="Table style name", required=False,
                                     default="TableStyleMedium9"),
                    ),
                ),
                ToolSpec(
                    name="chart-create",
                    description="Create a chart in Excel",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("data_range", description="Data range for the chart"),
                        ParamSpec(
                            "chart_type",
                            "string",
                            "Type of chart (Column, Bar, Line, Pie, Area, Scatter, Doughnut, Radar)",
                        ),
                        string_param("target_cell", description="Cell where to place the chart"),
                        string_param("title", description="Chart title", required=False),
                    ),
                ),
                ToolSpec(
                    name="pivot-create",
                    description="Create a pivot table for data analysis",
                    params=(
                        string_param("filepath"),
                        string_param("source_sheet", description="Source worksheet name"),
                        string_param("source_range", description="Source data range"),
                        string_param("target_sheet", description="Target worksheet name"),
                        string_param("target_cell", description="Target cell for pivot table"),
                        ParamSpec("rows", "array", "Row fields", items="string"),
                        ParamSpec("columns", "array", "Column fields", required=False, items="string"),
                        ParamSpec("values", "array", "Value fields: {field, function}", required=False,
                                  items="object"),
                        ParamSpec("filters", "array", "Filter fields", required=False, items="string"),
                    ),
                ),
                ToolSpec(
                    name="validation-add",
                    description="Add data validation to a range",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("range", description="Range for validation"),
                        ParamSpec(
                            "validation_type",
                            "string",
                            "Type of validation",
                            enum=("list", "whole", "decimal", "date", "time", "textLength", "custom"),
                        ),
                        ParamSpec("criteria", "object", "Validation criteria"),
                    ),
                ),
                ToolSpec(
                    name="protection-add",
                    description="Add protection to worksheet or range",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("range", description="Range to protect (optional)", required=False),
                        string_param("password", description="Protection password (optional)", required=False),
                        ParamSpec("allow_formatting", "boolean", "Allow formatting (default: false)", required=False),
                        ParamSpec("allow_sorting", "boolean", "Allow sorting (default: false)", required=False),
                    ),
                ),
                ToolSpec(
                    name="comment-add",
                    description="Add a comment to a cell",
                    params=string_params(("filepath", "sheet_name", "cell", "text"), ("author",)),
                ),
                ToolSpec(
                    name="hyperlink-add",
                    description="Add a hyperlink to a cell",
                    params=string_params(("filepath", "sheet_name", "cell", "url"), ("display_text",)),
                ),
                ToolSpec(
                    name="image-add",
                    description="Add an image to a worksheet",
                    params=string_params(("filepath", "sheet_name", "image_path", "cell")),
                ),
            ],
        )
