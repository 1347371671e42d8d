"""Formatting tools — basic and advanced cell styles, conditional formatting."""

from __future__ import annotations

import asyncio
import copy
from typing import Any

from openpyxl.formatting.rule import CellIsRule, ColorScaleRule, DataBarRule, FormulaRule
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from excel_bridge.engine.cells import normalize_color, normalize_range, parse_range
from excel_bridge.protocol.params.formatting import (
    AdvancedFormatting,
    ConditionalFormatSpec,
    ConditionSpec,
    FormatAdvancedParams,
    FormatConditionalParams,
    FormatRangeParams,
)
from excel_bridge.tools.base import BaseToolGroup
from excel_bridge.tools.manifest import (
    ParamSpec,
    ToolGroupManifest,
    ToolSpec,
    string_param,
)

CELL_IS_OPERATORS = frozenset({
    "between",
    "notBetween",
    "equal",
    "notEqual",
    "greaterThan",
    "lessThan",
    "greaterThanOrEqual",
    "lessThanOrEqual",
})

DEFAULT_SCALE_START = "F8696B"
DEFAULT_SCALE_END = "63BE7B"
DEFAULT_DATA_BAR = "638EC6"


def _solid(color: str) -> PatternFill:
    argb = normalize_color(color)
    return PatternFill(fill_type="solid", start_color=argb, end_color=argb)


def _with_attrs(style: Any, **changes: Any) -> Any:
    """Copy of *style* with the non-None *changes* applied."""
    updated = copy.copy(style)
    for key, value in changes.items():
        if value is not None:
            setattr(updated, key, value)
    return updated


def _formula_operand(value: Any) -> str:
    """Render a condition value as a formula operand."""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value)
    if text.startswith("="):
        return text[1:]
    try:
        float(text)
    except ValueError:
        return '"' + text.replace('"', '""') + '"'
    return text


def _differential_style(fmt: ConditionalFormatSpec) -> dict[str, Any]:
    styles: dict[str, Any] = {}
    if fmt.background_color:
        styles["fill"] = _solid(fmt.background_color)
    if fmt.font_color or fmt.bold is not None:
        styles["font"] = Font(
            bold=fmt.bold,
            color=normalize_color(fmt.font_color) if fmt.font_color else None,
        )
    return styles


def build_conditional_rule(rule_type: str, condition: ConditionSpec, fmt: ConditionalFormatSpec) -> Any:
    """Translate a rule request into an openpyxl conditional formatting rule."""
    if rule_type == "cell_value":
        operator = condition.operator or "equal"
        if operator not in CELL_IS_OPERATORS:
            raise ValueError(
                f"Unsupported operator '{operator}'. Expected one of: {', '.join(sorted(CELL_IS_OPERATORS))}"
            )
        if condition.value is None:
            raise ValueError("cell_value rules need condition.value")
        operands = [_formula_operand(condition.value)]
        if operator in ("between", "notBetween"):
            if condition.value2 is None:
                raise ValueError(f"'{operator}' rules need condition.value2")
            operands.append(_formula_operand(condition.value2))
        return CellIsRule(operator=operator, formula=operands, **_differential_style(fmt))

    if rule_type == "formula":
        if not condition.formula:
            raise ValueError("formula rules need condition.formula")
        return FormulaRule(formula=[condition.formula.lstrip("=")], **_differential_style(fmt))

    if rule_type == "color_scale":
        return ColorScaleRule(
            start_type="min",
            start_color=normalize_color(condition.start_color or DEFAULT_SCALE_START),
            end_type="max",
            end_color=normalize_color(condition.end_color or DEFAULT_SCALE_END),
        )

    if rule_type == "data_bar":
        return DataBarRule(
            start_type="min",
            end_type="max",
            color=normalize_color(condition.end_color or DEFAULT_DATA_BAR),
        )

    raise ValueError(f"Unsupported rule_type '{rule_type}'")


class FormattingToolGroup(BaseToolGroup):
    GROUP_ID = "formatting"
    VERSION = "1.0.0"

    async def _tool_format_range(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = FormatRangeParams.model_validate(arguments)

        def _format() -> dict[str, Any]:
            fill = _solid(p.fill_color) if p.fill_color else None
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                min_row, max_row, min_col, max_col = parse_range(f"{p.start_cell}:{p.end_cell}", ws)
                cells_formatted = 0
                for row in ws.iter_rows(min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col):
                    for cell in row:
                        if p.bold:
                            cell.font = _with_attrs(cell.font, bold=True)
                        if fill is not None:
                            cell.fill = fill
                        cells_formatted += 1
                return {"success": True, "cells_formatted": cells_formatted}

        return await asyncio.to_thread(_format)

    async def _tool_format_advanced(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = FormatAdvancedParams.model_validate(arguments)
        f: AdvancedFormatting = p.formatting

        def _format() -> dict[str, Any]:
            fill = _solid(f.fill.background_color) if f.fill and f.fill.background_color else None

            border = None
            if f.border is not None:
                side = Side(
                    style=f.border.style,
                    color=normalize_color(f.border.color) if f.border.color else "FF000000",
                )
                border = Border(left=side, right=side, top=side, bottom=side)

            font_changes: dict[str, Any] = {}
            if f.font is not None:
                font_changes = {
                    "bold": f.font.bold,
                    "italic": f.font.italic,
                    "underline": None if f.font.underline is None else ("single" if f.font.underline else "none"),
                    "color": normalize_color(f.font.color) if f.font.color else None,
                    "size": f.font.size,
                    "name": f.font.name,
                }

            align_changes: dict[str, Any] = {}
            if f.alignment is not None:
                vertical = f.alignment.vertical
                align_changes = {
                    "horizontal": f.alignment.horizontal,
                    "vertical": "center" if vertical == "middle" else vertical,
                    "wrap_text": f.alignment.wrap_text,
                }

            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                min_row, max_row, min_col, max_col = parse_range(p.range, ws)
                cells_formatted = 0
                for row in ws.iter_rows(min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col):
                    for cell in row:
                        if font_changes:
                            cell.font = _with_attrs(cell.font, **font_changes)
                        if fill is not None:
                            cell.fill = fill
                        if border is not None:
                            cell.border = border
                        if align_changes:
                            cell.alignment = _with_attrs(cell.alignment or Alignment(), **align_changes)
                        if f.number_format:
                            cell.number_format = f.number_format
                        cells_formatted += 1
                return {"success": True, "range": normalize_range(p.range, ws), "cells_formatted": cells_formatted}

        return await asyncio.to_thread(_format)

    async def _tool_format_conditional(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = FormatConditionalParams.model_validate(arguments)

        def _apply() -> dict[str, Any]:
            rule = build_conditional_rule(p.rule_type, p.condition, p.format)
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                target = normalize_range(p.range, ws)
                ws.conditional_formatting.add(target, rule)
                return {"success": True, "rule_type": p.rule_type, "range": target}

        return await asyncio.to_thread(_apply)

    def get_manifest(self) -> ToolGroupManifest:
        return ToolGroupManifest(
            group_id=self.GROUP_ID,
            version=self.VERSION,
            description="Cell styles and conditional formatting.",
            tools=[
                ToolSpec(
                    name="format-range",
                    description="Apply basic formatting to a cell range",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("start_cell", description="Starting cell"),
                        string_param("end_cell", description="Ending cell"),
                        ParamSpec("bold", "boolean", "Make text bold", required=False),
                        string_param("fill_color", description="Fill color (hex format)", required=False),
                    ),
                ),
                ToolSpec(
                    name="format-advanced",
                    description="Apply advanced formatting (fonts, borders, fills, alignment)",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("range", description="Cell range to format"),
                        ParamSpec(
                            "formatting",
                            "object",
                            "Advanced formatting options (font, border, fill, alignment, number_format)",
                        ),
                    ),
                ),
                ToolSpec(
                    name="format-conditional",
                    description="Apply conditional formatting to a range",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("range", description="Cell range for conditional formatting"),
                        ParamSpec(
                            "rule_type",
                            "string",
                            "Type of conditional formatting rule",
                            enum=("cell_value", "formula", "color_scale", "data_bar"),
                        ),
                        ParamSpec("condition", "object", "Condition for formatting"),
                        ParamSpec("format", "object", "Format to apply when condition is met"),
                    ),
                ),
            ],
        )
