"""Typed argument models for cell formatting and conditional formatting."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from excel_bridge.protocol.params.core import CellRef, FilePath, RangeRef, SheetName

BorderStyle = Literal["thin", "medium", "thick", "double", "dashed", "dotted", "hair"]


# ---------------------------------------------------------------------------
# Basic formatting
# ---------------------------------------------------------------------------


class FormatRangeParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    start_cell: CellRef
    end_cell: CellRef
    bold: bool = False
    fill_color: str | None = Field(default=None, description="Fill color as hex, e.g. 'FFFF00'.")


# ---------------------------------------------------------------------------
# Advanced formatting
# ---------------------------------------------------------------------------


class FontFormat(BaseModel):
    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    color: str | None = None
    size: float | None = Field(default=None, gt=0, le=409)
    name: str | None = None


class FillFormat(BaseModel):
    background_color: str | None = None


class BorderFormat(BaseModel):
    color: str | None = None
    style: BorderStyle = "thin"


class AlignmentFormat(BaseModel):
    horizontal: Literal["left", "center", "right", "justify", "general", "fill"] | None = None
    # "middle" is accepted as an alias for "center".
    vertical: Literal["top", "middle", "center", "bottom", "justify"] | None = None
    wrap_text: bool | None = None


class AdvancedFormatting(BaseModel):
    font: FontFormat | None = None
    fill: FillFormat | None = None
    border: BorderFormat | None = None
    alignment: AlignmentFormat | None = None
    number_format: str | None = Field(default=None, examples=["#,##0.00", "yyyy-mm-dd"])


class FormatAdvancedParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    range: RangeRef
    formatting: AdvancedFormatting


# ---------------------------------------------------------------------------
# Conditional formatting
# ---------------------------------------------------------------------------


class ConditionSpec(BaseModel):
    operator: str | None = Field(
        default=None,
        description="equal, notEqual, greaterThan, lessThan, greaterThanOrEqual, "
        "lessThanOrEqual, between, notBetween.",
    )
    value: Any = None
    value2: Any = Field(default=None, description="Upper bound for between / notBetween.")
    formula: str | None = None
    start_color: str | None = Field(default=None, description="Low color for color_scale.")
    end_color: str | None = Field(default=None, description="High color for color_scale / data_bar.")


class ConditionalFormatSpec(BaseModel):
    background_color: str | None = None
    font_color: str | None = None
    bold: bool | None = None


class FormatConditionalParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    range: RangeRef
    rule_type: Literal["cell_value", "formula", "color_scale", "data_bar"]
    condition: ConditionSpec
    format: ConditionalFormatSpec


PARAMS_MAP: dict[str, type[BaseModel]] = {
    "format-range": FormatRangeParams,
    "format-advanced": FormatAdvancedParams,
    "format-conditional": FormatConditionalParams,
}
