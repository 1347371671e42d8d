"""Typed argument models for tables, charts, pivots and annotations."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from excel_bridge.protocol.params.core import CellRef, FilePath, RangeRef, SheetName

ChartType = Literal["column", "bar", "line", "pie", "area", "scatter", "doughnut", "radar"]
PivotFunction = Literal["sum", "count", "average", "max", "min"]
ValidationType = Literal["list", "whole", "decimal", "date", "time", "textLength", "custom"]


class TableCreateParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    range: RangeRef
    table_name: str | None = Field(default=None, description="Defaults to 'Table<n>'.")
    has_headers: bool = True
    style: str = "TableStyleMedium9"


class ChartCreateParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    data_range: RangeRef
    # Case-insensitive; validated by the chart builder.
    chart_type: str = Field(min_length=1, description="column, bar, line, pie, area, scatter, doughnut, radar.")
    target_cell: CellRef
    title: str | None = None


class PivotValue(BaseModel):
    field: str = Field(min_length=1)
    function: PivotFunction = "sum"


class PivotCreateParams(BaseModel):
    filepath: FilePath
    source_sheet: str = Field(min_length=1)
    source_range: RangeRef
    target_sheet: str = Field(min_length=1)
    target_cell: CellRef
    rows: list[str] = Field(min_length=1)
    columns: list[str] | None = None
    values: list[PivotValue] | None = None
    filters: list[str] | None = None


class ValidationCriteria(BaseModel):
    values: list[str] | None = None
    min_value: float | None = None
    max_value: float | None = None
    start_date: date | datetime | None = None
    end_date: date | datetime | None = None
    formula: str | None = None
    allow_blank: bool = True
    error_message: str | None = None
    error_title: str | None = None
    input_message: str | None = None
    input_title: str | None = None


class ValidationAddParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    range: RangeRef
    validation_type: ValidationType
    criteria: ValidationCriteria


class ProtectionAddParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    range: str | None = Field(default=None, description="Lock only this range. Protects the sheet if omitted.")
    password: str | None = None
    allow_formatting: bool = False
    allow_sorting: bool = False


class CommentAddParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    cell: CellRef
    text: str = Field(min_length=1)
    author: str | None = None


class HyperlinkAddParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    cell: CellRef
    url: str = Field(min_length=1)
    display_text: str | None = None


class ImageAddParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    image_path: str = Field(min_length=1)
    cell: CellRef


PARAMS_MAP: dict[str, type[BaseModel]] = {
    "table-create": TableCreateParams,
    "chart-create": ChartCreateParams,
    "pivot-create": PivotCreateParams,
    "validation-add": ValidationAddParams,
    "protection-add": ProtectionAddParams,
    "comment-add": CommentAddParams,
    "hyperlink-add": HyperlinkAddParams,
    "image-add": ImageAddParams,
}
