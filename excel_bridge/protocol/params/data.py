"""Typed argument models for formulas, sorting, filtering and structural edits."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from excel_bridge.protocol.params.core import CellRef, FilePath, RangeRef, SheetName


class FormulaApplyParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    cell: CellRef
    formula: str = Field(min_length=1, description="Formula, with or without the leading '='.")


# ---------------------------------------------------------------------------
# Sorting and filtering
# ---------------------------------------------------------------------------


class SortColumn(BaseModel):
    column_index: int = Field(ge=0, description="Zero-based column offset inside the range.")
    ascending: bool | None = Field(
        default=None, description="Overrides the call-level ``ascending`` for this column."
    )


class DataSortParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    range: RangeRef
    sort_by: list[SortColumn] = Field(min_length=1)
    ascending: bool = True
    has_header: bool = Field(default=False, description="Keep the first row of the range in place.")


class DataFilterParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    range: RangeRef
    filters: dict[str, Any] | None = Field(
        default=None,
        description="Map of column (header text, column letter or zero-based offset) "
        "to the value or list of values to keep visible.",
    )


class FindReplaceParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    find_text: str = Field(min_length=1)
    replace_text: str
    range: str | None = None
    match_case: bool = False
    match_entire_cell: bool = False


# ---------------------------------------------------------------------------
# Merging and names
# ---------------------------------------------------------------------------


class RangeMergeParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    range: RangeRef


class RangeUnmergeParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    range: RangeRef


class NamedRangeCreateParams(BaseModel):
    filepath: FilePath
    name: str = Field(min_length=1, pattern=r"^[A-Za-z_\\][A-Za-z0-9_.\\]*$")
    sheet_name: SheetName
    range: RangeRef


# ---------------------------------------------------------------------------
# Rows and columns
# ---------------------------------------------------------------------------


class _RowColumnParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    position: int = Field(ge=1, description="1-based row or column index.")
    count: int = Field(default=1, ge=1)


class RowsInsertParams(_RowColumnParams):
    pass


class RowsDeleteParams(_RowColumnParams):
    pass


class ColumnsInsertParams(_RowColumnParams):
    pass


class ColumnsDeleteParams(_RowColumnParams):
    pass


PARAMS_MAP: dict[str, type[BaseModel]] = {
    "formula-apply": FormulaApplyParams,
    "data-sort": DataSortParams,
    "data-filter": DataFilterParams,
    "find-replace": FindReplaceParams,
    "range-merge": RangeMergeParams,
    "range-unmerge": RangeUnmergeParams,
    "named-range-create": NamedRangeCreateParams,
    "rows-insert": RowsInsertParams,
    "rows-delete": RowsDeleteParams,
    "columns-insert": ColumnsInsertParams,
    "columns-delete": ColumnsDeleteParams,
}
