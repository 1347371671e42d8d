"""Typed argument models for the core workbook / worksheet / cell tools."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, Field

_CELL_EXAMPLE = "B3"

# Shared field types.  Required strings must be non-empty.
FilePath = Annotated[str, Field(min_length=1, description="Path to the Excel workbook.")]
SheetName = Annotated[str, Field(min_length=1, description="Name of the worksheet.")]
CellRef = Annotated[str, Field(min_length=1, description=f"Cell address, e.g. '{_CELL_EXAMPLE}'.")]
RangeRef = Annotated[str, Field(min_length=1, description="Cell range, e.g. 'A1:D10'.")]


# ---------------------------------------------------------------------------
# Workbook lifecycle
# ---------------------------------------------------------------------------


class WorkbookCreateParams(BaseModel):
    filepath: FilePath
    sheet_name: str | None = Field(
        default=None, description="Name of the initial worksheet. Defaults to 'Sheet1'."
    )


# ---------------------------------------------------------------------------
# Sheet management
# ---------------------------------------------------------------------------


class WorksheetCreateParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName


class WorksheetDeleteParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName


class WorksheetRenameParams(BaseModel):
    filepath: FilePath
    old_name: str = Field(min_length=1, description="Current worksheet name.")
    new_name: str = Field(min_length=1, max_length=31, description="New worksheet name.")


# ---------------------------------------------------------------------------
# Cell / range data
# ---------------------------------------------------------------------------


class DataWriteParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    data: list[list[Any]] = Field(description="2D array of rows to write.")
    start_cell: CellRef = "A1"


class DataReadParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    start_cell: CellRef = "A1"
    end_cell: str | None = Field(
        default=None, description="Last cell to read. Defaults to the sheet's used range."
    )


class CellWriteParams(BaseModel):
    filepath: FilePath
    sheet_name: SheetName
    cell: CellRef
    # Required, but null clears the cell.
    value: Any = Field(description="Value to write to the cell.")


class ServerStatusParams(BaseModel):
    pass


PARAMS_MAP: dict[str, type[BaseModel]] = {
    "workbook-create": WorkbookCreateParams,
    "worksheet-create": WorksheetCreateParams,
    "worksheet-delete": WorksheetDeleteParams,
    "worksheet-rename": WorksheetRenameParams,
    "data-write": DataWriteParams,
    "data-read": DataReadParams,
    "cell-write": CellWriteParams,
    "server-status": ServerStatusParams,
}
