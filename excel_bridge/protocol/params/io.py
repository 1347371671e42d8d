"""Typed argument models for workbook metadata and CSV import / export."""

from __future__ import annotations

from pydantic import BaseModel, Field

from excel_bridge.protocol.params.core import FilePath, SheetName


class WorkbookMetadataParams(BaseModel):
    filepath: FilePath


class ImportCsvParams(BaseModel):
    csv_path: str = Field(min_length=1, description="Path to the source CSV file.")
    excel_path: str = Field(min_length=1, description="Path to the target Excel workbook.")
    sheet_name: SheetName = "Sheet1"
    has_header: bool = Field(default=True, description="Treat the first CSV row as a header.")
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    encoding: str = "utf-8"


class ExportCsvParams(BaseModel):
    excel_path: str = Field(min_length=1, description="Path to the source Excel workbook.")
    sheet_name: SheetName
    csv_path: str = Field(min_length=1, description="Path of the CSV file to write.")
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    encoding: str = "utf-8"


PARAMS_MAP: dict[str, type[BaseModel]] = {
    "workbook-metadata": WorkbookMetadataParams,
    "io-import-csv": ImportCsvParams,
    "io-export-csv": ExportCsvParams,
}
