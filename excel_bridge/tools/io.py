"""I/O tools — workbook metadata and CSV import / export."""

from __future__ import annotations

import asyncio
import csv
from pathlib import Path
from typing import Any

from openpyxl.styles import Font

from excel_bridge.engine.cells import cell_to_value, coerce_scalar
from excel_bridge.engine.store import resolve_path
from excel_bridge.exceptions import WorkbookError
from excel_bridge.protocol.params.io import (
    ExportCsvParams,
    ImportCsvParams,
    WorkbookMetadataParams,
)
from excel_bridge.tools.base import BaseToolGroup
from excel_bridge.tools.manifest import (
    ParamSpec,
    ToolGroupManifest,
    ToolSpec,
    simple_schema,
    string_params,
)


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


class IOToolGroup(BaseToolGroup):
    GROUP_ID = "io"
    VERSION = "1.0.0"

    async def _tool_workbook_metadata(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = WorkbookMetadataParams.model_validate(arguments)

        def _info() -> dict[str, Any]:
            wb = self.store.load(p.filepath)
            path = resolve_path(p.filepath)
            props = wb.properties

            named: list[dict[str, Any]] = [
                {"name": dn.name, "value": dn.attr_text, "scope": "workbook"}
                for dn in wb.defined_names.values()
            ]
            for ws in wb.worksheets:
                named.extend(
                    {"name": dn.name, "value": dn.attr_text, "scope": ws.title}
                    for dn in ws.defined_names.values()
                )

            return {
                "filepath": str(path),
                "file_name": path.name,
                "file_size": path.stat().st_size,
                "worksheets": len(wb.sheetnames),
                "sheet_names": wb.sheetnames,
                "sheets": [
                    {
                        "name": ws.title,
                        "dimensions": ws.dimensions,
                        "max_row": ws.max_row,
                        "max_column": ws.max_column,
                    }
                    for ws in wb.worksheets
                ],
                "author": props.creator,
                "title": props.title,
                "comments": props.description,
                "created": _iso(props.created),
                "modified": _iso(props.modified),
                "named_ranges": named,
            }

        return await asyncio.to_thread(_info)

    async def _tool_io_import_csv(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = ImportCsvParams.model_validate(arguments)

        def _import() -> dict[str, Any]:
            source = Path(p.csv_path).expanduser()
            if not source.is_file():
                raise WorkbookError(f"CSV file not found: {p.csv_path}", context={"path": p.csv_path})

            with source.open(newline="", encoding=p.encoding) as f:
                rows = list(csv.reader(f, delimiter=p.delimiter))

            # A missing target workbook is created with the import sheet.
            if not resolve_path(p.excel_path).is_file():
                self.store.create(p.excel_path, p.sheet_name)

            with self.store.edit(p.excel_path) as wb:
                ws = self.store.sheet(wb, p.sheet_name, create=True)
                header_font = Font(bold=True)
                for r_idx, row in enumerate(rows, start=1):
                    is_header = p.has_header and r_idx == 1
                    for c_idx, text in enumerate(row, start=1):
                        cell = ws.cell(
                            row=r_idx,
                            column=c_idx,
                            value=text if is_header else coerce_scalar(text),
                        )
                        if is_header:
                            cell.font = header_font

            return {
                "success": True,
                "sheet_name": p.sheet_name,
                "rows_imported": len(rows),
                "columns_imported": max((len(r) for r in rows), default=0),
            }

        return await asyncio.to_thread(_import)

    async def _tool_io_export_csv(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = ExportCsvParams.model_validate(arguments)

        def _export() -> dict[str, Any]:
            wb = self.store.load(p.excel_path)
            ws = self.store.sheet(wb, p.sheet_name)

            output_path = Path(p.csv_path).expanduser()
            output_path.parent.mkdir(parents=True, exist_ok=True)

            rows_written = 0
            with output_path.open("w", newline="", encoding=p.encoding) as f:
                writer = csv.writer(f, delimiter=p.delimiter)
                for row in ws.iter_rows(values_only=True):
                    writer.writerow(["" if v is None else cell_to_value(v) for v in row])
                    rows_written += 1

            return {
                "success": True,
                "csv_path": str(output_path.resolve()),
                "rows_written": rows_written,
            }

        return await asyncio.to_thread(_export)

    def get_manifest(self) -> ToolGroupManifest:
        return ToolGroupManifest(
            group_id=self.GROUP_ID,
            version=self.VERSION,
            description="Workbook metadata and CSV import / export.",
            tools=[
                ToolSpec(
                    name="workbook-metadata",
                    description="Get workbook metadata",
                    params=simple_schema("filepath"),
                ),
                ToolSpec(
                    name="io-import-csv",
                    description="Import CSV data to Excel",
                    params=string_params(("csv_path", "excel_path"), ("sheet_name",))
                    + (
                        ParamSpec("has_header", "boolean", "First CSV row is a header (default: true)",
                                  required=False, default=True),
                        ParamSpec("delimiter", "string", "Field delimiter (default: ',')",
                                  required=False, default=","),
                        ParamSpec("encoding", "string", "CSV file encoding (default: utf-8)",
                                  required=False, default="utf-8"),
                    ),
                ),
                ToolSpec(
                    name="io-export-csv",
                    description="Export Excel data to CSV",
                    params=string_params(("excel_path", "sheet_name", "csv_path"))
                    + (
                        ParamSpec("delimiter", "string", "Field delimiter (default: ',')",
                                  required=False, default=","),
                        ParamSpec("encoding", "string", "CSV file encoding (default: utf-8)",
                                  required=False, default="utf-8"),
                    ),
                ),
            ],
        )
