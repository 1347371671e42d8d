"""Core tools — workbook, worksheet and cell primitives plus server status.

These are registered first with ``CORE = True`` so no other group can
shadow them.
"""

from __future__ import annotations

import asyncio
from typing import Any

from excel_bridge.engine.cells import cell_to_value, parse_range, split_cell, to_cell_input
from excel_bridge.exceptions import WorkbookError
from excel_bridge.protocol.params.core import (
    CellWriteParams,
    DataReadParams,
    DataWriteParams,
    ServerStatusParams,
    WorkbookCreateParams,
    WorksheetCreateParams,
    WorksheetDeleteParams,
    WorksheetRenameParams,
)
from excel_bridge.tools.base import BaseToolGroup
from excel_bridge.tools.manifest import (
    ParamSpec,
    ToolGroupManifest,
    ToolSpec,
    describe,
    string_param,
    string_params,
)

CAPABILITIES = [
    "workbook_operations",
    "worksheet_operations",
    "data_operations",
    "cell_operations",
]


class CoreToolGroup(BaseToolGroup):
    GROUP_ID = "core"
    VERSION = "1.0.0"
    CORE = True

    # ------------------------------------------------------------------
    # Workbook lifecycle
    # ------------------------------------------------------------------

    async def _tool_workbook_create(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = WorkbookCreateParams.model_validate(arguments)

        def _create() -> dict[str, Any]:
            path = self.store.create(p.filepath, p.sheet_name)
            return {
                "success": True,
                "filepath": str(path),
                "sheet_names": [p.sheet_name or self.settings.workbook.default_sheet_name],
            }

        return await asyncio.to_thread(_create)

    # ------------------------------------------------------------------
    # Sheet management
    # ------------------------------------------------------------------

    async def _tool_worksheet_create(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = WorksheetCreateParams.model_validate(arguments)

        def _create() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                if p.sheet_name in wb.sheetnames:
                    raise WorkbookError(f"Sheet '{p.sheet_name}' already exists.")
                wb.create_sheet(title=p.sheet_name)
                return {"success": True, "sheet_name": p.sheet_name}

        return await asyncio.to_thread(_create)

    async def _tool_worksheet_delete(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = WorksheetDeleteParams.model_validate(arguments)

        def _delete() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                if len(wb.sheetnames) == 1:
                    raise WorkbookError(f"Cannot delete '{p.sheet_name}': a workbook needs at least one sheet.")
                wb.remove(ws)
                return {"success": True, "sheet_name": p.sheet_name}

        return await asyncio.to_thread(_delete)

    async def _tool_worksheet_rename(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = WorksheetRenameParams.model_validate(arguments)

        def _rename() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.old_name)
                if p.new_name != p.old_name and p.new_name in wb.sheetnames:
                    raise WorkbookError(f"Sheet '{p.new_name}' already exists.")
                ws.title = p.new_name
                return {"success": True, "old_name": p.old_name, "new_name": p.new_name}

        return await asyncio.to_thread(_rename)

    # ------------------------------------------------------------------
    # Cell data
    # ------------------------------------------------------------------

    async def _tool_data_write(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = DataWriteParams.model_validate(arguments)

        def _write() -> dict[str, Any]:
            start_row, start_col = split_cell(p.start_cell)
            with self.store.edit(p.filepath) as wb:
                # Missing sheets are created on write.
                ws = self.store.sheet(wb, p.sheet_name, create=True)
                cells_written = 0
                for r_offset, row in enumerate(p.data):
                    for c_offset, value in enumerate(row):
                        ws.cell(
                            row=start_row + r_offset,
                            column=start_col + c_offset,
                            value=to_cell_input(value),
                        )
                        cells_written += 1
                return {
                    "success": True,
                    "rows_written": len(p.data),
                    "cells_written": cells_written,
                }

        return await asyncio.to_thread(_write)

    async def _tool_data_read(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = DataReadParams.model_validate(arguments)

        def _read() -> dict[str, Any]:
            wb = self.store.load(p.filepath)
            ws = self.store.sheet(wb, p.sheet_name)
            min_row, min_col = split_cell(p.start_cell)
            if p.end_cell:
                _, max_row, _, max_col = parse_range(p.end_cell)
            else:
                max_row, max_col = ws.max_row, ws.max_column

            data: list[list[Any]] = []
            if max_row >= min_row and max_col >= min_col:
                for row in ws.iter_rows(
                    min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col
                ):
                    data.append([cell_to_value(c.value) for c in row])
            return {"data": data}

        return await asyncio.to_thread(_read)

    async def _tool_cell_write(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = CellWriteParams.model_validate(arguments)

        def _write() -> dict[str, Any]:
            row, col = split_cell(p.cell)
            with self.store.edit(p.filepath) as wb:
                ws = self.store.sheet(wb, p.sheet_name)
                ws.cell(row=row, column=col, value=to_cell_input(p.value))
                return {"success": True, "cell": p.cell.upper()}

        return await asyncio.to_thread(_write)

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    async def _tool_server_status(self, arguments: dict[str, Any]) -> dict[str, Any]:
        ServerStatusParams.model_validate(arguments)
        server = self.settings.server
        cache = self.store.cache
        return {
            "status": "running",
            "version": server.version,
            "description": server.description,
            "capabilities": list(CAPABILITIES),
            "uptime_seconds": round(self.context.uptime_seconds, 3),
            "cache": cache.stats() if cache is not None else {"enabled": False},
        }

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    def get_manifest(self) -> ToolGroupManifest:
        return ToolGroupManifest(
            group_id=self.GROUP_ID,
            version=self.VERSION,
            description="Workbook, worksheet and cell primitives.",
            tools=[
                ToolSpec(
                    name="workbook-create",
                    description="Create a new Excel workbook",
                    params=string_params(("filepath",), ("sheet_name",)),
                ),
                ToolSpec(
                    name="worksheet-create",
                    description="Create new worksheet",
                    params=string_params(("filepath", "sheet_name")),
                ),
                ToolSpec(
                    name="worksheet-delete",
                    description="Delete a worksheet",
                    params=string_params(("filepath", "sheet_name")),
                ),
                ToolSpec(
                    name="worksheet-rename",
                    description="Rename a worksheet",
                    params=string_params(("filepath", "old_name", "new_name")),
                ),
                ToolSpec(
                    name="data-write",
                    description="Write 2D array data to worksheet",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        ParamSpec("data", "array", "2D array of data to write", items="array"),
                        string_param("start_cell", required=False, default="A1",
                                     description=describe("start_cell")),
                    ),
                ),
                ToolSpec(
                    name="data-read",
                    description="Read data from worksheet",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("start_cell", required=False, default="A1",
                                     description=describe("start_cell")),
                        string_param("end_cell", required=False),
                    ),
                ),
                ToolSpec(
                    name="cell-write",
                    description="Write value to a single cell",
                    params=(
                        string_param("filepath"),
                        string_param("sheet_name"),
                        string_param("cell"),
                        ParamSpec("value", None, "Value to write to the cell"),
                    ),
                ),
                ToolSpec(
                    name="server-status",
                    description="Get MCP server status and information",
                ),
            ],
        )
