"""VBA tools — module source kept in the workbook's document properties.

See :mod:`excel_bridge.engine.vba` for the storage format.  ``.xlsm`` files
are opened with ``keep_vba=True`` so an existing ``vbaProject.bin`` survives
every save.
"""

from __future__ import annotations

import asyncio
from typing import Any

from excel_bridge.engine import vba
from excel_bridge.protocol.params.vba import (
    VbaModuleDeleteParams,
    VbaModuleReadParams,
    VbaModulesParams,
    VbaModuleWriteParams,
    VbaReadParams,
    VbaWriteParams,
)
from excel_bridge.tools.base import BaseToolGroup
from excel_bridge.tools.manifest import ToolGroupManifest, ToolSpec, simple_schema, string_params


class VbaToolGroup(BaseToolGroup):
    GROUP_ID = "vba"
    VERSION = "1.0.0"

    async def _tool_vba_read(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = VbaReadParams.model_validate(arguments)

        def _read() -> dict[str, Any]:
            wb = self.store.load(p.filepath)
            return {
                "vba_code": wb.properties.description or "",
                "has_vba_project": vba.has_vba_project(wb),
            }

        return await asyncio.to_thread(_read)

    async def _tool_vba_write(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = VbaWriteParams.model_validate(arguments)

        def _write() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                wb.properties.description = p.vba_code
                return {"success": True, "modules": vba.list_modules(p.vba_code)}

        return await asyncio.to_thread(_write)

    async def _tool_vba_modules(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = VbaModulesParams.model_validate(arguments)

        def _list() -> dict[str, Any]:
            wb = self.store.load(p.filepath)
            return {"modules": vba.list_modules(wb.properties.description)}

        return await asyncio.to_thread(_list)

    async def _tool_vba_module_read(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = VbaModuleReadParams.model_validate(arguments)

        def _read() -> dict[str, Any]:
            wb = self.store.load(p.filepath)
            text = wb.properties.description or ""
            return {
                "module_name": p.module_name,
                "vba_code": vba.read_module(text, p.module_name),
                "found": p.module_name in vba.list_modules(text),
            }

        return await asyncio.to_thread(_read)

    async def _tool_vba_module_write(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = VbaModuleWriteParams.model_validate(arguments)

        def _write() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                wb.properties.description = vba.write_module(
                    wb.properties.description, p.module_name, p.vba_code
                )
                return {"success": True, "module_name": p.module_name}

        return await asyncio.to_thread(_write)

    async def _tool_vba_module_delete(self, arguments: dict[str, Any]) -> dict[str, Any]:
        p = VbaModuleDeleteParams.model_validate(arguments)

        def _delete() -> dict[str, Any]:
            with self.store.edit(p.filepath) as wb:
                text, removed = vba.delete_module(wb.properties.description, p.module_name)
                wb.properties.description = text or None
                return {"success": True, "module_name": p.module_name, "deleted": removed}

        return await asyncio.to_thread(_delete)

    def get_manifest(self) -> ToolGroupManifest:
        return ToolGroupManifest(
            group_id=self.GROUP_ID,
            version=self.VERSION,
            description="VBA module source stored with the workbook.",
            tools=[
                ToolSpec(name="vba-read", description="Read VBA code from workbook",
                         params=simple_schema("filepath")),
                ToolSpec(name="vba-write", description="Write VBA code to workbook",
                         params=string_params(("filepath", "vba_code"))),
                ToolSpec(name="vba-modules", description="List VBA modules in workbook",
                         params=simple_schema("filepath")),
                ToolSpec(name="vba-module-read", description="Read specific VBA module",
                         params=string_params(("filepath", "module_name"))),
                ToolSpec(name="vba-module-write", description="Write to specific VBA module",
                         params=string_params(("filepath", "module_name", "vba_code"))),
                ToolSpec(name="vba-module-delete", description="Delete a VBA module",
                         params=string_params(("filepath", "module_name"))),
            ],
        )
