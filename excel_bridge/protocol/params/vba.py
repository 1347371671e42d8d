"""Typed argument models for the VBA module tools."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field

from excel_bridge.protocol.params.core import FilePath

# Square brackets delimit modules in the stored text.
ModuleName = Annotated[
    str, Field(min_length=1, pattern=r"^[^\[\]]+$", description="VBA module name.")
]


class VbaReadParams(BaseModel):
    filepath: FilePath


class VbaWriteParams(BaseModel):
    filepath: FilePath
    vba_code: str


class VbaModulesParams(BaseModel):
    filepath: FilePath


class VbaModuleReadParams(BaseModel):
    filepath: FilePath
    module_name: ModuleName


class VbaModuleWriteParams(BaseModel):
    filepath: FilePath
    module_name: ModuleName
    vba_code: str


class VbaModuleDeleteParams(BaseModel):
    filepath: FilePath
    module_name: ModuleName


PARAMS_MAP: dict[str, type[BaseModel]] = {
    "vba-read": VbaReadParams,
    "vba-write": VbaWriteParams,
    "vba-modules": VbaModulesParams,
    "vba-module-read": VbaModuleReadParams,
    "vba-module-write": VbaModuleWriteParams,
    "vba-module-delete": VbaModuleDeleteParams,
}
