"""Typed argument models for every registered tool.

Each sub-module mirrors a tool group in the tools layer and exposes a
``PARAMS_MAP: dict[str, type[BaseModel]]`` mapping tool names to the
Pydantic model the handler validates its arguments with.
"""

from excel_bridge.protocol.params.core import PARAMS_MAP as CORE_PARAMS
from excel_bridge.protocol.params.data import PARAMS_MAP as DATA_PARAMS
from excel_bridge.protocol.params.features import PARAMS_MAP as FEATURES_PARAMS
from excel_bridge.protocol.params.formatting import PARAMS_MAP as FORMATTING_PARAMS
from excel_bridge.protocol.params.io import PARAMS_MAP as IO_PARAMS
from excel_bridge.protocol.params.vba import PARAMS_MAP as VBA_PARAMS

ALL_PARAMS: dict[str, dict[str, type]] = {
    "core": CORE_PARAMS,
    "io": IO_PARAMS,
    "formatting": FORMATTING_PARAMS,
    "data": DATA_PARAMS,
    "features": FEATURES_PARAMS,
    "vba": VBA_PARAMS,
}

__all__ = [
    "ALL_PARAMS",
    "CORE_PARAMS",
    "IO_PARAMS",
    "FORMATTING_PARAMS",
    "DATA_PARAMS",
    "FEATURES_PARAMS",
    "VBA_PARAMS",
]
