"""Tool layer — tool groups, manifests and the registry that wires them up."""

from __future__ import annotations

from excel_bridge.logging import get_logger
from excel_bridge.tools.base import BaseToolGroup, ToolContext
from excel_bridge.tools.core import CoreToolGroup
from excel_bridge.tools.data import DataToolGroup
from excel_bridge.tools.features import FeaturesToolGroup
from excel_bridge.tools.formatting import FormattingToolGroup
from excel_bridge.tools.io import IOToolGroup
from excel_bridge.tools.registry import ToolEntry, ToolRegistry
from excel_bridge.tools.vba import VbaToolGroup

log = get_logger(__name__)

# Registration order is the order tools/list advertises.
DEFAULT_GROUPS: tuple[type[BaseToolGroup], ...] = (
    CoreToolGroup,
    IOToolGroup,
    FormattingToolGroup,
    DataToolGroup,
    FeaturesToolGroup,
    VbaToolGroup,
)


def build_registry(
    context: ToolContext,
    groups: tuple[type[BaseToolGroup], ...] = DEFAULT_GROUPS,
) -> ToolRegistry:
    """Instantiate *groups*, register their tools and freeze the registry."""
    registry = ToolRegistry()
    for group_cls in groups:
        registry.register_group(group_cls(context))
    registry.freeze()
    log.info("tool_registry_built", tools=len(registry), groups=[g.GROUP_ID for g in groups])
    return registry


__all__ = [
    "BaseToolGroup",
    "DEFAULT_GROUPS",
    "ToolContext",
    "ToolEntry",
    "ToolRegistry",
    "build_registry",
]
