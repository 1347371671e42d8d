"""Tool layer — BaseToolGroup interface.

Every tool group subclasses ``BaseToolGroup`` and implements
``get_manifest()`` plus one ``_tool_<snake_name>`` coroutine per tool the
manifest declares.

Design principles:
  - Groups hold no per-call state.  Workbooks are opened, changed and saved
    inside a single handler call through the shared ``WorkbookStore``.
  - Handlers validate their own arguments with the Pydantic models in
    :mod:`excel_bridge.protocol.params`.
  - Blocking openpyxl work runs in ``asyncio.to_thread``.
  - Anything that is not already an ``ExcelBridgeError`` is wrapped in
    ``ToolExecutionError`` with the original message preserved.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from excel_bridge.config import Settings
from excel_bridge.engine.store import WorkbookStore
from excel_bridge.exceptions import (
    ExcelBridgeError,
    InvalidParamsError,
    ToolExecutionError,
    ToolNotFoundError,
)
from excel_bridge.tools.manifest import ToolGroupManifest, normalize_tool_name


@dataclass
class ToolContext:
    """Shared collaborators handed to every tool group."""

    settings: Settings
    store: WorkbookStore
    started_at: float = field(default_factory=time.monotonic)

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at


def format_validation_error(tool: str, exc: ValidationError) -> str:
    """``"Invalid arguments for tool 'x': cell: Field required; ..."``"""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return f"Invalid arguments for tool '{tool}': " + "; ".join(parts)


class BaseToolGroup(ABC):
    """Abstract base class for tool groups.

    Subclasses must:
      1. Set ``GROUP_ID`` (snake_case, e.g. ``"formatting"``)
      2. Set ``VERSION``
      3. Implement :meth:`get_manifest`
      4. Implement ``_tool_<name>`` for each declared tool, where ``<name>``
         is the tool name with hyphens replaced by underscores

    Groups with ``CORE = True`` win over any other group that declares a
    tool of the same name.
    """

    GROUP_ID: str = ""
    VERSION: str = "0.0.0"
    CORE: bool = False

    def __init__(self, context: ToolContext) -> None:
        self.context = context

    @property
    def store(self) -> WorkbookStore:
        return self.context.store

    @property
    def settings(self) -> Settings:
        return self.context.settings

    @abstractmethod
    def get_manifest(self) -> ToolGroupManifest:
        """Return the tools this group contributes, in advertised order."""
        ...

    def _get_handler(self, tool: str) -> Any:
        """Convention: tool ``"cell-write"`` maps to method ``_tool_cell_write``."""
        handler = getattr(self, f"_tool_{normalize_tool_name(tool)}", None)
        if handler is None:
            raise ToolNotFoundError(tool)
        return handler

    def has_handler(self, tool: str) -> bool:
        return callable(getattr(self, f"_tool_{normalize_tool_name(tool)}", None))

    async def execute(self, tool: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Dispatch *tool* to its ``_tool_<name>`` method.

        Raises:
            ToolNotFoundError:  No ``_tool_<name>`` method exists.
            InvalidParamsError: The arguments failed model validation.
            ToolExecutionError: The handler raised an unexpected exception.
        """
        handler = self._get_handler(tool)
        if not isinstance(arguments, dict):
            raise InvalidParamsError(
                f"Invalid arguments for tool '{tool}': arguments must be an object",
                tool=tool,
            )
        try:
            return await handler(arguments)
        except ValidationError as exc:
            raise InvalidParamsError(
                format_validation_error(tool, exc),
                tool=tool,
                errors=exc.errors(include_url=False),
            ) from exc
        except ExcelBridgeError:
            raise
        except Exception as exc:
            raise ToolExecutionError(tool=tool, cause=exc) from exc
