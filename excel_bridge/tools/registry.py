"""Tool layer — Tool registry.

The registry is the single point of truth for dispatch *and* discovery:
``tools/call`` resolves handlers through it and ``tools/list`` is built from
the very same entries, so an advertised tool can never be missing a handler.

  - One key space: names are normalized (``-`` → ``_``) before lookup, so
    ``"cell-write"`` and ``"cell_write"`` reach the same entry.
  - Core tools have priority: a non-core registration never replaces a core
    entry.
  - The registry is populated once at startup and then frozen.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from excel_bridge.exceptions import ToolNotFoundError, ToolRegistrationError
from excel_bridge.logging import get_logger
from excel_bridge.tools.manifest import ToolSpec, normalize_tool_name

if TYPE_CHECKING:
    from excel_bridge.tools.base import BaseToolGroup

log = get_logger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class ToolEntry:
    spec: ToolSpec
    handler: Handler
    group: str
    core: bool = False

    @property
    def name(self) -> str:
        return self.spec.name


class ToolRegistry:
    """Normalized tool name → :class:`ToolEntry`.

    Usage::

        registry = ToolRegistry()
        registry.register_group(CoreToolGroup(context))
        registry.freeze()
        entry = registry.resolve("cell-write")
        result = await entry.handler({"filepath": "a.xlsx", ...})
    """

    def __init__(self) -> None:
        self._entries: dict[str, ToolEntry] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(
        self,
        spec: ToolSpec,
        handler: Handler,
        *,
        group: str,
        core: bool = False,
    ) -> bool:
        """Add or replace the entry for *spec*.  Returns False when ignored."""
        if self._frozen:
            raise ToolRegistrationError(spec.name, "registry is frozen")

        existing = self._entries.get(spec.key)
        if existing is not None:
            if existing.core and not core:
                log.warning(
                    "tool_registration_ignored",
                    tool=spec.name,
                    group=group,
                    owner=existing.group,
                )
                return False
            log.info("tool_replaced", tool=spec.name, group=group, previous=existing.group)

        self._entries[spec.key] = ToolEntry(spec=spec, handler=handler, group=group, core=core)
        return True

    def register_group(self, group: "BaseToolGroup") -> int:
        """Register every tool in *group*'s manifest.  Returns the count added."""
        manifest = group.get_manifest()
        added = 0
        for spec in manifest.tools:
            if not group.has_handler(spec.name):
                raise ToolRegistrationError(
                    spec.name,
                    f"group '{group.GROUP_ID}' has no _tool_{spec.key} handler",
                )
            handler = functools.partial(group.execute, spec.name)
            if self.register(spec, handler, group=group.GROUP_ID, core=group.CORE):
                added += 1
        log.debug("tool_group_registered", group=group.GROUP_ID, version=manifest.version, tools=added)
        return added

    def freeze(self) -> None:
        self._frozen = True

    def resolve(self, name: str) -> ToolEntry:
        """Return the entry for *name* in either spelling.

        Raises:
            ToolNotFoundError: Nothing is registered under *name*.
        """
        entry = self._entries.get(normalize_tool_name(name))
        if entry is None:
            raise ToolNotFoundError(name)
        return entry

    def names(self) -> list[str]:
        """Advertised (kebab-case) names in registration order."""
        return [e.spec.name for e in self._entries.values()]

    def descriptors(self) -> list[dict[str, Any]]:
        """Fresh ``tools/list`` descriptors in registration order."""
        return [e.spec.to_descriptor() for e in self._entries.values()]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_tool_name(name) in self._entries
