"""Server layer — application factory.

``create_server()`` is the single entry point for wiring the stdio server.
All collaborators are built here so that tests can pass custom settings or
streams without touching module globals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Any

from excel_bridge.config import Settings, get_settings
from excel_bridge.engine import WorkbookCache, WorkbookStore
from excel_bridge.logging import get_logger
from excel_bridge.server.dispatcher import Dispatcher
from excel_bridge.server.session import SessionStats, StdioSession
from excel_bridge.tools import ToolContext, ToolRegistry, build_registry

log = get_logger(__name__)


@dataclass
class ExcelBridgeServer:
    settings: Settings
    store: WorkbookStore
    registry: ToolRegistry
    dispatcher: Dispatcher
    session: StdioSession

    async def serve(self) -> SessionStats:
        log.info(
            "server_starting",
            name=self.settings.server.name,
            version=self.settings.server.version,
            tools=len(self.registry),
            cache=self.store.cache is not None,
        )
        stats = await self.session.run()
        log.info("server_stopped", lines_read=stats.lines_read, errors=stats.errors)
        return stats


def build_store(settings: Settings) -> WorkbookStore:
    cache = None
    if settings.cache.enabled:
        cache = WorkbookCache(
            max_entries=settings.cache.max_entries,
            ttl_seconds=settings.cache.ttl_seconds,
        )
    return WorkbookStore(cache=cache, default_sheet_name=settings.workbook.default_sheet_name)


def create_server(
    settings: Settings | None = None,
    stdin: IO[bytes] | None = None,
    stdout: IO[Any] | None = None,
) -> ExcelBridgeServer:
    """Build a fully wired server.

    Args:
        settings: Optional settings override (used in tests).
        stdin:    Binary input stream.  Defaults to the process stdin.
        stdout:   Output stream.  Defaults to the process stdout.
    """
    if settings is None:
        settings = get_settings()

    store = build_store(settings)
    registry = build_registry(ToolContext(settings=settings, store=store))
    dispatcher = Dispatcher(registry, settings)
    session = StdioSession(dispatcher, stdin=stdin, stdout=stdout)
    return ExcelBridgeServer(
        settings=settings,
        store=store,
        registry=registry,
        dispatcher=dispatcher,
        session=session,
    )
