"""CLI — stdio server command.

stdout belongs to the protocol while the server runs, so every message
this command prints goes to stderr.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

console = Console(stderr=True)


def serve(
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to config.yaml.")
    ] = None,
    log_level: str | None = typer.Option(None, "--log-level", help="Override the configured log level."),
    log_format: str | None = typer.Option(None, "--log-format", help="console or json."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Reload workbooks from disk on every call."),
) -> None:
    """Serve spreadsheet tools over stdin/stdout until EOF."""
    from excel_bridge.config import LoggingConfig, Settings
    from excel_bridge.logging import configure_logging
    from excel_bridge.server import create_server

    try:
        settings = Settings.load(config_file=config)
        overrides = {}
        if log_level:
            overrides["level"] = log_level.lower()
        if log_format:
            overrides["format"] = log_format.lower()
        if overrides:
            settings.logging = LoggingConfig.model_validate({**settings.logging.model_dump(), **overrides})
        if no_cache:
            settings.cache.enabled = False
    except Exception as exc:
        console.print(f"[red]Error: invalid configuration: {exc}[/red]")
        raise typer.Exit(1)

    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
        log_file=str(settings.logging.file) if settings.logging.file else None,
    )

    server = create_server(settings=settings)
    try:
        asyncio.run(server.serve())
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
