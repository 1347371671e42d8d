"""CLI — Tool input schema export."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.syntax import Syntax

app = typer.Typer(help="Inspect and export tool input schemas.")
console = Console()


@app.callback()
def schema_callback() -> None:
    pass


@app.command("dump")
def dump_schema(
    tool: str | None = typer.Option(None, "--tool", "-t", help="Dump a single tool. Dumps all if not specified."),
    output: str | None = typer.Option(None, "--output", "-o", help="Output file path."),
) -> None:
    """Dump tool input schemas as JSON."""
    from excel_bridge.config import Settings
    from excel_bridge.exceptions import ToolNotFoundError
    from excel_bridge.logging import configure_logging
    from excel_bridge.server import build_store
    from excel_bridge.tools import ToolContext, build_registry

    settings = Settings.load()
    configure_logging(level="warning", format=settings.logging.format)
    registry = build_registry(ToolContext(settings=settings, store=build_store(settings)))

    if tool:
        try:
            schema = registry.resolve(tool).spec.to_json_schema()
        except ToolNotFoundError as exc:
            console.print(f"[red]Error: {exc.message}[/red]")
            raise typer.Exit(1)
    else:
        schema = {d["name"]: d["inputSchema"] for d in registry.descriptors()}

    json_str = json.dumps(schema, indent=2, default=str)

    if output:
        Path(output).write_text(json_str)
        console.print(f"[green]Schema written to {output}[/green]")
    else:
        console.print(Syntax(json_str, "json"))
