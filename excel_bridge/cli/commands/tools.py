"""CLI — Tool catalog inspection and one-off tool calls."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

app = typer.Typer(help="List the tool catalog or invoke a single tool locally.")
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to config.yaml.")
]


def _registry(config: Path | None) -> Any:
    from excel_bridge.config import Settings
    from excel_bridge.logging import configure_logging
    from excel_bridge.server import build_store
    from excel_bridge.tools import ToolContext, build_registry

    settings = Settings.load(config_file=config)
    # Keep informational startup events out of the command output.
    configure_logging(level="warning", format=settings.logging.format)
    return build_registry(ToolContext(settings=settings, store=build_store(settings)))


@app.command("list")
def list_tools(
    config: ConfigOption = None,
    json_output: bool = typer.Option(False, "--json", help="Output raw descriptors."),
) -> None:
    """List every advertised tool."""
    registry = _registry(config)

    if json_output:
        console.print(Syntax(json.dumps(registry.descriptors(), indent=2), "json"))
        return

    table = Table(title=f"Tools ({len(registry)})")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Required")
    table.add_column("Description")

    for descriptor in registry.descriptors():
        table.add_row(
            descriptor["name"],
            ", ".join(descriptor["inputSchema"].get("required", [])),
            descriptor["description"],
        )
    console.print(table)


@app.command("call")
def call_tool(
    name: str = typer.Argument(help="Tool name, e.g. cell-write."),
    args: str = typer.Option("{}", "--args", "-a", help="Tool arguments as a JSON object."),
    config: ConfigOption = None,
) -> None:
    """Invoke one tool and print its result."""
    from excel_bridge.exceptions import ExcelBridgeError

    try:
        arguments = json.loads(args)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Error: --args is not valid JSON: {exc}[/red]")
        raise typer.Exit(1)

    registry = _registry(config)
    try:
        entry = registry.resolve(name)
        result = asyncio.run(entry.handler(arguments))
    except ExcelBridgeError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(1)

    console.print(Syntax(json.dumps(result, indent=2, default=str), "json", word_wrap=True))
