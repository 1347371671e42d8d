"""Excel Bridge CLI — Entry point.

Usage:
    excel-bridge serve
    excel-bridge tools list
    excel-bridge tools call <name> --args '{"filepath": "a.xlsx"}'
    excel-bridge schema dump
    excel-bridge version
"""

from __future__ import annotations

import typer
from rich.console import Console

from excel_bridge import __version__
from excel_bridge.cli.commands import schema, serve, tools

app = typer.Typer(
    name="excel-bridge",
    help="Excel Bridge — spreadsheet tools over newline-delimited JSON-RPC on stdio.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

console = Console()

app.command("serve")(serve.serve)
app.add_typer(tools.app, name="tools")
app.add_typer(schema.app, name="schema")


@app.command("version")
def version() -> None:
    """Print the server version."""
    console.print(f"excel-bridge {__version__}")


@app.callback()
def main_callback() -> None:
    pass


if __name__ == "__main__":
    app()
