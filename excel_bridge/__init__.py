"""Excel Bridge — Spreadsheet tools served over stdio JSON-RPC.

Exposes workbook, worksheet, cell, formatting, chart, pivot, table and VBA
operations as named tools that an LLM client can discover with
``tools/list`` and invoke with ``tools/call``.

Protocol traffic flows on stdout only.  Diagnostics go to stderr.
"""

__version__ = "1.0.0"
__protocol_version__ = "2024-11-05"

__all__ = ["__version__", "__protocol_version__"]
