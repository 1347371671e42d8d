"""Tool layer — Capability manifest.

A ToolSpec is the machine-readable contract between a tool handler and the
caller: the name advertised by ``tools/list``, a one-line description and the
``inputSchema`` built from a list of :class:`ParamSpec`.

The schema is advisory.  Handlers validate their own arguments.

Shape builders:
  - :func:`simple_schema`  — one required string parameter
  - :func:`string_params`  — any mix of required / optional string parameters
  - bespoke ``ParamSpec`` tuples for arrays, objects, integers and booleans
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Descriptions reused across tools.  Unknown names fall back to a generic text.
COMMON_DESCRIPTIONS: dict[str, str] = {
    "filepath": "Path to the Excel workbook",
    "sheet_name": "Name of the worksheet",
    "cell": "Cell address (e.g., 'A1')",
    "range": "Cell range (e.g., 'A1:D10')",
    "start_cell": "Starting cell (e.g., 'A1')",
    "end_cell": "Ending cell",
    "csv_path": "Path to the CSV file",
    "excel_path": "Path to the Excel workbook",
    "old_name": "Current worksheet name",
    "new_name": "New worksheet name",
    "formula": "Formula to apply (e.g., '=SUM(A1:A10)')",
    "name": "Name to create",
    "module_name": "Name of the VBA module",
    "vba_code": "VBA source code",
    "text": "Comment text",
    "author": "Comment author",
    "url": "Hyperlink target",
    "display_text": "Text shown in the cell",
    "image_path": "Path to the image file",
}

SCHEMA_TYPES = frozenset({"string", "integer", "number", "boolean", "object", "array"})


def normalize_tool_name(name: str) -> str:
    """Map ``"cell-write"`` and ``"cell_write"`` to the same key."""
    return name.replace("-", "_")


@dataclass(frozen=True)
class ParamSpec:
    """Description of a single tool parameter.

    ``type=None`` advertises an untyped parameter (any JSON value).
    """

    name: str
    type: str | None
    description: str
    required: bool = True
    default: Any = None
    enum: tuple[Any, ...] | None = None
    items: str | None = None  # item type for arrays

    def __post_init__(self) -> None:
        if self.type is not None and self.type not in SCHEMA_TYPES:
            raise ValueError(f"Unsupported schema type {self.type!r} for param '{self.name}'")
        if self.items is not None and self.type != "array":
            raise ValueError(f"'items' is only valid for array params ('{self.name}')")

    def to_property(self) -> dict[str, Any]:
        prop: dict[str, Any] = {}
        if self.type is not None:
            prop["type"] = self.type
        prop["description"] = self.description
        if self.items is not None:
            prop["items"] = {"type": self.items}
        if self.enum is not None:
            prop["enum"] = list(self.enum)
        if self.default is not None:
            prop["default"] = self.default
        return prop


@dataclass(frozen=True)
class ToolSpec:
    """Description of a single tool exposed to callers."""

    name: str
    description: str
    params: tuple[ParamSpec, ...] = ()

    @property
    def key(self) -> str:
        return normalize_tool_name(self.name)

    @property
    def required(self) -> list[str]:
        return [p.name for p in self.params if p.required]

    def to_json_schema(self) -> dict[str, Any]:
        """Generate the ``inputSchema`` object for this tool."""
        return {
            "type": "object",
            "properties": {p.name: p.to_property() for p in self.params},
            "required": self.required,
        }

    def to_descriptor(self) -> dict[str, Any]:
        """Fresh descriptor dict.  Callers may mutate it freely."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.to_json_schema(),
        }


@dataclass
class ToolGroupManifest:
    """All tools contributed by one tool group."""

    group_id: str
    version: str
    description: str
    tools: list[ToolSpec] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Shape builders
# ---------------------------------------------------------------------------


def describe(name: str, optional: bool = False) -> str:
    text = COMMON_DESCRIPTIONS.get(name, f"The {name} parameter")
    return f"{text} (optional)" if optional else text


def string_param(
    name: str,
    description: str | None = None,
    required: bool = True,
    default: str | None = None,
) -> ParamSpec:
    return ParamSpec(
        name=name,
        type="string",
        description=description or describe(name, optional=not required),
        required=required,
        default=default,
    )


def simple_schema(name: str) -> tuple[ParamSpec, ...]:
    """A single required string parameter."""
    return (string_param(name),)


def string_params(
    required: tuple[str, ...] | list[str],
    optional: tuple[str, ...] | list[str] = (),
) -> tuple[ParamSpec, ...]:
    """Required string parameters followed by optional ones."""
    return tuple(string_param(n) for n in required) + tuple(
        string_param(n, required=False) for n in optional
    )
