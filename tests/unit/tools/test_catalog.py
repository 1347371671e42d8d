"""Unit tests — advertised catalog vs. handler argument models.

Each descriptor's ``required`` list and property names must match the
Pydantic model its handler validates with, so callers never see a schema
that disagrees with the error they get back.
"""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from excel_bridge.protocol.params import ALL_PARAMS
from excel_bridge.tools import DEFAULT_GROUPS, ToolRegistry


def _models() -> dict[str, type[BaseModel]]:
    merged: dict[str, type[BaseModel]] = {}
    for params_map in ALL_PARAMS.values():
        merged.update(params_map)
    return merged


EXPECTED_ORDER_HEAD = [
    "workbook-create",
    "worksheet-create",
    "worksheet-delete",
    "worksheet-rename",
    "data-write",
    "data-read",
    "cell-write",
    "server-status",
]


@pytest.mark.unit
class TestCatalog:
    def test_tool_count(self, registry: ToolRegistry) -> None:
        assert len(registry) == 39
        assert len(registry.descriptors()) == 39

    def test_core_tools_come_first(self, registry: ToolRegistry) -> None:
        assert registry.names()[: len(EXPECTED_ORDER_HEAD)] == EXPECTED_ORDER_HEAD

    def test_every_tool_has_a_params_model(self, registry: ToolRegistry) -> None:
        assert set(registry.names()) == set(_models())

    def test_group_ids_match_params_modules(self) -> None:
        assert [g.GROUP_ID for g in DEFAULT_GROUPS] == list(ALL_PARAMS)

    def test_required_lists_match_models(self, registry: ToolRegistry) -> None:
        models = _models()
        mismatches = {}
        for descriptor in registry.descriptors():
            model = models[descriptor["name"]]
            required = {n for n, f in model.model_fields.items() if f.is_required()}
            if set(descriptor["inputSchema"]["required"]) != required:
                mismatches[descriptor["name"]] = (descriptor["inputSchema"]["required"], sorted(required))
        assert mismatches == {}

    def test_properties_match_model_fields(self, registry: ToolRegistry) -> None:
        models = _models()
        for descriptor in registry.descriptors():
            model = models[descriptor["name"]]
            assert set(descriptor["inputSchema"]["properties"]) == set(model.model_fields), descriptor["name"]

    def test_every_descriptor_resolves(self, registry: ToolRegistry) -> None:
        for descriptor in registry.descriptors():
            name = descriptor["name"]
            assert registry.resolve(name) is registry.resolve(name.replace("-", "_"))

    def test_descriptor_shape(self, registry: ToolRegistry) -> None:
        for descriptor in registry.descriptors():
            assert set(descriptor) == {"name", "description", "inputSchema"}
            assert descriptor["description"]
            assert descriptor["inputSchema"]["type"] == "object"

    def test_typed_shapes(self, registry: ToolRegistry) -> None:
        props = {d["name"]: d["inputSchema"]["properties"] for d in registry.descriptors()}
        assert props["data-write"]["data"] == {
            "type": "array",
            "description": "2D array of data to write",
            "items": {"type": "array"},
        }
        assert "type" not in props["cell-write"]["value"]
        assert props["rows-insert"]["position"]["type"] == "integer"
        assert props["rows-insert"]["count"]["default"] == 1
        assert props["format-range"]["bold"]["type"] == "boolean"
        assert props["format-conditional"]["rule_type"]["enum"] == [
            "cell_value",
            "formula",
            "color_scale",
            "data_bar",
        ]
