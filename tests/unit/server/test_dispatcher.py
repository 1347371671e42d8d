"""Unit tests — Dispatcher routing and error envelopes."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from excel_bridge.protocol.models import JsonRpcRequest
from excel_bridge.server import Dispatcher


async def _call(dispatcher: Dispatcher, payload: Any) -> dict[str, Any]:
    raw = payload if isinstance(payload, str) else json.dumps(payload)
    return json.loads(await dispatcher.handle_line(raw))


def _tool_call(name: Any, arguments: Any = None, request_id: Any = 1) -> dict[str, Any]:
    params: dict[str, Any] = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return {"jsonrpc": "2.0", "id": request_id, "method": "tools/call", "params": params}


@pytest.mark.unit
class TestProtocolMethods:
    async def test_initialize(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}})
        assert resp == {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {
                "protocolVersion": "2024-11-05",
                "capabilities": {"tools": {}, "logging": {}},
                "serverInfo": {"name": "excel-mcp-server", "version": "1.0.0"},
            },
        }

    async def test_tools_list(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, {"id": "x", "method": "tools/list"})
        tools = resp["result"]["tools"]
        assert len(tools) == 39
        assert tools[0]["name"] == "workbook-create"

    async def test_tools_list_is_not_shared(self, dispatcher: Dispatcher) -> None:
        first = await dispatcher.dispatch(JsonRpcRequest(method="tools/list", id=1))
        first["tools"].clear()
        second = await dispatcher.dispatch(JsonRpcRequest(method="tools/list", id=2))
        assert len(second["tools"]) == 39

    async def test_ping(self, dispatcher: Dispatcher) -> None:
        assert (await _call(dispatcher, {"id": 9, "method": "ping"}))["result"] == {}

    async def test_initialized_notification_gets_an_error_line(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, {"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert resp == {
            "jsonrpc": "2.0",
            "id": None,
            "error": {"code": -32601, "message": "Method not found: notifications/initialized"},
        }

    async def test_unknown_method(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, {"id": 2, "method": "resources/list"})
        assert resp["id"] == 2
        assert resp["error"] == {"code": -32601, "message": "Method not found: resources/list"}

    async def test_method_names_are_case_sensitive(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, {"id": 2, "method": "Tools/List"})
        assert resp["error"]["code"] == -32601


@pytest.mark.unit
class TestEnvelopeErrors:
    async def test_parse_error(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, "{oops")
        assert resp == {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}

    async def test_missing_method(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, {"jsonrpc": "2.0", "id": 11})
        assert resp["id"] == 11
        assert resp["error"] == {"code": -32600, "message": "Invalid Request: missing method"}

    async def test_non_object_request(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, "42")
        assert resp["id"] is None
        assert resp["error"]["code"] == -32600


@pytest.mark.unit
class TestToolsCall:
    async def test_missing_name(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, {"id": 3, "method": "tools/call", "params": {}})
        assert resp["error"] == {"code": -32000, "message": "Tool name is required"}

    @pytest.mark.parametrize("name", ["", 42, None])
    async def test_bad_name(self, dispatcher: Dispatcher, name: Any) -> None:
        resp = await _call(dispatcher, _tool_call(name))
        assert resp["error"]["message"] == "Tool name is required"

    async def test_unknown_tool(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, _tool_call("no-such-tool", {}))
        assert resp["error"] == {"code": -32000, "message": "Unknown tool: no-such-tool"}

    async def test_non_object_params(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, {"id": 3, "method": "tools/call", "params": ["cell-write"]})
        assert resp["error"]["code"] == -32000

    async def test_non_object_arguments(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, _tool_call("cell-write", "A1=5"))
        assert resp["error"]["code"] == -32000
        assert "arguments must be an object" in resp["error"]["message"]

    async def test_missing_arguments_default_to_empty(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, _tool_call("server-status"))
        assert resp["result"]["status"] == "running"

    async def test_validation_error_names_fields(self, dispatcher: Dispatcher, tmp_path: Path) -> None:
        resp = await _call(
            dispatcher,
            _tool_call("cell-write", {"filepath": str(tmp_path / "a.xlsx"), "sheet_name": "Sheet1"}, request_id=2),
        )
        assert resp["id"] == 2
        assert resp["error"]["code"] == -32000
        assert "cell" in resp["error"]["message"]
        assert "value" in resp["error"]["message"]

    async def test_both_spellings_reach_the_same_tool(self, dispatcher: Dispatcher, tmp_path: Path) -> None:
        path = str(tmp_path / "spell.xlsx")
        created = await _call(dispatcher, _tool_call("workbook_create", {"filepath": path}))
        assert created["result"]["success"] is True
        written = await _call(
            dispatcher,
            _tool_call("cell_write", {"filepath": path, "sheet_name": "Sheet1", "cell": "A1", "value": 5}),
        )
        assert written["result"] == {"success": True, "cell": "A1"}

    async def test_handler_failure_becomes_server_error(self, dispatcher: Dispatcher, tmp_path: Path) -> None:
        resp = await _call(
            dispatcher,
            _tool_call("data-read", {"filepath": str(tmp_path / "missing.xlsx"), "sheet_name": "Sheet1"}),
        )
        assert resp["error"]["code"] == -32000
        assert "missing.xlsx" in resp["error"]["message"]

    async def test_string_ids_are_echoed(self, dispatcher: Dispatcher) -> None:
        resp = await _call(dispatcher, _tool_call("server-status", {}, request_id="req-7"))
        assert resp["id"] == "req-7"
