"""Unit tests — StdioSession line loop over in-memory streams."""

from __future__ import annotations

import io
import json
from typing import Any

import pytest

from excel_bridge.server import Dispatcher, StdioSession


def _lines(*messages: Any) -> io.BytesIO:
    chunks = []
    for m in messages:
        if isinstance(m, bytes):
            chunks.append(m)
        elif isinstance(m, str):
            chunks.append(m.encode("utf-8"))
        else:
            chunks.append(json.dumps(m).encode("utf-8"))
    return io.BytesIO(b"\n".join(chunks) + b"\n")


def _responses(stdout: io.BytesIO) -> list[dict[str, Any]]:
    return [json.loads(line) for line in stdout.getvalue().decode("utf-8").splitlines()]


class ExplodingDispatcher(Dispatcher):
    async def handle_line(self, line: str | bytes) -> str:
        raise RuntimeError("dispatcher exploded")


@pytest.mark.unit
class TestStdioSession:
    async def test_one_response_per_request_in_order(self, dispatcher: Dispatcher) -> None:
        stdout = io.BytesIO()
        stdin = _lines(
            {"id": 1, "method": "ping"},
            {"id": 2, "method": "tools/list"},
            {"id": 3, "method": "nope"},
        )
        stats = await StdioSession(dispatcher, stdin=stdin, stdout=stdout).run()
        responses = _responses(stdout)
        assert [r["id"] for r in responses] == [1, 2, 3]
        assert "error" in responses[2]
        assert stats.lines_read == 3
        assert stats.responses_written == 3

    async def test_blank_lines_are_skipped(self, dispatcher: Dispatcher) -> None:
        stdout = io.BytesIO()
        stdin = _lines("", "   ", {"id": 1, "method": "ping"}, "\t")
        await StdioSession(dispatcher, stdin=stdin, stdout=stdout).run()
        assert len(_responses(stdout)) == 1

    async def test_every_line_gets_a_response(self, dispatcher: Dispatcher) -> None:
        stdout = io.BytesIO()
        stdin = _lines({"method": "notifications/initialized"}, {"method": "ping"}, {"id": 1, "method": "ping"})
        stats = await StdioSession(dispatcher, stdin=stdin, stdout=stdout).run()
        responses = _responses(stdout)
        assert [r["id"] for r in responses] == [None, None, 1]
        assert responses[0]["error"]["code"] == -32601
        assert responses[1]["result"] == {}
        assert stats.responses_written == stats.lines_read == 3

    async def test_invalid_utf8_gets_server_error(self, dispatcher: Dispatcher) -> None:
        stdout = io.BytesIO()
        stdin = _lines(b"\xff\xfe\xfd", {"id": 2, "method": "ping"})
        stats = await StdioSession(dispatcher, stdin=stdin, stdout=stdout).run()
        first, second = _responses(stdout)
        assert first["id"] is None
        assert first["error"]["code"] == -32000
        assert "utf-8" in first["error"]["message"]
        assert second["result"] == {}
        assert stats.errors == 1

    async def test_escaping_exception_gets_server_error(self, registry, test_settings) -> None:
        stdout = io.BytesIO()
        session = StdioSession(
            ExplodingDispatcher(registry, test_settings),
            stdin=_lines({"id": 1, "method": "ping"}),
            stdout=stdout,
        )
        await session.run()
        assert _responses(stdout) == [
            {"jsonrpc": "2.0", "id": None, "error": {"code": -32000, "message": "dispatcher exploded"}}
        ]

    async def test_parse_error_does_not_stop_the_loop(self, dispatcher: Dispatcher) -> None:
        stdout = io.BytesIO()
        stdin = _lines("{broken", {"id": 5, "method": "ping"})
        await StdioSession(dispatcher, stdin=stdin, stdout=stdout).run()
        first, second = _responses(stdout)
        assert first["error"]["code"] == -32700
        assert second["id"] == 5

    async def test_text_stdout(self, dispatcher: Dispatcher) -> None:
        stdout = io.StringIO()
        await StdioSession(dispatcher, stdin=_lines({"id": 1, "method": "ping"}), stdout=stdout).run()
        assert json.loads(stdout.getvalue()) == {"jsonrpc": "2.0", "id": 1, "result": {}}
        assert stdout.getvalue().endswith("\n")

    async def test_empty_input(self, dispatcher: Dispatcher) -> None:
        stdout = io.BytesIO()
        stats = await StdioSession(dispatcher, stdin=io.BytesIO(b""), stdout=stdout).run()
        assert stdout.getvalue() == b""
        assert stats.lines_read == 0

    async def test_last_line_without_newline(self, dispatcher: Dispatcher) -> None:
        stdout = io.BytesIO()
        stdin = io.BytesIO(b'{"id": 1, "method": "ping"}')
        await StdioSession(dispatcher, stdin=stdin, stdout=stdout).run()
        assert _responses(stdout)[0]["id"] == 1
