"""Server layer — Request dispatcher.

Turns one decoded request into one response line.  Routing is a plain
method-name table; tool calls go through the frozen :class:`ToolRegistry`.

Every ``ExcelBridgeError`` becomes an error envelope carrying its own code.
Anything else escapes to the session loop, which owns the last-resort
boundary.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Any

from excel_bridge.config import Settings
from excel_bridge.exceptions import (
    ExcelBridgeError,
    InvalidParamsError,
    MethodNotFoundError,
)
from excel_bridge.logging import bind_request_context, clear_request_context, get_logger
from excel_bridge.protocol.codec import EnvelopeCodec
from excel_bridge.protocol.models import JsonRpcRequest
from excel_bridge.tools.registry import ToolRegistry

log = get_logger(__name__)

MethodHandler = Callable[[JsonRpcRequest], Awaitable["dict[str, Any]"]]


class Dispatcher:
    """Route requests to the protocol methods and the tool registry.

    Usage::

        dispatcher = Dispatcher(registry, settings)
        line = await dispatcher.handle_line('{"id": 1, "method": "tools/list"}')
    """

    def __init__(
        self,
        registry: ToolRegistry,
        settings: Settings,
        codec: EnvelopeCodec | None = None,
    ) -> None:
        self._registry = registry
        self._settings = settings
        self._codec = codec or EnvelopeCodec()
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "ping": self._ping,
        }

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def codec(self) -> EnvelopeCodec:
        return self._codec

    async def handle_line(self, line: str | bytes) -> str:
        """Decode *line*, dispatch it and return the encoded response.

        Every line gets exactly one envelope, including notifications.
        """
        start = time.time()
        request_id: Any = None
        method: str | None = None
        try:
            request = self._codec.decode(line)
            request_id = request.id
            method = request.method
            bind_request_context(request_id=request_id, method=method)
            result = await self.dispatch(request)
        except ExcelBridgeError as exc:
            self._log_failure(exc, start)
            if request_id is None:
                request_id = exc.request_id
            return self._codec.encode_exception(request_id, exc)
        finally:
            clear_request_context()

        log.info(
            "request_completed",
            method=method,
            id=request_id,
            duration_ms=round((time.time() - start) * 1000, 2),
        )
        return self._codec.encode_result(request_id, result)

    async def dispatch(self, request: JsonRpcRequest) -> dict[str, Any]:
        handler = self._methods.get(request.method)
        if handler is None:
            raise MethodNotFoundError(request.method)
        return await handler(request)

    # ------------------------------------------------------------------
    # Methods
    # ------------------------------------------------------------------

    async def _initialize(self, request: JsonRpcRequest) -> dict[str, Any]:
        server = self._settings.server
        return {
            "protocolVersion": server.protocol_version,
            "capabilities": {"tools": {}, "logging": {}},
            "serverInfo": {"name": server.name, "version": server.version},
        }

    async def _tools_list(self, request: JsonRpcRequest) -> dict[str, Any]:
        return {"tools": self._registry.descriptors()}

    async def _tools_call(self, request: JsonRpcRequest) -> dict[str, Any]:
        params = request.params
        if not isinstance(params, dict):
            raise InvalidParamsError("Invalid params: params must be an object")

        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("Tool name is required")
        bind_request_context(tool=name)

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidParamsError(
                f"Invalid arguments for tool '{name}': arguments must be an object",
                tool=name,
            )

        entry = self._registry.resolve(name)
        start = time.time()
        result = await entry.handler(arguments)
        log.debug(
            "tool_call_completed",
            tool=entry.name,
            group=entry.group,
            duration_ms=round((time.time() - start) * 1000, 2),
        )
        return result

    async def _ping(self, request: JsonRpcRequest) -> dict[str, Any]:
        return {}

    # ------------------------------------------------------------------

    @staticmethod
    def _log_failure(exc: ExcelBridgeError, start: float) -> None:
        log.warning(
            "request_failed",
            code=exc.code,
            error=exc.message,
            error_type=type(exc).__name__,
            duration_ms=round((time.time() - start) * 1000, 2),
        )
