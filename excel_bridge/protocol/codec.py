"""Envelope codec — one line in, one request out; one response out, one line.

Responsibilities:
  1. Deserialise a single input line as JSON
  2. Check the top-level shape (object with a string ``method``)
  3. Serialise results and errors as compact single-line JSON

The codec does NOT route or execute anything.
"""

from __future__ import annotations

import json
from typing import Any

from excel_bridge.exceptions import ExcelBridgeError, InvalidRequestError, ParseError
from excel_bridge.protocol.models import JsonRpcError, JsonRpcRequest, JsonRpcResponse

_RAW_PREVIEW = 200


class EnvelopeCodec:
    """Stateless line codec.

    Usage::

        codec = EnvelopeCodec()
        request = codec.decode('{"id": 1, "method": "tools/list"}')
        line = codec.encode_result(request.id, {"tools": []})
    """

    def decode(self, line: str | bytes) -> JsonRpcRequest:
        """Parse *line* into a :class:`JsonRpcRequest`.

        Raises:
            ParseError: The line is not valid JSON.
            InvalidRequestError: The payload is not an object or has no
                string ``method``.  The request id is attached when one
                could be read.
        """
        if isinstance(line, bytes):
            line = line.decode("utf-8")

        try:
            data = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ParseError("Parse error", raw_line=line[:_RAW_PREVIEW]) from exc

        if not isinstance(data, dict):
            raise InvalidRequestError(
                f"Invalid Request: expected a JSON object, got {type(data).__name__}"
            )

        request_id = data.get("id")
        method = data.get("method")
        if not isinstance(method, str) or not method:
            raise InvalidRequestError("Invalid Request: missing method", request_id=request_id)

        params = data.get("params")
        return JsonRpcRequest(
            method=method,
            id=request_id,
            params={} if params is None else params,
            jsonrpc=data.get("jsonrpc") if isinstance(data.get("jsonrpc"), str) else None,
        )

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def encode_result(self, request_id: Any, result: dict[str, Any]) -> str:
        return self._dump(JsonRpcResponse(id=request_id, result=result))

    def encode_error(self, request_id: Any, code: int, message: str) -> str:
        return self._dump(
            JsonRpcResponse(id=request_id, error=JsonRpcError(code=code, message=message))
        )

    def encode_exception(self, request_id: Any, exc: ExcelBridgeError) -> str:
        return self.encode_error(request_id, exc.code, exc.message)

    @staticmethod
    def _dump(response: JsonRpcResponse) -> str:
        # json.dumps escapes control characters, so the line never contains
        # a raw newline.
        return json.dumps(
            response.to_wire(),
            ensure_ascii=False,
            separators=(",", ":"),
            default=str,
        )
