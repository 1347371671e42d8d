"""JSON-RPC envelope models.

One request per input line, one response per request.  These are plain data
shapes; routing lives in :mod:`excel_bridge.server.dispatcher`.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from excel_bridge import exceptions

JSONRPC_VERSION = "2.0"


class ErrorCode(IntEnum):
    PARSE_ERROR = exceptions.PARSE_ERROR
    INVALID_REQUEST = exceptions.INVALID_REQUEST
    METHOD_NOT_FOUND = exceptions.METHOD_NOT_FOUND
    SERVER_ERROR = exceptions.SERVER_ERROR


class JsonRpcRequest(BaseModel):
    """A decoded request line.

    ``params`` is kept as whatever the caller sent once it is present.  A
    non-object value is rejected later by the step that reads named fields
    from it.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    method: str
    id: Any = None
    params: Any = Field(default_factory=dict)
    jsonrpc: str | None = None


class JsonRpcError(BaseModel):
    code: int
    message: str


class JsonRpcResponse(BaseModel):
    """Exactly one of ``result`` / ``error`` is set."""

    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    def to_wire(self) -> dict[str, Any]:
        # ``id`` is always present on the wire, even when null.
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.model_dump()
        else:
            payload["result"] = self.result if self.result is not None else {}
        return payload
