"""JSON-RPC envelope layer: request/response models, line codec, tool argument models."""

from excel_bridge.protocol.codec import EnvelopeCodec
from excel_bridge.protocol.models import ErrorCode, JsonRpcRequest, JsonRpcResponse

__all__ = ["EnvelopeCodec", "ErrorCode", "JsonRpcRequest", "JsonRpcResponse"]
