"""Excel Bridge — Exception hierarchy.

All exceptions raised by the server inherit from ExcelBridgeError so that
the dispatcher can turn the whole family into error envelopes with a single
except clause.  Every class carries the JSON-RPC error ``code`` it maps to.

Hierarchy:
    ExcelBridgeError
    ├── ProtocolError
    │   ├── ParseError            (-32700)
    │   ├── InvalidRequestError   (-32600)
    │   └── MethodNotFoundError   (-32601)
    ├── ToolError                 (-32000)
    │   ├── InvalidParamsError
    │   ├── ToolNotFoundError
    │   ├── ToolRegistrationError
    │   └── ToolExecutionError
    └── WorkbookError             (-32000)
        ├── WorkbookNotFoundError
        ├── WorksheetNotFoundError
        └── InvalidRangeError
"""

from __future__ import annotations

from typing import Any

# JSON-RPC reserved codes.  Mirrored by ``protocol.models.ErrorCode``.
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
SERVER_ERROR = -32000


class ExcelBridgeError(Exception):
    """Base exception for all Excel Bridge errors."""

    code: int = SERVER_ERROR
    # Set when the failure is raised before a request object exists.
    request_id: Any = None

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


# ---------------------------------------------------------------------------
# Protocol layer
# ---------------------------------------------------------------------------


class ProtocolError(ExcelBridgeError):
    """Base for envelope-level errors (the line never reached a tool)."""


class ParseError(ProtocolError):
    """The incoming line is not valid JSON."""

    code = PARSE_ERROR

    def __init__(self, message: str, raw_line: str | None = None) -> None:
        super().__init__(message, context={"raw_line": raw_line})
        self.raw_line = raw_line


class InvalidRequestError(ProtocolError):
    """The JSON payload is not a valid request object."""

    code = INVALID_REQUEST

    def __init__(self, message: str, request_id: Any = None) -> None:
        super().__init__(message, context={"request_id": request_id})
        self.request_id = request_id


class MethodNotFoundError(ProtocolError):
    """The top-level ``method`` is not one the server understands."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        super().__init__(f"Method not found: {method}", context={"method": method})
        self.method = method


# ---------------------------------------------------------------------------
# Tool layer
# ---------------------------------------------------------------------------


class ToolError(ExcelBridgeError):
    """Base for tool dispatch and execution errors."""


class InvalidParamsError(ToolError):
    """Arguments for a tool call are missing or malformed."""

    def __init__(
        self,
        message: str,
        tool: str | None = None,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message, context={"tool": tool, "validation_errors": errors or []})
        self.tool = tool
        self.errors = errors or []


class ToolNotFoundError(ToolError):
    """No handler is registered under the requested tool name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}", context={"tool": name})
        self.name = name


class ToolRegistrationError(ToolError):
    """A tool group could not be wired into the registry."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(
            f"Cannot register tool '{name}': {reason}",
            context={"tool": name, "reason": reason},
        )
        self.name = name
        self.reason = reason


class ToolExecutionError(ToolError):
    """A tool handler raised an unexpected exception.

    The message is the original exception text so callers see what the
    spreadsheet engine reported.
    """

    def __init__(self, tool: str, cause: Exception) -> None:
        message = str(cause) or cause.__class__.__name__
        # KeyError wraps its message in quotes.
        if isinstance(cause, KeyError) and cause.args:
            message = str(cause.args[0])
        super().__init__(
            message,
            context={"tool": tool, "cause": repr(cause)},
        )
        self.tool = tool
        self.cause = cause


# ---------------------------------------------------------------------------
# Workbook layer
# ---------------------------------------------------------------------------


class WorkbookError(ExcelBridgeError):
    """Base for spreadsheet engine failures."""


class WorkbookNotFoundError(WorkbookError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Workbook not found: {path}", context={"path": path})
        self.path = path


class WorksheetNotFoundError(WorkbookError):
    def __init__(self, sheet: str, path: str | None = None) -> None:
        super().__init__(
            f"Sheet '{sheet}' not found.",
            context={"sheet": sheet, "path": path},
        )
        self.sheet = sheet
        self.path = path


class InvalidRangeError(WorkbookError):
    """A cell or range reference could not be parsed."""

    def __init__(self, reference: str, reason: str = "invalid cell reference") -> None:
        super().__init__(
            f"Invalid range '{reference}': {reason}",
            context={"reference": reference, "reason": reason},
        )
        self.reference = reference
