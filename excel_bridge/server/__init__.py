"""Server layer — dispatcher, stdio session and the wiring between them."""

from excel_bridge.server.app import ExcelBridgeServer, build_store, create_server
from excel_bridge.server.dispatcher import Dispatcher
from excel_bridge.server.session import SessionStats, StdioSession

__all__ = [
    "Dispatcher",
    "ExcelBridgeServer",
    "SessionStats",
    "StdioSession",
    "build_store",
    "create_server",
]
