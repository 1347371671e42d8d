"""Spreadsheet engine — openpyxl wrappers used by the tool groups."""

from excel_bridge.engine.cache import WorkbookCache
from excel_bridge.engine.store import WorkbookStore

__all__ = ["WorkbookCache", "WorkbookStore"]
