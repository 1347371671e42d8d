"""Workbook store — open, mutate and save workbooks on behalf of tool handlers.

Each tool call opens its workbook, changes it and saves it before returning.
When a :class:`~excel_bridge.engine.cache.WorkbookCache` is injected the
parsed workbook is reused across calls; without one every call reads the
file from disk.  Behaviour is identical either way.

All methods are blocking.  Tool handlers call them from
``asyncio.to_thread``.
"""

from __future__ import annotations

import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from io import BytesIO
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from excel_bridge.engine.cache import WorkbookCache
from excel_bridge.exceptions import (
    WorkbookError,
    WorkbookNotFoundError,
    WorksheetNotFoundError,
)
from excel_bridge.logging import get_logger

log = get_logger(__name__)

MACRO_SUFFIXES = frozenset({".xlsm", ".xltm"})


def resolve_path(path: str | Path) -> Path:
    return Path(path).expanduser().resolve()


class WorkbookStore:
    """Load / save gateway between tool handlers and openpyxl.

    Usage::

        store = WorkbookStore(cache=WorkbookCache())
        with store.edit("report.xlsx") as wb:
            store.sheet(wb, "Sheet1")["A1"] = 42
    """

    def __init__(
        self,
        cache: WorkbookCache | None = None,
        default_sheet_name: str = "Sheet1",
    ) -> None:
        self._cache = cache
        self._default_sheet_name = default_sheet_name

    @property
    def cache(self) -> WorkbookCache | None:
        return self._cache

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def create(self, path: str | Path, sheet_name: str | None = None) -> Path:
        """Write a new workbook with a single empty sheet.  Overwrites *path*."""
        target = resolve_path(path)
        wb = openpyxl.Workbook()
        wb.active.title = sheet_name or self._default_sheet_name
        self.save(target, wb)
        log.debug("workbook_created", path=str(target))
        return target

    def load(self, path: str | Path) -> Any:
        """Return the workbook at *path*, from cache when still fresh."""
        target = resolve_path(path)
        if self._cache is not None:
            cached = self._cache.get(target)
            if cached is not None:
                return cached

        if not target.is_file():
            raise WorkbookNotFoundError(str(path))

        try:
            wb = openpyxl.load_workbook(
                str(target),
                data_only=False,
                keep_vba=target.suffix.lower() in MACRO_SUFFIXES,
            )
        except (InvalidFileException, zipfile.BadZipFile) as exc:
            raise WorkbookError(f"Cannot open workbook {path}: {exc}", context={"path": str(path)}) from exc

        if self._cache is not None:
            self._cache.put(target, wb)
        log.debug("workbook_loaded", path=str(target))
        return wb

    def save(self, path: str | Path, wb: Any) -> str:
        """Save *wb* to *path* and refresh the cache entry.  Returns the saved path."""
        target = resolve_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        images = _image_payloads(wb)
        _rewind_images(images)
        try:
            wb.save(str(target))
        except OSError as exc:
            self.invalidate(target)
            raise WorkbookError(f"Error saving file {path}: {exc}", context={"path": str(path)}) from exc
        except Exception:
            self.invalidate(target)
            raise
        finally:
            _rewind_images(images)
        if self._cache is not None:
            self._cache.put(target, wb)
        return str(target)

    def invalidate(self, path: str | Path) -> None:
        if self._cache is not None:
            self._cache.invalidate(resolve_path(path))

    @contextmanager
    def edit(self, path: str | Path) -> Iterator[Any]:
        """Yield the workbook at *path* and save it when the block succeeds.

        A failing block drops the cached copy so half-applied changes are
        never served to the next call.
        """
        wb = self.load(path)
        try:
            yield wb
        except BaseException:
            self.invalidate(path)
            raise
        self.save(path, wb)

    # ------------------------------------------------------------------
    # Sheets
    # ------------------------------------------------------------------

    @staticmethod
    def sheet(wb: Any, name: str, create: bool = False) -> Any:
        """Return worksheet *name*, optionally creating it when missing."""
        if name in wb.sheetnames:
            return wb[name]
        if create:
            return wb.create_sheet(title=name)
        raise WorksheetNotFoundError(name)


# ---------------------------------------------------------------------------
# Embedded images
# ---------------------------------------------------------------------------


def _image_payloads(wb: Any) -> list[tuple[Any, bytes]]:
    """Bytes of every embedded image, read while their streams are still open."""
    return [(img, img._data()) for ws in wb.worksheets for img in getattr(ws, "_images", ())]


def _rewind_images(payloads: list[tuple[Any, bytes]]) -> None:
    # openpyxl closes each image stream while writing it, so a workbook saved
    # twice needs a fresh stream per image every time.
    for img, data in payloads:
        img.ref = BytesIO(data)
