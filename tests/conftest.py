"""Shared pytest fixtures for the excel-bridge test suite."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Generator

import openpyxl
import pytest
import structlog

from excel_bridge.config import Settings, override_settings
from excel_bridge.engine import WorkbookStore
from excel_bridge.server import Dispatcher, build_store
from excel_bridge.tools import ToolContext, ToolRegistry, build_registry


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None, None, None]:
    """Undo ``configure_logging()`` calls made by a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


# ---------------------------------------------------------------------------
# Settings & wiring
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    settings = Settings(
        cache={"enabled": True, "max_entries": 8, "ttl_seconds": 60},
        logging={"level": "debug", "format": "console"},
    )
    override_settings(settings)
    return settings


@pytest.fixture
def store(test_settings: Settings) -> WorkbookStore:
    return build_store(test_settings)


@pytest.fixture
def context(test_settings: Settings, store: WorkbookStore) -> ToolContext:
    return ToolContext(settings=test_settings, store=store)


@pytest.fixture
def registry(context: ToolContext) -> ToolRegistry:
    return build_registry(context)


@pytest.fixture
def dispatcher(registry: ToolRegistry, test_settings: Settings) -> Dispatcher:
    return Dispatcher(registry, test_settings)


# ---------------------------------------------------------------------------
# Workbooks
# ---------------------------------------------------------------------------


@pytest.fixture
def wb_path(tmp_path: Path) -> Path:
    """A workbook with one sheet holding a small header + data block."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Sheet1"
    ws.append(["Name", "Region", "Sales"])
    ws.append(["Alice", "North", 100])
    ws.append(["Bob", "South", 250])
    ws.append(["Carol", "North", 75])
    ws.append(["Dan", "South", 30])
    path = tmp_path / "test.xlsx"
    wb.save(str(path))
    return path


@pytest.fixture
def new_path(tmp_path: Path) -> Path:
    """Path for a workbook that does not exist yet."""
    return tmp_path / "out" / "new.xlsx"
